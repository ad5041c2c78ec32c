"""
integrity_audit.py

Post-build self-test for payment matrices.

Re-walks a built AmcMatrixData and checks that every populated cell's
metadata payment_date falls in the fiscal year the grid was built for. A
mismatch means the year filter in payment_matrix.py let a receipt through
that it should not have. Findings are logged as one batch and returned; the
grid itself is never modified or rejected.

Public API
----------
- audit_payment_matrix(matrix, fiscal_year=None) -> list[str]
"""

from __future__ import annotations

import logging

import pandas as pd

from ..core.models import AmcMatrixData
from ..core.normalizers import fiscal_year_from_date, normalize_date

logger = logging.getLogger(__name__)


def audit_payment_matrix(matrix: AmcMatrixData, fiscal_year: int | None = None) -> list[str]:
    """
    Return (and log) every cell whose payment_date is outside the grid's year.

    Args:
        matrix:
            A grid returned by build_payment_matrix().
        fiscal_year:
            Year to check against. Defaults to matrix.selected_year.
    """
    target_year = matrix.selected_year if fiscal_year is None else fiscal_year
    findings: list[str] = []

    for row in matrix.cells:
        for cell in row:
            if not cell.metadata or "payment_date" not in cell.metadata:
                continue

            raw_date = cell.metadata["payment_date"]
            ts = normalize_date(raw_date)
            if pd.isna(ts):
                findings.append(
                    f"Cell {cell.key}: metadata payment_date {raw_date!r} is unparseable"
                )
                continue

            cell_year = fiscal_year_from_date(ts)
            if cell_year != target_year:
                findings.append(
                    f"Cell {cell.key}: payment_date {raw_date!r} is in FY {cell_year}, "
                    f"grid was built for FY {target_year}"
                )

    if findings:
        logger.warning(
            f"Payment matrix integrity check found {len(findings)} mismatched cell(s) "
            f"for FY {target_year}: {findings}"
        )

    return findings
