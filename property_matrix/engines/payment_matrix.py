# Docstring for property_matrix/engines/payment_matrix module
"""
payment_matrix.py

AMC payment matrix engine: receipts -> dense block x flat grid for one
Indian fiscal year.

The society collects an annual maintenance charge (AMC) per flat. Receipts
are entered by hand into spreadsheet tabs, so the same flat can have several
receipts a year (instalments, corrections) and dates come in several formats.
This engine reconciles the receipt list against the owner roster and answers
"how much did each flat pay in FY N?".

Design goals
------------
- Dense output: the grid is the full cross product of every block and every
  flat on the roster. Flats with no receipts appear as empty cells, never as
  missing rows/columns.
- Deterministic: same owners, receipts and year -> identical grid.
- Data problems never abort a build: bad records are excluded and described
  in AmcMatrixData.warnings.
- Caller mistakes do: non-list inputs or a non-numeric year raise
  MatrixInputError.

Core logic
----------
1) Axes
   - blocks / flats from extract_blocks_and_flats(owners).

2) Year filter
   - payment_date parsed with normalize_date(); unparseable -> warning.
   - fiscal year (April-March) must equal the selected year; receipts from
     other years are dropped silently (that is what the filter is for).
   - a selected-year receipt whose block_number / flat_number is not a
     non-empty string is skipped with a warning.

3) Aggregation per (block, flat)
   - value = sum of payment_amount over surviving receipts; negative or
     non-numeric amounts are excluded with a warning.
   - metadata = payment_date / receipt_number of the latest receipt (first
     one seen when several share the latest date).
   - value is None (and metadata absent) when the sum is 0 or no receipts.

4) Totals
   - total_by_block / total_by_flat add up positive cells only, so
     sum(total_by_block) == sum(total_by_flat) == sum of non-null cells.

5) Integrity audit
   - audit_payment_matrix() re-checks every populated cell. Findings are
     logged; the grid is returned regardless.

Receipts for a (block, flat) that is not on the roster are grouped but never
placed in the grid (the axes come from owners only). Each such key is
reported once in warnings.

Public API
----------
- build_payment_matrix(owners, receipts, fiscal_year) -> AmcMatrixData
"""


from __future__ import annotations

import math
from numbers import Real
from typing import Any, Sequence

import pandas as pd

from ..core.models import AmcMatrixData, MatrixCell, MatrixInputError, as_record_mapping
from ..core.normalizers import fiscal_year_from_date, normalize_date, to_amount
from ..core.validators import (
    extract_available_fiscal_years,
    extract_blocks_and_flats,
    location_issues,
)
from .integrity_audit import audit_payment_matrix


_RECEIPT_FRAME_COLUMNS = [
    "block_number",
    "flat_number",
    "amount",
    "payment_ts",
    "payment_date",
    "receipt_no",
]


def _check_contract(owners: Any, receipts: Any, fiscal_year: Any) -> None:
    if not isinstance(owners, (list, tuple)):
        raise MatrixInputError(f"owners must be a list, got {type(owners).__name__}")
    if not isinstance(receipts, (list, tuple)):
        raise MatrixInputError(f"receipts must be a list, got {type(receipts).__name__}")
    # bool is a Real subclass; True is not a year
    if isinstance(fiscal_year, bool) or not isinstance(fiscal_year, Real):
        raise MatrixInputError(
            f"fiscal_year must be a number, got {type(fiscal_year).__name__}"
        )
    if not math.isfinite(fiscal_year):
        raise MatrixInputError(f"fiscal_year must be finite, got {fiscal_year!r}")


def _as_display_number(total: float) -> int | float:
    # Amounts are whole rupees; keep 1000 rather than 1000.0 in cells
    return int(total) if float(total).is_integer() else total


def _collect_year_receipts(
    receipts: Sequence[Any],
    fiscal_year: int | float,
    issues: list[str],
) -> pd.DataFrame:
    """
    Build a DataFrame of receipts whose payment_date falls in fiscal_year.

    Index = position in the input list, so idxmax() ties resolve to the
    receipt seen first.
    """
    rows: dict[int, dict[str, Any]] = {}

    for index, receipt in enumerate(receipts):
        record = as_record_mapping(receipt)
        if record is None:
            issues.append(f"Receipt {index}: record is missing or not a mapping")
            continue

        raw_date = record.get("payment_date")
        ts = normalize_date(raw_date)
        if pd.isna(ts):
            issues.append(f"Receipt {index}: unparseable payment_date {raw_date!r}")
            continue

        if fiscal_year_from_date(ts) != fiscal_year:
            continue    # other fiscal year, expected

        reasons = location_issues(record)
        if reasons:
            issues.append(f"Receipt {index}: {', '.join(reasons)}, not placed in the grid")
            continue

        amount = to_amount(record.get("payment_amount"))
        if math.isnan(amount) or amount < 0:
            issues.append(
                f"Receipt {index}: invalid payment_amount "
                f"{record.get('payment_amount')!r}, excluded from totals"
            )
            amount = float("nan")

        rows[index] = {
            "block_number": record.get("block_number"),
            "flat_number": record.get("flat_number"),
            "amount": amount,
            "payment_ts": ts,
            "payment_date": raw_date,
            "receipt_no": record.get("receipt_no"),
        }

    # orient="index" -> dict keys become the row index
    df = pd.DataFrame.from_dict(rows, orient="index", columns=_RECEIPT_FRAME_COLUMNS)
    df["payment_ts"] = pd.to_datetime(df["payment_ts"])
    df["amount"] = df["amount"].astype("float64")
    return df


def _summarize_groups(year_receipts: pd.DataFrame) -> dict[tuple[Any, Any], dict[str, Any]]:
    """Per (block, flat): summed valid amount plus the latest receipt's metadata."""
    if year_receipts.empty:
        return {}

    grouped = year_receipts.groupby(["block_number", "flat_number"], sort=False, dropna=False)

    # .sum() skips NaN amounts (the invalid ones)
    totals = grouped["amount"].sum()
    # .idxmax() -> index label of the first row holding the latest payment_ts
    latest_idx = grouped["payment_ts"].idxmax()

    summary: dict[tuple[Any, Any], dict[str, Any]] = {}
    for key, total in totals.items():
        latest = year_receipts.loc[latest_idx[key]]
        summary[key] = {
            "total": float(total),
            "payment_date": latest["payment_date"],
            "receipt_number": latest["receipt_no"],
        }
    return summary


def build_payment_matrix(
        owners: Sequence[Any],      # OwnerRecord models or mappings
        receipts: Sequence[Any],    # ReceiptRecord models or mappings
        fiscal_year: int,
) -> AmcMatrixData:

    """

    Build the AMC payment grid for one fiscal year.

    Args:
        owners:
            Owner roster. Defines the grid axes; every owner needs a
            non-empty block_number and flat_number to be placed.
        receipts:
            Payment receipts. Must carry block_number, flat_number,
            payment_amount, payment_date and (for metadata) receipt_no.
        fiscal_year:
            Fiscal year to show, labelled by its starting calendar year
            (2024 = 1 Apr 2024 .. 31 Mar 2025).

    Returns:
        AmcMatrixData with cells[i][j] for blocks[i] x flats[j], the
        available fiscal years, per-block / per-flat totals and the
        data-quality warnings collected along the way.

    Raises:
        MatrixInputError: owners/receipts are not lists or fiscal_year is
            not a finite number.

    """

    _check_contract(owners, receipts, fiscal_year)

    axes = extract_blocks_and_flats(owners)
    year_scan = extract_available_fiscal_years(receipts)
    issues: list[str] = list(axes.warnings)

    year_receipts = _collect_year_receipts(receipts, fiscal_year, issues)
    groups = _summarize_groups(year_receipts)

    # Initialize totals so every axis label is present even when it is 0
    total_by_block: dict[str, int | float] = {block: 0 for block in axes.blocks}
    total_by_flat: dict[str, int | float] = {flat: 0 for flat in axes.flats}

    cells: list[list[MatrixCell]] = []
    for block in axes.blocks:
        row: list[MatrixCell] = []
        for flat in axes.flats:
            group = groups.get((block, flat))
            total = group["total"] if group else 0.0

            if total > 0:
                value = _as_display_number(total)
                cell = MatrixCell(
                    block_number=block,
                    flat_number=flat,
                    value=value,
                    metadata={
                        "payment_date": group["payment_date"],
                        "receipt_number": group["receipt_number"],
                    },
                )
                total_by_block[block] += value
                total_by_flat[flat] += value
            else:
                cell = MatrixCell(block_number=block, flat_number=flat)

            row.append(cell)
        cells.append(row)

    # Receipts that the roster cannot place: reported, not redistributed
    block_set, flat_set = set(axes.blocks), set(axes.flats)
    for block, flat in groups:
        if block not in block_set or flat not in flat_set:
            issues.append(
                f"Receipts for {block}-{flat} have no matching owner on the roster; "
                "not shown in the grid"
            )

    matrix = AmcMatrixData(
        blocks=axes.blocks,
        flats=axes.flats,
        cells=cells,
        available_years=year_scan.years,
        selected_year=fiscal_year,
        total_by_block=total_by_block,
        total_by_flat=total_by_flat,
        warnings=issues,
    )

    audit_payment_matrix(matrix, fiscal_year)

    return matrix
