# Docstring for property_matrix/cleaning/clean_receipts module
"""
clean_receipts.py

Cleaning and normalization for receipt sheets (AMC, donations, parking ...).

Each receipt tab shares the same 14-column layout (config.RECEIPT_SHEET_COLUMNS,
A..N). Rows from several tabs are concatenated by the source before they get
here, headers already removed.

Core transformations
--------------------
1) Positional mapping + cell normalization (shared with clean_owners.py).

2) Amounts
   - payment_amount parsed with to_numeric_series(); "₹1,000" -> 1000.0,
     unparseable -> 0.0 (an unreadable amount is the same as no payment).

3) Derived fields
   - id = "{receipt_no}_{block_number}_{flat_number}_{row_index}" where
     row_index is the position in the concatenated input (pre-filter), so
     ids stay stable across re-runs on the same sheet.

4) Row filtering (drop_invalid_rows=True)
   - A receipt is kept only when receipt_no, block_number, flat_number and
     payment_date are non-empty and payment_amount > 0.
   - The number of dropped rows is reported with warnings.warn.

AMC selection
-------------
When the workbook has no dedicated AMC tab, AMC receipts are picked out of
all receipts by keyword (config.AMC_FILTER_CONFIG.row_keywords) in
receipt_no or remarks.

Public API
----------
- clean_receipt_rows(rows, skip_header=False, drop_invalid_rows=True) -> pd.DataFrame
- is_amc_receipt(receipt_no, remarks, cfg=AMC_FILTER_CONFIG) -> bool
- filter_amc_rows(rows, cfg=AMC_FILTER_CONFIG) -> list[list]
"""


from __future__ import annotations

import warnings
from typing import Any, Sequence

import pandas as pd

from ..config import (
    AMC_FILTER_CONFIG,
    RECEIPT_CORE_COLUMNS,
    RECEIPT_REQUIRED_COLUMNS,
    RECEIPT_SHEET_COLUMNS,
    AmcFilterConfig,
)
from ..core.normalizers import to_numeric_series
from .clean_owners import cell_to_text, rows_to_positional_frame



# --- Helper functions ------------------------------------------------------------


def is_amc_receipt(
        receipt_no: Any,
        remarks: Any,
        cfg: AmcFilterConfig = AMC_FILTER_CONFIG,
) -> bool:

    """

    True when the receipt number or remarks mention an AMC keyword.

    Example:
        ('AMC/2024/017', '')                  -> True
        ('R-88', 'Annual maintenance Q1')     -> True
        ('R-89', 'Festival donation')         -> False

    """

    text = " ".join(
        part.lower() for part in (receipt_no, remarks) if isinstance(part, str)
    )
    return any(keyword in text for keyword in cfg.row_keywords)


def _invalid_receipt_mask(df: pd.DataFrame) -> pd.Series:
    text_required = [c for c in RECEIPT_REQUIRED_COLUMNS if c != "payment_amount"]
    # .any(axis=1) -> True when any required text cell in the row is empty
    missing_text = (df[text_required] == "").any(axis=1)
    bad_amount = ~(df["payment_amount"] > 0)
    return missing_text | bad_amount



# --- Main cleaning functions ------------------------------------------------------------


def clean_receipt_rows(
        rows: Sequence[Sequence[Any]],
        skip_header: bool = False,      # sources strip per-tab headers already
        drop_invalid_rows: bool = True,
) -> pd.DataFrame:

    """

    Clean receipt rows into the canonical receipt DataFrame.

    Steps:
    1. Map positions to canonical names, normalize cells to text
    2. Parse payment_amount (invalid -> 0.0)
    3. Build the receipt id from receipt_no / block / flat / row index
    4. Optionally drop rows missing required fields or with amount <= 0

    Args:
        rows:
            Raw receipt rows (header-less unless skip_header=True).
        skip_header:
            If True, the first row is discarded.
        drop_invalid_rows:
            If True, rows failing the required-field rule are dropped.

    Returns:
        DataFrame with columns config.RECEIPT_CORE_COLUMNS.

    """

    data_rows = list(rows)[1:] if skip_header else list(rows)

    df = rows_to_positional_frame(data_rows, RECEIPT_SHEET_COLUMNS)

    # 2) Amounts: unparseable -> 0.0
    df["payment_amount"] = to_numeric_series(df["payment_amount"]).fillna(0.0)

    # 3) id uses the position in the concatenated input
    df["id"] = [
        f"{receipt_no}_{block}_{flat}_{idx}"
        for idx, (receipt_no, block, flat) in enumerate(
            zip(df["receipt_no"], df["block_number"], df["flat_number"])
        )
    ]

    df = df[RECEIPT_CORE_COLUMNS]

    # 4) Required fields
    if drop_invalid_rows:
        invalid_mask = _invalid_receipt_mask(df)
        invalid_count = int(invalid_mask.sum())
        if invalid_count > 0:
            warnings.warn(
                f"Receipt cleaning dropped {invalid_count} of {len(df)} rows "
                "missing receipt_no/block/flat/payment_date or with amount <= 0.",
                stacklevel=2,
            )
            df = df.loc[~invalid_mask]

    return df.reset_index(drop=True)


def filter_amc_rows(
        rows: Sequence[Sequence[Any]],
        cfg: AmcFilterConfig = AMC_FILTER_CONFIG,
) -> list[list[Any]]:

    """

    Keep raw receipt rows that is_amc_receipt() accepts, used by sources
    before cleaning.

    Reads receipt_no / remarks by position (config.RECEIPT_SHEET_COLUMNS).

    """

    positions = {name: pos for pos, name in RECEIPT_SHEET_COLUMNS.items()}
    no_pos, remarks_pos = positions["receipt_no"], positions["remarks"]

    kept = []
    for row in rows:
        cells = list(row) if row is not None else []
        receipt_no = cell_to_text(cells[no_pos]) if len(cells) > no_pos else ""
        remarks = cell_to_text(cells[remarks_pos]) if len(cells) > remarks_pos else ""
        if is_amc_receipt(receipt_no, remarks, cfg):
            kept.append(cells)
    return kept
