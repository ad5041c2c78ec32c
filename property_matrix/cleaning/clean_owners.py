# Docstring for property_matrix/cleaning/clean_owners module
"""
clean_owners.py

Cleaning and normalization for the MemberData (owner roster) sheet.

The roster sheet has no stable header names, so rows are mapped by column
POSITION (see config.OWNER_SHEET_COLUMNS) into the canonical owner schema.
Rows arrive either from the Sheets API (lists of strings, trailing empty
cells omitted) or from a local Excel/CSV export read with header=None (lists
of mixed objects: str, int, float, datetime, NaN).

Core transformations
--------------------
1) Positional mapping
   - Pad short rows, pick the configured positions, drop the rest.

2) Cell normalization
   - Every cell becomes a stripped string; NaN / None -> "".
   - Excel number cells lose their float tail (404.0 -> "404").

3) Derived fields
   - id = block_number + flat_number + is_owner (raw concatenation, the
     same key the dashboard always used; not guaranteed unique).

4) Blank rows
   - Rows where every mapped cell is empty are dropped (Excel exports keep
     formatted-but-empty rows). The count is reported with warnings.warn.

Owners with an empty block or flat are kept here on purpose: the engines
and validate_owner_records() decide what to do with them.

Public API
----------
- clean_owner_rows(rows, skip_header=True) -> pd.DataFrame
- cell_to_text(value) -> str
- parse_master_data(rows, skip_header=True) -> dict
"""


from __future__ import annotations

import math
import warnings
from datetime import date, datetime
from typing import Any, Sequence

import pandas as pd

from ..config import OWNER_CORE_COLUMNS, OWNER_SHEET_COLUMNS
from ..core.normalizers import sort_identifiers


def cell_to_text(value: Any) -> str:

    """

    Turn one spreadsheet cell into a stripped string.

    Example:
        None          -> ''
        float('nan')  -> ''
        404.0         -> '404'
        ' B '         -> 'B'
        datetime(2024, 4, 14)  -> '2024-04-14'

    """

    # pd.NaT is itself a datetime subclass, check it first
    if value is None or value is pd.NaT:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return str(value)
    # pd.Timestamp is a datetime subclass
    if isinstance(value, datetime):
        if (value.hour, value.minute, value.second, value.microsecond) == (0, 0, 0, 0):
            return value.strftime("%Y-%m-%d")
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def rows_to_positional_frame(
        rows: Sequence[Sequence[Any]],
        column_positions: dict[int, str],
) -> pd.DataFrame:

    """

    Map positional rows to a DataFrame with canonical column names.

    Short rows are padded with "" (the Sheets API omits trailing empty
    cells); extra cells are ignored.

    """

    width = max(column_positions) + 1
    records = []
    for row in rows:
        cells = list(row) if row is not None else []
        # pad on the right so every configured position exists
        cells += [""] * (width - len(cells))
        records.append({name: cell_to_text(cells[pos]) for pos, name in column_positions.items()})

    return pd.DataFrame(records, columns=list(column_positions.values()))



# --- Main cleaning function ------------------------------------------------------------


def clean_owner_rows(
        rows: Sequence[Sequence[Any]],
        skip_header: bool = True,   # first row of the MemberData range is the header
) -> pd.DataFrame:

    """

    Clean MemberData rows into the canonical owner DataFrame.

    Args:
        rows:
            Raw rows, one list per spreadsheet row.
        skip_header:
            If True, the first row is treated as the header and discarded.

    Returns:
        DataFrame with columns config.OWNER_CORE_COLUMNS, all values str.

    """

    data_rows = list(rows)[1:] if skip_header else list(rows)

    df = rows_to_positional_frame(data_rows, OWNER_SHEET_COLUMNS)

    # id = block + flat + owner flag, as plain concatenation
    df["id"] = df["block_number"] + df["flat_number"] + df["is_owner"]

    # Drop rows with nothing in them
    mapped_cols = list(OWNER_SHEET_COLUMNS.values())
    blank_mask = (df[mapped_cols] == "").all(axis=1)
    blank_count = int(blank_mask.sum())
    if blank_count > 0:
        warnings.warn(
            f"Owner cleaning dropped {blank_count} blank rows.",
            stacklevel=2,
        )
        df = df.loc[~blank_mask]

    # .reset_index(drop=True) -> 0..n-1 index so record positions match warnings
    return df[OWNER_CORE_COLUMNS].reset_index(drop=True)


def parse_master_data(rows: Sequence[Sequence[Any]], skip_header: bool = True) -> dict[str, Any]:

    """

    Block / flat lookup from MasterData rows (A = block, B = flat, C = date).

    Returns:
        {"block_options": [...], "flats_by_block": {block: [...]},
         "last_updated": str | None}
        last_updated is the last non-empty value in column C.

    """

    data_rows = [list(r) if r is not None else [] for r in (list(rows)[1:] if skip_header else rows)]

    last_updated = None
    for row in reversed(data_rows):
        stamp = cell_to_text(row[2]) if len(row) > 2 else ""
        if stamp:
            last_updated = stamp
            break

    flats_by_block: dict[str, set[str]] = {}
    for row in data_rows:
        block = cell_to_text(row[0]) if row else ""
        if not block:
            continue
        flats = flats_by_block.setdefault(block, set())
        flat = cell_to_text(row[1]) if len(row) > 1 else ""
        if flat:
            flats.add(flat)

    return {
        "block_options": sort_identifiers(flats_by_block),
        "flats_by_block": {b: sort_identifiers(f) for b, f in flats_by_block.items()},
        "last_updated": last_updated,
    }
