# Docstring for property_matrix/load_data module
"""
load_data.py

Input loader utilities for local exports of the society spreadsheet.

The live data sits in Google Sheets (see sources/sheets_client.py). For
offline work, notebooks and tests the same workbook can be exported to
.xlsx (all tabs) or a single tab to .csv. These loaders read such files into
the exact shape the Sheets API returns: a list of rows, each a list of cell
values, header row included. Cleaning is left to property_matrix.cleaning.

Design goals
------------
- Separation of concerns: file I/O here, normalization in cleaning/.
- Same shape as the API: header=None so no row is swallowed as a header and
  positional column mapping works unchanged.
- Predictable failures: missing files raise FileNotFoundError, unknown tabs
  raise ValueError.

Public API
----------
- load_sheet_rows(path, sheet_name=0) -> list[list]
- load_workbook_rows(path=None, use_sample_if_none=True) -> dict[str, list[list]]
- list_sheet_names(path) -> list[str]
"""


from pathlib import Path
from typing import Optional, Union

import pandas as pd

from .config import SAMPLE_DIR


SAMPLE_WORKBOOK = SAMPLE_DIR / "society_sample.xlsx"

_CSV_SUFFIXES = {".csv", ".txt"}


def _resolve_path(path: Optional[Union[str, Path]], use_sample_if_none: bool) -> Path:

    """

    Resolve the input path, falling back to the bundled sample workbook.

    Raises:
        ValueError: no path and use_sample_if_none=False.
        FileNotFoundError: the file does not exist.

    """

    if path is None:
        if not use_sample_if_none:
            raise ValueError("No path provided and use_sample_if_none=False.")
        path = SAMPLE_WORKBOOK

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Spreadsheet export not found at: {path}")
    return path


def _frame_to_rows(df: pd.DataFrame) -> list[list]:
    # .values.tolist() -> plain Python lists; empty cells stay NaN
    # and are normalized by cleaning.cell_to_text()
    return df.values.tolist()


def list_sheet_names(path: Union[str, Path]) -> list[str]:
    """Tab names of an .xlsx export, in workbook order."""
    path = _resolve_path(path, use_sample_if_none=False)
    if path.suffix.lower() in _CSV_SUFFIXES:
        return [path.stem]
    with pd.ExcelFile(path, engine="openpyxl") as xls:
        return [str(name) for name in xls.sheet_names]


def load_sheet_rows(
        path: Union[str, Path],
        sheet_name: Union[str, int] = 0,    # tab name or index, ignored for CSV
) -> list[list]:

    """

    Load one tab (or a CSV file) as raw rows, header row included.

    Args:
        path:
            .xlsx or .csv file.
        sheet_name:
            Tab name or index for Excel files.

    Returns:
        list of rows, each a list of cell values.

    """

    path = _resolve_path(path, use_sample_if_none=False)

    if path.suffix.lower() in _CSV_SUFFIXES:
        # dtype=str keeps '007' and flat numbers as text
        df = pd.read_csv(path, header=None, dtype=str, keep_default_na=False)
        return _frame_to_rows(df)

    if isinstance(sheet_name, str) and sheet_name not in list_sheet_names(path):
        raise ValueError(f"Workbook {path.name} has no sheet named {sheet_name!r}")

    df = pd.read_excel(path, sheet_name=sheet_name, header=None, dtype=object, engine="openpyxl")
    return _frame_to_rows(df)


def load_workbook_rows(
        path: Optional[Union[str, Path]] = None,
        use_sample_if_none: bool = True,
) -> dict[str, list[list]]:

    """

    Load every tab of an .xlsx export.

    Args:
        path:
            Workbook path. If None and use_sample_if_none is True, the
            sample workbook in SAMPLE_DIR is used.

    Returns:
        {tab name: raw rows}, tabs in workbook order.

    """

    path = _resolve_path(path, use_sample_if_none)

    # sheet_name=None -> dict of every sheet
    frames = pd.read_excel(path, sheet_name=None, header=None, dtype=object, engine="openpyxl")
    return {str(name): _frame_to_rows(df) for name, df in frames.items()}
