# Docstring for property_matrix/outputs/export_utils module
"""
export_utils.py

Utilities for exporting matrices (and any pandas DataFrame) to Excel / CSV.

Matrix layout
-------------
Both matrices export as a block x flat table:

    Block/Flat | Flat 101 | Flat 102 | ... | Block Total
    Block A    |   12000  |        0 | ... |      12000
    ...
    Flat Total |   24000  |     6000 | ... |      30000

(the sticker table has no totals; empty cells read "Not Assigned").
Excel workbooks get extra sheets for the export summary, the data-quality
warnings and, for stickers, the unassigned / multi-sticker flat lists.

Design goals
------------
- Low friction: one call per matrix, timestamped filenames by default.
- Safe output: parent directories are created before writing.
- Consistent engine: always openpyxl for .xlsx output.

Public API
----------
- payment_matrix_to_frame(matrix) -> pd.DataFrame
- sticker_matrix_to_frame(matrix) -> pd.DataFrame
- matrix_summary_frame(matrix, generated_at=None) -> pd.DataFrame
- write_multi_sheet_excel(sheets, output_path, *, index=False) -> Path
- write_matrix_excel(matrix, output_path=None, *, out_dir=None) -> Path
- write_matrix_csv(matrix, output_path=None, *, out_dir=None, include_metadata=True) -> Path
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pandas as pd

from ..config import get_report_dir
from ..core.models import AmcMatrixData, StickerMatrixData
from ..core.normalizers import fiscal_year_label


EXCEL_SHEETNAME_LIMIT = 31

ROW_LABEL = "Block/Flat"
NOT_ASSIGNED = "Not Assigned"


def _ensure_parent_dir(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def _timestamped_filename(prefix: str, suffix: str = ".xlsx") -> str:
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return f"{prefix}_{stamp}{suffix}"


def _truncate_sheet_name(name: str) -> str:
    return name[:EXCEL_SHEETNAME_LIMIT] if len(name) > EXCEL_SHEETNAME_LIMIT else name


def _dedupe_sheet_names(names: list[str]) -> list[str]:
    """Ensure sheet names are unique after truncation by appending numeric suffixes."""
    seen: dict[str, int] = {}
    deduped: list[str] = []
    for raw_name in names:
        base = _truncate_sheet_name(raw_name)
        if base not in seen:
            seen[base] = 0
            deduped.append(base)
            continue
        seen[base] += 1
        suffix = f"_{seen[base]}"
        trimmed_base = base[: EXCEL_SHEETNAME_LIMIT - len(suffix)]
        deduped.append(f"{trimmed_base}{suffix}")
    return deduped


def _matrix_kind(matrix: AmcMatrixData | StickerMatrixData) -> str:
    if isinstance(matrix, AmcMatrixData):
        return "amc"
    if isinstance(matrix, StickerMatrixData):
        return "stickers"
    raise ValueError(f"Unsupported matrix type for export: {type(matrix).__name__}")


def _default_path(matrix, output_path, out_dir, suffix: str) -> Path:
    if output_path is not None:
        return Path(output_path)
    kind = _matrix_kind(matrix)
    directory = Path(out_dir) if out_dir is not None else get_report_dir(kind)
    return directory / _timestamped_filename(f"{kind}_matrix", suffix)



# --- Matrix -> DataFrame ---------------------------------------------------------------


def payment_matrix_to_frame(matrix: AmcMatrixData) -> pd.DataFrame:
    """
    Block x flat payment table with block totals and a flat-totals row.

    Empty cells are 0 so the sheet stays numeric.
    """
    columns = [ROW_LABEL, *[f"Flat {flat}" for flat in matrix.flats], "Block Total"]

    rows = []
    for block, cells in zip(matrix.blocks, matrix.cells):
        values = [cell.value if isinstance(cell.value, (int, float)) else 0 for cell in cells]
        rows.append([f"Block {block}", *values, matrix.total_by_block.get(block, 0)])

    rows.append([
        "Flat Total",
        *[matrix.total_by_flat.get(flat, 0) for flat in matrix.flats],
        matrix.grand_total,
    ])

    return pd.DataFrame(rows, columns=columns)


def sticker_matrix_to_frame(matrix: StickerMatrixData) -> pd.DataFrame:
    """Block x flat sticker table; empty cells read 'Not Assigned'."""
    columns = [ROW_LABEL, *[f"Flat {flat}" for flat in matrix.flats]]

    rows = []
    for block, cells in zip(matrix.blocks, matrix.cells):
        values = [str(cell.value) if cell.value else NOT_ASSIGNED for cell in cells]
        rows.append([f"Block {block}", *values])

    return pd.DataFrame(rows, columns=columns)


def matrix_summary_frame(
    matrix: AmcMatrixData | StickerMatrixData,
    generated_at: datetime | None = None,
) -> pd.DataFrame:
    """Two-column (field, value) summary printed above / beside the matrix."""
    stamp = (generated_at or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")

    if _matrix_kind(matrix) == "amc":
        rows = [
            ("Export", "AMC Payment Matrix"),
            ("Generated", stamp),
            ("Year", fiscal_year_label(int(matrix.selected_year))),
            ("Total Blocks", len(matrix.blocks)),
            ("Total Flats", len(matrix.flats)),
            ("Grand Total", matrix.grand_total),
        ]
    else:
        total_cells = len(matrix.blocks) * len(matrix.flats)
        assigned = total_cells - len(matrix.unassigned_flats)
        rate = round(assigned / total_cells * 100) if total_cells else 0
        rows = [
            ("Export", "Car Sticker Assignment Matrix"),
            ("Generated", stamp),
            ("Total Blocks", len(matrix.blocks)),
            ("Total Flats", len(matrix.flats)),
            ("Assigned Flats", assigned),
            ("Unassigned Flats", len(matrix.unassigned_flats)),
            ("Assignment Rate", f"{rate}%"),
        ]

    return pd.DataFrame(rows, columns=["field", "value"])


def _sticker_flat_lists(matrix: StickerMatrixData) -> dict[str, pd.DataFrame]:
    cell_by_key = {cell.key: cell for row in matrix.cells for cell in row}

    unassigned = pd.DataFrame({"flat": matrix.unassigned_flats})
    multiple = pd.DataFrame(
        [
            {
                "flat": key,
                "sticker_count": cell_by_key[key].metadata["sticker_count"],
                "stickers": cell_by_key[key].value,
            }
            for key in matrix.multiple_stickers
        ],
        columns=["flat", "sticker_count", "stickers"],
    )
    return {"Unassigned Flats": unassigned, "Multiple Stickers": multiple}



# --- Writers ---------------------------------------------------------------------------


def write_multi_sheet_excel(
    sheets: dict[str, pd.DataFrame],
    output_path: Path | str,
    *,
    index: bool = False,
) -> Path:
    """
    Write multiple DataFrames to a single Excel workbook and return the path.

    Each dict key becomes a sheet name (truncated to Excel's 31-character limit).
    """
    path = Path(output_path)
    _ensure_parent_dir(path)
    sheet_names = _dedupe_sheet_names(list(sheets.keys()))
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for name, sheet_name in zip(sheets.keys(), sheet_names):
            sheets[name].to_excel(writer, sheet_name=sheet_name, index=index)
    return path


def write_matrix_excel(
    matrix: AmcMatrixData | StickerMatrixData,
    output_path: Path | str | None = None,
    *,
    out_dir: Path | str | None = None,
) -> Path:
    """
    Write a matrix workbook: Matrix, Summary, Warnings (+ sticker flat lists).

    Without output_path the file goes to reports/outputs/<amc|stickers>/.
    """
    path = _default_path(matrix, output_path, out_dir, ".xlsx")

    if _matrix_kind(matrix) == "amc":
        sheets = {"Matrix": payment_matrix_to_frame(matrix)}
    else:
        sheets = {"Matrix": sticker_matrix_to_frame(matrix), **_sticker_flat_lists(matrix)}

    sheets["Summary"] = matrix_summary_frame(matrix)
    sheets["Warnings"] = pd.DataFrame({"warning": list(matrix.warnings)})

    return write_multi_sheet_excel(sheets, path)


def write_matrix_csv(
    matrix: AmcMatrixData | StickerMatrixData,
    output_path: Path | str | None = None,
    *,
    out_dir: Path | str | None = None,
    include_metadata: bool = True,
) -> Path:
    """
    Write a matrix as CSV, optionally preceded by the summary block.

    Layout: summary rows, one blank line, then the matrix table.
    """
    path = _default_path(matrix, output_path, out_dir, ".csv")
    _ensure_parent_dir(path)

    frame = (
        payment_matrix_to_frame(matrix)
        if _matrix_kind(matrix) == "amc"
        else sticker_matrix_to_frame(matrix)
    )

    # newline="" -> let pandas control line endings
    with path.open("w", newline="", encoding="utf-8") as fh:
        if include_metadata:
            matrix_summary_frame(matrix).to_csv(fh, header=False, index=False)
            fh.write("\n")
        frame.to_csv(fh, index=False)

    return path
