from datetime import datetime

import pandas as pd
import pytest

from conftest import make_owner, make_receipt
from property_matrix.engines.payment_matrix import build_payment_matrix
from property_matrix.engines.sticker_matrix import build_sticker_matrix
from property_matrix.outputs.export_utils import (
    _dedupe_sheet_names,
    matrix_summary_frame,
    payment_matrix_to_frame,
    sticker_matrix_to_frame,
    write_matrix_csv,
    write_matrix_excel,
    write_multi_sheet_excel,
)


@pytest.fixture
def payment_matrix(roster, receipts_fy2024):
    return build_payment_matrix(roster, receipts_fy2024, 2024)


@pytest.fixture
def sticker_matrix(roster):
    return build_sticker_matrix(roster)


def test_payment_matrix_to_frame_layout(payment_matrix) -> None:
    df = payment_matrix_to_frame(payment_matrix)

    assert list(df.columns) == ["Block/Flat", "Flat 101", "Flat 102", "Block Total"]
    assert df["Block/Flat"].tolist() == ["Block A", "Block B", "Flat Total"]
    assert df.iloc[0].tolist() == ["Block A", 12000, 0, 12000]
    assert df.iloc[1].tolist() == ["Block B", 0, 12000, 12000]
    assert df.iloc[2].tolist() == ["Flat Total", 12000, 12000, 24000]


def test_sticker_matrix_to_frame_layout(sticker_matrix) -> None:
    df = sticker_matrix_to_frame(sticker_matrix)

    assert list(df.columns) == ["Block/Flat", "Flat 101", "Flat 102"]
    assert df.iloc[0].tolist() == ["Block A", "S1, S7", "S2, S3"]
    assert df.iloc[1].tolist() == ["Block B", "Not Assigned", "S4, S5, S6"]


def test_matrix_summary_frame(payment_matrix, sticker_matrix) -> None:
    stamp = datetime(2025, 4, 2, 9, 15, 0)

    amc = dict(matrix_summary_frame(payment_matrix, stamp).itertuples(index=False))
    assert amc["Export"] == "AMC Payment Matrix"
    assert amc["Generated"] == "2025-04-02 09:15:00"
    assert amc["Year"] == "FY 2024-25"
    assert amc["Grand Total"] == 24000

    stickers = dict(matrix_summary_frame(sticker_matrix, stamp).itertuples(index=False))
    assert stickers["Assigned Flats"] == 3
    assert stickers["Unassigned Flats"] == 1
    assert stickers["Assignment Rate"] == "75%"


def test_summary_rejects_other_objects() -> None:
    with pytest.raises(ValueError, match="Unsupported matrix type"):
        matrix_summary_frame(pd.DataFrame())


def test_dedupe_sheet_names() -> None:
    long_name = "Unassigned Flats For The Whole Society"
    names = _dedupe_sheet_names([long_name, long_name, "Matrix"])

    assert names[0] == long_name[:31]
    assert names[1].endswith("_1")
    assert len(names[1]) == 31
    assert names[2] == "Matrix"


def test_write_multi_sheet_excel(tmp_path) -> None:
    path = write_multi_sheet_excel(
        {"one": pd.DataFrame({"a": [1]}), "two": pd.DataFrame({"b": [2]})},
        tmp_path / "nested" / "book.xlsx",
    )

    assert path.exists()
    assert pd.ExcelFile(path, engine="openpyxl").sheet_names == ["one", "two"]


def test_write_matrix_excel_payment(payment_matrix, tmp_path) -> None:
    path = write_matrix_excel(payment_matrix, out_dir=tmp_path)

    assert path.parent == tmp_path
    assert path.name.startswith("amc_matrix_")
    assert path.suffix == ".xlsx"
    sheets = pd.read_excel(path, sheet_name=None, engine="openpyxl")
    assert list(sheets) == ["Matrix", "Summary", "Warnings"]
    assert sheets["Matrix"]["Block Total"].tolist() == [12000, 12000, 24000]


def test_write_matrix_excel_sticker_lists(sticker_matrix, tmp_path) -> None:
    path = write_matrix_excel(sticker_matrix, tmp_path / "stickers.xlsx")

    sheets = pd.read_excel(path, sheet_name=None, engine="openpyxl")
    assert list(sheets) == ["Matrix", "Unassigned Flats", "Multiple Stickers", "Summary", "Warnings"]
    assert sheets["Unassigned Flats"]["flat"].tolist() == ["B-101"]
    assert sheets["Multiple Stickers"]["sticker_count"].tolist() == [2, 2, 3]


def test_write_matrix_excel_warnings_sheet(tmp_path) -> None:
    matrix = build_payment_matrix(
        [make_owner("A", "1")],
        [make_receipt("A", "1", 100, "31/02/2024")],
        2024,
    )

    path = write_matrix_excel(matrix, tmp_path / "amc.xlsx")

    warnings_df = pd.read_excel(path, sheet_name="Warnings", engine="openpyxl")
    assert len(warnings_df) == 1
    assert "31/02/2024" in warnings_df.loc[0, "warning"]


def test_write_matrix_csv_with_metadata(payment_matrix, tmp_path) -> None:
    path = write_matrix_csv(payment_matrix, tmp_path / "amc.csv")

    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "Export,AMC Payment Matrix"
    assert "" in lines
    table_start = lines.index("") + 1
    assert lines[table_start] == "Block/Flat,Flat 101,Flat 102,Block Total"
    assert lines[-1] == "Flat Total,12000,12000,24000"


def test_write_matrix_csv_table_only(sticker_matrix, tmp_path) -> None:
    path = write_matrix_csv(sticker_matrix, out_dir=tmp_path, include_metadata=False)

    assert path.name.startswith("stickers_matrix_")
    df = pd.read_csv(path)
    assert df.columns.tolist() == ["Block/Flat", "Flat 101", "Flat 102"]
    assert df.loc[1, "Flat 101"] == "Not Assigned"
