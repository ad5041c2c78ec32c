import pandas as pd
import pytest

from property_matrix.load_data import (
    list_sheet_names,
    load_sheet_rows,
    load_workbook_rows,
)


def test_load_sheet_rows_csv_keeps_text(tmp_path) -> None:
    path = tmp_path / "MemberData.csv"
    path.write_text("Block,Flat,Owner\nA,007,Owner\nB,,Tenant\n", encoding="utf-8")

    rows = load_sheet_rows(path)

    assert rows == [["Block", "Flat", "Owner"], ["A", "007", "Owner"], ["B", "", "Tenant"]]
    assert list_sheet_names(path) == ["MemberData"]


def test_load_sheet_rows_excel_by_name(tmp_path) -> None:
    path = tmp_path / "book.xlsx"
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame({"Block": ["A"], "Flat": [101]}).to_excel(writer, sheet_name="MemberData", index=False)
        pd.DataFrame({"Receipt No": ["AMC-1"]}).to_excel(writer, sheet_name="AMC 2024-25", index=False)

    assert list_sheet_names(path) == ["MemberData", "AMC 2024-25"]
    assert load_sheet_rows(path, "MemberData") == [["Block", "Flat"], ["A", 101]]

    with pytest.raises(ValueError, match="no sheet named 'Receipts'"):
        load_sheet_rows(path, "Receipts")

    tabs = load_workbook_rows(path)
    assert list(tabs) == ["MemberData", "AMC 2024-25"]
    assert tabs["AMC 2024-25"] == [["Receipt No"], ["AMC-1"]]


def test_load_workbook_rows_path_errors(tmp_path) -> None:
    with pytest.raises(ValueError, match="No path provided"):
        load_workbook_rows(None, use_sample_if_none=False)

    with pytest.raises(FileNotFoundError, match="Spreadsheet export not found"):
        load_workbook_rows(tmp_path / "nope.xlsx")
