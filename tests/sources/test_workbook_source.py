import pytest

from property_matrix.core.generate_sample_data import generate_sample_data
from property_matrix.sources.workbook import WorkbookSource


@pytest.fixture(scope="module")
def sample_path(tmp_path_factory):
    return generate_sample_data(tmp_path_factory.mktemp("sample"), seed=7)


def test_workbook_source_discovers_receipt_tabs(sample_path) -> None:
    source = WorkbookSource(sample_path)

    assert source.receipts_sheets == ("AMC 2023-24", "AMC 2024-25", "Donations")
    assert source.amc_receipts_sheets == ("AMC 2023-24", "AMC 2024-25")


def test_workbook_source_owner_rows_include_header(sample_path) -> None:
    rows = WorkbookSource(sample_path).fetch_owner_rows()

    assert rows[0][0] == "Block"
    assert rows[1][0] == "A"
    assert str(rows[1][1]) == "101"


def test_workbook_source_amc_rows_skip_headers(sample_path) -> None:
    source = WorkbookSource(sample_path)

    rows = source.fetch_amc_receipt_rows()

    assert rows
    assert all(str(r[0]).startswith("AMC/") for r in rows)
    assert "Receipt No" not in [r[0] for r in rows]


def test_workbook_source_keyword_fallback(sample_path) -> None:
    source = WorkbookSource(sample_path, receipts_sheets=["Donations"])

    assert source.amc_receipts_sheets == ()
    assert source.fetch_amc_receipt_rows() == []


def test_workbook_source_master_data(sample_path) -> None:
    master = WorkbookSource(sample_path).fetch_master_data()

    assert master["block_options"] == ["A", "B", "C"]
    assert len(master["flats_by_block"]["A"]) == 8
    assert master["last_updated"].startswith("2025-03-")


def test_workbook_source_unknown_tab(sample_path) -> None:
    source = WorkbookSource(sample_path, owners_sheet="Residents")

    with pytest.raises(ValueError, match="no sheet named 'Residents'"):
        source.fetch_owner_rows()


def test_workbook_source_missing_file(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        WorkbookSource(tmp_path / "missing.xlsx").fetch_owner_rows()
