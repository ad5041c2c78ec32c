import logging
import math

import pytest

from conftest import make_owner, make_receipt
from property_matrix.core.models import MatrixInputError, OwnerRecord, ReceiptRecord
from property_matrix.engines.payment_matrix import build_payment_matrix


def _cell(matrix, block, flat):
    i = matrix.blocks.index(block)
    j = matrix.flats.index(flat)
    return matrix.cells[i][j]


def test_single_flat_only_counts_selected_year() -> None:
    owners = [make_owner("B", "404", "S1,S2")]
    receipts = [
        make_receipt("B", "404", 1000, "2024-05-01", "R-24"),
        make_receipt("B", "404", 500, "2023-05-01", "R-23"),
    ]

    matrix = build_payment_matrix(owners, receipts, 2024)

    assert matrix.blocks == ["B"]
    assert matrix.flats == ["404"]
    cell = matrix.cells[0][0]
    assert cell.value == 1000
    assert cell.metadata == {"payment_date": "2024-05-01", "receipt_number": "R-24"}
    assert matrix.available_years == [2024, 2023]
    assert matrix.selected_year == 2024
    assert matrix.total_by_block == {"B": 1000}
    assert matrix.total_by_flat == {"404": 1000}
    assert matrix.warnings == []


def test_roster_fixture_sums_instalments_and_keeps_latest_metadata(roster, receipts_fy2024) -> None:
    matrix = build_payment_matrix(roster, receipts_fy2024, 2024)

    a101 = _cell(matrix, "A", "101")
    assert a101.value == 12000
    assert a101.metadata == {"payment_date": "10/15/2024", "receipt_number": "AMC-2"}

    assert _cell(matrix, "B", "102").value == 12000
    # paid in March 2024 -> FY 2023
    assert _cell(matrix, "A", "102").value is None
    assert _cell(matrix, "A", "102").metadata is None
    assert _cell(matrix, "B", "101").value is None

    assert matrix.total_by_block == {"A": 12000, "B": 12000}
    assert matrix.total_by_flat == {"101": 12000, "102": 12000}
    assert matrix.grand_total == 24000


def test_grid_is_dense_and_totals_agree(roster, receipts_fy2024) -> None:
    matrix = build_payment_matrix(roster, receipts_fy2024, 2024)

    assert len(matrix.cells) == len(matrix.blocks)
    assert all(len(row) == len(matrix.flats) for row in matrix.cells)
    cell_sum = sum(c.value for row in matrix.cells for c in row if c.value is not None)
    assert sum(matrix.total_by_block.values()) == cell_sum
    assert sum(matrix.total_by_flat.values()) == cell_sum


def test_build_is_deterministic(roster, receipts_fy2024) -> None:
    first = build_payment_matrix(roster, receipts_fy2024, 2024)
    second = build_payment_matrix(roster, receipts_fy2024, 2024)
    assert first == second


def test_tie_on_latest_date_keeps_first_receipt() -> None:
    owners = [make_owner("A", "1")]
    receipts = [
        make_receipt("A", "1", 100, "2024-06-01", "FIRST"),
        make_receipt("A", "1", 100, "2024-06-01", "SECOND"),
    ]

    cell = build_payment_matrix(owners, receipts, 2024).cells[0][0]

    assert cell.value == 200
    assert cell.metadata["receipt_number"] == "FIRST"


def test_impossible_date_is_reported_not_counted() -> None:
    owners = [make_owner("A", "1")]
    receipts = [
        make_receipt("A", "1", 100, "31/02/2024", "BAD"),
        make_receipt("A", "1", 300, "2024-07-01", "GOOD"),
    ]

    matrix = build_payment_matrix(owners, receipts, 2024)

    assert matrix.cells[0][0].value == 300
    assert any("Receipt 0" in w and "31/02/2024" in w for w in matrix.warnings)


def test_invalid_amount_is_excluded_with_warning() -> None:
    owners = [make_owner("A", "1")]
    receipts = [
        make_receipt("A", "1", "n/a", "2024-07-01", "R-1"),
        make_receipt("A", "1", -50, "2024-07-02", "R-2"),
        make_receipt("A", "1", 250.5, "2024-07-03", "R-3"),
    ]

    matrix = build_payment_matrix(owners, receipts, 2024)

    assert matrix.cells[0][0].value == 250.5
    assert len([w for w in matrix.warnings if "invalid payment_amount" in w]) == 2


@pytest.mark.parametrize("bad_block", [None, "", "   ", ["B"], 7])
def test_receipt_without_usable_block_is_skipped_with_warning(bad_block) -> None:
    owners = [make_owner("B", "404")]
    receipts = [
        make_receipt("B", "404", 1000, "2024-05-01", "R-1"),
        make_receipt(bad_block, "404", 700, "2024-06-01", "R-2"),
    ]

    matrix = build_payment_matrix(owners, receipts, 2024)

    assert matrix.cells[0][0].value == 1000
    assert matrix.cells[0][0].metadata["receipt_number"] == "R-1"
    assert matrix.grand_total == 1000
    skipped = [w for w in matrix.warnings if w.startswith("Receipt 1:")]
    assert len(skipped) == 1
    assert "block_number" in skipped[0]


def test_receipt_without_flat_is_skipped_with_warning() -> None:
    owners = [make_owner("B", "404")]
    receipts = [make_receipt("B", None, 700, "2024-06-01")]

    matrix = build_payment_matrix(owners, receipts, 2024)

    assert matrix.cells[0][0].value is None
    assert any(w.startswith("Receipt 0:") and "missing flat_number" in w for w in matrix.warnings)


def test_zero_total_leaves_cell_empty() -> None:
    owners = [make_owner("A", "1")]
    receipts = [make_receipt("A", "1", 0, "2024-07-01")]

    matrix = build_payment_matrix(owners, receipts, 2024)

    assert matrix.cells[0][0].value is None
    assert matrix.total_by_block == {"A": 0}


def test_orphan_receipts_are_reported_once() -> None:
    owners = [make_owner("A", "1")]
    receipts = [
        make_receipt("Z", "999", 100, "2024-07-01", "R-1"),
        make_receipt("Z", "999", 100, "2024-08-01", "R-2"),
    ]

    matrix = build_payment_matrix(owners, receipts, 2024)

    orphans = [w for w in matrix.warnings if "Z-999" in w]
    assert len(orphans) == 1
    assert "no matching owner" in orphans[0]
    assert matrix.grand_total == 0


def test_empty_roster_gives_empty_grid() -> None:
    matrix = build_payment_matrix([], [make_receipt("A", "1", 100, "2024-07-01")], 2024)

    assert matrix.blocks == []
    assert matrix.flats == []
    assert matrix.cells == []
    assert matrix.total_by_block == {}
    assert matrix.total_by_flat == {}
    assert matrix.available_years == [2024]


def test_accepts_validated_models() -> None:
    owners = [OwnerRecord.model_validate(make_owner("A", "1"))]
    receipts = [ReceiptRecord.model_validate(make_receipt("A", "1", "₹1,000", "2024-07-01"))]

    assert build_payment_matrix(owners, receipts, 2024).cells[0][0].value == 1000


@pytest.mark.parametrize(
    "owners, receipts, year",
    [
        ("owners", [], 2024),
        ([], {"a": 1}, 2024),
        ([], [], "2024"),
        ([], [], True),
        ([], [], math.nan),
        ([], [], None),
    ],
)
def test_contract_violations_raise(owners, receipts, year) -> None:
    with pytest.raises(MatrixInputError):
        build_payment_matrix(owners, receipts, year)


def test_clean_build_logs_no_integrity_findings(roster, receipts_fy2024, caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="property_matrix.engines.integrity_audit"):
        build_payment_matrix(roster, receipts_fy2024, 2024)

    assert "integrity check" not in caplog.text
