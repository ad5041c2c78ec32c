import math

import pytest
from pydantic import ValidationError

from conftest import make_owner, make_receipt
from property_matrix.core.models import (
    AmcMatrixData,
    MatrixCell,
    OwnerRecord,
    ReceiptRecord,
    as_record_mapping,
)


def test_owner_record_accepts_snake_and_camel_names() -> None:
    snake = OwnerRecord.model_validate(make_owner("A", "101", "S1", mobile_1="98000"))
    camel = OwnerRecord.model_validate({
        "id": "A101Owner",
        "blockNumber": "A",
        "flatNumber": "101",
        "memberName": "Member A-101",
        "isOwner": "Owner",
        "mobile1": "98000",
        "stickerNos": "S1",
    })

    assert snake == camel
    assert snake.model_dump(by_alias=True)["stickerNos"] == "S1"


def test_owner_record_number_cells_become_text() -> None:
    owner = OwnerRecord.model_validate(
        make_owner(3, 404.0, mobile_1=9800012345, cars=float("nan"))
    )

    assert owner.block_number == "3"
    assert owner.flat_number == "404"
    assert owner.mobile_1 == "9800012345"
    assert owner.cars == ""          # NaN cell -> empty


def test_owner_record_strips_whitespace_and_blanks_none() -> None:
    owner = OwnerRecord.model_validate(make_owner(" B ", " 202 ", None))

    assert owner.block_number == "B"
    assert owner.flat_number == "202"
    assert owner.sticker_nos == ""


def test_owner_record_is_frozen() -> None:
    owner = OwnerRecord.model_validate(make_owner("A", "101"))
    with pytest.raises(ValidationError):
        owner.flat_number = "102"


@pytest.mark.parametrize(
    "raw, expected",
    [("₹1,500", 1500.0), (" 2,000 ", 2000.0), (750, 750.0), ("", 0.0), (None, 0.0), (math.nan, 0.0)],
)
def test_receipt_record_amount_parsing(raw, expected) -> None:
    receipt = ReceiptRecord.model_validate(make_receipt("A", "101", raw, "2024-04-14"))
    assert receipt.payment_amount == expected


def test_receipt_record_rejects_negative_and_text_amounts() -> None:
    with pytest.raises(ValidationError):
        ReceiptRecord.model_validate(make_receipt("A", "101", -1, "2024-04-14"))
    with pytest.raises(ValidationError):
        ReceiptRecord.model_validate(make_receipt("A", "101", "abc", "2024-04-14"))


def test_as_record_mapping() -> None:
    raw = make_owner("A", "101")
    model = OwnerRecord.model_validate(raw)

    assert as_record_mapping(raw) is raw
    assert as_record_mapping(model)["flat_number"] == "101"
    assert as_record_mapping("A-101") is None
    assert as_record_mapping(None) is None


def test_matrix_cell_key_and_grand_total() -> None:
    cell = MatrixCell("B", "404", 1000, {"payment_date": "2024-05-01", "receipt_number": "R-9"})
    assert cell.key == "B-404"

    matrix = AmcMatrixData(
        blocks=["A", "B"],
        flats=["101"],
        cells=[[MatrixCell("A", "101")], [cell]],
        available_years=[2024],
        selected_year=2024,
        total_by_block={"A": 0, "B": 1000},
        total_by_flat={"101": 1000},
    )
    assert matrix.grand_total == 1000
    assert matrix.warnings == []
