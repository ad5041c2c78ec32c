from datetime import date, datetime
import math

import pandas as pd
import pytest

from property_matrix.cleaning.clean_owners import (
    cell_to_text,
    clean_owner_rows,
    parse_master_data,
)
from property_matrix.config import OWNER_CORE_COLUMNS


HEADER = ["Block", "Flat", "Owner/Tenant", "Name", "Mobile 1", "Mobile 2", "Email",
          "Cars", "Bikes", "Notes", "Parking", "Sticker Nos", "Block-Flat"]


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, ""),
        (math.nan, ""),
        (pd.NaT, ""),
        (404.0, "404"),
        (12.5, "12.5"),
        (7, "7"),
        (" B ", "B"),
        (datetime(2024, 4, 14), "2024-04-14"),
        (datetime(2024, 4, 14, 9, 30), "2024-04-14T09:30:00"),
        (pd.Timestamp("2024-04-14"), "2024-04-14"),
        (date(2024, 4, 14), "2024-04-14"),
    ],
)
def test_cell_to_text(value, expected) -> None:
    assert cell_to_text(value) == expected


def test_clean_owner_rows_maps_positions_and_builds_id() -> None:
    rows = [
        HEADER,
        ["A", 101.0, "Owner", " Asha Rao ", 9800012345, None, "a@x.in", 1, 2, "", "", "S1, S2", "A-101"],
        ["A", "101", "Tenant", "Vikram", "98", "", "", "", "", "", "", "S7"],   # short row
    ]

    df = clean_owner_rows(rows)

    assert list(df.columns) == OWNER_CORE_COLUMNS
    assert df["id"].tolist() == ["A101Owner", "A101Tenant"]
    first = df.iloc[0]
    assert first["member_name"] == "Asha Rao"
    assert first["mobile_1"] == "9800012345"
    assert first["mobile_2"] == ""
    assert first["cars"] == "1"
    assert first["sticker_nos"] == "S1, S2"
    assert df.iloc[1]["block_flat_number"] == ""


def test_clean_owner_rows_drops_blank_rows_with_warning() -> None:
    rows = [
        HEADER,
        ["B", "202", "Owner", "Meera"],
        ["", "", "", "", "", ""],
        [],
        ["", "303", "Owner", "No Block"],
    ]

    with pytest.warns(UserWarning, match="dropped 2 blank rows"):
        df = clean_owner_rows(rows)

    # empty block is kept; the validators decide
    assert df["flat_number"].tolist() == ["202", "303"]
    assert df.index.tolist() == [0, 1]


def test_clean_owner_rows_without_header() -> None:
    df = clean_owner_rows([["C", "1", "Owner", "Lata"]], skip_header=False)
    assert df["id"].tolist() == ["C1Owner"]


def test_clean_owner_rows_empty_input() -> None:
    df = clean_owner_rows([HEADER])
    assert df.empty
    assert list(df.columns) == OWNER_CORE_COLUMNS


def test_parse_master_data() -> None:
    rows = [
        ["Block", "Flat", "Updated"],
        ["B", 102.0, ""],
        ["B", "101", "2025-03-01"],
        ["10", "1001", None],
        ["2", "201"],
        ["", "999", ""],
        ["B", "101", ""],
    ]

    master = parse_master_data(rows)

    assert master["block_options"] == ["B", "2", "10"]
    assert master["flats_by_block"]["B"] == ["101", "102"]
    assert master["flats_by_block"]["2"] == ["201"]
    assert master["last_updated"] == "2025-03-01"


def test_parse_master_data_without_dates() -> None:
    master = parse_master_data([["Block", "Flat"], ["A", "1"]])

    assert master["block_options"] == ["A"]
    assert master["last_updated"] is None
