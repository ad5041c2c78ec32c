from __future__ import annotations

import sys
from pathlib import Path

import pytest

# tests/ is one level under the repo root
PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))


def make_owner(block: str, flat: str, stickers: str = "", **extra) -> dict:
    owner = {
        "id": f"{block}{flat}Owner",
        "block_number": block,
        "flat_number": flat,
        "member_name": f"Member {block}-{flat}",
        "is_owner": "Owner",
        "sticker_nos": stickers,
    }
    owner.update(extra)
    return owner


def make_receipt(block: str, flat: str, amount, payment_date, receipt_no: str = "R-1", **extra) -> dict:
    receipt = {
        "id": f"{receipt_no}_{block}_{flat}",
        "receipt_no": receipt_no,
        "block_number": block,
        "flat_number": flat,
        "payment_amount": amount,
        "payment_date": payment_date,
        "remarks": "",
    }
    receipt.update(extra)
    return receipt


@pytest.fixture
def roster() -> list[dict]:
    return [
        make_owner("A", "101", "S1"),
        make_owner("A", "102", "S2, S3"),
        make_owner("B", "101"),
        make_owner("B", "102", "S4;S5|S6"),
        # tenant row for A-101, shares one sticker with the owner
        make_owner("A", "101", "S1, S7", is_owner="Tenant"),
    ]


@pytest.fixture
def receipts_fy2024() -> list[dict]:
    return [
        make_receipt("A", "101", 6000, "2024-04-14", "AMC-1"),
        make_receipt("A", "101", 6000, "10/15/2024", "AMC-2"),
        make_receipt("B", "102", 12000, "2025-03-31T09:00:00Z", "AMC-3"),
        make_receipt("A", "102", 12000, "2024-03-31", "AMC-0"),   # FY 2023
    ]
