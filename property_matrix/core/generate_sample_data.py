"""
generate_sample_data.py

Seeded generator for a synthetic society workbook.

Writes one .xlsx into data/sample/ laid out exactly like the live Google
spreadsheet: a MemberData roster, a MasterData lookup, two AMC receipt tabs
(one per fiscal year) and a non-AMC Donations tab. Column positions match
config.OWNER_SHEET_COLUMNS / config.RECEIPT_SHEET_COLUMNS so the cleaners
map them unchanged. The output is deterministic given a seed and includes
edge-case rows (mixed date formats, an impossible date, a receipt for a flat
that is not on the roster, multi-sticker flats, a roster row with no block)
to exercise normalization and the matrix warnings.
"""

from __future__ import annotations

import argparse
import random
from datetime import date, timedelta
from pathlib import Path

import pandas as pd
from faker import Faker

from ..config import SAMPLE_DIR


DEFAULT_SEED = 20250401

SAMPLE_BLOCKS = ["A", "B", "C"]
SAMPLE_FLATS = ["101", "102", "103", "104", "201", "202", "203", "204"]
SAMPLE_FISCAL_YEARS = [2023, 2024]
AMC_AMOUNT = 12000

OWNER_HEADER = [
    "Block", "Flat", "Owner/Tenant", "Member Name", "Mobile 1", "Mobile 2",
    "Email", "Cars", "Bikes", "Parking Slot", "Intercom", "Sticker Nos", "Block-Flat",
]

MASTER_HEADER = ["Block", "Flat", "Last Updated", "Area (sq ft)", "Floor", "Type"]

RECEIPT_HEADER = [
    "Receipt No", "Receipt Date", "Block No", "Flat No", "Name", "Mode",
    "Payment Amount", "Payment No", "Payment Date", "Payment Bank", "Remarks",
    "PDF Status", "PDF URL", "PDF Name",
]

PAYMENT_MODES = ["UPI", "NEFT", "Cheque", "Cash"]


def _format_date(rng: random.Random, day: date) -> str:
    """Render a date the way different volunteers typed it into the sheet."""
    style = rng.choice(["iso", "us", "in", "iso_z"])
    if style == "us":
        return f"{day.month}/{day.day}/{day.year}"
    if style == "in" and day.day > 12:
        # only unambiguous day-first dates; ambiguous ones are read month-first
        return f"{day.day}/{day.month}/{day.year}"
    if style == "iso_z":
        return f"{day.isoformat()}T10:30:00Z"
    return day.isoformat()


def _sticker_codes(rng: random.Random, counter: list[int]) -> str:
    count = rng.choices([0, 1, 2], weights=[3, 5, 2])[0]
    codes = []
    for _ in range(count):
        counter[0] += 1
        codes.append(f"S{counter[0]:03d}")
    separator = rng.choice([", ", ";", " | "])
    return separator.join(codes)


def _build_owner_rows(rng: random.Random, faker: Faker) -> list[list[object]]:
    sticker_counter = [0]
    rows: list[list[object]] = [OWNER_HEADER]

    for block in SAMPLE_BLOCKS:
        for flat in SAMPLE_FLATS:
            occupants = ["Owner"] + (["Tenant"] if rng.random() < 0.3 else [])
            for role in occupants:
                rows.append([
                    block,
                    flat,
                    role,
                    faker.name(),
                    faker.msisdn()[:10],
                    "" if rng.random() < 0.6 else faker.msisdn()[:10],
                    faker.email(),
                    rng.randint(0, 2),
                    rng.randint(0, 2),
                    f"P-{block}{flat}",
                    f"{block}{flat}",
                    _sticker_codes(rng, sticker_counter),
                    f"{block}-{flat}",
                ])

    # Edge case: roster row with no block (excluded from the matrices)
    rows.append(["", "999", "Owner", faker.name(), faker.msisdn()[:10], "", "", 0, 0, "", "", "S900", ""])
    return rows


def _build_master_rows(faker: Faker) -> list[list[object]]:
    rows: list[list[object]] = [MASTER_HEADER]
    for block in SAMPLE_BLOCKS:
        for flat in SAMPLE_FLATS:
            rows.append([block, flat, "", 1150 if flat.endswith(("1", "4")) else 980, flat[0], "2BHK"])
    rows[-1][2] = faker.date_between_dates(date(2025, 3, 1), date(2025, 3, 31)).isoformat()
    return rows


def _receipt_row(
    rng: random.Random,
    faker: Faker,
    receipt_no: str,
    block: str,
    flat: str,
    amount: object,
    payment_date: str,
    remarks: str,
) -> list[object]:
    return [
        receipt_no,
        payment_date,
        block,
        flat,
        faker.name(),
        rng.choice(PAYMENT_MODES),
        amount,
        str(rng.randint(100000, 999999)),
        payment_date,
        rng.choice(["HDFC Bank", "SBI", "ICICI Bank", "Axis Bank"]),
        remarks,
        "Generated",
        "",
        f"{receipt_no}.pdf",
    ]


def _build_amc_rows(rng: random.Random, faker: Faker, fiscal_year: int) -> list[list[object]]:
    rows: list[list[object]] = [RECEIPT_HEADER]
    fy_start = date(fiscal_year, 4, 1)
    serial = 0

    for block in SAMPLE_BLOCKS:
        for flat in SAMPLE_FLATS:
            if rng.random() > 0.8:
                continue    # unpaid this year
            # one full payment, or two half instalments
            instalments = [AMC_AMOUNT] if rng.random() < 0.75 else [AMC_AMOUNT // 2] * 2
            for amount in instalments:
                serial += 1
                paid_on = fy_start + timedelta(days=rng.randint(0, 364))
                rows.append(_receipt_row(
                    rng, faker, f"AMC/{fiscal_year}/{serial:03d}", block, flat,
                    amount, _format_date(rng, paid_on), "AMC",
                ))

    # Edge cases
    rows.append(_receipt_row(
        rng, faker, f"AMC/{fiscal_year}/900", "Z", "999", AMC_AMOUNT,
        date(fiscal_year, 6, 15).isoformat(), "AMC - flat not on roster",
    ))
    rows.append(_receipt_row(
        rng, faker, f"AMC/{fiscal_year}/901", "A", "101", f"₹{AMC_AMOUNT // 4:,}",
        f"31/02/{fiscal_year + 1}", "AMC - date typo",
    ))
    return rows


def _build_donation_rows(rng: random.Random, faker: Faker) -> list[list[object]]:
    rows: list[list[object]] = [RECEIPT_HEADER]
    for serial in range(1, 11):
        paid_on = date(2024, 4, 1) + timedelta(days=rng.randint(0, 364))
        rows.append(_receipt_row(
            rng, faker, f"DON/{serial:03d}", rng.choice(SAMPLE_BLOCKS), rng.choice(SAMPLE_FLATS),
            rng.choice([501, 1001, 2100]), paid_on.isoformat(), "Festival donation",
        ))
    return rows


def build_sample_workbook(seed: int = DEFAULT_SEED) -> dict[str, list[list[object]]]:
    """Return {tab name: rows (header first)} for the sample workbook."""
    rng = random.Random(seed)
    faker = Faker("en_IN")
    faker.seed_instance(seed)

    tabs = {
        "MemberData": _build_owner_rows(rng, faker),
        "MasterData": _build_master_rows(faker),
    }
    for fiscal_year in SAMPLE_FISCAL_YEARS:
        tabs[f"AMC {fiscal_year}-{str(fiscal_year + 1)[-2:]}"] = _build_amc_rows(rng, faker, fiscal_year)
    tabs["Donations"] = _build_donation_rows(rng, faker)
    return tabs


def generate_sample_data(output_dir: Path = SAMPLE_DIR, seed: int = DEFAULT_SEED) -> Path:
    """Write the sample workbook and return its path."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / "society_sample.xlsx"

    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for tab, rows in build_sample_workbook(seed).items():
            header, *data = rows
            pd.DataFrame(data, columns=header).to_excel(writer, sheet_name=tab, index=False)

    return path


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Generate a seeded synthetic society workbook (roster + receipts)."
    )
    parser.add_argument("--seed", type=int, default=DEFAULT_SEED, help="Deterministic RNG seed")
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=SAMPLE_DIR,
        help="Destination directory for the sample workbook",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    path = generate_sample_data(output_dir=args.output_dir, seed=args.seed)
    print(f"Wrote sample workbook to: {path}")


if __name__ == "__main__":
    main()
