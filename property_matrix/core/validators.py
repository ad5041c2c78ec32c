# Docstring for property_matrix/core/validators module
"""
validators.py

Record validation shared by the fetch boundary and the matrix engines.

Two layers use this module:

1) The fetch boundary (services / CLI) turns cleaned sheet rows into
   OwnerRecord / ReceiptRecord models with validate_owner_records() and
   validate_receipt_records(). Rows that fail are dropped and described in a
   list of validation errors.

2) The matrix engines re-check the fields they depend on with
   extract_blocks_and_flats() and extract_available_fiscal_years(). A record
   that slipped past (or never went through) the boundary is skipped with a
   warning string instead of breaking a build.

Warnings are plain strings of the form "<Kind> <index>: <reason>" so they can
be shown to users as-is.

Public API
----------
- location_issues(record) -> list[str]
- extract_blocks_and_flats(owners) -> BlockFlatAxes
- extract_available_fiscal_years(receipts, today=None) -> FiscalYearScan
- validate_owner_records(rows, require_location=False) -> tuple[list[OwnerRecord], list[str]]
- validate_receipt_records(rows) -> tuple[list[ReceiptRecord], list[str]]
"""

from __future__ import annotations

from datetime import date
from typing import Any, Iterable, Mapping

import pandas as pd
from pydantic import ValidationError

from ..config import FISCAL_YEAR_CONFIG, FiscalYearConfig
from .models import (
    BlockFlatAxes,
    FiscalYearScan,
    OwnerRecord,
    ReceiptRecord,
    as_record_mapping,
)
from .normalizers import fiscal_year_from_date, is_valid_date, normalize_date, sort_identifiers


def _location_issue(record: Mapping[str, Any], field_name: str) -> str | None:
    value = record.get(field_name)
    if value is None:
        return f"missing {field_name}"
    if not isinstance(value, str):
        return f"{field_name} is not a string ({type(value).__name__})"
    if not value.strip():
        return f"empty {field_name}"
    return None


def location_issues(record: Mapping[str, Any]) -> list[str]:
    """Reasons block_number / flat_number cannot place record in a grid."""
    return [
        reason
        for reason in (
            _location_issue(record, "block_number"),
            _location_issue(record, "flat_number"),
        )
        if reason
    ]


def extract_blocks_and_flats(owners: Iterable[Any]) -> BlockFlatAxes:
    """
    Derive the sorted, de-duplicated block and flat axes from the roster.

    An owner is excluded (with a warning) when it is missing or when its
    block_number / flat_number is not a non-empty string. Both axes are
    sorted by leading integer value, ties broken by text.

    Example:
        owners with blocks ['10', '2', 'A'] -> blocks ['A', '2', '10']
    """
    blocks: set[str] = set()
    flats: set[str] = set()
    issues: list[str] = []

    for index, owner in enumerate(owners):
        record = as_record_mapping(owner)
        if record is None:
            issues.append(f"Owner {index}: record is missing or not a mapping")
            continue

        reasons = location_issues(record)
        if reasons:
            issues.append(f"Owner {index}: {', '.join(reasons)}")
            continue

        blocks.add(record["block_number"])
        flats.add(record["flat_number"])

    return BlockFlatAxes(
        blocks=sort_identifiers(blocks),
        flats=sort_identifiers(flats),
        warnings=issues,
    )


def extract_available_fiscal_years(
    receipts: Any,
    *,
    today: date | None = None,
    cfg: FiscalYearConfig = FISCAL_YEAR_CONFIG,
) -> FiscalYearScan:
    """
    Collect the fiscal years present across receipts, newest first.

    A receipt is skipped with a warning when it is missing, has no
    payment_date, has a payment_date that normalize_date() cannot read, or
    lands in a fiscal year outside [cfg.min_year, today.year + margin].

    Never raises.
    """
    if not isinstance(receipts, (list, tuple)):
        return FiscalYearScan(
            years=[],
            warnings=[f"Receipts: expected a list, got {type(receipts).__name__}"],
        )

    today_value = today or date.today()
    max_year = today_value.year + cfg.future_year_margin

    years: set[int] = set()
    issues: list[str] = []

    for index, receipt in enumerate(receipts):
        record = as_record_mapping(receipt)
        if record is None:
            issues.append(f"Receipt {index}: record is missing or not a mapping")
            continue

        raw_date = record.get("payment_date")
        if raw_date is None or (isinstance(raw_date, str) and not raw_date.strip()):
            issues.append(f"Receipt {index}: missing payment_date")
            continue

        ts = normalize_date(raw_date)
        if pd.isna(ts):
            issues.append(f"Receipt {index}: unparseable payment_date {raw_date!r}")
            continue

        fiscal_year = fiscal_year_from_date(ts, cfg)
        if fiscal_year < cfg.min_year or fiscal_year > max_year:
            issues.append(
                f"Receipt {index}: fiscal year {fiscal_year} outside "
                f"[{cfg.min_year}, {max_year}]"
            )
            continue

        years.add(fiscal_year)

    return FiscalYearScan(years=sorted(years, reverse=True), warnings=issues)


# --- Fetch-boundary validation ---------------------------------------------------


def _describe_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "record"
        parts.append(f"{loc}: {err.get('msg')}")
    return "; ".join(parts)


def validate_owner_records(
    rows: Iterable[Mapping[str, Any]],
    *,
    require_location: bool = False,
) -> tuple[list[OwnerRecord], list[str]]:
    """
    Validate cleaned owner rows into OwnerRecord models.

    Args:
        rows:
            Mappings keyed by canonical owner column names (see
            config.OWNER_CORE_COLUMNS), e.g. DataFrame.to_dict("records").
        require_location:
            If True, rows with an empty block or flat number are rejected
            too (the sticker view cannot place them).

    Returns:
        (valid records, validation error strings)
    """
    valid: list[OwnerRecord] = []
    errors: list[str] = []

    for index, row in enumerate(rows):
        try:
            owner = OwnerRecord.model_validate(row)
        except ValidationError as exc:
            errors.append(
                f"Owner {index}: Invalid owner data structure ({_describe_validation_error(exc)})"
            )
            continue

        if require_location and (not owner.block_number or not owner.flat_number):
            errors.append(f"Owner {index}: Missing block or flat number")
            continue

        valid.append(owner)

    return valid, errors


def validate_receipt_records(
    rows: Iterable[Mapping[str, Any]],
) -> tuple[list[ReceiptRecord], list[str]]:
    """
    Validate cleaned receipt rows into ReceiptRecord models.

    On top of the schema, a receipt must have a positive amount and a
    payment_date that normalize_date() can read.

    Returns:
        (valid records, validation error strings)
    """
    valid: list[ReceiptRecord] = []
    errors: list[str] = []

    for index, row in enumerate(rows):
        try:
            receipt = ReceiptRecord.model_validate(row)
        except ValidationError as exc:
            errors.append(
                f"Receipt {index}: Invalid receipt data structure ({_describe_validation_error(exc)})"
            )
            continue

        if receipt.payment_amount <= 0:
            errors.append(f"Receipt {index}: Invalid payment amount")
            continue

        if not is_valid_date(receipt.payment_date):
            errors.append(f"Receipt {index}: Invalid payment date format")
            continue

        valid.append(receipt)

    return valid, errors
