# Docstring for property_matrix/core/normalizers module
"""
normalizers.py

Shared normalization helpers for spreadsheet values used across cleaners and
matrix engines.

Spreadsheet cells arrive loosely typed: dates in three or four encodings,
amounts with currency symbols, flat numbers that are sometimes "404" and
sometimes 404.0, sticker columns with mixed delimiters. Everything that turns
one of those cells into a canonical value lives here so the engines agree on
what a cell means.

Design goals
------------
- Never raise on bad data: return pd.NaT / NaN / an empty list and let the
  caller decide whether that is a warning.
- Single source of truth for the fiscal-year rule.
- Keep scalar and vectorized (pandas Series) forms side by side.

Public API
----------
- normalize_date(value) -> pd.Timestamp | NaT
- is_valid_date(value) -> bool
- to_date_series(series) -> pd.Series
- fiscal_year_from_date(ts, cfg=FISCAL_YEAR_CONFIG) -> int
- fiscal_year_series(dates, cfg=FISCAL_YEAR_CONFIG) -> pd.Series
- fiscal_year_label(fiscal_year) -> str
- to_amount(value) -> float
- to_numeric_series(series) -> pd.Series
- split_sticker_codes(value, cfg=STICKER_CONFIG) -> list[str]
- identifier_sort_key(identifier) -> tuple[int, str]
- sort_identifiers(values) -> list[str]
"""

from __future__ import annotations

import re
import warnings
from datetime import date, datetime
from numbers import Real
from typing import Any, Iterable

import pandas as pd

from ..config import FISCAL_YEAR_CONFIG, STICKER_CONFIG, FiscalYearConfig, StickerConfig


# '^\d{4}-\d{2}-\d{2}$' -> exactly YYYY-MM-DD, nothing before or after
_ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")

# 1-2 digits, '/', 1-2 digits, '/', 4 digits -> M/D/YYYY or D/M/YYYY
_SLASH_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")

# Leading integer, the way the dashboard always sorted ("12A" -> 12)
_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")

# pandas reads these as the current moment
_RELATIVE_DATE_WORDS = {"now", "today"}


def _to_naive_timestamp(value: Any) -> pd.Timestamp:
    ts = pd.Timestamp(value)
    if ts.tzinfo is not None:
        # keep the wall-clock time the receipt was stamped with
        ts = ts.tz_localize(None)
    return ts


def _parse_iso_datetime(text: str) -> pd.Timestamp:
    try:
        ts = pd.to_datetime(text, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return pd.NaT
    if pd.isna(ts):
        return pd.NaT
    return _to_naive_timestamp(ts)


def _parse_calendar_date(year: int, month: int, day: int) -> pd.Timestamp:
    try:
        return pd.Timestamp(datetime(year, month, day))
    except (ValueError, OverflowError):   # 31/02, month 13, year 0 ...
        return pd.NaT


def _parse_generic(text: str) -> pd.Timestamp:
    with warnings.catch_warnings():
        # "Could not infer format" warnings are expected for free-text dates
        warnings.simplefilter("ignore", UserWarning)
        try:
            ts = pd.to_datetime(text, errors="coerce")
        except (ValueError, TypeError, OverflowError):
            return pd.NaT
    if pd.isna(ts):
        return pd.NaT
    return _to_naive_timestamp(ts)


def normalize_date(value: Any) -> pd.Timestamp:
    """
    Parse a spreadsheet date cell into a naive pd.Timestamp, or pd.NaT.

    Strategies, first valid calendar date wins:
        1. contains 'T' or 'Z'   -> ISO-8601 datetime (offset dropped, wall clock kept)
        2. YYYY-MM-DD            -> midnight
        3. M/D/YYYY or D/M/YYYY  -> month/day/year, swapped to day/month/year
                                    when the first number cannot be a month
        4. anything else         -> generic pandas/dateutil parsing

    "now" and "today" are not dates and give NaT.

    A string that is exactly YYYY-MM-DD or N/N/YYYY but names an impossible
    day (2024-02-30, 31/02/2024) is invalid; it is not handed to the generic
    parser, which would otherwise guess a different reading.

    Example:
        '2024-04-14'            -> Timestamp('2024-04-14')
        '4/14/2024'             -> Timestamp('2024-04-14')
        '14/4/2024'             -> Timestamp('2024-04-14')
        '31/02/2024'            -> NaT
        '2024-04-14T10:00:00Z'  -> Timestamp('2024-04-14 10:00:00')
        '2024-04-01T02:00+05:30' -> Timestamp('2024-04-01 02:00:00')

    Never raises.
    """
    if value is None:
        return pd.NaT

    # Excel cells read by openpyxl are already datetimes
    if isinstance(value, (pd.Timestamp, datetime, date)):
        if pd.isna(value):
            return pd.NaT
        return _to_naive_timestamp(value)

    if not isinstance(value, str):
        return pd.NaT

    text = value.strip()
    if not text:
        return pd.NaT
    if text.lower() in _RELATIVE_DATE_WORDS:
        return pd.NaT

    # 1) ISO-8601 with a time or zone marker
    if "T" in text or "Z" in text:
        ts = _parse_iso_datetime(text)
        if not pd.isna(ts):
            return ts

    # 2) Plain YYYY-MM-DD
    match = _ISO_DATE_RE.match(text)
    if match:
        year, month, day = (int(part) for part in match.groups())
        return _parse_calendar_date(year, month, day)

    # 3) Slash dates. Ambiguous ones (03/04/2024) are read month-first.
    match = _SLASH_DATE_RE.match(text)
    if match:
        first, second, year = (int(part) for part in match.groups())
        month, day = first, second
        if month > 12:
            month, day = second, first
        return _parse_calendar_date(year, month, day)

    # 4) Fallback
    return _parse_generic(text)


def is_valid_date(value: Any) -> bool:
    """True if normalize_date() would produce a usable date for value."""
    return not pd.isna(normalize_date(value))


def to_date_series(series: pd.Series) -> pd.Series:
    """Vectorized normalize_date(); invalid entries become NaT."""
    # .map() applies normalize_date element-by-element to the Series
    return pd.to_datetime(series.map(normalize_date), errors="coerce")


def fiscal_year_from_date(ts: pd.Timestamp | datetime | date, cfg: FiscalYearConfig = FISCAL_YEAR_CONFIG) -> int:
    """
    Indian fiscal year for a valid date, labelled by its starting year.

    Example:
        14-Apr-2024 -> 2024
        15-Feb-2024 -> 2023
    """
    if ts.month >= cfg.start_month:
        return ts.year
    return ts.year - 1


def fiscal_year_series(dates: pd.Series, cfg: FiscalYearConfig = FISCAL_YEAR_CONFIG) -> pd.Series:
    """Vectorized fiscal_year_from_date(); missing dates give <NA>."""
    dt = pd.to_datetime(dates, errors="coerce")
    before_start = (dt.dt.month < cfg.start_month).astype("Int64")
    # .astype("Int64") keeps NaT rows as <NA> instead of float NaN
    return dt.dt.year.astype("Int64") - before_start


def fiscal_year_label(fiscal_year: int) -> str:
    """2024 -> 'FY 2024-25'."""
    return f"FY {fiscal_year}-{str(fiscal_year + 1)[-2:]}"


def to_amount(value: Any) -> float:
    """
    Coerce a payment amount cell to float; NaN when it is not a number.

    Strips the rupee sign, thousands separators and whitespace from strings.
    Booleans are not amounts.
    """
    if value is None or isinstance(value, bool):
        return float("nan")
    if isinstance(value, Real):
        return float(value)
    if isinstance(value, str):
        cleaned = re.sub(r"[₹,\s]", "", value)
        if not cleaned:
            return float("nan")
        try:
            return float(cleaned)
        except ValueError:
            return float("nan")
    return float("nan")


def to_numeric_series(series: pd.Series) -> pd.Series:
    """Vectorized to_amount(); returns floats with NaN for invalid entries."""
    return series.map(to_amount).astype("float64")


def split_sticker_codes(value: Any, cfg: StickerConfig = STICKER_CONFIG) -> list[str]:
    """
    Split a sticker cell into trimmed, non-empty codes (order preserved).

    Example:
        'S1, S2;S3 | ' -> ['S1', 'S2', 'S3']

    Non-string values give an empty list; callers that care report them.
    """
    if not isinstance(value, str) or not value.strip():
        return []
    pattern = "[" + re.escape("".join(cfg.delimiters)) + "]"
    return [code.strip() for code in re.split(pattern, value) if code.strip()]


def identifier_sort_key(identifier: str) -> tuple[int, str]:
    """
    Sort key for block/flat identifiers: leading integer, then the text.

    Identifiers without a leading integer sort as 0 ('A', 'B' come before '1'
    only because they compare as 0); the text breaks ties so the order is
    deterministic.
    """
    match = _LEADING_INT_RE.match(identifier)
    number = int(match.group(1)) if match else 0
    return (number, identifier)


def sort_identifiers(values: Iterable[str]) -> list[str]:
    return sorted(set(values), key=identifier_sort_key)
