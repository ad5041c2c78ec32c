#Docstring for property_matrix/config module
"""
config.py

Central configuration for the property matrix reconciliation toolkit.

This module defines canonical column layouts, fiscal-year rules, sticker
parsing rules, cache/retry settings and spreadsheet connection settings used
across the project.

It is intentionally the single source of truth for:
- Sheet layouts (positional spreadsheet columns -> canonical names)
- Fiscal-year partitioning (Indian financial year, April-March)
- Sticker code delimiters
- Cache freshness window and retry/backoff policy for the sheets client
- AMC receipt detection keywords

Design goals
------------
- Consistency: cleaners, engines and services rely on the same canonical names.
- Maintainability: business rules are edited in one place.
- Safety: defaults reproduce what the society dashboard has always shown.

Contents
--------
1) Paths and project defaults
   - Default input/output folders (sample data, reports)

2) Sheet layouts
   - OWNER_SHEET_COLUMNS: column position in MemberData -> canonical name
   - RECEIPT_SHEET_COLUMNS: column position in a receipt sheet -> canonical name

3) Business rules
   - FISCAL_YEAR_CONFIG: fiscal year start month and sanity bounds
   - STICKER_CONFIG: delimiters used inside the sticker column
   - AMC_FILTER_CONFIG: keywords that identify AMC receipt sheets/rows

4) Collaborator settings
   - CACHE_CONFIG: freshness window for fetched snapshots
   - RETRY_CONFIG: exponential backoff for the spreadsheet client
   - SheetsConfig.from_env(): spreadsheet id, API key and ranges

Usage
-----
All other modules import configuration from here. Example:

    from property_matrix.config import FISCAL_YEAR_CONFIG, STICKER_CONFIG

Privacy note
------------
API keys and sheet ids are read from environment variables only. Never commit
them, or real resident phone numbers, to source control.
"""


from __future__ import annotations

import os
from dataclasses import dataclass, field #create simple classes for configuration
from pathlib import Path #object-oriented filesystem paths instead of strings
from typing import Mapping



# --- Base paths ----------------------------------------------------------------

# property_matrix/ -> project root
BASE_DIR = Path(__file__).resolve().parents[1]
#parents[0] = config.py directory = property_matrix/
#parents[1] = project root directory

DATA_DIR = BASE_DIR / "data"
SAMPLE_DIR = DATA_DIR / "sample"

REPORTS_DIR = BASE_DIR / "reports"
REPORTS_FIGURES_DIR = REPORTS_DIR / "figures"
REPORTS_OUTPUTS_DIR = REPORTS_DIR / "outputs"

# Report kinds that get their own output folder
REPORT_KINDS = ("amc", "stickers")


def get_report_dir(kind: str, *, base_dir: Path | None = None) -> Path:
    """Return (and create) the outputs folder for a report kind."""
    if kind not in REPORT_KINDS:
        raise ValueError(f"Unknown report kind: {kind!r}. Expected one of {REPORT_KINDS}.")
    path = (base_dir or REPORTS_OUTPUTS_DIR) / kind
    path.mkdir(parents=True, exist_ok=True)
    #- parents=True: create any missing parent directories
    #- exist_ok=True: no error if directory already exists
    return path



# --- Sheet layouts (column position -> canonical) ----------------------------------------

# IMPORTANT:
# The society spreadsheet has no stable header names (they were renamed
# several times), so rows are mapped by POSITION. The first row of every
# range is the header and is skipped by the cleaners.

# MemberData!A:M
OWNER_SHEET_COLUMNS = {
    # Position   # Canonical name
    0:           "block_number",
    1:           "flat_number",
    2:           "is_owner",
    3:           "member_name",
    4:           "mobile_1",
    5:           "mobile_2",
    7:           "cars",
    8:           "bikes",
    11:          "sticker_nos",
    12:          "block_flat_number",
}

# Receipt sheets A:N
# Receipt No, Receipt Date, Block No, Flat No, Name, Mode, Payment Amount,
# Payment No, Payment Date, Payment Bank, Remarks, PDF Status, PDF URL, PDF Name
RECEIPT_SHEET_COLUMNS = {
    0:           "receipt_no",
    1:           "receipt_date",
    2:           "block_number",
    3:           "flat_number",
    4:           "name",
    5:           "mode",
    6:           "payment_amount",
    7:           "payment_no",
    8:           "payment_date",
    9:           "payment_bank",
    10:          "remarks",
    11:          "pdf_status",
    12:          "pdf_url",
    13:          "pdf_name",
}

OWNER_CORE_COLUMNS = [
    "id",
    "block_number",
    "flat_number",
    "is_owner",
    "member_name",
    "mobile_1",
    "mobile_2",
    "cars",
    "bikes",
    "sticker_nos",
    "block_flat_number",
]

RECEIPT_CORE_COLUMNS = [
    "id",
    *RECEIPT_SHEET_COLUMNS.values(),
]

# A receipt row is only usable if all of these are present (amount must be > 0)
RECEIPT_REQUIRED_COLUMNS = [
    "receipt_no",
    "block_number",
    "flat_number",
    "payment_amount",
    "payment_date",
]

# Widest range read from each receipt sheet (N = 14 columns)
RECEIPT_SHEET_RANGE = "A1:N1000"



# --- Business rules ---------------------------------------------------------------

@dataclass(frozen=True) #Decorator to create data class
class FiscalYearConfig:
#frozen=True makes instances immutable, once created cannot be changed

    """

    Indian financial year rules.

    start_month:
        First calendar month of the fiscal year (4 = April). A date in
        April 2024 .. March 2025 belongs to FY 2024.
    min_year:
        Oldest fiscal year accepted by the year extractor.
    future_year_margin:
        Fiscal years later than (current calendar year + margin) are treated
        as data-entry errors.

    """

    start_month: int = 4
    min_year: int = 1900
    future_year_margin: int = 10


FISCAL_YEAR_CONFIG = FiscalYearConfig()
#Creates a singleton instance with default values


@dataclass(frozen=True)
class StickerConfig:

    """Parsing rules for the free-text sticker column."""

    delimiters: tuple[str, ...] = (",", ";", "|")
    display_separator: str = ", "   # used to join codes in a cell


STICKER_CONFIG = StickerConfig()


@dataclass(frozen=True)
class AmcFilterConfig:

    """

    Keywords that identify annual-maintenance (AMC) receipts.

    sheet_keywords:
        A receipt sheet whose name contains any keyword is an AMC sheet.
    row_keywords:
        Fallback when no AMC sheet is configured: a receipt whose number or
        remarks contain a keyword is an AMC receipt.

    """

    sheet_keywords: tuple[str, ...] = ("amc", "maintenance")
    row_keywords: tuple[str, ...] = ("amc", "maintenance", "annual maintenance")


AMC_FILTER_CONFIG = AmcFilterConfig()



# --- Collaborator settings -------------------------------------------------------

@dataclass(frozen=True)
class CacheConfig:

    """Freshness window for fetched owner/receipt snapshots."""

    ttl_seconds: float = 5 * 60   # 5 minutes


CACHE_CONFIG = CacheConfig()


@dataclass(frozen=True)
class RetryConfig:

    """

    Exponential backoff for the spreadsheet client.

    delay(attempt) = min(base_delay * backoff_multiplier ** attempt, max_delay)

    Retries apply to HTTP 429, HTTP 5xx and network errors only.

    """

    max_retries: int = 3
    base_delay: float = 1.0    # seconds
    max_delay: float = 10.0    # seconds
    backoff_multiplier: float = 2.0
    timeout: float = 30.0      # per request, seconds

    def delay_for(self, attempt: int) -> float:
        return min(self.base_delay * self.backoff_multiplier ** attempt, self.max_delay)


RETRY_CONFIG = RetryConfig()


SHEETS_API_BASE_URL = "https://sheets.googleapis.com/v4/spreadsheets"


@dataclass(frozen=True)
class SheetsConfig:

    """

    Spreadsheet connection settings.

    Read from the environment with SheetsConfig.from_env(); every value can
    also be passed explicitly (tests, notebooks).

    """

    api_key: str = ""
    sheet_id: str = ""
    owners_range: str = "MemberData!A1:M300"
    masterdata_range: str = "MasterData!A1:F100"
    receipts_sheets: tuple[str, ...] = field(default_factory=tuple)
    base_url: str = SHEETS_API_BASE_URL

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "SheetsConfig":
        env = os.environ if environ is None else environ

        def _get(key: str, default: str = "") -> str:
            # NEXT_PUBLIC_* names are still set on older deployments
            return env.get(key) or env.get(f"NEXT_PUBLIC_{key}") or default

        sheets_str = _get("GOOGLE_SHEETS_RECEIPTS_SHEETS")
        receipts_sheets = tuple(s.strip() for s in sheets_str.split(",") if s.strip())

        return cls(
            api_key=_get("GOOGLE_SHEETS_API_KEY"),
            sheet_id=_get("GOOGLE_SHEETS_ID"),
            owners_range=_get("GOOGLE_SHEETS_OWNERS_RANGE", cls.owners_range),
            masterdata_range=_get("GOOGLE_SHEETS_MASTERDATA_RANGE", cls.masterdata_range),
            receipts_sheets=receipts_sheets,
        )

    @property
    def amc_receipts_sheets(self) -> tuple[str, ...]:
        """Receipt sheets whose name marks them as AMC sheets."""
        keywords = AMC_FILTER_CONFIG.sheet_keywords
        return tuple(
            sheet for sheet in self.receipts_sheets
            if any(keyword in sheet.lower() for keyword in keywords)
        )
