# Docstring for property_matrix/sources/sheets_client module
"""
sheets_client.py

Read-only Google Sheets v4 client for the society spreadsheet.

Fetches raw cell values (lists of rows) for the MemberData roster, the
MasterData lookup tab and any number of receipt tabs. No cleaning happens
here: rows go to property_matrix.cleaning as-is.

Design goals
------------
- Bounded retries: HTTP 429, HTTP 5xx and transport errors are retried with
  exponential backoff (config.RETRY_CONFIG); everything else fails fast.
- Typed failures: every error surfaces as SheetsApiError with an HTTP-like
  status, a stable code and a retryable flag.
- Partial tolerance: when several receipt tabs are fetched, a failing tab is
  logged and skipped; only when every tab fails is the call an error.
- Testable: the httpx transport and the sleep function are injectable.

Error codes
-----------
MISSING_API_KEY, MISSING_SHEET_ID, MISSING_RANGE, INVALID_REQUEST (400),
ACCESS_DENIED (403), SHEET_NOT_FOUND (404), RATE_LIMIT_EXCEEDED (429),
SERVER_ERROR (5xx after retries), NETWORK_ERROR, API_ERROR (other status),
INVALID_RESPONSE (non-JSON body), UNEXPECTED_ERROR, ALL_SHEETS_FAILED.

Public API
----------
- SheetsApiError
- SheetsClient(config=None, retry=RETRY_CONFIG, transport=None, sleep=time.sleep)
    .fetch_range(range_) -> list[list[str]]
    .fetch_owner_rows() -> list[list[str]]
    .fetch_master_data() -> dict
    .fetch_receipt_rows(sheet_names=None) -> list[list[str]]
    .fetch_amc_receipt_rows() -> list[list[str]]
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Iterable
from urllib.parse import quote

import httpx

from ..cleaning.clean_owners import parse_master_data
from ..cleaning.clean_receipts import filter_amc_rows
from ..config import RECEIPT_SHEET_RANGE, RETRY_CONFIG, RetryConfig, SheetsConfig

logger = logging.getLogger(__name__)


class SheetsApiError(Exception):
    """A failed spreadsheet read, with an HTTP-like status and a stable code."""

    def __init__(
        self,
        message: str,
        status: int = 500,
        code: str = "SHEETS_API_ERROR",
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.retryable = retryable

    def __repr__(self) -> str:
        return f"SheetsApiError({self.message!r}, status={self.status}, code={self.code!r})"


# status -> (code, message) for client errors that are never retried
_CLIENT_ERRORS = {
    400: ("INVALID_REQUEST", "Invalid request to Google Sheets API"),
    403: ("ACCESS_DENIED", "Access denied to Google Sheets. Check API key permissions."),
    404: ("SHEET_NOT_FOUND", "Google Sheet not found. Check Sheet ID and range."),
}


def _mask(secret: str) -> str:
    return "***" + secret[-4:] if secret else "MISSING"


class SheetsClient:
    """Synchronous Sheets v4 reader built on httpx.Client."""

    def __init__(
        self,
        config: SheetsConfig | None = None,
        *,
        retry: RetryConfig = RETRY_CONFIG,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config or SheetsConfig.from_env()
        self.retry = retry
        self._sleep = sleep
        self._http = httpx.Client(
            timeout=retry.timeout,
            transport=transport,
            headers={"User-Agent": "PropertyMatrix/1.0"},
        )

    # -- lifecycle ------------------------------------------------------------------

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "SheetsClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # -- low level ------------------------------------------------------------------

    def _backoff(self, attempt: int, reason: str) -> None:
        delay = self.retry.delay_for(attempt)
        logger.warning(
            f"{reason}, retrying in {delay:.1f}s "
            f"(attempt {attempt + 1}/{self.retry.max_retries})"
        )
        self._sleep(delay)

    def _get_with_retry(self, url: str, params: dict[str, str]) -> httpx.Response:
        attempt = 0
        while True:
            try:
                response = self._http.get(url, params=params)
            except httpx.TransportError as exc:
                if attempt < self.retry.max_retries:
                    self._backoff(attempt, f"Network error ({exc.__class__.__name__})")
                    attempt += 1
                    continue
                raise SheetsApiError(
                    "Network error connecting to Google Sheets API",
                    status=0,
                    code="NETWORK_ERROR",
                    retryable=True,
                ) from exc
            except httpx.HTTPError as exc:
                raise SheetsApiError(
                    f"Unexpected error fetching sheet: {exc}",
                    status=500,
                    code="UNEXPECTED_ERROR",
                    retryable=True,
                ) from exc

            if response.status_code == 429:
                if attempt < self.retry.max_retries:
                    self._backoff(attempt, "Rate limited")
                    attempt += 1
                    continue
                raise SheetsApiError(
                    "Google Sheets API rate limit exceeded",
                    status=429,
                    code="RATE_LIMIT_EXCEEDED",
                )

            if 500 <= response.status_code < 600:
                if attempt < self.retry.max_retries:
                    self._backoff(attempt, f"Server error {response.status_code}")
                    attempt += 1
                    continue
                raise SheetsApiError(
                    f"Google Sheets API server error: {response.status_code}",
                    status=response.status_code,
                    code="SERVER_ERROR",
                )

            return response

    def fetch_range(self, range_: str) -> list[list[str]]:
        """
        Fetch the values of one A1 range, e.g. "MemberData!A1:M300".

        Returns the rows as lists of strings (the API omits trailing empty
        cells and trailing empty rows). An empty range gives [].

        Raises:
            SheetsApiError
        """
        cfg = self.config
        if not cfg.api_key:
            raise SheetsApiError("Google Sheets API key not configured", 401, "MISSING_API_KEY")
        if not cfg.sheet_id:
            raise SheetsApiError("Google Sheet ID not configured", 400, "MISSING_SHEET_ID")
        if not range_:
            raise SheetsApiError("Sheet range not specified", 400, "MISSING_RANGE")

        # safe="" -> '!' and ':' in the range are percent-encoded too
        url = f"{cfg.base_url}/{cfg.sheet_id}/values/{quote(range_, safe='')}"
        response = self._get_with_retry(url, params={"key": cfg.api_key})

        if not response.is_success:
            logger.error(
                f"Google Sheets API error {response.status_code} for range {range_!r} "
                f"(sheet {_mask(cfg.sheet_id)}): {response.text[:500]}"
            )
            if response.status_code in _CLIENT_ERRORS:
                code, message = _CLIENT_ERRORS[response.status_code]
                raise SheetsApiError(message, response.status_code, code)
            raise SheetsApiError(
                f"Failed to fetch sheet ({response.status_code}): {response.reason_phrase}",
                response.status_code,
                "API_ERROR",
                retryable=response.status_code >= 500,
            )

        try:
            data = response.json()
        except ValueError as exc:    # json.JSONDecodeError is a ValueError
            raise SheetsApiError(
                "Invalid JSON response from Google Sheets API",
                500,
                "INVALID_RESPONSE",
                retryable=True,
            ) from exc

        if not isinstance(data, dict):
            raise SheetsApiError(
                "Invalid JSON response from Google Sheets API",
                500,
                "INVALID_RESPONSE",
                retryable=True,
            )
        return data.get("values") or []

    # -- society sheets -------------------------------------------------------------

    def fetch_owner_rows(self) -> list[list[str]]:
        """MemberData rows, header row included."""
        return self.fetch_range(self.config.owners_range)

    def fetch_master_data(self) -> dict[str, Any]:
        """
        Block / flat lookup from the MasterData tab.

        Returns:
            {"block_options": [...], "flats_by_block": {block: [...]},
             "last_updated": str | None}
            last_updated is the last non-empty value in column C.
        """
        return parse_master_data(self.fetch_range(self.config.masterdata_range))

    def fetch_receipt_rows(self, sheet_names: Iterable[str] | None = None) -> list[list[str]]:
        """
        Data rows of every receipt tab, concatenated in tab order.

        Each tab's first row is its header and is skipped. A failing tab is
        logged and skipped.

        Raises:
            SheetsApiError("ALL_SHEETS_FAILED") when every tab failed.
        """
        sheets = list(self.config.receipts_sheets if sheet_names is None else sheet_names)
        if not sheets:
            logger.warning("No receipt sheets configured")
            return []

        all_rows: list[list[str]] = []
        sheet_errors: list[str] = []

        for sheet_name in sheets:
            try:
                rows = self.fetch_range(f"{sheet_name}!{RECEIPT_SHEET_RANGE}")
            except SheetsApiError as exc:
                message = f"Failed to fetch from sheet {sheet_name}: {exc.message}"
                logger.error(message)
                sheet_errors.append(message)
                continue

            if len(rows) > 1:
                all_rows.extend(rows[1:])
                logger.info(f"Fetched {len(rows) - 1} rows from {sheet_name}")
            else:
                logger.warning(f"No data found in sheet: {sheet_name}")

        if len(sheet_errors) == len(sheets):
            raise SheetsApiError(
                f"Failed to fetch from all receipt sheets: {'; '.join(sheet_errors)}",
                500,
                "ALL_SHEETS_FAILED",
                retryable=True,
            )
        if sheet_errors:
            logger.warning(
                f"Partial failure fetching receipts: {len(sheet_errors)}/{len(sheets)} sheets failed"
            )

        return all_rows

    def fetch_amc_receipt_rows(self) -> list[list[str]]:
        """
        AMC receipt rows only.

        Uses the tabs whose name mentions AMC / maintenance. If there are none,
        fetches every receipt tab and keeps rows whose receipt number or
        remarks mention AMC.
        """
        amc_sheets = self.config.amc_receipts_sheets
        if amc_sheets:
            return self.fetch_receipt_rows(amc_sheets)

        logger.warning(
            "No AMC receipt sheets found. Falling back to keyword filtering of all receipts."
        )
        rows = filter_amc_rows(self.fetch_receipt_rows())
        logger.info(f"Keyword filter kept {len(rows)} AMC receipt rows")
        return rows
