# Docstring for property_matrix/services module
"""
services.py

Data services: fetch -> clean -> validate -> cache -> payload.

Each service wraps one data set of the society spreadsheet and produces the
JSON-ready payload the matrix pages consume:

    {
        "success": True,
        "data": {...},
        "_meta": {"received_at", "from_cache", "cache_timestamp", "validation_errors"},
    }

and hands validated records to the matrix engines via build_matrix().

Design goals
------------
- One fetch per TTL window: snapshots live in a TimedCache
  (config.CACHE_CONFIG, 5 minutes). load(force_refresh=True) bypasses it.
- Source-agnostic: any object with the SheetsClient fetch_* methods works
  (SheetsClient for live data, WorkbookSource for local exports, a stub in
  tests).
- Filterable: load(block=..., flat=...) narrows owners and receipts to one
  block and/or flat before the payload is built. The cache always holds the
  full snapshot.
- Typed failures: fetch problems surface as DataServiceError with an
  HTTP-like status and code. Auth problems map to 401 AUTH_ERROR, quota
  problems to 429 QUOTA_EXCEEDED.

Services are context managers; leaving the block closes the source when it
has a close() method (SheetsClient does, WorkbookSource does not).

Public API
----------
- DataServiceError
- AmcDataService(source=None, cache=None)
    .load(force_refresh=False, block=None, flat=None) -> dict
    .build_matrix(fiscal_year=None) -> AmcMatrixData
    .clear_cache()
    .close()
- StickerDataService(source=None, cache=None)
    .load(force_refresh=False, block=None, flat=None) -> dict
    .build_matrix() -> StickerMatrixData
    .clear_cache()
    .close()
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Sequence

import pandas as pd

from .cleaning.clean_owners import clean_owner_rows
from .cleaning.clean_receipts import clean_receipt_rows
from .core.models import AmcMatrixData, StickerMatrixData
from .core.normalizers import fiscal_year_from_date, fiscal_year_series, to_date_series
from .core.validators import (
    extract_available_fiscal_years,
    validate_owner_records,
    validate_receipt_records,
)
from .engines.payment_matrix import build_payment_matrix
from .engines.sticker_matrix import build_sticker_matrix, summarize_sticker_assignments
from .sources.cache import TimedCache
from .sources.sheets_client import SheetsApiError, SheetsClient

logger = logging.getLogger(__name__)


class DataServiceError(Exception):
    """A data set could not be produced; status/code mirror an HTTP error."""

    def __init__(self, message: str, status: int = 500, code: str = "DATA_SERVICE_ERROR") -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code

    def to_payload(self) -> dict[str, Any]:
        return {
            "success": False,
            "error": self.message,
            "code": self.code,
            "timestamp": _utc_now_iso(),
        }


# SheetsApiError codes that mean "credentials" or "slow down"
_AUTH_CODES = {"MISSING_API_KEY", "ACCESS_DENIED"}
_QUOTA_CODES = {"RATE_LIMIT_EXCEEDED"}


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _service_error(exc: Exception, what: str, code: str) -> DataServiceError:
    """Translate a source failure into a DataServiceError."""
    if isinstance(exc, SheetsApiError):
        if exc.code in _AUTH_CODES:
            return DataServiceError("Google Sheets API authentication failed", 401, "AUTH_ERROR")
        if exc.code in _QUOTA_CODES:
            return DataServiceError(
                "Google Sheets API quota exceeded. Please try again later.", 429, "QUOTA_EXCEEDED"
            )
        return DataServiceError(f"Failed to fetch {what}: {exc.message}", 500, code)
    return DataServiceError(f"Failed to fetch {what}: {exc}", 500, code)


def filter_by_location(records: Sequence[Any], block: str | None = None, flat: str | None = None) -> list[Any]:
    """
    Keep records on the given block and/or flat (exact match after strip).

    None means "no filter" for that axis.
    """
    block = block.strip() if block else None
    flat = flat.strip() if flat else None
    return [
        r for r in records
        if (block is None or r.block_number == block)
        and (flat is None or r.flat_number == flat)
    ]


class _CachedDataService:
    """Shared load() / cache plumbing. Subclasses implement _fetch_fresh and _build_data."""

    name = "data"

    def __init__(self, source: Any = None, cache: TimedCache | None = None) -> None:
        self.source = source if source is not None else SheetsClient()
        self.cache: TimedCache[dict[str, Any]] = cache if cache is not None else TimedCache()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        """Release the source's resources (the SheetsClient HTTP connection pool)."""
        close = getattr(self.source, "close", None)
        if callable(close):
            close()

    def _fetch_fresh(self) -> dict[str, Any]:
        raise NotImplementedError

    def _build_data(self, snapshot: dict[str, Any], block: str | None, flat: str | None) -> dict[str, Any]:
        raise NotImplementedError

    def _snapshot(self, force_refresh: bool = False) -> tuple[dict[str, Any], bool]:
        if not force_refresh:
            cached = self.cache.get()
            if cached is not None:
                logger.debug(f"Returning cached {self.name} data")
                return cached, True

        logger.info(f"Fetching fresh {self.name} data")
        snapshot = self._fetch_fresh()
        if snapshot["validation_errors"]:
            logger.warning(
                f"{self.name} data validation dropped {len(snapshot['validation_errors'])} record(s)"
            )
        self.cache.set(snapshot)
        return snapshot, False

    def load(
        self,
        force_refresh: bool = False,
        *,
        block: str | None = None,
        flat: str | None = None,
    ) -> dict[str, Any]:
        """
        Return the payload for this data set.

        Args:
            force_refresh:
                Ignore the cached snapshot and fetch again.
            block / flat:
                Optional filters applied to owners (and receipts) in the
                payload. Echoed back under data["filters"].

        Raises:
            DataServiceError: the source could not be read.
        """
        snapshot, from_cache = self._snapshot(force_refresh)
        data = self._build_data(snapshot, block, flat)
        data["filters"] = {"block": block, "flat": flat}
        return {
            "success": True,
            "data": data,
            "_meta": {
                "received_at": _utc_now_iso(),
                "from_cache": from_cache,
                "cache_timestamp": self.cache.timestamp_iso,
                "validation_errors": list(snapshot["validation_errors"]),
            },
        }

    def clear_cache(self) -> None:
        self.cache.clear()
        logger.info(f"{self.name} cache cleared")


def _totals_by_fiscal_year(receipts: Sequence[Any]) -> dict[int, float]:
    """Sum of payment_amount per fiscal year, newest year first."""
    if not receipts:
        return {}
    df = pd.DataFrame(
        {
            "payment_date": [r.payment_date for r in receipts],
            "payment_amount": [r.payment_amount for r in receipts],
        }
    )
    df["fiscal_year"] = fiscal_year_series(to_date_series(df["payment_date"]))
    # dropna() -> receipts whose date cannot be read are not in any year
    totals = df.dropna(subset=["fiscal_year"]).groupby("fiscal_year")["payment_amount"].sum()
    return {int(year): float(total) for year, total in totals.sort_index(ascending=False).items()}


class AmcDataService(_CachedDataService):
    """Owners + AMC receipts for the payment matrix."""

    name = "AMC"

    def _fetch_fresh(self) -> dict[str, Any]:
        try:
            receipt_rows = self.source.fetch_amc_receipt_rows()
        except (SheetsApiError, ValueError, FileNotFoundError) as exc:
            logger.error(f"Error fetching AMC receipts: {exc}")
            raise _service_error(exc, "AMC receipt data", "AMC_RECEIPTS_FETCH_ERROR") from exc

        try:
            owner_rows = self.source.fetch_owner_rows()
        except (SheetsApiError, ValueError, FileNotFoundError) as exc:
            logger.error(f"Error fetching owners for AMC: {exc}")
            raise _service_error(exc, "owner data", "OWNERS_FETCH_ERROR") from exc

        receipts_df = clean_receipt_rows(receipt_rows)
        owners_df = clean_owner_rows(owner_rows)

        receipts, receipt_errors = validate_receipt_records(receipts_df.to_dict("records"))
        owners, owner_errors = validate_owner_records(owners_df.to_dict("records"))

        logger.info(
            f"Fetched and validated AMC data: {len(receipts)} receipts, {len(owners)} owners"
        )
        return {
            "owners": owners,
            "receipts": receipts,
            "validation_errors": receipt_errors + owner_errors,
        }

    def _build_data(self, snapshot: dict[str, Any], block: str | None, flat: str | None) -> dict[str, Any]:
        owners = filter_by_location(snapshot["owners"], block, flat)
        receipts = filter_by_location(snapshot["receipts"], block, flat)
        available_years = extract_available_fiscal_years(receipts).years

        return {
            "owners": [o.model_dump() for o in owners],
            "receipts": [r.model_dump() for r in receipts],
            "available_years": available_years,
            "totals_by_year": _totals_by_fiscal_year(receipts),
            "summary": {
                "total_receipts": len(receipts),
                "total_owners": len(owners),
                "total_payments": sum(r.payment_amount for r in receipts),
                "unique_blocks": len({o.block_number for o in owners}),
                "unique_flats": len({(o.block_number, o.flat_number) for o in owners}),
                "available_years": len(available_years),
            },
        }

    def build_matrix(self, fiscal_year: int | None = None, force_refresh: bool = False) -> AmcMatrixData:
        """
        Payment matrix for fiscal_year.

        Defaults to the newest fiscal year that has receipts, or the current
        fiscal year when there are none.
        """
        snapshot, _ = self._snapshot(force_refresh)
        if fiscal_year is None:
            years = extract_available_fiscal_years(snapshot["receipts"]).years
            fiscal_year = years[0] if years else fiscal_year_from_date(date.today())
        return build_payment_matrix(snapshot["owners"], snapshot["receipts"], fiscal_year)


class StickerDataService(_CachedDataService):
    """Owner roster for the sticker matrix."""

    name = "sticker"

    def _fetch_fresh(self) -> dict[str, Any]:
        try:
            owner_rows = self.source.fetch_owner_rows()
        except (SheetsApiError, ValueError, FileNotFoundError) as exc:
            logger.error(f"Error fetching owners for stickers: {exc}")
            raise _service_error(exc, "owner data", "OWNERS_FETCH_ERROR") from exc

        owners_df = clean_owner_rows(owner_rows)
        # the sticker view cannot place an owner without block and flat
        owners, owner_errors = validate_owner_records(
            owners_df.to_dict("records"), require_location=True
        )

        logger.info(f"Fetched and validated sticker data: {len(owners)} owners")
        return {"owners": owners, "validation_errors": owner_errors}

    def _build_data(self, snapshot: dict[str, Any], block: str | None, flat: str | None) -> dict[str, Any]:
        owners = filter_by_location(snapshot["owners"], block, flat)
        statistics = summarize_sticker_assignments(owners)

        return {
            "owners": [o.model_dump() for o in owners],
            "statistics": statistics,
            "summary": {
                "total_owners": len(owners),
                "total_flats": statistics["total_flats"],
                "assigned_flats": statistics["assigned_flats"],
                "unassigned_flats": statistics["unassigned_flats"],
                "total_stickers": statistics["total_stickers"],
                "unique_blocks": statistics["unique_blocks"],
                "assignment_rate": statistics["assignment_rate"],
            },
        }

    def build_matrix(self, force_refresh: bool = False) -> StickerMatrixData:
        snapshot, _ = self._snapshot(force_refresh)
        return build_sticker_matrix(snapshot["owners"])
