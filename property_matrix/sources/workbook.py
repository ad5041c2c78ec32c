"""
workbook.py

Offline stand-in for SheetsClient backed by an .xlsx export of the society
spreadsheet. Exposes the same fetch_* methods so the data services do not
care where rows come from.

Tabs are read once, on first use.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable

from ..cleaning.clean_owners import parse_master_data
from ..cleaning.clean_receipts import filter_amc_rows
from ..config import AMC_FILTER_CONFIG
from ..load_data import load_workbook_rows

logger = logging.getLogger(__name__)


class WorkbookSource:
    """Reads owner / master / receipt tabs from a local workbook."""

    def __init__(
        self,
        path: str | Path | None = None,
        *,
        owners_sheet: str = "MemberData",
        masterdata_sheet: str = "MasterData",
        receipts_sheets: Iterable[str] | None = None,
    ) -> None:
        self.path = path
        self.owners_sheet = owners_sheet
        self.masterdata_sheet = masterdata_sheet
        self._receipts_sheets = tuple(receipts_sheets) if receipts_sheets is not None else None
        self._tabs: dict[str, list[list[Any]]] | None = None

    @property
    def tabs(self) -> dict[str, list[list[Any]]]:
        if self._tabs is None:
            self._tabs = load_workbook_rows(self.path)
            logger.info(f"Loaded {len(self._tabs)} tabs from workbook {self.path or '(sample)'}")
        return self._tabs

    def _tab(self, name: str) -> list[list[Any]]:
        if name not in self.tabs:
            raise ValueError(f"Workbook has no sheet named {name!r}. Found: {list(self.tabs)}")
        return self.tabs[name]

    @property
    def receipts_sheets(self) -> tuple[str, ...]:
        """Configured receipt tabs, else every tab except the roster and master tabs."""
        if self._receipts_sheets is not None:
            return self._receipts_sheets
        skip = {self.owners_sheet, self.masterdata_sheet}
        return tuple(name for name in self.tabs if name not in skip)

    @property
    def amc_receipts_sheets(self) -> tuple[str, ...]:
        keywords = AMC_FILTER_CONFIG.sheet_keywords
        return tuple(
            name for name in self.receipts_sheets
            if any(keyword in name.lower() for keyword in keywords)
        )

    def fetch_owner_rows(self) -> list[list[Any]]:
        return self._tab(self.owners_sheet)

    def fetch_master_data(self) -> dict[str, Any]:
        return parse_master_data(self._tab(self.masterdata_sheet))

    def fetch_receipt_rows(self, sheet_names: Iterable[str] | None = None) -> list[list[Any]]:
        """Data rows of the receipt tabs, headers skipped, in tab order."""
        sheets = list(self.receipts_sheets if sheet_names is None else sheet_names)
        all_rows: list[list[Any]] = []
        for name in sheets:
            all_rows.extend(self._tab(name)[1:])
        return all_rows

    def fetch_amc_receipt_rows(self) -> list[list[Any]]:
        if self.amc_receipts_sheets:
            return self.fetch_receipt_rows(self.amc_receipts_sheets)
        logger.warning("No AMC tabs in workbook. Falling back to keyword filtering of all receipts.")
        return filter_amc_rows(self.fetch_receipt_rows())
