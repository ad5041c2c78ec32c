"""
models.py

Record schemas and matrix result types.

Two kinds of types live here:

- Fetch-boundary schemas (pydantic): OwnerRecord and ReceiptRecord. Raw
  spreadsheet rows are validated into these before they reach the engines.
  Field names are snake_case; the camelCase names used by the dashboard JSON
  are accepted and emitted as aliases.
- Engine result types (frozen dataclasses): MatrixCell, AmcMatrixData,
  StickerMatrixData, BlockFlatAxes, FiscalYearScan.

The engines never trust that a record went through the schemas: they accept
either a model or a plain mapping and re-check the fields they use.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class MatrixInputError(TypeError):
    """Raised when a matrix builder is called with arguments of the wrong type.

    This is a caller bug, not a data-quality problem, so it propagates.
    """


# =============================================================================
# FETCH-BOUNDARY SCHEMAS
# =============================================================================


def _number_to_text(v: Any) -> Any:
    # Excel exports give 404 or 404.0 for flat numbers and phone numbers
    if isinstance(v, bool):
        return v
    if isinstance(v, int):
        return str(v)
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    return v


class _SheetRecord(BaseModel):
    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    @field_validator("*", mode="before")
    @classmethod
    def _blank_to_empty(cls, v: Any) -> Any:
        # Sheets omit trailing empty cells; pandas hands us NaN for them
        if v is None:
            return ""
        if isinstance(v, float) and math.isnan(v):
            return ""
        return v


class OwnerRecord(_SheetRecord):
    """One membership row from the MemberData sheet.

    A flat can have several rows (owner, co-owner, tenant); (block, flat) is
    the natural key, `id` is not guaranteed unique.
    """

    id: str
    block_number: str = Field(description="Block / wing identifier, e.g. 'B' or '3'.")
    flat_number: str = Field(description="Flat identifier within the block, e.g. '404'.")
    member_name: str
    is_owner: str = ""
    mobile_1: str = Field(default="", alias="mobile1")
    mobile_2: str = Field(default="", alias="mobile2")
    cars: str = ""
    bikes: str = ""
    sticker_nos: str = Field(
        default="",
        description="Zero or more sticker codes separated by ',', ';' or '|'.",
    )
    block_flat_number: str = ""

    @field_validator("id", "block_number", "flat_number", "member_name", "is_owner",
                     "mobile_1", "mobile_2", "cars", "bikes", "sticker_nos",
                     "block_flat_number", mode="before")
    @classmethod
    def _number_cells_to_text(cls, v: Any) -> Any:
        return _number_to_text(v)


class ReceiptRecord(_SheetRecord):
    """One payment receipt row from a receipt sheet."""

    id: str
    receipt_no: str
    receipt_date: str = ""
    block_number: str
    flat_number: str
    name: str = ""
    mode: str = ""
    payment_amount: float = Field(ge=0, description="Amount in rupees.")
    payment_no: str = ""
    payment_date: str = Field(description="Date used for fiscal-year bucketing.")
    payment_bank: str = ""
    remarks: str = ""
    pdf_status: str = ""
    pdf_url: str = ""
    pdf_name: str = ""

    @field_validator("payment_amount", mode="before")
    @classmethod
    def _parse_amount(cls, v: Any) -> Any:
        if v is None or (isinstance(v, float) and math.isnan(v)):
            return 0
        if isinstance(v, str):
            cleaned = re.sub(r"[₹,\s]", "", v)  # "₹1,000" -> "1000"
            return cleaned or 0
        return v

    @field_validator("id", "receipt_no", "block_number", "flat_number",
                     "payment_date", "receipt_date", mode="before")
    @classmethod
    def _number_cells_to_text(cls, v: Any) -> Any:
        return _number_to_text(v)


def as_record_mapping(record: Any) -> Mapping[str, Any] | None:
    """Return a field mapping for a model or mapping; None for anything else."""
    if isinstance(record, BaseModel):
        return record.model_dump()
    if isinstance(record, Mapping):
        return record
    return None


# =============================================================================
# ENGINE RESULT TYPES
# =============================================================================


@dataclass(frozen=True)
class MatrixCell:
    """One (block, flat) cell of a matrix grid.

    value is None iff no record contributed to the cell.
    """

    block_number: str
    flat_number: str
    value: int | float | str | None = None
    metadata: dict[str, Any] | None = None

    @property
    def key(self) -> str:
        return f"{self.block_number}-{self.flat_number}"


@dataclass(frozen=True)
class BlockFlatAxes:
    blocks: list[str]
    flats: list[str]
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class FiscalYearScan:
    years: list[int]
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class AmcMatrixData:
    """Payment grid for one fiscal year.

    cells[i][j] is the cell for blocks[i] x flats[j].
    """

    blocks: list[str]
    flats: list[str]
    cells: list[list[MatrixCell]]
    available_years: list[int]
    selected_year: int | float
    total_by_block: dict[str, int | float]
    total_by_flat: dict[str, int | float]
    warnings: list[str] = field(default_factory=list)

    @property
    def grand_total(self) -> int | float:
        return sum(self.total_by_block.values())


@dataclass(frozen=True)
class StickerMatrixData:
    """Sticker assignment grid for the whole roster.

    Keys in unassigned_flats / multiple_stickers use the "{block}-{flat}" form.
    """

    blocks: list[str]
    flats: list[str]
    cells: list[list[MatrixCell]]
    unassigned_flats: list[str]
    multiple_stickers: list[str]
    warnings: list[str] = field(default_factory=list)
