# Docstring for property_matrix/engines/sticker_matrix module
"""
sticker_matrix.py

Vehicle sticker matrix engine: owner roster -> block x flat grid of parking
sticker codes.

Every flat may have several roster rows (owner, co-owner, tenant), and each
row carries a free-text sticker column such as "S101, S102" or "S7|S8". The
grid shows, per flat, the union of all codes across its rows.

Design goals
------------
- Same axes as the payment matrix (extract_blocks_and_flats), so the two
  grids line up row for row.
- Never raises. A non-list roster gives an empty grid with a warning; a cell
  that cannot be built falls back to an empty cell.
- Every cell lands in exactly one class:
    0 codes  -> unassigned_flats, value None
    1 code   -> value = the code
    2+ codes -> multiple_stickers, value = codes joined with ", "

Public API
----------
- build_sticker_matrix(owners) -> StickerMatrixData
- summarize_sticker_assignments(owners) -> dict
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

import pandas as pd

from ..config import STICKER_CONFIG, StickerConfig
from ..core.models import MatrixCell, StickerMatrixData, as_record_mapping
from ..core.normalizers import sort_identifiers, split_sticker_codes
from ..core.validators import extract_blocks_and_flats

logger = logging.getLogger(__name__)


def _group_sticker_codes(
    owners: Sequence[Any],
    issues: list[str],
) -> dict[tuple[str, str], set[str]]:
    """Union of sticker codes per (block, flat) across placeable owners."""
    codes_by_flat: dict[tuple[str, str], set[str]] = {}

    for index, owner in enumerate(owners):
        record = as_record_mapping(owner)
        if record is None:
            continue    # already reported by extract_blocks_and_flats

        block, flat = record.get("block_number"), record.get("flat_number")
        if not (isinstance(block, str) and block.strip() and isinstance(flat, str) and flat.strip()):
            continue

        codes = codes_by_flat.setdefault((block, flat), set())

        raw = record.get("sticker_nos")
        if raw is None:
            continue
        if not isinstance(raw, str):
            issues.append(
                f"Owner {index}: sticker_nos is not a string ({type(raw).__name__}), ignored"
            )
            continue

        codes.update(split_sticker_codes(raw))

    return codes_by_flat


def _sticker_cell(
    block: str,
    flat: str,
    codes: set[str],
    cfg: StickerConfig,
) -> MatrixCell:
    ordered = sorted(codes)
    if not ordered:
        value = None
    elif len(ordered) == 1:
        value = ordered[0]
    else:
        value = cfg.display_separator.join(ordered)
    return MatrixCell(
        block_number=block,
        flat_number=flat,
        value=value,
        metadata={"sticker_count": len(ordered)},
    )


def build_sticker_matrix(
        owners: Sequence[Any],
        cfg: StickerConfig = STICKER_CONFIG,
) -> StickerMatrixData:
    """
    Build the sticker assignment grid for the whole roster.

    Args:
        owners:
            Owner roster (OwnerRecord models or mappings). Owners without a
            usable block_number / flat_number are skipped with a warning.

    Returns:
        StickerMatrixData with a cell for every block x flat pair, the
        "{block}-{flat}" keys of unassigned and multi-sticker flats, and
        the data-quality warnings.
    """
    if not isinstance(owners, (list, tuple)):
        return StickerMatrixData(
            blocks=[],
            flats=[],
            cells=[],
            unassigned_flats=[],
            multiple_stickers=[],
            warnings=[f"Owners: expected a list, got {type(owners).__name__}"],
        )

    axes = extract_blocks_and_flats(owners)
    issues: list[str] = list(axes.warnings)
    codes_by_flat = _group_sticker_codes(owners, issues)

    cells: list[list[MatrixCell]] = []
    unassigned: list[str] = []
    multiple: list[str] = []

    for block in axes.blocks:
        row: list[MatrixCell] = []
        for flat in axes.flats:
            try:
                cell = _sticker_cell(block, flat, codes_by_flat.get((block, flat), set()), cfg)
            except Exception as exc:
                logger.warning(f"Sticker cell {block}-{flat} could not be built: {exc!r}")
                issues.append(f"Flat {block}-{flat}: sticker cell could not be built ({exc})")
                cell = MatrixCell(
                    block_number=block,
                    flat_number=flat,
                    value=None,
                    metadata={"sticker_count": 0},
                )

            count = cell.metadata["sticker_count"]
            if count == 0:
                unassigned.append(cell.key)
            elif count > 1:
                multiple.append(cell.key)

            row.append(cell)
        cells.append(row)

    return StickerMatrixData(
        blocks=axes.blocks,
        flats=axes.flats,
        cells=cells,
        unassigned_flats=unassigned,
        multiple_stickers=multiple,
        warnings=issues,
    )


def summarize_sticker_assignments(owners: Sequence[Any]) -> dict[str, Any]:
    """
    Roster-level sticker statistics.

    Counts are per distinct (block, flat) that appears on the roster, not per
    grid cell, so a block/flat pair nobody lives in is not counted as
    unassigned here.

    Returns a dict with:
        total_flats, assigned_flats, unassigned_flats, multiple_stickers,
        total_stickers, unique_blocks, stickers_by_block,
        assignments_by_block ({block: {"assigned": n, "total": n}}),
        assignment_rate (percent, rounded)
    """
    issues: list[str] = []
    codes_by_flat = _group_sticker_codes(owners if isinstance(owners, (list, tuple)) else [], issues)

    df = pd.DataFrame(
        [
            {"block_number": block, "flat_number": flat, "sticker_count": len(codes)}
            for (block, flat), codes in codes_by_flat.items()
        ],
        columns=["block_number", "flat_number", "sticker_count"],
    )
    df["assigned"] = df["sticker_count"] > 0

    total_flats = len(df)
    assigned_flats = int(df["assigned"].sum())

    by_block = df.groupby("block_number").agg(
        stickers=("sticker_count", "sum"),
        assigned=("assigned", "sum"),
        total=("flat_number", "size"),
    )
    blocks = sort_identifiers(by_block.index)

    return {
        "total_flats": total_flats,
        "assigned_flats": assigned_flats,
        "unassigned_flats": total_flats - assigned_flats,
        "multiple_stickers": int((df["sticker_count"] > 1).sum()),
        "total_stickers": int(df["sticker_count"].sum()),
        "unique_blocks": len(blocks),
        "stickers_by_block": {b: int(by_block.at[b, "stickers"]) for b in blocks},
        "assignments_by_block": {
            b: {"assigned": int(by_block.at[b, "assigned"]), "total": int(by_block.at[b, "total"])}
            for b in blocks
        },
        "assignment_rate": round(assigned_flats / total_flats * 100) if total_flats else 0,
    }
