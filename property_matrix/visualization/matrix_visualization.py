"""
matrix_visualization.py

Helpers for summarizing and visualizing payment / sticker matrices.
"""

from __future__ import annotations

from typing import Tuple

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from ..core.models import AmcMatrixData, StickerMatrixData
from ..core.normalizers import fiscal_year_label


SUMMARY_COLUMNS = [
    "block_number",
    "total_flats",
    "paid_flats",
    "unpaid_flats",
    "total_collected",
    "collection_rate",
]


def _validate_required_columns(df: pd.DataFrame, required_cols: list[str]) -> None:
    missing = [col for col in required_cols if col not in df.columns]
    if missing:
        missing_list = ", ".join(missing)
        raise ValueError(f"Missing required columns: {missing_list}")


def _empty_axes(ax: plt.Axes) -> None:
    ax.text(0.5, 0.5, "No data available", ha="center", va="center")
    ax.set_axis_off()


def build_collection_summary(matrix: AmcMatrixData) -> pd.DataFrame:
    """
    Per-block collection KPIs for one payment matrix.

    paid_flats counts cells with a value; collection_rate is paid / total
    (0.0 .. 1.0). Blocks keep the matrix order.
    """
    if not matrix.blocks:
        return pd.DataFrame(columns=SUMMARY_COLUMNS)

    rows = []
    for block, cells in zip(matrix.blocks, matrix.cells):
        total = len(cells)
        paid = sum(1 for cell in cells if cell.value is not None)
        rows.append(
            {
                "block_number": block,
                "total_flats": total,
                "paid_flats": paid,
                "unpaid_flats": total - paid,
                "total_collected": matrix.total_by_block.get(block, 0),
                "collection_rate": paid / total if total else 0.0,
            }
        )

    return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)


def plot_collection_summary(summary_df: pd.DataFrame) -> Tuple[plt.Figure, plt.Axes]:
    """Horizontal bars of collection rate per block, labelled with paid/total."""

    _validate_required_columns(summary_df, ["block_number", "paid_flats", "total_flats", "collection_rate"])

    fig, ax = plt.subplots(figsize=(8, max(3, 0.4 * len(summary_df) + 1)))
    if summary_df.empty:
        _empty_axes(ax)
        return fig, ax

    labels = [f"Block {b}" for b in summary_df["block_number"]]
    percents = summary_df["collection_rate"] * 100

    ax.barh(labels, percents, color="#72B7B2")
    ax.set_xlabel("Flats Paid (%)")
    ax.set_title("AMC Collection Rate by Block")
    ax.set_xlim(0, 110)
    ax.invert_yaxis()   # first block on top, same as the matrix

    for idx, (pct, paid, total) in enumerate(
        zip(percents, summary_df["paid_flats"], summary_df["total_flats"])
    ):
        ax.text(pct + 0.5, idx, f"{pct:.0f}% ({paid}/{total})", va="center")

    return fig, ax


def _heatmap(
    ax: plt.Axes,
    values: np.ndarray,
    blocks: list[str],
    flats: list[str],
    cmap: str,
    colorbar_label: str,
) -> None:
    # masked cells (no data) are drawn in the colormap's "bad" colour
    masked = np.ma.masked_invalid(values)
    image = ax.imshow(masked, cmap=cmap, aspect="auto")
    ax.set_xticks(range(len(flats)))
    ax.set_xticklabels(flats, rotation=90)
    ax.set_yticks(range(len(blocks)))
    ax.set_yticklabels(blocks)
    ax.set_xlabel("Flat")
    ax.set_ylabel("Block")
    ax.figure.colorbar(image, ax=ax, label=colorbar_label)


def plot_payment_matrix(matrix: AmcMatrixData) -> Tuple[plt.Figure, plt.Axes]:
    """Heatmap of amounts paid per block x flat; unpaid cells left blank."""

    fig, ax = plt.subplots(figsize=(max(6, 0.5 * len(matrix.flats) + 2), max(3, 0.4 * len(matrix.blocks) + 1)))
    if not matrix.blocks or not matrix.flats:
        _empty_axes(ax)
        return fig, ax

    values = np.array(
        [[float(cell.value) if cell.value is not None else np.nan for cell in row] for row in matrix.cells],
        dtype=float,
    )
    _heatmap(ax, values, matrix.blocks, matrix.flats, "Greens", "Amount paid")
    ax.set_title(f"AMC Payments {fiscal_year_label(int(matrix.selected_year))}")

    return fig, ax


def plot_sticker_matrix(matrix: StickerMatrixData) -> Tuple[plt.Figure, plt.Axes]:
    """Heatmap of sticker counts per block x flat."""

    fig, ax = plt.subplots(figsize=(max(6, 0.5 * len(matrix.flats) + 2), max(3, 0.4 * len(matrix.blocks) + 1)))
    if not matrix.blocks or not matrix.flats:
        _empty_axes(ax)
        return fig, ax

    values = np.array(
        [[cell.metadata["sticker_count"] if cell.metadata else 0 for cell in row] for row in matrix.cells],
        dtype=float,
    )
    _heatmap(ax, values, matrix.blocks, matrix.flats, "Blues", "Stickers")
    ax.set_title(
        f"Vehicle Stickers ({len(matrix.unassigned_flats)} unassigned, "
        f"{len(matrix.multiple_stickers)} with multiple)"
    )

    return fig, ax
