"""
cli.py

Command-line entrypoint: property-matrix {amc,stickers,years,master,sample}.

Data comes from the live Google spreadsheet (credentials from the
environment, see config.SheetsConfig.from_env) unless --workbook points at a
local .xlsx export or --sample uses the bundled sample workbook.

Examples:
    property-matrix sample
    property-matrix years --sample
    property-matrix master --sample
    property-matrix amc --sample --year 2024 --format csv
    property-matrix stickers --workbook exports/society.xlsx --plot
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .config import REPORTS_FIGURES_DIR
from .core.generate_sample_data import DEFAULT_SEED, generate_sample_data
from .core.normalizers import fiscal_year_label
from .load_data import SAMPLE_WORKBOOK
from .outputs.export_utils import write_matrix_csv, write_matrix_excel
from .services import AmcDataService, DataServiceError, StickerDataService
from .sources.sheets_client import SheetsApiError, SheetsClient
from .sources.workbook import WorkbookSource

logger = logging.getLogger(__name__)


def _build_source(args: argparse.Namespace):
    if args.workbook is not None:
        return WorkbookSource(args.workbook)
    if args.sample:
        if not SAMPLE_WORKBOOK.exists():
            logger.info(f"Sample workbook missing, generating {SAMPLE_WORKBOOK}")
            generate_sample_data(SAMPLE_WORKBOOK.parent)
        return WorkbookSource(SAMPLE_WORKBOOK)
    return SheetsClient()


def _write_matrix(matrix, args: argparse.Namespace) -> Path:
    if args.format == "csv":
        return write_matrix_csv(matrix, args.output)
    return write_matrix_excel(matrix, args.output)


def _save_figure(fig, name: str) -> Path:
    REPORTS_FIGURES_DIR.mkdir(parents=True, exist_ok=True)
    path = REPORTS_FIGURES_DIR / name
    fig.savefig(path, bbox_inches="tight")
    return path


def _report_warnings(warnings: list[str]) -> None:
    if not warnings:
        return
    print(f"{len(warnings)} data-quality warning(s):")
    for message in warnings:
        print(f"  - {message}")


def _cmd_years(args: argparse.Namespace) -> int:
    with AmcDataService(_build_source(args)) as service:
        payload = service.load()
    years = payload["data"]["available_years"]
    if not years:
        print("No fiscal years with AMC receipts.")
        return 0
    for year in years:
        print(f"{year}  {fiscal_year_label(year)}")
    return 0


def _cmd_amc(args: argparse.Namespace) -> int:
    with AmcDataService(_build_source(args)) as service:
        matrix = service.build_matrix(args.year)

    print(
        f"AMC matrix {fiscal_year_label(int(matrix.selected_year))}: "
        f"{len(matrix.blocks)} blocks x {len(matrix.flats)} flats, "
        f"grand total {matrix.grand_total:,}"
    )
    _report_warnings(matrix.warnings)

    path = _write_matrix(matrix, args)
    print(f"Wrote AMC matrix to: {path}")

    if args.plot:
        # imported lazily so the plain export path does not need a display backend
        import matplotlib
        matplotlib.use("Agg")
        from .visualization.matrix_visualization import (
            build_collection_summary,
            plot_collection_summary,
            plot_payment_matrix,
        )

        fig, _ = plot_payment_matrix(matrix)
        print(f"Wrote heatmap to: {_save_figure(fig, f'amc_matrix_{matrix.selected_year}.png')}")
        fig, _ = plot_collection_summary(build_collection_summary(matrix))
        print(f"Wrote summary chart to: {_save_figure(fig, f'amc_collection_{matrix.selected_year}.png')}")
    return 0


def _cmd_stickers(args: argparse.Namespace) -> int:
    with StickerDataService(_build_source(args)) as service:
        matrix = service.build_matrix()

    print(
        f"Sticker matrix: {len(matrix.blocks)} blocks x {len(matrix.flats)} flats, "
        f"{len(matrix.unassigned_flats)} unassigned, "
        f"{len(matrix.multiple_stickers)} with multiple stickers"
    )
    _report_warnings(matrix.warnings)

    path = _write_matrix(matrix, args)
    print(f"Wrote sticker matrix to: {path}")

    if args.plot:
        import matplotlib
        matplotlib.use("Agg")
        from .visualization.matrix_visualization import plot_sticker_matrix

        fig, _ = plot_sticker_matrix(matrix)
        print(f"Wrote heatmap to: {_save_figure(fig, 'sticker_matrix.png')}")
    return 0


def _cmd_master(args: argparse.Namespace) -> int:
    source = _build_source(args)
    try:
        master = source.fetch_master_data()
    finally:
        if isinstance(source, SheetsClient):
            source.close()

    blocks = master["block_options"]
    print(f"Blocks: {', '.join(blocks) if blocks else '(none)'}")
    for block in blocks:
        flats = master["flats_by_block"][block]
        print(f"  {block}: {len(flats)} flats ({', '.join(flats)})")
    print(f"Last updated: {master['last_updated'] or 'unknown'}")
    return 0


def _cmd_sample(args: argparse.Namespace) -> int:
    kwargs = {"seed": args.seed}
    if args.output_dir is not None:
        kwargs["output_dir"] = args.output_dir
    path = generate_sample_data(**kwargs)
    print(f"Wrote sample workbook to: {path}")
    return 0


def _add_source_args(parser: argparse.ArgumentParser) -> None:
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--workbook", type=Path, default=None, help="Local .xlsx export to read instead of Google Sheets")
    group.add_argument("--sample", action="store_true", help="Read the bundled sample workbook")


def _add_export_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--format", choices=["xlsx", "csv"], default="xlsx", help="Export format")
    parser.add_argument("--output", type=Path, default=None, help="Output file (default: timestamped under reports/outputs)")
    parser.add_argument("--plot", action="store_true", help="Also save heatmap figures under reports/figures")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="property-matrix",
        description="Build AMC payment and vehicle sticker matrices from the society spreadsheet.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    amc = sub.add_parser("amc", help="Build the AMC payment matrix for one fiscal year")
    _add_source_args(amc)
    _add_export_args(amc)
    amc.add_argument("--year", type=int, default=None, help="Fiscal year start, e.g. 2024 for FY 2024-25 (default: latest)")
    amc.set_defaults(func=_cmd_amc)

    stickers = sub.add_parser("stickers", help="Build the vehicle sticker matrix")
    _add_source_args(stickers)
    _add_export_args(stickers)
    stickers.set_defaults(func=_cmd_stickers)

    years = sub.add_parser("years", help="List fiscal years that have AMC receipts")
    _add_source_args(years)
    years.set_defaults(func=_cmd_years)

    master = sub.add_parser("master", help="Show the block / flat lookup from the MasterData tab")
    _add_source_args(master)
    master.set_defaults(func=_cmd_master)

    sample = sub.add_parser("sample", help="Generate the synthetic sample workbook")
    sample.add_argument("--seed", type=int, default=DEFAULT_SEED, help="Deterministic RNG seed")
    sample.add_argument("--output-dir", type=Path, default=None, help="Destination directory")
    sample.set_defaults(func=_cmd_sample)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        return args.func(args)
    except DataServiceError as exc:
        logger.error(f"{exc.code}: {exc.message}")
        print(f"Error ({exc.code}): {exc.message}", file=sys.stderr)
        return 1
    except SheetsApiError as exc:
        logger.error(f"{exc.code}: {exc.message}")
        print(f"Error ({exc.code}): {exc.message}", file=sys.stderr)
        return 1
    except (FileNotFoundError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
