"""CLI entrypoint for the worldmap choropleth renderer."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

from .config import MapConfig, load_config
from .dataset import load_stat_rows
from .models import FilterCriteria
from .render import OUTPUT_FORMATS, format_render_lines, resolve_filters, run_render
from .table import LATEST_YEAR, SortConfig, TableFilters, country_row, filter_table, write_table_html
from .util import ensure_directories, setup_logging
from .validate import Validator, format_report_lines

LOGGER = logging.getLogger("worldmap.cli")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="worldmap",
        description="Choropleth world map renderer.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--config", default="config.yaml", help="Path to YAML config.")
        p.add_argument("--verbose", action="store_true", help="Enable debug logs.")

    render_p = subparsers.add_parser("render", help="Render one choropleth map.")
    add_common(render_p)
    render_p.add_argument("--perspective", default=None, help="Perspective filter value.")
    render_p.add_argument("--measure", default=None, help="Measure filter value.")
    render_p.add_argument("--approach", default=None, help="Approach filter value.")
    render_p.add_argument(
        "--variable",
        default=None,
        help="Variable filter value; 'Both' matches every variable.",
    )
    render_p.add_argument(
        "--width",
        type=float,
        default=None,
        help="Container width in pixels (defaults to viewport.initial_width).",
    )
    render_p.add_argument(
        "--format",
        dest="output_format",
        choices=OUTPUT_FORMATS,
        default="svg",
        help="Output format.",
    )
    render_p.add_argument(
        "--output",
        default=None,
        help="Output file (defaults to <output_dir>/map.<format>).",
    )

    table_p = subparsers.add_parser("table", help="Write the companion HTML table.")
    add_common(table_p)
    table_p.add_argument("--measure", required=True, help="Measure filter value.")
    table_p.add_argument("--approach", required=True, help="Approach filter value.")
    table_p.add_argument(
        "--year",
        default=LATEST_YEAR,
        help=f"Year filter; '{LATEST_YEAR}' keeps rows flagged latest.",
    )
    table_p.add_argument(
        "--region",
        action="append",
        default=[],
        help="Region to include. Can be repeated.",
    )
    table_p.add_argument("--sort-key", default="name", help="StatRow attribute to sort by.")
    table_p.add_argument(
        "--sort-direction",
        choices=("ascending", "descending"),
        default="ascending",
        help="Sort direction.",
    )
    table_p.add_argument(
        "--country",
        default=None,
        help="ISO3 code; also log the single row for this country and --year.",
    )
    table_p.add_argument(
        "--output",
        default=None,
        help="Output HTML file (defaults to <output_dir>/table.html).",
    )

    validate_p = subparsers.add_parser("validate", help="Validate config and input files.")
    add_common(validate_p)

    return parser


def _load_and_setup(args: argparse.Namespace) -> MapConfig:
    cfg = load_config(args.config)
    log_path = cfg.paths.logs_dir / "worldmap.log"
    setup_logging(log_path, verbose=args.verbose)
    ensure_directories(cfg.paths.build_directories)
    return cfg


def _run_validate(cfg: MapConfig) -> int:
    report = Validator(cfg).run()
    for line in format_report_lines(report):
        LOGGER.info(line)
    return 0 if report.ok else 1


def _run_render(cfg: MapConfig, args: argparse.Namespace) -> int:
    filters = resolve_filters(
        cfg,
        FilterCriteria.from_mapping(
            {
                "perspective": args.perspective,
                "measure": args.measure,
                "approach": args.approach,
                "variable": args.variable,
            }
        ),
    )
    report = run_render(
        cfg,
        filters=filters,
        width=args.width,
        output_format=str(args.output_format),
        output_path=Path(args.output) if args.output else None,
    )
    for line in format_render_lines(report):
        LOGGER.info(line)
    return 0 if report.ok else 1


def _run_table(cfg: MapConfig, args: argparse.Namespace) -> int:
    try:
        sort = SortConfig(key=str(args.sort_key), direction=str(args.sort_direction))
        rows = load_stat_rows(cfg.paths.dataset)
    except (FileNotFoundError, ValueError) as exc:
        LOGGER.error("Table view failed: %s", exc)
        return 1

    filters = TableFilters.from_mapping(
        {
            "measure": args.measure,
            "approach": args.approach,
            "year": args.year,
            "regions": list(args.region),
        }
    )
    if not filters.regions:
        LOGGER.warning("No --region given; the table will be empty.")
    selected = filter_table(rows, filters, sort)
    output_html = Path(args.output) if args.output else cfg.paths.output_dir / "table.html"
    write_table_html(selected, output_html, title=f"{filters.measure} / {filters.approach}")
    LOGGER.info("Table with %d rows written to %s", len(selected), output_html)

    if args.country:
        row = country_row(rows, str(args.country), str(args.year))
        if row is not None:
            LOGGER.info(
                "%s (%s) %s: %s",
                row.name,
                row.country_code,
                row.year,
                f"{row.value:.2f}" if row.has_value else "n/a",
            )
    return 0


def _dispatch(args: argparse.Namespace) -> int:
    cfg = _load_and_setup(args)
    command = str(args.command)
    if command == "render":
        return _run_render(cfg, args)
    if command == "table":
        return _run_table(cfg, args)
    if command == "validate":
        return _run_validate(cfg)
    raise ValueError(f"Unknown command: {command}")


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        return _dispatch(args)
    except (FileNotFoundError, ValueError) as exc:
        setup_logging(verbose=bool(getattr(args, "verbose", False)))
        LOGGER.error("%s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
