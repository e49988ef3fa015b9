"""Headless render pipeline: load inputs, drive a MapView, export the surface."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from .config import MapConfig
from .dataset import load_stat_rows
from .io_geo import GeoJsonRepository
from .join import matched_count
from .models import FilterCriteria, RenderManifest
from .orchestrator import MapView, ViewState
from .raster import write_png
from .svg import write_svg
from .util import sha256_file, sha256_text, write_json


_LOGGER = logging.getLogger("worldmap.render")

OUTPUT_FORMATS = ("svg", "png")


@dataclass(slots=True)
class RenderReport:
    output_path: Path | None = None
    manifest_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    infos: list[str] = field(default_factory=list)
    summary: dict[str, int] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)

    def add_info(self, msg: str) -> None:
        self.infos.append(msg)


def resolve_filters(cfg: MapConfig, overrides: FilterCriteria) -> FilterCriteria:
    """Command-line values win over the config's default filters."""
    base = cfg.filters
    return FilterCriteria(
        perspective=overrides.perspective or base.perspective,
        measure=overrides.measure or base.measure,
        approach=overrides.approach or base.approach,
        variable=overrides.variable or base.variable,
    )


def run_render(
    cfg: MapConfig,
    *,
    filters: FilterCriteria,
    width: float | None = None,
    output_format: str = "svg",
    output_path: Path | None = None,
    write_manifest: bool = True,
) -> RenderReport:
    """Render one choropleth for `filters` and write it as SVG or PNG."""
    report = RenderReport()
    fmt = output_format.strip().casefold()
    if fmt not in OUTPUT_FORMATS:
        report.add_error(f"Unsupported output format '{output_format}'; use one of {OUTPUT_FORMATS}")
        return report
    if not filters.is_complete:
        report.add_error(f"Filters are incomplete (missing: {', '.join(filters.missing_fields)})")
        return report
    if width is not None and width <= 0:
        report.add_error("width must be > 0 when provided.")
        return report

    try:
        rows = load_stat_rows(cfg.paths.dataset)
    except Exception as exc:
        report.add_error(f"Failed loading dataset '{cfg.paths.dataset}': {exc}")
        return report
    report.add_info(f"Loaded {len(rows)} dataset rows from {cfg.paths.dataset}")

    repo = GeoJsonRepository(cfg.paths.geometry)
    view = MapView(cfg)
    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="worldmap-geometry") as pool, view:
        future = repo.load_async(pool)
        # Settle before mounting so the completion callback runs on this thread.
        wait([future])
        view.mount(future)
        if view.geometry_failed:
            report.add_error(
                f"Failed loading geometry file '{cfg.paths.geometry}': {future.exception()}"
            )
            return report
        report.add_info(f"Loaded {len(view.features)} geometry features from {cfg.paths.geometry}")

        if width is not None:
            view.resize(width)
        view.set_data(rows)
        view.set_filters(filters)
        last_pass = view.last_pass
        if view.state is not ViewState.RENDERED or last_pass is None:
            report.add_error("Map was not rendered; check data and filters.")
            return report

        rendered = view.snapshot()
        matched = matched_count(last_pass.joined)
        report.summary = {
            "features": len(rendered.shapes),
            "filtered_rows": len(last_pass.filtered),
            "matched_features": matched,
            "no_data_features": len(rendered.shapes) - matched,
            "legend_cells": len(last_pass.legend.cells),
        }
        if not last_pass.filtered:
            report.add_warning("Filters selected no rows; every country is drawn as no data.")
        report.add_info(
            f"Joined {matched}/{len(rendered.shapes)} features "
            f"({len(last_pass.filtered)} filtered rows)"
        )

        target = output_path or cfg.paths.output_dir / f"map.{fmt}"
        try:
            if fmt == "svg":
                write_svg(rendered, target)
            else:
                write_png(rendered, target, cfg.raster)
        except Exception as exc:
            report.add_error(f"Failed writing {fmt.upper()} output '{target}': {exc}")
            return report
        report.output_path = target
        report.add_info(f"Map written to {target}")

        if write_manifest:
            manifest = RenderManifest.create(
                config_hash_sha256=(
                    sha256_file(cfg.source_path)
                    if cfg.source_path is not None and cfg.source_path.exists()
                    else sha256_text(repr(cfg))
                ),
                inputs={
                    "dataset": str(cfg.paths.dataset),
                    "dataset_sha256": sha256_file(cfg.paths.dataset),
                    "geometry": str(cfg.paths.geometry),
                    "geometry_sha256": sha256_file(cfg.paths.geometry),
                },
                filters=filters,
                counts=report.summary,
                domain=last_pass.scale.domain,
                artifacts={"map": str(target)},
            )
            manifest_path = target.with_name(f"{target.stem}_manifest.json")
            write_json(manifest_path, manifest.to_dict())
            report.manifest_path = manifest_path
            _LOGGER.debug("Render manifest written to %s", manifest_path)
    return report


def format_render_lines(report: RenderReport) -> Sequence[str]:
    lines: list[str] = []
    lines.extend(f"[INFO] {msg}" for msg in report.infos)
    lines.extend(f"[WARN] {msg}" for msg in report.warnings)
    lines.extend(f"[ERROR] {msg}" for msg in report.errors)
    if report.ok:
        lines.append("[OK] Map rendering completed with no errors.")
    return lines
