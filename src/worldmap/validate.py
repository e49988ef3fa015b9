"""Validation layer for config and input datasets."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from .config import MapConfig
from .dataset import load_stat_rows
from .filtering import filter_rows
from .io_geo import GeoJsonRepository, exclude_antarctica
from .join import duplicate_country_codes
from .models import GeoFeature, StatRow


@dataclass(slots=True)
class ValidationReport:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    infos: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)

    def add_info(self, msg: str) -> None:
        self.infos.append(msg)


class Validator:
    """Top-level input and schema validator."""

    def __init__(self, cfg: MapConfig) -> None:
        self.cfg = cfg

    def run(self) -> ValidationReport:
        report = ValidationReport()
        self._validate_config_paths(report)
        rows = self._validate_dataset(report)
        features = self._validate_geometry(report)
        if rows and features:
            self._validate_coverage(report, rows=rows, features=features)
        if rows:
            self._validate_filtered_duplicates(report, rows=rows)
        return report

    def _validate_config_paths(self, report: ValidationReport) -> None:
        for path in self.cfg.paths.required_input_files:
            if not path.exists():
                report.add_error(f"Missing required input file: {path}")

    def _validate_dataset(self, report: ValidationReport) -> list[StatRow]:
        path = self.cfg.paths.dataset
        if not path.exists():
            return []
        try:
            rows = load_stat_rows(path)
        except Exception as exc:
            report.add_error(f"Failed parsing dataset '{path}': {exc}")
            return []
        if not rows:
            report.add_warning(f"Dataset file has no rows: {path}")
            return []
        report.add_info(f"Loaded {len(rows)} dataset rows from {path}")
        latest = sum(1 for row in rows if row.latest_flag == 1)
        if latest == 0:
            report.add_warning("Dataset has no rows flagged latest=1; the map will always be empty.")
        missing_values = sum(1 for row in rows if not row.has_value)
        if missing_values:
            report.add_info(f"{missing_values} dataset rows carry no numeric value")
        return rows

    def _validate_geometry(self, report: ValidationReport) -> list[GeoFeature]:
        path = self.cfg.paths.geometry
        if not path.exists():
            return []
        try:
            features = GeoJsonRepository(path).load_features()
        except Exception as exc:
            report.add_error(f"Failed parsing geometry file '{path}': {exc}")
            return []
        if not features:
            report.add_error(f"Geometry file has no features: {path}")
            return []
        kept = exclude_antarctica(features)
        report.add_info(
            f"Loaded {len(features)} geometry features from {path} "
            f"({len(features) - len(kept)} excluded)"
        )
        without_code = sorted(feature.name for feature in kept if not feature.iso3)
        if without_code:
            report.add_warning(
                f"{len(without_code)} features have no usable ISO alpha-3 code: "
                f"{_format_code_list(without_code)}"
            )
        return list(kept)

    def _validate_coverage(
        self,
        report: ValidationReport,
        *,
        rows: Sequence[StatRow],
        features: Sequence[GeoFeature],
    ) -> None:
        geometry_codes = {feature.iso3 for feature in features if feature.iso3}
        dataset_codes = {row.country_code for row in rows if row.country_code}
        unmatched = sorted(dataset_codes - geometry_codes)
        if unmatched:
            report.add_warning(
                f"{len(unmatched)} dataset country codes have no geometry: "
                f"{_format_code_list(unmatched)}"
            )
        report.add_info(
            f"Join coverage: {len(dataset_codes & geometry_codes)}/{len(geometry_codes)} "
            "geometry features have at least one dataset row"
        )

    def _validate_filtered_duplicates(
        self,
        report: ValidationReport,
        *,
        rows: Sequence[StatRow],
    ) -> None:
        criteria = self.cfg.filters
        if not criteria.is_complete:
            report.add_info(
                "Config filters incomplete; skipped duplicate check "
                f"(missing: {', '.join(criteria.missing_fields)})"
            )
            return
        filtered = filter_rows(rows, criteria)
        report.add_info(f"Config filters select {len(filtered)} rows")
        duplicates = duplicate_country_codes(filtered)
        if duplicates:
            report.add_warning(
                f"Config filters select several rows for {len(duplicates)} countries; "
                f"only the first is drawn: {_format_code_list(duplicates)}"
            )


def _format_code_list(values: list[str], limit: int = 12) -> str:
    if len(values) <= limit:
        return ", ".join(values)
    return ", ".join(values[:limit]) + f", ... (+{len(values) - limit} more)"


def format_report_lines(report: ValidationReport) -> Iterable[str]:
    if report.infos:
        for info in report.infos:
            yield f"[INFO] {info}"
    if report.warnings:
        for warning in report.warnings:
            yield f"[WARN] {warning}"
    if report.errors:
        for error in report.errors:
            yield f"[ERROR] {error}"
    if report.ok:
        yield "[OK] Validation completed with no errors."

