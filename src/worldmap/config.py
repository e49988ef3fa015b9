"""Typed configuration loader for `config.yaml`.

Every section is optional; missing keys fall back to the documented defaults
below so an empty file yields `MapConfig.default()`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, cast

import yaml

from .models import FilterCriteria, Margins


_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def _mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"Expected mapping for '{field_name}'")
    return cast(Mapping[str, Any], value)


def _str(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected non-empty string for '{field_name}'")
    return value.strip()


def _optional_str(value: Any, field_name: str) -> str | None:
    if value is None:
        return None
    return _str(value, field_name)


def _int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Expected integer for '{field_name}'")
    return value


def _float(value: Any, field_name: str) -> float:
    if isinstance(value, bool):
        raise ValueError(f"Expected float for '{field_name}'")
    if isinstance(value, (int, float)):
        return float(value)
    raise ValueError(f"Expected float for '{field_name}'")


def _color(value: Any, field_name: str) -> str:
    raw = _str(value, field_name)
    if not _HEX_COLOR.match(raw) and raw.casefold() not in {"white", "black", "none", "transparent"}:
        raise ValueError(f"Expected hex color like '#a62bff' for '{field_name}', got '{raw}'")
    return raw


def _path_from_cfg(value: Any, field_name: str, root_dir: Path) -> Path:
    raw = _str(value, field_name)
    p = Path(raw)
    return p if p.is_absolute() else root_dir / p


@dataclass(frozen=True, slots=True)
class PathsConfig:
    geometry: Path
    dataset: Path
    output_dir: Path
    logs_dir: Path

    @property
    def required_input_files(self) -> tuple[Path, ...]:
        return (self.geometry, self.dataset)

    @property
    def build_directories(self) -> tuple[Path, ...]:
        return (self.output_dir, self.logs_dir)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], root_dir: Path) -> PathsConfig:
        return cls(
            geometry=_path_from_cfg(
                raw.get("geometry", "data/countries.geojson"), "paths.geometry", root_dir
            ),
            dataset=_path_from_cfg(raw.get("dataset", "data/iop.csv"), "paths.dataset", root_dir),
            output_dir=_path_from_cfg(raw.get("output_dir", "build"), "paths.output_dir", root_dir),
            logs_dir=_path_from_cfg(raw.get("logs_dir", "build/logs"), "paths.logs_dir", root_dir),
        )


@dataclass(frozen=True, slots=True)
class ViewportConfig:
    """Container policy: width follows the host, height is fixed."""

    initial_width: float = 800.0
    height: float = 600.0
    margins: Margins = Margins()

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> ViewportConfig:
        margins_raw = _mapping(raw.get("margins"), "viewport.margins")
        initial_width = _float(raw.get("initial_width", 800.0), "viewport.initial_width")
        height = _float(raw.get("height", 600.0), "viewport.height")
        if initial_width <= 0 or height <= 0:
            raise ValueError("viewport.initial_width and viewport.height must be > 0")
        margins = Margins(
            top=_float(margins_raw.get("top", 20.0), "viewport.margins.top"),
            right=_float(margins_raw.get("right", 20.0), "viewport.margins.right"),
            bottom=_float(margins_raw.get("bottom", 50.0), "viewport.margins.bottom"),
            left=_float(margins_raw.get("left", 40.0), "viewport.margins.left"),
        )
        return cls(initial_width=initial_width, height=height, margins=margins)


@dataclass(frozen=True, slots=True)
class ClampLatConfig:
    min: float = -85.0511287798
    max: float = 85.0511287798

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> ClampLatConfig:
        lo = _float(raw.get("min", -85.0511287798), "projection.clamp_lat.min")
        hi = _float(raw.get("max", 85.0511287798), "projection.clamp_lat.max")
        if not (-90.0 < lo < hi < 90.0):
            raise ValueError("projection.clamp_lat must satisfy -90 < min < max < 90")
        return cls(min=lo, max=hi)


@dataclass(frozen=True, slots=True)
class ProjectionConfig:
    crs: str = "EPSG:3857"
    clamp_lat: ClampLatConfig = ClampLatConfig()

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> ProjectionConfig:
        return cls(
            crs=_str(raw.get("crs", "EPSG:3857"), "projection.crs"),
            clamp_lat=ClampLatConfig.from_mapping(
                _mapping(raw.get("clamp_lat"), "projection.clamp_lat")
            ),
        )


@dataclass(frozen=True, slots=True)
class ScaleConfig:
    """Color scale options.

    `interpolator` names either the built-in `yellow_purple` gradient or any
    matplotlib colormap. `start_color`/`end_color` override the gradient
    endpoints and take precedence over the named interpolator.
    """

    interpolator: str = "yellow_purple"
    start_color: str | None = None
    end_color: str | None = None
    neutral_color: str = "#bdbdbd"

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> ScaleConfig:
        start = raw.get("start_color")
        end = raw.get("end_color")
        if (start is None) != (end is None):
            raise ValueError("scale.start_color and scale.end_color must be given together")
        return cls(
            interpolator=_str(raw.get("interpolator", "yellow_purple"), "scale.interpolator"),
            start_color=_color(start, "scale.start_color") if start is not None else None,
            end_color=_color(end, "scale.end_color") if end is not None else None,
            neutral_color=_color(raw.get("neutral_color", "#bdbdbd"), "scale.neutral_color"),
        )


@dataclass(frozen=True, slots=True)
class StyleConfig:
    no_data_fill: str = "#ddd"
    stroke: str = "#777"
    stroke_width: float = 1.0

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> StyleConfig:
        return cls(
            no_data_fill=_color(raw.get("no_data_fill", "#ddd"), "style.no_data_fill"),
            stroke=_color(raw.get("stroke", "#777"), "style.stroke"),
            stroke_width=_float(raw.get("stroke_width", 1.0), "style.stroke_width"),
        )


@dataclass(frozen=True, slots=True)
class LegendConfig:
    cells: int = 10
    shape_width: float = 50.0
    shape_height: float = 15.0
    shape_padding: float = 2.0
    label_offset: float = 10.0
    bottom_offset: float = 40.0
    decimals: int = 2

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> LegendConfig:
        cells = _int(raw.get("cells", 10), "legend.cells")
        decimals = _int(raw.get("decimals", 2), "legend.decimals")
        if cells < 1:
            raise ValueError("legend.cells must be >= 1")
        if decimals < 0:
            raise ValueError("legend.decimals must be >= 0")
        return cls(
            cells=cells,
            shape_width=_float(raw.get("shape_width", 50.0), "legend.shape_width"),
            shape_height=_float(raw.get("shape_height", 15.0), "legend.shape_height"),
            shape_padding=_float(raw.get("shape_padding", 2.0), "legend.shape_padding"),
            label_offset=_float(raw.get("label_offset", 10.0), "legend.label_offset"),
            bottom_offset=_float(raw.get("bottom_offset", 40.0), "legend.bottom_offset"),
            decimals=decimals,
        )


@dataclass(frozen=True, slots=True)
class RasterConfig:
    dpi: int = 100
    background: str = "white"

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> RasterConfig:
        dpi = _int(raw.get("dpi", 100), "raster.dpi")
        if dpi < 1:
            raise ValueError("raster.dpi must be >= 1")
        return cls(dpi=dpi, background=_color(raw.get("background", "white"), "raster.background"))


@dataclass(frozen=True, slots=True)
class MapConfig:
    source_path: Path | None
    paths: PathsConfig
    viewport: ViewportConfig
    projection: ProjectionConfig
    scale: ScaleConfig
    style: StyleConfig
    legend: LegendConfig
    raster: RasterConfig
    filters: FilterCriteria

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], source_path: Path | None = None) -> MapConfig:
        root_dir = source_path.parent.resolve() if source_path is not None else Path.cwd()
        filters_raw = _mapping(raw.get("filters"), "filters")
        for key in ("perspective", "measure", "approach", "variable"):
            _optional_str(filters_raw.get(key), f"filters.{key}")
        return cls(
            source_path=source_path.resolve() if source_path is not None else None,
            paths=PathsConfig.from_mapping(_mapping(raw.get("paths"), "paths"), root_dir),
            viewport=ViewportConfig.from_mapping(_mapping(raw.get("viewport"), "viewport")),
            projection=ProjectionConfig.from_mapping(_mapping(raw.get("projection"), "projection")),
            scale=ScaleConfig.from_mapping(_mapping(raw.get("scale"), "scale")),
            style=StyleConfig.from_mapping(_mapping(raw.get("style"), "style")),
            legend=LegendConfig.from_mapping(_mapping(raw.get("legend"), "legend")),
            raster=RasterConfig.from_mapping(_mapping(raw.get("raster"), "raster")),
            filters=FilterCriteria.from_mapping(filters_raw),
        )

    @classmethod
    def default(cls) -> MapConfig:
        return cls.from_mapping({})


def load_config(path: str | Path) -> MapConfig:
    """Load and validate the YAML config file into typed settings."""
    cfg_path = Path(path).resolve()
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise ValueError("Top-level config must be a YAML mapping")
    return MapConfig.from_mapping(cast(Mapping[str, Any], raw), cfg_path)
