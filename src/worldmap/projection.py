"""Mercator projection fitted to the viewport, and per-feature path generation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Iterator, Sequence

from .config import ProjectionConfig
from .models import GeoFeature, Margins, ViewportDimensions


_LOGGER = logging.getLogger("worldmap.projection")

_Bounds = tuple[float, float, float, float]


@dataclass(frozen=True, slots=True)
class PathCommand:
    """One drawing command: "M" (move), "L" (line) or "Z" (close)."""

    op: str
    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True, slots=True)
class PathData:
    commands: tuple[PathCommand, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.commands

    def to_svg(self) -> str:
        parts: list[str] = []
        for cmd in self.commands:
            if cmd.op == "Z":
                parts.append("Z")
            else:
                parts.append(f"{cmd.op}{_fmt(cmd.x)},{_fmt(cmd.y)}")
        return "".join(parts)


@dataclass(frozen=True, slots=True)
class ProjectionFit:
    """Screen transform `(x, y) -> (tx + k*x, ty - k*y)` over projected metres."""

    scale: float
    translate: tuple[float, float]
    bounds: _Bounds | None


class PathGenerator:
    """Projects features through one fitted projection.

    A generator is only valid for the viewport and feature set it was fitted
    to; callers build a new one whenever either changes.
    """

    def __init__(self, fit: ProjectionFit, *, cfg: ProjectionConfig) -> None:
        self.fit = fit
        self.cfg = cfg
        self._transformer = _require_pyproj_transformer(cfg.crs)
        self._screen: dict[int, Any] = {}

    def project_point(self, lon: float, lat: float) -> tuple[float, float]:
        x, y = _project_lon_lat(lon, lat, self._transformer, self.cfg)
        k = self.fit.scale
        tx, ty = self.fit.translate
        return (tx + k * x, ty - k * y)

    def project_geometry(self, feature: GeoFeature) -> Any:
        """Screen-space shapely geometry for one feature, or None without geometry."""
        if not _is_valid_geometry(feature.geometry):
            return None
        cached = self._screen.get(feature.feature_id)
        if cached is not None:
            return cached
        projected = _project_geometry(feature.geometry, self._transformer, self.cfg)
        affine_transform = _require_shapely_affine()
        k = self.fit.scale
        tx, ty = self.fit.translate
        screen = affine_transform(projected, [k, 0.0, 0.0, -k, tx, ty])
        self._screen[feature.feature_id] = screen
        return screen

    def path(self, feature: GeoFeature) -> PathData:
        if not _is_valid_geometry(feature.geometry):
            return PathData()
        commands: list[PathCommand] = []
        for ring in _iter_linear_rings(self.project_geometry(feature)):
            points = list(ring)
            if len(points) > 1 and points[0] == points[-1]:
                points = points[:-1]
            if not points:
                continue
            x0, y0 = points[0]
            commands.append(PathCommand("M", x0, y0))
            for x, y in points[1:]:
                commands.append(PathCommand("L", x, y))
            commands.append(PathCommand("Z"))
        return PathData(tuple(commands))


def fit_projection(
    features: Sequence[GeoFeature],
    viewport: ViewportDimensions,
    margins: Margins,
    cfg: ProjectionConfig | None = None,
) -> PathGenerator:
    """Solve scale and translate so all features exactly fill `viewport - margins`."""
    cfg = cfg or ProjectionConfig()
    transformer = _require_pyproj_transformer(cfg.crs)
    bounds = _projected_bounds(features, transformer, cfg)

    x0 = margins.left
    y0 = margins.top
    width = max(viewport.width - margins.left - margins.right, 0.0)
    height = max(viewport.height - margins.top - margins.bottom, 0.0)

    if bounds is None:
        _LOGGER.debug("No geometry to fit; using identity projection scale")
        return PathGenerator(ProjectionFit(scale=1.0, translate=(x0, y0), bounds=None), cfg=cfg)

    min_x, min_y, max_x, max_y = bounds
    span_x = max_x - min_x
    span_y = max_y - min_y
    ratios = [size / span for size, span in ((width, span_x), (height, span_y)) if span > 0]
    k = min(ratios) if ratios else 1.0
    tx = x0 + (width - k * (min_x + max_x)) / 2.0
    ty = y0 + height / 2.0 + k * (min_y + max_y) / 2.0
    return PathGenerator(ProjectionFit(scale=k, translate=(tx, ty), bounds=bounds), cfg=cfg)


def _projected_bounds(
    features: Sequence[GeoFeature],
    transformer: Any,
    cfg: ProjectionConfig,
) -> _Bounds | None:
    bounds: _Bounds | None = None
    for feature in features:
        if not _is_valid_geometry(feature.geometry):
            continue
        bx0, by0, bx1, by1 = (
            float(item) for item in _project_geometry(feature.geometry, transformer, cfg).bounds
        )
        if bounds is None:
            bounds = (bx0, by0, bx1, by1)
        else:
            bounds = (
                min(bounds[0], bx0),
                min(bounds[1], by0),
                max(bounds[2], bx1),
                max(bounds[3], by1),
            )
    return bounds


def _project_geometry(geometry: Any, transformer: Any, cfg: ProjectionConfig) -> Any:
    shapely_transform = _require_shapely_transform()
    np = _require_numpy()
    lat_min = cfg.clamp_lat.min
    lat_max = cfg.clamp_lat.max

    def _forward(x: Any, y: Any, z: Any = None) -> tuple[Any, Any]:
        lats = np.clip(np.asarray(y, dtype=float), lat_min, lat_max)
        return transformer.transform(np.asarray(x, dtype=float), lats)

    return shapely_transform(_forward, geometry)


def _project_lon_lat(
    lon: float,
    lat: float,
    transformer: Any,
    cfg: ProjectionConfig,
) -> tuple[float, float]:
    clamped = max(cfg.clamp_lat.min, min(float(lat), cfg.clamp_lat.max))
    x, y = transformer.transform(float(lon), clamped)
    return (float(x), float(y))


def _is_valid_geometry(geometry: Any) -> bool:
    if geometry is None:
        return False
    if hasattr(geometry, "is_empty") and bool(geometry.is_empty):
        return False
    return True


def _iter_linear_rings(geometry: Any) -> Iterator[list[tuple[float, float]]]:
    geom_type = getattr(geometry, "geom_type", "")
    if geom_type == "Polygon":
        yield [(float(x), float(y)) for x, y, *_ in geometry.exterior.coords]
        for interior in geometry.interiors:
            yield [(float(x), float(y)) for x, y, *_ in interior.coords]
    elif geom_type in {"MultiPolygon", "GeometryCollection"}:
        for part in geometry.geoms:
            yield from _iter_linear_rings(part)


def _fmt(value: float) -> str:
    text = f"{value:.3f}".rstrip("0").rstrip(".")
    if text in {"-0", ""}:
        return "0"
    return text


@lru_cache(maxsize=4)
def _require_pyproj_transformer(crs: str) -> Any:
    try:
        from pyproj import Transformer
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("pyproj is required for map projection") from exc
    return Transformer.from_crs("EPSG:4326", crs, always_xy=True)


def _require_shapely_transform() -> Any:
    try:
        from shapely.ops import transform
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("shapely is required for geometry projection") from exc
    return transform


def _require_shapely_affine() -> Any:
    try:
        from shapely.affinity import affine_transform
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("shapely is required for screen-space transforms") from exc
    return affine_transform


def _require_numpy() -> Any:
    try:
        import numpy as np
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("numpy is required for geometry projection") from exc
    return np
