"""In-memory drawing surface with per-shape pointer listeners."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Callable

from .legend import LegendSpec
from .models import PointerPosition, ViewportDimensions
from .projection import PathData


POINTER_ENTER = "pointerenter"
POINTER_LEAVE = "pointerleave"

PointerHandler = Callable[["ShapeSpec", PointerPosition], None]


@dataclass(frozen=True, slots=True)
class ShapeSpec:
    shape_id: int
    iso3: str
    name: str
    path: PathData
    fill: str
    stroke: str
    stroke_width: float
    tooltip: str = ""
    geometry: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True, slots=True)
class RenderedMap:
    """Immutable view of everything currently drawn."""

    viewport: ViewportDimensions
    shapes: tuple[ShapeSpec, ...]
    legend: LegendSpec | None


class Surface:
    def __init__(self, viewport: ViewportDimensions) -> None:
        self.viewport = viewport
        self._shapes: list[ShapeSpec] = []
        self._legend: LegendSpec | None = None
        self._listeners: dict[tuple[int, str], list[PointerHandler]] = {}
        self._hovered: ShapeSpec | None = None

    @property
    def shapes(self) -> tuple[ShapeSpec, ...]:
        return tuple(self._shapes)

    @property
    def legend(self) -> LegendSpec | None:
        return self._legend

    @property
    def listener_count(self) -> int:
        return sum(len(handlers) for handlers in self._listeners.values())

    @property
    def is_empty(self) -> bool:
        return not self._shapes and self._legend is None

    def resize(self, viewport: ViewportDimensions) -> None:
        self.viewport = viewport

    def clear(self) -> None:
        """Remove every shape, the legend and all attached listeners."""
        self._shapes.clear()
        self._legend = None
        self._listeners.clear()
        self._hovered = None

    def add_shape(self, shape: ShapeSpec) -> None:
        self._shapes.append(shape)

    def set_legend(self, legend: LegendSpec) -> None:
        self._legend = legend

    def add_listener(self, shape_id: int, event: str, handler: PointerHandler) -> None:
        if event not in {POINTER_ENTER, POINTER_LEAVE}:
            raise ValueError(f"Unsupported pointer event '{event}'")
        self._listeners.setdefault((shape_id, event), []).append(handler)

    def snapshot(self) -> RenderedMap:
        return RenderedMap(viewport=self.viewport, shapes=self.shapes, legend=self._legend)

    def hit_test(self, position: PointerPosition) -> ShapeSpec | None:
        """Topmost shape under the pointer, if any."""
        point = _require_shapely_point_factory()(position.x, position.y)
        for shape in reversed(self._shapes):
            if shape.geometry is None:
                continue
            if shape.geometry.covers(point):
                return shape
        return None

    def pointer_move(self, position: PointerPosition) -> ShapeSpec | None:
        target = self.hit_test(position)
        previous = self._hovered
        if previous is not None and (target is None or target.shape_id != previous.shape_id):
            self._hovered = None
            self._dispatch(previous, POINTER_LEAVE, position)
        if target is not None and (previous is None or target.shape_id != previous.shape_id):
            self._hovered = target
            self._dispatch(target, POINTER_ENTER, position)
        return target

    def pointer_exit(self, position: PointerPosition | None = None) -> None:
        """Pointer left the surface entirely."""
        previous = self._hovered
        if previous is None:
            return
        self._hovered = None
        self._dispatch(previous, POINTER_LEAVE, position or PointerPosition())

    def _dispatch(self, shape: ShapeSpec, event: str, position: PointerPosition) -> None:
        for handler in list(self._listeners.get((shape.shape_id, event), ())):
            handler(shape, position)


@lru_cache(maxsize=1)
def _require_shapely_point_factory() -> Any:
    try:
        from shapely.geometry import Point
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("shapely is required for pointer hit testing") from exc
    return Point
