"""Render orchestration: sequences the pipeline on every input change."""

from __future__ import annotations

import logging
from concurrent.futures import Future
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Any, Callable, Mapping, Sequence

from .config import MapConfig
from .filtering import filter_rows
from .interaction import HoverController, TooltipSink, tooltip_text
from .io_geo import GeometryCache
from .join import join_features
from .layout import LayoutObserver, Subscription
from .legend import LegendSpec, build_legend
from .models import FilterCriteria, GeoFeature, PointerPosition, StatRow, ViewportDimensions
from .projection import PathGenerator, fit_projection
from .scale import ColorScale, build_scale
from .surface import POINTER_ENTER, POINTER_LEAVE, RenderedMap, ShapeSpec, Surface


_LOGGER = logging.getLogger("worldmap.orchestrator")

Scheduler = Callable[[Callable[[], None]], None]


class ViewState(str, Enum):
    AWAITING_GEOMETRY = "awaiting_geometry"
    AWAITING_INPUTS = "awaiting_inputs"
    RENDERED = "rendered"


@dataclass(frozen=True, slots=True)
class RenderPass:
    """Intermediate results of the most recent full redraw."""

    filtered: tuple[StatRow, ...]
    scale: ColorScale
    joined: Mapping[int, StatRow | None]
    generator: PathGenerator
    legend: LegendSpec
    viewport: ViewportDimensions


def _call_now(callback: Callable[[], None]) -> None:
    callback()


class MapView:
    """Choropleth view driven by data, filters, geometry and viewport.

    States: awaiting geometry (loading), awaiting inputs, rendered. Any input
    change while geometry is settled re-checks completeness and either
    clears the drawing or redraws everything from scratch.

    `scheduler` receives the geometry completion callback; hosts with their
    own UI loop pass something like `loop.call_soon_threadsafe` so that the
    redraw runs on the UI thread.
    """

    def __init__(
        self,
        cfg: MapConfig | None = None,
        *,
        observer: LayoutObserver | None = None,
        tooltip_sink: TooltipSink | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        self.cfg = cfg or MapConfig.default()
        self.observer = observer or LayoutObserver(self.cfg.viewport)
        self.hover = HoverController(tooltip_sink)
        self.surface = Surface(self.observer.dimensions)
        self._scheduler = scheduler or _call_now
        self._cache = GeometryCache()
        self._data: tuple[StatRow, ...] | None = None
        self._filters = FilterCriteria()
        self._viewport = self.observer.dimensions
        self._state = ViewState.AWAITING_GEOMETRY
        self._subscription: Subscription | None = None
        self._mounted = False
        self._torn_down = False
        self._last_pass: RenderPass | None = None

    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def loading(self) -> bool:
        return self._state is ViewState.AWAITING_GEOMETRY and not self._torn_down

    @property
    def viewport(self) -> ViewportDimensions:
        return self._viewport

    @property
    def features(self) -> tuple[GeoFeature, ...]:
        return self._cache.features

    @property
    def geometry_failed(self) -> bool:
        return self._cache.failed

    @property
    def last_pass(self) -> RenderPass | None:
        return self._last_pass

    def mount(self, geometry: Future[Any]) -> MapView:
        """Subscribe to layout changes and wait for the one-time geometry load."""
        if self._mounted or self._torn_down:
            raise RuntimeError("MapView can only be mounted once")
        self._mounted = True
        self._subscription = self.observer.observe(self._on_resize)
        geometry.add_done_callback(
            lambda future: self._scheduler(partial(self._settle_geometry, future))
        )
        return self

    def unmount(self) -> None:
        """Release the observer and every listener; late geometry is discarded."""
        if self._torn_down:
            return
        self._torn_down = True
        if self._subscription is not None:
            self._subscription.disconnect()
            self._subscription = None
        self.surface.clear()
        self.hover.bind({})
        self._last_pass = None

    def __enter__(self) -> MapView:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.unmount()

    def set_data(self, rows: Sequence[StatRow] | None) -> None:
        self._data = tuple(rows) if rows is not None else None
        self._update()

    def set_filters(self, criteria: FilterCriteria) -> None:
        self._filters = criteria
        self._update()

    def resize(self, content_width: float) -> None:
        """Convenience for hosts that report the container width directly."""
        self.observer.notify_resize(content_width)

    def snapshot(self) -> RenderedMap:
        return self.surface.snapshot()

    def _on_resize(self, dimensions: ViewportDimensions) -> None:
        self._viewport = dimensions
        self.surface.resize(dimensions)
        self._update()

    def _settle_geometry(self, future: Future[Any]) -> None:
        if self._torn_down:
            _LOGGER.debug("Geometry load finished after teardown; result discarded.")
            return
        if self._cache.settled:
            return
        if future.cancelled():
            _LOGGER.error("Error loading the geometry file: load was cancelled")
            self._cache.mark_failed()
        else:
            exc = future.exception()
            if exc is not None:
                _LOGGER.error("Error loading the geometry file: %s", exc)
                self._cache.mark_failed()
            else:
                features = self._cache.store(future.result())
                _LOGGER.info("Geometry ready: %d features after exclusions", len(features))
        self._state = ViewState.AWAITING_INPUTS
        self._update()

    def _missing_inputs(self) -> list[str]:
        missing: list[str] = []
        if self._data is None:
            missing.append("data")
        if not self._cache.available:
            missing.append("geometry")
        missing.extend(f"filters.{name}" for name in self._filters.missing_fields)
        return missing

    def _update(self) -> None:
        if self._torn_down or self._state is ViewState.AWAITING_GEOMETRY:
            return
        missing = self._missing_inputs()
        if missing:
            _LOGGER.info("Data or filters are incomplete (missing: %s).", ", ".join(missing))
            self._clear_drawing()
            self._state = ViewState.AWAITING_INPUTS
            return
        self._last_pass = self._render()
        self._state = ViewState.RENDERED

    def _clear_drawing(self) -> None:
        self.surface.clear()
        self.hover.bind({})
        self._last_pass = None

    def _render(self) -> RenderPass:
        cfg = self.cfg
        features = self._cache.features
        rows = self._data or ()
        viewport = self._viewport

        self.surface.clear()
        filtered = filter_rows(rows, self._filters)
        scale = build_scale(filtered, cfg.scale)
        joined = join_features(features, filtered)
        generator = fit_projection(features, viewport, cfg.viewport.margins, cfg.projection)
        self.hover.bind(joined)

        for feature in features:
            row = joined[feature.feature_id]
            fill = scale(row.value) if row is not None else cfg.style.no_data_fill
            self.surface.add_shape(
                ShapeSpec(
                    shape_id=feature.feature_id,
                    iso3=feature.iso3,
                    name=feature.name,
                    path=generator.path(feature),
                    fill=fill,
                    stroke=cfg.style.stroke,
                    stroke_width=cfg.style.stroke_width,
                    tooltip=tooltip_text(feature, row),
                    geometry=generator.project_geometry(feature),
                )
            )
            self.surface.add_listener(
                feature.feature_id, POINTER_ENTER, partial(self._on_pointer_enter, feature)
            )
            self.surface.add_listener(feature.feature_id, POINTER_LEAVE, self._on_pointer_leave)

        legend = build_legend(scale, viewport=viewport, cfg=cfg.legend)
        self.surface.set_legend(legend)
        _LOGGER.debug(
            "Rendered %d shapes (%d filtered rows, domain=%s) at %.0fx%.0f",
            len(features),
            len(filtered),
            scale.domain,
            viewport.width,
            viewport.height,
        )
        return RenderPass(
            filtered=filtered,
            scale=scale,
            joined=joined,
            generator=generator,
            legend=legend,
            viewport=viewport,
        )

    def _on_pointer_enter(
        self,
        feature: GeoFeature,
        shape: ShapeSpec,
        position: PointerPosition,
    ) -> None:
        self.hover.pointer_enter(feature, position)

    def _on_pointer_leave(self, shape: ShapeSpec, position: PointerPosition) -> None:
        self.hover.pointer_leave()
