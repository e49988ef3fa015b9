"""Hover state machine feeding the tooltip collaborator."""

from __future__ import annotations

import logging
import math
from typing import Callable, Mapping

from .models import GeoFeature, HoverState, PointerPosition, StatRow


_LOGGER = logging.getLogger("worldmap.interaction")

NO_DATA_TEXT = "No available data"

TooltipSink = Callable[[HoverState], None]


def round_half_up(value: float, decimals: int = 2) -> float:
    factor = 10 ** decimals
    return math.floor(value * factor + 0.5) / factor


def format_value(value: float) -> str:
    """Round to 2 decimals and print the shortest form ("10", "10.5", "0.13")."""
    rounded = round_half_up(value)
    if rounded.is_integer():
        return str(int(rounded))
    return repr(rounded)


def tooltip_text(feature: GeoFeature, row: StatRow | None) -> str:
    if row is None or not row.has_value:
        return f"{feature.name}: {NO_DATA_TEXT}"
    return f"{feature.name}: {format_value(row.value)}"


class HoverController:
    """Two states: idle (no content) and hovering (content at pointer).

    Each transition is published to the sink immediately; there is no
    debouncing.
    """

    def __init__(self, sink: TooltipSink | None = None) -> None:
        self._sink = sink
        self._state = HoverState()
        self._joined: Mapping[int, StatRow | None] = {}

    @property
    def state(self) -> HoverState:
        return self._state

    def bind(self, joined: Mapping[int, StatRow | None]) -> None:
        """Use a new join result and drop any hover from the previous drawing."""
        self._joined = joined
        self.reset()

    def pointer_enter(self, feature: GeoFeature, position: PointerPosition) -> HoverState:
        row = self._joined.get(feature.feature_id)
        return self._publish(HoverState(content=tooltip_text(feature, row), position=position))

    def pointer_leave(self) -> HoverState:
        return self._publish(HoverState())

    def reset(self) -> None:
        if self._state.is_idle:
            return
        self._publish(HoverState())

    def _publish(self, state: HoverState) -> HoverState:
        self._state = state
        _LOGGER.debug("hover -> %s", state.content if state.content is not None else "<idle>")
        if self._sink is not None:
            self._sink(state)
        return state
