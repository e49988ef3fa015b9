"""Container size tracking.

The host reports the container's content-box width; height is fixed by
policy. Every change is forwarded to subscribers without throttling.
"""

from __future__ import annotations

import logging
from typing import Callable

from .config import ViewportConfig
from .models import ViewportDimensions


_LOGGER = logging.getLogger("worldmap.layout")

ResizeCallback = Callable[[ViewportDimensions], None]


class Subscription:
    def __init__(self, observer: LayoutObserver, callback: ResizeCallback) -> None:
        self._observer = observer
        self._callback = callback
        self.active = True

    def disconnect(self) -> None:
        if not self.active:
            return
        self.active = False
        self._observer._remove(self)

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.disconnect()


class LayoutObserver:
    def __init__(self, cfg: ViewportConfig | None = None) -> None:
        self.cfg = cfg or ViewportConfig()
        self._subscriptions: list[Subscription] = []
        self._dimensions = ViewportDimensions(width=self.cfg.initial_width, height=self.cfg.height)

    @property
    def dimensions(self) -> ViewportDimensions:
        return self._dimensions

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def observe(self, callback: ResizeCallback) -> Subscription:
        subscription = Subscription(self, callback)
        self._subscriptions.append(subscription)
        return subscription

    def notify_resize(self, content_width: float) -> ViewportDimensions:
        """Record a new container width and emit it if it changed."""
        width = max(float(content_width), 0.0)
        if width == self._dimensions.width:
            return self._dimensions
        self._dimensions = ViewportDimensions(width=width, height=self.cfg.height)
        _LOGGER.debug("viewport resized to %.1fx%.1f", width, self.cfg.height)
        for subscription in list(self._subscriptions):
            if subscription.active:
                subscription._callback(self._dimensions)
        return self._dimensions

    def disconnect(self) -> None:
        for subscription in list(self._subscriptions):
            subscription.disconnect()

    def _remove(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def __enter__(self) -> LayoutObserver:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.disconnect()
