"""Continuous value-to-color scale fitted to the filtered rows."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Iterable

from .config import ScaleConfig
from .models import StatRow


_LOGGER = logging.getLogger("worldmap.scale")

# Named two-stop gradients; anything else is looked up as a matplotlib colormap.
_NAMED_GRADIENTS: dict[str, tuple[str, str]] = {
    "yellow_purple": ("#ffff00", "#a62bff"),
}


@dataclass(frozen=True, slots=True)
class ColorScale:
    """Sequential scale: `domain` -> [0, 1] -> color.

    A scale without a domain is the "no visual discrimination" fallback and
    maps every input to `neutral_color`.
    """

    domain: tuple[float, float] | None
    neutral_color: str
    _cmap: Any = field(default=None, compare=False, repr=False)

    def __call__(self, value: float) -> str:
        t = self.position(value)
        if t is None:
            return self.neutral_color
        return _to_hex(self._cmap(t))

    def position(self, value: float) -> float | None:
        """Interpolation position in [0, 1], or None when unmapped."""
        if self.domain is None or self._cmap is None:
            return None
        try:
            numeric = float(value)
        except (TypeError, ValueError):
            return None
        if not math.isfinite(numeric):
            return None
        lo, hi = self.domain
        if hi == lo:
            return 0.5
        t = (numeric - lo) / (hi - lo)
        return max(0.0, min(1.0, t))

    @property
    def is_fallback(self) -> bool:
        return self.domain is None


def value_domain(rows: Iterable[StatRow]) -> tuple[float, float] | None:
    """Min and max of the finite values, or None when there are none."""
    finite = [row.value for row in rows if row.has_value]
    if not finite:
        return None
    return (min(finite), max(finite))


def build_scale(rows: Iterable[StatRow], cfg: ScaleConfig | None = None) -> ColorScale:
    cfg = cfg or ScaleConfig()
    domain = value_domain(rows)
    if domain is None:
        _LOGGER.debug("No finite values in filtered rows; using neutral color %s", cfg.neutral_color)
        return ColorScale(domain=None, neutral_color=cfg.neutral_color)
    cmap = resolve_colormap(cfg.interpolator, cfg.start_color, cfg.end_color)
    return ColorScale(domain=domain, neutral_color=cfg.neutral_color, _cmap=cmap)


@lru_cache(maxsize=32)
def resolve_colormap(name: str, start_color: str | None = None, end_color: str | None = None) -> Any:
    """Return a matplotlib colormap for a named interpolator or explicit endpoints."""
    mcolors, colormaps = _require_matplotlib_colors()
    if start_color is not None and end_color is not None:
        return mcolors.LinearSegmentedColormap.from_list(
            f"{start_color}->{end_color}", [start_color, end_color]
        )
    gradient = _NAMED_GRADIENTS.get(name.casefold())
    if gradient is not None:
        return mcolors.LinearSegmentedColormap.from_list(name, list(gradient))
    try:
        return colormaps[name]
    except KeyError as exc:
        known = ", ".join(sorted(_NAMED_GRADIENTS))
        raise ValueError(
            f"Unknown scale interpolator '{name}'. Use one of: {known}, or a matplotlib colormap name."
        ) from exc


def _to_hex(rgba: Any) -> str:
    mcolors, _ = _require_matplotlib_colors()
    return str(mcolors.to_hex(rgba, keep_alpha=False))


@lru_cache(maxsize=1)
def _require_matplotlib_colors() -> tuple[Any, Any]:
    try:
        import matplotlib
        import matplotlib.colors as mcolors
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("matplotlib is required for color scales") from exc
    return (mcolors, matplotlib.colormaps)
