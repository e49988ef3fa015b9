"""Discretised horizontal legend sampled from a color scale."""

from __future__ import annotations

from dataclasses import dataclass

from .config import LegendConfig
from .models import ViewportDimensions
from .scale import ColorScale


@dataclass(frozen=True, slots=True)
class LegendCell:
    """One swatch; `x` is relative to the legend origin."""

    value: float
    color: str
    label: str
    x: float
    width: float
    height: float

    @property
    def label_x(self) -> float:
        return self.x + self.width / 2.0


@dataclass(frozen=True, slots=True)
class LegendSpec:
    origin: tuple[float, float]
    cells: tuple[LegendCell, ...]
    label_offset: float
    css_class: str = "legendSequential"

    @property
    def width(self) -> float:
        if not self.cells:
            return 0.0
        last = self.cells[-1]
        return last.x + last.width

    @property
    def label_y(self) -> float:
        height = self.cells[0].height if self.cells else 0.0
        return height + self.label_offset


def legend_values(domain: tuple[float, float], cell_count: int) -> tuple[float, ...]:
    """Evenly spaced sample values from domain min to max inclusive."""
    if cell_count < 1:
        raise ValueError("cell_count must be >= 1")
    lo, hi = domain
    if cell_count == 1:
        return (lo,)
    step = (hi - lo) / (cell_count - 1)
    return tuple(lo + idx * step for idx in range(cell_count))


def build_legend(
    scale: ColorScale,
    *,
    viewport: ViewportDimensions,
    cfg: LegendConfig | None = None,
    cell_count: int | None = None,
) -> LegendSpec:
    cfg = cfg or LegendConfig()
    count = cfg.cells if cell_count is None else cell_count
    if count < 1:
        raise ValueError("cell_count must be >= 1")

    cells: list[LegendCell] = []
    if scale.domain is not None:
        for idx, value in enumerate(legend_values(scale.domain, count)):
            cells.append(
                LegendCell(
                    value=value,
                    color=scale(value),
                    label=f"{value:.{cfg.decimals}f}",
                    x=idx * (cfg.shape_width + cfg.shape_padding),
                    width=cfg.shape_width,
                    height=cfg.shape_height,
                )
            )

    total_width = (
        len(cells) * cfg.shape_width + max(len(cells) - 1, 0) * cfg.shape_padding
    )
    origin = (
        (viewport.width - total_width) / 2.0,
        viewport.height - cfg.bottom_offset,
    )
    return LegendSpec(origin=origin, cells=tuple(cells), label_offset=cfg.label_offset)
