"""PNG export of a rendered map via matplotlib."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from .config import RasterConfig
from .legend import LegendSpec
from .projection import PathData
from .surface import RenderedMap


_LOGGER = logging.getLogger("worldmap.raster")


class RasterRenderer:
    """Draws a rendered map onto a matplotlib figure sized to the viewport."""

    def __init__(self, cfg: RasterConfig | None = None) -> None:
        self.cfg = cfg or RasterConfig()

    def render(self, rendered: RenderedMap, output_path: Path) -> Path:
        plt, mpath, mpatches = _require_matplotlib()
        dpi = self.cfg.dpi
        width = max(rendered.viewport.width, 1.0)
        height = max(rendered.viewport.height, 1.0)

        fig, ax = plt.subplots(figsize=(width / dpi, height / dpi), dpi=dpi)
        fig.subplots_adjust(left=0.0, right=1.0, bottom=0.0, top=1.0)
        try:
            _apply_background(fig=fig, ax=ax, background=self.cfg.background)
            # Screen coordinates: origin top-left, y grows downward.
            ax.set_xlim(0.0, width)
            ax.set_ylim(height, 0.0)
            ax.set_aspect("equal", adjustable="box")
            ax.axis("off")

            for shape in rendered.shapes:
                mpl_path = _to_mpl_path(shape.path, mpath)
                if mpl_path is None:
                    continue
                ax.add_patch(
                    mpatches.PathPatch(
                        mpl_path,
                        facecolor=_mpl_color(shape.fill),
                        edgecolor=_mpl_color(shape.stroke),
                        linewidth=shape.stroke_width * 72.0 / dpi,
                        joinstyle="round",
                        zorder=1,
                    )
                )
            if rendered.legend is not None:
                _draw_legend(ax=ax, legend=rendered.legend, mpatches=mpatches)

            output_path.parent.mkdir(parents=True, exist_ok=True)
            fig.savefig(
                output_path,
                dpi=dpi,
                format="png",
                transparent=self.cfg.background.casefold() == "transparent",
            )
            _LOGGER.debug("PNG written to %s (%d shapes)", output_path, len(rendered.shapes))
            return output_path
        finally:
            plt.close(fig)


def write_png(rendered: RenderedMap, output_path: Path, cfg: RasterConfig | None = None) -> Path:
    return RasterRenderer(cfg).render(rendered, output_path)


def _to_mpl_path(path: PathData, mpath: Any) -> Any | None:
    if path.is_empty:
        return None
    vertices: list[tuple[float, float]] = []
    codes: list[int] = []
    start = (0.0, 0.0)
    for cmd in path.commands:
        if cmd.op == "M":
            start = (cmd.x, cmd.y)
            vertices.append(start)
            codes.append(mpath.Path.MOVETO)
        elif cmd.op == "L":
            vertices.append((cmd.x, cmd.y))
            codes.append(mpath.Path.LINETO)
        elif cmd.op == "Z":
            vertices.append(start)
            codes.append(mpath.Path.CLOSEPOLY)
    return mpath.Path(vertices, codes)


def _draw_legend(*, ax: Any, legend: LegendSpec, mpatches: Any) -> None:
    ox, oy = legend.origin
    for cell in legend.cells:
        ax.add_patch(
            mpatches.Rectangle(
                (ox + cell.x, oy),
                cell.width,
                cell.height,
                facecolor=_mpl_color(cell.color),
                edgecolor="none",
                zorder=3,
            )
        )
        ax.text(
            ox + cell.label_x,
            oy + legend.label_y,
            cell.label,
            ha="center",
            va="center",
            fontsize=8,
            color="#333333",
            clip_on=False,
            zorder=4,
        )


def _mpl_color(color: str) -> str:
    # matplotlib accepts only 6/8 digit hex; expand CSS shorthand like "#ddd".
    if color.startswith("#") and len(color) == 4:
        return "#" + "".join(ch * 2 for ch in color[1:])
    return color


def _apply_background(*, fig: Any, ax: Any, background: str) -> None:
    if background.casefold() == "transparent":
        fig.patch.set_facecolor("white")
        fig.patch.set_alpha(0.0)
        ax.set_facecolor((1.0, 1.0, 1.0, 0.0))
    else:
        fig.patch.set_facecolor(_mpl_color(background))
        ax.set_facecolor(_mpl_color(background))


def _require_matplotlib() -> tuple[Any, Any, Any]:
    try:
        import matplotlib

        matplotlib.use("Agg", force=False)
        import matplotlib.patches as mpatches
        import matplotlib.path as mpath
        import matplotlib.pyplot as plt
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("matplotlib is required for PNG rendering") from exc
    return (plt, mpath, mpatches)
