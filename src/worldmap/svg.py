"""SVG export of a rendered map."""

from __future__ import annotations

from html import escape
from pathlib import Path

from .legend import LegendSpec
from .surface import RenderedMap


def _num(value: float) -> str:
    text = f"{value:.3f}".rstrip("0").rstrip(".")
    return "0" if text in {"-0", ""} else text


def _legend_lines(legend: LegendSpec) -> list[str]:
    ox, oy = legend.origin
    lines = [
        f"  <g class='{escape(legend.css_class)}' transform='translate({_num(ox)}, {_num(oy)})'>",
    ]
    for cell in legend.cells:
        lines.extend(
            [
                "    <g class='cell'>",
                f"      <rect class='swatch' x='{_num(cell.x)}' y='0' "
                f"width='{_num(cell.width)}' height='{_num(cell.height)}' "
                f"style='fill: {escape(cell.color)};'/>",
                f"      <text class='label' x='{_num(cell.label_x)}' y='{_num(legend.label_y)}' "
                f"text-anchor='middle'>{escape(cell.label)}</text>",
                "    </g>",
            ]
        )
    lines.append("  </g>")
    return lines


def render_svg(rendered: RenderedMap) -> str:
    width = _num(rendered.viewport.width)
    height = _num(rendered.viewport.height)
    lines = [
        f"<svg xmlns='http://www.w3.org/2000/svg' width='{width}' height='{height}' "
        f"viewBox='0 0 {width} {height}'>",
    ]
    for shape in rendered.shapes:
        style = (
            f"fill: {shape.fill}; stroke-width: {_num(shape.stroke_width)}; stroke: {shape.stroke};"
        )
        lines.append(
            f"  <path data-iso3='{escape(shape.iso3)}' data-name='{escape(shape.name)}' "
            f"d='{shape.path.to_svg()}' style='{escape(style)}'>"
            f"<title>{escape(shape.tooltip)}</title></path>"
        )
    if rendered.legend is not None:
        lines.extend(_legend_lines(rendered.legend))
    lines.append("</svg>")
    lines.append("")
    return "\n".join(lines)


def write_svg(rendered: RenderedMap, output_path: Path) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(render_svg(rendered), encoding="utf-8")
    return output_path
