from __future__ import annotations

import pytest

from worldmap.config import LegendConfig
from worldmap.legend import build_legend, legend_values
from worldmap.models import ViewportDimensions
from worldmap.scale import build_scale


VIEWPORT = ViewportDimensions(width=800.0, height=600.0)


def test_ten_cells_span_the_domain(make_row):
    scale = build_scale([make_row(value=0.0), make_row(value=9.0)])

    legend = build_legend(scale, viewport=VIEWPORT)

    assert len(legend.cells) == 10
    assert [cell.label for cell in legend.cells] == [f"{v}.00" for v in range(10)]
    assert legend.cells[0].color == "#ffff00"
    assert legend.cells[-1].color == "#a62bff"


def test_legend_is_centered_near_the_bottom(make_row):
    scale = build_scale([make_row(value=0.0), make_row(value=9.0)])

    legend = build_legend(scale, viewport=VIEWPORT)

    assert legend.width == pytest.approx(10 * 50 + 9 * 2)
    assert legend.origin == (pytest.approx((800 - 518) / 2), pytest.approx(560.0))
    assert legend.label_y == pytest.approx(25.0)
    assert legend.css_class == "legendSequential"


def test_cells_are_laid_out_left_to_right(make_row):
    scale = build_scale([make_row(value=1.0), make_row(value=2.0)])

    legend = build_legend(scale, viewport=VIEWPORT, cell_count=3)

    assert [cell.x for cell in legend.cells] == [0.0, 52.0, 104.0]
    assert legend.cells[1].label_x == pytest.approx(77.0)


def test_label_decimals_follow_config(make_row):
    scale = build_scale([make_row(value=0.0), make_row(value=1.0)])

    legend = build_legend(scale, viewport=VIEWPORT, cfg=LegendConfig(cells=3, decimals=1))

    assert [cell.label for cell in legend.cells] == ["0.0", "0.5", "1.0"]


def test_fallback_scale_yields_empty_legend():
    legend = build_legend(build_scale([]), viewport=VIEWPORT)

    assert legend.cells == ()
    assert legend.width == 0.0


def test_single_cell_uses_domain_minimum():
    assert legend_values((2.0, 8.0), 1) == (2.0,)


def test_cell_count_must_be_positive(make_row):
    scale = build_scale([make_row(value=0.0), make_row(value=1.0)])

    with pytest.raises(ValueError):
        build_legend(scale, viewport=VIEWPORT, cell_count=0)
