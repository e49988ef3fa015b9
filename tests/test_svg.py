from __future__ import annotations

from concurrent.futures import Future
from dataclasses import replace

import pytest

from worldmap.orchestrator import MapView
from worldmap.svg import render_svg, write_svg


@pytest.fixture
def rendered(world_features, gini_rows, gini_filters):
    future: Future = Future()
    future.set_result(world_features)
    with MapView() as view:
        view.mount(future)
        view.set_data(gini_rows)
        view.set_filters(gini_filters)
        return view.snapshot()


def test_svg_has_one_path_per_country_and_a_legend(rendered):
    svg = render_svg(rendered)

    assert svg.startswith("<svg ")
    assert "width='800' height='600'" in svg
    assert svg.count("<path ") == 3
    assert "data-iso3='USA'" in svg
    assert "<title>France: No available data</title>" in svg
    assert "class='legendSequential'" in svg
    assert svg.count("<rect ") == 10
    assert "fill: #ddd; stroke-width: 1; stroke: #777;" in svg


def test_svg_escapes_names(rendered):
    shape = replace(rendered.shapes[0], name="A & B")
    patched = replace(rendered, shapes=(shape,), legend=None)

    svg = render_svg(patched)

    assert "data-name='A &amp; B'" in svg
    assert "legendSequential" not in svg


def test_write_svg_creates_parent_directories(rendered, tmp_path):
    target = tmp_path / "out" / "nested" / "map.svg"

    write_svg(rendered, target)

    assert target.read_text(encoding="utf-8").rstrip().endswith("</svg>")
