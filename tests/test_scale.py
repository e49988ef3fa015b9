from __future__ import annotations

import math

import pytest

from worldmap.config import ScaleConfig
from worldmap.scale import build_scale, resolve_colormap, value_domain


def _blue(color: str) -> int:
    return int(color[5:7], 16)


def test_domain_ignores_non_finite_values(make_row):
    rows = [make_row(value=3.0), make_row(value=math.nan), make_row(value=-1.5)]

    assert value_domain(rows) == (-1.5, 3.0)


def test_endpoints_use_yellow_to_purple_gradient(make_row):
    scale = build_scale([make_row(value=0.0), make_row(value=10.0)])

    assert scale(0.0) == "#ffff00"
    assert scale(10.0) == "#a62bff"


def test_scale_is_monotonic(make_row):
    scale = build_scale([make_row(value=0.0), make_row(value=100.0)])
    values = [0.0, 5.0, 20.0, 33.3, 50.0, 80.0, 99.0, 100.0]

    positions = [scale.position(v) for v in values]
    blues = [_blue(scale(v)) for v in values]

    assert positions == sorted(positions)
    assert blues == sorted(blues)


def test_out_of_domain_values_clamp(make_row):
    scale = build_scale([make_row(value=1.0), make_row(value=2.0)])

    assert scale.position(-50.0) == 0.0
    assert scale.position(50.0) == 1.0


def test_single_value_domain_maps_to_midpoint(make_row):
    scale = build_scale([make_row(value=7.0), make_row(value=7.0)])

    assert scale.domain == (7.0, 7.0)
    assert scale.position(7.0) == 0.5
    assert scale(7.0) not in {"#ffff00", "#a62bff"}


def test_empty_rows_fall_back_to_neutral_color():
    scale = build_scale([], ScaleConfig(neutral_color="#123456"))

    assert scale.is_fallback
    assert scale.domain is None
    assert scale(1.0) == "#123456"
    assert scale.position(1.0) is None


def test_nan_maps_to_neutral_color(make_row):
    scale = build_scale([make_row(value=1.0), make_row(value=2.0)])

    assert scale(math.nan) == scale.neutral_color


def test_explicit_endpoints_override_interpolator(make_row):
    cfg = ScaleConfig(interpolator="viridis", start_color="#000000", end_color="#ffffff")
    scale = build_scale([make_row(value=0.0), make_row(value=1.0)], cfg)

    assert scale(0.0) == "#000000"
    assert scale(1.0) == "#ffffff"


def test_matplotlib_colormap_names_are_accepted(make_row):
    scale = build_scale([make_row(value=0.0), make_row(value=1.0)], ScaleConfig(interpolator="viridis"))

    assert scale(0.0) == "#440154"


def test_unknown_interpolator_raises():
    with pytest.raises(ValueError, match="Unknown scale interpolator"):
        resolve_colormap("definitely-not-a-colormap")
