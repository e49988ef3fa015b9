from __future__ import annotations

import pytest

from worldmap.config import MapConfig, load_config
from worldmap.models import Margins


def test_empty_file_yields_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")

    cfg = load_config(path)

    assert cfg.viewport.initial_width == 800.0
    assert cfg.viewport.height == 600.0
    assert cfg.viewport.margins == Margins(top=20.0, right=20.0, bottom=50.0, left=40.0)
    assert cfg.projection.crs == "EPSG:3857"
    assert cfg.scale.interpolator == "yellow_purple"
    assert cfg.style.no_data_fill == "#ddd"
    assert cfg.style.stroke == "#777"
    assert cfg.legend.cells == 10
    assert cfg.legend.decimals == 2
    assert cfg.raster.dpi == 100
    assert not cfg.filters.is_complete


def test_paths_are_relative_to_config_file(tmp_path):
    path = tmp_path / "nested" / "config.yaml"
    path.parent.mkdir()
    path.write_text("paths:\n  dataset: inputs/data.csv\n", encoding="utf-8")

    cfg = load_config(path)

    assert cfg.paths.dataset == path.parent.resolve() / "inputs" / "data.csv"
    assert cfg.source_path == path.resolve()


def test_sections_override_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "\n".join(
            [
                "viewport:",
                "  height: 400",
                "  margins: {top: 5, left: 5}",
                "legend:",
                "  cells: 5",
                "scale:",
                "  start_color: '#000000'",
                "  end_color: '#ffffff'",
                "filters:",
                "  variable: Both",
            ]
        ),
        encoding="utf-8",
    )

    cfg = load_config(path)

    assert cfg.viewport.height == 400.0
    assert cfg.viewport.margins == Margins(top=5.0, right=20.0, bottom=50.0, left=5.0)
    assert cfg.legend.cells == 5
    assert (cfg.scale.start_color, cfg.scale.end_color) == ("#000000", "#ffffff")
    assert cfg.filters.variable == "Both"


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "absent.yaml")


@pytest.mark.parametrize(
    "raw",
    [
        {"style": {"stroke": "grey-ish"}},
        {"scale": {"start_color": "#000000"}},
        {"legend": {"cells": 0}},
        {"viewport": {"height": -1}},
        {"projection": {"clamp_lat": {"min": 10, "max": -10}}},
        {"paths": "data"},
    ],
)
def test_invalid_sections_raise_value_error(raw):
    with pytest.raises(ValueError):
        MapConfig.from_mapping(raw)


def test_top_level_must_be_mapping(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_config(path)
