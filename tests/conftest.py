"""Shared fixtures: small boundary set, dataset rows and on-disk inputs."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest
from shapely.geometry import box, mapping

from worldmap.models import FilterCriteria, GeoFeature, StatRow


CSV_HEADER = "name,iso,y,c,Circumstances,latest,var,Region,Approach1,Value,Measure,Approach,Perspective"


def _row(**overrides: Any) -> StatRow:
    values: dict[str, Any] = {
        "name": "United States",
        "iso_code": "USA",
        "year": "2020",
        "country_code": "USA",
        "latest_flag": 1,
        "variable": "Income",
        "region": "North America",
        "approach1": "Parametric",
        "value": 10.0,
        "measure": "Gini",
        "approach": "Absolute",
        "perspective": "Ex-ante",
    }
    values.update(overrides)
    return StatRow(**values)


@pytest.fixture
def make_row() -> Callable[..., StatRow]:
    return _row


@pytest.fixture
def world_features() -> list[GeoFeature]:
    return [
        GeoFeature(0, "USA", "United States", box(-125.0, 25.0, -67.0, 49.0)),
        GeoFeature(1, "CAN", "Canada", box(-140.0, 49.0, -53.0, 70.0)),
        GeoFeature(2, "FRA", "France", box(-5.0, 42.0, 8.0, 51.0)),
        GeoFeature(3, "ATA", "Antarctica", box(-180.0, -90.0, 180.0, -60.0)),
    ]


@pytest.fixture
def land_features(world_features: list[GeoFeature]) -> list[GeoFeature]:
    return [feature for feature in world_features if feature.name != "Antarctica"]


@pytest.fixture
def gini_filters() -> FilterCriteria:
    return FilterCriteria(
        perspective="Ex-ante",
        measure="Gini",
        approach="Absolute",
        variable="Income",
    )


@pytest.fixture
def gini_rows(make_row: Callable[..., StatRow]) -> list[StatRow]:
    return [
        make_row(),
        make_row(name="Canada", iso_code="CAN", country_code="CAN", value=20.0),
    ]


def write_geojson(path: Path, features: list[GeoFeature]) -> Path:
    payload = {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "properties": {"ADMIN": feature.name, "ISO_A3": feature.iso3},
                "geometry": mapping(feature.geometry),
            }
            for feature in features
        ],
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def write_dataset(path: Path, lines: list[str], header: str = CSV_HEADER) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join([header, *lines]) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def project_dir(tmp_path: Path, world_features: list[GeoFeature]) -> Path:
    """Config, boundaries and dataset laid out like a real project checkout."""
    write_geojson(tmp_path / "data" / "countries.geojson", world_features)
    write_dataset(
        tmp_path / "data" / "iop.csv",
        [
            "United States,USA,2020,USA,All,1,Income,North America,Parametric,10,Gini,Absolute,Ex-ante",
            "Canada,CAN,2020,CAN,All,1,Income,North America,Parametric,20,Gini,Absolute,Ex-ante",
            "Canada,CAN,2010,CAN,All,0,Income,North America,Parametric,30,Gini,Absolute,Ex-ante",
            "Germany,DEU,2020,DEU,All,1,Income,Europe,Parametric,15,Gini,Absolute,Ex-ante",
            "France,FRA,2020,FRA,All,1,Wealth,Europe,Parametric,12.5,Gini,Absolute,Ex-ante",
        ],
    )
    (tmp_path / "config.yaml").write_text(
        "\n".join(
            [
                "paths:",
                "  geometry: data/countries.geojson",
                "  dataset: data/iop.csv",
                "  output_dir: build",
                "  logs_dir: build/logs",
                "filters:",
                "  perspective: Ex-ante",
                "  measure: Gini",
                "  approach: Absolute",
                "  variable: Income",
                "",
            ]
        ),
        encoding="utf-8",
    )
    return tmp_path
