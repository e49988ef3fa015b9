from __future__ import annotations

import json

from worldmap.cli import main


def test_render_svg_writes_map_and_manifest(project_dir):
    code = main(["render", "--config", str(project_dir / "config.yaml")])

    assert code == 0
    svg = (project_dir / "build" / "map.svg").read_text(encoding="utf-8")
    assert svg.count("<path ") == 3
    manifest = json.loads((project_dir / "build" / "map_manifest.json").read_text(encoding="utf-8"))
    assert manifest["filters"]["measure"] == "Gini"
    assert manifest["counts"]["matched_features"] == 2
    assert manifest["domain"] == [10.0, 20.0]


def test_render_png_with_overrides(project_dir):
    output = project_dir / "out" / "both.png"

    code = main(
        [
            "render",
            "--config",
            str(project_dir / "config.yaml"),
            "--variable",
            "Both",
            "--width",
            "640",
            "--format",
            "png",
            "--output",
            str(output),
        ]
    )

    assert code == 0
    assert output.read_bytes()[:4] == b"\x89PNG"
    manifest = json.loads((project_dir / "out" / "both_manifest.json").read_text(encoding="utf-8"))
    assert manifest["filters"]["variable"] == "Both"
    assert manifest["counts"]["matched_features"] == 3


def test_render_fails_when_geometry_is_missing(project_dir):
    (project_dir / "data" / "countries.geojson").unlink()

    assert main(["render", "--config", str(project_dir / "config.yaml")]) == 1


def test_table_command_writes_html(project_dir):
    code = main(
        [
            "table",
            "--config",
            str(project_dir / "config.yaml"),
            "--measure",
            "Gini",
            "--approach",
            "Absolute",
            "--region",
            "North America",
            "--sort-key",
            "value",
            "--sort-direction",
            "descending",
            "--country",
            "CAN",
        ]
    )

    assert code == 0
    html = (project_dir / "build" / "table.html").read_text(encoding="utf-8")
    assert html.index("Canada") < html.index("United States")


def test_validate_command(project_dir):
    assert main(["validate", "--config", str(project_dir / "config.yaml")]) == 0


def test_missing_config_returns_error(tmp_path):
    assert main(["validate", "--config", str(tmp_path / "absent.yaml")]) == 1
