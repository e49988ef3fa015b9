from __future__ import annotations

from worldmap.config import load_config
from worldmap.validate import Validator, format_report_lines


def test_valid_project_passes_with_coverage_warning(project_dir):
    report = Validator(load_config(project_dir / "config.yaml")).run()

    assert report.ok, report.errors
    assert any("DEU" in warning for warning in report.warnings)
    assert any("1 excluded" in info for info in report.infos)
    assert any("Config filters select 3 rows" in info for info in report.infos)
    assert list(format_report_lines(report))[-1] == "[OK] Validation completed with no errors."


def test_duplicate_rows_inside_filters_are_flagged(project_dir):
    dataset = project_dir / "data" / "iop.csv"
    with dataset.open("a", encoding="utf-8") as fh:
        fh.write("Canada,CAN,2021,CAN,All,1,Income,North America,Parametric,21,Gini,Absolute,Ex-ante\n")

    report = Validator(load_config(project_dir / "config.yaml")).run()

    assert any("only the first is drawn: CAN" in warning for warning in report.warnings)


def test_missing_inputs_are_errors(tmp_path):
    config = tmp_path / "config.yaml"
    config.write_text("", encoding="utf-8")

    report = Validator(load_config(config)).run()

    assert not report.ok
    assert len(report.errors) == 2
    assert all(line.startswith("[ERROR]") for line in format_report_lines(report))


def test_unparseable_dataset_is_an_error(project_dir):
    (project_dir / "data" / "iop.csv").write_text("a,b\n1,2\n", encoding="utf-8")

    report = Validator(load_config(project_dir / "config.yaml")).run()

    assert any("Failed parsing dataset" in error for error in report.errors)
