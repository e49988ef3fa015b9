from __future__ import annotations

from worldmap.filtering import filter_rows, row_matches
from worldmap.models import FilterCriteria


def test_filter_keeps_latest_rows_matching_every_criterion(make_row, gini_filters):
    rows = [
        make_row(),
        make_row(country_code="CAN", latest_flag=0),
        make_row(country_code="MEX", perspective="Ex-post"),
        make_row(country_code="BRA", measure="Theil"),
        make_row(country_code="ARG", approach="Relative"),
        make_row(country_code="CHL", variable="Wealth"),
    ]

    result = filter_rows(rows, gini_filters)

    assert [row.country_code for row in result] == ["USA"]


def test_both_matches_any_variable(make_row, gini_filters):
    rows = [
        make_row(country_code="USA", variable="Income"),
        make_row(country_code="CAN", variable="Wealth"),
        make_row(country_code="FRA", variable="Consumption", latest_flag=0),
    ]
    criteria = FilterCriteria(
        perspective=gini_filters.perspective,
        measure=gini_filters.measure,
        approach=gini_filters.approach,
        variable="Both",
    )

    assert [row.country_code for row in filter_rows(rows, criteria)] == ["USA", "CAN"]


def test_filter_preserves_input_order_and_duplicates(make_row, gini_filters):
    rows = [
        make_row(country_code="FRA", value=1.0),
        make_row(country_code="USA", value=2.0),
        make_row(country_code="FRA", value=3.0),
    ]

    result = filter_rows(rows, gini_filters)

    assert [row.value for row in result] == [1.0, 2.0, 3.0]


def test_filter_on_empty_input_returns_empty_tuple(gini_filters):
    assert filter_rows([], gini_filters) == ()


def test_row_matches_is_case_sensitive(make_row, gini_filters):
    assert not row_matches(make_row(measure="gini"), gini_filters)


def test_filter_criteria_reports_missing_fields():
    criteria = FilterCriteria.from_mapping({"perspective": "Ex-ante", "measure": "  ", "variable": None})

    assert not criteria.is_complete
    assert criteria.missing_fields == ("measure", "approach", "variable")
