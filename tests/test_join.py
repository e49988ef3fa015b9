from __future__ import annotations

from worldmap.join import duplicate_country_codes, join_features, matched_count


def test_every_feature_appears_in_join(land_features, make_row):
    rows = [make_row(country_code="USA"), make_row(country_code="DEU")]

    joined = join_features(land_features, rows)

    assert set(joined) == {feature.feature_id for feature in land_features}
    assert joined[0] is rows[0]
    assert joined[1] is None
    assert joined[2] is None
    assert matched_count(joined) == 1


def test_first_matching_row_wins(land_features, make_row):
    first = make_row(country_code="FRA", value=1.0)
    second = make_row(country_code="FRA", value=2.0)

    joined = join_features(land_features, [first, second])

    assert joined[2] is first
    assert duplicate_country_codes([first, second]) == ["FRA"]


def test_join_with_no_rows_maps_everything_to_none(land_features):
    joined = join_features(land_features, [])

    assert list(joined.values()) == [None, None, None]
