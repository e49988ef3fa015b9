"""Feature-to-row join keyed on ISO alpha-3 codes."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable, Mapping, Sequence

from .models import GeoFeature, StatRow


_LOGGER = logging.getLogger("worldmap.join")


def index_rows_by_country(rows: Iterable[StatRow]) -> dict[str, StatRow]:
    """First row per country code wins; later duplicates are ignored."""
    index: dict[str, StatRow] = {}
    for row in rows:
        index.setdefault(row.country_code, row)
    return index


def duplicate_country_codes(rows: Iterable[StatRow]) -> list[str]:
    counts = Counter(row.country_code for row in rows)
    return sorted(code for code, count in counts.items() if count > 1)


def join_features(
    features: Sequence[GeoFeature],
    rows: Sequence[StatRow],
) -> dict[int, StatRow | None]:
    """Map every feature id to its matching row, or None for "no data"."""
    duplicates = duplicate_country_codes(rows)
    if duplicates:
        _LOGGER.debug(
            "Filtered rows repeat %d country codes; first match wins: %s",
            len(duplicates),
            ", ".join(duplicates[:12]),
        )
    index = index_rows_by_country(rows)
    return {feature.feature_id: index.get(feature.iso3) for feature in features}


def matched_count(joined: Mapping[int, StatRow | None]) -> int:
    return sum(1 for row in joined.values() if row is not None)
