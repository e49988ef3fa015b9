"""Row selection for the active map filter."""

from __future__ import annotations

from typing import Iterable

from .models import WILDCARD_VARIABLE, FilterCriteria, StatRow


def row_matches(row: StatRow, criteria: FilterCriteria) -> bool:
    return (
        row.latest_flag == 1
        and row.perspective == criteria.perspective
        and row.measure == criteria.measure
        and row.approach == criteria.approach
        and (criteria.variable == WILDCARD_VARIABLE or row.variable == criteria.variable)
    )


def filter_rows(rows: Iterable[StatRow], criteria: FilterCriteria) -> tuple[StatRow, ...]:
    """Latest-year rows matching the criteria, in input order."""
    return tuple(row for row in rows if row_matches(row, criteria))
