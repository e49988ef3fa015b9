"""Companion tabular view over the same dataset the map draws."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, fields
from html import escape
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

from .models import StatRow


_LOGGER = logging.getLogger("worldmap.table")

LATEST_YEAR = "Latest"
SORTABLE_KEYS = frozenset(f.name for f in fields(StatRow))

# Column header -> StatRow attribute.
TABLE_COLUMNS: tuple[tuple[str, str], ...] = (
    ("Country", "name"),
    ("Code", "country_code"),
    ("Region", "region"),
    ("Year", "year"),
    ("Variable", "variable"),
    ("Value", "value"),
)


@dataclass(frozen=True, slots=True)
class TableFilters:
    measure: str
    approach: str
    year: str = LATEST_YEAR
    regions: tuple[str, ...] = ()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> TableFilters:
        raw_regions = data.get("regions") or ()
        if isinstance(raw_regions, str):
            raw_regions = [raw_regions]
        return cls(
            measure=str(data.get("measure", "")).strip(),
            approach=str(data.get("approach", "")).strip(),
            year=str(data.get("year", LATEST_YEAR)).strip() or LATEST_YEAR,
            regions=tuple(str(item).strip() for item in raw_regions if str(item).strip()),
        )


@dataclass(frozen=True, slots=True)
class SortConfig:
    key: str = "name"
    direction: str = "ascending"

    def __post_init__(self) -> None:
        if self.key not in SORTABLE_KEYS:
            raise ValueError(f"Unknown sort key '{self.key}'")
        if self.direction not in {"ascending", "descending"}:
            raise ValueError("Sort direction must be 'ascending' or 'descending'")

    @property
    def reverse(self) -> bool:
        return self.direction == "descending"


def _year_matches(row: StatRow, year: str) -> bool:
    if year == LATEST_YEAR:
        return row.latest_flag == 1
    return True


def _sort_value(row: StatRow, key: str) -> tuple[int, Any]:
    value = getattr(row, key)
    if isinstance(value, float):
        # NaN is unordered; group it after every number when ascending.
        return (1, 0.0) if math.isnan(value) else (0, value)
    if isinstance(value, str):
        return (0, value.casefold())
    return (0, value)


def filter_table(
    rows: Iterable[StatRow],
    filters: TableFilters,
    sort: SortConfig | None = None,
) -> list[StatRow]:
    """Rows for the table, filtered by measure, approach, year policy and region."""
    regions = set(filters.regions)
    kept = [
        row
        for row in rows
        if row.measure == filters.measure
        and row.approach == filters.approach
        and _year_matches(row, filters.year)
        and row.region in regions
    ]
    if sort is None:
        return kept
    return sorted(kept, key=lambda row: _sort_value(row, sort.key), reverse=sort.reverse)


def country_row(rows: Iterable[StatRow], country_code: str, year: str) -> StatRow | None:
    code = country_code.strip().upper()
    for row in rows:
        if row.country_code == code and row.year == year:
            return row
    _LOGGER.info("No row for country %s in year %s", code, year)
    return None


def _cell(row: StatRow, attr: str) -> str:
    value = getattr(row, attr)
    if attr == "value":
        return f"{value:.2f}" if math.isfinite(value) else "n/a"
    return escape(str(value))


def render_table_html(rows: Sequence[StatRow], *, title: str = "Indicator table") -> str:
    header = "".join(f"<th>{escape(label)}</th>" for label, _ in TABLE_COLUMNS)
    body = [
        "      <tr>" + "".join(f"<td>{_cell(row, attr)}</td>" for _, attr in TABLE_COLUMNS) + "</tr>"
        for row in rows
    ]
    if not body:
        body = [f"      <tr><td colspan='{len(TABLE_COLUMNS)}' class='empty'>No rows</td></tr>"]

    return "\n".join(
        [
            "<!doctype html>",
            "<html lang='en'>",
            "<head>",
            "  <meta charset='utf-8'>",
            f"  <title>{escape(title)}</title>",
            "  <style>",
            "    body { font-family: Arial, sans-serif; margin: 16px; }",
            "    table { border-collapse: collapse; }",
            "    th, td { border: 1px solid #ddd; padding: 4px 8px; font-size: 13px; }",
            "    th { background: #fafafa; text-align: left; }",
            "    td.empty { color: #666; font-style: italic; }",
            "  </style>",
            "</head>",
            "<body>",
            f"  <h1>{escape(title)}</h1>",
            "  <table>",
            f"    <thead><tr>{header}</tr></thead>",
            "    <tbody>",
            *body,
            "    </tbody>",
            "  </table>",
            "</body>",
            "</html>",
            "",
        ]
    )


def write_table_html(rows: Sequence[StatRow], output_html: Path, *, title: str = "Indicator table") -> Path:
    output_html.parent.mkdir(parents=True, exist_ok=True)
    output_html.write_text(render_table_html(rows, title=title), encoding="utf-8")
    return output_html
