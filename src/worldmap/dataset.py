"""Statistical dataset loading (CSV with the published column names)."""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Any, Mapping

from .models import StatRow


_LOGGER = logging.getLogger("worldmap.dataset")

# StatRow attribute -> dataset column.
COLUMNS: Mapping[str, str] = {
    "name": "name",
    "iso_code": "iso",
    "year": "y",
    "country_code": "c",
    "circumstances": "Circumstances",
    "latest_flag": "latest",
    "variable": "var",
    "region": "Region",
    "approach1": "Approach1",
    "value": "Value",
    "measure": "Measure",
    "approach": "Approach",
    "perspective": "Perspective",
}
OPTIONAL_COLUMNS = frozenset({"Circumstances"})


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value).strip()


def _to_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def _to_int(value: Any) -> int:
    numeric = _to_float(value)
    if not math.isfinite(numeric):
        return 0
    return int(numeric)


def row_from_mapping(record: Mapping[str, Any]) -> StatRow:
    """Build a StatRow from one dataset record keyed by column name."""
    return StatRow(
        name=_text(record.get(COLUMNS["name"])),
        iso_code=_text(record.get(COLUMNS["iso_code"])).upper(),
        year=_text(record.get(COLUMNS["year"])),
        country_code=_text(record.get(COLUMNS["country_code"])).upper(),
        latest_flag=_to_int(record.get(COLUMNS["latest_flag"])),
        variable=_text(record.get(COLUMNS["variable"])),
        region=_text(record.get(COLUMNS["region"])),
        approach1=_text(record.get(COLUMNS["approach1"])),
        value=_to_float(record.get(COLUMNS["value"])),
        measure=_text(record.get(COLUMNS["measure"])),
        approach=_text(record.get(COLUMNS["approach"])),
        perspective=_text(record.get(COLUMNS["perspective"])),
        circumstances=_text(record.get(COLUMNS["circumstances"])),
    )


def missing_columns(columns: list[str]) -> list[str]:
    present = set(columns)
    return sorted(
        column for column in COLUMNS.values() if column not in present and column not in OPTIONAL_COLUMNS
    )


def load_stat_rows(path: Path) -> list[StatRow]:
    """Load every dataset row; non-numeric values become NaN."""
    pd = _require_pandas()
    if not path.exists():
        raise FileNotFoundError(f"Dataset file not found: {path}")
    # Year and code columns stay text so "2010" and "010" survive unchanged.
    frame = pd.read_csv(path, dtype=str, keep_default_na=False)
    missing = missing_columns([str(col) for col in frame.columns])
    if missing:
        raise ValueError(f"Dataset {path} is missing required columns: {', '.join(missing)}")
    rows = [row_from_mapping(record) for record in frame.to_dict(orient="records")]
    _LOGGER.info("Loaded %d dataset rows from %s", len(rows), path)
    return rows


def _require_pandas() -> Any:
    try:
        import pandas as pd
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("pandas is required for dataset loading") from exc
    return pd
