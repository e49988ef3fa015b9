"""Country boundary loading and the post-exclusion geometry cache."""

from __future__ import annotations

import logging
from concurrent.futures import Executor, Future
from pathlib import Path
from typing import Any, Iterable, Sequence

from .models import GeoFeature


_LOGGER = logging.getLogger("worldmap.io_geo")

EXCLUDED_COUNTRY_NAMES = frozenset({"Antarctica"})


def _first_existing_column(columns: Iterable[str], candidates: Sequence[str]) -> str | None:
    existing = {col.lower(): col for col in columns}
    for candidate in candidates:
        match = existing.get(candidate.lower())
        if match:
            return match
    return None


def _valid_iso3(value: Any) -> str | None:
    if value is None:
        return None
    normalized = str(value).strip().upper()
    if len(normalized) == 3 and normalized.isalpha():
        return normalized
    return None


class GeoJsonRepository:
    """Reads a Natural Earth style feature collection with `ADMIN`/`ISO_A3`."""

    NAME_COLUMNS = ("ADMIN", "NAME", "name", "admin")
    # ISO_A3 is `-99` for a handful of Natural Earth countries; fall back in order.
    ISO_COLUMNS = ("ISO_A3", "ADM0_A3", "ISO_A3_EH", "SOV_A3", "iso_a3", "ISO3")

    def __init__(self, path: Path) -> None:
        self.path = path

    def load_frame(self) -> Any:
        gpd = self._require_geopandas()
        if not self.path.exists():
            raise FileNotFoundError(f"Geometry file not found: {self.path}")
        return gpd.read_file(self.path)

    def load_features(self) -> list[GeoFeature]:
        frame = self.load_frame()
        return self.features_from_frame(frame)

    def load_async(self, executor: Executor) -> Future[list[GeoFeature]]:
        """Submit the one-time load; the Future settles with features or the error."""
        return executor.submit(self.load_features)

    def features_from_frame(self, frame: Any) -> list[GeoFeature]:
        columns = [str(col) for col in frame.columns]
        name_col = _first_existing_column(columns, self.NAME_COLUMNS)
        iso_cols = [
            col
            for col in (_first_existing_column(columns, [candidate]) for candidate in self.ISO_COLUMNS)
            if col is not None
        ]
        if name_col is None or not iso_cols:
            raise ValueError(
                "Geometry file must carry ADMIN and ISO_A3 properties. "
                f"Available columns: {', '.join(columns)}"
            )

        features: list[GeoFeature] = []
        for idx, row in enumerate(frame.itertuples(index=False)):
            row_dict = row._asdict()
            iso3 = ""
            for col in iso_cols:
                candidate = _valid_iso3(row_dict.get(col))
                if candidate is not None:
                    iso3 = candidate
                    break
            name_val = row_dict.get(name_col)
            name = str(name_val).strip() if name_val is not None else ""
            features.append(
                GeoFeature(
                    feature_id=idx,
                    iso3=iso3,
                    name=name or iso3,
                    geometry=row_dict.get("geometry"),
                )
            )
        _LOGGER.info("Loaded %d boundary features from %s", len(features), self.path)
        return features

    @staticmethod
    def _require_geopandas() -> Any:
        try:
            import geopandas as gpd
        except ImportError as exc:  # pragma: no cover
            raise RuntimeError("geopandas is required for boundary loading") from exc
        return gpd


def exclude_antarctica(features: Iterable[GeoFeature]) -> tuple[GeoFeature, ...]:
    return tuple(feature for feature in features if feature.name not in EXCLUDED_COUNTRY_NAMES)


class GeometryCache:
    """Holds the post-exclusion feature set; filled exactly once."""

    def __init__(self) -> None:
        self._features: tuple[GeoFeature, ...] = ()
        self._loaded = False
        self._failed = False

    @property
    def features(self) -> tuple[GeoFeature, ...]:
        return self._features

    @property
    def settled(self) -> bool:
        return self._loaded or self._failed

    @property
    def available(self) -> bool:
        return self._loaded

    @property
    def failed(self) -> bool:
        return self._failed

    def store(self, features: Iterable[GeoFeature]) -> tuple[GeoFeature, ...]:
        if self.settled:
            raise RuntimeError("Geometry cache already settled")
        raw = tuple(features)
        self._features = exclude_antarctica(raw)
        self._loaded = True
        removed = len(raw) - len(self._features)
        if removed:
            _LOGGER.debug("Excluded %d feature(s) by policy", removed)
        return self._features

    def mark_failed(self) -> None:
        if self.settled:
            raise RuntimeError("Geometry cache already settled")
        self._features = ()
        self._failed = True
