"""Domain models shared across the map engine."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping


WILDCARD_VARIABLE = "Both"


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True, slots=True)
class StatRow:
    """One statistical observation for a country."""

    name: str
    iso_code: str
    year: str
    country_code: str
    latest_flag: int
    variable: str
    region: str
    approach1: str
    value: float
    measure: str
    approach: str
    perspective: str
    circumstances: str = ""

    @property
    def key(self) -> tuple[str, str, str, str, str, str]:
        return (
            self.country_code,
            self.year,
            self.variable,
            self.measure,
            self.approach,
            self.perspective,
        )

    @property
    def has_value(self) -> bool:
        return math.isfinite(self.value)


@dataclass(frozen=True, slots=True)
class FilterCriteria:
    """Active map filter; `variable == "Both"` matches any variable."""

    perspective: str | None = None
    measure: str | None = None
    approach: str | None = None
    variable: str | None = None

    @property
    def is_complete(self) -> bool:
        return all(
            _optional_str(value) is not None
            for value in (self.perspective, self.measure, self.approach, self.variable)
        )

    @property
    def missing_fields(self) -> tuple[str, ...]:
        values = {
            "perspective": self.perspective,
            "measure": self.measure,
            "approach": self.approach,
            "variable": self.variable,
        }
        return tuple(name for name, value in values.items() if _optional_str(value) is None)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> FilterCriteria:
        return cls(
            perspective=_optional_str(data.get("perspective")),
            measure=_optional_str(data.get("measure")),
            approach=_optional_str(data.get("approach")),
            variable=_optional_str(data.get("variable")),
        )


@dataclass(frozen=True, slots=True)
class GeoFeature:
    """One country boundary in longitude/latitude."""

    feature_id: int
    iso3: str
    name: str
    geometry: Any = field(compare=False, repr=False)


@dataclass(frozen=True, slots=True)
class ViewportDimensions:
    width: float
    height: float


@dataclass(frozen=True, slots=True)
class Margins:
    top: float = 20.0
    right: float = 20.0
    bottom: float = 50.0
    left: float = 40.0


@dataclass(frozen=True, slots=True)
class PointerPosition:
    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True, slots=True)
class HoverState:
    """Tooltip payload: `content is None` means nothing is hovered."""

    content: str | None = None
    position: PointerPosition = field(default_factory=PointerPosition)

    @property
    def is_idle(self) -> bool:
        return self.content is None


@dataclass(frozen=True, slots=True)
class RenderManifest:
    """Render metadata used for audit trails next to the output image."""

    generated_at_utc: str
    config_hash_sha256: str
    inputs: Mapping[str, str]
    filters: Mapping[str, str | None]
    counts: Mapping[str, int]
    domain: tuple[float, float] | None
    artifacts: Mapping[str, str]

    @classmethod
    def create(
        cls,
        *,
        config_hash_sha256: str,
        inputs: Mapping[str, str],
        filters: FilterCriteria,
        counts: Mapping[str, int],
        domain: tuple[float, float] | None,
        artifacts: Mapping[str, str],
    ) -> RenderManifest:
        now = datetime.now(timezone.utc).isoformat()
        return cls(
            generated_at_utc=now,
            config_hash_sha256=config_hash_sha256,
            inputs=inputs,
            filters={
                "perspective": filters.perspective,
                "measure": filters.measure,
                "approach": filters.approach,
                "variable": filters.variable,
            },
            counts=counts,
            domain=domain,
            artifacts=artifacts,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "generated_at_utc": self.generated_at_utc,
            "config_hash_sha256": self.config_hash_sha256,
            "inputs": dict(self.inputs),
            "filters": dict(self.filters),
            "counts": dict(self.counts),
            "domain": list(self.domain) if self.domain is not None else None,
            "artifacts": dict(self.artifacts),
        }
