# File: src/risk/aggregator.py

"""
Combines per-zone baseline hazard indicators with an air quality reading.

Each zone's score is the unweighted mean of four components in [0, 1]:
crime, aqi, traffic and flood. The raw AQI is normalised as min(1, aqi / 500).
Zones without a baseline entry fall back to DEFAULT_BASELINE.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from src.health_rules.info import get_aqi_category

log = logging.getLogger(__name__)

AQI_NORMALIZATION_CEILING = 500

DEFAULT_BASELINE = {"crime": 0.3, "traffic": 0.4, "flood": 0.15}


def clamp_unit(value):
    return max(0.0, min(1.0, float(value)))


def normalize_aqi(aqi_value):
    """Maps a raw AQI onto [0, 1]; anything at or above 500 is 1."""
    return clamp_unit(min(1, aqi_value / AQI_NORMALIZATION_CEILING))


@dataclass(frozen=True)
class Zone:
    zone_id: str
    name: str
    geometry: Optional[Dict[str, Any]] = None
    population: Optional[float] = None
    baseline: Optional[Dict[str, float]] = None


@dataclass(frozen=True)
class RiskComponents:
    crime: float
    aqi: float
    traffic: float
    flood: float

    def __post_init__(self):
        for name in ("crime", "aqi", "traffic", "flood"):
            object.__setattr__(self, name, clamp_unit(getattr(self, name)))

    @property
    def mean(self):
        return (self.crime + self.aqi + self.traffic + self.flood) / 4

    def to_dict(self):
        return {"crime": self.crime, "aqi": self.aqi, "traffic": self.traffic, "flood": self.flood}


@dataclass(frozen=True)
class ZoneRiskResult:
    zone: Zone
    components: RiskComponents
    risk: float
    aqi_value: int
    aqi_category: str
    computed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_properties(self):
        """Properties added to the zone's GeoJSON feature."""
        return {
            "risk": self.risk,
            "components": self.components.to_dict(),
            "aqi": self.aqi_value,
            "aqi_category": self.aqi_category,
            "aqi_timestamp": self.computed_at.isoformat(),
        }


def resolve_baseline(zone, default_baseline=None):
    defaults = dict(DEFAULT_BASELINE if default_baseline is None else default_baseline)
    if not zone.baseline:
        log.debug(f"Zone '{zone.zone_id}' has no baseline entry; using defaults {defaults}.")
        return defaults
    return {key: zone.baseline.get(key, defaults[key]) for key in ("crime", "traffic", "flood")}


def aggregate(zone, aqi_value, now=None, default_baseline=None):
    """
    Computes the composite risk for a zone.

    Args:
        zone (Zone): The zone and its baseline indicators.
        aqi_value (int | float): Raw (unnormalised) AQI for the zone.
        now (datetime | None): Computation timestamp; defaults to UTC now.
        default_baseline (dict | None): Overrides DEFAULT_BASELINE.

    Returns:
        ZoneRiskResult
    """
    baseline = resolve_baseline(zone, default_baseline)
    components = RiskComponents(
        crime=baseline["crime"],
        aqi=normalize_aqi(aqi_value),
        traffic=baseline["traffic"],
        flood=baseline["flood"],
    )
    result = ZoneRiskResult(
        zone=zone,
        components=components,
        risk=components.mean,
        aqi_value=aqi_value,
        aqi_category=get_aqi_category(aqi_value),
        computed_at=now or datetime.now(timezone.utc),
    )
    log.debug(f"Zone '{zone.zone_id}': AQI {aqi_value} ({result.aqi_category}), risk {result.risk:.3f}")
    return result
