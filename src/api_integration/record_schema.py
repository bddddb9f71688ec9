# File: src/api_integration/record_schema.py

"""
Declarative field-name aliases for upstream air quality records.

Provider records are loosely schematised: the same value can appear as
`latitude`, `lat`, `location_lat`, ... depending on the dataset. RecordSchema
lists the accepted aliases per logical field, in priority order. New upstream
schemas are supported by editing `provider.schema` in config/config.yaml.
"""

import logging
import math
from dataclasses import dataclass, fields, replace
from typing import Optional, Tuple

log = logging.getLogger(__name__)


def parse_number(value) -> Optional[float]:
    """Parses `value` as a finite float; None for missing, blank, NaN, inf, or junk."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


@dataclass(frozen=True)
class RecordSchema:
    latitude: Tuple[str, ...] = ("latitude", "lat", "location_lat", "latitude_deg")
    longitude: Tuple[str, ...] = ("longitude", "lon", "location_lon", "longitude_deg")
    aqi: Tuple[str, ...] = ("aqi", "AQI", "aqi_value", "AQI_VALUE")
    pm25: Tuple[str, ...] = ("pm25", "pm2_5", "pm2.5", "PM2.5", "pm25_ugm3", "pm2_5_ugm3", "pm_2_5")
    pm10: Tuple[str, ...] = ("pm10", "PM10", "pm10_ugm3", "pm_10")
    category: Tuple[str, ...] = ("category", "aqi_category")

    @classmethod
    def from_config(cls, schema_cfg):
        """Builds a schema from a `provider.schema` mapping; unknown keys are ignored."""
        if not schema_cfg:
            return cls()
        known = {f.name for f in fields(cls)}
        overrides = {}
        for key, aliases in schema_cfg.items():
            if key not in known:
                log.warning(f"Ignoring unknown record schema field '{key}'.")
                continue
            if isinstance(aliases, str):
                aliases = [aliases]
            overrides[key] = tuple(str(a) for a in aliases)
        return replace(cls(), **overrides)

    def read_number(self, record, aliases) -> Optional[float]:
        """Value of the first alias present on `record` that parses to a finite number."""
        for key in aliases:
            number = parse_number(record.get(key))
            if number is not None:
                return number
        return None

    def read_text(self, record, aliases) -> Optional[str]:
        for key in aliases:
            value = record.get(key)
            if value is not None and str(value).strip():
                return str(value).strip()
        return None

    def coordinates(self, record) -> Optional[Tuple[float, float]]:
        """(lat, lon) for the record, or None if either is missing."""
        lat = self.read_number(record, self.latitude)
        lon = self.read_number(record, self.longitude)
        if lat is None or lon is None:
            return None
        return lat, lon

    def direct_aqi(self, record):
        return self.read_number(record, self.aqi)

    def pm25_concentration(self, record):
        return self.read_number(record, self.pm25)

    def pm10_concentration(self, record):
        return self.read_number(record, self.pm10)

    def reported_category(self, record):
        return self.read_text(record, self.category)


DEFAULT_SCHEMA = RecordSchema()
