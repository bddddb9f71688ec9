# File: src/services.py

"""
Request-level operations behind the HTTP endpoints.

- Zone risk enrichment: every zone feature gets risk, components, aqi,
  aqi_category and aqi_timestamp, using simulated AQI per zone.
- Current-AQI listing: simulated AQI per zone with hour/date context.
- Point AQI query: nearest provider station for a lat/lon, with the AQI read
  directly or computed from PM2.5/PM10, or a fixed simulated fallback when no
  provider key is configured.
- Provider debug: the first upstream record verbatim, for schema discovery.

Each call computes independently; the only shared state is the provider cache
owned by AirQualityService.
"""

import copy
import logging
import math
from datetime import datetime, timezone

from src.api_integration import ogd_client
from src.api_integration.provider_cache import ProviderCache, DEFAULT_TTL_SECONDS
from src.api_integration.record_schema import RecordSchema, parse_number
from src.config_loader import get_setting
from src.exceptions import (
    NoGeolocatedRecordsError, UnconfiguredProviderError, UpstreamEmptyError, ValidationError,
)
from src.geo.station_resolver import find_nearest_station
from src.health_rules.calculator import calculate_aqi_from_pollutants
from src.health_rules.info import get_aqi_category
from src.risk.aggregator import aggregate
from src.risk.zones import zone_from_feature
from src.simulation.aqi_simulator import AQISimulator, utc_date

log = logging.getLogger(__name__)

SIMULATED_PROVIDER = "simulated"
DEFAULT_FALLBACK_AQI = 75

COORDINATE_BOUNDS = {"lat": (-90.0, 90.0), "lon": (-180.0, 180.0)}


# --- Validation ---
def parse_coordinate(name, raw):
    """
    Parses a required latitude/longitude query parameter.

    Zero is a valid coordinate (equator / prime meridian); only missing,
    non-numeric, non-finite, or out-of-range values are rejected.

    Raises:
        ValidationError
    """
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise ValidationError(f"{name} is required", field=name)
    value = parse_number(raw)
    if value is None:
        raise ValidationError(f"{name} must be a finite number, got {raw!r}", field=name)
    low, high = COORDINATE_BOUNDS.get(name, (-math.inf, math.inf))
    if not low <= value <= high:
        raise ValidationError(f"{name} must be between {low:g} and {high:g}, got {value:g}", field=name)
    return value


def build_simulator(config_deterministic=None):
    deterministic = config_deterministic
    if deterministic is None:
        deterministic = bool(get_setting('simulation', 'deterministic_jitter', default=False))
    return AQISimulator(deterministic_jitter=deterministic)


# --- Zone Risk Enrichment ---
def get_zone_risk_collection(collection, baselines, simulator=None, now=None, default_baseline=None):
    """
    Scores every zone in `collection` and returns an enriched FeatureCollection.

    The input collection is not modified; features are deep-copied before the
    risk properties are attached.
    """
    simulator = simulator or build_simulator()
    local_now = now or datetime.now()
    computed_at = _utc(local_now)
    if default_baseline is None:
        default_baseline = get_setting('risk', 'default_baseline')

    enriched = []
    for feature in collection.get("features", []):
        zone = zone_from_feature(feature, baselines)
        aqi_value = simulator.simulate_zone(zone.zone_id, zone.name, local_now)
        result = aggregate(zone, aqi_value, now=computed_at, default_baseline=default_baseline)
        feature_copy = copy.deepcopy(feature)
        feature_copy.setdefault("properties", {}).update(result.to_properties())
        enriched.append(feature_copy)

    log.info(f"Computed risk for {len(enriched)} zones.")
    return {"type": "FeatureCollection", "features": enriched, "timestamp": computed_at.isoformat()}


# --- Current AQI Listing ---
def get_current_aqi_listing(collection, simulator=None, now=None):
    """Simulated AQI for every zone at the current time."""
    simulator = simulator or build_simulator()
    local_now = now or datetime.now()
    timestamp = _utc(local_now).isoformat()
    zones = []
    for feature in collection.get("features", []):
        props = feature.get("properties") or {}
        zones.append({
            "zone_id": props.get("zone_id"),
            "zone_name": props.get("name"),
            "aqi": simulator.simulate_zone(props.get("zone_id"), props.get("name"), local_now),
            "timestamp": timestamp,
            "hour": local_now.hour,
            "date": utc_date(local_now).isoformat(),
        })
    return {
        "status": "active",
        "type": "real-time",
        "timestamp": timestamp,
        "zones": zones,
        "message": "Current active AQI data for today",
    }


def _utc(dt):
    if dt.tzinfo is None:
        dt = dt.astimezone()
    return dt.astimezone(timezone.utc)


# --- Point AQI / Provider Access ---
class AirQualityService:
    """
    Resolves air quality for a point using the upstream provider.

    Args:
        api_key (str | None): Provider key; defaults to the environment.
        cache (ProviderCache | None): Record cache; one is created if omitted.
        schema (RecordSchema | None): Field aliases; defaults to `provider.schema`.
        fetch_records (Callable | None): Upstream fetcher, `() -> list[dict]`.
    """

    def __init__(self, api_key=None, cache=None, schema=None, fetch_records=None):
        self._api_key = api_key
        self.cache = cache or ProviderCache(
            ttl_seconds=get_setting('cache', 'ttl_seconds', default=DEFAULT_TTL_SECONDS))
        self.schema = schema or RecordSchema.from_config(get_setting('provider', 'schema'))
        self._fetch_records = fetch_records or self._fetch_from_ogd
        self.fallback_aqi = get_setting('simulation', 'fallback_aqi', default=DEFAULT_FALLBACK_AQI)

    @property
    def api_key(self):
        return self._api_key or ogd_client.get_api_key()

    def is_configured(self):
        return bool(self.api_key)

    def _fetch_from_ogd(self, limit=None):
        return ogd_client.get_station_records(limit=limit, api_key=self.api_key)

    def simulated_fallback(self):
        return {
            "provider": SIMULATED_PROVIDER,
            "aqi": self.fallback_aqi,
            "category": get_aqi_category(self.fallback_aqi),
        }

    def get_point_aqi(self, lat, lon):
        """
        AQI at the nearest provider station to (lat, lon).

        Raises:
            UpstreamUnavailableError: The provider fetch failed.
            UpstreamEmptyError: The provider returned no records.
            NoGeolocatedRecordsError: No record has parseable coordinates.
        """
        if not self.is_configured():
            log.info("No provider key configured; returning simulated AQI.")
            return self.simulated_fallback()

        records = self.cache.get_fresh_records(self._fetch_records)
        if not records:
            raise UpstreamEmptyError("no records from OGD provider", status_code=502,
                                     service=ogd_client.SERVICE_NAME)

        nearest = find_nearest_station(lat, lon, records, self.schema)
        if nearest is None:
            raise NoGeolocatedRecordsError("no geolocated records returned by OGD provider",
                                           status_code=502, service=ogd_client.SERVICE_NAME)

        record = nearest.record
        direct_aqi = self.schema.direct_aqi(record)
        if direct_aqi is not None and direct_aqi.is_integer():
            direct_aqi = int(direct_aqi)
        computed = calculate_aqi_from_pollutants(
            pm25=self.schema.pm25_concentration(record),
            pm10=self.schema.pm10_concentration(record),
        )
        final_aqi = direct_aqi if direct_aqi is not None else computed.aqi
        category = self.schema.reported_category(record)
        if category is None and final_aqi is not None:
            category = get_aqi_category(final_aqi)

        return {
            "provider": ogd_client.PROVIDER_NAME,
            "nearest": {"lat": nearest.lat, "lon": nearest.lon, "distance_km": nearest.distance_km},
            "aqi": final_aqi,
            "category": category,
            "computed_aqi": computed.aqi,
            "main_pollutant": computed.main_pollutant,
            "raw": record,
        }

    def get_provider_debug(self):
        """The first upstream record's field names and values, fetched uncached."""
        if not self.is_configured():
            raise UnconfiguredProviderError("OGD_API_KEY not set")
        limit = get_setting('apis', 'ogd', 'debug_record_limit', default=5)
        payload = ogd_client.get_ogd_payload(limit=limit, api_key=self.api_key)
        records = [r for r in (payload.get("records") or []) if isinstance(r, dict)]
        if not records:
            raise UpstreamEmptyError("No records returned from OGD API", status_code=502,
                                     service=ogd_client.SERVICE_NAME)
        first_record = records[0]
        return {
            "total_records": payload.get("total"),
            "sample_record_fields": list(first_record.keys()),
            "first_record": first_record,
        }

    def cache_status(self):
        status = self.cache.snapshot()
        status["provider_configured"] = self.is_configured()
        return status
