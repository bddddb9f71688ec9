# File: src/geo/station_resolver.py

"""
Nearest monitoring station lookup over heterogeneous provider records.
"""

import logging
from typing import NamedTuple, Optional

from src.api_integration.record_schema import DEFAULT_SCHEMA
from src.geo.geo_utils import haversine

log = logging.getLogger(__name__)


class NearestStation(NamedTuple):
    record: dict
    distance_km: float
    lat: float
    lon: float


def find_nearest_station(query_lat: float, query_lon: float, records,
                         schema=DEFAULT_SCHEMA) -> Optional[NearestStation]:
    """
    Finds the record closest to (query_lat, query_lon).

    Records without a parseable coordinate pair are skipped. On equal
    distances the first record wins.

    Returns:
        NearestStation, or None if no record is geolocatable.
    """
    best = None
    skipped = 0
    for record in records:
        coords = schema.coordinates(record) if isinstance(record, dict) else None
        if coords is None:
            skipped += 1
            continue
        lat, lon = coords
        distance = haversine(query_lat, query_lon, lat, lon)
        if best is None or distance < best.distance_km:
            best = NearestStation(record, distance, lat, lon)

    if skipped:
        log.debug(f"Skipped {skipped} records without parseable coordinates.")
    if best is None:
        log.warning(f"No geolocated record among {len(records)} provider records.")
    else:
        log.info(f"Nearest station to ({query_lat}, {query_lon}) is {best.distance_km:.2f} km away.")
    return best
