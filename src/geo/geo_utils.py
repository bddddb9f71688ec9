# File: src/geo/geo_utils.py

"""
Great-circle distance helpers for the nearest-station lookup.

Distances are computed on a spherical Earth of radius EARTH_RADIUS_KM, which is
accurate to well under 1% at city scale.
"""

import math

EARTH_RADIUS_KM = 6371


def haversine(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Distance in kilometres between two (lat, lon) points given in degrees.

    Returns 0 for identical points and is symmetric in its two points.
    """
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    half_dphi = math.radians(lat2 - lat1) / 2
    half_dlambda = math.radians(lon2 - lon1) / 2

    a = math.sin(half_dphi) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(half_dlambda) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(min(1.0, a)))
