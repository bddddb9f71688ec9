# File: src/risk/zones.py

"""
Loads the city's zone polygons (GeoJSON) and their baseline hazard indicators.

Zone geometry is opaque here; only `zone_id`, `name` and `population` are read
from each feature's properties. Baselines come from `zones.baselines` in
config/config.yaml, keyed by zone id.
"""

import json
import logging
import os

from src.config_loader import PROJECT_ROOT, get_setting
from src.risk.aggregator import Zone, clamp_unit

log = logging.getLogger(__name__)

DEFAULT_GEOJSON_PATH = os.path.join(PROJECT_ROOT, 'data', 'ahmedabad-zones.geojson')


def empty_collection():
    return {"type": "FeatureCollection", "features": []}


def load_zone_collection(path=None):
    """
    Reads the zone FeatureCollection from disk.

    A missing or unreadable file is logged and yields an empty collection, so
    the service still starts (with no zones to score).
    """
    if path is None:
        configured = get_setting('zones', 'geojson_path')
        path = os.path.join(PROJECT_ROOT, configured) if configured else DEFAULT_GEOJSON_PATH
    try:
        with open(path, 'r', encoding='utf-8') as f:
            collection = json.load(f)
    except (OSError, ValueError) as e:
        log.error(f"Failed to load zone GeoJSON from {path}: {e}")
        return empty_collection()
    if not isinstance(collection, dict) or not isinstance(collection.get("features"), list):
        log.error(f"Zone file {path} is not a GeoJSON FeatureCollection.")
        return empty_collection()
    log.info(f"Loaded {len(collection['features'])} zones from GeoJSON ({path})")
    return collection


def load_zone_baselines(baselines_cfg=None):
    """Returns {zone_id: {crime, traffic, flood}} with every value clamped to [0, 1]."""
    if baselines_cfg is None:
        baselines_cfg = get_setting('zones', 'baselines', default={})
    baselines = {}
    for zone_id, values in (baselines_cfg or {}).items():
        try:
            baselines[str(zone_id)] = {key: clamp_unit(values[key]) for key in ("crime", "traffic", "flood")}
        except (KeyError, TypeError, ValueError) as e:
            log.warning(f"Skipping malformed baseline for zone '{zone_id}': {e}")
    return baselines


def zone_from_feature(feature, baselines):
    props = feature.get("properties") or {}
    # Baseline keys are strings, so numeric GeoJSON ids are normalised to match.
    zone_id = str(props.get("zone_id") if props.get("zone_id") is not None else "")
    population = props.get("population")
    if population is not None and (not isinstance(population, (int, float)) or population < 0):
        log.warning(f"Ignoring invalid population {population!r} for zone '{zone_id}'.")
        population = None
    return Zone(
        zone_id=zone_id,
        name=props.get("name") or "",
        geometry=feature.get("geometry"),
        population=population,
        baseline=baselines.get(zone_id),
    )


def zones_from_collection(collection, baselines):
    return [zone_from_feature(feature, baselines) for feature in collection.get("features", [])]
