# File: src/simulation/aqi_simulator.py

"""
Deterministic, time-aware AQI simulator used when no live provider is configured.

Each zone gets a pseudo-random base value derived from a djb2 hash of
"<zone_key>:<UTC date>:<local hour // 3>", so the value changes every three hours
and every day but is stable within a bucket. A time-of-day floor raises
afternoon and evening values, and a small jitter adds a "live" feel.
"""

import logging
import random
from datetime import datetime, timezone

log = logging.getLogger(__name__)

# --- Simulation Constants ---
MIN_AQI = 30
MAX_AQI = 300
BASE_SPAN = 200
HOUR_BUCKET_SIZE = 3
AFTERNOON_HOURS = (9, 18)
AFTERNOON_FLOOR = 80
EVENING_START = 18
EVENING_FLOOR = 100
JITTER = 10

DJB2_START = 5381
UINT32_MASK = 0xFFFFFFFF


def djb2_hash(text):
    """
    Unsigned 32-bit djb2 string hash.

    h = 5381; for each character h = h * 33 + ord(ch), all modulo 2**32.
    Order sensitive and stable across processes, unlike the built-in hash().
    """
    h = DJB2_START
    for ch in text:
        h = ((h << 5) + h + ord(ch)) & UINT32_MASK
    return h


def utc_date(now):
    """Calendar date of `now` in UTC; naive datetimes are taken as local time."""
    return now.astimezone(timezone.utc).date()


def seed_string(zone_key, now):
    """Builds the hash input "<zone_key>:<UTC date>:<local hour bucket>".

    The date is the UTC date while the bucket uses the wall-clock hour, so in
    UTC+5:30 the date part rolls over at 05:30 local time.
    """
    return f"{zone_key}:{utc_date(now).isoformat()}:{now.hour // HOUR_BUCKET_SIZE}"


def apply_time_of_day_floor(value, hour):
    if AFTERNOON_HOURS[0] <= hour < AFTERNOON_HOURS[1]:
        return max(value, AFTERNOON_FLOOR)
    if hour >= EVENING_START:
        return max(value, EVENING_FLOOR)
    return value


def base_value(zone_key, now):
    """Deterministic part of the simulated AQI for a zone at a given time."""
    seed = djb2_hash(seed_string(zone_key, now))
    return apply_time_of_day_floor(MIN_AQI + seed % BASE_SPAN, now.hour)


def clamp(value, low=MIN_AQI, high=MAX_AQI):
    return max(low, min(high, value))


class AQISimulator:
    """
    Produces simulated AQI values in [30, 300] for a zone.

    Args:
        rng (random.Random | None): Source for the jitter. Defaults to the
            module-level `random` functions.
        deterministic_jitter (bool): If True, the jitter is drawn from a
            `random.Random` seeded with the same djb2 seed as the base value,
            making `simulate` a pure function of (zone_key, date, hour bucket).
    """

    def __init__(self, rng=None, deterministic_jitter=False):
        self._rng = rng or random
        self.deterministic_jitter = deterministic_jitter

    def _jitter(self, zone_key, now):
        if self.deterministic_jitter:
            rng = random.Random(djb2_hash(seed_string(zone_key, now)))
        else:
            rng = self._rng
        # floor(rand * 20) - 10, i.e. an integer in [-10, 9]
        return int(rng.random() * 2 * JITTER) - JITTER

    def simulate(self, zone_key, now=None):
        """Returns the simulated AQI for `zone_key` at `now` (defaults to local time)."""
        if now is None:
            now = datetime.now()
        value = clamp(base_value(zone_key, now) + self._jitter(zone_key, now))
        log.debug(f"Simulated AQI for '{zone_key}' at {now.isoformat()}: {value}")
        return value

    def simulate_zone(self, zone_id, zone_name, now=None):
        """Simulates by zone id, falling back to the zone name when the id is empty."""
        return self.simulate(zone_id or zone_name or "", now)
