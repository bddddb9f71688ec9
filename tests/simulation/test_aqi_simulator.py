# File: tests/simulation/test_aqi_simulator.py

"""
Unit tests for the deterministic AQI simulator in `src/simulation/aqi_simulator.py`.
"""

import pytest
import random
import sys
import os
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

# --- Setup Project Root Path ---
TEST_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.abspath(os.path.join(TEST_DIR, '..', '..'))
if PROJECT_ROOT not in sys.path:
     sys.path.insert(0, PROJECT_ROOT)

from src.simulation.aqi_simulator import (
    AQISimulator, apply_time_of_day_floor, base_value, clamp, djb2_hash, seed_string, utc_date,
)

IST = timezone(timedelta(hours=5, minutes=30))

ZONE_KEYS = ["ahm_001", "ahm_002", "ahm_008", "Old City", "", "x" * 500, "zone with ünïcode"]


def _fixed_rng(value):
    rng = MagicMock()
    rng.random.return_value = value
    return rng


# --- djb2 hash ---

def test_djb2_known_values():
    assert djb2_hash("") == 5381
    assert djb2_hash("a") == 5381 * 33 + ord("a")
    assert djb2_hash("ab") == (5381 * 33 + ord("a")) * 33 + ord("b")


def test_djb2_is_order_sensitive():
    assert djb2_hash("ab") != djb2_hash("ba")


@pytest.mark.parametrize("text", ZONE_KEYS)
def test_djb2_is_unsigned_32_bit(text):
    assert 0 <= djb2_hash(text) < 2 ** 32


# --- Seed and base value ---

def test_seed_string_uses_three_hour_buckets():
    assert seed_string("ahm_001", datetime(2025, 3, 14, 10, 30, tzinfo=timezone.utc)) == "ahm_001:2025-03-14:3"
    assert seed_string("ahm_001", datetime(2025, 3, 14, 0, 0, tzinfo=timezone.utc)) == "ahm_001:2025-03-14:0"
    assert seed_string("ahm_001", datetime(2025, 3, 14, 23, 59, tzinfo=timezone.utc)) == "ahm_001:2025-03-14:7"


@pytest.mark.parametrize("local_time, expected", [
    # 02:00 IST is 20:30 UTC on the previous day; the bucket still uses the local hour.
    (datetime(2025, 3, 14, 2, 0, tzinfo=IST), "ahm_001:2025-03-13:0"),
    (datetime(2025, 3, 14, 5, 29, tzinfo=IST), "ahm_001:2025-03-13:1"),
    (datetime(2025, 3, 14, 5, 30, tzinfo=IST), "ahm_001:2025-03-14:1"),
    (datetime(2025, 3, 14, 23, 0, tzinfo=IST), "ahm_001:2025-03-14:7"),
])
def test_seed_string_pairs_utc_date_with_local_hour(local_time, expected):
    assert seed_string("ahm_001", local_time) == expected


def test_utc_date():
    assert utc_date(datetime(2025, 1, 1, 1, 0, tzinfo=IST)).isoformat() == "2024-12-31"
    assert utc_date(datetime(2025, 1, 1, 12, 0, tzinfo=IST)).isoformat() == "2025-01-01"


def test_base_value_is_deterministic_within_a_bucket():
    first = base_value("ahm_001", datetime(2025, 3, 14, 9, 5, tzinfo=timezone.utc))
    second = base_value("ahm_001", datetime(2025, 3, 14, 11, 55, tzinfo=timezone.utc))
    assert first == second
    assert base_value("ahm_001", datetime(2025, 3, 14, 9, 5, tzinfo=timezone.utc)) == first


@pytest.mark.parametrize("hour, floor", [(9, 80), (12, 80), (17, 80), (18, 100), (23, 100)])
def test_base_value_respects_time_of_day_floor(hour, floor):
    for key in ZONE_KEYS:
        assert base_value(key, datetime(2025, 3, 14, hour, 0)) >= floor


@pytest.mark.parametrize("hour", [0, 4, 8])
def test_base_value_range_at_night(hour):
    for key in ZONE_KEYS:
        assert 30 <= base_value(key, datetime(2025, 3, 14, hour, 0)) <= 229


@pytest.mark.parametrize("value, hour, expected", [
    (40, 8, 40),
    (40, 9, 80),
    (120, 12, 120),
    (40, 17, 80),
    (40, 18, 100),
    (150, 20, 150),
])
def test_apply_time_of_day_floor(value, hour, expected):
    assert apply_time_of_day_floor(value, hour) == expected


def test_clamp():
    assert clamp(10) == 30
    assert clamp(400) == 300
    assert clamp(150) == 150


# --- simulate ---

def test_simulate_always_within_range():
    simulator = AQISimulator(rng=random.Random(42))
    for key in ZONE_KEYS:
        for day in (1, 15, 28):
            for hour in range(24):
                value = simulator.simulate(key, datetime(2025, 2, day, hour, 17))
                assert 30 <= value <= 300
                assert isinstance(value, int)


@pytest.mark.parametrize("rng_value, expected_offset", [(0.0, -10), (0.5, 0), (0.9999, 9)])
def test_simulate_jitter_bounds(rng_value, expected_offset):
    now = datetime(2025, 3, 14, 20, 0)
    base = base_value("ahm_001", now)
    simulator = AQISimulator(rng=_fixed_rng(rng_value))
    assert simulator.simulate("ahm_001", now) == clamp(base + expected_offset)


def test_independent_jitter_uses_injected_rng():
    rng = _fixed_rng(0.5)
    AQISimulator(rng=rng).simulate("ahm_001", datetime(2025, 3, 14, 12, 0))
    rng.random.assert_called_once()


def test_deterministic_jitter_gives_identical_results():
    now = datetime(2025, 3, 14, 13, 45, tzinfo=timezone.utc)
    a = AQISimulator(deterministic_jitter=True)
    b = AQISimulator(deterministic_jitter=True)
    assert a.simulate("ahm_003", now) == b.simulate("ahm_003", now)
    assert a.simulate("ahm_003", now) == a.simulate("ahm_003", now.replace(hour=12, minute=0))


def test_simulate_defaults_to_current_time():
    value = AQISimulator().simulate("ahm_001")
    assert 30 <= value <= 300


def test_simulate_zone_falls_back_to_name():
    now = datetime(2025, 3, 14, 7, 0)
    simulator = AQISimulator(deterministic_jitter=True)
    assert simulator.simulate_zone("", "Old City", now) == simulator.simulate("Old City", now)
    assert simulator.simulate_zone(None, "Old City", now) == simulator.simulate("Old City", now)
    assert simulator.simulate_zone("ahm_001", "Old City", now) == simulator.simulate("ahm_001", now)
