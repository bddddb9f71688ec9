# File: src/health_rules/calculator.py

"""
Converts PM2.5 / PM10 concentrations into AQI sub-indices.

Uses the US EPA piecewise-linear breakpoint method:

    I = (I_hi - I_lo) / (C_hi - C_lo) * (C - C_lo) + I_lo

for the first breakpoint segment with C_lo <= C <= C_hi. Concentrations that
fall outside every segment (negative, above the top segment, or in the small
gaps between segments) yield None; nothing is extrapolated or clamped.
"""

import logging
import math
from typing import NamedTuple, Optional

import pandas as pd


log = logging.getLogger(__name__)


class Breakpoint(NamedTuple):
    conc_low: float
    conc_high: float
    index_low: int
    index_high: int


class PollutantIndex(NamedTuple):
    """Result of dominant-pollutant selection."""
    aqi: Optional[int]
    main_pollutant: Optional[str]


# --- Breakpoint Tables (US EPA, ug/m3) ---
# Sorted ascending by conc_low, non-overlapping.
PM25_BREAKPOINTS = (
    Breakpoint(0.0, 12.0, 0, 50),
    Breakpoint(12.1, 35.4, 51, 100),
    Breakpoint(35.5, 55.4, 101, 150),
    Breakpoint(55.5, 150.4, 151, 200),
    Breakpoint(150.5, 250.4, 201, 300),
    Breakpoint(250.5, 350.4, 301, 400),
    Breakpoint(350.5, 500.4, 401, 500),
)

PM10_BREAKPOINTS = (
    Breakpoint(0, 54, 0, 50),
    Breakpoint(55, 154, 51, 100),
    Breakpoint(155, 254, 101, 150),
    Breakpoint(255, 354, 151, 200),
    Breakpoint(355, 424, 201, 300),
    Breakpoint(425, 504, 301, 400),
    Breakpoint(505, 604, 401, 500),
)

BREAKPOINT_TABLES = {
    "pm25": PM25_BREAKPOINTS,
    "pm10": PM10_BREAKPOINTS,
}

POLLUTANT_LABELS = {
    "pm25": "PM2.5",
    "pm10": "PM10",
}


def _round_half_up(value):
    # Python's round() is banker's rounding; AQI values round .5 upwards.
    return int(math.floor(value + 0.5))


def concentration_to_index(concentration, breakpoints):
    """
    Interpolates a concentration into an AQI sub-index.

    Args:
        concentration (float | None): Pollutant concentration.
        breakpoints (Sequence[Breakpoint]): Ordered breakpoint table.

    Returns:
        int | None: The rounded sub-index, or None if the concentration is
                    missing, NaN, non-numeric, or outside every segment.
    """
    if concentration is None or isinstance(concentration, bool):
        return None
    try:
        conc = float(concentration)
    except (TypeError, ValueError):
        log.debug(f"Non-numeric concentration ignored: {concentration!r}")
        return None
    if pd.isna(conc):
        return None

    for bp in breakpoints:
        if bp.conc_low <= conc <= bp.conc_high:
            slope = (bp.index_high - bp.index_low) / (bp.conc_high - bp.conc_low)
            return _round_half_up(slope * (conc - bp.conc_low) + bp.index_low)

    log.debug(f"Concentration {conc} falls outside every breakpoint segment.")
    return None


def calculate_sub_index(value, pollutant):
    """Sub-index for a named pollutant ('pm25' or 'pm10'); None if unknown."""
    table = BREAKPOINT_TABLES.get(str(pollutant).lower())
    if table is None:
        log.warning(f"No breakpoint table for pollutant '{pollutant}'.")
        return None
    return concentration_to_index(value, table)


def select_dominant_pollutant(pm25_index, pm10_index):
    """
    Picks the worse of the PM2.5 and PM10 sub-indices.

    Ties go to PM2.5. If only one index is present it is used; if neither is,
    both fields of the result are None.
    """
    if pm25_index is None and pm10_index is None:
        return PollutantIndex(None, None)
    if pm10_index is None:
        return PollutantIndex(pm25_index, POLLUTANT_LABELS["pm25"])
    if pm25_index is None:
        return PollutantIndex(pm10_index, POLLUTANT_LABELS["pm10"])
    if pm25_index >= pm10_index:
        return PollutantIndex(pm25_index, POLLUTANT_LABELS["pm25"])
    return PollutantIndex(pm10_index, POLLUTANT_LABELS["pm10"])


def calculate_aqi_from_pollutants(pm25=None, pm10=None):
    """Computes the overall AQI and its dominant pollutant from raw concentrations."""
    pm25_index = concentration_to_index(pm25, PM25_BREAKPOINTS) if pm25 is not None else None
    pm10_index = concentration_to_index(pm10, PM10_BREAKPOINTS) if pm10 is not None else None
    result = select_dominant_pollutant(pm25_index, pm10_index)
    log.debug(f"Computed AQI from PM2.5={pm25} (idx {pm25_index}), PM10={pm10} (idx {pm10_index}): {result}")
    return result
