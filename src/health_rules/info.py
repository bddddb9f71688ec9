# File: src/health_rules/info.py

"""
Defines the US EPA Air Quality Index (AQI) category scale and related lookups.

The scale is used for every AQI value the system reports, whether it was
simulated, read directly from a provider record, or computed from pollutant
concentrations. `get_aqi_category` is total over numbers: anything above the
last bounded category is "Hazardous".
"""

import logging
import math
import pandas as pd # Used for the robust pd.isna check


log = logging.getLogger(__name__)


# --- AQI Definition ---
AQI_DEFINITION = """
The Air Quality Index (AQI) is a unitless number summarising how polluted the air is.
Higher values mean greater health concern; values above 300 are hazardous for everyone.
"""

# --- AQI Scale (US EPA categories) ---
# Each entry covers values up to and including `upper`. The last entry is unbounded.
AQI_SCALE = [
    {"upper": 50,  "range": "0-50",    "level": "Good", "color": "#00E400", "implications": "Air quality is satisfactory, and air pollution poses little or no risk."},
    {"upper": 100, "range": "51-100",  "level": "Moderate", "color": "#FFFF00", "implications": "Air quality is acceptable. Some people who are unusually sensitive to air pollution may be affected."},
    {"upper": 150, "range": "101-150", "level": "Unhealthy for Sensitive Groups", "color": "#FF7E00", "implications": "Members of sensitive groups may experience health effects. The general public is less likely to be affected."},
    {"upper": 200, "range": "151-200", "level": "Unhealthy", "color": "#FF0000", "implications": "Some members of the general public may experience health effects; sensitive groups may experience more serious effects."},
    {"upper": 300, "range": "201-300", "level": "Very Unhealthy", "color": "#8F3F97", "implications": "Health alert: the risk of health effects is increased for everyone."},
    {"upper": None, "range": "301+",   "level": "Hazardous", "color": "#7E0023", "implications": "Health warning of emergency conditions: everyone is more likely to be affected."},
]


def _is_number(value):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not pd.isna(value) and not math.isinf(value)


def get_aqi_info(aqi_value):
    """
    Finds the AQI category details for a given numerical AQI value.

    Args:
        aqi_value (int | float | None): The numerical AQI value to classify.

    Returns:
        dict | None: The matching AQI_SCALE entry ('upper', 'range', 'level',
                     'color', 'implications'). Values above 300 map to
                     'Hazardous'. Returns None for None, NaN, infinite or
                     non-numeric input.
    """
    if not _is_number(aqi_value):
        log.warning(f"Invalid AQI value received: {aqi_value!r}. Returning None.")
        return None

    for category in AQI_SCALE:
        if category["upper"] is None or aqi_value <= category["upper"]:
            return category

    # Unreachable while the last AQI_SCALE entry is unbounded.
    return AQI_SCALE[-1]


def get_aqi_category(aqi_value):
    """Returns the category name for an AQI value, e.g. 'Moderate'.

    Returns None only when `aqi_value` is not a number.
    """
    info = get_aqi_info(aqi_value)
    return info["level"] if info else None
