"""
Deterministic agronomic rules and thresholds for the growth simulator.

This module centralizes constants so the scoring logic stays
deterministic, auditable, and consistent across services and tests.
"""
import math

# Fixed evaluation order shared by every component. Issues and
# recommendations are emitted in this order.
PARAMETER_KEYS = (
    "ph",
    "ec",
    "air_temperature",
    "solution_temperature",
    "light_intensity",
    "co2_level",
    "humidity",
    "water_level",
    "oxygen_level",
)

PARAMETER_DISPLAY_NAMES = {
    "ph": "pH",
    "ec": "EC",
    "air_temperature": "Air temperature",
    "solution_temperature": "Solution temperature",
    "light_intensity": "Light intensity",
    "co2_level": "CO2 level",
    "humidity": "Humidity",
    "water_level": "Water level",
    "oxygen_level": "Oxygen level",
}

PARAMETER_UNITS = {
    "ph": "",
    "ec": "mS/cm",
    "air_temperature": "°C",
    "solution_temperature": "°C",
    "light_intensity": "lux",
    "co2_level": "ppm",
    "humidity": "%",
    "water_level": "%",
    "oxygen_level": "mg/L",
}

# Higher weight => steeper yield penalty for the same normalized deviation.
PARAM_WEIGHTS = {
    "ph": 1.2,
    "ec": 1.5,
    "air_temperature": 1.0,
    "solution_temperature": 1.0,
    "light_intensity": 1.3,
    "co2_level": 0.9,
    "humidity": 0.6,
    "water_level": 0.7,
    "oxygen_level": 1.4,
}

# Floor on the linear score so a single parameter never zeroes the yield.
MIN_LINEAR_SCORE = 0.01

# pH <-> EC coupling inside the yield evaluator (normalized deviations).
INTERACTION_EC_DEVIATION = 0.2
INTERACTION_PH_DEVIATION = 0.15
INTERACTION_PENALTY = 0.9

# pH <-> EC combined advisory (absolute distance from the optimal midpoint).
# Not derived from the interaction thresholds above.
ADVISORY_EC_OFFSET = 0.8
ADVISORY_PH_OFFSET = 0.4

# Growth slows only when these readings fall below their optimal minimum.
GROWTH_TIME_MULTIPLIERS = {
    "air_temperature": 1.5,
    "light_intensity": 1.3,
    "co2_level": 1.2,
}

# Crop calendar heuristics.
CALENDAR_DAYS_PER_DEGREE = 0.02
CALENDAR_LIGHT_HOURS_RANGE = (8, 20)

# Lettuce-optimal snapshot used to prefill new simulations.
DEFAULT_PARAMETERS = {
    "crop_id": "lettuce",
    "ph": 6.0,
    "ec": 1.5,
    "air_temperature": 20.0,
    "solution_temperature": 20.0,
    "light_intensity": 12000.0,
    "co2_level": 800.0,
    "humidity": 60.0,
    "water_level": 100.0,
    "oxygen_level": 6.0,
}


def round_half_away(value: float) -> int:
    """Round to the nearest integer, ties away from zero (2.5 -> 3, -2.5 -> -3)."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def format_number(value: float) -> str:
    """Render a reading without a trailing '.0' for whole numbers."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
