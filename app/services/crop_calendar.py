"""
Crop Calendar Calculator.

Quick days-to-harvest estimate for the reference crop catalog, adjusted by
air temperature, with warnings for pH, temperature and photoperiod outside
typical ranges. Lighter than the full growth simulator: it only needs
temperature, pH and daily light hours.
"""
from typing import Dict, List, Optional, Tuple, Any
from dataclasses import dataclass, field, asdict
import json
import logging

from app.core import config
from app.services.crop_profiles import UnknownCropError
from app.services.growth_simulation_rules import (
    CALENDAR_DAYS_PER_DEGREE,
    CALENDAR_LIGHT_HOURS_RANGE,
    round_half_away,
    format_number,
)

logger = logging.getLogger(__name__)

_crop_catalog_cache: Optional[List[Dict[str, Any]]] = None


def clear_crop_catalog_cache():
    """Clear the cache to reload the crop catalog on next call."""
    global _crop_catalog_cache
    _crop_catalog_cache = None


def load_crop_catalog() -> List[Dict[str, Any]]:
    """Load the reference crop catalog from JSON file."""
    global _crop_catalog_cache
    if _crop_catalog_cache is not None:
        return _crop_catalog_cache

    try:
        with open(config.CROP_CATALOG_PATH, "r", encoding="utf-8") as f:
            _crop_catalog_cache = json.load(f).get("crops", [])
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Error loading crop catalog: {e}")
        raise
    return _crop_catalog_cache


def get_catalog_crop(crop_id: str) -> Dict[str, Any]:
    key = (crop_id or "").lower().strip()
    crop = next((c for c in load_crop_catalog() if c["id"] == key), None)
    if crop is None:
        raise UnknownCropError(crop_id)
    return crop


@dataclass
class CropCalendarEstimate:
    """Estimated harvest window and agronomic warnings."""
    crop_id: str
    common_name: str
    estimated_days: Tuple[int, int]
    warnings: List[str] = field(default_factory=list)
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["estimated_days"] = list(self.estimated_days)
        return data


def estimate_crop_calendar(crop_id: str, air_temperature: float, ph: float,
                           light_hours: float = 16) -> CropCalendarEstimate:
    """
    Estimate days to harvest for a catalog crop.

    Each °C above the optimal mean shortens the cycle by 2%; each °C below
    lengthens it by the same amount.
    """
    crop = get_catalog_crop(crop_id)
    min_days, max_days = crop["growth_days_range"]
    temp_low, temp_high = crop["optimal_temp_c"]
    ph_low, ph_high = crop["optimal_ph"]

    temp_factor = 1 - CALENDAR_DAYS_PER_DEGREE * (air_temperature - (temp_low + temp_high) / 2)
    min_d = round_half_away(min_days * temp_factor)
    max_d = round_half_away(max_days * temp_factor)

    warnings = []
    ph_range = f"{format_number(ph_low)}–{format_number(ph_high)}"
    if ph < ph_low:
        warnings.append(f"pH below optimum ({ph_range})")
    if ph > ph_high:
        warnings.append(f"pH above optimum ({ph_range})")

    temp_range = f"{format_number(temp_low)}–{format_number(temp_high)} °C"
    if air_temperature < temp_low:
        warnings.append(f"Temperature below optimum ({temp_range})")
    if air_temperature > temp_high:
        warnings.append(f"Temperature above optimum ({temp_range})")

    hours_low, hours_high = CALENDAR_LIGHT_HOURS_RANGE
    if crop.get("light_lux") and (light_hours < hours_low or light_hours > hours_high):
        warnings.append(
            f"Light hours outside the typical range ({hours_low}–{hours_high} h). "
            f"Check light intensity against the recommended {crop['light_lux']} lux."
        )

    low = max(1, min_d)
    return CropCalendarEstimate(
        crop_id=crop["id"],
        common_name=crop["common_name"],
        estimated_days=(low, max(low, max_d)),
        warnings=warnings,
        notes=crop.get("notes"),
    )
