"""
Crop Profile Registry.

Maps a closed set of crop identifiers to immutable growing profiles:
optimal and critical ranges for every measured parameter, growth-time
bounds and the maximum attainable yield.

Profiles are loaded once from JSON and cached for the life of the process.
"""
from typing import Dict, List, Mapping, Optional, Union, Any
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
import json
import logging

from app.core import config
from app.services.growth_simulation_rules import PARAMETER_KEYS

logger = logging.getLogger(__name__)


class CropId(str, Enum):
    """Crops with a full hydroponic growing profile."""
    LETTUCE = "lettuce"
    BASIL = "basil"
    TOMATO = "tomato"
    SPINACH = "spinach"
    ARUGULA = "arugula"
    KALE = "kale"
    CHARD = "chard"
    PEPPER = "pepper"
    CUCUMBER = "cucumber"
    STRAWBERRY = "strawberry"
    MINT = "mint"
    PARSLEY = "parsley"
    CILANTRO = "cilantro"
    EGGPLANT = "eggplant"


class UnknownCropError(KeyError):
    """Raised when a crop identifier has no registered profile."""

    def __init__(self, crop_id: Any):
        self.crop_id = crop_id
        super().__init__(f"Unknown crop '{crop_id}'")

    def __str__(self) -> str:
        return f"Unknown crop '{self.crop_id}'"


class CropProfileError(ValueError):
    """Raised when the profile table is missing or breaks a range invariant."""
    pass


@dataclass(frozen=True)
class ParameterRange:
    """Optimal interval plus optional wider critical (lethal) bounds."""
    min: float
    max: float
    critical_min: Optional[float] = None
    critical_max: Optional[float] = None

    @property
    def effective_critical_min(self) -> float:
        return self.critical_min if self.critical_min is not None else self.min

    @property
    def effective_critical_max(self) -> float:
        return self.critical_max if self.critical_max is not None else self.max

    @property
    def midpoint(self) -> float:
        return (self.min + self.max) / 2

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max

    def to_dict(self) -> Dict[str, Optional[float]]:
        return {
            "min": self.min,
            "max": self.max,
            "critical_min": self.critical_min,
            "critical_max": self.critical_max,
        }


@dataclass(frozen=True)
class GrowthTime:
    """Days to harvest under optimal conditions and the upper bound."""
    optimal: int
    max: int


@dataclass(frozen=True)
class CropProfile:
    """Complete growing profile for one crop."""
    crop_id: CropId
    name: str
    optimal: Mapping[str, ParameterRange]
    growth_time: GrowthTime
    max_yield: float  # grams per square meter
    scientific_name: Optional[str] = None

    def range_for(self, key: str) -> ParameterRange:
        return self.optimal[key]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.crop_id.value,
            "name": self.name,
            "scientific_name": self.scientific_name,
            "growth_time": {"optimal": self.growth_time.optimal, "max": self.growth_time.max},
            "max_yield": self.max_yield,
            "optimal": {key: self.optimal[key].to_dict() for key in PARAMETER_KEYS},
        }


_crop_profiles_cache: Optional[Mapping[CropId, CropProfile]] = None


def clear_crop_profiles_cache():
    """Clear the cache to reload crop profiles on next call."""
    global _crop_profiles_cache
    _crop_profiles_cache = None


def _parse_range(crop_key: str, param_key: str, raw: Dict[str, Any]) -> ParameterRange:
    try:
        limits = ParameterRange(
            min=float(raw["min"]),
            max=float(raw["max"]),
            critical_min=float(raw["critical_min"]) if raw.get("critical_min") is not None else None,
            critical_max=float(raw["critical_max"]) if raw.get("critical_max") is not None else None,
        )
    except (KeyError, TypeError, ValueError) as e:
        raise CropProfileError(f"{crop_key}.{param_key}: invalid range ({e})") from e

    if limits.min > limits.max:
        raise CropProfileError(f"{crop_key}.{param_key}: min {limits.min} > max {limits.max}")
    if limits.critical_min is not None and limits.critical_min > limits.min:
        raise CropProfileError(
            f"{crop_key}.{param_key}: critical_min {limits.critical_min} > min {limits.min}"
        )
    if limits.critical_max is not None and limits.critical_max < limits.max:
        raise CropProfileError(
            f"{crop_key}.{param_key}: critical_max {limits.critical_max} < max {limits.max}"
        )
    return limits


def parse_crop_profile(crop_id: CropId, raw: Dict[str, Any]) -> CropProfile:
    """
    Build a validated CropProfile from its JSON representation.

    Raises:
        CropProfileError: a parameter is missing or a range or growth-time
            invariant does not hold.
    """
    key = crop_id.value
    optimal_raw = raw.get("optimal") or {}
    missing = [p for p in PARAMETER_KEYS if p not in optimal_raw]
    if missing:
        raise CropProfileError(f"{key}: missing parameters {', '.join(missing)}")

    optimal = MappingProxyType({p: _parse_range(key, p, optimal_raw[p]) for p in PARAMETER_KEYS})

    growth_raw = raw.get("growth_time") or {}
    try:
        growth_time = GrowthTime(optimal=int(growth_raw["optimal"]), max=int(growth_raw["max"]))
    except (KeyError, TypeError, ValueError) as e:
        raise CropProfileError(f"{key}: invalid growth_time ({e})") from e
    if growth_time.optimal < 1 or growth_time.optimal > growth_time.max:
        raise CropProfileError(
            f"{key}: growth_time optimal {growth_time.optimal} must be within 1..{growth_time.max}"
        )

    max_yield = float(raw.get("max_yield", 0))
    if max_yield < 0:
        raise CropProfileError(f"{key}: max_yield must be >= 0")

    return CropProfile(
        crop_id=crop_id,
        name=raw.get("name", key),
        scientific_name=raw.get("scientific_name"),
        optimal=optimal,
        growth_time=growth_time,
        max_yield=max_yield,
    )


def load_crop_profiles(path: Optional[str] = None) -> Mapping[CropId, CropProfile]:
    """
    Load crop profiles from JSON file.

    The default table is cached; an explicit ``path`` always reads from disk
    and bypasses the cache. The returned mapping is read-only.

    Raises:
        CropProfileError: file unreadable, malformed, or missing a crop of
            the CropId enum.
    """
    global _crop_profiles_cache
    if path is None and _crop_profiles_cache is not None:
        return _crop_profiles_cache

    source = path or config.CROP_PROFILES_PATH
    try:
        with open(source, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Error loading crop profiles from {source}: {e}")
        raise CropProfileError(f"Could not load crop profiles: {e}") from e

    crops_raw = data.get("crops", {})
    profiles: Dict[CropId, CropProfile] = {}
    try:
        for crop_id in CropId:
            if crop_id.value not in crops_raw:
                raise CropProfileError(f"No profile for crop '{crop_id.value}'")
            profiles[crop_id] = parse_crop_profile(crop_id, crops_raw[crop_id.value])
    except CropProfileError as e:
        logger.error(f"Invalid crop profile table {source}: {e}")
        raise

    extra = set(crops_raw) - {c.value for c in CropId}
    if extra:
        logger.warning(f"Ignoring profiles without a CropId: {', '.join(sorted(extra))}")

    logger.info(f"Loaded {len(profiles)} crop profiles from {source}")
    registry = MappingProxyType(profiles)
    if path is None:
        _crop_profiles_cache = registry
    return registry


def resolve_crop_id(crop_id: Union[CropId, str]) -> CropId:
    """Normalize a crop identifier; raises UnknownCropError if it is not in the enum."""
    if isinstance(crop_id, CropId):
        return crop_id
    normalized = str(crop_id).lower().strip() if crop_id is not None else ""
    try:
        return CropId(normalized)
    except ValueError:
        raise UnknownCropError(crop_id) from None


def lookup(crop_id: Union[CropId, str]) -> CropProfile:
    """Return the profile for ``crop_id`` or raise UnknownCropError."""
    resolved = resolve_crop_id(crop_id)
    profiles = load_crop_profiles()
    profile = profiles.get(resolved)
    if profile is None:
        raise UnknownCropError(crop_id)
    return profile


def list_crops() -> List[Dict[str, Any]]:
    """Summaries of every registered crop, in CropId order."""
    profiles = load_crop_profiles()
    crops = []
    for crop_id in CropId:
        profile = profiles[crop_id]
        crops.append({
            "id": crop_id.value,
            "name": profile.name,
            "scientific_name": profile.scientific_name,
            "growth_time": {"optimal": profile.growth_time.optimal, "max": profile.growth_time.max},
            "max_yield": profile.max_yield,
        })
    return crops
