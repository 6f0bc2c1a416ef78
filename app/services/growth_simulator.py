"""
Growth Simulator Service.

Predicts whether a hydroponic crop survives and how productive it will be
from measured environmental parameters and the crop's profile:
- Viability against critical (lethal) bounds
- Yield as a product of weighted, non-linearly scaled parameter impacts
- pH/EC interaction penalty
- Days to harvest under sub-optimal light, temperature and CO2
- Corrective recommendations

The engine is a pure, synchronous function of its inputs: every call
allocates its own issue and recommendation lists and touches no shared
mutable state.
"""
from typing import Dict, List, Union, Any
from dataclasses import dataclass, field, asdict
import logging
import math

from app.services.crop_profiles import CropId, CropProfile, ParameterRange, lookup
from app.services.growth_simulation_rules import (
    PARAMETER_KEYS,
    PARAMETER_DISPLAY_NAMES,
    PARAM_WEIGHTS,
    MIN_LINEAR_SCORE,
    INTERACTION_EC_DEVIATION,
    INTERACTION_PH_DEVIATION,
    INTERACTION_PENALTY,
    ADVISORY_EC_OFFSET,
    ADVISORY_PH_OFFSET,
    GROWTH_TIME_MULTIPLIERS,
    round_half_away,
    format_number,
)

logger = logging.getLogger(__name__)


@dataclass
class InputParameters:
    """Measured readings for one simulation. Every reading must be finite."""
    crop_id: Union[CropId, str]
    ph: float
    ec: float  # mS/cm
    air_temperature: float  # °C
    solution_temperature: float  # °C
    light_intensity: float  # lux
    co2_level: float  # ppm
    humidity: float  # %
    water_level: float  # %
    oxygen_level: float  # mg/L

    def __post_init__(self):
        bad = [key for key in PARAMETER_KEYS if not math.isfinite(getattr(self, key))]
        if bad:
            raise ValueError(f"Non-finite readings: {', '.join(bad)}")

    def value_of(self, key: str) -> float:
        return getattr(self, key)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InputParameters":
        return cls(crop_id=data["crop_id"], **{key: float(data[key]) for key in PARAMETER_KEYS})


@dataclass
class SimulationResult:
    """Outcome of one simulation."""
    is_viable: bool
    yield_percentage: int
    expected_grams: int
    yield_per_square_meter: float
    growth_time: int
    issues: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def compute_linear_normalized(value: float, limits: ParameterRange) -> float:
    """
    Position of ``value`` between its critical bound (0) and optimal bound (1).

    Values inside the optimal range score 1. When the critical bound on the
    deviating side leaves no slack (critical == optimal), the score is 0.
    """
    cmin = limits.effective_critical_min
    cmax = limits.effective_critical_max

    if value < limits.min:
        if cmin >= limits.min:
            return 0.0
        return clamp((value - cmin) / (limits.min - cmin))

    if value > limits.max:
        if cmax <= limits.max:
            return 0.0
        return clamp((cmax - value) / (cmax - limits.max))

    return 1.0


def compute_impact(value: float, limits: ParameterRange, weight: float) -> float:
    """Multiplicative yield contribution of one parameter, in [0.01^(1+weight), 1]."""
    if limits.contains(value):
        return 1.0
    linear = compute_linear_normalized(value, limits)
    return max(MIN_LINEAR_SCORE, linear) ** (1 + weight)


class GrowthSimulator:
    """
    Scoring engine for hydroponic growth.

    Methodology:
    1. Check every reading against its critical bounds (viability)
    2. Normalize each out-of-range reading linearly between its critical
       and optimal bounds
    3. Raise the score to 1 + weight so important parameters penalize harder
    4. Multiply all impacts, then apply the pH/EC interaction penalty
    5. Stretch growth time for cold, dark or CO2-starved conditions
    """

    PARAM_WEIGHTS = PARAM_WEIGHTS

    def check_viability(self, params: InputParameters, profile: CropProfile, issues: List[str]) -> bool:
        """
        Check all readings against critical bounds.

        Every parameter is checked so that each violation is reported.
        Bounds are inclusive: a reading equal to a critical bound survives.
        """
        is_viable = True
        for key in PARAMETER_KEYS:
            value = params.value_of(key)
            limits = profile.range_for(key)
            cmin = limits.effective_critical_min
            cmax = limits.effective_critical_max

            if value < cmin or value > cmax:
                is_viable = False
                issues.append(
                    f"{PARAMETER_DISPLAY_NAMES[key]}: {format_number(value)} outside the survivable range "
                    f"({format_number(cmin)}–{format_number(cmax)}): risk of death."
                )
        return is_viable

    def calculate_yield(self, params: InputParameters, profile: CropProfile, issues: List[str]) -> int:
        """Yield as a percentage (0-100) of the crop's maximum."""
        yield_multiplier = 1.0
        deviations: Dict[str, float] = {}

        for key in PARAMETER_KEYS:
            value = params.value_of(key)
            limits = profile.range_for(key)

            if limits.contains(value):
                deviations[key] = 0.0
                continue

            impact = compute_impact(value, limits, self.PARAM_WEIGHTS[key])
            yield_multiplier *= impact
            deviations[key] = abs(1 - impact)

            if impact < 1:
                issues.append(
                    f"{PARAMETER_DISPLAY_NAMES[key]}: {format_number(value)} outside the optimum "
                    f"({format_number(limits.min)}–{format_number(limits.max)}), "
                    f"impact ≈ {round_half_away(impact * 100)}%."
                )

        if (deviations.get("ec", 0.0) > INTERACTION_EC_DEVIATION
                and deviations.get("ph", 0.0) > INTERACTION_PH_DEVIATION):
            yield_multiplier *= INTERACTION_PENALTY

        return round_half_away(max(0.0, yield_multiplier * 100))

    def calculate_growth_time(self, params: InputParameters, profile: CropProfile) -> int:
        """
        Days to harvest, capped at the crop's maximum.

        Only readings below their optimal minimum slow growth; excess heat,
        light or CO2 leaves the duration unchanged.
        """
        multiplier = 1.0
        for key, factor in GROWTH_TIME_MULTIPLIERS.items():
            if params.value_of(key) < profile.range_for(key).min:
                multiplier *= factor

        days = round_half_away(profile.growth_time.optimal * multiplier)
        return min(days, profile.growth_time.max)

    def generate_recommendations(self, params: InputParameters, profile: CropProfile,
                                 recommendations: List[str]) -> None:
        """Corrective directives for out-of-range readings plus the pH/EC advisory."""
        for key in PARAMETER_KEYS:
            value = params.value_of(key)
            limits = profile.range_for(key)
            target = f"{format_number(limits.min)}–{format_number(limits.max)}"
            name = PARAMETER_DISPLAY_NAMES[key]
            if value < limits.min:
                recommendations.append(f"Raise {name} to {target} (currently {format_number(value)}).")
            elif value > limits.max:
                recommendations.append(f"Lower {name} to {target} (currently {format_number(value)}).")

        ec_offset = abs(params.ec - profile.range_for("ec").midpoint)
        ph_offset = abs(params.ph - profile.range_for("ph").midpoint)
        if ec_offset > ADVISORY_EC_OFFSET and ph_offset > ADVISORY_PH_OFFSET:
            recommendations.append(
                "pH and EC are both far off target: correct pH and/or conductivity together "
                "to restore nutrient balance."
            )

    def simulate_profile(self, params: InputParameters, profile: CropProfile) -> SimulationResult:
        """Run the full pipeline against an explicit profile."""
        issues: List[str] = []
        recommendations: List[str] = []

        is_viable = self.check_viability(params, profile, issues)
        yield_percentage = self.calculate_yield(params, profile, issues)
        growth_time = self.calculate_growth_time(params, profile)

        expected_grams = round_half_away(profile.max_yield * yield_percentage / 100)
        # Unit growing area of one square meter; grams -> kg, 2 decimals.
        yield_per_square_meter = round_half_away(expected_grams / 1000 * 100) / 100

        self.generate_recommendations(params, profile, recommendations)

        logger.debug(
            f"Simulated {profile.crop_id.value}: viable={is_viable}, yield={yield_percentage}%, "
            f"days={growth_time}, issues={len(issues)}"
        )

        return SimulationResult(
            is_viable=is_viable,
            yield_percentage=yield_percentage,
            expected_grams=expected_grams,
            yield_per_square_meter=yield_per_square_meter,
            growth_time=growth_time,
            issues=issues,
            recommendations=recommendations,
        )

    def simulate(self, params: InputParameters, crop_id: Union[CropId, str, None] = None) -> SimulationResult:
        """
        Simulate growth for ``crop_id`` (defaults to ``params.crop_id``).

        Raises:
            UnknownCropError: the crop has no registered profile.
        """
        profile = lookup(crop_id if crop_id is not None else params.crop_id)
        return self.simulate_profile(params, profile)


growth_simulator = GrowthSimulator()


def simulate(params: InputParameters, crop_id: Union[CropId, str, None] = None) -> SimulationResult:
    """Public entry point: score ``params`` against the registered crop profile."""
    return growth_simulator.simulate(params, crop_id)
