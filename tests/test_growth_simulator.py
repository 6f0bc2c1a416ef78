"""
Tests for the growth simulator scoring engine.

Covers viability, the weighted yield model, the pH/EC interaction penalty,
growth-time stretching and recommendations against the bundled profiles.
"""
import pytest

from app.services.crop_profiles import CropId, ParameterRange, UnknownCropError, lookup
from app.services.growth_simulation_rules import (
    PARAMETER_KEYS,
    PARAM_WEIGHTS,
    DEFAULT_PARAMETERS,
    round_half_away,
    format_number,
)
from app.services.growth_simulator import (
    InputParameters,
    GrowthSimulator,
    compute_impact,
    compute_linear_normalized,
    growth_simulator,
    simulate,
)


def optimal_params(crop_id: CropId, **overrides) -> InputParameters:
    """Every reading at its optimal midpoint, then the overrides."""
    profile = lookup(crop_id)
    values = {key: profile.range_for(key).midpoint for key in PARAMETER_KEYS}
    values.update(overrides)
    return InputParameters(crop_id=crop_id, **values)


@pytest.fixture
def tomato():
    return lookup(CropId.TOMATO)


@pytest.fixture
def lettuce():
    return lookup(CropId.LETTUCE)


class TestRounding:
    """round_half_away and number formatting."""

    def test_ties_round_away_from_zero(self):
        assert round_half_away(2.5) == 3
        assert round_half_away(0.5) == 1
        assert round_half_away(-2.5) == -3

    def test_non_ties(self):
        assert round_half_away(40.98) == 41
        assert round_half_away(41.2) == 41
        assert round_half_away(0.0) == 0

    def test_format_number_drops_trailing_zero(self):
        assert format_number(5.0) == "5"
        assert format_number(5.5) == "5.5"
        assert format_number(12000.0) == "12000"


class TestLinearScore:
    """compute_linear_normalized / compute_impact."""

    def test_inside_range_scores_one(self):
        limits = ParameterRange(min=5.5, max=6.5, critical_min=4.0, critical_max=8.0)
        assert compute_linear_normalized(6.0, limits) == 1.0
        assert compute_impact(5.5, limits, 1.2) == 1.0
        assert compute_impact(6.5, limits, 1.2) == 1.0

    def test_linear_between_critical_and_optimal(self):
        limits = ParameterRange(min=5.5, max=6.5, critical_min=4.0, critical_max=8.0)
        assert compute_linear_normalized(5.0, limits) == pytest.approx(2 / 3)
        assert compute_linear_normalized(7.25, limits) == pytest.approx(0.5)

    def test_no_slack_scores_zero(self):
        """Critical bound equal to the optimal bound leaves no slack: score 0."""
        limits = ParameterRange(min=80, max=100, critical_min=50)
        assert compute_linear_normalized(105, limits) == 0.0

    def test_beyond_critical_clamps_to_zero(self):
        limits = ParameterRange(min=5.5, max=6.5, critical_min=4.0, critical_max=8.0)
        assert compute_linear_normalized(2.0, limits) == 0.0
        assert compute_linear_normalized(9.0, limits) == 0.0

    def test_impact_floor(self):
        """A single parameter never zeroes the yield."""
        limits = ParameterRange(min=5.5, max=6.5, critical_min=4.0, critical_max=8.0)
        impact = compute_impact(1.0, limits, 1.2)
        assert impact == pytest.approx(0.01 ** 2.2)
        assert impact > 0

    def test_impact_monotonic_toward_critical(self):
        limits = ParameterRange(min=5.5, max=6.5, critical_min=4.0, critical_max=8.0)
        values = [5.5, 5.2, 4.9, 4.6, 4.3, 4.0]
        impacts = [compute_impact(v, limits, PARAM_WEIGHTS["ph"]) for v in values]
        assert impacts == sorted(impacts, reverse=True)

    def test_heavier_weight_penalizes_harder(self):
        limits = ParameterRange(min=5.5, max=6.5, critical_min=4.0, critical_max=8.0)
        assert compute_impact(5.0, limits, 1.5) < compute_impact(5.0, limits, 0.6)


class TestViability:
    """Critical-bound checks."""

    def test_below_critical_is_not_viable(self, tomato):
        """pH 3.5 is below the tomato critical minimum of 4.0."""
        issues = []
        assert growth_simulator.check_viability(optimal_params(CropId.TOMATO, ph=3.5), tomato, issues) is False
        assert issues == ["pH: 3.5 outside the survivable range (4–8): risk of death."]

    def test_critical_bounds_are_inclusive(self, tomato):
        for ph in (4.0, 8.0):
            issues = []
            assert growth_simulator.check_viability(optimal_params(CropId.TOMATO, ph=ph), tomato, issues)
            assert issues == []

    def test_every_violation_reported(self, tomato):
        params = optimal_params(CropId.TOMATO, ph=3.0, ec=6.0, oxygen_level=1.0)
        issues = []
        assert growth_simulator.check_viability(params, tomato, issues) is False
        assert [issue.split(":")[0] for issue in issues] == ["pH", "EC", "Oxygen level"]

    def test_missing_critical_falls_back_to_optimal(self, tomato):
        """water_level has no critical_max: above 100 % is lethal."""
        issues = []
        assert growth_simulator.check_viability(optimal_params(CropId.TOMATO, water_level=101), tomato, issues) is False


class TestYield:
    """Weighted yield model."""

    def test_all_optimal_is_full_yield(self, tomato):
        issues = []
        assert growth_simulator.calculate_yield(optimal_params(CropId.TOMATO), tomato, issues) == 100
        assert issues == []

    def test_single_low_ph(self, tomato):
        """pH 5.0: L = 2/3, impact = (2/3)^2.2 ≈ 0.4098."""
        issues = []
        assert growth_simulator.calculate_yield(optimal_params(CropId.TOMATO, ph=5.0), tomato, issues) == 41
        assert issues == ["pH: 5 outside the optimum (5.5–6.5), impact ≈ 41%."]

    def test_interaction_penalty_applied(self, tomato):
        """pH and EC both far off: the product is multiplied by 0.9."""
        params = optimal_params(CropId.TOMATO, ph=5.3, ec=1.8)
        ph_impact = compute_impact(5.3, tomato.range_for("ph"), PARAM_WEIGHTS["ph"])
        ec_impact = compute_impact(1.8, tomato.range_for("ec"), PARAM_WEIGHTS["ec"])
        assert 1 - ph_impact > 0.15
        assert 1 - ec_impact > 0.2

        result = growth_simulator.calculate_yield(params, tomato, [])
        assert result == round_half_away(ph_impact * ec_impact * 0.9 * 100)
        assert result == 38
        assert result < round_half_away(ph_impact * ec_impact * 100)

    def test_no_penalty_when_only_ph_deviates(self, tomato):
        params = optimal_params(CropId.TOMATO, ph=5.3)
        ph_impact = compute_impact(5.3, tomato.range_for("ph"), PARAM_WEIGHTS["ph"])
        assert growth_simulator.calculate_yield(params, tomato, []) == round_half_away(ph_impact * 100)

    def test_yield_bounded(self, tomato):
        params = optimal_params(
            CropId.TOMATO, ph=0, ec=0, air_temperature=0, solution_temperature=0,
            light_intensity=0, co2_level=0, humidity=0, water_level=0, oxygen_level=0,
        )
        assert growth_simulator.calculate_yield(params, tomato, []) == 0

    def test_yield_monotonic_as_reading_worsens(self, tomato):
        yields = [
            growth_simulator.calculate_yield(optimal_params(CropId.TOMATO, ec=ec), tomato, [])
            for ec in (2.0, 1.8, 1.5, 1.2, 1.0)
        ]
        assert yields == sorted(yields, reverse=True)


class TestGrowthTime:
    """Days-to-harvest estimator."""

    def test_optimal_conditions(self, lettuce):
        assert growth_simulator.calculate_growth_time(optimal_params(CropId.LETTUCE), lettuce) == 35

    def test_cold_air_rounds_half_away(self, lettuce):
        """35 * 1.5 = 52.5 rounds to 53."""
        params = optimal_params(CropId.LETTUCE, air_temperature=15)
        assert growth_simulator.calculate_growth_time(params, lettuce) == 53

    def test_low_co2(self, lettuce):
        params = optimal_params(CropId.LETTUCE, co2_level=500)
        assert growth_simulator.calculate_growth_time(params, lettuce) == 42

    def test_cold_and_dark_capped_at_max(self, tomato):
        """Air and light below optimum, CO2 at optimum."""
        params = optimal_params(CropId.TOMATO, air_temperature=18, light_intensity=15000)
        expected = min(round_half_away(tomato.growth_time.optimal * 1.5 * 1.3), tomato.growth_time.max)
        assert growth_simulator.calculate_growth_time(params, tomato) == expected == 120

    def test_excess_does_not_slow_growth(self, lettuce):
        params = optimal_params(CropId.LETTUCE, air_temperature=28, light_intensity=35000, co2_level=1800)
        assert growth_simulator.calculate_growth_time(params, lettuce) == 35


class TestRecommendations:
    """Corrective directives and the pH/EC advisory."""

    def test_raise_and_lower(self, tomato):
        recs = []
        params = optimal_params(CropId.TOMATO, ph=5.0, humidity=85)
        growth_simulator.generate_recommendations(params, tomato, recs)
        assert recs == [
            "Raise pH to 5.5–6.5 (currently 5).",
            "Lower Humidity to 60–75 (currently 85).",
        ]

    def test_nothing_to_recommend_at_optimum(self, tomato):
        recs = []
        growth_simulator.generate_recommendations(optimal_params(CropId.TOMATO), tomato, recs)
        assert recs == []

    def test_advisory_when_both_far_from_midpoint(self, tomato):
        recs = []
        growth_simulator.generate_recommendations(optimal_params(CropId.TOMATO, ph=5.3, ec=1.8), tomato, recs)
        assert len(recs) == 3
        assert recs[-1].startswith("pH and EC are both far off target")

    def test_advisory_can_fire_inside_optimal_range(self, tomato):
        """Advisory uses midpoint offsets, independent of the optimal range."""
        recs = []
        growth_simulator.generate_recommendations(optimal_params(CropId.TOMATO, ph=6.45, ec=3.6), tomato, recs)
        assert recs[0].startswith("Lower EC")
        assert recs[-1].startswith("pH and EC are both far off target")


class TestSimulate:
    """End-to-end simulation."""

    def test_low_ph_example(self):
        result = simulate(optimal_params(CropId.TOMATO, ph=5.0))
        assert result.is_viable is True
        assert result.yield_percentage == 41
        assert result.expected_grams == 3280
        assert result.yield_per_square_meter == 3.28
        assert result.growth_time == 70
        assert len(result.issues) == 1
        assert result.recommendations == ["Raise pH to 5.5–6.5 (currently 5)."]

    def test_lethal_ph_example(self):
        result = simulate(optimal_params(CropId.TOMATO, ph=3.5))
        assert result.is_viable is False
        assert result.yield_percentage == 0
        assert result.issues[0] == "pH: 3.5 outside the survivable range (4–8): risk of death."
        assert result.issues[1].startswith("pH: 3.5 outside the optimum")

    def test_default_parameters_are_ideal_for_lettuce(self):
        result = simulate(InputParameters.from_dict(DEFAULT_PARAMETERS))
        assert result.is_viable is True
        assert result.yield_percentage == 100
        assert result.expected_grams == 3000
        assert result.yield_per_square_meter == 3.0
        assert result.growth_time == 35
        assert result.issues == []
        assert result.recommendations == []

    @pytest.mark.parametrize("crop_id", list(CropId))
    def test_every_crop_ideal_at_midpoints(self, crop_id):
        profile = lookup(crop_id)
        result = simulate(optimal_params(crop_id))
        assert result.yield_percentage == 100
        assert result.growth_time == profile.growth_time.optimal
        assert result.issues == []

    def test_explicit_crop_overrides_params(self):
        params = optimal_params(CropId.LETTUCE)
        result = simulate(params, CropId.TOMATO)
        assert result.yield_percentage < 100

    def test_string_crop_id_is_normalized(self):
        params = optimal_params(CropId.LETTUCE)
        params.crop_id = " Lettuce "
        assert simulate(params).yield_percentage == 100

    def test_unknown_crop_raises(self):
        params = optimal_params(CropId.LETTUCE)
        params.crop_id = "banana"
        with pytest.raises(UnknownCropError) as exc:
            simulate(params)
        assert exc.value.crop_id == "banana"

    def test_calls_do_not_share_state(self):
        """Issues from one call never leak into the next."""
        first = simulate(optimal_params(CropId.TOMATO, ph=3.5))
        second = simulate(optimal_params(CropId.TOMATO))
        assert first.issues
        assert second.issues == []
        assert second.recommendations == []

    def test_deterministic(self):
        params = optimal_params(CropId.BASIL, ec=0.9, humidity=90)
        assert GrowthSimulator().simulate(params).to_dict() == growth_simulator.simulate(params).to_dict()

    def test_to_dict_keys(self):
        data = simulate(optimal_params(CropId.LETTUCE)).to_dict()
        assert set(data) == {
            "is_viable", "yield_percentage", "expected_grams", "yield_per_square_meter",
            "growth_time", "issues", "recommendations",
        }


class TestInputParameters:
    """Reading validation at construction."""

    @pytest.mark.parametrize("bad", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_reading_rejected(self, bad):
        with pytest.raises(ValueError, match="ph"):
            optimal_params(CropId.LETTUCE, ph=bad)

    def test_from_dict_rejects_nan(self):
        data = dict(DEFAULT_PARAMETERS, ec=float("nan"), humidity=float("inf"))
        with pytest.raises(ValueError, match="ec, humidity"):
            InputParameters.from_dict(data)

    def test_finite_out_of_range_accepted(self):
        """Any finite reading is scored, however far off."""
        result = simulate(optimal_params(CropId.LETTUCE, ph=-5.0))
        assert result.is_viable is False
        assert result.yield_percentage == 0
