"""Unit tests for the production estimators.

The hourly simulation runs a full year of solar positions, so each
scenario is computed once per module.
"""

from datetime import datetime

import pytest

from solar_estimator.data.catalogs import DEFAULT_SEASONAL_CURVE
from solar_estimator.models.production import (
    ProductionModel,
    annual_production_from_sun_hours,
    estimate_monthly_production,
    monthly_production,
    perform_solar_analysis,
    seasonal_monthly_production,
)
from solar_estimator.models.terrain import FLAT_TERRAIN


PHOENIX = (33.45, -112.07)
SYDNEY = (-33.87, 151.21)


@pytest.fixture(scope="module")
def phoenix_hourly():
    """5 kW south-facing array in Phoenix at latitude tilt."""
    return monthly_production(PHOENIX[0], PHOENIX[1], 5.0)


# ---- Seasonal Curve Tests ----

class TestSeasonalCurve:
    def test_months_sum_to_annual(self):
        monthly = seasonal_monthly_production(12000.0)
        assert len(monthly) == 12
        assert sum(monthly) == pytest.approx(12000.0)

    def test_reference_shape(self):
        """January gets 0.7 / 12.4 of the year; June and July peak."""
        monthly = seasonal_monthly_production(12400.0)
        assert monthly[0] == pytest.approx(700.0)
        assert monthly[5] == pytest.approx(1400.0)
        assert max(monthly) == monthly[5] == monthly[6]
        assert min(monthly) == monthly[11]

    def test_custom_curve(self):
        flat = seasonal_monthly_production(1200.0, [1.0] * 12)
        assert flat == pytest.approx([100.0] * 12)

    def test_curve_length_checked(self):
        with pytest.raises(ValueError):
            seasonal_monthly_production(1000.0, DEFAULT_SEASONAL_CURVE[:11])

    def test_zero_curve_spreads_evenly(self):
        assert seasonal_monthly_production(1200.0, [0.0] * 12) == pytest.approx([100.0] * 12)

    def test_negative_annual_clamped(self):
        assert seasonal_monthly_production(-500.0) == [0.0] * 12


# ---- Closed-form Annual Tests ----

class TestAnnualFromSunHours:
    def test_basic(self):
        """5 kW x 4.5 h x 365 x 0.86 = 7062.75 kWh."""
        assert annual_production_from_sun_hours(5.0, 4.5, 0.86) == pytest.approx(7062.75)

    def test_zero_size(self):
        assert annual_production_from_sun_hours(0.0, 4.5, 0.86) == 0.0


# ---- Hourly Simulation Tests ----

class TestHourlySimulation:
    def test_twelve_positive_months(self, phoenix_hourly):
        assert len(phoenix_hourly) == 12
        assert all(m > 0 for m in phoenix_hourly)

    def test_plausible_specific_yield(self, phoenix_hourly):
        """Annual output per kW falls in the 1000-2000 kWh range."""
        per_kw = sum(phoenix_hourly) / 5.0
        assert 1000 < per_kw < 2000

    def test_summer_exceeds_winter_north(self, phoenix_hourly):
        assert phoenix_hourly[5] > phoenix_hourly[11]

    def test_summer_exceeds_winter_south(self):
        """Seasons are reversed for an equator-facing array in Sydney."""
        monthly = monthly_production(SYDNEY[0], SYDNEY[1], 5.0, azimuth=0.0)
        assert monthly[11] > monthly[5]

    def test_default_orientation_faces_equator_south(self):
        """With no tilt or azimuth given, a Sydney array faces north at |lat| tilt."""
        default = monthly_production(SYDNEY[0], SYDNEY[1], 5.0)
        explicit = monthly_production(SYDNEY[0], SYDNEY[1], 5.0, tilt=abs(SYDNEY[0]), azimuth=0.0)
        assert default == pytest.approx(explicit)
        assert all(m > 0 for m in default)
        assert 1000 < sum(default) / 5.0 < 2000

    def test_zero_size(self):
        assert monthly_production(PHOENIX[0], PHOENIX[1], 0.0) == [0.0] * 12

    def test_scales_with_size(self, phoenix_hourly):
        doubled = monthly_production(PHOENIX[0], PHOENIX[1], 10.0)
        assert sum(doubled) == pytest.approx(2 * sum(phoenix_hourly))


# ---- Model Selection Tests ----

class TestEstimateMonthlyProduction:
    def test_seasonal_variant(self):
        monthly = estimate_monthly_production(
            ProductionModel.SEASONAL_CURVE, PHOENIX[0], PHOENIX[1], 5.0,
            peak_sun_hours=4.5, performance_ratio=0.86,
        )
        assert sum(monthly) == pytest.approx(7062.75)

    def test_hourly_variant_matches_simulation(self, phoenix_hourly):
        monthly = estimate_monthly_production("hourly_simulation", PHOENIX[0], PHOENIX[1], 5.0)
        assert monthly == pytest.approx(phoenix_hourly)

    def test_variants_agree_within_band(self, phoenix_hourly):
        """The two variants differ but stay within 40% of each other."""
        seasonal = estimate_monthly_production(
            ProductionModel.SEASONAL_CURVE, PHOENIX[0], PHOENIX[1], 5.0,
        )
        ratio = sum(phoenix_hourly) / sum(seasonal)
        assert 0.6 < ratio < 1.4

    def test_unknown_model_raises(self):
        with pytest.raises(ValueError):
            estimate_monthly_production("monte_carlo", PHOENIX[0], PHOENIX[1], 5.0)


# ---- Solar Analysis Tests ----

class TestSolarAnalysis:
    def test_flat_terrain_default(self, phoenix_hourly):
        """Without a grid the flat defaults derate efficiency by 0.95."""
        result = perform_solar_analysis(PHOENIX[0], PHOENIX[1], 5.0, datetime(2024, 6, 21, 19))
        assert result.terrain == FLAT_TERRAIN
        assert result.annual_production_kwh == pytest.approx(0.95 * sum(phoenix_hourly))
        assert result.peak_sun_hours == pytest.approx(result.annual_production_kwh / (5.0 * 365))
        assert result.optimal_tilt == pytest.approx(33.45)
        assert result.position.is_daylight
        assert result.irradiance.global_irradiance > 0

    def test_flat_grid_no_shading(self, phoenix_hourly):
        grid = [[300.0] * 5 for _ in range(5)]
        result = perform_solar_analysis(
            PHOENIX[0], PHOENIX[1], 5.0, datetime(2024, 6, 21, 19), elevation_grid=grid,
        )
        assert result.terrain.shading_factor == pytest.approx(1.0)
        assert result.annual_production_kwh == pytest.approx(sum(phoenix_hourly))

    def test_zero_size(self):
        result = perform_solar_analysis(PHOENIX[0], PHOENIX[1], 0.0, datetime(2024, 6, 21, 19))
        assert result.annual_production_kwh == 0.0
        assert result.peak_sun_hours == 0.0
