"""Unit tests for the system sizing engine.

Reference case: 1,000 kWh/month at $0.15/kWh, no climate data
(4.5 peak sun hours), south-facing at optimal tilt with no shading.
PR = 0.86, so each kW yields 4.5 x 365 x 0.86 = 1412.55 kWh/yr and the
12,000 kWh target needs 8.495 kW, rounded up to 22 x 400 W = 8.8 kW.
"""

import math

import pytest

from solar_estimator.data.catalogs import (
    InverterType,
    PanelType,
    RoofCondition,
    get_inverter_spec,
    get_panel_spec,
)
from solar_estimator.models.inputs import (
    ClimateProfile,
    CostInputs,
    EnergyProfile,
    EquipmentSelection,
    RoofSpec,
    SiteLocation,
    SystemSizingInputs,
)
from solar_estimator.models.sizing import (
    BATTERY_UNIT_COST,
    DEFAULT_PEAK_SUN_HOURS,
    SYSTEM_LOSSES,
    battery_units,
    calculate_system_size,
    effective_rate,
    estimate_cost_breakdown,
    inverter_units,
    whole_panel_count,
)


YIELD_PER_KW = 4.5 * 365 * 0.86


def make_inputs(**overrides) -> SystemSizingInputs:
    """Reference sizing inputs with keyword overrides."""
    params = dict(
        location=SiteLocation(latitude=35.0, longitude=-100.0),
        energy=EnergyProfile(monthly_kwh_usage=1000.0, electricity_rate=0.15),
    )
    params.update(overrides)
    return SystemSizingInputs(**params)


@pytest.fixture
def reference_result():
    return calculate_system_size(make_inputs())


# ---- Usage and Target Tests ----

class TestUsage:
    def test_target_equals_usage_at_full_offset(self, reference_result):
        assert reference_result.annual_usage_kwh == pytest.approx(12000.0)
        assert reference_result.target_production_kwh == pytest.approx(12000.0)

    def test_offset_goal_scales_target(self):
        result = calculate_system_size(make_inputs(offset_goal=50.0))
        assert result.target_production_kwh == pytest.approx(6000.0)

    def test_usage_from_bill_and_rate(self):
        """$150/month at $0.15/kWh is 1,000 kWh/month."""
        energy = EnergyProfile(monthly_bill=150.0, electricity_rate=0.15)
        assert energy.annual_usage_kwh() == pytest.approx(12000.0)

    def test_lifestyle_loads(self):
        """EV 3000, pool 2500 and hot tub 1500 kWh/yr add to the baseline."""
        energy = EnergyProfile(monthly_kwh_usage=1000.0, has_ev=True, has_pool=True, has_hot_tub=True)
        assert energy.lifestyle_increment() == 7000.0
        assert energy.annual_usage_kwh() == pytest.approx(19000.0)

    def test_effective_rate_from_bill(self):
        energy = EnergyProfile(monthly_kwh_usage=1000.0, monthly_bill=200.0, electricity_rate=0.0)
        assert effective_rate(energy) == pytest.approx(0.20)


# ---- Size Tests ----

class TestSizing:
    def test_default_sun_hours(self, reference_result):
        assert DEFAULT_PEAK_SUN_HOURS == 4.5
        assert reference_result.performance_ratio == pytest.approx(1 - SYSTEM_LOSSES)
        assert reference_result.factors.irradiance == 1.0

    def test_required_size_meets_target(self, reference_result):
        produced = reference_result.required_size_kw * YIELD_PER_KW
        assert produced == pytest.approx(reference_result.target_production_kwh)

    def test_whole_panels(self, reference_result):
        assert reference_result.panel_count == 22
        assert reference_result.panel_wattage == 400
        assert reference_result.system_size_kw == pytest.approx(8.8)
        assert reference_result.system_size_kw >= reference_result.required_size_kw

    def test_monthly_sums_to_annual(self, reference_result):
        assert reference_result.annual_production_kwh == pytest.approx(8.8 * YIELD_PER_KW)
        assert sum(reference_result.monthly_production) == pytest.approx(
            reference_result.annual_production_kwh
        )

    def test_capacity_factor(self, reference_result):
        expected = reference_result.annual_production_kwh / (8.8 * 8760)
        assert reference_result.capacity_factor == pytest.approx(expected)

    def test_climate_sun_hours_and_irradiance_factor(self):
        climate = ClimateProfile(peak_sun_hours=6.0, temperature_correction_factor=0.95,
                                 weather_adjustment_factor=0.95)
        result = calculate_system_size(make_inputs(climate=climate))
        assert result.factors.irradiance == pytest.approx(0.9025)
        expected_kw = 12000.0 / (6.0 * 0.9025 * 365 * 0.86)
        assert result.required_size_kw == pytest.approx(expected_kw)

    def test_climate_seasonal_curve(self):
        climate = ClimateProfile(peak_sun_hours=4.5, seasonal_variation=[1.0] * 12)
        result = calculate_system_size(make_inputs(climate=climate))
        assert result.monthly_production == pytest.approx(
            [result.annual_production_kwh / 12] * 12
        )

    def test_panel_wattage_override(self):
        equipment = EquipmentSelection(panel_wattage=500.0)
        result = calculate_system_size(make_inputs(equipment=equipment))
        assert result.panel_count == 17
        assert result.system_size_kw == pytest.approx(8.5)

    def test_shading_increases_size(self, reference_result):
        shaded = calculate_system_size(make_inputs(roof=RoofSpec(shading_level="moderate")))
        assert shaded.shading_model == "level"
        assert shaded.factors.shading == pytest.approx(0.85)
        assert shaded.required_size_kw > reference_result.required_size_kw

    def test_roof_area_cap(self):
        """200 sq ft fits ten 20 sq ft panels."""
        result = calculate_system_size(make_inputs(roof=RoofSpec(usable_area_sqft=200.0)))
        assert result.panel_count == 10
        assert result.system_size_kw == pytest.approx(4.0)
        assert "System size limited by available roof area" in result.warnings

    def test_zero_usage(self):
        """No usage gives a zero-size system and an infinite payback."""
        result = calculate_system_size(make_inputs(energy=EnergyProfile(electricity_rate=0.15)))
        assert result.system_size_kw == 0.0
        assert result.panel_count == 0
        assert result.cost_breakdown.total == 0.0
        assert result.financials.system_cost == 0.0
        assert math.isinf(result.financials.payback_period)
        assert any("No electricity usage" in w for w in result.warnings)


# ---- Cost Tests ----

class TestCosts:
    def test_breakdown_reference_panel(self):
        """Premium modules with microinverters use the reference prices."""
        breakdown = estimate_cost_breakdown(
            10, 4.4, get_panel_spec(PanelType.PREMIUM), get_inverter_spec(InverterType.MICROINVERTER),
        )
        assert breakdown.panels == pytest.approx(2800.0)
        assert breakdown.inverters == pytest.approx(2200.0)
        assert breakdown.racking == pytest.approx(660.0)
        assert breakdown.electrical == pytest.approx(880.0)
        assert breakdown.installation == pytest.approx(3520.0)
        assert breakdown.design + breakdown.permits + breakdown.inspection == 2250.0
        assert breakdown.pv_total == pytest.approx(12310.0)

    def test_no_panels_no_fees(self):
        breakdown = estimate_cost_breakdown(
            0, 0.0, get_panel_spec("standard"), get_inverter_spec("string"), battery_count=1,
        )
        assert breakdown.pv_total == 0.0
        assert breakdown.battery == BATTERY_UNIT_COST

    def test_itemized_price_used(self, reference_result):
        """Without a price override the system costs the itemized PV total."""
        assert reference_result.financials.system_cost == pytest.approx(
            reference_result.cost_breakdown.pv_total
        )

    def test_price_override(self):
        result = calculate_system_size(make_inputs(cost_per_watt=3.0))
        assert result.financials.system_cost == pytest.approx(8800 * 3.0)

    def test_battery_units(self):
        assert battery_units(0.0) == 0
        assert battery_units(13.5) == 1
        assert battery_units(20.0) == 2

    def test_battery_in_sizing(self):
        equipment = EquipmentSelection(battery_capacity_kwh=13.5)
        result = calculate_system_size(make_inputs(equipment=equipment))
        assert result.battery_count == 1
        assert result.financials.system_cost == pytest.approx(
            result.cost_breakdown.pv_total + BATTERY_UNIT_COST
        )

    def test_inverter_units(self):
        assert inverter_units(InverterType.MICROINVERTER, 22, 8.8) == 22
        assert inverter_units(InverterType.STRING, 22, 8.8) == 2
        assert inverter_units(InverterType.STRING, 0, 0.0) == 0

    def test_whole_panel_count_float_noise(self):
        """8 kW of 400 W panels is exactly 20, not 21."""
        assert whole_panel_count(8.0, 400) == 20
        assert whole_panel_count(8.01, 400) == 21
        assert whole_panel_count(0.0, 400) == 0

    def test_library_style_cost_inputs_preserved(self):
        costs = CostInputs(rate_escalation=0.02, analysis_years=20)
        result = calculate_system_size(make_inputs(costs=costs))
        assert len(result.financials.projection) == 21


# ---- Bill and Advisory Tests ----

class TestAdvisories:
    def test_bill_comparison(self, reference_result):
        """Current bill from usage x rate; full offset leaves the $15 connection fee."""
        bill = reference_result.bill
        assert bill.current_monthly_bill == pytest.approx(150.0)
        assert bill.monthly_bill_with_solar == pytest.approx(15.0)
        assert bill.monthly_savings == pytest.approx(135.0)

    def test_site_assessment(self, reference_result):
        assessment = reference_result.site_assessment
        assert assessment["roof_suitability"].startswith("Excellent")
        assert assessment["shading"] == "No significant shading"
        assert assessment["electrical"] == "Main panel upgrade may be required"

    def test_roof_condition_warning(self):
        roof = RoofSpec(roof_condition=RoofCondition.NEEDS_REPLACEMENT)
        result = calculate_system_size(make_inputs(roof=roof))
        assert "Roof needs replacement before installing solar" in result.warnings

    def test_heavy_shading_warning(self):
        result = calculate_system_size(make_inputs(roof=RoofSpec(shading_level="heavy")))
        assert any(w.startswith("High shading impact") for w in result.warnings)

    def test_north_facing_warning(self):
        result = calculate_system_size(make_inputs(roof=RoofSpec(azimuth=0.0)))
        assert result.factors.tilt_orientation == pytest.approx(0.70)
        assert any("faces away from south" in w for w in result.warnings)

    def test_old_home_warning(self):
        result = calculate_system_size(make_inputs(home_age_years=45))
        assert any("over 30 years" in w for w in result.warnings)

    def test_solar_potential_and_degradation_warnings(self):
        climate = ClimateProfile(peak_sun_hours=3.0, solar_potential="Poor", degradation_rate=0.008)
        result = calculate_system_size(make_inputs(climate=climate))
        assert "Poor solar potential for this climate" in result.warnings
        assert any(w.startswith("High degradation rate") for w in result.warnings)

    def test_clean_site_has_no_warnings(self, reference_result):
        assert reference_result.warnings == []
