"""Unit tests for the basic and pro homeowner calculators.

Basic reference: California (5.8 sun hours), 900 kWh/month at a rate
typed as "20" (cents), 450 W monocrystalline at $4.20/W. Each kW yields
5.8 x 365 x 0.86 = 1820.62 kWh, so 10,800 kWh needs 14 panels (6.3 kW)
costing $26,460 before the credit.

Pro reference: Arizona (6.0 sun hours, $0.14/kWh), $150/month bill,
premium 440 W modules, string inverter (0.96), PR = 0.8256. 12,857 kWh
needs 17 panels (7.48 kW).
"""

import math

import pytest

from solar_estimator.data.catalogs import FinancingKind, PanelType
from solar_estimator.models.calculators import (
    calculate_pro_solar_system,
    calculate_solar_savings,
    parse_electricity_rate,
)
from solar_estimator.models.errors import UNRECOGNIZED_LOCATION, InvalidInputError
from solar_estimator.models.inputs import BasicFormData, ProSolarInput


def basic_form(**overrides) -> BasicFormData:
    params = dict(state="CA", monthly_kwh_usage=900.0, electricity_rate="20")
    params.update(overrides)
    return BasicFormData(**params)


def pro_input(**overrides) -> ProSolarInput:
    params = dict(monthly_bill=150.0, roof_size=1500.0, location="arizona", panel_type="premium")
    params.update(overrides)
    return ProSolarInput(**params)


# ---- Rate Parsing Tests ----

class TestRateParsing:
    def test_dollars(self):
        assert parse_electricity_rate("0.18", 0.10) == pytest.approx(0.18)
        assert parse_electricity_rate("$0.18", 0.10) == pytest.approx(0.18)
        assert parse_electricity_rate(0.18, 0.10) == pytest.approx(0.18)

    def test_cents(self):
        """Values above 2 are read as cents per kWh."""
        assert parse_electricity_rate("20", 0.10) == pytest.approx(0.20)
        assert parse_electricity_rate(15, 0.10) == pytest.approx(0.15)

    def test_fallbacks(self):
        assert parse_electricity_rate(None, 0.10) == 0.10
        assert parse_electricity_rate("", 0.10) == 0.10
        assert parse_electricity_rate("abc", 0.10) == 0.10
        assert parse_electricity_rate(0, 0.10) == 0.10


# ---- Basic Calculator Tests ----

class TestBasicCalculator:
    def test_california_scenario(self):
        result = calculate_solar_savings(basic_form())
        assert result.state == "California"
        assert result.peak_sun_hours == 5.8
        assert result.electricity_rate == pytest.approx(0.20)
        assert result.panel_count == 14
        assert result.system_size_kw == pytest.approx(6.3)
        assert result.annual_production_kwh == pytest.approx(6.3 * 5.8 * 365 * 0.86)
        assert result.system_cost == pytest.approx(26460.0)
        assert result.federal_tax_credit == pytest.approx(7938.0)
        assert result.net_cost == pytest.approx(18522.0)
        assert sum(result.monthly_production) == pytest.approx(result.annual_production_kwh)

    def test_twenty_year_summary(self):
        result = calculate_solar_savings(basic_form())
        savings = sum(row.savings for row in result.projection[1:21])
        assert result.twenty_year_savings == pytest.approx(savings - result.net_cost)

    def test_default_financing_is_cash(self):
        result = calculate_solar_savings(basic_form())
        assert result.financing.type == "Cash Purchase"
        assert result.financing_options[0] == result.financing

    def test_selected_financing(self):
        loan = calculate_solar_savings(basic_form(financing="loan"))
        assert loan.financing.type == "Solar Loan (10-Year)"
        lease = calculate_solar_savings(basic_form(financing=FinancingKind.LEASE))
        assert lease.financing.type == "Solar Lease"

    def test_unknown_financing_is_cash(self):
        result = calculate_solar_savings(basic_form(financing="barter"))
        assert result.financing.kind is FinancingKind.CASH

    def test_lowercase_state(self):
        assert calculate_solar_savings(basic_form(state="ca")).state == "California"

    def test_unknown_state_raises(self):
        with pytest.raises(InvalidInputError) as exc_info:
            calculate_solar_savings(basic_form(state="ZZ"))
        assert exc_info.value.kind == UNRECOGNIZED_LOCATION
        assert exc_info.value.value == "ZZ"

    def test_unknown_state_is_value_error(self):
        with pytest.raises(ValueError):
            calculate_solar_savings(basic_form(state=""))

    def test_state_rate_default(self):
        """Without a typed rate, the state's average applies."""
        result = calculate_solar_savings(basic_form(electricity_rate=None))
        assert result.electricity_rate == pytest.approx(0.30)

    def test_usage_from_bill(self):
        """$200/month at Texas's $0.15/kWh is 16,000 kWh/yr."""
        result = calculate_solar_savings(
            BasicFormData(state="TX", monthly_electric_bill=200.0),
        )
        expected_kw = 16000.0 / (5.4 * 365 * 0.86)
        assert result.system_size_kw >= expected_kw

    def test_house_size_caps_array(self):
        result = calculate_solar_savings(basic_form(house_square_feet=200.0))
        assert result.panel_count == 10
        assert "System size limited by available roof area" in result.warnings

    def test_degenerate_no_usage(self):
        result = calculate_solar_savings(BasicFormData(state="TX"))
        assert result.system_size_kw == 0.0
        assert math.isinf(result.payback_period)
        assert math.isnan(result.roi)
        assert result.to_dict()["payback_period"] is None

    def test_unknown_panel_is_standard(self):
        form = basic_form(panel_type="unobtanium")
        assert form.panel_type is PanelType.STANDARD
        assert calculate_solar_savings(form).panel_count > 0


# ---- Pro Calculator Tests ----

class TestProCalculator:
    def test_arizona_scenario(self):
        result = calculate_pro_solar_system(pro_input())
        assert result.annual_usage_kwh == pytest.approx(150.0 / 0.14 * 12)
        assert result.effective_sun_hours == pytest.approx(6.0)
        assert result.performance_ratio == pytest.approx(0.96 * 0.86)
        assert result.panel_count == 17
        assert result.panel_wattage == 440
        assert result.system_size_kw == pytest.approx(7.48)
        assert result.cost_per_watt == pytest.approx(3.55 * 3.1 / 3.5)
        assert result.total_system_cost == pytest.approx(7480 * 3.55 * 3.1 / 3.5)
        assert result.net_cost == pytest.approx(0.7 * result.total_system_cost)
        assert not result.roof_limited
        assert result.equipment["panel"] == "Silfab SIL-440 BK"

    def test_cash_first(self):
        result = calculate_pro_solar_system(pro_input())
        assert result.financing_options[0].type == "Cash Purchase"
        assert result.financing_options[0].monthly_payment == 0.0

    def test_roof_limit(self):
        result = calculate_pro_solar_system(pro_input(roof_size=200.0))
        assert result.panel_count == 10
        assert result.roof_limited
        assert "System size limited by available roof area" in result.warnings

    def test_unknown_location_uses_other(self):
        result = calculate_pro_solar_system(pro_input(location="atlantis"))
        assert result.effective_sun_hours == pytest.approx(4.2)

    def test_orientation_and_mounting(self):
        north = calculate_pro_solar_system(pro_input(roof_orientation="north"))
        assert north.effective_sun_hours == pytest.approx(6.0 * 0.68)
        assert any("North-facing" in w for w in north.warnings)

        tracking = calculate_pro_solar_system(pro_input(mounting_type="tracking"))
        assert tracking.effective_sun_hours == pytest.approx(6.0 * 1.25)
        assert tracking.cost_per_watt == pytest.approx(3.55 * 3.1 / 3.5 * 1.4)

    def test_microinverter_efficiency(self):
        result = calculate_pro_solar_system(pro_input(inverter_type="microinverter"))
        assert result.performance_ratio == pytest.approx(0.975 * 0.86)
        assert result.equipment["inverter"] == "Enphase IQ8+ MC"

    def test_shading(self):
        result = calculate_pro_solar_system(pro_input(shading_level="significant"))
        assert result.performance_ratio == pytest.approx(0.75 * 0.96 * 0.86)
        assert any("shading" in w for w in result.warnings)

    def test_lifestyle_loads(self):
        result = calculate_pro_solar_system(pro_input(has_ev=True, has_pool=True))
        assert result.annual_usage_kwh == pytest.approx(150.0 / 0.14 * 12 + 5500.0)

    def test_battery_and_tariffs(self):
        """Arbitrage 13.5 x 0.23 x 300 = 931.5; demand 50 x 0.7 x 12 = 420."""
        result = calculate_pro_solar_system(pro_input(
            battery_storage=True, peak_rate=0.35, off_peak_rate=0.12, monthly_demand_charge=50.0,
        ))
        assert result.financials.battery_arbitrage == pytest.approx(931.5)
        assert result.financials.demand_charge_savings == pytest.approx(420.0)
        assert result.total_system_cost == pytest.approx(7480 * 3.55 * 3.1 / 3.5 + 16500.0)

    def test_no_battery_no_demand_savings(self):
        result = calculate_pro_solar_system(pro_input(monthly_demand_charge=50.0))
        assert result.financials.demand_charge_savings == 0.0

    def test_zero_bill(self):
        result = calculate_pro_solar_system(pro_input(monthly_bill=0.0))
        assert result.system_size_kw == 0.0
        assert math.isinf(result.payback_period)
        assert any("No electricity usage" in w for w in result.warnings)

    def test_offset_goal(self):
        half = calculate_pro_solar_system(pro_input(offset_goal=50.0))
        full = calculate_pro_solar_system(pro_input())
        assert half.system_size_kw < full.system_size_kw
