"""Unit tests for Solar Estimator financial calculations.

Tests cover NPV, IRR, payback, ROI, loan amortization, time-of-use and
storage benefits, the savings projection and financing quotes. Each test
verifies against hand-computed values.
"""

import math

import pytest

from solar_estimator.data.catalogs import FinancingKind
from solar_estimator.models.financials import (
    FEDERAL_TAX_CREDIT_RATE,
    amortized_payment,
    battery_arbitrage_benefit,
    calculate_financials,
    calculate_irr,
    calculate_npv,
    calculate_payback_period,
    calculate_roi,
    demand_charge_savings,
    environmental_impact,
    time_of_use_savings,
)
from solar_estimator.models.inputs import CostInputs


@pytest.fixture
def simple_result():
    """5 kW at $3.00/W producing 7,000 kWh/yr at $0.15/kWh."""
    return calculate_financials(5.0, 7000.0, CostInputs(electricity_rate=0.15, cost_per_watt=3.0))


# ---- NPV Tests ----

class TestNPV:
    def test_npv_simple(self):
        """NPV of [-1000, 500, 500, 500] at 10% should be ~243.43."""
        result = calculate_npv([-1000, 500, 500, 500], 0.10)
        assert abs(result - 243.43) < 0.5

    def test_npv_zero_rate(self):
        """At 0% discount rate, NPV = sum of cash flows."""
        result = calculate_npv([-1000, 300, 300, 300, 300], 0.0)
        assert abs(result - 200.0) < 0.01

    def test_npv_single_cashflow(self):
        """Single upfront cost should return that cost."""
        assert abs(calculate_npv([-5000], 0.07) - (-5000)) < 0.01


# ---- IRR Tests ----

class TestIRR:
    def test_irr_basic(self):
        """IRR for [-1000, 400, 400, 400] should be ~9.7%."""
        result = calculate_irr([-1000, 400, 400, 400])
        assert result is not None
        assert abs(result - 0.0966) < 0.01

    def test_irr_break_even(self):
        """[-1000, 1100] has NPV = 0 at 10%."""
        result = calculate_irr([-1000, 1100])
        assert result is not None
        assert abs(result - 0.10) < 0.001

    def test_irr_no_solution(self):
        """All negative cash flows should return None."""
        assert calculate_irr([-1000, -500, -500]) is None

    def test_irr_no_investment(self):
        """All positive cash flows have no IRR either."""
        assert calculate_irr([0, 100, 100]) is None


# ---- Payback and ROI Tests ----

class TestPaybackROI:
    def test_payback_simple(self):
        assert calculate_payback_period(10500.0, 1050.0) == pytest.approx(10.0)

    def test_payback_no_savings(self):
        assert math.isinf(calculate_payback_period(10000.0, 0.0))
        assert math.isinf(calculate_payback_period(10000.0, -50.0))

    def test_roi(self):
        """Savings of 30,000 on 10,000 net is 200%."""
        assert calculate_roi(30000.0, 10000.0) == pytest.approx(200.0)

    def test_roi_zero_cost(self):
        assert math.isnan(calculate_roi(5000.0, 0.0))


# ---- Loan Tests ----

class TestAmortization:
    def test_standard_loan(self):
        """$10,000 at 6% APR over 120 months is $111.02/month."""
        assert amortized_payment(10000.0, 0.06, 120) == pytest.approx(111.02, abs=0.01)

    def test_zero_rate(self):
        assert amortized_payment(12000.0, 0.0, 120) == pytest.approx(100.0)

    def test_nothing_financed(self):
        assert amortized_payment(0.0, 0.06, 120) == 0.0


# ---- Tariff and Storage Tests ----

class TestTariffBenefits:
    def test_time_of_use(self):
        """60% on-peak at $0.30 and 40% off-peak at $0.10 vs a $0.15 flat rate."""
        value, adjustment = time_of_use_savings(10000.0, 0.30, 0.10, 0.6, 0.15)
        assert value == pytest.approx(2200.0)
        assert adjustment == pytest.approx(700.0)

    def test_battery_arbitrage(self):
        """13.5 kWh x $0.20 spread x 300 days = $810."""
        assert battery_arbitrage_benefit(13.5, 0.30, 0.10) == pytest.approx(810.0)

    def test_battery_arbitrage_never_negative(self):
        assert battery_arbitrage_benefit(13.5, 0.10, 0.30) == 0.0

    def test_demand_charge(self):
        """A battery shaves 70% of a $100 monthly charge: $840/yr."""
        assert demand_charge_savings(100.0, True) == pytest.approx(840.0)
        assert demand_charge_savings(100.0, False) == 0.0

    def test_environmental_impact(self):
        co2, trees = environmental_impact(10000.0)
        assert co2 == pytest.approx(4.0)
        assert trees == pytest.approx(64.0)


# ---- Full Projection Tests ----

class TestCalculateFinancials:
    def test_cost_and_credit(self, simple_result):
        assert simple_result.system_cost == pytest.approx(15000.0)
        assert simple_result.federal_tax_credit == FEDERAL_TAX_CREDIT_RATE * simple_result.system_cost
        assert simple_result.net_cost == simple_result.system_cost - simple_result.federal_tax_credit

    def test_first_year_savings(self, simple_result):
        assert simple_result.annual_savings == pytest.approx(1050.0)
        assert simple_result.monthly_savings == pytest.approx(87.5)
        assert simple_result.payback_period == pytest.approx(10.0)

    def test_projection_shape(self, simple_result):
        projection = simple_result.projection
        assert len(projection) == 26
        assert projection[0].year == 0
        assert projection[0].cumulative_savings == -simple_result.net_cost
        assert projection[1].production_kwh == pytest.approx(7000.0)
        assert projection[2].production_kwh == pytest.approx(7000.0 * 0.995)
        assert projection[2].savings == pytest.approx(1050.0 * 0.995 * 1.03)

    def test_cumulative_running_sum(self, simple_result):
        projection = simple_result.projection
        for prev, row in zip(projection, projection[1:]):
            assert row.cumulative_savings == pytest.approx(prev.cumulative_savings + row.savings)

    def test_npv_matches_cash_flows(self, simple_result):
        flows = [-simple_result.net_cost] + [row.savings for row in simple_result.projection[1:]]
        assert simple_result.npv == pytest.approx(calculate_npv(flows, 0.06))
        assert simple_result.irr is not None and simple_result.irr > 0

    def test_break_even_year(self, simple_result):
        year = simple_result.break_even_year
        assert year is not None
        assert simple_result.projection[year].cumulative_savings >= 0
        assert simple_result.projection[year - 1].cumulative_savings < 0

    def test_roi_and_lifetime(self, simple_result):
        total = sum(row.savings for row in simple_result.projection[1:])
        assert simple_result.lifetime_savings == pytest.approx(total - simple_result.net_cost)
        assert simple_result.roi == pytest.approx((total - 10500.0) / 10500.0 * 100)

    def test_zero_system(self):
        """No system: infinite payback, undefined ROI, no IRR, and no exception."""
        result = calculate_financials(0.0, 0.0, CostInputs())
        assert result.system_cost == 0.0
        assert math.isinf(result.payback_period)
        assert math.isnan(result.roi)
        assert result.irr is None

    def test_zero_system_serializes(self):
        data = calculate_financials(0.0, 0.0, CostInputs()).to_dict()
        assert data["payback_period"] is None
        assert data["roi"] is None
        assert data["irr"] is None

    def test_time_of_use_applied(self):
        costs = CostInputs(electricity_rate=0.15, peak_rate=0.30, off_peak_rate=0.10)
        result = calculate_financials(5.0, 10000.0, costs)
        assert result.energy_savings == pytest.approx(2200.0)
        assert result.time_of_use_adjustment == pytest.approx(700.0)

    def test_battery_benefits(self):
        costs = CostInputs(
            electricity_rate=0.15, peak_rate=0.30, off_peak_rate=0.10,
            battery_capacity_kwh=13.5, battery_cost=16500.0, monthly_demand_charge=100.0,
        )
        result = calculate_financials(5.0, 10000.0, costs)
        assert result.battery_arbitrage == pytest.approx(810.0)
        assert result.demand_charge_savings == pytest.approx(840.0)
        assert result.annual_savings == pytest.approx(2200.0 + 810.0 + 840.0)
        assert result.system_cost == pytest.approx(5000 * 3.55 + 16500.0)

    def test_battery_without_time_of_use_has_no_arbitrage(self):
        costs = CostInputs(battery_capacity_kwh=13.5, battery_cost=16500.0)
        result = calculate_financials(5.0, 7000.0, costs)
        assert result.battery_arbitrage == 0.0

    def test_net_metering_excess(self):
        """2,000 kWh exported earn $0.05 instead of $0.15."""
        costs = CostInputs(electricity_rate=0.15, annual_usage_kwh=8000.0, net_metering_rate=0.05)
        result = calculate_financials(5.0, 10000.0, costs)
        assert result.energy_savings == pytest.approx(1300.0)

    def test_environmental(self, simple_result):
        assert simple_result.co2_offset_tons == pytest.approx(2.8)
        assert simple_result.trees_equivalent == pytest.approx(44.8)


# ---- Financing Option Tests ----

class TestFinancingOptions:
    def test_option_order(self, simple_result):
        labels = [opt.type for opt in simple_result.financing_options]
        assert labels == [
            "Cash Purchase",
            "Solar Loan (10-Year)",
            "Solar Loan (15-Year)",
            "Solar Loan (20-Year)",
            "Solar Loan (25-Year)",
            "Solar Lease",
            "Power Purchase Agreement (PPA)",
        ]

    def test_cash(self, simple_result):
        cash = simple_result.financing_options[0]
        assert cash.kind is FinancingKind.CASH
        assert cash.monthly_payment == 0.0
        assert cash.total_cost == pytest.approx(simple_result.net_cost)

    def test_loan_payment(self, simple_result):
        """The full $15,000 is financed; the owner still keeps the credit."""
        loan = simple_result.financing_options[1]
        assert loan.kind is FinancingKind.LOAN
        assert loan.monthly_payment == pytest.approx(amortized_payment(15000.0, 0.0599, 120))
        assert loan.total_cost == pytest.approx(loan.monthly_payment * 120 - 4500.0)

    def test_down_payment_reduces_principal(self):
        costs = CostInputs(electricity_rate=0.15, cost_per_watt=3.0, down_payment=5000.0,
                           loan_terms=((10, 0.06),))
        result = calculate_financials(5.0, 7000.0, costs)
        loan = result.financing_options[1]
        assert loan.monthly_payment == pytest.approx(amortized_payment(10000.0, 0.06, 120))

    def test_lease(self, simple_result):
        """Lease payment is 80% of first-year savings, over 20 years."""
        lease = simple_result.financing_options[-2]
        assert lease.kind is FinancingKind.LEASE
        assert lease.monthly_payment == pytest.approx(1050.0 / 12 * 0.8)
        assert lease.term_years == 20
        assert lease.interest_rate == pytest.approx(0.029)

    def test_ppa(self, simple_result):
        """PPA rate is 80% of the utility rate."""
        ppa = simple_result.financing_options[-1]
        assert ppa.kind is FinancingKind.PPA
        assert ppa.monthly_payment == pytest.approx(7000.0 * 0.12 / 12)
