"""Financial projection engine for Solar Estimator.

Implements residential solar economics: system cost, federal tax credit,
time-of-use and storage benefits, payback, ROI, NPV, IRR, multi-year
savings projections, financing quotes and environmental equivalents.
Every function is total: degenerate inputs yield ``math.inf``,
``math.nan`` or ``None`` rather than exceptions.
"""

import logging
import math
from typing import List, Optional, Tuple

import numpy as np
import numpy_financial as npf

from solar_estimator.data.catalogs import FinancingKind
from solar_estimator.models.inputs import CostInputs
from solar_estimator.models.results import FinancialResult, FinancingOption, ProjectionRow

log = logging.getLogger(__name__)

FEDERAL_TAX_CREDIT_RATE = 0.30
ARBITRAGE_DAYS_PER_YEAR = 300
DEMAND_CHARGE_REDUCTION = 0.70
CO2_TONS_PER_KWH = 0.0004
TREES_PER_TON_CO2 = 16
LEASE_PAYMENT_RATIO = 0.80
PPA_RATE_RATIO = 0.80
THIRD_PARTY_ESCALATOR = 0.029
THIRD_PARTY_TERM_YEARS = 20


def calculate_npv(cash_flows: List[float], discount_rate: float) -> float:
    r"""Calculate net present value of a cash flow series.

    Formula:
        NPV = \sum_{t=0}^{N} \frac{CF_t}{(1+r)^t}

    Args:
        cash_flows: Cash flows starting at year 0 (net cost as a negative).
        discount_rate: Annual discount rate as decimal (e.g., 0.06 for 6%).

    Returns:
        Net present value in dollars.

    Source:
        Brealey, R., Myers, S., & Allen, F. (2020). Principles of Corporate
        Finance (13th ed.). McGraw-Hill. Chapter 2.
    """
    pv = 0.0
    for t, cf in enumerate(cash_flows):
        pv += cf / (1 + discount_rate) ** t
    return pv


def calculate_irr(cash_flows: List[float]) -> Optional[float]:
    r"""Calculate internal rate of return for a cash flow series.

    The IRR is the discount rate r that makes NPV = 0:
        0 = \sum_{t=0}^{N} \frac{CF_t}{(1+IRR)^t}

    Args:
        cash_flows: Cash flows starting at year 0.

    Returns:
        IRR as a decimal, or None if no real solution exists.
    """
    if not any(cf < 0 for cf in cash_flows) or not any(cf > 0 for cf in cash_flows):
        return None
    try:
        result = npf.irr(cash_flows)
    except (ValueError, np.linalg.LinAlgError) as exc:
        log.debug("IRR did not converge: %s", exc)
        return None
    if np.isnan(result) or np.isinf(result):
        return None
    return float(result)


def calculate_payback_period(net_cost: float, annual_savings: float) -> float:
    r"""Simple payback period.

    Formula:
        Payback = \frac{NetCost}{AnnualSavings}

    Returns:
        Years; ``math.inf`` when annual savings are zero or negative.
    """
    if annual_savings <= 0:
        return math.inf
    return max(0.0, net_cost) / annual_savings


def calculate_roi(total_savings: float, net_cost: float) -> float:
    r"""Return on investment over the analysis horizon, in percent.

    Formula:
        ROI = \frac{\sum Savings - NetCost}{NetCost} \times 100

    Returns:
        Percent; ``math.nan`` when net cost is zero or negative.
    """
    if net_cost <= 0:
        return math.nan
    return (total_savings - net_cost) / net_cost * 100


def amortized_payment(principal: float, annual_rate: float, term_months: int) -> float:
    r"""Level monthly payment for a fully amortizing loan.

    Formula:
        PMT = P \frac{i (1+i)^n}{(1+i)^n - 1}, \quad i = APR / 12

    Args:
        principal: Amount financed ($).
        annual_rate: APR as decimal.
        term_months: Number of monthly payments.

    Returns:
        Monthly payment ($), 0 when nothing is financed.
    """
    if principal <= 0 or term_months <= 0:
        return 0.0
    if annual_rate == 0:
        return principal / term_months
    return float(npf.pmt(annual_rate / 12, term_months, -principal))


def time_of_use_savings(
    annual_production_kwh: float,
    peak_rate: float,
    off_peak_rate: float,
    peak_fraction: float,
    flat_rate: float,
) -> Tuple[float, float]:
    r"""Value production under a time-of-use tariff.

    Formula:
        V_{TOU} = E (f \cdot r_{peak} + (1 - f) r_{off})

        \Delta = V_{TOU} - E \cdot r_{flat}

    Returns:
        (time-of-use value, adjustment versus the flat-rate baseline).
    """
    tou_value = annual_production_kwh * (peak_fraction * peak_rate + (1 - peak_fraction) * off_peak_rate)
    return tou_value, tou_value - annual_production_kwh * flat_rate


def battery_arbitrage_benefit(capacity_kwh: float, peak_rate: float, off_peak_rate: float) -> float:
    r"""Annual value of charging off-peak and discharging on-peak.

    Formula:
        B = C \cdot (r_{peak} - r_{off}) \cdot 300
    """
    return max(0.0, capacity_kwh * (peak_rate - off_peak_rate) * ARBITRAGE_DAYS_PER_YEAR)


def demand_charge_savings(monthly_demand_charge: float, has_battery: bool) -> float:
    """Annual demand-charge reduction; a battery shaves 70% of the charge."""
    if not has_battery:
        return 0.0
    return monthly_demand_charge * DEMAND_CHARGE_REDUCTION * 12


def environmental_impact(annual_production_kwh: float) -> Tuple[float, float]:
    """CO2 avoided (metric tons/yr) and equivalent trees planted.

    Source:
        U.S. EPA (2024). Greenhouse Gas Equivalencies Calculator.
    """
    co2_tons = max(0.0, annual_production_kwh) * CO2_TONS_PER_KWH
    return co2_tons, co2_tons * TREES_PER_TON_CO2


def _energy_value(annual_production_kwh: float, costs: CostInputs) -> Tuple[float, float]:
    """First-year value of offset energy and the TOU adjustment."""
    if costs.has_time_of_use:
        value, adjustment = time_of_use_savings(
            annual_production_kwh, costs.peak_rate, costs.off_peak_rate,
            costs.peak_production_fraction, costs.electricity_rate,
        )
    else:
        value, adjustment = annual_production_kwh * costs.electricity_rate, 0.0

    usage = costs.annual_usage_kwh
    if (costs.net_metering_rate is not None and usage is not None
            and annual_production_kwh > usage):
        # Surplus exports earn the net-metering credit instead of retail
        excess = annual_production_kwh - usage
        retail_per_kwh = value / annual_production_kwh
        value -= excess * (retail_per_kwh - costs.net_metering_rate)
    return value, adjustment


def project_savings(
    annual_production_kwh: float,
    energy_savings: float,
    fixed_benefits: float,
    costs: CostInputs,
    net_cost: float,
) -> List[ProjectionRow]:
    r"""Build the year-by-year savings projection.

    Formula:
        E_t = E_1 (1 - d)^{t-1}

        S_t = S^{energy}_1 (1 - d)^{t-1} (1 + e)^{t-1} + B_1 (1 + e)^{t-1}

        C_0 = -NetCost, \quad C_t = C_{t-1} + S_t

    Args:
        annual_production_kwh: First-year production.
        energy_savings: First-year value of offset energy.
        fixed_benefits: First-year battery arbitrage plus demand savings.
        costs: Degradation, escalation and horizon.
        net_cost: Cost after the tax credit.

    Returns:
        Rows for years 0..analysis_years.
    """
    rows = [ProjectionRow(year=0, production_kwh=0.0, savings=0.0, cumulative_savings=-net_cost)]
    cumulative = -net_cost
    for year in range(1, costs.analysis_years + 1):
        degradation = (1 - costs.degradation_rate) ** (year - 1)
        escalation = (1 + costs.rate_escalation) ** (year - 1)
        savings = energy_savings * degradation * escalation + fixed_benefits * escalation
        cumulative += savings
        rows.append(ProjectionRow(
            year=year,
            production_kwh=annual_production_kwh * degradation,
            savings=savings,
            cumulative_savings=cumulative,
        ))
    return rows


def build_financing_options(
    system_cost: float,
    federal_tax_credit: float,
    net_cost: float,
    projection: List[ProjectionRow],
    costs: CostInputs,
) -> List[FinancingOption]:
    """Quote cash, loan, lease and PPA options for a system.

    Cash is always first. Loans finance the system cost less any down
    payment; the owner keeps the tax credit, so loan totals are net of
    it. Lease and PPA providers keep the credit.

    Args:
        system_cost: Installed cost before incentives.
        federal_tax_credit: Credit claimed by an owner.
        net_cost: Cost after the credit.
        projection: Savings projection from ``project_savings``.
        costs: Loan terms, down payment, rate and horizon.

    Returns:
        List of FinancingOption.
    """
    yearly = projection[1:]
    horizon_savings = sum(row.savings for row in yearly)

    options = [FinancingOption(
        type="Cash Purchase",
        kind=FinancingKind.CASH,
        monthly_payment=0.0,
        total_cost=net_cost,
        interest_rate=0.0,
        term_years=0,
        total_savings=horizon_savings,
        net_benefit=horizon_savings - net_cost,
    )]

    down_payment = min(costs.down_payment, system_cost)
    principal = system_cost - down_payment
    for term, rate in costs.loan_terms:
        months = term * 12
        payment = amortized_payment(principal, rate, months)
        total = payment * months + down_payment - federal_tax_credit
        options.append(FinancingOption(
            type=f"Solar Loan ({term}-Year)",
            kind=FinancingKind.LOAN,
            monthly_payment=payment,
            total_cost=total,
            interest_rate=rate,
            term_years=term,
            total_savings=horizon_savings,
            net_benefit=horizon_savings - total,
        ))

    term_rows = yearly[:THIRD_PARTY_TERM_YEARS]
    term_years = len(term_rows)
    term_savings = sum(row.savings for row in term_rows)
    first_year_savings = term_rows[0].savings if term_rows else 0.0

    lease_monthly = max(0.0, first_year_savings) / 12 * LEASE_PAYMENT_RATIO
    lease_total = sum(
        lease_monthly * 12 * (1 + THIRD_PARTY_ESCALATOR) ** (row.year - 1) for row in term_rows
    )
    options.append(FinancingOption(
        type="Solar Lease",
        kind=FinancingKind.LEASE,
        monthly_payment=lease_monthly,
        total_cost=lease_total,
        interest_rate=THIRD_PARTY_ESCALATOR,
        term_years=term_years,
        total_savings=term_savings,
        net_benefit=term_savings - lease_total,
    ))

    ppa_rate = costs.electricity_rate * PPA_RATE_RATIO
    ppa_total = sum(
        row.production_kwh * ppa_rate * (1 + THIRD_PARTY_ESCALATOR) ** (row.year - 1)
        for row in term_rows
    )
    ppa_monthly = term_rows[0].production_kwh * ppa_rate / 12 if term_rows else 0.0
    options.append(FinancingOption(
        type="Power Purchase Agreement (PPA)",
        kind=FinancingKind.PPA,
        monthly_payment=ppa_monthly,
        total_cost=ppa_total,
        interest_rate=THIRD_PARTY_ESCALATOR,
        term_years=term_years,
        total_savings=term_savings,
        net_benefit=term_savings - ppa_total,
    ))
    return options


def calculate_financials(
    system_size_kw: float,
    annual_production_kwh: float,
    costs: CostInputs,
) -> FinancialResult:
    r"""Run the full financial projection for a sized system.

    Formula:
        Cost = P_{kW} \cdot 1000 \cdot c_W + C_{battery}

        ITC = 0.30 \cdot Cost, \quad NetCost = Cost - ITC

        S_1 = V_{energy} + B_{arbitrage} + B_{demand}

    Args:
        system_size_kw: DC nameplate size.
        annual_production_kwh: First-year production.
        costs: Financial assumptions.

    Returns:
        FinancialResult. Zero savings give an infinite payback, zero net
        cost gives a NaN ROI; nothing raises.
    """
    system_size_kw = max(0.0, system_size_kw)
    production = max(0.0, annual_production_kwh)

    system_cost = system_size_kw * 1000 * costs.cost_per_watt + costs.battery_cost
    federal_tax_credit = FEDERAL_TAX_CREDIT_RATE * system_cost
    net_cost = system_cost - federal_tax_credit

    energy_savings, tou_adjustment = _energy_value(production, costs)
    arbitrage = 0.0
    if costs.has_battery and costs.has_time_of_use:
        arbitrage = battery_arbitrage_benefit(
            costs.battery_capacity_kwh, costs.peak_rate, costs.off_peak_rate,
        )
    demand = demand_charge_savings(costs.monthly_demand_charge, costs.has_battery)
    annual_savings = energy_savings + arbitrage + demand

    projection = project_savings(production, energy_savings, arbitrage + demand, costs, net_cost)
    yearly = [row.savings for row in projection[1:]]
    total_savings = sum(yearly)
    cash_flows = [-net_cost] + yearly

    break_even_year = next(
        (row.year for row in projection[1:] if row.cumulative_savings >= 0), None,
    )
    co2_tons, trees = environmental_impact(production)

    log.debug("Financials: cost=%.0f net=%.0f savings=%.0f/yr", system_cost, net_cost, annual_savings)
    return FinancialResult(
        system_cost=system_cost,
        cost_per_watt=costs.cost_per_watt,
        federal_tax_credit=federal_tax_credit,
        net_cost=net_cost,
        annual_savings=annual_savings,
        monthly_savings=annual_savings / 12,
        energy_savings=energy_savings,
        time_of_use_adjustment=tou_adjustment,
        battery_arbitrage=arbitrage,
        demand_charge_savings=demand,
        payback_period=calculate_payback_period(net_cost, annual_savings),
        roi=calculate_roi(total_savings, net_cost),
        npv=calculate_npv(cash_flows, costs.discount_rate),
        irr=calculate_irr(cash_flows),
        lifetime_savings=total_savings - net_cost,
        break_even_year=break_even_year,
        projection=projection,
        co2_offset_tons=co2_tons,
        trees_equivalent=trees,
        financing_options=build_financing_options(
            system_cost, federal_tax_credit, net_cost, projection, costs,
        ),
    )
