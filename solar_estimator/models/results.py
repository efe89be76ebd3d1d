"""Result data models for Solar Estimator.

Every result is a frozen dataclass created fresh per calculation call.
Non-finite sentinels (``math.inf`` payback, ``math.nan`` ROI, ``None``
IRR) are kept as-is; ``to_dict()`` maps them to ``None`` so snapshots
stay valid JSON.
"""

import math
from dataclasses import dataclass, field, fields
from typing import Dict, List, Optional

from solar_estimator.data.catalogs import FinancingKind
from solar_estimator.models.inputs import plain_value


def _json_value(value):
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, list):
        return [_json_value(v) for v in value]
    if isinstance(value, dict):
        return {k: _json_value(v) for k, v in value.items()}
    return value


class _ResultMixin:
    def to_dict(self) -> dict:
        return {f.name: _json_value(plain_value(getattr(self, f.name))) for f in fields(self)}


@dataclass(frozen=True)
class SolarPosition(_ResultMixin):
    """Sun position in degrees; azimuth clockwise from north."""

    azimuth: float
    elevation: float
    zenith: float

    @property
    def is_daylight(self) -> bool:
        return self.elevation > 0


@dataclass(frozen=True)
class SolarIrradiance(_ResultMixin):
    """Clear-sky irradiance components on a horizontal surface (W/m²)."""

    direct: float
    diffuse: float
    global_irradiance: float


@dataclass(frozen=True)
class TerrainAnalysis(_ResultMixin):
    """Terrain-derived slope, aspect and shading at the site.

    Attributes:
        slope: Ground slope in degrees.
        aspect: Downslope direction in degrees from north.
        shading_factor: Production multiplier (0.1-1.0).
        sky_view_factor: Fraction of the sky hemisphere visible (0-1).
    """

    slope: float
    aspect: float
    shading_factor: float
    sky_view_factor: float


@dataclass(frozen=True)
class SolarAnalysisResult(_ResultMixin):
    """Combined position, irradiance, terrain and production snapshot."""

    position: SolarPosition
    irradiance: SolarIrradiance
    terrain: TerrainAnalysis
    monthly_production: List[float]
    annual_production_kwh: float
    peak_sun_hours: float
    optimal_tilt: float


@dataclass(frozen=True)
class PerformanceFactors(_ResultMixin):
    """Named multipliers combined into the performance ratio."""

    irradiance: float
    shading: float
    tilt_orientation: float
    system_losses: float


@dataclass(frozen=True)
class ProjectionRow(_ResultMixin):
    """One year of the savings projection (year 0 is the purchase)."""

    year: int
    production_kwh: float
    savings: float
    cumulative_savings: float


@dataclass(frozen=True)
class FinancingOption(_ResultMixin):
    """Quoted way to pay for the system.

    Attributes:
        type: Display label (e.g., "Cash Purchase").
        kind: Financing category.
        monthly_payment: Payment per month ($), 0 for cash.
        total_cost: Total paid over the term net of any tax credit kept by
            the owner ($).
        interest_rate: APR or escalator as decimal.
        term_years: Contract term; 0 for cash.
        total_savings: Utility savings over the term ($).
        net_benefit: total_savings - total_cost ($).
    """

    type: str
    kind: FinancingKind
    monthly_payment: float
    total_cost: float
    interest_rate: float
    term_years: int
    total_savings: float
    net_benefit: float


@dataclass(frozen=True)
class FinancialResult(_ResultMixin):
    """Cost, savings and multi-year projection for one system.

    Attributes:
        system_cost: Installed cost before incentives ($).
        cost_per_watt: PV price used ($/W).
        federal_tax_credit: 30% residential clean energy credit ($).
        net_cost: system_cost - federal_tax_credit ($).
        annual_savings: First-year savings ($).
        monthly_savings: annual_savings / 12 ($).
        energy_savings: First-year savings from offset energy ($).
        time_of_use_adjustment: TOU value minus flat-rate value ($).
        battery_arbitrage: First-year battery arbitrage benefit ($).
        demand_charge_savings: First-year demand-charge reduction ($).
        payback_period: Years; math.inf when savings never recover cost.
        roi: Percent return over the horizon; math.nan when net_cost <= 0.
        npv: Net present value at the discount rate ($).
        irr: Internal rate of return, None when undefined.
        lifetime_savings: Sum of yearly savings less net cost ($).
        break_even_year: First year cumulative savings >= 0, or None.
        projection: Year 0..N projection rows.
        co2_offset_tons: First-year CO2 avoided (metric tons).
        trees_equivalent: Trees needed to sequester the same CO2.
        financing_options: Cash, loan, lease and PPA quotes.
    """

    system_cost: float
    cost_per_watt: float
    federal_tax_credit: float
    net_cost: float
    annual_savings: float
    monthly_savings: float
    energy_savings: float
    time_of_use_adjustment: float
    battery_arbitrage: float
    demand_charge_savings: float
    payback_period: float
    roi: float
    npv: float
    irr: Optional[float]
    lifetime_savings: float
    break_even_year: Optional[int]
    projection: List[ProjectionRow]
    co2_offset_tons: float
    trees_equivalent: float
    financing_options: List[FinancingOption] = field(default_factory=list)


@dataclass(frozen=True)
class CostBreakdown(_ResultMixin):
    """Itemized installed cost ($)."""

    panels: float = 0.0
    inverters: float = 0.0
    racking: float = 0.0
    electrical: float = 0.0
    design: float = 0.0
    permits: float = 0.0
    installation: float = 0.0
    inspection: float = 0.0
    battery: float = 0.0

    @property
    def pv_total(self) -> float:
        return (self.panels + self.inverters + self.racking + self.electrical
                + self.design + self.permits + self.installation + self.inspection)

    @property
    def total(self) -> float:
        return self.pv_total + self.battery


@dataclass(frozen=True)
class BillComparison(_ResultMixin):
    current_monthly_bill: float
    monthly_bill_with_solar: float
    monthly_savings: float


@dataclass(frozen=True)
class SystemSizingResult(_ResultMixin):
    """Sized system with production, pricing and advisory notes.

    Attributes:
        system_size_kw: DC nameplate size, a whole multiple of panel wattage.
        panel_count: Number of modules.
        panel_wattage: Module rating (W).
        required_size_kw: Unrounded size needed to hit the target.
        annual_usage_kwh: Usage including lifestyle loads.
        target_production_kwh: Usage times the offset goal.
        annual_production_kwh: Expected first-year production.
        monthly_production: 12 monthly values (kWh), Jan-Dec.
        performance_ratio: Shading x tilt/orientation x (1 - losses).
        capacity_factor: Production / (size x 8760).
        factors: Named performance factors.
        shading_model: "grid", "tags", "grid+tags", "level" or "none".
        inverter_count: Inverters (or microinverters) required.
        battery_count: Battery units required.
        cost_breakdown: Itemized installed cost.
        financials: Financial projection.
        bill: Monthly bill before and after solar.
        site_assessment: Short text assessments keyed by topic.
        warnings: Advisory messages.
    """

    system_size_kw: float
    panel_count: int
    panel_wattage: float
    required_size_kw: float
    annual_usage_kwh: float
    target_production_kwh: float
    annual_production_kwh: float
    monthly_production: List[float]
    performance_ratio: float
    capacity_factor: float
    factors: PerformanceFactors
    shading_model: str
    inverter_count: int
    battery_count: int
    cost_breakdown: CostBreakdown
    financials: FinancialResult
    bill: BillComparison
    site_assessment: Dict[str, str] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class CalculationResult(_ResultMixin):
    """Basic calculator output."""

    state: str
    peak_sun_hours: float
    electricity_rate: float
    system_size_kw: float
    panel_count: int
    annual_production_kwh: float
    monthly_production: List[float]
    system_cost: float
    federal_tax_credit: float
    net_cost: float
    annual_savings: float
    monthly_savings: float
    payback_period: float
    roi: float
    npv: float
    twenty_year_savings: float
    co2_offset_tons: float
    trees_equivalent: float
    financing: FinancingOption
    financing_options: List[FinancingOption]
    projection: List[ProjectionRow]
    warnings: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ProSolarResult(_ResultMixin):
    """Pro calculator output."""

    system_size_kw: float
    panel_count: int
    panel_wattage: float
    annual_usage_kwh: float
    annual_production_kwh: float
    monthly_production: List[float]
    effective_sun_hours: float
    performance_ratio: float
    total_system_cost: float
    cost_per_watt: float
    federal_tax_credit: float
    net_cost: float
    annual_savings: float
    monthly_savings: float
    payback_period: float
    roi: float
    npv: float
    irr: Optional[float]
    financing_options: List[FinancingOption]
    projection: List[ProjectionRow]
    financials: FinancialResult
    roof_limited: bool
    equipment: Dict[str, str] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
