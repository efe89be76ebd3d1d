"""System sizing engine.

Turns household usage, roof geometry and equipment choice into a
whole-panel system size, seasonal production curve, itemized cost and
financial projection.
"""

import logging
import math
from dataclasses import replace
from typing import Dict, List

from solar_estimator.data.catalogs import (
    DEFAULT_SEASONAL_CURVE,
    PANEL_CATALOG,
    InverterSpec,
    InverterType,
    PanelSpec,
    PanelType,
    RoofCondition,
    get_inverter_spec,
    get_panel_spec,
)
from solar_estimator.models.financials import calculate_financials
from solar_estimator.models.inputs import EnergyProfile, SystemSizingInputs
from solar_estimator.models.production import (
    annual_production_from_sun_hours,
    seasonal_monthly_production,
)
from solar_estimator.models.results import (
    BillComparison,
    CostBreakdown,
    PerformanceFactors,
    SystemSizingResult,
)
from solar_estimator.models.terrain import (
    directional_loss,
    select_shading_factor,
    tilt_orientation_factor,
)

log = logging.getLogger(__name__)

SYSTEM_LOSSES = 0.14
DEFAULT_PEAK_SUN_HOURS = 4.5
HOURS_PER_YEAR = 8760
CONNECTION_FEE = 15.0
STRING_INVERTER_KW = 7.6
BATTERY_UNIT_KWH = 13.5
BATTERY_UNIT_COST = 16500.0

# Itemized installed pricing (reference module: premium tier)
PANEL_UNIT_COST = 280.0
MICROINVERTER_UNIT_COST = 220.0
RACKING_PER_KW = 150.0
ELECTRICAL_PER_KW = 200.0
INSTALLATION_PER_KW = 800.0
DESIGN_FEE = 750.0
PERMIT_FEE = 1250.0
INSPECTION_FEE = 250.0

HIGH_SHADING_LOSS_PCT = 20.0
LONG_PAYBACK_YEARS = 15.0
OLD_HOME_YEARS = 30.0
HIGH_DEGRADATION_RATE = 0.006


def whole_panel_count(required_kw: float, panel_wattage: float) -> int:
    """Round a required size up to whole panels."""
    if required_kw <= 0 or panel_wattage <= 0:
        return 0
    # round() absorbs float noise such as 20.000000000000004
    return math.ceil(round(required_kw * 1000 / panel_wattage, 6))


def battery_units(capacity_kwh: float) -> int:
    if capacity_kwh <= 0:
        return 0
    return math.ceil(round(capacity_kwh / BATTERY_UNIT_KWH, 6))


def inverter_units(inverter_type: InverterType, panel_count: int, system_size_kw: float) -> int:
    if panel_count <= 0:
        return 0
    if inverter_type is InverterType.MICROINVERTER:
        return panel_count
    return math.ceil(system_size_kw / STRING_INVERTER_KW)


def estimate_cost_breakdown(
    panel_count: int,
    system_size_kw: float,
    panel: PanelSpec,
    inverter: InverterSpec,
    battery_count: int = 0,
) -> CostBreakdown:
    """Price a system line by line.

    Module and inverter prices scale from the premium-module and
    microinverter reference prices by catalog price ratios. Fixed fees
    apply only when at least one panel is installed.

    Args:
        panel_count: Number of modules.
        system_size_kw: DC size.
        panel: Module catalog entry.
        inverter: Inverter catalog entry.
        battery_count: Battery units.

    Returns:
        CostBreakdown in dollars.
    """
    battery = battery_count * BATTERY_UNIT_COST
    if panel_count <= 0:
        return CostBreakdown(battery=battery)

    reference_panel = PANEL_CATALOG[PanelType.PREMIUM]
    reference_inverter = get_inverter_spec(InverterType.MICROINVERTER)
    panel_unit = PANEL_UNIT_COST * panel.cost_per_watt / reference_panel.cost_per_watt
    inverter_unit = MICROINVERTER_UNIT_COST * inverter.cost_multiplier / reference_inverter.cost_multiplier

    return CostBreakdown(
        panels=panel_count * panel_unit,
        inverters=panel_count * inverter_unit,
        racking=system_size_kw * RACKING_PER_KW,
        electrical=system_size_kw * ELECTRICAL_PER_KW,
        design=DESIGN_FEE,
        permits=PERMIT_FEE,
        installation=system_size_kw * INSTALLATION_PER_KW,
        inspection=INSPECTION_FEE,
        battery=battery,
    )


def effective_rate(energy: EnergyProfile) -> float:
    """Retail rate, derived from bill and usage when not supplied."""
    if energy.electricity_rate > 0:
        return energy.electricity_rate
    if energy.monthly_bill > 0 and energy.monthly_kwh_usage > 0:
        return energy.monthly_bill / energy.monthly_kwh_usage
    return 0.0


def _bill_comparison(energy: EnergyProfile, annual_usage: float,
                     annual_production: float, rate: float) -> BillComparison:
    current = energy.monthly_bill if energy.monthly_bill > 0 else annual_usage / 12 * rate
    remaining_kwh = max(0.0, annual_usage - annual_production) / 12
    with_solar = CONNECTION_FEE + remaining_kwh * rate
    return BillComparison(
        current_monthly_bill=current,
        monthly_bill_with_solar=with_solar,
        monthly_savings=max(0.0, current - with_solar),
    )


def _site_assessment(direction_loss: float, shading_loss: float, system_size_kw: float) -> Dict[str, str]:
    if direction_loss == 0:
        roof = "Excellent: array faces within 20 degrees of south"
    elif direction_loss <= 5:
        roof = "Good: minor orientation loss"
    elif direction_loss <= 15:
        roof = "Fair: east/west facing array"
    else:
        roof = "Poor: array faces away from the sun's path"

    if shading_loss <= 0:
        shading = "No significant shading"
    elif shading_loss <= 5:
        shading = "Minimal shading"
    elif shading_loss <= 15:
        shading = "Moderate shading"
    else:
        shading = "Heavy shading"

    if system_size_kw < 8:
        electrical = "Existing 200A service should be sufficient"
    elif system_size_kw < 12:
        electrical = "Main panel upgrade may be required"
    else:
        electrical = "Service upgrade likely required"

    return {"roof_suitability": roof, "shading": shading, "electrical": electrical}


def calculate_system_size(inputs: SystemSizingInputs) -> SystemSizingResult:
    r"""Size a PV system to meet an offset goal.

    Steps:
        1. Annual usage from monthly kWh (or bill / rate) plus lifestyle loads.
        2. Target production = usage x offset_goal / 100.
        3. PR = shading x tilt/orientation x (1 - 0.14).
        4. Required kW = target / (PSH x irradiance factor x 365 x PR).
        5. Round up to whole panels; size = panels x wattage / 1000.
        6. Monthly production from the seasonal curve.

    Formula:
        P_{kW} = \frac{E_{target}}{PSH \cdot k_{irr} \cdot 365 \cdot PR}

    Args:
        inputs: Site, usage, roof, equipment, climate and cost assumptions.

    Returns:
        SystemSizingResult. Zero usage yields a zero-size system with an
        infinite payback, not an error.
    """
    energy = inputs.energy
    roof = inputs.roof
    climate = inputs.climate
    equipment = inputs.equipment

    annual_usage = energy.annual_usage_kwh()
    target = annual_usage * inputs.offset_goal / 100

    peak_sun_hours = climate.peak_sun_hours if climate else DEFAULT_PEAK_SUN_HOURS
    irradiance_factor = climate.irradiance_factor if climate else 1.0

    shading_factor, shading_model = select_shading_factor(roof, inputs.location)
    orientation = tilt_orientation_factor(roof.tilt, roof.azimuth, inputs.location.latitude)
    performance_ratio = shading_factor * orientation * (1 - SYSTEM_LOSSES)
    yield_per_kw = annual_production_from_sun_hours(1.0, peak_sun_hours * irradiance_factor, performance_ratio)

    panel = get_panel_spec(equipment.panel_type)
    inverter = get_inverter_spec(equipment.inverter_type)
    wattage = equipment.panel_wattage or panel.wattage

    required_kw = target / yield_per_kw if target > 0 and yield_per_kw > 0 else 0.0
    panel_count = whole_panel_count(required_kw, wattage)

    warnings: List[str] = []
    if roof.usable_area_sqft is not None:
        max_panels = int(roof.usable_area_sqft // panel.area_sqft)
        if panel_count > max_panels:
            log.info("Roof area caps the array at %d panels (wanted %d)", max_panels, panel_count)
            panel_count = max_panels
            warnings.append("System size limited by available roof area")

    system_size_kw = panel_count * wattage / 1000
    annual_production = system_size_kw * yield_per_kw
    curve = climate.seasonal_variation if climate else DEFAULT_SEASONAL_CURVE
    monthly = seasonal_monthly_production(annual_production, curve)
    capacity_factor = annual_production / (system_size_kw * HOURS_PER_YEAR) if system_size_kw > 0 else 0.0

    battery_count = battery_units(equipment.battery_capacity_kwh)
    breakdown = estimate_cost_breakdown(panel_count, system_size_kw, panel, inverter, battery_count)
    if inputs.cost_per_watt is not None:
        cost_per_watt = inputs.cost_per_watt
    elif system_size_kw > 0:
        cost_per_watt = breakdown.pv_total / (system_size_kw * 1000)
    else:
        cost_per_watt = 0.0

    rate = effective_rate(energy)
    degradation = climate.degradation_rate if climate else panel.degradation_rate
    net_metering = energy.net_metering_rate
    if net_metering is None:
        net_metering = inputs.costs.net_metering_rate
    costs = replace(
        inputs.costs,
        electricity_rate=rate,
        cost_per_watt=cost_per_watt,
        battery_cost=breakdown.battery,
        battery_capacity_kwh=equipment.battery_capacity_kwh,
        degradation_rate=degradation,
        annual_usage_kwh=annual_usage,
        net_metering_rate=net_metering,
    )
    financials = calculate_financials(system_size_kw, annual_production, costs)

    shading_loss = (1 - shading_factor) * 100
    direction_loss = directional_loss(roof.azimuth)

    if annual_usage <= 0:
        warnings.append("No electricity usage provided; system size is 0 kW")
    if roof.roof_condition is RoofCondition.NEEDS_REPLACEMENT:
        warnings.append("Roof needs replacement before installing solar")
    elif roof.roof_condition is RoofCondition.FAIR:
        warnings.append("Roof is in fair condition; have it inspected before installation")
    if shading_loss > HIGH_SHADING_LOSS_PCT:
        warnings.append(f"High shading impact ({shading_loss:.0f}% loss); consider tree trimming")
    if direction_loss >= 30:
        warnings.append("Array faces away from south; production is significantly reduced")
    if system_size_kw > 0 and financials.payback_period > LONG_PAYBACK_YEARS:
        warnings.append("Long payback period; review pricing or financing")
    if inputs.home_age_years > OLD_HOME_YEARS:
        warnings.append("Home is over 30 years old; electrical upgrades may be needed")
    if climate and climate.solar_potential.strip().lower() in ("poor", "fair"):
        warnings.append(f"{climate.solar_potential.strip().title()} solar potential for this climate")
    if degradation > HIGH_DEGRADATION_RATE:
        warnings.append(f"High degradation rate ({degradation * 100:.1f}%/yr)")

    log.debug("Sized %.2f kW (%d x %.0f W), PR=%.3f, %.0f kWh/yr",
              system_size_kw, panel_count, wattage, performance_ratio, annual_production)

    return SystemSizingResult(
        system_size_kw=system_size_kw,
        panel_count=panel_count,
        panel_wattage=wattage,
        required_size_kw=required_kw,
        annual_usage_kwh=annual_usage,
        target_production_kwh=target,
        annual_production_kwh=annual_production,
        monthly_production=monthly,
        performance_ratio=performance_ratio,
        capacity_factor=capacity_factor,
        factors=PerformanceFactors(
            irradiance=irradiance_factor,
            shading=shading_factor,
            tilt_orientation=orientation,
            system_losses=SYSTEM_LOSSES,
        ),
        shading_model=shading_model,
        inverter_count=inverter_units(equipment.inverter_type, panel_count, system_size_kw),
        battery_count=battery_count,
        cost_breakdown=breakdown,
        financials=financials,
        bill=_bill_comparison(energy, annual_usage, annual_production, rate),
        site_assessment=_site_assessment(direction_loss, shading_loss, system_size_kw),
        warnings=warnings,
    )
