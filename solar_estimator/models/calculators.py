"""Homeowner-facing calculators built on the sizing and financial engines.

``calculate_solar_savings`` is the quick estimate keyed by state code.
``calculate_pro_solar_system`` is the detailed estimate with equipment,
mounting, orientation, storage and tariff options.
"""

import logging
from typing import List, Union

from solar_estimator.data.catalogs import (
    InverterType,
    RoofOrientation,
    ShadingLevel,
    find_state,
    get_inverter_spec,
    get_location_profile,
    get_mounting_spec,
    get_orientation_factor,
    get_panel_spec,
)
from solar_estimator.models.errors import UNRECOGNIZED_LOCATION, InvalidInputError
from solar_estimator.models.financials import calculate_financials
from solar_estimator.models.inputs import (
    BasicFormData,
    ClimateProfile,
    CostInputs,
    EnergyProfile,
    EquipmentSelection,
    ProSolarInput,
    RoofSpec,
    SiteLocation,
    SystemSizingInputs,
)
from solar_estimator.models.production import (
    annual_production_from_sun_hours,
    seasonal_monthly_production,
)
from solar_estimator.models.results import CalculationResult, ProSolarResult
from solar_estimator.models.sizing import (
    BATTERY_UNIT_COST,
    LONG_PAYBACK_YEARS,
    SYSTEM_LOSSES,
    battery_units,
    calculate_system_size,
    whole_panel_count,
)
from solar_estimator.models.terrain import shading_level_loss

log = logging.getLogger(__name__)

# Rates entered above this are read as cents per kWh
CENTS_THRESHOLD = 2.0
# National average installed price the location profiles are quoted against
BASELINE_COST_PER_WATT = 3.5
SUMMARY_YEARS = 20


def parse_electricity_rate(value: Union[str, float, None], default: float) -> float:
    """Read a rate as typed into a form.

    "0.20", "$0.20", "20" and 20 all mean $0.20/kWh. Blank, zero or
    unparseable values fall back to ``default``.
    """
    if value is None:
        return default
    if isinstance(value, str):
        text = value.strip().lstrip("$").rstrip("¢").strip()
        if not text:
            return default
        try:
            rate = float(text)
        except ValueError:
            log.warning("Unparseable electricity rate %r, using %.3f", value, default)
            return default
    else:
        rate = float(value)
    if rate <= 0:
        return default
    if rate > CENTS_THRESHOLD:
        rate /= 100
    return rate


def calculate_solar_savings(form: BasicFormData) -> CalculationResult:
    """Quick solar estimate from a state code and monthly usage.

    Args:
        form: Basic calculator form.

    Returns:
        CalculationResult with the preferred financing option selected.

    Raises:
        InvalidInputError: If the state code is not recognized
            (kind "unrecognized location").
    """
    state = find_state(form.state)
    if state is None:
        raise InvalidInputError(
            f"Unrecognized state code {form.state!r}",
            kind=UNRECOGNIZED_LOCATION,
            value=form.state,
        )

    rate = parse_electricity_rate(form.electricity_rate, state.electricity_rate)
    panel = get_panel_spec(form.panel_type)

    sizing = calculate_system_size(SystemSizingInputs(
        location=SiteLocation(latitude=state.latitude),
        energy=EnergyProfile(
            monthly_kwh_usage=form.monthly_kwh_usage,
            monthly_bill=form.monthly_electric_bill,
            electricity_rate=rate,
        ),
        roof=RoofSpec(
            shading_level=form.shading_level,
            usable_area_sqft=form.house_square_feet or None,
        ),
        equipment=EquipmentSelection(panel_type=form.panel_type, inverter_type=InverterType.STRING),
        climate=ClimateProfile(
            peak_sun_hours=state.peak_sun_hours,
            degradation_rate=panel.degradation_rate,
        ),
        cost_per_watt=panel.cost_per_watt,
    ))
    financials = sizing.financials
    chosen = next(
        (option for option in financials.financing_options if option.kind is form.financing),
        financials.financing_options[0],
    )
    summary_savings = sum(row.savings for row in financials.projection[1:SUMMARY_YEARS + 1])

    return CalculationResult(
        state=state.name,
        peak_sun_hours=state.peak_sun_hours,
        electricity_rate=rate,
        system_size_kw=sizing.system_size_kw,
        panel_count=sizing.panel_count,
        annual_production_kwh=sizing.annual_production_kwh,
        monthly_production=sizing.monthly_production,
        system_cost=financials.system_cost,
        federal_tax_credit=financials.federal_tax_credit,
        net_cost=financials.net_cost,
        annual_savings=financials.annual_savings,
        monthly_savings=financials.monthly_savings,
        payback_period=financials.payback_period,
        roi=financials.roi,
        npv=financials.npv,
        twenty_year_savings=summary_savings - financials.net_cost,
        co2_offset_tons=financials.co2_offset_tons,
        trees_equivalent=financials.trees_equivalent,
        financing=chosen,
        financing_options=financials.financing_options,
        projection=financials.projection,
        warnings=list(sizing.warnings),
    )


def calculate_pro_solar_system(inputs: ProSolarInput) -> ProSolarResult:
    r"""Detailed estimate with equipment, mounting and tariff options.

    Formula:
        PSH_{eff} = PSH_{loc} \cdot k_{orient} \cdot k_{mount}

        PR = (1 - L_{shade}) \cdot \eta_{inv} \cdot (1 - 0.14)

        c_W = c_{panel} \cdot \frac{c_{loc}}{3.5} \cdot k_{inv} \cdot k_{mount}

    Unknown locations use the "other" profile; unknown equipment and
    orientation keys use their catalog defaults.

    Args:
        inputs: Pro calculator form.

    Returns:
        ProSolarResult with "Cash Purchase" as the first financing option.
    """
    profile = get_location_profile(inputs.location)
    rate = inputs.electricity_rate if inputs.electricity_rate else profile.electricity_rate

    energy = EnergyProfile(
        monthly_bill=inputs.monthly_bill,
        electricity_rate=rate,
        has_ev=inputs.has_ev,
        has_pool=inputs.has_pool,
        has_hot_tub=inputs.has_hot_tub,
    )
    annual_usage = energy.annual_usage_kwh()
    target = annual_usage * inputs.offset_goal / 100

    panel = get_panel_spec(inputs.panel_type)
    inverter = get_inverter_spec(inputs.inverter_type)
    mounting = get_mounting_spec(inputs.mounting_type)
    effective_sun_hours = (profile.peak_sun_hours
                           * get_orientation_factor(inputs.roof_orientation)
                           * mounting.production_factor)
    shading_factor = 1 - shading_level_loss(inputs.shading_level) / 100
    performance_ratio = shading_factor * inverter.efficiency * (1 - SYSTEM_LOSSES)
    yield_per_kw = annual_production_from_sun_hours(1.0, effective_sun_hours, performance_ratio)

    required_kw = target / yield_per_kw if target > 0 and yield_per_kw > 0 else 0.0
    panel_count = whole_panel_count(required_kw, panel.wattage)

    warnings: List[str] = []
    roof_limited = False
    if inputs.roof_size > 0:
        max_panels = int(inputs.roof_size // panel.area_sqft)
        if panel_count > max_panels:
            panel_count = max_panels
            roof_limited = True
            warnings.append("System size limited by available roof area")

    system_size_kw = panel_count * panel.wattage / 1000
    annual_production = system_size_kw * yield_per_kw

    cost_per_watt = (panel.cost_per_watt * profile.cost_per_watt / BASELINE_COST_PER_WATT
                     * inverter.cost_multiplier * mounting.cost_multiplier)
    battery_capacity = inputs.battery_capacity_kwh if inputs.battery_storage else 0.0
    battery_cost = battery_units(battery_capacity) * BATTERY_UNIT_COST

    costs = CostInputs(
        electricity_rate=rate,
        cost_per_watt=cost_per_watt,
        battery_cost=battery_cost,
        battery_capacity_kwh=battery_capacity,
        degradation_rate=panel.degradation_rate,
        rate_escalation=inputs.rate_escalation,
        discount_rate=inputs.discount_rate,
        analysis_years=inputs.analysis_years,
        peak_rate=inputs.peak_rate,
        off_peak_rate=inputs.off_peak_rate,
        monthly_demand_charge=inputs.monthly_demand_charge,
        annual_usage_kwh=annual_usage,
        loan_terms=inputs.loan_terms,
    )
    financials = calculate_financials(system_size_kw, annual_production, costs)

    if annual_usage <= 0:
        warnings.append("No electricity usage provided; system size is 0 kW")
    if inputs.shading_level in (ShadingLevel.SIGNIFICANT, ShadingLevel.HEAVY):
        warnings.append("High shading impact; consider tree trimming or a ground mount")
    if inputs.roof_orientation is RoofOrientation.NORTH:
        warnings.append("North-facing roofs produce about a third less energy")
    if system_size_kw > 0 and financials.payback_period > LONG_PAYBACK_YEARS:
        warnings.append("Long payback period; review pricing or financing")

    log.debug("Pro estimate for %r: %.2f kW, %.0f kWh/yr", inputs.location, system_size_kw, annual_production)
    return ProSolarResult(
        system_size_kw=system_size_kw,
        panel_count=panel_count,
        panel_wattage=panel.wattage,
        annual_usage_kwh=annual_usage,
        annual_production_kwh=annual_production,
        monthly_production=seasonal_monthly_production(annual_production),
        effective_sun_hours=effective_sun_hours,
        performance_ratio=performance_ratio,
        total_system_cost=financials.system_cost,
        cost_per_watt=cost_per_watt,
        federal_tax_credit=financials.federal_tax_credit,
        net_cost=financials.net_cost,
        annual_savings=financials.annual_savings,
        monthly_savings=financials.monthly_savings,
        payback_period=financials.payback_period,
        roi=financials.roi,
        npv=financials.npv,
        irr=financials.irr,
        financing_options=financials.financing_options,
        projection=financials.projection,
        financials=financials,
        roof_limited=roof_limited,
        equipment={
            "panel": panel.model,
            "inverter": inverter.model,
            "mounting": inputs.mounting_type.value,
        },
        warnings=warnings,
    )
