#!/usr/bin/env python3
"""
Solar Estimator CLI - Residential Solar Sizing and Savings Tool

Command-line front end for the estimation engine:
- Quick estimate from a state code and monthly usage (basic)
- Detailed estimate with equipment, storage and tariff options (pro)
- Full sizing from a JSON description of the site (size)
- Sun position and clear-sky irradiance at an instant (position)
- Hour-by-hour production simulation for a site (production)
- List assumption libraries (libraries)

Usage:
    python solar_cli.py basic --state CA --usage 900 --rate 20
    python solar_cli.py pro --bill 150 --roof 1500 --location arizona --panel premium
    python solar_cli.py size --input site.json --library nrel
    python solar_cli.py production --lat 33.45 --lon -112.07 --size 7.5
    python solar_cli.py --help
"""

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from typing import List, Optional

from solar_estimator.data.libraries import AssumptionLibrary
from solar_estimator.data.validators import validate_sizing_inputs
from solar_estimator.models.calculators import calculate_pro_solar_system, calculate_solar_savings
from solar_estimator.models.errors import UNRECOGNIZED_LOCATION, InvalidInputError
from solar_estimator.models.inputs import BasicFormData, ProSolarInput, SystemSizingInputs
from solar_estimator.models.irradiance import irradiance
from solar_estimator.models.production import ProductionModel, estimate_monthly_production
from solar_estimator.models.results import FinancialResult, FinancingOption, ProjectionRow
from solar_estimator.models.sizing import calculate_system_size
from solar_estimator.models.solar_position import solar_position
from solar_estimator.utils.formatters import (
    format_currency,
    format_currency_exact,
    format_kwh,
    format_number,
    format_percent,
    format_years,
)

log = logging.getLogger("solar_cli")

MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
          "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


# ============================================================================
# OUTPUT HELPERS
# ============================================================================

def print_header(text: str, char: str = "=") -> None:
    """Print a formatted section header."""
    width = 70
    print(f"\n{char * width}")
    print(f" {text}")
    print(f"{char * width}")


def print_subheader(text: str) -> None:
    """Print a formatted subsection header."""
    print(f"\n--- {text} ---")


def print_table(headers: List[str], rows: List[List[str]],
                col_widths: Optional[List[int]] = None) -> None:
    """Print a formatted ASCII table."""
    if col_widths is None:
        col_widths = [max(len(str(row[i])) for row in [headers] + rows) + 2
                      for i in range(len(headers))]

    header_line = "|".join(h.center(w) for h, w in zip(headers, col_widths))
    separator = "+".join("-" * w for w in col_widths)
    print(f"+{separator}+")
    print(f"|{header_line}|")
    print(f"+{separator}+")
    for row in rows:
        row_line = "|".join(str(cell).center(w) for cell, w in zip(row, col_widths))
        print(f"|{row_line}|")
    print(f"+{separator}+")


def print_json(result) -> None:
    print(json.dumps(result.to_dict(), indent=2))


def print_monthly(monthly: List[float]) -> None:
    print_subheader("Monthly Production")
    print_table(MONTHS[:6], [[format_number(v, 0) for v in monthly[:6]]])
    print_table(MONTHS[6:], [[format_number(v, 0) for v in monthly[6:]]])


def print_financing(options: List[FinancingOption]) -> None:
    print_subheader("Financing Options")
    rows = [[
        opt.type,
        format_currency_exact(opt.monthly_payment),
        format_currency(opt.total_cost, 1),
        format_percent(opt.interest_rate, 2),
        f"{opt.term_years}" if opt.term_years else "-",
        format_currency(opt.net_benefit, 1),
    ] for opt in options]
    print_table(["Option", "Monthly", "Total Cost", "Rate", "Years", "Net Benefit"], rows)


def print_projection(projection: List[ProjectionRow], every: int = 5) -> None:
    print_subheader("Savings Projection")
    rows = [[
        str(row.year),
        format_kwh(row.production_kwh),
        format_currency_exact(row.savings),
        format_currency_exact(row.cumulative_savings),
    ] for row in projection if row.year % every == 0 or row.year == 1]
    print_table(["Year", "Production", "Savings", "Cumulative"], rows)


def print_financials(fin: FinancialResult) -> None:
    print_subheader("Key Financial Metrics")
    metrics = [
        ("System Cost", format_currency_exact(fin.system_cost)),
        ("Federal Tax Credit (30%)", format_currency_exact(fin.federal_tax_credit)),
        ("Net Cost", format_currency_exact(fin.net_cost)),
        ("Annual Savings (Year 1)", format_currency_exact(fin.annual_savings)),
        ("Payback Period", format_years(fin.payback_period)),
        ("ROI", format_percent(fin.roi / 100)),
        ("NPV", format_currency(fin.npv, 1)),
        ("IRR", format_percent(fin.irr)),
        ("CO2 Offset", f"{fin.co2_offset_tons:.1f} t/yr ({fin.trees_equivalent:.0f} trees)"),
    ]
    print()
    for name, value in metrics:
        print(f"  {name:<30} {value:>20}")


def print_warnings(warnings: List[str]) -> None:
    if warnings:
        print_subheader("Warnings")
        for warning in warnings:
            print(f"  [!] {warning}")


# ============================================================================
# COMMANDS
# ============================================================================

def run_basic(args) -> int:
    form = BasicFormData(
        state=args.state,
        house_square_feet=args.sqft,
        monthly_electric_bill=args.bill,
        monthly_kwh_usage=args.usage,
        electricity_rate=args.rate,
        shading_level=args.shading,
        panel_type=args.panel,
        financing=args.financing,
    )
    try:
        result = calculate_solar_savings(form)
    except InvalidInputError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        if exc.kind == UNRECOGNIZED_LOCATION:
            print("Use a two-letter state code such as CA or TX.", file=sys.stderr)
        return 2

    if args.json:
        print_json(result)
        return 0

    print_header(f"SOLAR SAVINGS ESTIMATE - {result.state.upper()}")
    print(f"\n  {'Peak Sun Hours:':<30} {result.peak_sun_hours:>20.1f}")
    print(f"  {'Electricity Rate:':<30} {'$' + format(result.electricity_rate, '.3f') + '/kWh':>20}")
    print(f"  {'System Size:':<30} {format_number(result.system_size_kw, 2) + ' kW':>20}")
    print(f"  {'Panels:':<30} {result.panel_count:>20}")
    print(f"  {'Annual Production:':<30} {format_kwh(result.annual_production_kwh):>20}")
    print(f"  {'20-Year Net Savings:':<30} {format_currency_exact(result.twenty_year_savings):>20}")
    print(f"  {'Payback Period:':<30} {format_years(result.payback_period):>20}")
    print(f"  {'Selected Financing:':<30} {result.financing.type:>20}")
    print_monthly(result.monthly_production)
    print_financing(result.financing_options)
    print_warnings(result.warnings)
    return 0


def run_pro(args) -> int:
    inputs = ProSolarInput(
        monthly_bill=args.bill,
        roof_size=args.roof,
        location=args.location,
        panel_type=args.panel,
        battery_storage=args.battery,
        battery_capacity_kwh=args.battery_kwh,
        electricity_rate=args.rate,
        roof_orientation=args.orientation,
        shading_level=args.shading,
        inverter_type=args.inverter,
        mounting_type=args.mounting,
        peak_rate=args.peak_rate,
        off_peak_rate=args.off_peak_rate,
        monthly_demand_charge=args.demand_charge,
        has_ev=args.ev,
        has_pool=args.pool,
        has_hot_tub=args.hot_tub,
        offset_goal=args.offset,
    )
    if args.library:
        try:
            inputs = AssumptionLibrary().apply_library_to_pro_input(inputs, args.library)
        except KeyError as exc:
            print(f"Error: {exc.args[0]}", file=sys.stderr)
            return 2
    result = calculate_pro_solar_system(inputs)

    if args.json:
        print_json(result)
        return 0

    print_header("PRO SOLAR SYSTEM DESIGN")
    print(f"\n  {'System Size:':<30} {format_number(result.system_size_kw, 2) + ' kW':>20}")
    print(f"  {'Panels:':<30} {str(result.panel_count) + ' x ' + format(result.panel_wattage, '.0f') + ' W':>20}")
    print(f"  {'Effective Sun Hours:':<30} {result.effective_sun_hours:>20.2f}")
    print(f"  {'Performance Ratio:':<30} {result.performance_ratio:>20.3f}")
    print(f"  {'Annual Production:':<30} {format_kwh(result.annual_production_kwh):>20}")
    for role, model in result.equipment.items():
        print(f"  {role.title() + ':':<30} {model:>20}")
    print_financials(result.financials)
    print_monthly(result.monthly_production)
    print_financing(result.financing_options)
    print_projection(result.projection)
    print_warnings(result.warnings)
    return 0


def run_size(args) -> int:
    with open(args.input, "r", encoding="utf-8") as f:
        inputs = SystemSizingInputs.from_dict(json.load(f))
    if args.library:
        try:
            inputs = AssumptionLibrary().apply_library_to_sizing_inputs(inputs, args.library)
        except KeyError as exc:
            print(f"Error: {exc.args[0]}", file=sys.stderr)
            return 2

    is_valid, messages = validate_sizing_inputs(inputs)
    for msg in messages:
        print(msg, file=sys.stderr)
    if not is_valid:
        return 2

    result = calculate_system_size(inputs)
    if args.json:
        print_json(result)
        return 0

    print_header("SYSTEM SIZING")
    print(f"\n  {'Annual Usage:':<30} {format_kwh(result.annual_usage_kwh):>20}")
    print(f"  {'Target Production:':<30} {format_kwh(result.target_production_kwh):>20}")
    print(f"  {'System Size:':<30} {format_number(result.system_size_kw, 2) + ' kW':>20}")
    print(f"  {'Panels:':<30} {result.panel_count:>20}")
    print(f"  {'Performance Ratio:':<30} {result.performance_ratio:>20.3f}")
    print(f"  {'Capacity Factor:':<30} {format_percent(result.capacity_factor):>20}")
    print(f"  {'Shading Model:':<30} {result.shading_model:>20}")

    print_subheader("Cost Breakdown")
    for item, amount in result.cost_breakdown.to_dict().items():
        if amount:
            print(f"  {item.title():<30} {format_currency_exact(amount):>20}")

    print_financials(result.financials)
    print_monthly(result.monthly_production)
    print_financing(result.financials.financing_options)
    print_projection(result.financials.projection)

    print_subheader("Site Assessment")
    for topic, text in result.site_assessment.items():
        print(f"  {topic.replace('_', ' ').title() + ':':<20} {text}")
    print_warnings(result.warnings)
    return 0


def run_position(args) -> int:
    when = datetime.fromisoformat(args.time) if args.time else datetime.now(timezone.utc)
    position = solar_position(args.lat, args.lon, when)
    current = irradiance(position, args.transmittance, args.cloud)
    if args.json:
        print(json.dumps({"position": position.to_dict(), "irradiance": current.to_dict()}, indent=2))
        return 0
    print_header(f"SUN POSITION {when.isoformat()}")
    print(f"\n  {'Azimuth:':<20} {position.azimuth:>10.2f} deg")
    print(f"  {'Elevation:':<20} {position.elevation:>10.2f} deg")
    print(f"  {'Zenith:':<20} {position.zenith:>10.2f} deg")
    print(f"  {'Direct:':<20} {current.direct:>10.1f} W/m2")
    print(f"  {'Diffuse:':<20} {current.diffuse:>10.1f} W/m2")
    print(f"  {'Global:':<20} {current.global_irradiance:>10.1f} W/m2")
    return 0


def run_production(args) -> int:
    monthly = estimate_monthly_production(
        ProductionModel(args.model), args.lat, args.lon, args.size,
        peak_sun_hours=args.sun_hours, tilt=args.tilt, azimuth=args.azimuth,
        efficiency=args.efficiency,
    )
    if args.json:
        print(json.dumps({"model": args.model, "monthly_production": monthly}, indent=2))
        return 0
    print_header(f"PRODUCTION ({args.model.replace('_', ' ').upper()})")
    print_monthly(monthly)
    print(f"\n  {'Annual Production:':<30} {format_kwh(sum(monthly)):>20}")
    return 0


def run_libraries(args) -> int:
    library = AssumptionLibrary()
    rows = []
    for name in library.get_library_names():
        meta = library.get_library_metadata(name)
        rows.append([name, meta["title"], meta["version"], meta["date_published"]])
    print_table(["Name", "Title", "Version", "Published"], rows)
    return 0


# ============================================================================
# MAIN
# ============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Solar Estimator CLI - Residential Solar Sizing and Savings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s basic --state CA --usage 900 --rate 20
  %(prog)s pro --bill 150 --roof 1500 --location arizona --battery --peak-rate 0.35 --off-peak-rate 0.12
  %(prog)s size --input site.json --library nrel --json
  %(prog)s position --lat 40 --lon -105 --time 2024-06-21T18:00:00
  %(prog)s libraries
        """,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    basic = sub.add_parser("basic", help="Quick estimate from a state code")
    basic.add_argument("--state", required=True, help="Two-letter state code")
    basic.add_argument("--sqft", type=float, default=0.0, help="House square feet")
    basic.add_argument("--bill", type=float, default=0.0, help="Monthly bill ($)")
    basic.add_argument("--usage", type=float, default=0.0, help="Monthly usage (kWh)")
    basic.add_argument("--rate", type=str, default=None, help="Rate in $/kWh or cents")
    basic.add_argument("--shading", default="none")
    basic.add_argument("--panel", default="monocrystalline")
    basic.add_argument("--financing", default="cash")
    basic.add_argument("--json", action="store_true", help="Print JSON result")
    basic.set_defaults(func=run_basic)

    pro = sub.add_parser("pro", help="Detailed estimate with equipment options")
    pro.add_argument("--bill", type=float, required=True, help="Monthly bill ($)")
    pro.add_argument("--roof", type=float, default=0.0, help="Usable roof area (sq ft)")
    pro.add_argument("--location", default="other")
    pro.add_argument("--panel", default="standard")
    pro.add_argument("--battery", action="store_true")
    pro.add_argument("--battery-kwh", type=float, default=13.5)
    pro.add_argument("--rate", type=float, default=None, help="Rate ($/kWh)")
    pro.add_argument("--orientation", default="south")
    pro.add_argument("--shading", default="none")
    pro.add_argument("--inverter", default="string")
    pro.add_argument("--mounting", default="roof_mount")
    pro.add_argument("--peak-rate", type=float, default=None)
    pro.add_argument("--off-peak-rate", type=float, default=None)
    pro.add_argument("--demand-charge", type=float, default=0.0, help="Monthly demand charge ($)")
    pro.add_argument("--ev", action="store_true")
    pro.add_argument("--pool", action="store_true")
    pro.add_argument("--hot-tub", action="store_true")
    pro.add_argument("--offset", type=float, default=100.0, help="Offset goal (%%)")
    pro.add_argument("--library", "-l", help="Assumption library name")
    pro.add_argument("--json", action="store_true")
    pro.set_defaults(func=run_pro)

    size = sub.add_parser("size", help="Size a system from a JSON site description")
    size.add_argument("--input", "-i", required=True, help="SystemSizingInputs JSON file")
    size.add_argument("--library", "-l", help="Assumption library name")
    size.add_argument("--json", action="store_true")
    size.set_defaults(func=run_size)

    position = sub.add_parser("position", help="Sun position and irradiance")
    position.add_argument("--lat", type=float, required=True)
    position.add_argument("--lon", type=float, required=True)
    position.add_argument("--time", help="ISO timestamp (UTC if no offset); default now")
    position.add_argument("--transmittance", type=float, default=0.75)
    position.add_argument("--cloud", type=float, default=0.2)
    position.add_argument("--json", action="store_true")
    position.set_defaults(func=run_position)

    production = sub.add_parser("production", help="Monthly production estimate")
    production.add_argument("--lat", type=float, required=True)
    production.add_argument("--lon", type=float, required=True)
    production.add_argument("--size", type=float, required=True, help="System size (kW)")
    production.add_argument("--tilt", type=float, default=None)
    production.add_argument("--azimuth", type=float, default=None, help="Panel azimuth; default faces the equator")
    production.add_argument("--efficiency", type=float, default=0.85)
    production.add_argument("--sun-hours", type=float, default=4.5)
    production.add_argument("--model", choices=[m.value for m in ProductionModel],
                            default=ProductionModel.HOURLY_SIMULATION.value)
    production.add_argument("--json", action="store_true")
    production.set_defaults(func=run_production)

    libraries = sub.add_parser("libraries", help="List assumption libraries")
    libraries.set_defaults(func=run_libraries)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    log.debug("Running %s command", args.command)
    try:
        return args.func(args)
    except (ValueError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
