"""Input validation functions for Solar Estimator.

Each validator returns a tuple of (is_valid: bool, message: str).
Messages describe errors or warnings for user display. The engine
itself never needs these to succeed; they screen inputs before a
calculation is presented to a homeowner.
"""

from typing import List, Tuple

from solar_estimator.data.catalogs import find_state
from solar_estimator.models.inputs import SystemSizingInputs


def validate_latitude(latitude: float) -> Tuple[bool, str]:
    """Validate site latitude in degrees."""
    if not -90 <= latitude <= 90:
        return False, "Latitude must be between -90 and 90 degrees."
    if abs(latitude) > 60:
        return True, "Warning: Latitudes beyond 60 degrees have very low winter sun."
    return True, ""


def validate_longitude(longitude: float) -> Tuple[bool, str]:
    """Validate site longitude in degrees."""
    if not -180 <= longitude <= 180:
        return False, "Longitude must be between -180 and 180 degrees."
    return True, ""


def validate_state_code(code: str) -> Tuple[bool, str]:
    """Validate a two-letter state code for the basic calculator.

    Args:
        code: State code (e.g., "CA").

    Returns:
        (is_valid, message) tuple.
    """
    if find_state(code) is None:
        return False, f"Unrecognized state code '{code}'."
    return True, ""


def validate_electricity_rate(rate: float) -> Tuple[bool, str]:
    """Validate retail electricity rate.

    Args:
        rate: Rate in $/kWh (e.g., 0.15).

    Returns:
        (is_valid, message) tuple.
    """
    if rate < 0:
        return False, "Electricity rate cannot be negative."
    if rate == 0:
        return True, "Warning: Electricity rate is $0/kWh; savings will be zero."
    if rate > 1.0:
        return True, f"Warning: ${rate:.2f}/kWh is unusually high. Was it entered in cents?"
    return True, ""


def validate_monthly_usage(monthly_kwh: float) -> Tuple[bool, str]:
    """Validate average monthly consumption in kWh."""
    if monthly_kwh < 0:
        return False, "Monthly usage cannot be negative."
    if monthly_kwh > 5000:
        return True, f"Warning: {monthly_kwh:,.0f} kWh/month is unusually high for a home."
    return True, ""


def validate_offset_goal(offset_goal: float) -> Tuple[bool, str]:
    """Validate the percent of usage to offset."""
    if offset_goal <= 0:
        return False, "Offset goal must be greater than 0%."
    if offset_goal > 150:
        return False, "Offset goal cannot exceed 150%."
    if offset_goal > 110:
        return True, "Warning: Offsets above 110% may exceed utility interconnection limits."
    return True, ""


def validate_tilt(tilt: float) -> Tuple[bool, str]:
    """Validate array tilt in degrees."""
    if not 0 <= tilt <= 90:
        return False, "Tilt must be between 0 and 90 degrees."
    return True, ""


def validate_sizing_inputs(inputs: SystemSizingInputs) -> Tuple[bool, List[str]]:
    """Run all validations on a sizing request.

    Args:
        inputs: Sizing inputs to validate.

    Returns:
        (is_valid, messages) where messages includes all errors and warnings.
    """
    messages = []
    is_valid = True

    checks = [
        validate_latitude(inputs.location.latitude),
        validate_longitude(inputs.location.longitude),
        validate_electricity_rate(inputs.energy.electricity_rate),
        validate_monthly_usage(inputs.energy.monthly_kwh_usage),
        validate_offset_goal(inputs.offset_goal),
    ]
    if inputs.roof.tilt is not None:
        checks.append(validate_tilt(inputs.roof.tilt))

    for valid, msg in checks:
        if not valid:
            is_valid = False
        if msg:
            messages.append(msg)

    if inputs.energy.annual_usage_kwh() == 0:
        messages.append("Warning: No usage or bill provided. System size will be 0 kW.")

    return is_valid, messages
