"""Energy production estimates.

Two named estimation variants exist and are deliberately kept separate:

* ``ProductionModel.HOURLY_SIMULATION`` integrates clear-sky irradiance
  hour by hour over a full year (``monthly_production``). Used by
  ``perform_solar_analysis`` and the CLI ``production`` command.
* ``ProductionModel.SEASONAL_CURVE`` spreads an annual total computed
  from peak sun hours over a fixed 12-month multiplier curve
  (``seasonal_monthly_production``). Used by the sizing engine and both
  calculators.

The two variants can disagree for the same system; neither is adjusted
to match the other.
"""

import calendar
import logging
import math
from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional, Sequence

import numpy as np

from solar_estimator.data.catalogs import DEFAULT_SEASONAL_CURVE
from solar_estimator.models.irradiance import irradiance
from solar_estimator.models.results import SolarAnalysisResult, SolarPosition
from solar_estimator.models.solar_position import solar_position
from solar_estimator.models.terrain import FLAT_TERRAIN, analyze_terrain_effects, optimal_azimuth, optimal_tilt

log = logging.getLogger(__name__)

SIMULATION_YEAR = 2024
FIRST_HOUR = 6
LAST_HOUR = 18
DEFAULT_SYSTEM_EFFICIENCY = 0.85
DEFAULT_PERFORMANCE_RATIO = 0.86


class ProductionModel(str, Enum):
    HOURLY_SIMULATION = "hourly_simulation"
    SEASONAL_CURVE = "seasonal_curve"


def incidence_cosine(position: SolarPosition, tilt: float, panel_azimuth: float) -> float:
    r"""Cosine of the angle between the sun and the panel normal.

    Formula:
        \cos\theta = \sin h \cos\beta + \cos h \sin\beta \cos(A_s - A_p)
    """
    elevation = math.radians(position.elevation)
    beta = math.radians(tilt)
    return (math.sin(elevation) * math.cos(beta)
            + math.cos(elevation) * math.sin(beta)
            * math.cos(math.radians(position.azimuth - panel_azimuth)))


def monthly_production(
    latitude: float,
    longitude: float,
    system_size_kw: float,
    tilt: Optional[float] = None,
    azimuth: Optional[float] = None,
    efficiency: float = DEFAULT_SYSTEM_EFFICIENCY,
    year: int = SIMULATION_YEAR,
    transmittance: float = 0.75,
    cloud_cover: float = 0.2,
) -> List[float]:
    r"""Simulate monthly energy by hourly integration of clear-sky irradiance.

    Every day of ``year`` is sampled at local solar hours 6 through 18;
    each daylight sample contributes one hour of output.

    Formula:
        E_m = \sum_{d \in m} \sum_{h=6}^{18}
              \frac{G_{h} \max(0, \cos\theta_h)}{1000} \cdot P_{kW} \cdot \eta

    Args:
        latitude: Site latitude (degrees).
        longitude: Site longitude (degrees); sets local solar time.
        system_size_kw: DC nameplate size.
        tilt: Panel tilt; None uses |latitude|.
        azimuth: Panel azimuth; None faces the equator (180 north of it, 0 south).
        efficiency: Combined system efficiency (0-1).
        year: Calendar year to simulate.
        transmittance: Atmospheric transmittance for the irradiance model.
        cloud_cover: Cloud cover fraction for the irradiance model.

    Returns:
        12 monthly energies in kWh, Jan-Dec.
    """
    if tilt is None:
        tilt = abs(latitude)
    if azimuth is None:
        azimuth = optimal_azimuth(latitude)
    solar_offset = timedelta(hours=longitude / 15)

    monthly = [0.0] * 12
    if system_size_kw <= 0:
        return monthly

    for month in range(1, 13):
        days = calendar.monthrange(year, month)[1]
        for day in range(1, days + 1):
            midnight = datetime(year, month, day) - solar_offset
            for hour in range(FIRST_HOUR, LAST_HOUR + 1):
                position = solar_position(latitude, longitude, midnight + timedelta(hours=hour))
                if position.elevation <= 0:
                    continue
                global_irradiance = irradiance(position, transmittance, cloud_cover).global_irradiance
                cos_theta = max(0.0, incidence_cosine(position, tilt, azimuth))
                monthly[month - 1] += global_irradiance * cos_theta / 1000 * system_size_kw * efficiency

    log.debug("Hourly simulation at (%.3f, %.3f): %.0f kWh/yr", latitude, longitude, sum(monthly))
    return monthly


def seasonal_monthly_production(
    annual_production_kwh: float,
    seasonal_curve: Sequence[float] = DEFAULT_SEASONAL_CURVE,
) -> List[float]:
    """Distribute an annual total over months with a multiplier curve.

    Each month receives ``weight / sum(weights)`` of the annual total, so
    the 12 months always sum to it.

    Args:
        annual_production_kwh: Annual energy (kWh).
        seasonal_curve: 12 relative monthly weights, Jan-Dec.

    Returns:
        12 monthly energies in kWh.

    Raises:
        ValueError: If the curve does not have 12 entries.
    """
    weights = np.asarray(seasonal_curve, dtype=float)
    if weights.shape != (12,):
        raise ValueError(f"seasonal_curve must have 12 entries, got {weights.size}")
    annual = max(0.0, annual_production_kwh)
    total = weights.sum()
    if total <= 0:
        return [annual / 12] * 12
    return [float(v) for v in annual * weights / total]


def annual_production_from_sun_hours(
    system_size_kw: float,
    peak_sun_hours: float,
    performance_ratio: float,
) -> float:
    """Closed-form annual energy: size x peak sun hours x 365 x PR."""
    return max(0.0, system_size_kw * peak_sun_hours * 365 * performance_ratio)


def estimate_monthly_production(
    model: ProductionModel,
    latitude: float,
    longitude: float,
    system_size_kw: float,
    peak_sun_hours: float = 4.5,
    performance_ratio: float = DEFAULT_PERFORMANCE_RATIO,
    tilt: Optional[float] = None,
    azimuth: Optional[float] = None,
    efficiency: float = DEFAULT_SYSTEM_EFFICIENCY,
    seasonal_curve: Sequence[float] = DEFAULT_SEASONAL_CURVE,
) -> List[float]:
    """Estimate monthly production with the named model.

    The hourly model uses the site geometry and ``efficiency``; the
    seasonal model uses ``peak_sun_hours`` and ``performance_ratio``.
    """
    model = ProductionModel(model)
    if model is ProductionModel.HOURLY_SIMULATION:
        return monthly_production(latitude, longitude, system_size_kw, tilt, azimuth, efficiency)
    annual = annual_production_from_sun_hours(system_size_kw, peak_sun_hours, performance_ratio)
    return seasonal_monthly_production(annual, seasonal_curve)


def perform_solar_analysis(
    latitude: float,
    longitude: float,
    system_size_kw: float,
    timestamp: datetime,
    elevation_grid=None,
    grid_resolution: float = 30.0,
    tilt: Optional[float] = None,
    azimuth: Optional[float] = None,
    efficiency: float = DEFAULT_SYSTEM_EFFICIENCY,
    transmittance: float = 0.75,
    cloud_cover: float = 0.2,
) -> SolarAnalysisResult:
    """Snapshot sun position, irradiance, terrain and simulated production.

    Terrain shading derates the system efficiency before the hourly
    simulation runs. Without a grid the flat-terrain defaults apply.

    Args:
        latitude: Site latitude.
        longitude: Site longitude.
        system_size_kw: DC nameplate size.
        timestamp: Instant for the position/irradiance snapshot.
        elevation_grid: Optional elevation raster centred on the site.
        grid_resolution: Raster cell size in meters.
        tilt: Panel tilt; None uses |latitude|.
        azimuth: Panel azimuth; None faces the equator.
        efficiency: System efficiency before terrain shading.
        transmittance: Atmospheric transmittance.
        cloud_cover: Cloud cover fraction.

    Returns:
        SolarAnalysisResult with peak sun hours = annual / (size x 365).
    """
    position = solar_position(latitude, longitude, timestamp)
    current = irradiance(position, transmittance, cloud_cover)
    if elevation_grid is None:
        terrain = FLAT_TERRAIN
    else:
        terrain = analyze_terrain_effects(elevation_grid, latitude, longitude, grid_resolution)

    monthly = monthly_production(
        latitude, longitude, system_size_kw, tilt, azimuth,
        efficiency * terrain.shading_factor,
        transmittance=transmittance, cloud_cover=cloud_cover,
    )
    annual = sum(monthly)
    peak_sun_hours = annual / (system_size_kw * 365) if system_size_kw > 0 else 0.0

    return SolarAnalysisResult(
        position=position,
        irradiance=current,
        terrain=terrain,
        monthly_production=monthly,
        annual_production_kwh=annual,
        peak_sun_hours=peak_sun_hours,
        optimal_tilt=optimal_tilt(latitude),
    )
