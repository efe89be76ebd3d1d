"""Terrain and shading derates.

Two shading models are provided:

* Grid-based: slope, aspect and sky-view factor from an elevation raster
  centred on the site.
* Tag-based: fixed percentage penalties per obstruction tag, used when no
  raster is available.

``select_shading_factor`` documents which model applies to a roof.
Directional and tilt derates are also defined here since both depend on
roof geometry relative to the sun's path.
"""

import logging
import math
from typing import Iterable, Optional, Sequence, Tuple

import numpy as np

from solar_estimator.data.catalogs import (
    MAX_OBSTRUCTION_LOSS,
    OBSTRUCTION_LOSS,
    SHADING_LEVEL_LOSS,
    ShadingLevel,
)
from solar_estimator.models.inputs import Obstruction, RoofSpec, SiteLocation
from solar_estimator.models.results import TerrainAnalysis

log = logging.getLogger(__name__)

# Returned when no usable raster is supplied
FLAT_TERRAIN = TerrainAnalysis(slope=0.0, aspect=180.0, shading_factor=0.95, sky_view_factor=1.0)

MIN_SHADING_FACTOR = 0.1
MIN_TILT_FACTOR = 0.8
MAX_OPTIMAL_TILT = 60.0
MAX_OBJECT_SHADING_LOSS = 0.5
WINTER_SOLSTICE_DECLINATION = 23.5


def _usable_grid(elevation_grid) -> Optional[np.ndarray]:
    if elevation_grid is None:
        return None
    grid = np.asarray(elevation_grid, dtype=float)
    if grid.ndim != 2 or min(grid.shape) < 3:
        log.warning("Elevation grid with shape %s is too small, need at least 3x3", grid.shape)
        return None
    return grid


def _sky_view_factor(grid: np.ndarray, row: int, col: int, resolution: float) -> float:
    """Ray-march 8 compass directions and subtract the blocked sky."""
    rows, cols = grid.shape
    max_distance = min(rows, cols) / 4
    centre = grid[row, col]
    svf = 1.0
    for direction in range(8):
        angle = math.radians(direction * 45)
        dx, dy = math.cos(angle), math.sin(angle)
        horizon = 0.0
        distance = 1
        while distance < max_distance:
            r = int(round(row + dy * distance))
            c = int(round(col + dx * distance))
            if 0 <= r < rows and 0 <= c < cols:
                rise = grid[r, c] - centre
                horizon = max(horizon, math.degrees(math.atan(rise / (distance * resolution))))
            distance += 1
        svf -= horizon / 90 / 8
    return svf


def analyze_terrain_effects(
    elevation_grid,
    latitude: float,
    longitude: float,
    resolution: float = 30.0,
) -> TerrainAnalysis:
    r"""Derive slope, aspect, sky-view and shading from an elevation raster.

    Formula:
        \frac{\partial z}{\partial x} = \frac{z_{r,c+1} - z_{r,c-1}}{2d}, \quad
        \frac{\partial z}{\partial y} = \frac{z_{r+1,c} - z_{r-1,c}}{2d}

        slope = \arctan\sqrt{z_x^2 + z_y^2}, \quad
        aspect = \operatorname{atan2}(z_y, -z_x)

        SVF = 1 - \sum_{k=1}^{8} \frac{\theta_k}{90 \cdot 8}

        shading = \max(0.1, SVF (1 - slope/90))

    Args:
        elevation_grid: 2-D elevations in meters; the site is the centre cell.
        latitude: Site latitude (degrees) of the raster centre.
        longitude: Site longitude (degrees) of the raster centre.
        resolution: Cell size in meters.

    Returns:
        TerrainAnalysis. Grids smaller than 3x3 return FLAT_TERRAIN.
    """
    grid = _usable_grid(elevation_grid)
    if grid is None:
        return FLAT_TERRAIN

    rows, cols = grid.shape
    row, col = rows // 2, cols // 2
    dzdx = (grid[row, col + 1] - grid[row, col - 1]) / (2 * resolution)
    dzdy = (grid[row + 1, col] - grid[row - 1, col]) / (2 * resolution)

    slope = math.degrees(math.atan(math.hypot(dzdx, dzdy)))
    aspect = math.degrees(math.atan2(dzdy, -dzdx))
    if aspect < 0:
        aspect += 360

    svf = _sky_view_factor(grid, row, col, resolution)
    shading = max(MIN_SHADING_FACTOR, svf * (1 - slope / 90))
    log.debug("Terrain at (%.4f, %.4f): slope=%.2f aspect=%.1f svf=%.3f",
              latitude, longitude, slope, aspect, svf)
    return TerrainAnalysis(
        slope=slope,
        aspect=aspect,
        shading_factor=shading,
        sky_view_factor=max(0.0, svf),
    )


def obstruction_shading_loss(obstructions: Iterable[str]) -> float:
    """Percent shading loss from obstruction tags, capped at 30%.

    Unknown tags contribute nothing.
    """
    loss = 0.0
    for tag in obstructions:
        penalty = OBSTRUCTION_LOSS.get(tag)
        if penalty is None:
            log.debug("Ignoring unknown obstruction tag %r", tag)
            continue
        loss += penalty
    return min(loss, MAX_OBSTRUCTION_LOSS)


def shading_level_loss(level) -> float:
    """Percent loss for a qualitative shading level (unknown → moderate)."""
    return SHADING_LEVEL_LOSS[ShadingLevel.parse(level)]


def directional_loss(azimuth: float) -> float:
    """Percent loss from deviation of the array azimuth from true south.

    Args:
        azimuth: Array azimuth in degrees (180 = south).

    Returns:
        0, 5, 15 or 30 for deviations up to 20, 45, 90 or beyond.
    """
    deviation = abs(azimuth % 360 - 180)
    if deviation <= 20:
        return 0.0
    if deviation <= 45:
        return 5.0
    if deviation <= 90:
        return 15.0
    return 30.0


def optimal_tilt(latitude: float) -> float:
    """Fixed-tilt angle that maximizes annual yield, about |latitude|."""
    return max(0.0, min(MAX_OPTIMAL_TILT, abs(latitude)))


def optimal_azimuth(latitude: float) -> float:
    """Equator-facing azimuth: south in the north, north in the south."""
    return 180.0 if latitude >= 0 else 0.0


def tilt_factor(tilt: Optional[float], latitude: float) -> float:
    r"""Production multiplier for tilting away from the optimal angle.

    Formula:
        f = \max(0.8, 1 - \frac{(\beta - \beta_{opt})^2}{18000})

    A 30 degree error costs 5%, 45 degrees about 11%, and the floor of
    0.8 is reached at 60 degrees. ``tilt=None`` means optimal.
    """
    if tilt is None:
        return 1.0
    delta = tilt - optimal_tilt(latitude)
    return max(MIN_TILT_FACTOR, 1 - delta ** 2 / 18000)


def tilt_orientation_factor(tilt: Optional[float], azimuth: float, latitude: float) -> float:
    return tilt_factor(tilt, latitude) * (1 - directional_loss(azimuth) / 100)


def shading_loss_from_objects(objects: Sequence[Obstruction], latitude: float) -> float:
    r"""Fractional loss from measured nearby objects.

    Each object is compared with the winter-solstice noon sun angle
    (90 - |lat| - 23.5). An object whose top subtends more than that
    angle blocks fully; lower objects block proportionally. Objects are
    weighted by how close they sit to the equator-facing direction and
    each contributes at most 10%.

    Formula:
        loss = \min\left(0.5, \sum_i 0.1 \, f_i \, \max(0, 1 - |az_i - az_{opt}|/90)\right)

    Args:
        objects: Measured obstructions.
        latitude: Site latitude.

    Returns:
        Loss fraction in [0, 0.5].
    """
    winter_sun = 90 - abs(latitude) - WINTER_SOLSTICE_DECLINATION
    facing = optimal_azimuth(latitude)
    loss = 0.0
    for obj in objects:
        if obj.height_m <= 0:
            continue
        if obj.distance_m <= 0:
            shadow_angle = 90.0
        else:
            shadow_angle = math.degrees(math.atan(obj.height_m / obj.distance_m))
        deviation = abs((obj.azimuth - facing + 180) % 360 - 180)
        azimuth_weight = max(0.0, 1 - deviation / 90)
        if winter_sun <= 0 or shadow_angle > winter_sun:
            blocking = 1.0
        else:
            blocking = shadow_angle / winter_sun
        loss += blocking * azimuth_weight * 0.1
    return min(MAX_OBJECT_SHADING_LOSS, loss)


def select_shading_factor(roof: RoofSpec, location: SiteLocation) -> Tuple[float, str]:
    """Choose and evaluate the shading model for a roof.

    Selection rule:
        1. A usable elevation grid (>= 3x3) applies the grid model.
        2. Obstruction tags apply the tag model.
        3. When both are present the factors multiply, since terrain
           horizon and rooftop obstructions block different sky.
        4. With neither, a qualitative shading level applies if given.
        5. Otherwise there is no shading loss.

    Returns:
        (shading_factor, model_name) where model_name is one of
        "grid", "tags", "grid+tags", "level" or "none".
    """
    factor = 1.0
    models = []

    if _usable_grid(roof.elevation_grid) is not None:
        terrain = analyze_terrain_effects(
            roof.elevation_grid, location.latitude, location.longitude, roof.grid_resolution_m,
        )
        factor *= terrain.shading_factor
        models.append("grid")

    if roof.obstructions:
        factor *= 1 - obstruction_shading_loss(roof.obstructions) / 100
        models.append("tags")

    if not models and roof.shading_level is not None:
        factor = 1 - shading_level_loss(roof.shading_level) / 100
        models.append("level")

    return factor, "+".join(models) or "none"
