"""Simplified clear-sky irradiance model."""

import math

from solar_estimator.models.results import SolarIrradiance, SolarPosition

SOLAR_CONSTANT = 1367.0  # W/m²
DIFFUSE_FRACTION = 0.1


def irradiance(
    position: SolarPosition,
    transmittance: float = 0.75,
    cloud_cover: float = 0.2,
) -> SolarIrradiance:
    r"""Estimate direct, diffuse and global horizontal irradiance.

    Formula:
        AM = \frac{1}{\sin h}

        DNI = 1367 \cdot \tau^{AM} \cdot (1 - c)

        E_{dir} = DNI \sin h, \quad E_{dif} = 1367 \cdot 0.1 \cdot (1 + c) \sin h

        E_{glo} = E_{dir} + E_{dif}

    Args:
        position: Sun position; elevation <= 0 yields zero irradiance.
        transmittance: Atmospheric transmittance per air mass (0-1).
        cloud_cover: Fractional cloud cover (0-1).

    Returns:
        SolarIrradiance in W/m², every component >= 0.

    Source:
        Meinel, A. B., & Meinel, M. P. (1976). Applied Solar Energy.
        Addison-Wesley. Air-mass attenuation model.
    """
    if position.elevation <= 0:
        return SolarIrradiance(direct=0.0, diffuse=0.0, global_irradiance=0.0)

    sin_elevation = math.sin(math.radians(position.elevation))
    air_mass = 1 / sin_elevation
    normal = SOLAR_CONSTANT * transmittance ** air_mass * (1 - cloud_cover)

    direct = max(0.0, normal * sin_elevation)
    diffuse = max(0.0, SOLAR_CONSTANT * DIFFUSE_FRACTION * (1 + cloud_cover) * sin_elevation)
    return SolarIrradiance(direct=direct, diffuse=diffuse, global_irradiance=direct + diffuse)
