"""Astronomical sun position for a site and instant.

Low-precision almanac algorithm (about 0.01 degree in declination) based
on the Julian day, the sun's mean longitude and anomaly, the equation of
centre and Greenwich Mean Sidereal Time.

Source:
    U.S. Naval Observatory. Approximate Solar Coordinates.
    Meeus, J. (1998). Astronomical Algorithms (2nd ed.). Willmann-Bell.
    Chapters 7, 12, 13 and 25.
"""

import logging
import math
from datetime import datetime, timezone

from solar_estimator.models.results import SolarPosition

log = logging.getLogger(__name__)

J2000 = 2451545.0
OBLIQUITY_DEG = 23.439


def julian_day(timestamp: datetime) -> float:
    r"""Convert a datetime to a Julian day number with day fraction.

    Naive datetimes are read as UTC; aware datetimes are converted to UTC.

    Formula:
        a = \lfloor (14 - month) / 12 \rfloor, \; y = year - a, \;
        m = month + 12a - 3

        JD = day + \lfloor (153m + 2)/5 \rfloor + 365y + \lfloor y/4 \rfloor
             - \lfloor y/100 \rfloor + \lfloor y/400 \rfloor - 32045
             + \frac{hour - 12}{24}

    Args:
        timestamp: Instant to convert.

    Returns:
        Julian day (e.g., 2451545.0 at 2000-01-01 12:00 UTC).
    """
    if timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone(timezone.utc)
    a = (14 - timestamp.month) // 12
    y = timestamp.year + 4800 - a
    m = timestamp.month + 12 * a - 3
    day_number = (timestamp.day + (153 * m + 2) // 5 + 365 * y
                  + y // 4 - y // 100 + y // 400 - 32045)
    hours = timestamp.hour + timestamp.minute / 60 + timestamp.second / 3600
    return day_number + (hours - 12) / 24


def solar_position(latitude: float, longitude: float, timestamp: datetime) -> SolarPosition:
    r"""Compute sun azimuth, elevation and zenith.

    Formula:
        n = JD - 2451545.0

        L = 280.46 + 0.9856474 n, \quad g = 357.528 + 0.9856003 n

        \lambda = L + 1.915 \sin g + 0.020 \sin 2g

        \delta = \arcsin(\sin\epsilon \sin\lambda), \quad
        \alpha = \operatorname{atan2}(\cos\epsilon \sin\lambda, \cos\lambda)

        GMST = 18.697374558 + 24.06570982441908 n \; (hours)

        H = 15 (GMST + lon/15) - \alpha

        \sin h = \sin\phi \sin\delta + \cos\phi \cos\delta \cos H

    The hour angle is local sidereal time minus the sun's right
    ascension, not the ``(LMST - 12) x 15`` sidereal-noon shortcut. The
    shortcut drifts by the sun's right ascension through the year and
    misplaces solar noon; this form puts it on the meridian.

    Args:
        latitude: Degrees north.
        longitude: Degrees east.
        timestamp: Instant (naive = UTC).

    Returns:
        SolarPosition with azimuth in [0, 360), elevation in [-90, 90]
        and zenith = 90 - elevation. Never raises for finite inputs,
        including polar latitudes.
    """
    n = julian_day(timestamp) - J2000

    mean_longitude = (280.46 + 0.9856474 * n) % 360
    mean_anomaly = math.radians((357.528 + 0.9856003 * n) % 360)
    ecliptic_longitude = math.radians(
        mean_longitude
        + 1.915 * math.sin(mean_anomaly)
        + 0.020 * math.sin(2 * mean_anomaly)
    )
    obliquity = math.radians(OBLIQUITY_DEG)

    declination = math.asin(math.sin(obliquity) * math.sin(ecliptic_longitude))
    right_ascension = math.atan2(
        math.cos(obliquity) * math.sin(ecliptic_longitude),
        math.cos(ecliptic_longitude),
    )

    gmst_hours = (18.697374558 + 24.06570982441908 * n) % 24
    local_sidereal_deg = ((gmst_hours + longitude / 15) % 24) * 15
    hour_angle = math.radians(local_sidereal_deg) - right_ascension

    lat = math.radians(latitude)
    sin_elevation = (math.sin(lat) * math.sin(declination)
                     + math.cos(lat) * math.cos(declination) * math.cos(hour_angle))
    elevation = math.degrees(math.asin(max(-1.0, min(1.0, sin_elevation))))

    # Measured from south toward west, then rotated to north-based
    azimuth = math.degrees(math.atan2(
        math.sin(hour_angle),
        math.cos(hour_angle) * math.sin(lat) - math.tan(declination) * math.cos(lat),
    ))
    azimuth = (azimuth + 180) % 360
    if azimuth >= 360:
        azimuth = 0.0

    return SolarPosition(azimuth=azimuth, elevation=elevation, zenith=90 - elevation)
