"""Static equipment, location and derate catalogs for Solar Estimator.

Every categorical input (panel type, inverter type, shading level, roof
orientation, ...) is a ``str`` Enum whose ``_missing_`` hook resolves
unknown keys to a documented default member. Lookup tables are exposed
as read-only ``MappingProxyType`` maps keyed by those enums.

Sources:
    Panel tiers: manufacturer datasheets (Silfab SIL-440 BK, REC Alpha,
    Q.CELLS Q.PEAK DUO) and LBNL Tracking the Sun (2024) installed prices.
    State peak sun hours: NREL NSRDB PVWatts annual averages.
    State electricity rates: EIA Electric Power Monthly, residential
    average retail price (2024).
"""

import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

log = logging.getLogger(__name__)


def _normalize_key(value) -> str:
    return str(value).strip().lower().replace("-", "_").replace(" ", "_")


class _LenientEnum(str, Enum):
    """String enum that maps unknown values to a default member.

    Subclasses name their fallback in ``_default_name()``; lookups are
    case-insensitive and treat hyphens and spaces as underscores.
    """

    @classmethod
    def _missing_(cls, value):
        key = _normalize_key(value)
        for member in cls:
            if member.value == key:
                return member
        default = cls[cls._default_name()]
        log.warning("Unknown %s %r, using default %r", cls.__name__, value, default.value)
        return default

    @classmethod
    def _default_name(cls) -> str:
        raise NotImplementedError

    @classmethod
    def parse(cls, value: Optional[object]):
        """Resolve a raw value (member, string or None) to a member."""
        if value is None or value == "":
            return cls[cls._default_name()]
        if isinstance(value, cls):
            return value
        return cls(value)


class PanelType(_LenientEnum):
    PREMIUM = "premium"
    STANDARD = "standard"
    BUDGET = "budget"
    AESTHETIC = "aesthetic"
    MONOCRYSTALLINE = "monocrystalline"
    POLYCRYSTALLINE = "polycrystalline"
    THIN_FILM = "thin_film"

    @classmethod
    def _default_name(cls) -> str:
        return "STANDARD"


class InverterType(_LenientEnum):
    STRING = "string"
    POWER_OPTIMIZER = "power_optimizer"
    MICROINVERTER = "microinverter"

    @classmethod
    def _default_name(cls) -> str:
        return "STRING"


class MountingType(_LenientEnum):
    ROOF_MOUNT = "roof_mount"
    GROUND_MOUNT = "ground_mount"
    TRACKING = "tracking"

    @classmethod
    def _default_name(cls) -> str:
        return "ROOF_MOUNT"


class RoofType(_LenientEnum):
    ASPHALT_SHINGLE = "asphalt_shingle"
    TILE = "tile"
    METAL = "metal"
    FLAT = "flat"
    SLATE = "slate"
    WOOD = "wood"
    OTHER = "other"

    @classmethod
    def _default_name(cls) -> str:
        return "OTHER"


class RoofCondition(_LenientEnum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    NEEDS_REPLACEMENT = "needs_replacement"

    @classmethod
    def _default_name(cls) -> str:
        return "GOOD"


class ShadingLevel(_LenientEnum):
    NONE = "none"
    MINIMAL = "minimal"
    MODERATE = "moderate"
    SIGNIFICANT = "significant"
    HEAVY = "heavy"

    @classmethod
    def _default_name(cls) -> str:
        return "MODERATE"


class RoofOrientation(_LenientEnum):
    SOUTH = "south"
    SOUTHWEST = "southwest"
    SOUTHEAST = "southeast"
    WEST = "west"
    EAST = "east"
    NORTH = "north"
    OTHER = "other"

    @classmethod
    def _default_name(cls) -> str:
        return "OTHER"


class FinancingKind(_LenientEnum):
    CASH = "cash"
    LOAN = "loan"
    LEASE = "lease"
    PPA = "ppa"

    @classmethod
    def _default_name(cls) -> str:
        return "CASH"


@dataclass(frozen=True)
class PanelSpec:
    """Module datasheet values used for sizing and pricing.

    Attributes:
        model: Representative product name.
        wattage: STC nameplate rating (W).
        efficiency: Module efficiency as decimal.
        cost_per_watt: Installed price ($/W) before incentives.
        degradation_rate: Annual output loss as decimal.
        warranty_years: Product/performance warranty.
        area_sqft: Roof area consumed per module including spacing.
    """

    model: str
    wattage: float
    efficiency: float
    cost_per_watt: float
    degradation_rate: float
    warranty_years: int
    area_sqft: float = 20.0


@dataclass(frozen=True)
class InverterSpec:
    model: str
    efficiency: float
    reliability: float
    cost_multiplier: float
    warranty_years: int


@dataclass(frozen=True)
class MountingSpec:
    production_factor: float
    cost_multiplier: float


@dataclass(frozen=True)
class StateSolarData:
    """Per-state solar resource and retail rate used by the basic calculator."""

    name: str
    peak_sun_hours: float
    electricity_rate: float
    latitude: float


@dataclass(frozen=True)
class LocationProfile:
    """Regional resource and pricing used by the pro calculator."""

    peak_sun_hours: float
    cost_per_watt: float
    electricity_rate: float


PANEL_CATALOG: Mapping[PanelType, PanelSpec] = MappingProxyType({
    PanelType.PREMIUM: PanelSpec("Silfab SIL-440 BK", 440, 0.225, 3.55, 0.003, 25),
    PanelType.STANDARD: PanelSpec("Q.CELLS Q.PEAK DUO 400", 400, 0.205, 3.20, 0.005, 25),
    PanelType.BUDGET: PanelSpec("Generic Tier-2 Mono 370", 370, 0.19, 2.85, 0.006, 12),
    PanelType.AESTHETIC: PanelSpec("REC Alpha Pure Black 410", 410, 0.215, 3.40, 0.004, 25),
    PanelType.MONOCRYSTALLINE: PanelSpec("Monocrystalline 450", 450, 0.22, 4.20, 0.004, 25),
    PanelType.POLYCRYSTALLINE: PanelSpec("Polycrystalline 350", 350, 0.18, 3.50, 0.005, 25),
    PanelType.THIN_FILM: PanelSpec("Thin Film 300", 300, 0.12, 2.80, 0.006, 20, area_sqft=25.0),
})

INVERTER_CATALOG: Mapping[InverterType, InverterSpec] = MappingProxyType({
    InverterType.STRING: InverterSpec("SolarEdge SE7600H", 0.96, 0.97, 1.0, 12),
    InverterType.POWER_OPTIMIZER: InverterSpec("SolarEdge HD-Wave + P401", 0.98, 0.98, 1.15, 25),
    InverterType.MICROINVERTER: InverterSpec("Enphase IQ8+ MC", 0.975, 0.99, 1.3, 25),
})

MOUNTING_CATALOG: Mapping[MountingType, MountingSpec] = MappingProxyType({
    MountingType.ROOF_MOUNT: MountingSpec(1.0, 1.0),
    MountingType.GROUND_MOUNT: MountingSpec(1.05, 1.1),
    MountingType.TRACKING: MountingSpec(1.25, 1.4),
})

ORIENTATION_FACTORS: Mapping[RoofOrientation, float] = MappingProxyType({
    RoofOrientation.SOUTH: 1.0,
    RoofOrientation.SOUTHWEST: 0.95,
    RoofOrientation.SOUTHEAST: 0.95,
    RoofOrientation.WEST: 0.88,
    RoofOrientation.EAST: 0.88,
    RoofOrientation.NORTH: 0.68,
    RoofOrientation.OTHER: 0.9,
})

# Percent production loss per qualitative shading level
SHADING_LEVEL_LOSS: Mapping[ShadingLevel, float] = MappingProxyType({
    ShadingLevel.NONE: 0.0,
    ShadingLevel.MINIMAL: 5.0,
    ShadingLevel.MODERATE: 15.0,
    ShadingLevel.SIGNIFICANT: 25.0,
    ShadingLevel.HEAVY: 30.0,
})

# Percent production loss per obstruction tag
OBSTRUCTION_LOSS: Mapping[str, float] = MappingProxyType({
    "trees": 10.0,
    "chimneys": 3.0,
    "dormers": 5.0,
    "nearby_buildings": 12.0,
    "power_lines": 2.0,
})
MAX_OBSTRUCTION_LOSS = 30.0

LOCATION_PROFILES: Mapping[str, LocationProfile] = MappingProxyType({
    "california": LocationProfile(5.5, 3.2, 0.27),
    "texas": LocationProfile(5.0, 3.4, 0.15),
    "florida": LocationProfile(4.8, 3.3, 0.15),
    "arizona": LocationProfile(6.0, 3.1, 0.14),
    "nevada": LocationProfile(5.8, 3.2, 0.13),
    "other": LocationProfile(4.2, 3.5, 0.16),
})
DEFAULT_LOCATION = "other"

STATE_SOLAR_DATA: Mapping[str, StateSolarData] = MappingProxyType({
    "AL": StateSolarData("Alabama", 4.9, 0.15, 32.8),
    "AK": StateSolarData("Alaska", 2.9, 0.24, 61.4),
    "AZ": StateSolarData("Arizona", 6.6, 0.14, 34.2),
    "AR": StateSolarData("Arkansas", 4.8, 0.12, 34.9),
    "CA": StateSolarData("California", 5.8, 0.30, 36.8),
    "CO": StateSolarData("Colorado", 5.5, 0.15, 39.1),
    "CT": StateSolarData("Connecticut", 4.2, 0.29, 41.6),
    "DE": StateSolarData("Delaware", 4.5, 0.16, 39.0),
    "DC": StateSolarData("District of Columbia", 4.4, 0.17, 38.9),
    "FL": StateSolarData("Florida", 5.3, 0.15, 27.8),
    "GA": StateSolarData("Georgia", 5.0, 0.14, 32.7),
    "HI": StateSolarData("Hawaii", 5.7, 0.42, 20.8),
    "ID": StateSolarData("Idaho", 4.9, 0.11, 44.1),
    "IL": StateSolarData("Illinois", 4.3, 0.16, 40.0),
    "IN": StateSolarData("Indiana", 4.3, 0.15, 39.9),
    "IA": StateSolarData("Iowa", 4.5, 0.14, 42.0),
    "KS": StateSolarData("Kansas", 5.2, 0.14, 38.5),
    "KY": StateSolarData("Kentucky", 4.4, 0.13, 37.7),
    "LA": StateSolarData("Louisiana", 4.9, 0.12, 31.1),
    "ME": StateSolarData("Maine", 4.2, 0.27, 45.3),
    "MD": StateSolarData("Maryland", 4.5, 0.17, 39.0),
    "MA": StateSolarData("Massachusetts", 4.3, 0.30, 42.4),
    "MI": StateSolarData("Michigan", 4.0, 0.19, 44.3),
    "MN": StateSolarData("Minnesota", 4.4, 0.15, 46.7),
    "MS": StateSolarData("Mississippi", 4.8, 0.13, 32.7),
    "MO": StateSolarData("Missouri", 4.6, 0.13, 38.5),
    "MT": StateSolarData("Montana", 4.6, 0.13, 46.9),
    "NE": StateSolarData("Nebraska", 4.9, 0.12, 41.1),
    "NV": StateSolarData("Nevada", 6.4, 0.14, 38.3),
    "NH": StateSolarData("New Hampshire", 4.2, 0.25, 43.2),
    "NJ": StateSolarData("New Jersey", 4.4, 0.19, 40.1),
    "NM": StateSolarData("New Mexico", 6.3, 0.15, 34.5),
    "NY": StateSolarData("New York", 4.1, 0.23, 42.9),
    "NC": StateSolarData("North Carolina", 4.8, 0.14, 35.6),
    "ND": StateSolarData("North Dakota", 4.5, 0.12, 47.5),
    "OH": StateSolarData("Ohio", 4.1, 0.16, 40.4),
    "OK": StateSolarData("Oklahoma", 5.3, 0.13, 35.6),
    "OR": StateSolarData("Oregon", 4.3, 0.13, 43.8),
    "PA": StateSolarData("Pennsylvania", 4.2, 0.18, 41.2),
    "RI": StateSolarData("Rhode Island", 4.3, 0.31, 41.6),
    "SC": StateSolarData("South Carolina", 5.0, 0.14, 33.8),
    "SD": StateSolarData("South Dakota", 4.8, 0.13, 43.9),
    "TN": StateSolarData("Tennessee", 4.6, 0.13, 35.5),
    "TX": StateSolarData("Texas", 5.4, 0.15, 31.0),
    "UT": StateSolarData("Utah", 5.9, 0.12, 39.3),
    "VT": StateSolarData("Vermont", 4.1, 0.22, 44.6),
    "VA": StateSolarData("Virginia", 4.6, 0.15, 37.4),
    "WA": StateSolarData("Washington", 3.8, 0.12, 47.4),
    "WV": StateSolarData("West Virginia", 4.2, 0.15, 38.6),
    "WI": StateSolarData("Wisconsin", 4.3, 0.18, 44.3),
    "WY": StateSolarData("Wyoming", 5.2, 0.12, 43.0),
})

# Reference month multipliers, Jan-Dec. They sum to 12.4, and production
# divides by that sum, so a month gets 12/12.4 of annual/12 x multiplier.
DEFAULT_SEASONAL_CURVE: Tuple[float, ...] = (
    0.7, 0.8, 1.0, 1.2, 1.3, 1.4, 1.4, 1.3, 1.1, 0.9, 0.7, 0.6,
)


def get_panel_spec(panel_type) -> PanelSpec:
    """Return the catalog entry for a panel type (unknown → STANDARD)."""
    return PANEL_CATALOG[PanelType.parse(panel_type)]


def get_inverter_spec(inverter_type) -> InverterSpec:
    """Return the catalog entry for an inverter type (unknown → STRING)."""
    return INVERTER_CATALOG[InverterType.parse(inverter_type)]


def get_mounting_spec(mounting_type) -> MountingSpec:
    return MOUNTING_CATALOG[MountingType.parse(mounting_type)]


def get_orientation_factor(orientation) -> float:
    return ORIENTATION_FACTORS[RoofOrientation.parse(orientation)]


def get_location_profile(location: Optional[str]) -> LocationProfile:
    """Return the regional profile for a location name.

    Unknown or empty names resolve to the ``"other"`` profile.
    """
    key = _normalize_key(location or "")
    if key not in LOCATION_PROFILES:
        log.warning("Unknown location %r, using %r profile", location, DEFAULT_LOCATION)
        key = DEFAULT_LOCATION
    return LOCATION_PROFILES[key]


def find_state(code: Optional[str]) -> Optional[StateSolarData]:
    """Look up a two-letter state code; returns None when unrecognized."""
    if not code:
        return None
    return STATE_SOLAR_DATA.get(str(code).strip().upper())
