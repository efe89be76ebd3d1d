"""Input data models for Solar Estimator.

Defines immutable dataclasses describing the site, climate, roof, energy
usage, equipment and financial assumptions consumed by the sizing and
financial engines. All models support JSON-friendly snapshots via
to_dict()/from_dict().
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Optional, Sequence, Tuple, Union

from solar_estimator.data.catalogs import (
    DEFAULT_SEASONAL_CURVE,
    FinancingKind,
    InverterType,
    MountingType,
    PanelType,
    RoofCondition,
    RoofOrientation,
    RoofType,
    ShadingLevel,
)

# Annual kWh added by household loads
EV_ANNUAL_KWH = 3000.0
POOL_ANNUAL_KWH = 2500.0
HOT_TUB_ANNUAL_KWH = 1500.0

# (term years, APR) pairs quoted for solar loans
DEFAULT_LOAN_TERMS: Tuple[Tuple[int, float], ...] = (
    (10, 0.0599),
    (15, 0.0649),
    (20, 0.0699),
    (25, 0.0799),
)


def plain_value(value):
    """Convert enums, tuples and nested dataclasses to JSON-friendly values."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return [plain_value(v) for v in value]
    if hasattr(value, "to_dict"):
        return value.to_dict()
    return value


def _known_fields(cls, data: dict) -> dict:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in names}


class _DictMixin:
    def to_dict(self) -> dict:
        return {f.name: plain_value(getattr(self, f.name)) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: dict):
        return cls(**_known_fields(cls, dict(data)))


@dataclass(frozen=True)
class SiteLocation(_DictMixin):
    """Geographic site.

    Attributes:
        latitude: Degrees north (negative for southern hemisphere).
        longitude: Degrees east (negative for western hemisphere).
        elevation_m: Site elevation above sea level in meters.
    """

    latitude: float = 0.0
    longitude: float = 0.0
    elevation_m: float = 0.0

    def __post_init__(self):
        if not -90 <= self.latitude <= 90:
            raise ValueError(f"latitude must be -90 to 90, got {self.latitude}")
        if not -180 <= self.longitude <= 180:
            raise ValueError(f"longitude must be -180 to 180, got {self.longitude}")


@dataclass(frozen=True)
class ClimateProfile(_DictMixin):
    """Site climate summary supplied by an external weather source.

    Attributes:
        average_irradiance: Annual mean daily insolation (kWh/m²/day).
        monthly_irradiance: Optional 12 monthly means (kWh/m²/day).
        peak_sun_hours: Equivalent full-sun hours per day.
        temperature_correction_factor: Output multiplier for cell temperature.
        weather_adjustment_factor: Output multiplier for cloudiness/soiling.
        degradation_rate: Annual module degradation as decimal.
        seasonal_variation: 12 relative monthly production weights.
        climate_zone: Descriptive zone label (e.g., "Hot-Dry").
        solar_potential: Qualitative rating (Excellent, Good, Fair, Poor).
    """

    average_irradiance: float = 0.0
    monthly_irradiance: Tuple[float, ...] = ()
    peak_sun_hours: float = 4.5
    temperature_correction_factor: float = 1.0
    weather_adjustment_factor: float = 1.0
    degradation_rate: float = 0.005
    seasonal_variation: Tuple[float, ...] = DEFAULT_SEASONAL_CURVE
    climate_zone: str = ""
    solar_potential: str = ""

    def __post_init__(self):
        object.__setattr__(self, "monthly_irradiance", tuple(float(v) for v in self.monthly_irradiance))
        object.__setattr__(self, "seasonal_variation", tuple(float(v) for v in self.seasonal_variation))
        if len(self.monthly_irradiance) not in (0, 12):
            raise ValueError(
                f"monthly_irradiance must have 12 entries, got {len(self.monthly_irradiance)}"
            )
        if len(self.seasonal_variation) != 12:
            raise ValueError(
                f"seasonal_variation must have 12 entries, got {len(self.seasonal_variation)}"
            )
        if any(v < 0 for v in self.seasonal_variation):
            raise ValueError("seasonal_variation entries must be >= 0")
        if not 0 <= self.peak_sun_hours <= 12:
            raise ValueError(f"peak_sun_hours must be 0-12, got {self.peak_sun_hours}")
        if self.temperature_correction_factor <= 0:
            raise ValueError(
                f"temperature_correction_factor must be > 0, got {self.temperature_correction_factor}"
            )
        if self.weather_adjustment_factor <= 0:
            raise ValueError(
                f"weather_adjustment_factor must be > 0, got {self.weather_adjustment_factor}"
            )
        if not 0 <= self.degradation_rate <= 0.05:
            raise ValueError(f"degradation_rate must be 0-0.05, got {self.degradation_rate}")

    @property
    def irradiance_factor(self) -> float:
        return self.temperature_correction_factor * self.weather_adjustment_factor


@dataclass(frozen=True)
class Obstruction(_DictMixin):
    """A measured object near the array (tree, building, pole)."""

    height_m: float
    distance_m: float
    azimuth: float = 180.0


@dataclass(frozen=True)
class RoofSpec(_DictMixin):
    """Roof geometry, condition and shading context.

    Attributes:
        azimuth: Array azimuth in degrees clockwise from north (180 = south).
        tilt: Array tilt in degrees; None assumes the optimal (latitude) tilt.
        roof_type: Roofing material.
        roof_condition: Current condition; drives replacement warnings.
        obstructions: Obstruction tags (trees, chimneys, dormers,
            nearby_buildings, power_lines).
        shading_level: Optional qualitative shading level.
        elevation_grid: Optional square-ish elevation raster centred on the
            site (meters), used by the terrain model.
        grid_resolution_m: Raster cell size in meters.
        usable_area_sqft: Optional roof area available for modules.
    """

    azimuth: float = 180.0
    tilt: Optional[float] = None
    roof_type: RoofType = RoofType.ASPHALT_SHINGLE
    roof_condition: RoofCondition = RoofCondition.GOOD
    obstructions: Tuple[str, ...] = ()
    shading_level: Optional[ShadingLevel] = None
    elevation_grid: Optional[Tuple[Tuple[float, ...], ...]] = field(default=None, compare=False)
    grid_resolution_m: float = 30.0
    usable_area_sqft: Optional[float] = None

    def __post_init__(self):
        object.__setattr__(self, "roof_type", RoofType.parse(self.roof_type))
        object.__setattr__(self, "roof_condition", RoofCondition.parse(self.roof_condition))
        object.__setattr__(
            self, "obstructions",
            tuple(str(tag).strip().lower().replace(" ", "_") for tag in self.obstructions),
        )
        if self.shading_level is not None:
            object.__setattr__(self, "shading_level", ShadingLevel.parse(self.shading_level))
        if self.elevation_grid is not None:
            object.__setattr__(
                self, "elevation_grid",
                tuple(tuple(float(v) for v in row) for row in self.elevation_grid),
            )
        if not 0 <= self.azimuth <= 360:
            raise ValueError(f"azimuth must be 0-360, got {self.azimuth}")
        if self.tilt is not None and not 0 <= self.tilt <= 90:
            raise ValueError(f"tilt must be 0-90, got {self.tilt}")
        if self.grid_resolution_m <= 0:
            raise ValueError(f"grid_resolution_m must be > 0, got {self.grid_resolution_m}")
        if self.usable_area_sqft is not None and self.usable_area_sqft < 0:
            raise ValueError(f"usable_area_sqft must be >= 0, got {self.usable_area_sqft}")


@dataclass(frozen=True)
class EnergyProfile(_DictMixin):
    """Household electricity usage and tariff.

    Attributes:
        monthly_kwh_usage: Average monthly consumption (kWh).
        monthly_bill: Average monthly bill ($).
        electricity_rate: Retail energy rate ($/kWh).
        net_metering_rate: Optional export credit ($/kWh) for surplus energy.
        has_ev: Household charges an electric vehicle.
        has_pool: Household runs a pool pump.
        has_hot_tub: Household heats a hot tub.
    """

    monthly_kwh_usage: float = 0.0
    monthly_bill: float = 0.0
    electricity_rate: float = 0.15
    net_metering_rate: Optional[float] = None
    has_ev: bool = False
    has_pool: bool = False
    has_hot_tub: bool = False

    def __post_init__(self):
        if self.monthly_kwh_usage < 0:
            raise ValueError(f"monthly_kwh_usage must be >= 0, got {self.monthly_kwh_usage}")
        if self.monthly_bill < 0:
            raise ValueError(f"monthly_bill must be >= 0, got {self.monthly_bill}")
        if self.electricity_rate < 0:
            raise ValueError(f"electricity_rate must be >= 0, got {self.electricity_rate}")
        if self.net_metering_rate is not None and self.net_metering_rate < 0:
            raise ValueError(f"net_metering_rate must be >= 0, got {self.net_metering_rate}")

    def baseline_annual_usage(self) -> float:
        """Annual kWh from metered usage, or from bill/rate when usage is 0."""
        if self.monthly_kwh_usage > 0:
            return self.monthly_kwh_usage * 12
        if self.monthly_bill > 0 and self.electricity_rate > 0:
            return self.monthly_bill / self.electricity_rate * 12
        return 0.0

    def lifestyle_increment(self) -> float:
        extra = 0.0
        if self.has_ev:
            extra += EV_ANNUAL_KWH
        if self.has_pool:
            extra += POOL_ANNUAL_KWH
        if self.has_hot_tub:
            extra += HOT_TUB_ANNUAL_KWH
        return extra

    def annual_usage_kwh(self) -> float:
        return self.baseline_annual_usage() + self.lifestyle_increment()


@dataclass(frozen=True)
class EquipmentSelection(_DictMixin):
    """Selected module, inverter and optional battery.

    Attributes:
        panel_type: Module tier; unknown values resolve to STANDARD.
        inverter_type: Inverter topology; unknown values resolve to STRING.
        battery_capacity_kwh: Storage capacity, 0 for no battery.
        panel_wattage: Optional override of the catalog wattage.
    """

    panel_type: PanelType = PanelType.STANDARD
    inverter_type: InverterType = InverterType.MICROINVERTER
    battery_capacity_kwh: float = 0.0
    panel_wattage: Optional[float] = None

    def __post_init__(self):
        object.__setattr__(self, "panel_type", PanelType.parse(self.panel_type))
        object.__setattr__(self, "inverter_type", InverterType.parse(self.inverter_type))
        if self.battery_capacity_kwh < 0:
            raise ValueError(f"battery_capacity_kwh must be >= 0, got {self.battery_capacity_kwh}")
        if self.panel_wattage is not None and self.panel_wattage <= 0:
            raise ValueError(f"panel_wattage must be > 0, got {self.panel_wattage}")

    @property
    def has_battery(self) -> bool:
        return self.battery_capacity_kwh > 0


@dataclass(frozen=True)
class CostInputs(_DictMixin):
    """Financial assumptions for the projection engine.

    Attributes:
        electricity_rate: Flat retail rate ($/kWh).
        cost_per_watt: Installed PV price ($/W) before incentives.
        battery_cost: Flat battery price added to system cost ($).
        battery_capacity_kwh: Battery capacity; enables arbitrage and
            demand-charge benefits when > 0.
        degradation_rate: Annual production loss as decimal.
        rate_escalation: Annual utility rate increase as decimal.
        discount_rate: Discount rate for NPV as decimal.
        analysis_years: Projection horizon in years.
        peak_rate: Optional time-of-use on-peak rate ($/kWh).
        off_peak_rate: Optional time-of-use off-peak rate ($/kWh).
        peak_production_fraction: Share of production delivered on-peak.
        monthly_demand_charge: Monthly demand charge ($) before storage.
        annual_usage_kwh: Optional annual consumption; enables export pricing.
        net_metering_rate: Optional credit ($/kWh) for production above usage.
        loan_terms: (term years, APR) pairs to quote.
        down_payment: Cash paid up front on loans ($).
    """

    electricity_rate: float = 0.15
    cost_per_watt: float = 3.55
    battery_cost: float = 0.0
    battery_capacity_kwh: float = 0.0
    degradation_rate: float = 0.005
    rate_escalation: float = 0.03
    discount_rate: float = 0.06
    analysis_years: int = 25
    peak_rate: Optional[float] = None
    off_peak_rate: Optional[float] = None
    peak_production_fraction: float = 0.6
    monthly_demand_charge: float = 0.0
    annual_usage_kwh: Optional[float] = None
    net_metering_rate: Optional[float] = None
    loan_terms: Tuple[Tuple[int, float], ...] = DEFAULT_LOAN_TERMS
    down_payment: float = 0.0

    def __post_init__(self):
        object.__setattr__(
            self, "loan_terms",
            tuple((int(term), float(rate)) for term, rate in self.loan_terms),
        )
        if self.electricity_rate < 0:
            raise ValueError(f"electricity_rate must be >= 0, got {self.electricity_rate}")
        if self.cost_per_watt < 0:
            raise ValueError(f"cost_per_watt must be >= 0, got {self.cost_per_watt}")
        if self.battery_cost < 0:
            raise ValueError(f"battery_cost must be >= 0, got {self.battery_cost}")
        if self.battery_capacity_kwh < 0:
            raise ValueError(f"battery_capacity_kwh must be >= 0, got {self.battery_capacity_kwh}")
        if not 0 <= self.degradation_rate <= 0.05:
            raise ValueError(f"degradation_rate must be 0-0.05, got {self.degradation_rate}")
        if not -0.10 <= self.rate_escalation <= 0.20:
            raise ValueError(f"rate_escalation must be -0.10 to 0.20, got {self.rate_escalation}")
        if not 0 <= self.discount_rate < 1:
            raise ValueError(f"discount_rate must be between 0 and 1, got {self.discount_rate}")
        if not 1 <= self.analysis_years <= 40:
            raise ValueError(f"analysis_years must be 1-40, got {self.analysis_years}")
        if not 0 <= self.peak_production_fraction <= 1:
            raise ValueError(
                f"peak_production_fraction must be 0-1, got {self.peak_production_fraction}"
            )
        if self.monthly_demand_charge < 0:
            raise ValueError(f"monthly_demand_charge must be >= 0, got {self.monthly_demand_charge}")
        if self.down_payment < 0:
            raise ValueError(f"down_payment must be >= 0, got {self.down_payment}")
        for term, rate in self.loan_terms:
            if term <= 0 or rate < 0:
                raise ValueError(f"loan terms must have term > 0 and rate >= 0, got {(term, rate)}")

    @property
    def has_time_of_use(self) -> bool:
        return self.peak_rate is not None and self.off_peak_rate is not None

    @property
    def has_battery(self) -> bool:
        return self.battery_capacity_kwh > 0


@dataclass(frozen=True)
class SystemSizingInputs:
    """Everything the sizing engine needs for one property.

    Attributes:
        location: Site coordinates.
        energy: Usage and tariff.
        roof: Roof geometry and shading context.
        equipment: Module/inverter/battery selection.
        climate: Optional climate summary; None uses 4.5 peak sun hours.
        offset_goal: Percent of annual usage to offset (100 = full offset).
        cost_per_watt: Optional flat installed price; None prices the system
            from the itemized cost breakdown.
        costs: Financial assumptions. Rate, price, battery, degradation and
            usage fields are filled in from the sizing result.
        home_age_years: Age of the home, used for advisory warnings.
    """

    location: SiteLocation = field(default_factory=SiteLocation)
    energy: EnergyProfile = field(default_factory=EnergyProfile)
    roof: RoofSpec = field(default_factory=RoofSpec)
    equipment: EquipmentSelection = field(default_factory=EquipmentSelection)
    climate: Optional[ClimateProfile] = None
    offset_goal: float = 100.0
    cost_per_watt: Optional[float] = None
    costs: CostInputs = field(default_factory=CostInputs)
    home_age_years: float = 0.0

    def __post_init__(self):
        if not 0 <= self.offset_goal <= 200:
            raise ValueError(f"offset_goal must be 0-200, got {self.offset_goal}")
        if self.cost_per_watt is not None and self.cost_per_watt < 0:
            raise ValueError(f"cost_per_watt must be >= 0, got {self.cost_per_watt}")
        if self.home_age_years < 0:
            raise ValueError(f"home_age_years must be >= 0, got {self.home_age_years}")

    def to_dict(self) -> dict:
        return {
            "location": self.location.to_dict(),
            "energy": self.energy.to_dict(),
            "roof": self.roof.to_dict(),
            "equipment": self.equipment.to_dict(),
            "climate": self.climate.to_dict() if self.climate else None,
            "offset_goal": self.offset_goal,
            "cost_per_watt": self.cost_per_watt,
            "costs": self.costs.to_dict(),
            "home_age_years": self.home_age_years,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SystemSizingInputs":
        data = dict(data)
        climate = data.get("climate")
        return cls(
            location=SiteLocation.from_dict(data.get("location", {})),
            energy=EnergyProfile.from_dict(data.get("energy", {})),
            roof=RoofSpec.from_dict(data.get("roof", {})),
            equipment=EquipmentSelection.from_dict(data.get("equipment", {})),
            climate=ClimateProfile.from_dict(climate) if climate else None,
            offset_goal=data.get("offset_goal", 100.0),
            cost_per_watt=data.get("cost_per_watt"),
            costs=CostInputs.from_dict(data.get("costs", {})),
            home_age_years=data.get("home_age_years", 0.0),
        )


@dataclass(frozen=True)
class BasicFormData(_DictMixin):
    """Quick-estimate form submitted by a homeowner.

    Attributes:
        state: Two-letter state code (e.g., "CA").
        house_square_feet: Conditioned floor area; caps the array size.
        monthly_electric_bill: Average monthly bill ($).
        monthly_kwh_usage: Average monthly usage (kWh).
        electricity_rate: Rate as entered; "20" is read as 20 cents/kWh.
        shading_level: Qualitative shading level.
        panel_type: Module technology.
        financing: Preferred financing option.
    """

    state: str = ""
    house_square_feet: float = 0.0
    monthly_electric_bill: float = 0.0
    monthly_kwh_usage: float = 0.0
    electricity_rate: Union[str, float, None] = None
    shading_level: ShadingLevel = ShadingLevel.NONE
    panel_type: PanelType = PanelType.MONOCRYSTALLINE
    financing: FinancingKind = FinancingKind.CASH

    def __post_init__(self):
        object.__setattr__(self, "shading_level", ShadingLevel.parse(self.shading_level))
        object.__setattr__(self, "panel_type", PanelType.parse(self.panel_type))
        object.__setattr__(self, "financing", FinancingKind.parse(self.financing))
        if self.house_square_feet < 0:
            raise ValueError(f"house_square_feet must be >= 0, got {self.house_square_feet}")
        if self.monthly_electric_bill < 0:
            raise ValueError(f"monthly_electric_bill must be >= 0, got {self.monthly_electric_bill}")
        if self.monthly_kwh_usage < 0:
            raise ValueError(f"monthly_kwh_usage must be >= 0, got {self.monthly_kwh_usage}")


@dataclass(frozen=True)
class ProSolarInput(_DictMixin):
    """Detailed calculator input for installers and power users.

    Attributes:
        monthly_bill: Average monthly bill ($).
        roof_size: Usable roof area (sq ft).
        location: Region name (california, texas, ...); unknown → "other".
        panel_type: Module tier.
        battery_storage: Include a home battery.
        battery_capacity_kwh: Battery capacity when battery_storage is set.
        electricity_rate: Optional retail rate; None uses the region default.
        roof_orientation: Compass direction the array faces.
        shading_level: Qualitative shading level.
        inverter_type: Inverter topology.
        mounting_type: Roof, ground or tracking mount.
        peak_rate: Optional time-of-use on-peak rate ($/kWh).
        off_peak_rate: Optional time-of-use off-peak rate ($/kWh).
        monthly_demand_charge: Monthly demand charge ($).
        has_ev: Add EV charging load.
        has_pool: Add pool pump load.
        has_hot_tub: Add hot tub load.
        offset_goal: Percent of usage to offset.
        rate_escalation: Annual utility rate increase.
        discount_rate: NPV discount rate.
        analysis_years: Projection horizon.
        loan_terms: (term years, APR) pairs to quote.
    """

    monthly_bill: float = 0.0
    roof_size: float = 0.0
    location: str = "other"
    panel_type: PanelType = PanelType.STANDARD
    battery_storage: bool = False
    battery_capacity_kwh: float = 13.5
    electricity_rate: Optional[float] = None
    roof_orientation: RoofOrientation = RoofOrientation.SOUTH
    shading_level: ShadingLevel = ShadingLevel.NONE
    inverter_type: InverterType = InverterType.STRING
    mounting_type: MountingType = MountingType.ROOF_MOUNT
    peak_rate: Optional[float] = None
    off_peak_rate: Optional[float] = None
    monthly_demand_charge: float = 0.0
    has_ev: bool = False
    has_pool: bool = False
    has_hot_tub: bool = False
    offset_goal: float = 100.0
    rate_escalation: float = 0.03
    discount_rate: float = 0.06
    analysis_years: int = 25
    loan_terms: Sequence[Tuple[int, float]] = DEFAULT_LOAN_TERMS

    def __post_init__(self):
        object.__setattr__(self, "panel_type", PanelType.parse(self.panel_type))
        object.__setattr__(self, "roof_orientation", RoofOrientation.parse(self.roof_orientation))
        object.__setattr__(self, "shading_level", ShadingLevel.parse(self.shading_level))
        object.__setattr__(self, "inverter_type", InverterType.parse(self.inverter_type))
        object.__setattr__(self, "mounting_type", MountingType.parse(self.mounting_type))
        object.__setattr__(
            self, "loan_terms",
            tuple((int(term), float(rate)) for term, rate in self.loan_terms),
        )
        if self.monthly_bill < 0:
            raise ValueError(f"monthly_bill must be >= 0, got {self.monthly_bill}")
        if self.roof_size < 0:
            raise ValueError(f"roof_size must be >= 0, got {self.roof_size}")
        if self.battery_capacity_kwh < 0:
            raise ValueError(f"battery_capacity_kwh must be >= 0, got {self.battery_capacity_kwh}")
        if self.electricity_rate is not None and self.electricity_rate < 0:
            raise ValueError(f"electricity_rate must be >= 0, got {self.electricity_rate}")
        if not 0 <= self.offset_goal <= 200:
            raise ValueError(f"offset_goal must be 0-200, got {self.offset_goal}")
