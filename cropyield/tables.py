from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Tuple


# Record types

@dataclass(frozen=True)
class CropModel:
    intercept: float
    rainfall_coefficient: float
    pesticide_coefficient: float
    temperature_coefficient: float
    base_yield: float
    std_yield: float
    optimal_temperature_range: Tuple[float, float]
    optimal_rainfall: float


@dataclass(frozen=True)
class SeasonProfile:
    average_rainfall: float
    average_temperature: float
    average_pesticide_use: float
    duration_months: int


@dataclass(frozen=True)
class DistrictProfile:
    yield_factor: float
    average_temperature: float
    average_rainfall: float


# Used for any district missing from the table
NEUTRAL_DISTRICT = DistrictProfile(yield_factor=1.0, average_temperature=26, average_rainfall=800)


# Multiple linear regression coefficients, yield in hg/ha.
# Features: rainfall (mm/season), pesticides (tonnes), temperature (°C)
CROP_MODELS = {
    # Cereals
    "Rice": CropModel(15000, 12.5, 0.08, -380, 35000, 5000, (22, 30), 1500),
    "Maize": CropModel(12000, 6.8, 0.12, -250, 28000, 4500, (18, 27), 800),
    "Wheat": CropModel(18000, 5.2, 0.1, -480, 32000, 4000, (15, 25), 500),
    "Sorghum": CropModel(5000, 3.0, 0.06, 150, 10000, 2500, (25, 35), 500),

    # Tubers and oilseeds
    "Potatoes": CropModel(80000, 28.0, 0.35, -2500, 200000, 35000, (15, 20), 800),
    "Soybeans": CropModel(8000, 4.5, 0.07, -100, 12000, 2000, (20, 30), 700),
    "Cassava": CropModel(120000, 38.0, 0.25, 1200, 250000, 40000, (25, 35), 1200),
    "Groundnut": CropModel(9000, 4.8, 0.09, 180, 14000, 2500, (25, 32), 600),

    # Millets and pulses
    "Jowar": CropModel(5000, 2.8, 0.06, 160, 10000, 2500, (25, 35), 450),
    "Arhar/Tur": CropModel(6000, 3.2, 0.05, 120, 8500, 1500, (25, 35), 650),
    "Bajra": CropModel(7000, 2.2, 0.04, 220, 12000, 2000, (25, 38), 400),
}

# Indian cropping seasons (rainfall mm, temperature °C, pesticides, months)
SEASON_PROFILES = {
    "Kharif": SeasonProfile(850, 28, 52000, 4),       # Jun-Sep monsoon
    "Rabi": SeasonProfile(180, 22, 48000, 5),         # Oct-Feb winter
    "Whole Year": SeasonProfile(1083, 25.5, 50000, 12),
    "Autumn": SeasonProfile(250, 26, 45000, 3),       # post-monsoon
}

# Karnataka districts (yield factor, avg temperature °C, avg rainfall mm)
DISTRICT_PROFILES = {
    "BANGALORE RURAL": DistrictProfile(1.08, 24, 900),
    "BANGALORE URBAN": DistrictProfile(0.95, 24, 920),
    "BELGAUM": DistrictProfile(1.15, 25, 1100),
    "BELLARY": DistrictProfile(1.05, 28, 550),
    "BIDAR": DistrictProfile(1.02, 27, 850),
    "BIJAPUR": DistrictProfile(0.98, 28, 600),
    "CHAMARAJANAGAR": DistrictProfile(1.10, 26, 750),
    "CHIKMAGALUR": DistrictProfile(1.25, 22, 1900),
    "CHITRADURGA": DistrictProfile(1.03, 27, 600),
    "DAKSHIN KANNAD": DistrictProfile(1.30, 27, 3800),
    "DAVANGERE": DistrictProfile(1.08, 27, 650),
    "DHARWAD": DistrictProfile(1.12, 25, 800),
    "GADAG": DistrictProfile(1.00, 27, 600),
    "GULBARGA": DistrictProfile(0.95, 28, 750),
    "HASSAN": DistrictProfile(1.18, 24, 1100),
    "HAVERI": DistrictProfile(1.10, 26, 700),
    "KODAGU": DistrictProfile(1.35, 20, 3000),
    "KOLAR": DistrictProfile(1.05, 25, 800),
    "KOPPAL": DistrictProfile(0.98, 28, 550),
    "MANDYA": DistrictProfile(1.15, 25, 700),
    "MYSORE": DistrictProfile(1.12, 24, 800),
    "RAICHUR": DistrictProfile(0.95, 29, 600),
    "RAMANAGARA": DistrictProfile(1.08, 24, 850),
    "SHIMOGA": DistrictProfile(1.22, 25, 1800),
    "TUMKUR": DistrictProfile(1.05, 26, 700),
    "UDUPI": DistrictProfile(1.32, 27, 4000),
    "UTTAR KANNAD": DistrictProfile(1.28, 26, 3200),
    "YADGIR": DistrictProfile(0.92, 28, 700),
}


@dataclass(frozen=True)
class ReferenceTables:
    """Read-only lookup tables handed to the estimator and the search.

    Crop and season names are exact-match keys; district names are matched
    upper-cased. Misses resolve to the configured defaults instead of failing.
    """

    crops: Mapping[str, CropModel]
    seasons: Mapping[str, SeasonProfile]
    districts: Mapping[str, DistrictProfile] = field(default_factory=dict)
    default_crop: str = "Rice"
    default_season: str = "Kharif"
    default_district: DistrictProfile = NEUTRAL_DISTRICT

    def __post_init__(self):
        if self.default_crop not in self.crops:
            raise ValueError(f"Default crop {self.default_crop!r} missing from crop table")
        if self.default_season not in self.seasons:
            raise ValueError(f"Default season {self.default_season!r} missing from season table")

        object.__setattr__(self, "crops", MappingProxyType(dict(self.crops)))
        object.__setattr__(self, "seasons", MappingProxyType(dict(self.seasons)))
        object.__setattr__(
            self, "districts",
            MappingProxyType({name.upper(): info for name, info in self.districts.items()}),
        )

    def resolve_crop(self, name: Optional[str]) -> Tuple[str, CropModel]:
        if name in self.crops:
            return name, self.crops[name]
        return self.default_crop, self.crops[self.default_crop]

    def resolve_season(self, name: Optional[str]) -> Tuple[str, SeasonProfile]:
        if name in self.seasons:
            return name, self.seasons[name]
        return self.default_season, self.seasons[self.default_season]

    def resolve_district(self, name: Optional[str]) -> DistrictProfile:
        if not isinstance(name, str):
            return self.default_district
        return self.districts.get(name.strip().upper(), self.default_district)


DEFAULT_TABLES = ReferenceTables(
    crops=CROP_MODELS,
    seasons=SEASON_PROFILES,
    districts=DISTRICT_PROFILES,
)
