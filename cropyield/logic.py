import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from cropyield.tables import (
    DEFAULT_TABLES,
    CropModel,
    DistrictProfile,
    ReferenceTables,
    SeasonProfile,
)

logger = logging.getLogger(__name__)


# Model constants

LIVE_RAIN_HOURS = 24 * 7          # a live rain rate counts for one week
BASELINE_HUMIDITY = 65.0
OPTIMAL_TEMP_BONUS = 500

DROUGHT_RATIO = 0.5
EXCESS_RATIO = 2.0
DROUGHT_DAMPING = 0.6
EXCESS_DAMPING = 0.7

NOISE_RANGE = (0.97, 1.03)
YIELD_FLOOR_SHARE = 0.25

BASE_CONFIDENCE = 0.85
LIVE_WEATHER_BONUS = 0.08
TEMP_EXTREME_PENALTY = 0.10
RAIN_EXTREME_PENALTY = 0.08
SAFE_TEMP_RANGE = (15, 40)
SAFE_RAIN_RANGE = (200, 4000)
CONFIDENCE_BOUNDS = (0.60, 0.96)

SIGNIFICANT_GAIN_SHARE = 0.05

MODEL_TYPE = "Multiple Linear Regression (Real-time Weather Enhanced)"
MODEL_FEATURES = [
    "live_temperature",
    "live_humidity",
    "estimated_rainfall",
    "pesticides",
    "district_factors",
]
TRAINING_DATA = (
    "FAO/World Bank Agricultural Dataset "
    "(yield_df.csv, rainfall.csv, temp.csv, pesticides.csv)"
)


class PredictionError(Exception):
    """Raised when a request cannot be turned into a prediction at all."""


# 1. NOISE SOURCES

class RandomNoise:
    """Uniform noise drawn from a numpy generator; pass a seed to replay it."""

    def __init__(self, seed: Optional[int] = None):
        self._rng = np.random.default_rng(seed)

    def next_float_in_range(self, lo: float, hi: float) -> float:
        return float(self._rng.uniform(lo, hi))


class FixedNoise:
    """Always returns the same multiplier, clipped into the requested range."""

    def __init__(self, value: float = 1.0):
        self.value = value

    def next_float_in_range(self, lo: float, hi: float) -> float:
        return float(np.clip(self.value, lo, hi))


# 2. RESULT TYPES

@dataclass(frozen=True)
class PredictionOutcome:
    crop: str
    predicted_yield: int                     # hg/ha
    confidence: float
    effective_temperature: float
    effective_rainfall: float
    using_live_weather: bool
    factors: Dict[str, Any] = field(default_factory=dict)
    weather_impact: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AlternativeCrop:
    crop: Optional[str]
    predicted_yield: float
    gain: int

    def to_dict(self) -> dict:
        return {"crop": self.crop, "yield": self.predicted_yield, "gain": self.gain}


# 3. HELPERS

def round_half_up(value: float, digits: int = 0) -> float:
    scale = 10 ** digits
    return float(np.floor(value * scale + 0.5) / scale)


def as_reading(value) -> Optional[float]:
    """Float for a usable weather reading, None for missing or garbage values."""
    if value is None or isinstance(value, bool):
        return None
    try:
        value = float(value)
    except (TypeError, ValueError):
        return None
    return value if np.isfinite(value) else None


def _reading(weather: Optional[Mapping], key: str) -> Optional[float]:
    if not weather:
        return None
    return as_reading(weather.get(key))


def rainfall_adequacy(ratio: float) -> str:
    if ratio < DROUGHT_RATIO:
        return "Drought risk"
    if ratio > EXCESS_RATIO:
        return "Excess water risk"
    return "Good"


# 4. MODEL TERMS

def effective_conditions(
    season: SeasonProfile,
    district: DistrictProfile,
    weather: Optional[Mapping] = None,
) -> Tuple[float, float, bool]:
    """Return (temperature, seasonal rainfall, live) for one request.

    Each live field falls back on its own; a request counts as live when
    any of temperature, humidity or rainfall is usable.
    """
    temperature = _reading(weather, "temperature")
    humidity = _reading(weather, "humidity")
    rainfall = _reading(weather, "rainfall")

    live = any(v is not None for v in (temperature, humidity, rainfall))
    if not live:
        return float(season.average_temperature), float(season.average_rainfall), False

    effective_temp = temperature if temperature is not None else float(season.average_temperature)

    if rainfall is not None and rainfall > 0:
        effective_rain = season.average_rainfall + rainfall * LIVE_RAIN_HOURS
    else:
        humidity_factor = humidity / BASELINE_HUMIDITY if humidity is not None else 1.0
        effective_rain = district.average_rainfall * humidity_factor * (season.duration_months / 12)

    return effective_temp, float(effective_rain), True


def temperature_contribution(model: CropModel, temperature: float) -> float:
    low, high = model.optimal_temperature_range
    weight = abs(model.temperature_coefficient) * 0.5
    if temperature < low:
        return (temperature - low) * weight
    if temperature > high:
        return (high - temperature) * weight
    return float(OPTIMAL_TEMP_BONUS)


def rainfall_contribution(model: CropModel, rainfall: float) -> float:
    ratio = rainfall / model.optimal_rainfall
    contribution = model.rainfall_coefficient * rainfall
    if ratio < DROUGHT_RATIO:
        return contribution * DROUGHT_DAMPING
    if ratio > EXCESS_RATIO:
        return contribution * EXCESS_DAMPING
    return contribution


def confidence_score(temperature: float, rainfall: float, live: bool) -> float:
    confidence = BASE_CONFIDENCE
    if live:
        confidence += LIVE_WEATHER_BONUS
    if not SAFE_TEMP_RANGE[0] <= temperature <= SAFE_TEMP_RANGE[1]:
        confidence -= TEMP_EXTREME_PENALTY
    if not SAFE_RAIN_RANGE[0] <= rainfall <= SAFE_RAIN_RANGE[1]:
        confidence -= RAIN_EXTREME_PENALTY
    return float(np.clip(confidence, *CONFIDENCE_BOUNDS))


# 5. YIELD ESTIMATION
def estimate(
    crop: str,
    season: str,
    district: str,
    weather: Optional[Mapping] = None,
    tables: ReferenceTables = DEFAULT_TABLES,
    noise=None,
) -> PredictionOutcome:
    noise = noise or RandomNoise()

    crop_name, model = tables.resolve_crop(crop)
    _, season_info = tables.resolve_season(season)
    district_info = tables.resolve_district(district)

    temperature, rainfall, live = effective_conditions(season_info, district_info, weather)
    logger.debug(
        "%s weather for %s: temp=%s°C rainfall=%.1fmm",
        "Live" if live else "Seasonal", crop_name, temperature, rainfall,
    )

    temp_term = temperature_contribution(model, temperature)
    rain_term = rainfall_contribution(model, rainfall)
    pesticide_term = model.pesticide_coefficient * season_info.average_pesticide_use

    predicted = model.intercept + rain_term + pesticide_term + temp_term
    predicted *= district_info.yield_factor
    predicted *= noise.next_float_in_range(*NOISE_RANGE)
    predicted = max(predicted, model.base_yield * YIELD_FLOOR_SHARE)

    low, high = model.optimal_temperature_range
    ratio = rainfall / model.optimal_rainfall

    factors = {
        "base_intercept": model.intercept,
        "rainfall_contribution": int(round_half_up(rain_term)),
        "pesticides_contribution": int(round_half_up(pesticide_term)),
        "temperature_contribution": int(round_half_up(temp_term)),
        "district_factor": district_info.yield_factor,
        "effective_temperature": round_half_up(temperature, 1),
        "effective_rainfall": int(round_half_up(rainfall)),
        "optimal_temp_range": [low, high],
    }

    if live:
        weather_impact = {
            "live_temperature": _reading(weather, "temperature"),
            "live_humidity": _reading(weather, "humidity"),
            "live_rainfall": _reading(weather, "rainfall"),
            "estimated_seasonal_rainfall": int(round_half_up(rainfall)),
            "temperature_in_optimal_range": low <= temperature <= high,
            "rainfall_adequacy": rainfall_adequacy(ratio),
        }
    else:
        weather_impact = {
            "using_seasonal_averages": True,
            "seasonal_temp": season_info.average_temperature,
            "seasonal_rainfall": season_info.average_rainfall,
            "rainfall_adequacy": rainfall_adequacy(ratio),
        }

    return PredictionOutcome(
        crop=crop_name,
        predicted_yield=int(round_half_up(predicted)),
        confidence=confidence_score(temperature, rainfall, live),
        effective_temperature=temperature,
        effective_rainfall=rainfall,
        using_live_weather=live,
        factors=factors,
        weather_impact=weather_impact,
    )


# 6. ALTERNATIVE CROP
def find_alternative(
    current_crop: str,
    season: str,
    district: str,
    current_yield: float,
    weather: Optional[Mapping] = None,
    tables: ReferenceTables = DEFAULT_TABLES,
    noise=None,
) -> AlternativeCrop:
    # One source for the whole batch keeps seeded searches reproducible
    noise = noise or RandomNoise()

    best_crop = None
    best_yield = current_yield
    best_gain = 0

    for crop in tables.crops:
        if crop == current_crop:
            continue

        outcome = estimate(crop, season, district, weather, tables=tables, noise=noise)
        gain = outcome.predicted_yield - current_yield

        if gain > current_yield * SIGNIFICANT_GAIN_SHARE and gain > best_gain:
            best_crop = crop
            best_yield = outcome.predicted_yield
            best_gain = gain

    return AlternativeCrop(crop=best_crop, predicted_yield=best_yield, gain=int(round_half_up(best_gain)))


# 7. CROP RANKING
def rank_crops(
    season: str,
    district: str,
    weather: Optional[Mapping] = None,
    tables: ReferenceTables = DEFAULT_TABLES,
    noise=None,
) -> pd.DataFrame:
    noise = noise or RandomNoise()

    rows = []
    for crop in tables.crops:
        outcome = estimate(crop, season, district, weather, tables=tables, noise=noise)
        rows.append({
            "crop": crop,
            "predicted_yield": outcome.predicted_yield,
            "yield_kg_ha": int(round_half_up(outcome.predicted_yield / 10)),
            "confidence": round_half_up(outcome.confidence, 2),
            "rainfall_adequacy": outcome.weather_impact["rainfall_adequacy"],
            "temperature_in_optimal_range": bool(
                outcome.factors["optimal_temp_range"][0]
                <= outcome.effective_temperature
                <= outcome.factors["optimal_temp_range"][1]
            ),
        })

    df = pd.DataFrame(rows, columns=[
        "crop", "predicted_yield", "yield_kg_ha", "confidence",
        "rainfall_adequacy", "temperature_in_optimal_range",
    ])
    return df.sort_values("predicted_yield", ascending=False, kind="stable").reset_index(drop=True)


# 8. RESPONSE ASSEMBLY
def build_prediction(
    request: Mapping,
    tables: ReferenceTables = DEFAULT_TABLES,
    noise=None,
) -> dict:
    """Run the estimator and the search for one request and shape the reply.

    Yields are kept in hg/ha internally and reported in kg/ha.
    """
    if not isinstance(request, Mapping):
        raise PredictionError("Request body must be a JSON object")

    missing = [key for key in ("crop", "season", "district") if key not in request]
    if missing:
        raise PredictionError(f"Missing required fields: {', '.join(missing)}")

    weather = request.get("weather")
    if weather is not None and not isinstance(weather, Mapping):
        raise PredictionError("Weather must be a JSON object")

    crop, season, district = request["crop"], request["season"], request["district"]
    noise = noise or RandomNoise()

    prediction = estimate(crop, season, district, weather, tables=tables, noise=noise)
    # Search against the resolved crop so a fallback is never recommended back
    alternative = find_alternative(
        prediction.crop, season, district, prediction.predicted_yield, weather,
        tables=tables, noise=noise,
    )

    current_kg = int(round_half_up(prediction.predicted_yield / 10))
    gain_kg = int(round_half_up(alternative.gain / 10)) if alternative.gain else None

    if alternative.crop:
        message = (
            f"Based on ML analysis with live weather data, consider {alternative.crop} "
            f"for potentially {gain_kg} kg/ha higher yields."
        )
    else:
        message = "Your current crop is optimal for these real-time conditions."

    return {
        "status": "success",
        "current_yield": current_kg,
        "recommended_crop": alternative.crop,
        "estimated_gain": gain_kg,
        "confidence": round_half_up(prediction.confidence, 2),
        "model_info": {
            "type": MODEL_TYPE,
            "features": list(MODEL_FEATURES),
            "training_data": TRAINING_DATA,
            "factors": prediction.factors,
            "weather_impact": prediction.weather_impact,
        },
        "message": message,
    }
