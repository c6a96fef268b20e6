from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from cropyield.logic import as_reading

# Weather Models

class WeatherInput(BaseModel):
    temperature: Optional[float] = None   # °C
    humidity: Optional[float] = None      # %
    rainfall: Optional[float] = None      # mm, current rate
    feels_like: Optional[float] = None
    clouds: Optional[float] = None

    # Bad readings are dropped so the estimator falls back per field
    @field_validator("*", mode="before")
    @classmethod
    def drop_unusable(cls, value):
        return as_reading(value)


# Prediction Models

class PredictionRequest(BaseModel):
    state: Optional[str] = None
    district: str
    crop: str
    season: str
    weather: Optional[WeatherInput] = None


class ModelFactors(BaseModel):
    base_intercept: float
    rainfall_contribution: int
    pesticides_contribution: int
    temperature_contribution: int
    district_factor: float
    effective_temperature: float
    effective_rainfall: int
    optimal_temp_range: List[float]


class ModelInfo(BaseModel):
    type: str
    features: List[str]
    training_data: str
    factors: ModelFactors
    weather_impact: Dict[str, Any]


class PredictionResponse(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    status: str
    current_yield: int              # kg/ha
    recommended_crop: Optional[str]
    estimated_gain: Optional[int]   # kg/ha
    confidence: float
    model_info: ModelInfo
    message: str


class ErrorResponse(BaseModel):
    status: str = "error"
    error: str
    message: str = "Prediction failed. Please try again."


# Crop Suggestion Models

class SuggestionRequest(BaseModel):
    state: Optional[str] = None
    district: str
    season: str
    weather: Optional[WeatherInput] = None


class CropSuggestion(BaseModel):
    crop: str
    predicted_yield: int   # hg/ha
    yield_kg_ha: int
    confidence: float
    rainfall_adequacy: str
    temperature_in_optimal_range: bool


class SuggestionResponse(BaseModel):
    status: str
    district: str
    season: str
    suggestions: List[CropSuggestion]
