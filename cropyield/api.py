from fastapi import (
    FastAPI,
    Request,
    Depends,
)

from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

import os
import logging

# Internal imports

from cropyield.schema import (
    PredictionRequest,
    PredictionResponse,
    SuggestionRequest,
    SuggestionResponse,
    CropSuggestion,
    ErrorResponse,
)

from cropyield.tables import DEFAULT_TABLES, ReferenceTables

from cropyield.logic import (
    PredictionError,
    RandomNoise,
    build_prediction,
    rank_crops,
)

# Configuration

ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "CROPYIELD_ALLOWED_ORIGINS",
        "http://localhost:8080,http://127.0.0.1:8000",
    ).split(",")
    if origin.strip()
]

_seed = os.getenv("CROPYIELD_SEED")
SEED = int(_seed) if _seed else None

logging.getLogger("cropyield").setLevel(os.getenv("CROPYIELD_LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)


app = FastAPI(
    title="CropYield API",
    version="1.0",
    description="Crop yield prediction and alternative crop recommendation",
)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Dependencies (overridable in tests)
def get_tables() -> ReferenceTables:
    return DEFAULT_TABLES

def get_noise_source():
    return RandomNoise(SEED)


# Error handlers
@app.exception_handler(PredictionError)
async def prediction_error_handler(request: Request, exc: PredictionError):
    return JSONResponse(status_code=500, content=ErrorResponse(error=str(exc)).model_dump())

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(error=f"Invalid request: {fields}").model_dump(),
    )


# Endpoint: Health Check
@app.get("/health")
def health_check():
    return {"status": "ok", "message": "CropYield API is running"}

# Endpoint: API Version
@app.get("/version")
def get_version():
    return {"version": app.version}

# Endpoint: List Routes
@app.get("/routes")
def list_routes():
    return [{"path": route.path, "name": route.name} for route in app.router.routes]

# Endpoint: API Info
@app.get("/info")
def api_info():
    return {
        "app": "CropYield API",
        "version": app.version,
        "description": "Yield estimates in kg/ha with a best alternative crop",
        "docs": "/docs"
    }


# Endpoint: Reference Data
@app.get("/crops")
def list_crops(tables: ReferenceTables = Depends(get_tables)):
    return {
        "crops": [
            {
                "name": name,
                "base_yield": model.base_yield,
                "optimal_temp_range": list(model.optimal_temperature_range),
                "optimal_rainfall": model.optimal_rainfall,
            }
            for name, model in tables.crops.items()
        ]
    }

@app.get("/seasons")
def list_seasons(tables: ReferenceTables = Depends(get_tables)):
    return {"seasons": list(tables.seasons)}

@app.get("/districts")
def list_districts(tables: ReferenceTables = Depends(get_tables)):
    return {"districts": sorted(tables.districts)}


# Endpoint: Yield Prediction
@app.post("/predict", response_model=PredictionResponse)
def predict(
    data: PredictionRequest,
    tables: ReferenceTables = Depends(get_tables),
    noise=Depends(get_noise_source),
):
    logger.info("Predict request: %s in %s, %s for %s", data.crop, data.district, data.state, data.season)

    try:
        result = build_prediction(data.model_dump(), tables=tables, noise=noise)
        response = PredictionResponse(**result)
    except PredictionError:
        raise
    except Exception as e:
        logger.exception("Prediction failed")
        raise PredictionError(str(e)) from e

    logger.info(
        "Predicted %s kg/ha for %s, recommended: %s",
        response.current_yield, data.crop, response.recommended_crop,
    )
    return response


# Endpoint: Crop Suggestions
@app.post("/suggestions", response_model=SuggestionResponse)
def suggestions(
    data: SuggestionRequest,
    tables: ReferenceTables = Depends(get_tables),
    noise=Depends(get_noise_source),
):
    weather = data.weather.model_dump() if data.weather else None

    try:
        ranking = rank_crops(data.season, data.district, weather, tables=tables, noise=noise)
        return SuggestionResponse(
            status="success",
            district=data.district,
            season=data.season,
            suggestions=[
                CropSuggestion(
                    crop=row.crop,
                    predicted_yield=int(row.predicted_yield),
                    yield_kg_ha=int(row.yield_kg_ha),
                    confidence=float(row.confidence),
                    rainfall_adequacy=row.rainfall_adequacy,
                    temperature_in_optimal_range=bool(row.temperature_in_optimal_range),
                )
                for row in ranking.itertuples(index=False)
            ],
        )
    except Exception as e:
        logger.exception("Crop ranking failed")
        raise PredictionError(str(e)) from e
