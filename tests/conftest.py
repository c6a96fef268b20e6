import pytest
from fastapi.testclient import TestClient

from cropyield.api import app, get_noise_source
from cropyield.logic import FixedNoise
from cropyield.tables import CropModel, ReferenceTables, SeasonProfile


@pytest.fixture
def client():
    app.dependency_overrides[get_noise_source] = lambda: FixedNoise(1.0)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def flat_crop(intercept):
    """Crop whose yield is intercept + 500 under any conditions."""
    return CropModel(
        intercept=intercept,
        rainfall_coefficient=0,
        pesticide_coefficient=0,
        temperature_coefficient=0,
        base_yield=1000,
        std_yield=100,
        optimal_temperature_range=(0, 50),
        optimal_rainfall=1,
    )


@pytest.fixture
def make_tables():
    def _make(**intercepts):
        return ReferenceTables(
            crops={name: flat_crop(value) for name, value in intercepts.items()},
            seasons={"Kharif": SeasonProfile(100, 25, 0, 4)},
            default_crop=next(iter(intercepts)),
        )
    return _make
