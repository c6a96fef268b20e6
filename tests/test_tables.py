import pytest

from cropyield.tables import (
    DEFAULT_TABLES,
    NEUTRAL_DISTRICT,
    CROP_MODELS,
    ReferenceTables,
    SeasonProfile,
)


def test_unknown_district_uses_neutral_profile():
    profile = DEFAULT_TABLES.resolve_district("ATLANTIS")
    assert profile == NEUTRAL_DISTRICT
    assert (profile.yield_factor, profile.average_temperature, profile.average_rainfall) == (1.0, 26, 800)


def test_district_lookup_is_case_insensitive():
    assert DEFAULT_TABLES.resolve_district("mysore").yield_factor == 1.12
    assert DEFAULT_TABLES.resolve_district(" Kodagu ").yield_factor == 1.35


def test_non_string_district_falls_back():
    assert DEFAULT_TABLES.resolve_district(None) == NEUTRAL_DISTRICT


def test_crop_and_season_fallbacks():
    name, model = DEFAULT_TABLES.resolve_crop("Quinoa")
    assert name == "Rice"
    assert model == CROP_MODELS["Rice"]

    # exact match only
    assert DEFAULT_TABLES.resolve_crop("rice")[0] == "Rice"
    assert DEFAULT_TABLES.resolve_season("Monsoon")[0] == "Kharif"
    assert DEFAULT_TABLES.resolve_season("Rabi")[1].duration_months == 5


def test_tables_are_read_only():
    with pytest.raises(TypeError):
        DEFAULT_TABLES.crops["Barley"] = CROP_MODELS["Wheat"]
    with pytest.raises(AttributeError):
        DEFAULT_TABLES.default_crop = "Maize"


def test_default_crop_must_exist():
    with pytest.raises(ValueError):
        ReferenceTables(
            crops=CROP_MODELS,
            seasons={"Kharif": SeasonProfile(850, 28, 52000, 4)},
            default_crop="Barley",
        )


def test_crop_table_order():
    assert list(DEFAULT_TABLES.crops) == [
        "Rice", "Maize", "Wheat", "Sorghum", "Potatoes", "Soybeans",
        "Cassava", "Groundnut", "Jowar", "Arhar/Tur", "Bajra",
    ]
