from cropyield.api import app, get_noise_source


class BrokenNoise:
    def next_float_in_range(self, lo, hi):
        raise RuntimeError("noise source unavailable")


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_reference_data(client):
    crops = client.get("/crops").json()["crops"]
    assert crops[0] == {
        "name": "Rice",
        "base_yield": 35000,
        "optimal_temp_range": [22, 30],
        "optimal_rainfall": 1500,
    }
    assert client.get("/seasons").json()["seasons"] == ["Kharif", "Rabi", "Whole Year", "Autumn"]
    assert "MYSORE" in client.get("/districts").json()["districts"]


def test_predict_with_seasonal_averages(client):
    response = client.post("/predict", json={
        "state": "Karnataka",
        "district": "Mysore",
        "crop": "Rice",
        "season": "Kharif",
    })
    assert response.status_code == 200

    body = response.json()
    assert body["status"] == "success"
    assert body["current_yield"] == 3392
    assert body["recommended_crop"] == "Cassava"
    assert body["estimated_gain"] == 15178
    assert body["confidence"] == 0.85
    assert body["model_info"]["factors"]["district_factor"] == 1.12
    assert body["model_info"]["weather_impact"]["using_seasonal_averages"] is True


def test_predict_with_live_weather(client):
    response = client.post("/predict", json={
        "state": "Karnataka",
        "district": "MYSORE",
        "crop": "Rice",
        "season": "Kharif",
        "weather": {"temperature": 29, "humidity": 70, "rainfall": 0, "feels_like": 31, "clouds": 40},
    })
    body = response.json()

    assert body["status"] == "success"
    assert body["current_yield"] >= 875
    assert body["confidence"] == 0.93
    factors = body["model_info"]["factors"]
    assert factors["temperature_contribution"] == 500
    assert factors["effective_temperature"] == 29
    assert factors["effective_rainfall"] == 287
    impact = body["model_info"]["weather_impact"]
    assert impact["live_temperature"] == 29
    assert impact["rainfall_adequacy"] == "Drought risk"


def test_malformed_weather_fields_fall_back(client):
    response = client.post("/predict", json={
        "district": "ATLANTIS",
        "crop": "Maize",
        "season": "Rabi",
        "weather": {"temperature": "warm", "humidity": None},
    })
    body = response.json()
    assert response.status_code == 200
    assert body["model_info"]["factors"]["district_factor"] == 1.0
    assert body["model_info"]["weather_impact"]["using_seasonal_averages"] is True


def test_missing_field_is_an_error(client):
    response = client.post("/predict", json={"district": "MYSORE", "season": "Kharif"})
    assert response.status_code == 422

    body = response.json()
    assert body["status"] == "error"
    assert "crop" in body["error"]
    assert body["message"] == "Prediction failed. Please try again."


def test_internal_failure_is_reported(client):
    app.dependency_overrides[get_noise_source] = BrokenNoise

    response = client.post("/predict", json={"district": "MYSORE", "crop": "Rice", "season": "Kharif"})
    assert response.status_code == 500
    assert response.json() == {
        "status": "error",
        "error": "noise source unavailable",
        "message": "Prediction failed. Please try again.",
    }


def test_suggestions_are_ranked(client):
    response = client.post("/suggestions", json={"district": "MYSORE", "season": "Kharif"})
    assert response.status_code == 200

    suggestions = response.json()["suggestions"]
    assert len(suggestions) == 11
    assert suggestions[0]["crop"] == "Cassava"
    yields = [s["predicted_yield"] for s in suggestions]
    assert yields == sorted(yields, reverse=True)


def test_response_build_failure_is_reported(client, monkeypatch):
    monkeypatch.setattr("cropyield.api.build_prediction", lambda *args, **kwargs: {"status": "success"})

    response = client.post("/predict", json={"district": "MYSORE", "crop": "Rice", "season": "Kharif"})
    assert response.status_code == 500
    body = response.json()
    assert body["status"] == "error"
    assert body["message"] == "Prediction failed. Please try again."


def test_schema_drops_unusable_readings(client):
    response = client.post("/suggestions", json={
        "district": "MYSORE",
        "season": "Kharif",
        "weather": {"temperature": True, "humidity": "humid", "rainfall": "NaN"},
    })
    assert response.status_code == 200
    assert response.json()["suggestions"][0]["crop"] == "Cassava"
