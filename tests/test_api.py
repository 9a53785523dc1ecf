"""Tests for the HTTP API."""

from fastapi.testclient import TestClient

from nutriscan.api.app import create_app
from nutriscan.containers import AppContainer
from nutriscan.services.identification import IdentificationService
from tests.conftest import IMAGE_B64, InMemoryMealRepository, ScriptedProvider


def test_health(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_scan_returns_scanned_food(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.post("/scans", json={"image": IMAGE_B64})

    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "苹果"
    assert body["sourceModel"] == "Gemini"
    assert body["confidence"] == "Medium"
    assert body["image"] == f"data:image/jpeg;base64,{IMAGE_B64}"


def test_scan_without_providers_returns_503(container: AppContainer) -> None:
    container.identification_service = IdentificationService(providers=[])
    client = TestClient(create_app(container))

    response = client.post("/scans", json={"image": IMAGE_B64})

    assert response.status_code == 503
    assert "API Key" in response.json()["detail"]


def test_scan_failure_returns_composite_message(container: AppContainer) -> None:
    container.identification_service = IdentificationService(
        providers=[
            ScriptedProvider(name="Gemini", food_name=None, failure="配额已用完"),
            ScriptedProvider(name="OpenAI", food_name=None, failure="Key 无效 (401)"),
        ]
    )
    client = TestClient(create_app(container))

    response = client.post("/scans", json={"image": IMAGE_B64})

    assert response.status_code == 502
    detail = response.json()["detail"]
    assert detail.startswith("所有模型识别失败:")
    assert "Gemini: 配额已用完" in detail
    assert "OpenAI: Key 无效 (401)" in detail


def test_scan_rejects_invalid_image(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.post("/scans", json={"image": "%%%"})

    assert response.status_code == 422


def test_meal_diary_flow(
    container: AppContainer, meal_repository: InMemoryMealRepository
) -> None:
    client = TestClient(create_app(container))

    created = client.post(
        "/meals",
        json={
            "name": "苹果 (已编辑)",
            "calories": 120,
            "confidence": "High",
            "macros": {"protein": 0.5, "carbs": 30, "fat": 0.3},
            "image": f"data:image/jpeg;base64,{IMAGE_B64}",
            "sourceModel": "deepseek-chat",
        },
    )

    assert created.status_code == 201
    meal = created.json()
    assert meal["name"] == "苹果 (已编辑)"
    assert meal["sourceModel"] == "deepseek-chat"
    assert meal["type"] in {"Breakfast", "Lunch", "Dinner", "Snack"}
    assert len(meal_repository.meals) == 1

    today = client.get("/meals/today").json()
    assert today["totalCalories"] == 120
    assert [item["id"] for item in today["meals"]] == [meal["id"]]

    history = client.get("/meals/history").json()
    assert sum(len(items) for items in history.values()) == 1

    assert client.delete(f"/meals/{meal['id']}").status_code == 200
    assert client.delete(f"/meals/{meal['id']}").status_code == 404


def test_clear_meals(
    container: AppContainer, meal_repository: InMemoryMealRepository
) -> None:
    client = TestClient(create_app(container))
    client.post("/meals", json={"name": "香蕉", "calories": 105})

    response = client.delete("/meals")

    assert response.status_code == 200
    assert meal_repository.meals == {}
