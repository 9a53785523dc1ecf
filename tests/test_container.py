"""Tests for container wiring."""

import asyncio

from nutriscan.config import Settings
from nutriscan.containers import build_container
from nutriscan.services.gemini_provider import GeminiProvider
from nutriscan.services.openai_provider import OpenAICompatibleProvider


def test_build_container_without_keys_has_no_providers(settings: Settings) -> None:
    container = build_container(settings)

    assert container.identification_service.providers == []
    assert container.meal_log_service.timezone_name == "UTC"
    asyncio.run(container.close_resources())


def test_build_container_wires_configured_providers(settings: Settings) -> None:
    configured = settings.model_copy(
        update={"gemini_api_key": "AIzaSyD-test-key", "openai_api_key": "sk-test-key"}
    )

    container = build_container(configured)

    assert [type(p) for p in container.identification_service.providers] == [
        GeminiProvider,
        OpenAICompatibleProvider,
    ]
    asyncio.run(container.close_resources())
