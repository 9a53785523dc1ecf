"""Food identification facade over the configured vision providers."""

import base64
import binascii
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from nutriscan.adapters.gemini_vision_client import GenaiGeminiClient
from nutriscan.adapters.openai_vision_client import OpenAIChatVisionClient
from nutriscan.config import Settings
from nutriscan.domain.errors import (
    AllProvidersFailedError,
    IdentificationFailedError,
    InvalidImageError,
    NoProviderConfiguredError,
)
from nutriscan.domain.scan import ScannedFood
from nutriscan.services.gemini_provider import GeminiProvider
from nutriscan.services.openai_provider import OpenAICompatibleProvider
from nutriscan.services.providers import ProviderAdapter
from nutriscan.services.race import race

MIN_KEY_LENGTH = 6

NO_PROVIDER_MESSAGE = (
    "❌ 未配置有效的 API Key。\n请在 .env 中配置 GEMINI_API_KEY 或 OPENAI_API_KEY。"
)

_logger = logging.getLogger(__name__)


@dataclass
class IdentificationService:
    """Races every eligible provider and returns the first identification."""

    providers: Sequence[ProviderAdapter]

    @classmethod
    def from_settings(cls, settings: Settings) -> "IdentificationService":
        """Build providers for every API key that passes the sanity check."""
        return cls(providers=eligible_providers(settings))

    async def identify_food(self, image_base64: str) -> ScannedFood:
        """Identify the food in a base64 JPEG."""
        if not self.providers:
            raise NoProviderConfiguredError(NO_PROVIDER_MESSAGE)
        image_base64 = _validate_image(image_base64)

        _logger.info(
            "Identifying food with %s",
            ", ".join(provider.name for provider in self.providers),
        )
        try:
            return await race(
                [provider.identify(image_base64) for provider in self.providers]
            )
        except AllProvidersFailedError as exc:
            error = IdentificationFailedError(exc.errors)
            _logger.error("Food identification failed: %s", error)
            raise error from exc

    async def close(self) -> None:
        """Close all provider clients."""
        for provider in self.providers:
            await provider.close()


def eligible_providers(settings: Settings) -> list[ProviderAdapter]:
    """Create providers in submission order: Gemini first, then OpenAI."""
    providers: list[ProviderAdapter] = []
    if is_usable_api_key(settings.gemini_api_key):
        providers.append(
            GeminiProvider(
                client=GenaiGeminiClient.create(
                    settings.gemini_api_key, settings.provider_timeout_seconds
                ),
                model=settings.gemini_model,
                fallback_model=settings.gemini_fallback_model,
                timeout_seconds=settings.provider_timeout_seconds,
            )
        )
    if is_usable_api_key(settings.openai_api_key):
        providers.append(
            OpenAICompatibleProvider(
                client=OpenAIChatVisionClient.create(
                    api_key=settings.openai_api_key,
                    base_url=settings.openai_base_url,
                    timeout_seconds=settings.provider_timeout_seconds,
                ),
                model=settings.openai_model_name,
                timeout_seconds=settings.provider_timeout_seconds,
            )
        )
    return providers


def is_usable_api_key(key: str | None) -> bool:
    """Reject missing, too short, or placeholder keys such as 'AIzaSy...'."""
    if key is None:
        return False
    cleaned = key.strip()
    return len(cleaned) >= MIN_KEY_LENGTH and "..." not in cleaned


def _validate_image(image_base64: str) -> str:
    """Return the base64 payload without whitespace, rejecting invalid data."""
    cleaned = "".join(image_base64.split())
    if not cleaned:
        raise InvalidImageError("图片数据为空")
    try:
        base64.b64decode(cleaned, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidImageError("图片数据不是有效的 base64") from exc
    return cleaned
