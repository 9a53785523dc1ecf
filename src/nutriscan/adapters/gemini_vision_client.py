"""Gemini client for structured food identification."""

from dataclasses import dataclass
from typing import Protocol

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from nutriscan.domain.errors import UpstreamError

_SAFETY_SETTINGS = [
    types.SafetySetting(category=category, threshold=types.HarmBlockThreshold.BLOCK_NONE)
    for category in (
        types.HarmCategory.HARM_CATEGORY_HARASSMENT,
        types.HarmCategory.HARM_CATEGORY_HATE_SPEECH,
        types.HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT,
        types.HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT,
        types.HarmCategory.HARM_CATEGORY_CIVIC_INTEGRITY,
    )
]


@dataclass(frozen=True)
class GeminiReply:
    """Text returned by Gemini plus the finish reason of the first candidate."""

    text: str | None
    finish_reason: str | None


class GeminiClient(Protocol):
    """Interface for Gemini structured generation."""

    async def generate(
        self,
        *,
        model: str,
        image_bytes: bytes,
        prompt: str,
        schema: dict[str, object],
    ) -> GeminiReply:
        """Return the model's JSON text for an image and prompt."""

    async def close(self) -> None:
        """Close the underlying HTTP session."""


@dataclass
class GenaiGeminiClient(GeminiClient):
    """Gemini client backed by the google-genai SDK."""

    client: genai.Client

    @classmethod
    def create(cls, api_key: str, timeout_seconds: float) -> "GenaiGeminiClient":
        """Create a Gemini client with a request timeout."""
        http_options = types.HttpOptions(timeout=int(timeout_seconds * 1000))
        return cls(client=genai.Client(api_key=api_key, http_options=http_options))

    async def generate(
        self,
        *,
        model: str,
        image_bytes: bytes,
        prompt: str,
        schema: dict[str, object],
    ) -> GeminiReply:
        """Call generate_content with a JSON response schema."""
        try:
            response = await self.client.aio.models.generate_content(
                model=model,
                contents=[
                    types.Part.from_bytes(data=image_bytes, mime_type="image/jpeg"),
                    prompt,
                ],
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=schema,
                    safety_settings=_SAFETY_SETTINGS,
                ),
            )
        except genai_errors.APIError as exc:
            raise UpstreamError(
                exc.message or str(exc),
                status_code=exc.code,
                status=exc.status,
                body=str(exc),
            ) from exc
        except httpx.TimeoutException as exc:
            raise TimeoutError(str(exc)) from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(str(exc) or type(exc).__name__) from exc

        finish_reason = None
        if response.candidates:
            reason = response.candidates[0].finish_reason
            finish_reason = getattr(reason, "value", reason)
        return GeminiReply(text=response.text, finish_reason=finish_reason)

    async def close(self) -> None:
        """Close the SDK's async HTTP session."""
        await self.client.aio.aclose()
