"""OpenAI-compatible chat completions client for vision extraction."""

from dataclasses import dataclass
from typing import Protocol

import httpx
import openai
from openai import AsyncOpenAI

from nutriscan.domain.errors import UpstreamError

DEFAULT_BASE_URL = "https://api.deepseek.com"
_COMPLETIONS_SUFFIX = "/chat/completions"


@dataclass(frozen=True)
class ChatReply:
    """Content of the first choice and how many choices came back."""

    content: str | None
    choice_count: int


class ChatVisionClient(Protocol):
    """Interface for chat-completion style vision calls."""

    async def complete(  # noqa: PLR0913
        self,
        *,
        model: str,
        prompt: str,
        image_data_url: str,
        max_tokens: int,
        temperature: float,
    ) -> ChatReply:
        """Send one user message with text and image and return the reply."""

    async def close(self) -> None:
        """Close the underlying HTTP session."""


@dataclass
class OpenAIChatVisionClient(ChatVisionClient):
    """Vision client for any OpenAI-compatible chat completions endpoint."""

    client: AsyncOpenAI

    @classmethod
    def create(
        cls, api_key: str, base_url: str, timeout_seconds: float
    ) -> "OpenAIChatVisionClient":
        """Create a client with retries disabled so each call is one request."""
        return cls(
            client=AsyncOpenAI(
                api_key=api_key,
                base_url=normalize_base_url(base_url),
                timeout=timeout_seconds,
                max_retries=0,
            )
        )

    async def complete(  # noqa: PLR0913
        self,
        *,
        model: str,
        prompt: str,
        image_data_url: str,
        max_tokens: int,
        temperature: float,
    ) -> ChatReply:
        """Call chat completions with an inline base64 image."""
        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": prompt},
                            {"type": "image_url", "image_url": {"url": image_data_url}},
                        ],
                    }
                ],
                max_tokens=max_tokens,
                temperature=temperature,
                stream=False,
            )
        except openai.APITimeoutError as exc:
            raise TimeoutError(str(exc)) from exc
        except openai.APIStatusError as exc:
            raise UpstreamError(
                _error_message(exc.body) or exc.message,
                status_code=exc.status_code,
                body=exc.response.text,
            ) from exc
        except (openai.APIConnectionError, httpx.HTTPError) as exc:
            raise UpstreamError(str(exc) or type(exc).__name__) from exc

        choices = getattr(response, "choices", None) or []
        if not choices:
            return ChatReply(content=None, choice_count=0)
        message = getattr(choices[0], "message", None)
        return ChatReply(
            content=getattr(message, "content", None), choice_count=len(choices)
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()


def normalize_base_url(url: str | None) -> str:
    """Strip trailing slashes and a mistakenly pasted completions path."""
    if not url or not url.strip():
        return DEFAULT_BASE_URL
    cleaned = url.strip().rstrip("/")
    if cleaned.endswith(_COMPLETIONS_SUFFIX):
        cleaned = cleaned[: -len(_COMPLETIONS_SUFFIX)].rstrip("/")
    return cleaned


def _error_message(body: object) -> str:
    """Pull the human-readable message out of an error body."""
    if not isinstance(body, dict):
        return ""
    error = body.get("error")
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return error["message"]
    message = body.get("message")
    return message if isinstance(message, str) else ""
