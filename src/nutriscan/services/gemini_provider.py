"""Gemini provider with a one-step fallback model."""

import asyncio
import base64
import logging
from dataclasses import dataclass

from nutriscan.adapters.gemini_vision_client import GeminiClient
from nutriscan.domain.errors import ProviderError, ProviderErrorKind, UpstreamError
from nutriscan.domain.scan import ScannedFood
from nutriscan.services.normalizer import normalize, to_scanned_food
from nutriscan.services.providers import ProviderAdapter, truncate_detail

GEMINI_PROMPT = """
Identify the food in this image.
Important: If this is a packaged food, explicitly look for text on the packaging
indicating net weight, volume, or serving size (e.g., "Net Wt", "grams", "ml",
"kCal per serving") and use that to calculate the TOTAL calories and macros for
the entire item shown.
If no text is visible or it is not packaged, estimate based on standard visual
portion size.
Return JSON: { "name": "Food Name (Chinese)", "calories": 0,
"confidence": "High/Medium/Low", "macros": { "protein": 0, "carbs": 0, "fat": 0 } }
""".strip()

GEMINI_SCHEMA: dict[str, object] = {
    "type": "OBJECT",
    "properties": {
        "name": {"type": "STRING"},
        "calories": {"type": "NUMBER"},
        "confidence": {"type": "STRING"},
        "macros": {
            "type": "OBJECT",
            "properties": {
                "protein": {"type": "NUMBER"},
                "carbs": {"type": "NUMBER"},
                "fat": {"type": "NUMBER"},
            },
        },
    },
}

_FALLBACK_KINDS = frozenset(
    {ProviderErrorKind.QUOTA_EXHAUSTED, ProviderErrorKind.EMPTY_RESPONSE}
)

_logger = logging.getLogger(__name__)


@dataclass
class GeminiProvider(ProviderAdapter):
    """Identifies food with Gemini, retrying once on a fallback model."""

    client: GeminiClient
    model: str = "gemini-3-flash-preview"
    fallback_model: str | None = "gemini-flash-latest"
    timeout_seconds: float = 30.0
    name: str = "Gemini"

    async def identify(self, image_base64: str) -> ScannedFood:
        """Try the primary model, then the fallback on quota or empty output."""
        try:
            return await self._identify_with(self.model, image_base64)
        except ProviderError as exc:
            if not self.fallback_model or exc.kind not in _FALLBACK_KINDS:
                raise
            _logger.warning(
                "Gemini %s failed (%s), falling back to %s",
                self.model,
                exc.kind.value,
                self.fallback_model,
            )
        return await self._identify_with(self.fallback_model, image_base64)

    async def _identify_with(self, model: str, image_base64: str) -> ScannedFood:
        _logger.info("Gemini attempt: model=%s", model)
        try:
            reply = await asyncio.wait_for(
                self.client.generate(
                    model=model,
                    image_bytes=base64.b64decode(image_base64),
                    prompt=GEMINI_PROMPT,
                    schema=GEMINI_SCHEMA,
                ),
                timeout=self.timeout_seconds,
            )
        except TimeoutError as exc:
            raise ProviderError(
                ProviderErrorKind.TIMEOUT,
                self.name,
                f"请求超时 ({self.timeout_seconds:g}s)",
            ) from exc
        except UpstreamError as exc:
            error = classify_gemini_error(exc, provider=self.name, model=model)
            _logger.warning("Gemini %s failed: %s", model, error.message)
            raise error from exc

        if not reply.text:
            raise ProviderError(
                ProviderErrorKind.EMPTY_RESPONSE,
                self.name,
                f"返回内容为空 (FinishReason: {reply.finish_reason or 'Unknown'})",
            )
        food = to_scanned_food(
            normalize(reply.text), image_base64=image_base64, source_model=model
        )
        if food is None:
            raise ProviderError(
                ProviderErrorKind.UNPARSABLE_RESPONSE, self.name, "无法解析 JSON"
            )
        return food

    async def close(self) -> None:
        """Close the Gemini client."""
        await self.client.close()


def classify_gemini_error(
    exc: UpstreamError, *, provider: str, model: str
) -> ProviderError:
    """Map a Gemini API failure onto a ProviderErrorKind."""
    status = (exc.status or "").upper()
    text = f"{exc.detail} {exc.body}"
    lowered = text.lower()
    code = exc.status_code

    if code == 401 or "API_KEY_INVALID" in text or "api key not valid" in lowered:  # noqa: PLR2004
        return ProviderError(ProviderErrorKind.AUTH_INVALID, provider, "Key 无效 (401)")
    if code == 429 or status == "RESOURCE_EXHAUSTED" or "quota" in lowered:  # noqa: PLR2004
        return ProviderError(
            ProviderErrorKind.QUOTA_EXHAUSTED, provider, "余额不足/配额已用完 (请充值)"
        )
    if code == 403 or status == "PERMISSION_DENIED":  # noqa: PLR2004
        return ProviderError(
            ProviderErrorKind.ACCESS_FORBIDDEN, provider, "403 禁止访问 (请检查 Key 权限)"
        )
    if code == 404 or status == "NOT_FOUND":  # noqa: PLR2004
        return ProviderError(
            ProviderErrorKind.ENDPOINT_MISCONFIGURED,
            provider,
            f"模型 {model} 不存在 (404) - 请检查模型名称",
        )
    if code == 400 and ("image" in lowered or "vision" in lowered):  # noqa: PLR2004
        return ProviderError(
            ProviderErrorKind.MODEL_LACKS_VISION,
            provider,
            f"模型 {model} 不支持图片识别。请更换为支持 Vision 的模型。",
        )
    return ProviderError(
        ProviderErrorKind.REQUEST_FAILED,
        provider,
        f"请求失败 ({code or status or 'n/a'}): {truncate_detail(exc.detail)}",
    )
