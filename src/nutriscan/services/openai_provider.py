"""Provider for OpenAI-compatible chat completion backends (DeepSeek, Qwen, ...)."""

import asyncio
import logging
from dataclasses import dataclass

from nutriscan.adapters.openai_vision_client import ChatVisionClient
from nutriscan.domain.errors import ProviderError, ProviderErrorKind, UpstreamError
from nutriscan.domain.scan import ScannedFood
from nutriscan.services.normalizer import normalize, to_scanned_food
from nutriscan.services.providers import (
    ProviderAdapter,
    mentions_quota,
    truncate_detail,
)

OPENAI_PROMPT = (
    "请识别图中食物。如果是包装食品，请务必仔细寻找并读取包装上的“净含量”、“规格”或“份量”"
    "文字（如克、毫升、kCal），并据此计算整个包装的总热量和营养素。"
    "若无包装文字，则按视觉标准份量估算。必须返回 JSON 格式："
    '{"name": "中文菜名", "calories": number, "confidence": "High/Medium/Low", '
    '"macros": {"protein": number, "carbs": number, "fat": number}}。不要输出其他文字。'
)

# Chat-only models that reject image input with a bare 400.
TEXT_ONLY_MODELS = ("deepseek-chat",)

_logger = logging.getLogger(__name__)


@dataclass
class OpenAICompatibleProvider(ProviderAdapter):
    """Identifies food through a chat completions endpoint."""

    client: ChatVisionClient
    model: str = "deepseek-chat"
    timeout_seconds: float = 30.0
    max_tokens: int = 500
    temperature: float = 0.1
    name: str = "OpenAI"

    async def identify(self, image_base64: str) -> ScannedFood:
        """Send the photo once and normalize the reply."""
        _logger.info("OpenAI-compatible attempt: model=%s", self.model)
        try:
            reply = await asyncio.wait_for(
                self.client.complete(
                    model=self.model,
                    prompt=OPENAI_PROMPT,
                    image_data_url=f"data:image/jpeg;base64,{image_base64}",
                    max_tokens=self.max_tokens,
                    temperature=self.temperature,
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
            error = classify_openai_error(exc, provider=self.name, model=self.model)
            _logger.warning(
                "OpenAI-compatible %s failed (status=%s): %s",
                self.model,
                exc.status_code,
                error.message,
            )
            raise error from exc

        if reply.choice_count == 0:
            raise ProviderError(
                ProviderErrorKind.UNPARSABLE_RESPONSE,
                self.name,
                "返回数据格式错误 (无 choices)",
            )
        if not reply.content:
            raise ProviderError(
                ProviderErrorKind.EMPTY_RESPONSE, self.name, "返回内容为空"
            )
        food = to_scanned_food(
            normalize(reply.content), image_base64=image_base64, source_model=self.model
        )
        if food is None:
            _logger.warning("OpenAI-compatible raw content: %.500s", reply.content)
            raise ProviderError(
                ProviderErrorKind.UNPARSABLE_RESPONSE, self.name, "无法解析 JSON"
            )
        return food

    async def close(self) -> None:
        """Close the chat client."""
        await self.client.close()


def classify_openai_error(
    exc: UpstreamError, *, provider: str, model: str
) -> ProviderError:
    """Map an HTTP failure from a chat completions endpoint to an error kind."""
    status = exc.status_code
    text = f"{exc.detail} {exc.body}".lower()

    if status == 401:  # noqa: PLR2004
        return ProviderError(ProviderErrorKind.AUTH_INVALID, provider, "Key 无效 (401)")
    if status == 402 or (status == 403 and mentions_quota(text)):  # noqa: PLR2004
        return ProviderError(
            ProviderErrorKind.QUOTA_EXHAUSTED, provider, "余额不足/配额已用完 (请充值)"
        )
    if status == 403:  # noqa: PLR2004
        return ProviderError(
            ProviderErrorKind.ACCESS_FORBIDDEN,
            provider,
            "403 禁止访问 (API防火墙拦截 或 余额不足)",
        )
    if status == 404:  # noqa: PLR2004
        return ProviderError(
            ProviderErrorKind.ENDPOINT_MISCONFIGURED,
            provider,
            "路径错误 (404) - 请检查 Base URL",
        )
    if status == 400 and (  # noqa: PLR2004
        "vision" in text or "image" in text or model in TEXT_ONLY_MODELS
    ):
        return ProviderError(
            ProviderErrorKind.MODEL_LACKS_VISION,
            provider,
            f"模型 {model} 不支持图片识别。请更换为支持 Vision 的模型 (如 Qwen2-VL)。",
        )
    return ProviderError(
        ProviderErrorKind.REQUEST_FAILED,
        provider,
        f"请求失败 ({status or 'n/a'}): {truncate_detail(exc.detail or exc.body)}",
    )
