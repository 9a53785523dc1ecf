"""Provider adapter interface shared by all vision backends."""

from typing import Protocol

from nutriscan.domain.scan import ScannedFood

DETAIL_LIMIT = 100

QUOTA_MARKERS = ("balance", "quota", "credit", "payment")


class ProviderAdapter(Protocol):
    """A vision backend that can identify food in a photo."""

    name: str

    async def identify(self, image_base64: str) -> ScannedFood:
        """Identify the food or raise a classified ProviderError."""

    async def close(self) -> None:
        """Release network resources held by the adapter."""


def truncate_detail(detail: str, limit: int = DETAIL_LIMIT) -> str:
    """Shorten raw upstream detail so aggregated messages stay readable."""
    cleaned = " ".join(detail.split())
    if len(cleaned) <= limit:
        return cleaned
    return f"{cleaned[:limit]}..."


def mentions_quota(text: str) -> bool:
    """Return True when error text talks about balance or quota."""
    lowered = text.lower()
    return any(marker in lowered for marker in QUOTA_MARKERS)
