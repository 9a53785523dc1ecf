"""Errors raised while identifying food."""

from enum import Enum


class NutriScanError(Exception):
    """Base class for application errors."""


class ProviderErrorKind(str, Enum):
    """Classified reason a provider failed."""

    AUTH_INVALID = "auth_invalid"
    QUOTA_EXHAUSTED = "quota_exhausted"
    ACCESS_FORBIDDEN = "access_forbidden"
    ENDPOINT_MISCONFIGURED = "endpoint_misconfigured"
    MODEL_LACKS_VISION = "model_lacks_vision"
    EMPTY_RESPONSE = "empty_response"
    UNPARSABLE_RESPONSE = "unparsable_response"
    TIMEOUT = "timeout"
    REQUEST_FAILED = "request_failed"


class ProviderError(NutriScanError):
    """Classified failure of a single provider."""

    def __init__(self, kind: ProviderErrorKind, provider: str, detail: str) -> None:
        self.kind = kind
        self.provider = provider
        self.message = f"{provider}: {detail}"
        super().__init__(self.message)


class UpstreamError(NutriScanError):
    """Backend rejected a vision request.

    Raised by the vision clients so that SDK exception types stay inside the
    adapters. ``status_code`` is the HTTP status when one was received and
    ``status`` the API status string (e.g. ``RESOURCE_EXHAUSTED``).
    """

    def __init__(
        self,
        detail: str,
        *,
        status_code: int | None = None,
        status: str | None = None,
        body: str = "",
    ) -> None:
        self.detail = detail
        self.status_code = status_code
        self.status = status
        self.body = body
        super().__init__(detail)


class NoProviderConfiguredError(NutriScanError):
    """No provider has a usable API key."""


class InvalidImageError(NutriScanError):
    """Image payload is empty or not base64."""


class AllProvidersFailedError(NutriScanError):
    """Every raced task failed."""

    def __init__(self, errors: list[Exception]) -> None:
        self.errors = errors
        super().__init__("\n".join(str(error) for error in errors))


class IdentificationFailedError(NutriScanError):
    """User-facing failure listing why each provider failed."""

    def __init__(self, errors: list[Exception]) -> None:
        self.errors = errors
        lines = [str(error) for error in errors if str(error).strip()]
        super().__init__("所有模型识别失败:\n- " + "\n- ".join(lines))
