"""Error taxonomy for provider calls."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

QUOTA_SIGNATURES = (
    "resource_exhausted",
    "exceeded your current quota",
    "quota exceeded",
    "rate limit",
)

PERMISSION_SIGNATURES = (
    "requested entity was not found",
    "permission_denied",
    "permission denied",
    "api key not valid",
    "api_key_invalid",
)

QUOTA_STATUSES = ("RESOURCE_EXHAUSTED",)
PERMISSION_STATUSES = ("PERMISSION_DENIED", "UNAUTHENTICATED", "NOT_FOUND")

# google.rpc.Code values carried by long-running operation errors.
RPC_QUOTA_CODES = (8,)
RPC_PERMISSION_CODES = (5, 7, 16)


class ErrorKind(str, Enum):
    QUOTA = "quota"
    PERMISSION = "permission"
    TRANSIENT = "transient"


class ManiAiError(Exception):
    """Base class for every error raised by the orchestration layer."""


class ConfigurationError(ManiAiError):
    pass


class InvalidRequestError(ManiAiError, ValueError):
    pass


class MediaReadError(ManiAiError):
    pass


class ProviderError(ManiAiError):
    kind = ErrorKind.TRANSIENT

    def __init__(self, message: str, kind: Optional[ErrorKind] = None) -> None:
        super().__init__(message)
        if kind is not None:
            self.kind = kind


class QuotaExceededError(ProviderError):
    kind = ErrorKind.QUOTA


class PermissionDeniedError(ProviderError):
    kind = ErrorKind.PERMISSION


class GenerationFailedError(ManiAiError):
    def __init__(self, message: str, kind: ErrorKind = ErrorKind.TRANSIENT) -> None:
        super().__init__(message)
        self.kind = kind


class AssetFetchError(ManiAiError):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class VideoTimeoutError(ManiAiError):
    pass


def classify_provider_error(exc: BaseException) -> ErrorKind:
    """Map a provider exception to an ErrorKind.

    Structured fields (``code``/``status`` as set by ``google.genai.errors.APIError``)
    win over message matching. Message matching is a best-effort fallback.
    """
    code = getattr(exc, "code", None)
    status = str(getattr(exc, "status", "") or "").upper()

    if code == 429 or status in QUOTA_STATUSES:
        return ErrorKind.QUOTA
    if code in (401, 403) or status in PERMISSION_STATUSES:
        return ErrorKind.PERMISSION
    if code == 404:
        return ErrorKind.PERMISSION

    message = str(exc).lower()
    if any(sig in message for sig in QUOTA_SIGNATURES):
        return ErrorKind.QUOTA
    if any(sig in message for sig in PERMISSION_SIGNATURES):
        return ErrorKind.PERMISSION
    return ErrorKind.TRANSIENT


def classify_operation_error(error: Any) -> ErrorKind:
    """Classify the ``error`` field of a finished long-running operation.

    The field is a ``google.rpc.Status``, either as a dict or an object.
    """
    if isinstance(error, dict):
        code, message = error.get("code"), error.get("message") or error
    else:
        code, message = getattr(error, "code", None), getattr(error, "message", None) or error
    if code in RPC_QUOTA_CODES:
        return ErrorKind.QUOTA
    if code in RPC_PERMISSION_CODES:
        return ErrorKind.PERMISSION
    return classify_provider_error(Exception(str(message)))


def wrap_provider_error(exc: BaseException, context: str) -> ProviderError:
    kind = classify_provider_error(exc)
    message = f"{context}: {exc}"
    if kind is ErrorKind.QUOTA:
        return QuotaExceededError(message)
    if kind is ErrorKind.PERMISSION:
        return PermissionDeniedError(message)
    return ProviderError(message)


def describe_error(exc: BaseException) -> str:
    """Human-readable guidance for the front-end."""
    kind = getattr(exc, "kind", None)
    if kind is ErrorKind.QUOTA:
        return (
            "You've exceeded your quota. Please check your plan and billing details, "
            "or try again later. See https://ai.google.dev/gemini-api/docs/billing"
        )
    if kind is ErrorKind.PERMISSION:
        return "Your API key may be invalid or missing required permissions. Please select a valid key."
    if isinstance(exc, AssetFetchError):
        return f"The video was generated but could not be downloaded: {exc}"
    return str(exc) or exc.__class__.__name__
