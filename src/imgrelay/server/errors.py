"""
Mapping from imgrelay exceptions to HTTP status codes and JSON bodies.

Validation and configuration problems the caller can fix map to 400; upstream
and network failures map to 500 with a human-readable summary, the upstream
diagnostics and the upstream status code.
"""

from typing import Any

from imgrelay.utils.exceptions import (
    AuthenticationError,
    BillingLimitError,
    ImgrelayError,
    InternalConfigurationError,
    InvalidRequestError,
    MissingCredentialError,
    ModelDisabledError,
    PermissionDeniedError,
    RateLimitError,
    UpstreamConnectionError,
    UpstreamError,
    UpstreamTimeoutError,
)

GENERIC_FAILURE = "Failed to generate image"


def describe_upstream_failure(exc: UpstreamError) -> str:
    """User-facing summary for an upstream failure, chosen by its kind."""
    if isinstance(exc, BillingLimitError):
        return "OpenAI billing limit reached. Please check your OpenAI account and add credits."
    if isinstance(exc, AuthenticationError):
        return "Authentication failed. Check your API key."
    if isinstance(exc, PermissionDeniedError):
        return "Access forbidden. Your API key may not have the required permissions."
    if isinstance(exc, RateLimitError):
        return "Rate limit exceeded. Please try again later."
    if isinstance(exc, UpstreamConnectionError):
        return "Could not connect to the API service."
    if isinstance(exc, UpstreamTimeoutError):
        return "Request timed out. The server took too long to respond."
    return GENERIC_FAILURE


def error_response(exc: ImgrelayError) -> tuple[dict[str, Any], int]:
    """Return (json_body, status_code) for an imgrelay exception."""
    if isinstance(exc, InvalidRequestError):
        return {"error": str(exc), "details": {"field": exc.field}}, 400
    if isinstance(exc, ModelDisabledError):
        return {
            "error": str(exc),
            "fix": exc.fix,
            "details": {"model": exc.model_id, "flag": exc.flag_var},
        }, 400
    if isinstance(exc, MissingCredentialError):
        return {
            "error": str(exc),
            "fix": exc.fix,
            "details": {"provider": exc.provider_id, "credential": exc.credential_var},
        }, 400
    if isinstance(exc, UpstreamError):
        return {
            "error": describe_upstream_failure(exc),
            "details": exc.details if exc.details is not None else str(exc),
            "status": exc.status_code or "unknown",
        }, 500
    if isinstance(exc, InternalConfigurationError):
        return {"error": "Internal configuration error", "details": str(exc), "status": "unknown"}, 500
    return {"error": GENERIC_FAILURE, "details": str(exc), "status": "unknown"}, 500
