"""
Custom exceptions for imgrelay.

This module defines all custom exceptions used throughout the application.
Validation errors are raised before any network call; upstream errors carry
whatever diagnostic payload the provider returned.
"""

from typing import Any


class ImgrelayError(Exception):
    """Base exception for all imgrelay errors."""

    pass


class InvalidRequestError(ImgrelayError):
    """Raised when a generation or probe request has bad or missing input."""

    def __init__(self, message: str, field: str = "") -> None:
        """
        Initialize invalid request error.

        Args:
            message: Error message
            field: Name of the request field that failed validation (optional)
        """
        self.field = field
        super().__init__(message)


class ModelDisabledError(ImgrelayError):
    """Raised when the requested model's provider is switched off by its flag."""

    def __init__(self, message: str, model_id: str = "", flag_var: str = "") -> None:
        """
        Initialize model disabled error.

        Args:
            message: Error message
            model_id: The requested model id
            flag_var: Environment variable that enables the provider
        """
        self.model_id = model_id
        self.flag_var = flag_var
        super().__init__(message)

    @property
    def fix(self) -> str:
        return f"Enable it by setting {self.flag_var}=true in your environment variables"


class MissingCredentialError(ImgrelayError):
    """Raised when a provider requires an API key that is not configured."""

    def __init__(self, message: str, provider_id: str = "", credential_var: str = "") -> None:
        """
        Initialize missing credential error.

        Args:
            message: Error message
            provider_id: Provider whose key is missing
            credential_var: Environment variable that should hold the key
        """
        self.provider_id = provider_id
        self.credential_var = credential_var
        super().__init__(message)

    @property
    def fix(self) -> str:
        return f"Add {self.credential_var} to your environment variables"


class ConfigurationError(ImgrelayError):
    """Raised when there is a configuration problem."""

    pass


class InternalConfigurationError(ConfigurationError):
    """Raised when the provider registry or adapter wiring is inconsistent.

    Indicates a deployment bug; fatal to the request and never retried.
    """

    pass


class UpstreamError(ImgrelayError):
    """Raised when a provider call fails (non-2xx status or transport failure)."""

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        details: Any = None,
        provider: str = "",
    ) -> None:
        """
        Initialize upstream error.

        Args:
            message: Error message
            status_code: HTTP status code from the provider (0 if none)
            details: Parsed response body, raw text, or other diagnostics
            provider: Provider id the call was made to
        """
        self.status_code = status_code
        self.details = details
        self.provider = provider
        super().__init__(message)


class AuthenticationError(UpstreamError):
    """Provider rejected the credential (HTTP 401)."""

    pass


class PermissionDeniedError(UpstreamError):
    """Credential lacks the required permissions (HTTP 403)."""

    pass


class RateLimitError(UpstreamError):
    """Provider rate limit exceeded (HTTP 429)."""

    pass


class BillingLimitError(UpstreamError):
    """Provider account has run out of credits."""

    pass


class UpstreamConnectionError(UpstreamError):
    """Could not reach the provider (connection refused, DNS failure)."""

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
        provider: str = "",
    ) -> None:
        self.original_error = original_error
        super().__init__(message, details=str(original_error or message), provider=provider)


class UpstreamTimeoutError(UpstreamError):
    """Provider did not answer within the request timeout."""

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
        provider: str = "",
    ) -> None:
        self.original_error = original_error
        super().__init__(message, details=str(original_error or message), provider=provider)


class MalformedUpstreamResponseError(UpstreamError):
    """Provider answered 2xx but the payload could not be interpreted."""

    pass


class AsyncJobFailedError(UpstreamError):
    """An asynchronous prediction job reached a failed terminal state."""

    pass


class AsyncJobTimeoutError(UpstreamTimeoutError):
    """An asynchronous prediction job did not finish within the polling budget.

    The remote job is not cancelled; polling simply stops.
    """

    def __init__(
        self,
        message: str,
        attempts: int = 0,
        last_status: str = "",
        job_id: str = "",
        provider: str = "",
    ) -> None:
        """
        Initialize async job timeout error.

        Args:
            message: Error message
            attempts: Number of status polls performed
            last_status: Last status reported by the provider
            job_id: Provider job id
            provider: Provider id
        """
        self.attempts = attempts
        self.last_status = last_status
        self.job_id = job_id
        super().__init__(message, provider=provider)
        self.details = {"id": job_id, "status": last_status, "attempts": attempts}
