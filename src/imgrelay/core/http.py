"""
Shared HTTP plumbing for provider calls.

Performs one request with ``requests`` and maps every failure to the
UpstreamError family: status codes to authentication/permission/rate-limit
variants, transport failures to connection/timeout variants. Nothing is
retried here or anywhere else.
"""

import json
import time
from typing import Any

import requests

from imgrelay.logging_config import get_logger, truncate_for_log
from imgrelay.utils.exceptions import (
    AuthenticationError,
    BillingLimitError,
    MalformedUpstreamResponseError,
    PermissionDeniedError,
    RateLimitError,
    UpstreamConnectionError,
    UpstreamError,
    UpstreamTimeoutError,
)

logger = get_logger(__name__)

BILLING_LIMIT_CODE = "billing_hard_limit_reached"
_TEXT_DETAILS_MAX = 2000


def response_details(response: requests.Response) -> Any:
    """Best available diagnostic payload: parsed JSON, else (truncated) text."""
    try:
        return response.json()
    except ValueError:
        text = response.text or ""
        if len(text) > _TEXT_DETAILS_MAX:
            text = text[:_TEXT_DETAILS_MAX] + f"... <truncated, {len(response.text)} chars total>"
        return text


def _error_code(details: Any) -> str | None:
    if isinstance(details, dict):
        err = details.get("error")
        if isinstance(err, dict):
            code = err.get("code")
            return code if isinstance(code, str) else None
    return None


def raise_for_status(response: requests.Response, provider: str) -> None:
    """Raise the matching UpstreamError for a non-2xx response."""
    status = response.status_code
    if 200 <= status < 300:
        return
    details = response_details(response)
    if _error_code(details) == BILLING_LIMIT_CODE:
        raise BillingLimitError(
            f"{provider} billing limit reached. Check your account and add credits.",
            status_code=status,
            details=details,
            provider=provider,
        )
    if status == 401:
        raise AuthenticationError(
            f"Authentication failed for {provider}. Check your API key.",
            status_code=status,
            details=details,
            provider=provider,
        )
    if status == 403:
        raise PermissionDeniedError(
            f"Access forbidden by {provider}. Your API key may not have the required permissions.",
            status_code=status,
            details=details,
            provider=provider,
        )
    if status == 429:
        raise RateLimitError(
            f"{provider} rate limit exceeded. Please try again later.",
            status_code=status,
            details=details,
            provider=provider,
        )
    raise UpstreamError(
        f"{provider} API request failed with status {status}",
        status_code=status,
        details=details,
        provider=provider,
    )


def send_request(
    method: str,
    url: str,
    *,
    timeout: float,
    provider: str,
    headers: dict[str, str] | None = None,
    json_body: dict[str, Any] | None = None,
    debug: bool = False,
) -> requests.Response:
    """
    Perform one HTTP request and return the 2xx response.

    Raises:
        UpstreamTimeoutError: The request exceeded timeout.
        UpstreamConnectionError: The host could not be reached.
        UpstreamError (or a status-specific subclass): Any other failure.
    """
    logger.debug("%s request %s %s timeout=%s", provider, method, url, timeout)
    if debug and json_body is not None:
        logger.info(
            "%s request payload (image data truncated): %s",
            provider,
            json.dumps(truncate_for_log(json_body), indent=2, default=str),
        )
    start = time.time()
    try:
        response = requests.request(
            method, url, headers=headers, json=json_body, timeout=timeout
        )
    except requests.exceptions.Timeout as e:
        raise UpstreamTimeoutError(
            f"Request to {provider} timed out after {timeout} seconds.",
            original_error=e,
            provider=provider,
        ) from e
    except requests.exceptions.ConnectionError as e:
        raise UpstreamConnectionError(
            f"Could not connect to the {provider} API.",
            original_error=e,
            provider=provider,
        ) from e
    except requests.exceptions.RequestException as e:
        raise UpstreamError(
            f"Network error during {provider} request: {e}",
            details=str(e),
            provider=provider,
        ) from e
    elapsed = time.time() - start
    logger.debug(
        "%s response status=%s content_type=%s time=%.2fs",
        provider,
        response.status_code,
        response.headers.get("content-type", ""),
        elapsed,
    )
    if debug:
        content_type = response.headers.get("content-type", "")
        if content_type.startswith("image/"):
            logger.info("%s response: <image body, %s bytes>", provider, len(response.content))
        else:
            logger.info(
                "%s response (image data truncated): %s",
                provider,
                json.dumps(truncate_for_log(response_details(response)), indent=2, default=str),
            )
    raise_for_status(response, provider)
    return response


def parse_json(response: requests.Response, provider: str) -> Any:
    """Parse a 2xx response body as JSON, raising MalformedUpstreamResponseError on failure."""
    try:
        return response.json()
    except ValueError as e:
        raise MalformedUpstreamResponseError(
            f"Failed to parse {provider} response as JSON: {e}",
            status_code=response.status_code,
            details=response_details(response),
            provider=provider,
        ) from e
