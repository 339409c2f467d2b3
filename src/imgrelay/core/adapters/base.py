"""
Provider adapter protocol and the shared synchronous implementation.

An adapter translates the generic generate(model, prompt) contract into one
provider's wire format and extracts an ImageResult from its response.
"""

from __future__ import annotations

from typing import Any, Protocol

import requests

from imgrelay.core.http import parse_json, send_request
from imgrelay.core.image_result import ImageResult
from imgrelay.core.registry import Model, Provider
from imgrelay.logging_config import get_logger, log_prompts
from imgrelay.utils.exceptions import MalformedUpstreamResponseError

logger = get_logger(__name__)

# Max prompt length for logging (large so prompts are effectively never truncated)
_PROMPT_LOG_MAX = 50_000


class ProviderAdapter(Protocol):
    """Protocol for provider adapters.

    Adapters perform the HTTP call(s) for one provider and return a unified
    ImageResult. They never retry.
    """

    def auth_headers(self, credential: str | None) -> dict[str, str]:
        """Headers carrying the credential in this provider's convention."""
        ...

    def extract_image(self, payload: Any) -> ImageResult:
        """Apply the provider's extraction rule to a decoded response payload."""
        ...

    def generate(
        self,
        model: Model,
        provider: Provider,
        prompt: str,
        credential: str | None,
    ) -> ImageResult:
        """Generate an image for prompt with model.

        May raise UpstreamError or any of its subclasses.
        """
        ...


def first_item(payload: Any, key: str, label: str) -> Any:
    """Return payload[key][0], raising MalformedUpstreamResponseError if absent."""
    items = payload.get(key) if isinstance(payload, dict) else None
    if not isinstance(items, list) or not items or not items[0]:
        raise MalformedUpstreamResponseError(
            f"No image was returned by {label}: response has no '{key}' entries.",
            details=payload,
            provider=label,
        )
    return items[0]


class HTTPAdapter:
    """Single POST request, JSON response. Subclasses supply payload and extraction."""

    label: str = ""
    timeout: int = 60
    auth_scheme: str | None = "Bearer"

    def __init__(self, debug: bool = False) -> None:
        self.debug = debug

    def auth_headers(self, credential: str | None) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.auth_scheme and credential:
            headers["Authorization"] = f"{self.auth_scheme} {credential}"
        return headers

    def build_payload(self, model: Model, prompt: str) -> dict[str, Any]:
        raise NotImplementedError

    def extract_image(self, payload: Any) -> ImageResult:
        raise NotImplementedError

    def parse_response(self, response: requests.Response) -> ImageResult:
        return self.extract_image(parse_json(response, self.label))

    def _log_start(self, model: Model, prompt: str) -> None:
        logger.info("Generating image via %s model=%s", self.label, model.id)
        if log_prompts():
            truncated = (
                prompt if len(prompt) <= _PROMPT_LOG_MAX else prompt[:_PROMPT_LOG_MAX] + "..."
            )
            logger.info("Prompt (used): %s", truncated)

    def generate(
        self,
        model: Model,
        provider: Provider,
        prompt: str,
        credential: str | None,
    ) -> ImageResult:
        self._log_start(model, prompt)
        response = send_request(
            "POST",
            provider.url_for(model.api_path),
            headers=self.auth_headers(credential),
            json_body=self.build_payload(model, prompt),
            timeout=self.timeout,
            provider=self.label,
            debug=self.debug,
        )
        logger.info("%s response received model=%s", self.label, model.id)
        return self.parse_response(response)
