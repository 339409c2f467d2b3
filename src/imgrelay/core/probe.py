"""
Provider health probe.

Issues one lightweight GET against a provider's test endpoint to confirm that
it is reachable and that the configured credential is accepted.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from imgrelay.core.adapters import AdapterRegistry
from imgrelay.core.availability import get_credential
from imgrelay.core.http import response_details, send_request
from imgrelay.core.registry import ProviderRegistry
from imgrelay.logging_config import get_logger
from imgrelay.utils.exceptions import (
    InternalConfigurationError,
    InvalidRequestError,
    MissingCredentialError,
)

logger = get_logger(__name__)

DEFAULT_PROBE_TIMEOUT = 10


@dataclass
class ProbeResult:
    """Outcome of a provider probe."""

    success: bool
    message: str
    data: Any = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"success": self.success, "message": self.message}
        if self.data is not None:
            out["data"] = self.data
        return out


def probe_provider(
    provider_id: str,
    registry: ProviderRegistry,
    adapters: AdapterRegistry,
    env: Mapping[str, str] | None = None,
    timeout: int = DEFAULT_PROBE_TIMEOUT,
) -> ProbeResult:
    """
    Check that a provider is reachable with the configured credential.

    Skips the network entirely when the provider needs no key or defines no
    test endpoint.

    Raises:
        InvalidRequestError: Unknown provider id.
        MissingCredentialError: The provider needs a key that is not set.
        UpstreamError: The probe request failed.
    """
    provider = registry.get_provider(provider_id)
    if provider is None:
        raise InvalidRequestError(f"Invalid provider: {provider_id}", field="provider")

    if not provider.requires_key:
        return ProbeResult(True, f"{provider.name} does not require an API key")

    credential = get_credential(provider, env)
    if not credential:
        raise MissingCredentialError(
            f"{provider.name} API key is missing",
            provider_id=provider.id,
            credential_var=provider.credential_var or "",
        )

    if not provider.test_endpoint:
        return ProbeResult(True, f"No test endpoint defined for {provider.name}")

    adapter = adapters.get(provider.id)
    if adapter is None:
        raise InternalConfigurationError(f"Unsupported provider: {provider.id}")

    logger.info("Probing %s", provider.name)
    response = send_request(
        "GET",
        provider.url_for(provider.test_endpoint),
        headers=adapter.auth_headers(credential),
        timeout=timeout,
        provider=provider.name,
    )
    return ProbeResult(
        True, f"{provider.name} API connection successful", response_details(response)
    )
