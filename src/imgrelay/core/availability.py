"""
Availability resolution: which models are enabled and usable right now.

Everything here reads the environment at call time. Nothing is cached, so a
changed credential or enable flag is reflected by the very next query.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from imgrelay.core.registry import Model, Provider, ProviderRegistry

# The only flag value that switches a provider off
DISABLED_FLAG_VALUE = "false"


def _env(env: Mapping[str, str] | None) -> Mapping[str, str]:
    return os.environ if env is None else env


def is_enabled(provider: Provider, env: Mapping[str, str] | None = None) -> bool:
    """True unless the provider's enable flag is set to exactly "false"."""
    return _env(env).get(provider.enabled_var) != DISABLED_FLAG_VALUE


def get_credential(provider: Provider, env: Mapping[str, str] | None = None) -> str | None:
    """Return the provider's credential, or None if not required or not set."""
    if provider.credential_var is None:
        return None
    return _env(env).get(provider.credential_var) or None


def has_credential(provider: Provider, env: Mapping[str, str] | None = None) -> bool:
    """True if the provider needs no credential or its credential is non-empty."""
    if provider.credential_var is None:
        return True
    return bool(_env(env).get(provider.credential_var))


@dataclass(frozen=True)
class ResolvedModel:
    """Read-only view of a model combined with its provider's live status."""

    id: str
    name: str
    available: bool
    enabled: bool
    requires_key: bool
    free: bool
    provider: str
    description: str
    api_path: str
    model_version: str | None
    credential_var: str | None
    enabled_var: str

    @property
    def usable(self) -> bool:
        return self.enabled and self.available

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the wire field names used by GET /api/models."""
        return {
            "id": self.id,
            "name": self.name,
            "available": self.available,
            "enabled": self.enabled,
            "requires_key": self.requires_key,
            "free": self.free,
            "provider": self.provider,
            "description": self.description,
            "apiPath": self.api_path,
            "modelVersion": self.model_version,
            "providerConfig": {
                "apiKey": self.credential_var,
                "enabled": self.enabled_var,
            },
        }


def resolve(
    model: Model, provider: Provider, env: Mapping[str, str] | None = None
) -> ResolvedModel:
    """Project a model and its provider into a ResolvedModel for the current environment."""
    return ResolvedModel(
        id=model.id,
        name=f"{provider.name} ({model.name})",
        available=has_credential(provider, env),
        enabled=is_enabled(provider, env),
        requires_key=provider.requires_key,
        free=provider.free,
        provider=provider.id,
        description=model.description,
        api_path=model.api_path,
        model_version=model.model_version,
        credential_var=provider.credential_var,
        enabled_var=provider.enabled_var,
    )


def list_models(
    registry: ProviderRegistry, env: Mapping[str, str] | None = None
) -> list[ResolvedModel]:
    """Resolve every model in the registry, in definition order."""
    return [resolve(model, provider, env) for model, provider in registry.models()]
