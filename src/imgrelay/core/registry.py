"""
Provider registry: the static catalogue of providers and the models they expose.

Providers are defined in src/imgrelay/providers.yaml, validated with a pydantic
schema and turned into frozen dataclasses. The registry is built once per
process and passed explicitly to the dispatcher, probe, server and UI; it is
never mutated afterwards.
"""

import importlib.resources
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic import ValidationError as SchemaError

from imgrelay.logging_config import get_logger
from imgrelay.utils.exceptions import InternalConfigurationError

logger = get_logger(__name__)

PROVIDERS_FILE = "providers.yaml"


class ModelSchema(BaseModel):
    """Schema for one model entry in providers.yaml."""

    model_config = {"extra": "forbid"}

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    api_path: str = Field(..., min_length=1)
    model_version: str | None = None
    description: str = ""


class ProviderSchema(BaseModel):
    """Schema for one provider entry in providers.yaml."""

    model_config = {"extra": "forbid"}

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    api_key: str | None = None
    enabled: str = Field(..., min_length=1)
    free: bool = False
    base_url: str = Field(..., min_length=1)
    test_endpoint: str | None = None
    models: list[ModelSchema] = Field(..., min_length=1)


class RegistrySchema(BaseModel):
    """Schema for providers.yaml."""

    providers: list[ProviderSchema]


@dataclass(frozen=True)
class Model:
    """A generation capability offered by exactly one provider."""

    id: str
    name: str
    api_path: str
    provider_id: str
    description: str = ""
    model_version: str | None = None


@dataclass(frozen=True)
class Provider:
    """A third-party image generation service and its models."""

    id: str
    name: str
    enabled_var: str
    base_url: str
    models: tuple[Model, ...]
    credential_var: str | None = None
    free: bool = False
    test_endpoint: str | None = None

    @property
    def requires_key(self) -> bool:
        return self.credential_var is not None

    def url_for(self, path: str) -> str:
        """Join the provider base URL and a relative path."""
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"


class ProviderRegistry:
    """Read-only lookups over the provider catalogue."""

    def __init__(self, providers: list[Provider] | tuple[Provider, ...]) -> None:
        self._providers: tuple[Provider, ...] = tuple(providers)
        self._by_id: dict[str, Provider] = {}
        self._models: dict[str, tuple[Model, Provider]] = {}
        for provider in self._providers:
            if provider.id in self._by_id:
                raise InternalConfigurationError(f"Duplicate provider id: {provider.id!r}")
            self._by_id[provider.id] = provider
            for model in provider.models:
                if model.id in self._models:
                    owner = self._models[model.id][1].id
                    raise InternalConfigurationError(
                        f"Duplicate model id {model.id!r} in providers {owner!r} and {provider.id!r}"
                    )
                if model.provider_id != provider.id:
                    raise InternalConfigurationError(
                        f"Model {model.id!r} claims provider {model.provider_id!r} "
                        f"but is listed under {provider.id!r}"
                    )
                self._models[model.id] = (model, provider)

    def list_providers(self) -> tuple[Provider, ...]:
        """Return providers in definition order."""
        return self._providers

    def provider_ids(self) -> list[str]:
        return [p.id for p in self._providers]

    def get_provider(self, provider_id: str) -> Provider | None:
        """Return the provider for provider_id, or None if unknown."""
        return self._by_id.get(provider_id)

    def get_model(self, model_id: str) -> tuple[Model, Provider] | None:
        """Return (model, owning provider) for model_id, or None if unknown."""
        return self._models.get(model_id)

    def models(self) -> Iterator[tuple[Model, Provider]]:
        """Iterate (model, provider) pairs in definition order."""
        for provider in self._providers:
            for model in provider.models:
                yield model, provider

    def __len__(self) -> int:
        return len(self._models)

    def __contains__(self, model_id: object) -> bool:
        return model_id in self._models


def build_registry(data: dict[str, Any]) -> ProviderRegistry:
    """
    Validate parsed providers data and build a registry from it.

    Args:
        data: Mapping with a top-level "providers" list (as in providers.yaml).

    Returns:
        A ProviderRegistry.

    Raises:
        InternalConfigurationError: If the data fails validation or ids collide.
    """
    try:
        schema = RegistrySchema(**data)
    except SchemaError as e:
        errors = "\n".join(
            f"  - {'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise InternalConfigurationError(f"Invalid provider configuration:\n{errors}") from e
    except TypeError as e:
        raise InternalConfigurationError(
            "Invalid provider configuration: expected a mapping with a 'providers' list."
        ) from e

    providers = []
    for p in schema.providers:
        models = tuple(
            Model(
                id=m.id,
                name=m.name,
                api_path=m.api_path,
                provider_id=p.id,
                description=m.description,
                model_version=m.model_version,
            )
            for m in p.models
        )
        providers.append(
            Provider(
                id=p.id,
                name=p.name,
                enabled_var=p.enabled,
                base_url=p.base_url,
                models=models,
                credential_var=p.api_key,
                free=p.free,
                test_endpoint=p.test_endpoint,
            )
        )
    return ProviderRegistry(providers)


# Module-level cache for the bundled registry
_registry: ProviderRegistry | None = None


def load_registry() -> ProviderRegistry:
    """Load the bundled providers.yaml into a registry. Cached after first call.

    Raises:
        InternalConfigurationError: If the file is missing, malformed or invalid.
    """
    global _registry
    if _registry is not None:
        return _registry

    try:
        with (
            importlib.resources.files("imgrelay")
            .joinpath(PROVIDERS_FILE)
            .open(encoding="utf-8") as f
        ):
            raw = f.read()
    except FileNotFoundError as e:
        raise InternalConfigurationError(
            f"{PROVIDERS_FILE} not found. This file is required and should be bundled with the package."
        ) from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise InternalConfigurationError(f"Failed to parse {PROVIDERS_FILE}: {e}") from e

    if not data:
        raise InternalConfigurationError(f"{PROVIDERS_FILE} is empty.")

    _registry = build_registry(data)
    logger.debug(
        "Loaded %d providers, %d models", len(_registry.list_providers()), len(_registry)
    )
    return _registry
