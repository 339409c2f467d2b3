"""
Request dispatch: validate a generation request and route it to an adapter.

Validation runs in a fixed order and fails fast; no network call happens
before every check has passed:

1. prompt missing or blank       -> InvalidRequestError
2. model id not in the registry  -> InvalidRequestError
3. provider disabled by its flag -> ModelDisabledError
4. required credential missing   -> MissingCredentialError
5. no adapter for the provider   -> InternalConfigurationError

Adapter failures propagate unchanged.
"""

import dataclasses
import time
from collections.abc import Mapping

from imgrelay.core.adapters import AdapterRegistry, build_adapters
from imgrelay.core.availability import get_credential, resolve
from imgrelay.core.config import Config, get_config
from imgrelay.core.image_result import ImageResult
from imgrelay.core.registry import ProviderRegistry, load_registry
from imgrelay.logging_config import get_logger
from imgrelay.utils.exceptions import (
    InternalConfigurationError,
    InvalidRequestError,
    MissingCredentialError,
    ModelDisabledError,
)

logger = get_logger(__name__)


class Dispatcher:
    """Routes generation requests from a model id to the owning provider's adapter."""

    def __init__(
        self,
        registry: ProviderRegistry,
        adapters: AdapterRegistry,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self.registry = registry
        self.adapters = adapters
        # None means "read os.environ at call time"
        self._env = env

    def generate(self, model_id: str | None, prompt: str | None) -> ImageResult:
        """
        Generate an image for prompt with the given model.

        Returns:
            ImageResult carrying the image reference and request metadata.

        Raises:
            InvalidRequestError: Blank prompt or unknown model.
            ModelDisabledError: The provider is switched off.
            MissingCredentialError: The provider needs an API key that is not set.
            InternalConfigurationError: No adapter is registered for the provider.
            UpstreamError: Any failure reported by the adapter.
        """
        if not prompt or not prompt.strip():
            raise InvalidRequestError("Prompt is required", field="prompt")

        found = self.registry.get_model(model_id) if model_id else None
        if found is None:
            raise InvalidRequestError(f"Invalid model specified: {model_id}", field="model")
        model, provider = found

        view = resolve(model, provider, self._env)
        if not view.enabled:
            raise ModelDisabledError(
                f"The model {model.id} is currently disabled",
                model_id=model.id,
                flag_var=provider.enabled_var,
            )
        if view.requires_key and not view.available:
            raise MissingCredentialError(
                f"{view.name} API key is missing",
                provider_id=provider.id,
                credential_var=provider.credential_var or "",
            )

        adapter = self.adapters.get(provider.id)
        if adapter is None:
            raise InternalConfigurationError(f"Unsupported provider: {provider.id}")

        logger.info("Using model: %s from provider: %s", model.id, provider.id)
        start = time.time()
        result = adapter.generate(model, provider, prompt, get_credential(provider, self._env))
        elapsed = time.time() - start
        logger.info("Generated in %.1fs model=%s", elapsed, model.id)
        return dataclasses.replace(
            result,
            model_used=model.id,
            provider=provider.id,
            prompt_used=prompt,
            generation_time=elapsed,
        )


def build_dispatcher(config: Config | None = None) -> Dispatcher:
    """Dispatcher over the bundled registry and the built-in adapters."""
    config = config or get_config()
    return Dispatcher(load_registry(), build_adapters(config))


def generate_image(
    prompt: str,
    model: str | None = None,
    config: Config | None = None,
    dispatcher: Dispatcher | None = None,
) -> ImageResult:
    """
    Generate an image from a text prompt.

    Args:
        prompt: Text prompt describing the desired image
        model: Model id (defaults to config.default_model)
        config: Optional config; if None, uses shared config from get_config()
        dispatcher: Optional dispatcher; if None, one is built from config

    Returns:
        ImageResult with the image reference and metadata
    """
    config = config or get_config()
    dispatcher = dispatcher or build_dispatcher(config)
    return dispatcher.generate(model or config.default_model, prompt)
