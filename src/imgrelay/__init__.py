"""
imgrelay - text-to-image provider relay

A small service that forwards a prompt to one of several third-party
text-to-image providers (Stability AI, OpenAI, Hugging Face, Replicate,
DeepInfra, Craiyon) and returns a normalized image reference.

Library usage:
- generate_image(prompt, model=...) uses the bundled provider registry and the
  shared config; build a Dispatcher yourself to inject a registry, adapters or
  an environment mapping.
- Provider API keys and ENABLE_* flags are read from the environment on every
  request; list_models() reports the current state.
- Logging: control verbosity with set_verbosity(0|1|2) or configure_logging(verbose_level, quiet);
  IMGRELAY_VERBOSITY env (0/1/2) is read when the CLI or server starts.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("imgrelay")
except PackageNotFoundError:
    # Package is not installed (e.g., running from source in development)
    __version__ = "0.0.0.dev"

from imgrelay.core.availability import ResolvedModel, list_models, resolve
from imgrelay.core.config import DEFAULT_MODEL, Config, get_config, set_config
from imgrelay.core.dispatcher import Dispatcher, build_dispatcher, generate_image
from imgrelay.core.image_result import ImageResult
from imgrelay.core.probe import ProbeResult, probe_provider
from imgrelay.core.registry import Model, Provider, ProviderRegistry, load_registry
from imgrelay.logging_config import configure_logging, set_verbosity
from imgrelay.utils.exceptions import (
    AsyncJobFailedError,
    AsyncJobTimeoutError,
    AuthenticationError,
    BillingLimitError,
    ConfigurationError,
    ImgrelayError,
    InternalConfigurationError,
    InvalidRequestError,
    MalformedUpstreamResponseError,
    MissingCredentialError,
    ModelDisabledError,
    PermissionDeniedError,
    RateLimitError,
    UpstreamConnectionError,
    UpstreamError,
    UpstreamTimeoutError,
)

__all__ = [
    "AsyncJobFailedError",
    "AsyncJobTimeoutError",
    "AuthenticationError",
    "BillingLimitError",
    "Config",
    "ConfigurationError",
    "DEFAULT_MODEL",
    "Dispatcher",
    "ImageResult",
    "ImgrelayError",
    "InternalConfigurationError",
    "InvalidRequestError",
    "MalformedUpstreamResponseError",
    "MissingCredentialError",
    "Model",
    "ModelDisabledError",
    "PermissionDeniedError",
    "ProbeResult",
    "Provider",
    "ProviderRegistry",
    "RateLimitError",
    "ResolvedModel",
    "UpstreamConnectionError",
    "UpstreamError",
    "UpstreamTimeoutError",
    "__version__",
    "build_dispatcher",
    "configure_logging",
    "generate_image",
    "get_config",
    "list_models",
    "load_registry",
    "probe_provider",
    "resolve",
    "set_config",
    "set_verbosity",
]
