"""
Provider adapters: protocol, registry, and one implementation per provider.
"""

from imgrelay.core.adapters.base import HTTPAdapter, ProviderAdapter
from imgrelay.core.adapters.craiyon import CraiyonAdapter
from imgrelay.core.adapters.deepinfra import DeepInfraAdapter
from imgrelay.core.adapters.huggingface import HuggingFaceAdapter
from imgrelay.core.adapters.openai import OpenAIAdapter
from imgrelay.core.adapters.registry import AdapterRegistry
from imgrelay.core.adapters.replicate import ReplicateAdapter
from imgrelay.core.adapters.stability import StabilityAdapter
from imgrelay.core.config import Config

PROVIDER_STABILITY = "stability"
PROVIDER_OPENAI = "openai"
PROVIDER_HUGGINGFACE = "huggingface"
PROVIDER_REPLICATE = "replicate"
PROVIDER_DEEPINFRA = "deepinfra"
PROVIDER_CRAIYON = "craiyon"


def build_adapters(config: Config | None = None) -> AdapterRegistry:
    """Return a registry with every built-in adapter, tuned from config."""
    config = config or Config()
    debug = config.debug_api
    reg = AdapterRegistry()
    reg.register(PROVIDER_STABILITY, StabilityAdapter(debug=debug))
    reg.register(PROVIDER_OPENAI, OpenAIAdapter(debug=debug))
    reg.register(PROVIDER_HUGGINGFACE, HuggingFaceAdapter(debug=debug))
    reg.register(
        PROVIDER_REPLICATE,
        ReplicateAdapter(
            debug=debug,
            poll_interval=config.poll_interval,
            max_attempts=config.poll_max_attempts,
        ),
    )
    reg.register(PROVIDER_DEEPINFRA, DeepInfraAdapter(debug=debug))
    reg.register(PROVIDER_CRAIYON, CraiyonAdapter(debug=debug))
    return reg


__all__ = [
    "AdapterRegistry",
    "CraiyonAdapter",
    "DeepInfraAdapter",
    "HTTPAdapter",
    "HuggingFaceAdapter",
    "OpenAIAdapter",
    "ProviderAdapter",
    "ReplicateAdapter",
    "StabilityAdapter",
    "build_adapters",
]
