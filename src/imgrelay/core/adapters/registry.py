"""
Registry for provider adapters.

Maps provider ids (e.g. "stability", "replicate") to adapter implementations.
"""

from imgrelay.core.adapters.base import ProviderAdapter


class AdapterRegistry:
    """Registry mapping provider id to ProviderAdapter implementation."""

    def __init__(self) -> None:
        self._impls: dict[str, ProviderAdapter] = {}

    def register(self, provider_id: str, impl: ProviderAdapter) -> None:
        """Register an adapter. Replaces any adapter already registered for the id."""
        self._impls[provider_id] = impl

    def get(self, provider_id: str) -> ProviderAdapter | None:
        """Return the adapter for provider_id, or None if unknown."""
        return self._impls.get(provider_id)

    def provider_ids(self) -> list[str]:
        """Return the list of registered provider ids."""
        return list(self._impls.keys())

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._impls
