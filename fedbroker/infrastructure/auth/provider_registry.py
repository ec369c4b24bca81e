"""Provider registry implementation."""

from fedbroker.domain.auth.port.identity_provider import IdentityProvider
from fedbroker.domain.auth.port.provider_registry import ProviderRegistry


class InMemoryProviderRegistry(ProviderRegistry):
    """Provider registry populated once at startup from configuration."""

    def __init__(self, providers: dict[str, IdentityProvider] | None = None) -> None:
        self._providers: dict[str, IdentityProvider] = dict(providers or {})

    def get(self, provider: str) -> IdentityProvider | None:
        return self._providers.get(provider)

    def available_providers(self) -> list[str]:
        return sorted(self._providers)

    def register(self, provider: IdentityProvider) -> None:
        """Register a provider under its own name, replacing any previous one."""
        self._providers[provider.provider_name] = provider
