"""Provider registry port for the auth domain."""

from abc import abstractmethod
from typing import Protocol

from fedbroker.domain.auth.port.identity_provider import IdentityProvider
from fedbroker.domain.shared.port import Port


class ProviderRegistry(Port, Protocol):
    """Registry of configured identity providers, keyed by provider id."""

    @abstractmethod
    def get(self, provider: str) -> IdentityProvider | None:
        """Get an identity provider by id, or None if not configured."""
        ...

    @abstractmethod
    def available_providers(self) -> list[str]:
        """Ids of all configured providers."""
        ...

    def is_available(self, provider: str) -> bool:
        return provider in self.available_providers()
