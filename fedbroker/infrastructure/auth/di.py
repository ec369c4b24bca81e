"""DI provider for auth infrastructure."""

import logging
from collections.abc import AsyncIterable

import httpx
from dishka import provide

from fedbroker.config import Config, HttpConfig
from fedbroker.domain.auth.port.identity_provider import IdentityProvider
from fedbroker.domain.auth.port.pkce_store import PKCESessionStore
from fedbroker.domain.auth.port.provider_registry import ProviderRegistry
from fedbroker.infrastructure.auth.oauth import build_identity_provider
from fedbroker.infrastructure.auth.pkce_store import InMemoryPKCESessionStore
from fedbroker.infrastructure.auth.provider_registry import InMemoryProviderRegistry
from fedbroker.util.di.base import Provider
from fedbroker.util.di.scope import Scope

logger = logging.getLogger(__name__)


def http_timeout(config: HttpConfig) -> httpx.Timeout:
    return httpx.Timeout(
        connect=config.connect_timeout,
        read=config.read_timeout,
        write=config.write_timeout,
        pool=config.pool_timeout,
    )


class AuthInfraProvider(Provider):
    """DI provider for provider adapters and the PKCE session store."""

    @provide(scope=Scope.APP)
    async def get_auth_http_client(self, config: Config) -> AsyncIterable[httpx.AsyncClient]:
        """Shared HTTP client for provider calls (connection pooling)."""
        async with httpx.AsyncClient(timeout=http_timeout(config.http)) as client:
            yield client

    @provide(scope=Scope.APP)
    def get_pkce_store(self, config: Config) -> PKCESessionStore:
        return InMemoryPKCESessionStore(ttl_seconds=config.broker.pkce_ttl_seconds)

    @provide(scope=Scope.APP)
    def get_provider_registry(
        self,
        config: Config,
        http_client: httpx.AsyncClient,
        pkce_store: PKCESessionStore,
    ) -> ProviderRegistry:
        """Provide ProviderRegistry with every configured identity provider."""
        providers: dict[str, IdentityProvider] = {}
        for provider_id, provider_config in config.providers.items():
            if not provider_config.client_id:
                logger.warning("Provider %s has no client_id, skipping", provider_id)
                continue
            providers[provider_id] = build_identity_provider(
                provider_config, http_client, pkce_store
            )

        logger.info("Identity providers configured: %s", ", ".join(providers) or "none")
        return InMemoryProviderRegistry(providers)
