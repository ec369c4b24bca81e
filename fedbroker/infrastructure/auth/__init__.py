"""Auth infrastructure - provider adapters, PKCE store and DI provider.

Import modules directly:
    from fedbroker.infrastructure.auth.di import AuthInfraProvider
    from fedbroker.infrastructure.auth.oauth import DiscordIdentityProvider, XIdentityProvider
"""

__all__: list[str] = []
