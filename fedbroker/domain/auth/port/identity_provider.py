"""Identity provider port for the auth domain."""

from abc import abstractmethod
from typing import Protocol

from fedbroker.domain.auth.model.profile import ExternalProfile
from fedbroker.domain.shared.port import Port


class IdentityProvider(Port, Protocol):
    """Port for an external OAuth2 authorization-code provider.

    Implementations are adapters in infrastructure/auth/ (e.g., DiscordIdentityProvider).
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Unique identifier for this provider (e.g., 'discord')."""
        ...

    @property
    @abstractmethod
    def requires_pkce(self) -> bool:
        """Whether the authorize/token steps are bound by a PKCE session."""
        ...

    @abstractmethod
    async def build_authorize_url(self) -> str:
        """Build the URL to redirect the user to for authentication.

        For PKCE providers this creates a PKCE session first and embeds its
        state and S256 challenge in the URL.
        """
        ...

    @abstractmethod
    async def exchange_code(self, code: str, state: str | None = None) -> str:
        """Exchange an authorization code for an access token.

        Args:
            code: Authorization code from the provider callback
            state: OAuth state from the callback (required for PKCE providers)

        Returns:
            The provider access token

        Raises:
            InvalidOrExpiredPKCEState: PKCE session missing; no network call was made
            ProviderTokenExchangeFailed: The token request failed
        """
        ...

    @abstractmethod
    async def fetch_profile(self, access_token: str) -> ExternalProfile:
        """Fetch and normalise the authenticated user's profile.

        Raises:
            ProviderProfileFetchFailed: The request failed or the profile lacks id/username
        """
        ...
