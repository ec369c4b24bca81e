"""OAuth2 authorization-code identity provider adapters."""

import logging
from abc import abstractmethod
from typing import Any, ClassVar
from urllib.parse import urlencode

import httpx

from fedbroker.config import ProviderConfig
from fedbroker.domain.auth.error import (
    InvalidOrExpiredPKCEState,
    ProviderProfileFetchFailed,
    ProviderTokenExchangeFailed,
)
from fedbroker.domain.auth.model.pkce import CHALLENGE_METHOD
from fedbroker.domain.auth.model.profile import ExternalProfile
from fedbroker.domain.auth.model.value import ProviderKind, TokenAuthMethod
from fedbroker.domain.auth.port.identity_provider import IdentityProvider
from fedbroker.domain.auth.port.pkce_store import PKCESessionStore
from fedbroker.util.redact import redact

logger = logging.getLogger(__name__)


class OAuth2IdentityProvider(IdentityProvider):
    """Generic authorization-code adapter driven by a ProviderConfig.

    Subclasses only describe the provider's profile shape; endpoints, scopes,
    PKCE and client authentication all come from configuration.
    """

    profile_params: ClassVar[dict[str, str]] = {}

    def __init__(
        self,
        config: ProviderConfig,
        http_client: httpx.AsyncClient,
        pkce_store: PKCESessionStore | None = None,
    ) -> None:
        if config.requires_pkce and pkce_store is None:
            raise ValueError(f"Provider {config.id!r} requires PKCE but no session store given")
        self._config = config
        self._http = http_client
        self._pkce = pkce_store

    @property
    def provider_name(self) -> str:
        return self._config.id

    @property
    def requires_pkce(self) -> bool:
        return self._config.requires_pkce

    async def build_authorize_url(self) -> str:
        params = {
            "response_type": "code",
            "client_id": self._config.client_id,
            "redirect_uri": self._config.redirect_uri,
            "scope": self._config.scope,
        }
        if self._config.requires_pkce:
            assert self._pkce is not None
            session = await self._pkce.create()
            params.update(
                {
                    "state": session.state,
                    "code_challenge": session.code_challenge,
                    "code_challenge_method": CHALLENGE_METHOD,
                }
            )
        return f"{self._config.authorize_endpoint}?{urlencode(params)}"

    async def exchange_code(self, code: str, state: str | None = None) -> str:
        code_verifier: str | None = None
        if self._config.requires_pkce:
            assert self._pkce is not None
            code_verifier = await self._pkce.consume(state) if state else None
            if code_verifier is None:
                raise InvalidOrExpiredPKCEState("Invalid or expired login state")

        data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self._config.redirect_uri,
            "client_id": self._config.client_id,
        }
        auth: httpx.BasicAuth | None = None
        if self._config.token_auth == TokenAuthMethod.CLIENT_SECRET_BASIC:
            auth = httpx.BasicAuth(self._config.client_id, self._config.client_secret)
        else:
            data["client_secret"] = self._config.client_secret
        if code_verifier is not None:
            data["code_verifier"] = code_verifier

        name = self.provider_name
        try:
            response = await self._http.post(
                self._config.token_endpoint,
                data=data,
                auth=auth,
                headers={"Accept": "application/json"},
            )
        except httpx.RequestError as e:
            logger.error("%s token request failed: %s", name, type(e).__name__)
            raise ProviderTokenExchangeFailed(f"Failed to connect to {name}") from e

        if not response.is_success:
            logger.error(
                "%s token exchange failed: status=%d, body=%s",
                name,
                response.status_code,
                redact(response.text),
            )
            raise ProviderTokenExchangeFailed(
                f"{name} token exchange failed: {response.status_code}"
            )

        try:
            token_data = response.json()
        except ValueError as e:
            logger.error("%s token response is not JSON", name)
            raise ProviderTokenExchangeFailed(f"{name} returned a malformed token response") from e

        access_token = token_data.get("access_token") if isinstance(token_data, dict) else None
        if not access_token or not isinstance(access_token, str):
            logger.error("%s token response missing access_token", name)
            raise ProviderTokenExchangeFailed(f"{name} token response missing access_token")

        return access_token

    async def fetch_profile(self, access_token: str) -> ExternalProfile:
        name = self.provider_name
        try:
            response = await self._http.get(
                self._config.profile_endpoint,
                params=self.profile_params or None,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Accept": "application/json",
                },
            )
        except httpx.RequestError as e:
            logger.error("%s profile request failed: %s", name, type(e).__name__)
            raise ProviderProfileFetchFailed(f"Failed to connect to {name}") from e

        if not response.is_success:
            logger.error(
                "%s profile fetch failed: status=%d, body=%s",
                name,
                response.status_code,
                redact(response.text),
            )
            raise ProviderProfileFetchFailed(f"{name} profile fetch failed: {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise ProviderProfileFetchFailed(f"{name} returned a malformed profile") from e

        if not isinstance(payload, dict):
            raise ProviderProfileFetchFailed(f"{name} returned a malformed profile")

        profile = self._normalize_profile(payload)
        if profile is None:
            logger.error("%s profile missing id or username", name)
            raise ProviderProfileFetchFailed(f"{name} profile missing id or username")
        return profile

    @abstractmethod
    def _normalize_profile(self, payload: dict[str, Any]) -> ExternalProfile | None:
        """Map the provider's profile JSON; None if id or username is missing."""
        ...


def _str_or_none(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


class DiscordIdentityProvider(OAuth2IdentityProvider):
    """Discord: client secret in the form body, flat user object."""

    AVATAR_CDN = "https://cdn.discordapp.com/avatars"

    def _normalize_profile(self, payload: dict[str, Any]) -> ExternalProfile | None:
        # {"id": "80351110224678912", "username": "nelly", "global_name": "Nelly",
        #  "avatar": "8342729096ea3675442027381ff50dfe", "email": "nelly@discord.com"}
        external_id = _str_or_none(payload.get("id"))
        username = _str_or_none(payload.get("username"))
        if external_id is None or username is None:
            return None

        avatar_hash = _str_or_none(payload.get("avatar"))
        avatar_url = f"{self.AVATAR_CDN}/{external_id}/{avatar_hash}.png" if avatar_hash else None

        return ExternalProfile(
            provider_id=self.provider_name,
            external_id=external_id,
            username=username,
            display_name=_str_or_none(payload.get("global_name")) or username,
            avatar_url=avatar_url,
            email=_str_or_none(payload.get("email")),
        )


class XIdentityProvider(OAuth2IdentityProvider):
    """X (Twitter) OAuth 2.0: basic client auth plus PKCE, user wrapped in `data`."""

    profile_params: ClassVar[dict[str, str]] = {"user.fields": "profile_image_url"}

    def _normalize_profile(self, payload: dict[str, Any]) -> ExternalProfile | None:
        # {"data": {"id": "2244994945", "name": "X Dev", "username": "XDevelopers",
        #           "profile_image_url": "https://pbs.twimg.com/..."}}
        data = payload.get("data")
        if not isinstance(data, dict):
            return None
        external_id = _str_or_none(data.get("id"))
        username = _str_or_none(data.get("username"))
        if external_id is None or username is None:
            return None

        return ExternalProfile(
            provider_id=self.provider_name,
            external_id=external_id,
            username=username,
            display_name=_str_or_none(data.get("name")) or username,
            avatar_url=_str_or_none(data.get("profile_image_url")),
            email=None,  # Not part of the users.read scope
        )


PROVIDER_CLASSES: dict[ProviderKind, type[OAuth2IdentityProvider]] = {
    ProviderKind.DISCORD: DiscordIdentityProvider,
    ProviderKind.X: XIdentityProvider,
}


def build_identity_provider(
    config: ProviderConfig,
    http_client: httpx.AsyncClient,
    pkce_store: PKCESessionStore,
) -> OAuth2IdentityProvider:
    """Instantiate the adapter class for the provider's family."""
    provider_cls = PROVIDER_CLASSES[config.kind]
    return provider_cls(
        config=config,
        http_client=http_client,
        pkce_store=pkce_store if config.requires_pkce else None,
    )
