"""Login commands for the OAuth authorization-code flow."""

import logging
from dataclasses import dataclass

from fedbroker.domain.auth.error import (
    AuthorizationDenied,
    InvalidOrExpiredPKCEState,
    MissingCode,
    UnknownProvider,
)
from fedbroker.domain.auth.model.login import LoginAttempt, LoginStage
from fedbroker.domain.auth.port.identity_provider import IdentityProvider
from fedbroker.domain.auth.port.provider_registry import ProviderRegistry
from fedbroker.domain.auth.service.credential import CredentialIssuer
from fedbroker.domain.auth.service.identity import IdentityMapper
from fedbroker.domain.auth.service.responder import LoginResponse, RedirectResponder
from fedbroker.domain.shared.command import Command, CommandHandler, Result
from fedbroker.domain.shared.error import BrokerError, DomainError

logger = logging.getLogger(__name__)


def _lookup_provider(registry: ProviderRegistry, provider: str) -> IdentityProvider:
    identity_provider = registry.get(provider)
    if identity_provider is None:
        raise UnknownProvider(f"Unknown identity provider: {provider}")
    return identity_provider


class InitiateLogin(Command):
    """Command to start OAuth login flow."""

    provider: str


class InitiateLoginResult(Result):
    """Result containing authorization URL."""

    authorization_url: str


@dataclass
class InitiateLoginHandler(CommandHandler[InitiateLogin, InitiateLoginResult]):
    """Handler for InitiateLogin command."""

    provider_registry: ProviderRegistry

    async def run(self, cmd: InitiateLogin) -> InitiateLoginResult:
        identity_provider = _lookup_provider(self.provider_registry, cmd.provider)
        authorization_url = await identity_provider.build_authorize_url()
        logger.info("OAuth login initiated for provider=%s, redirecting to IdP", cmd.provider)
        return InitiateLoginResult(authorization_url=authorization_url)


class CompleteLogin(Command):
    """Command to complete OAuth flow from the provider callback."""

    provider: str
    code: str | None = None
    state: str | None = None
    error: str | None = None  # Set when the user declined at the provider


class CompleteLoginResult(Result):
    """Result containing the response to hand back to the client."""

    uid: str
    provider: str
    response: LoginResponse


@dataclass
class CompleteLoginHandler(CommandHandler[CompleteLogin, CompleteLoginResult]):
    """Handler for CompleteLogin command.

    Drives one attempt through code exchange, profile fetch, identity resolution,
    credential minting and response formatting. The first failing step ends the
    attempt; client-originated failures are raised before any upstream call.
    """

    provider_registry: ProviderRegistry
    identity_mapper: IdentityMapper
    credential_issuer: CredentialIssuer
    responder: RedirectResponder

    async def run(self, cmd: CompleteLogin) -> CompleteLoginResult:
        attempt = LoginAttempt(provider_id=cmd.provider, stage=LoginStage.REDIRECTED)
        try:
            return await self._complete(cmd, attempt)
        except BrokerError as e:
            if not attempt.is_finished:
                attempt.fail(e.code)
            log = logger.warning if isinstance(e, DomainError) else logger.error
            log(
                "OAuth login failed: provider=%s, stage=%s, kind=%s",
                cmd.provider,
                attempt.failed_at,
                e.code,
            )
            raise

    async def _complete(self, cmd: CompleteLogin, attempt: LoginAttempt) -> CompleteLoginResult:
        identity_provider = _lookup_provider(self.provider_registry, cmd.provider)

        if cmd.error:
            raise AuthorizationDenied("Authorization was declined at the identity provider")
        if not cmd.code:
            raise MissingCode("Authorization code not provided")
        attempt.advance(LoginStage.CODE_RECEIVED)

        try:
            access_token = await identity_provider.exchange_code(cmd.code, cmd.state)
        except InvalidOrExpiredPKCEState:
            raise
        except BrokerError:
            # The PKCE session was consumed before the token request failed
            if identity_provider.requires_pkce:
                attempt.advance(LoginStage.PKCE_CONSUMED)
            raise
        if identity_provider.requires_pkce:
            attempt.advance(LoginStage.PKCE_CONSUMED)
        attempt.advance(LoginStage.TOKEN_EXCHANGED)

        profile = await identity_provider.fetch_profile(access_token)
        attempt.advance(LoginStage.PROFILE_FETCHED)

        identity = await self.identity_mapper.resolve(cmd.provider, profile)
        attempt.advance(LoginStage.IDENTITY_RESOLVED)

        credential = await self.credential_issuer.mint(
            identity,
            {"username": profile.username, "email": profile.email},
        )
        attempt.advance(LoginStage.CREDENTIAL_ISSUED)

        response = self.responder.respond(credential, profile)
        attempt.advance(LoginStage.RESPONDED)

        logger.info(
            "OAuth complete, user authenticated: uid=%s, provider=%s",
            identity.uid,
            cmd.provider,
        )
        return CompleteLoginResult(
            uid=str(identity.uid),
            provider=cmd.provider,
            response=response,
        )
