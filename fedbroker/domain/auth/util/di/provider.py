"""DI provider for auth domain."""

from dishka import provide

from fedbroker.config import Config
from fedbroker.domain.auth.command.login import (
    CompleteLoginHandler,
    InitiateLoginHandler,
)
from fedbroker.domain.auth.port.identity_backend import IdentityBackend
from fedbroker.domain.auth.service.credential import CredentialIssuer
from fedbroker.domain.auth.service.identity import IdentityMapper
from fedbroker.domain.auth.service.responder import RedirectResponder
from fedbroker.util.di.base import Provider
from fedbroker.util.di.scope import Scope


class AuthProvider(Provider):
    """DI provider for auth domain services and handlers."""

    # Command Handlers
    initiate_login_handler = provide(InitiateLoginHandler, scope=Scope.UOW)
    complete_login_handler = provide(CompleteLoginHandler, scope=Scope.UOW)

    # Services
    @provide(scope=Scope.APP)
    def get_identity_mapper(self, backend: IdentityBackend) -> IdentityMapper:
        return IdentityMapper(_backend=backend)

    @provide(scope=Scope.APP)
    def get_credential_issuer(self, backend: IdentityBackend) -> CredentialIssuer:
        return CredentialIssuer(_backend=backend)

    @provide(scope=Scope.APP)
    def get_redirect_responder(self, config: Config) -> RedirectResponder:
        """Provide RedirectResponder for the configured response mode."""
        return RedirectResponder(
            _mode=config.broker.response_mode,
            _deep_link_scheme=config.broker.deep_link_scheme,
        )
