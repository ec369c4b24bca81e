"""DI provider for the identity backend and its storage."""

import logging
from collections.abc import AsyncIterable

from dishka import provide
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from fedbroker.config import Config
from fedbroker.domain.auth.port.identity_backend import IdentityBackend
from fedbroker.domain.shared.error import ConfigurationError
from fedbroker.infrastructure.backend.local import JwtTokenSigner, SqlIdentityBackend
from fedbroker.infrastructure.persistence.database import (
    create_db_engine,
    create_session_factory,
    create_tables,
)
from fedbroker.util.di.base import Provider
from fedbroker.util.di.scope import Scope

logger = logging.getLogger(__name__)


class BackendProvider(Provider):
    """Selects the IdentityBackend named by ``backend.kind``."""

    # The engine connects lazily; a Firebase deployment never opens it
    @provide(scope=Scope.APP)
    async def get_engine(self, config: Config) -> AsyncIterable[AsyncEngine]:
        engine = create_db_engine(config.database)
        yield engine
        await engine.dispose()

    @provide(scope=Scope.APP)
    def get_session_factory(self, engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
        return create_session_factory(engine)

    @provide(scope=Scope.APP)
    async def get_identity_backend(
        self,
        config: Config,
        engine: AsyncEngine,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> IdentityBackend:
        """Provide the configured backend."""
        backend = config.backend
        if backend.kind == "firebase":
            # Optional dependency, only imported when selected
            from fedbroker.infrastructure.backend.firebase import (
                FirebaseIdentityBackend,
                initialize_firebase_app,
            )

            logger.info("Identity backend: firebase")
            return FirebaseIdentityBackend(
                app=initialize_firebase_app(backend.firebase),
                timeout_seconds=backend.timeout_seconds,
            )

        if backend.kind == "local":
            logger.info("Identity backend: local (%s)", engine.url.get_backend_name())
            signer = JwtTokenSigner(backend.local.jwt)
            if config.database.auto_create:
                await create_tables(engine)
            return SqlIdentityBackend(
                session_factory=session_factory,
                signer=signer,
                timeout_seconds=backend.timeout_seconds,
            )

        raise ConfigurationError(f"Unknown backend kind: {backend.kind}")
