from dishka import AsyncContainer, from_context, make_async_container
from dishka import Provider as DishkaProvider

from fedbroker.config import Config
from fedbroker.domain.auth.util.di import AuthProvider
from fedbroker.infrastructure.auth.di import AuthInfraProvider
from fedbroker.infrastructure.backend.di import BackendProvider
from fedbroker.util.di.base import Provider
from fedbroker.util.di.scope import Scope


class ConfigProvider(Provider):
    config = from_context(provides=Config, scope=Scope.APP)


def create_container(config: Config | None = None, *providers: DishkaProvider) -> AsyncContainer:
    """Build the application container.

    Extra ``providers`` are registered last and override the defaults, which
    is how tests swap in fakes for the backend or the HTTP client.
    """
    if config is None:
        # Pydantic Settings populates from env vars at runtime
        config = Config()  # type: ignore[call-arg]

    return make_async_container(
        ConfigProvider(),
        BackendProvider(),
        AuthInfraProvider(),
        AuthProvider(),
        *providers,
        context={Config: config},
        scopes=Scope,  # type: ignore[arg-type]  # Custom scope class
    )
