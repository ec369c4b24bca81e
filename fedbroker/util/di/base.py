"""Base class for fedbroker DI providers."""

from dishka import Provider as DishkaProvider

from fedbroker.util.di.scope import Scope


class Provider(DishkaProvider):
    """Dishka provider defaulting to application scope.

    Request-bound dependencies opt in with ``scope=Scope.UOW``.
    """

    scope = Scope.APP
