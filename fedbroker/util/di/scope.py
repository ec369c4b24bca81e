"""Custom Dishka scopes for fedbroker."""

from dishka import BaseScope, new_scope


class Scope(BaseScope):  # type: ignore[misc]  # BaseScope is designed to be subclassed
    """Dependency injection scopes.

    Hierarchy: APP -> UOW

    - APP: Application lifetime (HTTP client, PKCE store, backend, registry)
    - UOW: Unit of Work (one HTTP request / one login step)
    """

    APP = new_scope("APP")
    UOW = new_scope("UOW")
