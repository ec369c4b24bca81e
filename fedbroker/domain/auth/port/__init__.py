"""Auth domain ports."""

from .identity_backend import IdentityBackend, UserLookup, UserNotFound
from .identity_provider import IdentityProvider
from .pkce_store import PKCESessionStore
from .provider_registry import ProviderRegistry

__all__ = [
    "IdentityBackend",
    "IdentityProvider",
    "PKCESessionStore",
    "ProviderRegistry",
    "UserLookup",
    "UserNotFound",
]
