"""Auth domain services."""

from .credential import CredentialIssuer
from .identity import IdentityMapper
from .responder import DeepLinkRedirect, DirectLoginBody, LoginResponse, RedirectResponder

__all__ = [
    "CredentialIssuer",
    "DeepLinkRedirect",
    "DirectLoginBody",
    "IdentityMapper",
    "LoginResponse",
    "RedirectResponder",
]
