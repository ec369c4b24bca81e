"""Auth domain models."""

from .credential import Credential
from .identity import InternalIdentity, NewIdentity
from .login import LoginAttempt, LoginStage
from .pkce import PKCESession, compute_code_challenge
from .profile import ExternalProfile
from .value import ProviderKind, ResponseMode, TokenAuthMethod, Uid

__all__ = [
    "Credential",
    "ExternalProfile",
    "InternalIdentity",
    "LoginAttempt",
    "LoginStage",
    "NewIdentity",
    "PKCESession",
    "ProviderKind",
    "ResponseMode",
    "TokenAuthMethod",
    "Uid",
    "compute_code_challenge",
]
