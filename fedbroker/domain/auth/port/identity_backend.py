"""Identity/credential backend port.

The backend owns trust, signing keys and persistence. The broker only looks
identities up, creates them on first sight, and asks for signed tokens.
"""

from abc import abstractmethod
from dataclasses import dataclass
from typing import Any, Protocol

from fedbroker.domain.auth.model.identity import InternalIdentity, NewIdentity
from fedbroker.domain.auth.model.value import Uid
from fedbroker.domain.shared.port import Port


@dataclass(frozen=True)
class UserNotFound:
    """Lookup result: the backend has no identity under this uid."""

    uid: Uid


UserLookup = InternalIdentity | UserNotFound


class IdentityBackend(Port, Protocol):
    """Port for the external identity store and token signer.

    Transport or backend failures raise ExternalServiceError; absence is the
    UserNotFound result, never an exception.
    """

    @abstractmethod
    async def get_user(self, uid: Uid) -> UserLookup:
        """Look up an identity by uid."""
        ...

    @abstractmethod
    async def create_user(self, uid: Uid, fields: NewIdentity) -> InternalIdentity:
        """Create an identity if absent.

        Raises:
            IdentityConflict: An identity with this uid already exists
            ExternalServiceError: The backend is unreachable or rejected the request
        """
        ...

    @abstractmethod
    async def create_custom_token(self, uid: Uid, claims: dict[str, Any]) -> str:
        """Sign a short-lived token for `uid` carrying `claims`."""
        ...
