"""Identity mapper: external profile -> stable internal identity."""

import logging

from fedbroker.domain.auth.error import IdentityConflict, IdentityUpsertFailed
from fedbroker.domain.auth.model.identity import InternalIdentity, NewIdentity
from fedbroker.domain.auth.model.profile import ExternalProfile
from fedbroker.domain.auth.model.value import Uid
from fedbroker.domain.auth.port.identity_backend import (
    IdentityBackend,
    UserLookup,
    UserNotFound,
)
from fedbroker.domain.shared.error import ExternalServiceError
from fedbroker.domain.shared.service import Service

logger = logging.getLogger(__name__)


class IdentityMapper(Service):
    """Resolves external profiles to internal identities, creating them on first sight.

    Concurrent first logins for the same person are reconciled through the
    backend's create-if-absent contract: the loser of the race gets
    IdentityConflict and re-reads the winner's record. No lock is held across
    backend calls.
    """

    _backend: IdentityBackend

    async def resolve(self, provider_id: str, profile: ExternalProfile) -> InternalIdentity:
        """Find or create the identity for `profile`.

        Existing identities are returned unmodified.

        Raises:
            IdentityUpsertFailed: Backend unreachable or creation rejected
        """
        uid = Uid.compose(provider_id, profile.external_id)

        found = await self._lookup(uid)
        if isinstance(found, InternalIdentity):
            logger.debug("Identity found: uid=%s", uid)
            return found

        fields = NewIdentity.from_profile(provider_id, profile)
        try:
            identity = await self._backend.create_user(uid, fields)
        except IdentityConflict:
            # Another login created it between our lookup and create
            logger.info("Identity created concurrently, re-reading: uid=%s", uid)
            found = await self._lookup(uid)
            if isinstance(found, UserNotFound):
                raise IdentityUpsertFailed(
                    f"Identity {uid} reported as existing but cannot be read"
                )
            return found
        except ExternalServiceError as e:
            logger.error("Identity creation failed: uid=%s, error=%s", uid, e.message)
            raise IdentityUpsertFailed(f"Failed to create identity {uid}") from e

        logger.info("New identity created: uid=%s, provider=%s", uid, provider_id)
        return identity

    async def _lookup(self, uid: Uid) -> UserLookup:
        try:
            return await self._backend.get_user(uid)
        except ExternalServiceError as e:
            logger.error("Identity lookup failed: uid=%s, error=%s", uid, e.message)
            raise IdentityUpsertFailed(f"Failed to look up identity {uid}") from e
