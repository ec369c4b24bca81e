"""Self-hosted identity backend: SQL identity store plus a JWT signer."""

import asyncio
import logging
import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from sqlalchemy import insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fedbroker.config import JwtConfig
from fedbroker.domain.auth.error import IdentityConflict
from fedbroker.domain.auth.model.identity import InternalIdentity, NewIdentity
from fedbroker.domain.auth.model.value import Uid
from fedbroker.domain.auth.port.identity_backend import (
    IdentityBackend,
    UserLookup,
    UserNotFound,
)
from fedbroker.domain.shared.error import ConfigurationError, ExternalServiceError
from fedbroker.infrastructure.persistence.tables import identities_table

logger = logging.getLogger(__name__)

# Claims set by the signer; callers cannot override them
RESERVED_CLAIMS = frozenset({"sub", "iat", "exp", "iss", "aud", "jti"})


def _row_to_identity(row: dict) -> InternalIdentity:
    """Convert a database row to an InternalIdentity model."""
    return InternalIdentity(
        uid=Uid(row["uid"]),
        provider_id=row["provider_id"],
        external_id=row["external_id"],
        display_name=row["display_name"],
        avatar_url=row["avatar_url"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _identity_to_dict(identity: InternalIdentity) -> dict:
    """Convert an InternalIdentity model to a database row dict."""
    return {
        "uid": str(identity.uid),
        "provider_id": identity.provider_id,
        "external_id": identity.external_id,
        "display_name": identity.display_name,
        "avatar_url": identity.avatar_url,
        "created_at": identity.created_at,
        "updated_at": identity.updated_at,
    }


class JwtTokenSigner:
    """Signs custom tokens with the broker's own key (HS256 by default)."""

    def __init__(self, config: JwtConfig) -> None:
        if not config.secret:
            raise ConfigurationError(
                "backend.local.jwt.secret must be set for the local backend",
                code="missing_jwt_secret",
            )
        self._config = config

    def sign(self, uid: Uid, claims: dict[str, Any]) -> str:
        """Create a JWT for `uid`.

        Args:
            uid: Subject of the token
            claims: Extra claims; reserved registered claims are ignored

        Returns:
            Encoded JWT string
        """
        now = datetime.now(UTC)
        expires_at = now + timedelta(minutes=self._config.expire_minutes)

        payload: dict[str, Any] = {
            key: value for key, value in claims.items() if key not in RESERVED_CLAIMS
        }
        payload.update(
            {
                "sub": str(uid),
                "iss": self._config.issuer,
                "aud": self._config.audience,
                "iat": int(now.timestamp()),
                "exp": int(expires_at.timestamp()),
                "jti": secrets.token_hex(16),
            }
        )

        return jwt.encode(payload, self._config.secret, algorithm=self._config.algorithm)


class SqlIdentityBackend(IdentityBackend):
    """IdentityBackend over an SQL table, with locally signed tokens.

    Each call runs in its own short session so the backend can be shared for
    the application lifetime. Create-if-absent relies on the table's primary
    key: a duplicate insert surfaces as IdentityConflict.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        signer: JwtTokenSigner,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._session_factory = session_factory
        self._signer = signer
        self._timeout = timeout_seconds

    async def get_user(self, uid: Uid) -> UserLookup:
        stmt = select(identities_table).where(identities_table.c.uid == str(uid))
        try:
            async with self._session_factory() as session:
                result = await asyncio.wait_for(session.execute(stmt), self._timeout)
                row = result.mappings().first()
        except TimeoutError as e:
            raise ExternalServiceError(f"Identity lookup timed out for {uid}") from e
        except SQLAlchemyError as e:
            logger.error("Identity lookup failed: uid=%s, error=%s", uid, type(e).__name__)
            raise ExternalServiceError(f"Identity lookup failed for {uid}") from e

        return _row_to_identity(dict(row)) if row else UserNotFound(uid=uid)

    async def create_user(self, uid: Uid, fields: NewIdentity) -> InternalIdentity:
        identity = InternalIdentity.create(uid, fields)
        stmt = insert(identities_table).values(**_identity_to_dict(identity))
        try:
            async with self._session_factory() as session:
                await asyncio.wait_for(session.execute(stmt), self._timeout)
                await session.commit()
        except IntegrityError as e:
            raise IdentityConflict(f"Identity {uid} already exists") from e
        except TimeoutError as e:
            raise ExternalServiceError(f"Identity creation timed out for {uid}") from e
        except SQLAlchemyError as e:
            logger.error("Identity creation failed: uid=%s, error=%s", uid, type(e).__name__)
            raise ExternalServiceError(f"Identity creation failed for {uid}") from e

        return identity

    async def create_custom_token(self, uid: Uid, claims: dict[str, Any]) -> str:
        try:
            return self._signer.sign(uid, claims)
        except (jwt.PyJWTError, TypeError) as e:
            logger.error("Token signing failed: uid=%s, error=%s", uid, type(e).__name__)
            raise ExternalServiceError(f"Token signing failed for {uid}") from e
