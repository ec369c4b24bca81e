"""Firebase Authentication backend (requires the ``firebase`` extra)."""

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, TypeVar

import firebase_admin
from firebase_admin import auth, credentials
from firebase_admin.exceptions import FirebaseError

from fedbroker.config import FirebaseConfig
from fedbroker.domain.auth.error import IdentityConflict
from fedbroker.domain.auth.model.identity import InternalIdentity, NewIdentity
from fedbroker.domain.auth.model.value import Uid
from fedbroker.domain.auth.port.identity_backend import (
    IdentityBackend,
    UserLookup,
    UserNotFound,
)
from fedbroker.domain.shared.error import ExternalServiceError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def initialize_firebase_app(config: FirebaseConfig) -> firebase_admin.App:
    """Initialize (or reuse) the named Firebase app."""
    try:
        return firebase_admin.get_app(config.app_name)
    except ValueError:
        pass

    credential = (
        credentials.Certificate(config.credentials_file)
        if config.credentials_file
        else credentials.ApplicationDefault()
    )
    options = {"projectId": config.project_id} if config.project_id else None
    logger.info("Initializing Firebase app %s", config.app_name)
    return firebase_admin.initialize_app(credential, options, name=config.app_name)


def _from_timestamp_ms(value: int | None) -> datetime:
    if value is None:
        return datetime.now(UTC)
    return datetime.fromtimestamp(value / 1000, tz=UTC)


def _record_to_identity(uid: Uid, record: auth.UserRecord) -> InternalIdentity:
    """Convert a Firebase UserRecord to an InternalIdentity."""
    metadata = record.user_metadata
    created_at = _from_timestamp_ms(metadata.creation_timestamp if metadata else None)
    return InternalIdentity(
        uid=uid,
        provider_id=uid.provider_id,
        external_id=uid.external_id,
        display_name=record.display_name,
        avatar_url=record.photo_url,
        created_at=created_at,
        updated_at=created_at,
    )


class FirebaseIdentityBackend(IdentityBackend):
    """IdentityBackend over Firebase Authentication.

    The Admin SDK is synchronous, so every call runs in a worker thread and
    is bounded by ``timeout_seconds``.
    """

    def __init__(self, app: firebase_admin.App, timeout_seconds: float = 10.0) -> None:
        self._app = app
        self._timeout = timeout_seconds

    async def _call(self, operation: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(fn, *args, app=self._app, **kwargs),
                self._timeout,
            )
        except TimeoutError as e:
            logger.error("Firebase %s timed out after %.1fs", operation, self._timeout)
            raise ExternalServiceError(f"Firebase {operation} timed out") from e

    async def get_user(self, uid: Uid) -> UserLookup:
        try:
            record = await self._call("get_user", auth.get_user, str(uid))
        except auth.UserNotFoundError:
            return UserNotFound(uid=uid)
        except FirebaseError as e:
            logger.error("Firebase get_user failed: uid=%s, code=%s", uid, e.code)
            raise ExternalServiceError(f"Firebase lookup failed for {uid}") from e
        return _record_to_identity(uid, record)

    async def create_user(self, uid: Uid, fields: NewIdentity) -> InternalIdentity:
        try:
            record = await self._call(
                "create_user",
                auth.create_user,
                uid=str(uid),
                display_name=fields.display_name,
                photo_url=fields.avatar_url,
            )
        except auth.UidAlreadyExistsError as e:
            raise IdentityConflict(f"Identity {uid} already exists") from e
        except (FirebaseError, ValueError) as e:
            logger.error("Firebase create_user failed: uid=%s, error=%s", uid, type(e).__name__)
            raise ExternalServiceError(f"Firebase creation failed for {uid}") from e
        return _record_to_identity(uid, record)

    async def create_custom_token(self, uid: Uid, claims: dict[str, Any]) -> str:
        try:
            token = await self._call(
                "create_custom_token", auth.create_custom_token, str(uid), claims
            )
        except (FirebaseError, ValueError) as e:
            logger.error("Firebase create_custom_token failed: uid=%s, error=%s", uid, type(e).__name__)
            raise ExternalServiceError(f"Firebase token minting failed for {uid}") from e
        return token.decode() if isinstance(token, bytes) else token
