"""In-memory test doubles for the auth ports."""

import asyncio
from typing import Any

from fedbroker.domain.auth.error import IdentityConflict
from fedbroker.domain.auth.model.identity import InternalIdentity, NewIdentity
from fedbroker.domain.auth.model.value import Uid
from fedbroker.domain.auth.port.identity_backend import (
    IdentityBackend,
    UserLookup,
    UserNotFound,
)


class InMemoryIdentityBackend(IdentityBackend):
    """Dict-backed IdentityBackend honouring the create-if-absent contract.

    Every call yields to the event loop once, so concurrent resolves interleave
    between lookup and create the way they would against a real backend.
    """

    def __init__(self) -> None:
        self.users: dict[Uid, InternalIdentity] = {}
        self.tokens: list[tuple[Uid, dict[str, Any]]] = []
        self.create_calls = 0

    async def get_user(self, uid: Uid) -> UserLookup:
        await asyncio.sleep(0)
        return self.users.get(uid, UserNotFound(uid=uid))

    async def create_user(self, uid: Uid, fields: NewIdentity) -> InternalIdentity:
        await asyncio.sleep(0)
        self.create_calls += 1
        if uid in self.users:
            raise IdentityConflict(f"Identity {uid} already exists")
        identity = InternalIdentity.create(uid, fields)
        self.users[uid] = identity
        return identity

    async def create_custom_token(self, uid: Uid, claims: dict[str, Any]) -> str:
        self.tokens.append((uid, claims))
        return f"minted-{uid}"
