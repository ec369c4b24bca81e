"""Unit tests for IdentityMapper."""

import asyncio
from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from fedbroker.domain.auth.error import IdentityConflict, IdentityUpsertFailed
from fedbroker.domain.auth.model.identity import InternalIdentity
from fedbroker.domain.auth.model.profile import ExternalProfile
from fedbroker.domain.auth.model.value import Uid
from fedbroker.domain.auth.port.identity_backend import UserNotFound
from fedbroker.domain.auth.service.identity import IdentityMapper
from fedbroker.domain.shared.error import ExternalServiceError
from tests.fakes import InMemoryIdentityBackend


def make_profile(external_id: str = "42", **overrides) -> ExternalProfile:
    fields = {
        "provider_id": "x",
        "external_id": external_id,
        "username": "nick",
        "display_name": "Nick",
        "avatar_url": "https://pbs.twimg.com/nick.png",
    }
    fields.update(overrides)
    return ExternalProfile(**fields)


def make_identity(uid: str = "x:42", display_name: str | None = "Stored Name") -> InternalIdentity:
    now = datetime.now(UTC)
    parsed = Uid(uid)
    return InternalIdentity(
        uid=parsed,
        provider_id=parsed.provider_id,
        external_id=parsed.external_id,
        display_name=display_name,
        created_at=now,
        updated_at=now,
    )


class TestIdentityMapperResolve:
    @pytest.mark.asyncio
    async def test_creates_identity_on_first_login(self):
        backend = InMemoryIdentityBackend()
        mapper = IdentityMapper(_backend=backend)

        identity = await mapper.resolve("x", make_profile())

        assert str(identity.uid) == "x:42"
        assert identity.display_name == "Nick"
        assert identity.avatar_url == "https://pbs.twimg.com/nick.png"
        assert list(backend.users) == [Uid("x:42")]

    @pytest.mark.asyncio
    async def test_returns_existing_identity_unmodified(self):
        backend = AsyncMock()
        existing = make_identity()
        backend.get_user.return_value = existing
        mapper = IdentityMapper(_backend=backend)

        identity = await mapper.resolve("x", make_profile(display_name="New Name"))

        assert identity is existing
        assert identity.display_name == "Stored Name"
        backend.create_user.assert_not_called()

    @pytest.mark.asyncio
    async def test_same_external_id_on_different_providers_gives_distinct_uids(self):
        backend = InMemoryIdentityBackend()
        mapper = IdentityMapper(_backend=backend)

        on_x = await mapper.resolve("x", make_profile())
        on_discord = await mapper.resolve("discord", make_profile(provider_id="discord"))

        assert on_x.uid != on_discord.uid
        assert len(backend.users) == 2

    @pytest.mark.asyncio
    async def test_concurrent_first_logins_create_one_record(self):
        backend = InMemoryIdentityBackend()
        mapper = IdentityMapper(_backend=backend)

        first, second = await asyncio.gather(
            mapper.resolve("x", make_profile()),
            mapper.resolve("x", make_profile()),
        )

        assert first.uid == second.uid
        assert len(backend.users) == 1
        assert backend.create_calls == 2

    @pytest.mark.asyncio
    async def test_conflict_without_readable_record_fails(self):
        backend = AsyncMock()
        backend.get_user.return_value = UserNotFound(uid=Uid("x:42"))
        backend.create_user.side_effect = IdentityConflict("exists")
        mapper = IdentityMapper(_backend=backend)

        with pytest.raises(IdentityUpsertFailed):
            await mapper.resolve("x", make_profile())

    @pytest.mark.asyncio
    async def test_backend_lookup_failure_becomes_upsert_failure(self):
        backend = AsyncMock()
        backend.get_user.side_effect = ExternalServiceError("unreachable")
        mapper = IdentityMapper(_backend=backend)

        with pytest.raises(IdentityUpsertFailed):
            await mapper.resolve("x", make_profile())
        backend.create_user.assert_not_called()

    @pytest.mark.asyncio
    async def test_backend_create_failure_becomes_upsert_failure(self):
        backend = AsyncMock()
        backend.get_user.return_value = UserNotFound(uid=Uid("x:42"))
        backend.create_user.side_effect = ExternalServiceError("rejected")
        mapper = IdentityMapper(_backend=backend)

        with pytest.raises(IdentityUpsertFailed):
            await mapper.resolve("x", make_profile())
