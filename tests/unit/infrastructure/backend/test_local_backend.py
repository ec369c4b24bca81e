"""Unit tests for the SQL identity backend and JWT signer."""

import asyncio

import jwt
import pytest
import pytest_asyncio

from fedbroker.config import DatabaseConfig, JwtConfig
from fedbroker.domain.auth.error import IdentityConflict
from fedbroker.domain.auth.model.identity import InternalIdentity, NewIdentity
from fedbroker.domain.auth.model.profile import ExternalProfile
from fedbroker.domain.auth.model.value import Uid
from fedbroker.domain.auth.port.identity_backend import UserNotFound
from fedbroker.domain.auth.service.identity import IdentityMapper
from fedbroker.domain.shared.error import ConfigurationError
from fedbroker.infrastructure.backend.local import JwtTokenSigner, SqlIdentityBackend
from fedbroker.infrastructure.persistence.database import (
    create_db_engine,
    create_session_factory,
    create_tables,
)
from fedbroker.infrastructure.persistence.tables import identities_table

JWT_CONFIG = JwtConfig(secret="test-secret-key-256-bits-long-xx")


@pytest_asyncio.fixture
async def backend():
    engine = create_db_engine(DatabaseConfig(url="sqlite+aiosqlite:///:memory:"))
    await create_tables(engine)
    yield SqlIdentityBackend(
        session_factory=create_session_factory(engine),
        signer=JwtTokenSigner(JWT_CONFIG),
    )
    await engine.dispose()


@pytest_asyncio.fixture
async def file_engine(tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'identities.db'}"
    engine = create_db_engine(DatabaseConfig(url=url))
    await create_tables(engine)
    yield engine
    await engine.dispose()


def make_fields(external_id: str = "42") -> NewIdentity:
    return NewIdentity(
        provider_id="x",
        external_id=external_id,
        display_name="Nick",
        avatar_url=None,
    )


def make_profile(external_id: str = "42") -> ExternalProfile:
    return ExternalProfile(
        provider_id="x",
        external_id=external_id,
        username="nick",
        display_name="Nick",
    )


def decode_token(token: str) -> dict:
    return jwt.decode(
        token,
        JWT_CONFIG.secret,
        algorithms=[JWT_CONFIG.algorithm],
        audience=JWT_CONFIG.audience,
        issuer=JWT_CONFIG.issuer,
    )


class TestSqlIdentityBackend:
    @pytest.mark.asyncio
    async def test_unknown_uid_is_user_not_found(self, backend):
        result = await backend.get_user(Uid("x:42"))

        assert result == UserNotFound(uid=Uid("x:42"))

    @pytest.mark.asyncio
    async def test_created_identity_can_be_read_back(self, backend):
        created = await backend.create_user(Uid("x:42"), make_fields())

        found = await backend.get_user(Uid("x:42"))

        assert isinstance(found, InternalIdentity)
        assert found.uid == created.uid
        assert found.external_id == "42"
        assert found.display_name == "Nick"
        assert found.avatar_url is None

    @pytest.mark.asyncio
    async def test_duplicate_uid_raises_conflict(self, backend):
        await backend.create_user(Uid("x:42"), make_fields())

        with pytest.raises(IdentityConflict):
            await backend.create_user(Uid("x:42"), make_fields())

    @pytest.mark.asyncio
    async def test_custom_token_is_verifiable_jwt(self, backend):
        token = await backend.create_custom_token(
            Uid("x:42"), {"provider_id": "x", "username": "nick"}
        )

        payload = jwt.decode(
            token,
            JWT_CONFIG.secret,
            algorithms=["HS256"],
            audience="fedbroker",
            issuer="fedbroker",
        )
        assert payload["sub"] == "x:42"
        assert payload["provider_id"] == "x"
        assert payload["username"] == "nick"
        assert payload["exp"] - payload["iat"] == 60 * 60


class TestJwtTokenSigner:
    def test_requires_secret(self):
        with pytest.raises(ConfigurationError):
            JwtTokenSigner(JwtConfig(secret=""))

    def test_reserved_claims_cannot_be_overridden(self):
        signer = JwtTokenSigner(JWT_CONFIG)

        token = signer.sign(Uid("x:42"), {"sub": "discord:1", "aud": "elsewhere"})

        payload = decode_token(token)
        assert payload["sub"] == "x:42"
        assert payload["aud"] == "fedbroker"

    def test_tokens_have_unique_ids(self):
        signer = JwtTokenSigner(JWT_CONFIG)

        first = decode_token(signer.sign(Uid("x:42"), {}))
        second = decode_token(signer.sign(Uid("x:42"), {}))

        assert first["jti"] != second["jti"]


class TestSqlIdentityBackendFileDatabase:
    @pytest.mark.asyncio
    async def test_concurrent_first_logins_share_one_identity(self, file_engine):
        backend = SqlIdentityBackend(
            session_factory=create_session_factory(file_engine),
            signer=JwtTokenSigner(JWT_CONFIG),
        )
        mapper = IdentityMapper(_backend=backend)
        await backend.create_user(Uid("x:7"), make_fields("7"))

        results = await asyncio.gather(
            *[mapper.resolve("x", make_profile("42")) for _ in range(8)],
            *[backend.get_user(Uid("x:7")) for _ in range(4)],
            *[backend.get_user(Uid(f"x:missing-{i}")) for i in range(4)],
        )

        resolved = results[:8]
        assert {str(identity.uid) for identity in resolved} == {"x:42"}
        assert all(isinstance(found, InternalIdentity) for found in results[8:12])
        assert all(isinstance(found, UserNotFound) for found in results[12:])

        found = await backend.get_user(Uid("x:42"))
        assert isinstance(found, InternalIdentity)
        assert found.uid == Uid("x:42")
        async with file_engine.connect() as conn:
            rows = (
                await conn.execute(
                    identities_table.select().where(identities_table.c.uid == "x:42")
                )
            ).all()
        assert len(rows) == 1

    @pytest.mark.asyncio
    async def test_concurrent_creates_are_all_readable(self, file_engine):
        backend = SqlIdentityBackend(
            session_factory=create_session_factory(file_engine),
            signer=JwtTokenSigner(JWT_CONFIG),
        )
        mapper = IdentityMapper(_backend=backend)
        external_ids = [str(n) for n in range(10)]

        await asyncio.gather(
            *[mapper.resolve("x", make_profile(external_id)) for external_id in external_ids],
            *[backend.get_user(Uid(f"x:{external_id}")) for external_id in external_ids],
        )

        for external_id in external_ids:
            found = await backend.get_user(Uid(f"x:{external_id}"))
            assert isinstance(found, InternalIdentity)
            assert found.external_id == external_id
