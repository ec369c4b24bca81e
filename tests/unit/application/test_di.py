"""Unit tests for container wiring."""

import pytest

from fedbroker.application.di import create_container
from fedbroker.config import Config
from fedbroker.domain.auth.command.login import CompleteLoginHandler
from fedbroker.domain.auth.model.value import Uid
from fedbroker.domain.auth.port.identity_backend import IdentityBackend, UserNotFound
from fedbroker.domain.auth.port.provider_registry import ProviderRegistry
from fedbroker.infrastructure.backend.local import SqlIdentityBackend
from fedbroker.util.di.scope import Scope


def make_config(**overrides) -> Config:
    fields = {
        "database": {"url": "sqlite+aiosqlite:///:memory:"},
        "providers": {
            "x": {"kind": "x", "client_id": "cid"},
            "discord": {"kind": "discord"},  # No client_id: skipped
        },
    }
    fields.update(overrides)
    return Config(**fields)


class TestCreateContainer:
    @pytest.mark.asyncio
    async def test_local_backend_is_default(self):
        container = create_container(make_config())
        try:
            backend = await container.get(IdentityBackend)

            assert isinstance(backend, SqlIdentityBackend)
            assert await backend.get_user(Uid("x:1")) == UserNotFound(uid=Uid("x:1"))
        finally:
            await container.close()

    @pytest.mark.asyncio
    async def test_registry_skips_providers_without_client_id(self):
        container = create_container(make_config())
        try:
            registry = await container.get(ProviderRegistry)

            assert registry.available_providers() == ["x"]
        finally:
            await container.close()

    @pytest.mark.asyncio
    async def test_handlers_resolve_in_uow_scope(self):
        container = create_container(make_config())
        try:
            async with container(scope=Scope.UOW) as uow:
                handler = await uow.get(CompleteLoginHandler)

            assert handler.responder is not None
        finally:
            await container.close()
