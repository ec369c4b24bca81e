"""Unit tests for InMemoryProviderRegistry."""

from unittest.mock import MagicMock

from fedbroker.infrastructure.auth.provider_registry import InMemoryProviderRegistry


def make_provider(name: str) -> MagicMock:
    provider = MagicMock()
    provider.provider_name = name
    return provider


class TestInMemoryProviderRegistry:
    def test_get_and_availability(self):
        x = make_provider("x")
        registry = InMemoryProviderRegistry({"x": x})

        assert registry.get("x") is x
        assert registry.get("github") is None
        assert registry.is_available("x")
        assert not registry.is_available("github")

    def test_available_providers_sorted(self):
        registry = InMemoryProviderRegistry()
        registry.register(make_provider("x"))
        registry.register(make_provider("discord"))

        assert registry.available_providers() == ["discord", "x"]
