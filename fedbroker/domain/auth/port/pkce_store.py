"""PKCE session store port."""

from abc import abstractmethod
from typing import Protocol

from fedbroker.domain.auth.model.pkce import PKCESession
from fedbroker.domain.shared.port import Port


class PKCESessionStore(Port, Protocol):
    """Keyed, TTL-bounded store of per-attempt PKCE verifiers.

    Sessions are addressed by their unguessable OAuth state so that concurrent
    logins never share a verifier.
    """

    @abstractmethod
    async def create(self) -> PKCESession:
        """Generate and store a new (state, verifier, challenge) session."""
        ...

    @abstractmethod
    async def consume(self, state: str) -> str | None:
        """Atomically remove and return the verifier stored under `state`.

        Returns:
            The verifier, or None if the state is unknown, already consumed
            or expired. A state is never returned twice.
        """
        ...
