"""PKCE (RFC 7636) verifier/challenge/state generation."""

import hashlib
import secrets
from base64 import urlsafe_b64encode
from dataclasses import dataclass, field

VERIFIER_BYTES = 32
STATE_BYTES = 32
CHALLENGE_METHOD = "S256"


def _b64url(raw: bytes) -> str:
    return urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def generate_code_verifier() -> str:
    """Random verifier: 32 bytes, URL-safe base64 without padding (43 chars)."""
    return _b64url(secrets.token_bytes(VERIFIER_BYTES))


def compute_code_challenge(code_verifier: str) -> str:
    """S256 challenge: URL-safe base64 of SHA-256 over the ASCII verifier."""
    return _b64url(hashlib.sha256(code_verifier.encode("ascii")).digest())


def generate_state() -> str:
    """Unguessable OAuth state, independent of the verifier."""
    return secrets.token_urlsafe(STATE_BYTES)


@dataclass(frozen=True)
class PKCESession:
    """One login attempt's verifier, keyed by its OAuth state.

    `created_at` and `ttl` are seconds on the store's clock (monotonic by default).
    """

    state: str
    code_verifier: str = field(repr=False)
    created_at: float
    ttl: float

    @classmethod
    def new(cls, created_at: float, ttl: float) -> "PKCESession":
        return cls(
            state=generate_state(),
            code_verifier=generate_code_verifier(),
            created_at=created_at,
            ttl=ttl,
        )

    @property
    def code_challenge(self) -> str:
        return compute_code_challenge(self.code_verifier)

    @property
    def expires_at(self) -> float:
        return self.created_at + self.ttl

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at
