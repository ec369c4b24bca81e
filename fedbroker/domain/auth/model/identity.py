"""Internal identity model for the auth domain."""

from dataclasses import dataclass
from datetime import UTC, datetime

from pydantic import BaseModel

from fedbroker.domain.auth.model.profile import ExternalProfile
from fedbroker.domain.auth.model.value import Uid


class InternalIdentity(BaseModel):
    """The broker's stable record of a person.

    Invariants:
    - `uid` is derived from `(provider_id, external_id)` and never changes
    - exactly one record exists per `uid`
    - records are never deleted by the broker
    """

    uid: Uid
    provider_id: str
    external_id: str
    display_name: str | None = None
    avatar_url: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def create(cls, uid: Uid, fields: "NewIdentity") -> "InternalIdentity":
        """Build a fresh identity; backends use this when they persist a new record."""
        now = datetime.now(UTC)
        return cls(
            uid=uid,
            provider_id=fields.provider_id,
            external_id=fields.external_id,
            display_name=fields.display_name,
            avatar_url=fields.avatar_url,
            created_at=now,
            updated_at=now,
        )


@dataclass(frozen=True)
class NewIdentity:
    """Fields handed to a backend when creating an identity."""

    provider_id: str
    external_id: str
    display_name: str | None = None
    avatar_url: str | None = None

    @classmethod
    def from_profile(cls, provider_id: str, profile: ExternalProfile) -> "NewIdentity":
        return cls(
            provider_id=provider_id,
            external_id=profile.external_id,
            display_name=profile.display_name,
            avatar_url=profile.avatar_url,
        )
