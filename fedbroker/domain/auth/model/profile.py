"""Normalised profile returned by an identity provider."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ExternalProfile:
    """A provider's view of the user, normalised across provider families.

    Produced once per login and never persisted directly.
    """

    provider_id: str
    external_id: str  # Provider-assigned, immutable
    username: str
    display_name: str
    avatar_url: str | None = None
    email: str | None = None
