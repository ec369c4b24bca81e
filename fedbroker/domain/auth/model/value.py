"""Value objects for the auth domain."""

import re
from enum import StrEnum

from pydantic import RootModel, field_validator

UID_SEPARATOR = ":"

PROVIDER_ID_PATTERN = re.compile(r"^[a-z0-9_-]+$")


class Uid(RootModel[str]):
    """Stable internal identifier for a person: ``<provider_id>:<external_id>``.

    Provider ids never contain the separator, so the first ``:`` always splits
    the two halves even when the provider's own id contains colons.
    """

    @field_validator("root")
    @classmethod
    def validate_uid_format(cls, v: str) -> str:
        provider_id, sep, external_id = v.partition(UID_SEPARATOR)
        if not sep or not provider_id or not external_id:
            raise ValueError(f"Invalid uid: {v!r}")
        if not PROVIDER_ID_PATTERN.match(provider_id):
            raise ValueError(f"Invalid provider id in uid: {provider_id!r}")
        return v

    @classmethod
    def compose(cls, provider_id: str, external_id: str) -> "Uid":
        return cls(f"{provider_id}{UID_SEPARATOR}{external_id}")

    @property
    def provider_id(self) -> str:
        return self.root.partition(UID_SEPARATOR)[0]

    @property
    def external_id(self) -> str:
        return self.root.partition(UID_SEPARATOR)[2]

    def __str__(self) -> str:
        return self.root

    def __hash__(self) -> int:
        return hash(self.root)


class ProviderKind(StrEnum):
    """Provider families; each supplies defaults and a profile shape."""

    DISCORD = "discord"
    X = "x"


class TokenAuthMethod(StrEnum):
    """How client credentials are presented to the token endpoint."""

    CLIENT_SECRET_POST = "client_secret_post"  # client_id/client_secret in the form body
    CLIENT_SECRET_BASIC = "client_secret_basic"  # HTTP basic auth


class ResponseMode(StrEnum):
    """How a successful login is handed back to the client."""

    DEEP_LINK = "deep_link"
    DIRECT = "direct"
