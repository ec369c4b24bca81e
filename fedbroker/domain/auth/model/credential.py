"""Credential minted for a resolved identity."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from fedbroker.domain.auth.model.value import Uid


class Credential(BaseModel):
    """A freshly minted, time-bounded token for one login.

    Not stored by the broker; its lifetime belongs to the consuming client.
    """

    uid: Uid
    provider_id: str
    claims: dict[str, Any]
    opaque_token: str = Field(repr=False)
    issued_at: datetime
