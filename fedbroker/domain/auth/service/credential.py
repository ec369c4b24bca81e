"""Credential issuer: delegates token minting to the identity backend."""

import logging
from datetime import UTC, datetime
from typing import Any

from fedbroker.domain.auth.error import CredentialIssuanceFailed
from fedbroker.domain.auth.model.credential import Credential
from fedbroker.domain.auth.model.identity import InternalIdentity
from fedbroker.domain.auth.port.identity_backend import IdentityBackend
from fedbroker.domain.shared.error import ExternalServiceError
from fedbroker.domain.shared.service import Service

logger = logging.getLogger(__name__)


class CredentialIssuer(Service):
    """Mints credentials for resolved identities. Never signs anything locally."""

    _backend: IdentityBackend

    async def mint(
        self,
        identity: InternalIdentity,
        claims: dict[str, Any] | None = None,
    ) -> Credential:
        """Mint a credential scoped to `identity.uid`.

        `provider_id` is always present in the claims; claims with a None value
        are dropped.

        Raises:
            CredentialIssuanceFailed: The backend failed or returned no token
        """
        token_claims: dict[str, Any] = {
            key: value for key, value in (claims or {}).items() if value is not None
        }
        token_claims["provider_id"] = identity.provider_id

        try:
            token = await self._backend.create_custom_token(identity.uid, token_claims)
        except ExternalServiceError as e:
            logger.error("Credential minting failed: uid=%s, error=%s", identity.uid, e.message)
            raise CredentialIssuanceFailed(f"Failed to mint credential for {identity.uid}") from e

        if not token:
            raise CredentialIssuanceFailed(f"Backend returned an empty token for {identity.uid}")

        return Credential(
            uid=identity.uid,
            provider_id=identity.provider_id,
            claims=token_claims,
            opaque_token=token,
            issued_at=datetime.now(UTC),
        )
