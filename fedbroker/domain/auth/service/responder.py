"""Redirect responder: formats the final login response."""

from urllib.parse import urlencode

from pydantic import BaseModel

from fedbroker.domain.auth.model.credential import Credential
from fedbroker.domain.auth.model.profile import ExternalProfile
from fedbroker.domain.auth.model.value import ResponseMode
from fedbroker.domain.shared.service import Service

DEEP_LINK_HOST = "oauth"


class DeepLinkRedirect(BaseModel):
    """Redirect the browser into the native client via its custom scheme."""

    url: str


class DirectLoginBody(BaseModel):
    """JSON body returned to the caller in direct mode."""

    provider: str
    uid: str
    username: str
    email: str | None = None
    token: str


LoginResponse = DeepLinkRedirect | DirectLoginBody


class RedirectResponder(Service):
    """Builds the deployment's response for a minted credential.

    Only the minted credential leaves the broker; the provider access token
    and the PKCE verifier are never part of a response.
    """

    _mode: ResponseMode
    _deep_link_scheme: str

    def respond(self, credential: Credential, profile: ExternalProfile) -> LoginResponse:
        if self._mode == ResponseMode.DEEP_LINK:
            query = urlencode(
                {
                    "firebaseToken": credential.opaque_token,
                    "provider": credential.provider_id,
                }
            )
            return DeepLinkRedirect(url=f"{self._deep_link_scheme}://{DEEP_LINK_HOST}?{query}")

        return DirectLoginBody(
            provider=credential.provider_id,
            uid=str(credential.uid),
            username=profile.username,
            email=profile.email,
            token=credential.opaque_token,
        )
