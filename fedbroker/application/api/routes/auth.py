"""Authentication routes for the OAuth login flow."""

import logging
from typing import Annotated

from dishka import FromDishka
from dishka.integrations.fastapi import DishkaRoute
from fastapi import APIRouter, Query, Response
from fastapi.responses import JSONResponse, RedirectResponse

from fedbroker.domain.auth.command.login import (
    CompleteLogin,
    CompleteLoginHandler,
    InitiateLogin,
    InitiateLoginHandler,
)
from fedbroker.domain.auth.service.responder import DeepLinkRedirect

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"], route_class=DishkaRoute)

# Login responses carry one-time material and must never be cached
NO_STORE_HEADERS = {"Cache-Control": "no-store"}


@router.get("/{provider}")
async def initiate_login(
    provider: str,
    handler: FromDishka[InitiateLoginHandler],
) -> Response:
    """Initiate OAuth login flow.

    Redirects to the identity provider's authorization page.
    """
    result = await handler.run(InitiateLogin(provider=provider))
    return RedirectResponse(
        url=result.authorization_url,
        status_code=302,
        headers=NO_STORE_HEADERS,
    )


@router.get("/{provider}/callback")
async def handle_oauth_callback(
    provider: str,
    handler: FromDishka[CompleteLoginHandler],
    code: Annotated[str | None, Query()] = None,
    state: Annotated[str | None, Query()] = None,
    error: Annotated[str | None, Query()] = None,
) -> Response:
    """Handle the provider redirect after the user authorizes.

    Responds with a deep-link redirect into the client app, or with a JSON
    body in direct mode.
    """
    result = await handler.run(
        CompleteLogin(provider=provider, code=code, state=state, error=error)
    )

    response = result.response
    if isinstance(response, DeepLinkRedirect):
        return RedirectResponse(url=response.url, status_code=302, headers=NO_STORE_HEADERS)

    return JSONResponse(
        content=response.model_dump(exclude_none=True),
        headers=NO_STORE_HEADERS,
    )
