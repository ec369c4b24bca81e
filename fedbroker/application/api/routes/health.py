"""Health check route."""

from dishka import FromDishka
from dishka.integrations.fastapi import DishkaRoute
from fastapi import APIRouter
from pydantic import BaseModel

from fedbroker.domain.auth.port.provider_registry import ProviderRegistry

router = APIRouter(tags=["Health"], route_class=DishkaRoute)


class HealthResponse(BaseModel):
    status: str
    providers: list[str]


@router.get("/health")
async def health(registry: FromDishka[ProviderRegistry]) -> HealthResponse:
    return HealthResponse(status="ok", providers=registry.available_providers())
