from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from seedgen.api.deps import get_generator
from seedgen.core.assembly import GeneratorHandle
from seedgen.core.config.settings import settings

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    environment: str
    paused: bool


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
def health(gen: GeneratorHandle = Depends(get_generator)) -> HealthResponse:
    return HealthResponse(
        status="ok",
        environment=settings.env,
        paused=gen.sequencer.paused,
    )
