from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from seedgen.api.deps import get_caller, get_generator, parse_uint
from seedgen.core.assembly import GeneratorHandle
from seedgen.oracle.memory import InMemoryOracle

router = APIRouter(prefix="/oracle", tags=["oracle"])


class CallbackRequest(BaseModel):
    request_id: str
    random_words: list[str] = Field(..., min_length=1)


class CallbackResponse(BaseModel):
    accepted: bool


class DeliveryItem(BaseModel):
    request_id: str
    status: str
    error: str | None = None


class DeliverResponse(BaseModel):
    outcomes: list[DeliveryItem]


@router.post("/callback", response_model=CallbackResponse)
def callback(
    payload: CallbackRequest,
    gen: GeneratorHandle = Depends(get_generator),
    caller: str = Depends(get_caller),
) -> CallbackResponse:
    try:
        request_id = parse_uint(payload.request_id)
        words = [parse_uint(w) for w in payload.random_words]
    except ValueError as e:
        raise HTTPException(status_code=422, detail=f"invalid callback payload: {e}")

    gen.gateway.fulfill(caller, request_id, words)
    return CallbackResponse(accepted=True)


@router.post("/deliver", response_model=DeliverResponse)
def deliver(gen: GeneratorHandle = Depends(get_generator)) -> DeliverResponse:
    """
    Flush the in-process oracle queue (dev deployments only).
    """
    if not isinstance(gen.oracle, InMemoryOracle):
        raise HTTPException(status_code=409, detail="oracle is external; deliveries arrive via /oracle/callback")

    out = gen.oracle.deliver()
    return DeliverResponse(
        outcomes=[DeliveryItem(request_id=hex(o.request_id), status=o.status, error=o.error) for o in out]
    )
