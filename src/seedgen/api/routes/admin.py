from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from seedgen.api.deps import get_caller, get_generator, parse_bytes32
from seedgen.core.assembly import GeneratorHandle

router = APIRouter(prefix="/admin", tags=["admin"])


class KeyHashRequest(BaseModel):
    key_hash: str


class OracleProviderRequest(BaseModel):
    provider_handle: str


class ExecutorRequest(BaseModel):
    handle: str


class AdminStateResponse(BaseModel):
    paused: bool
    key_hash: str
    oracle_handle: str
    owner: str
    executors: list[str]


def _state(gen: GeneratorHandle) -> AdminStateResponse:
    seq = gen.sequencer
    return AdminStateResponse(
        paused=seq.paused,
        key_hash="0x" + seq.key_hash.hex(),
        oracle_handle=seq.oracle_handle,
        owner=seq.access.owner,
        executors=list(seq.access.executors()),
    )


@router.get("/state", response_model=AdminStateResponse)
def state(gen: GeneratorHandle = Depends(get_generator)) -> AdminStateResponse:
    return _state(gen)


@router.post("/key-hash", response_model=AdminStateResponse)
def set_key_hash(
    payload: KeyHashRequest,
    gen: GeneratorHandle = Depends(get_generator),
    caller: str = Depends(get_caller),
) -> AdminStateResponse:
    try:
        key_hash = parse_bytes32(payload.key_hash)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=f"invalid key hash: {e}")
    gen.sequencer.set_key_hash(caller=caller, key_hash=key_hash)
    return _state(gen)


@router.post("/oracle-provider", response_model=AdminStateResponse)
def change_oracle_provider(
    payload: OracleProviderRequest,
    gen: GeneratorHandle = Depends(get_generator),
    caller: str = Depends(get_caller),
) -> AdminStateResponse:
    gen.sequencer.change_oracle_provider(caller=caller, provider_handle=payload.provider_handle)
    return _state(gen)


@router.post("/pause", response_model=AdminStateResponse)
def pause(gen: GeneratorHandle = Depends(get_generator), caller: str = Depends(get_caller)) -> AdminStateResponse:
    gen.sequencer.pause(caller=caller)
    return _state(gen)


@router.post("/unpause", response_model=AdminStateResponse)
def unpause(gen: GeneratorHandle = Depends(get_generator), caller: str = Depends(get_caller)) -> AdminStateResponse:
    gen.sequencer.unpause(caller=caller)
    return _state(gen)


@router.post("/executors", response_model=AdminStateResponse)
def grant_executor(
    payload: ExecutorRequest,
    gen: GeneratorHandle = Depends(get_generator),
    caller: str = Depends(get_caller),
) -> AdminStateResponse:
    if not payload.handle:
        raise HTTPException(status_code=422, detail="handle must be non-empty")
    gen.sequencer.grant_executor(caller=caller, handle=payload.handle)
    return _state(gen)


@router.delete("/executors/{handle}", response_model=AdminStateResponse)
def revoke_executor(
    handle: str,
    gen: GeneratorHandle = Depends(get_generator),
    caller: str = Depends(get_caller),
) -> AdminStateResponse:
    gen.sequencer.revoke_executor(caller=caller, handle=handle)
    return _state(gen)
