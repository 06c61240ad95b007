from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from seedgen.api.deps import get_caller, get_generator, parse_uint
from seedgen.core.assembly import GeneratorHandle

router = APIRouter(prefix="/seeds", tags=["seeds"])


# =========================
# Schemas
# =========================

class SequencesResponse(BaseModel):
    next_request: int
    next_reveal: int
    max_depth: int


class PendingResponse(BaseModel):
    request_id: str = Field(..., description="0x-hex request id, 0x0 when none")


class NextResponse(BaseModel):
    sequence: int
    request_id: str


class SeedValueResponse(BaseModel):
    sequence: int | None = None
    value: str


class ProofRequest(BaseModel):
    proof: str = Field(..., description="0x-hex marshaled VRF proof (416 bytes)")


class RevealResponse(BaseModel):
    sequence: int
    secret_seed: str


# =========================
# Routes
# =========================

@router.get("/sequences", response_model=SequencesResponse)
def sequences(gen: GeneratorHandle = Depends(get_generator)) -> SequencesResponse:
    s = gen.sequencer.sequences()
    return SequencesResponse(next_request=s.next_request, next_reveal=s.next_reveal, max_depth=s.max_depth)


@router.get("/pending", response_model=PendingResponse)
def pending(gen: GeneratorHandle = Depends(get_generator)) -> PendingResponse:
    return PendingResponse(request_id=hex(gen.sequencer.pending_request()))


@router.post("/next", response_model=NextResponse)
def next_seed(
    gen: GeneratorHandle = Depends(get_generator),
    caller: str = Depends(get_caller),
) -> NextResponse:
    p = gen.sequencer.next(caller=caller)
    return NextResponse(sequence=p.target_sequence, request_id=hex(p.request_id))


@router.post("/reveal", response_model=RevealResponse)
def reveal(payload: ProofRequest, gen: GeneratorHandle = Depends(get_generator)) -> RevealResponse:
    revealed = gen.sequencer.reveal(payload.proof)
    return RevealResponse(sequence=revealed.sequence, secret_seed=hex(revealed.secret_seed))


@router.post("/{sequence}/verify", response_model=SeedValueResponse)
def verify(sequence: int, payload: ProofRequest, gen: GeneratorHandle = Depends(get_generator)) -> SeedValueResponse:
    value = gen.sequencer.verify_and_compute_seed(sequence, payload.proof)
    return SeedValueResponse(sequence=sequence, value=hex(value))


@router.get("/{sequence}/input", response_model=SeedValueResponse)
def input_seed(sequence: int, gen: GeneratorHandle = Depends(get_generator)) -> SeedValueResponse:
    return SeedValueResponse(sequence=sequence, value=hex(gen.sequencer.input_seed_at(sequence)))


@router.get("/{sequence}/secret", response_model=SeedValueResponse)
def secret_seed(sequence: int, gen: GeneratorHandle = Depends(get_generator)) -> SeedValueResponse:
    return SeedValueResponse(sequence=sequence, value=hex(gen.sequencer.secret_seed_at(sequence)))


@router.get("/by-input/{input_seed}", response_model=SeedValueResponse)
def secret_seed_of(input_seed: str, gen: GeneratorHandle = Depends(get_generator)) -> SeedValueResponse:
    try:
        value = parse_uint(input_seed)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=f"invalid input seed: {e}")
    return SeedValueResponse(value=hex(gen.sequencer.secret_seed_of(value)))
