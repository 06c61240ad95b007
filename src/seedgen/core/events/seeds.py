from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from seedgen.core.events.base import Event


@dataclass(frozen=True, slots=True)
class RandomSeedRequested(Event):
    """
    A randomness request was sent to the oracle for `sequence`.
    """

    event_type: ClassVar[str] = "seed.requested"

    sequence: int
    request_id: int


@dataclass(frozen=True, slots=True)
class RandomSeedGenerated(Event):
    """
    The oracle answered; `input_seed` is now fixed for `sequence`.
    """

    event_type: ClassVar[str] = "seed.generated"

    sequence: int
    input_seed: int


@dataclass(frozen=True, slots=True)
class RandomSeedRevealed(Event):
    """
    A valid proof was accepted; `secret_seed` is the usable output for `sequence`.
    """

    event_type: ClassVar[str] = "seed.revealed"

    sequence: int
    secret_seed: int


SEED_EVENT_TYPES: tuple[str, ...] = (
    RandomSeedRequested.event_type,
    RandomSeedGenerated.event_type,
    RandomSeedRevealed.event_type,
)
