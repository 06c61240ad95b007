from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class SequencerState:
    """
    Counters and configuration owned by the Sequencer.

    - next_request: sequences for which a request has been issued
    - next_reveal: sequences fully revealed
    - 0 <= next_reveal <= next_request, and neither ever decreases
    - orphaned: target of a request abandoned by a provider rotation; it is
      already counted in next_request and gets re-requested first
    """

    max_depth: int
    key_hash: bytes
    next_request: int = 0
    next_reveal: int = 0
    paused: bool = False
    orphaned: int | None = None
    event_seq: int = 0

    @property
    def unrevealed(self) -> int:
        return self.next_request - self.next_reveal

    def advance_request(self) -> int:
        target = self.next_request
        self.next_request += 1
        return target

    def advance_reveal(self) -> int:
        if self.next_reveal >= self.next_request:
            raise RuntimeError("cannot reveal past the last requested sequence")
        target = self.next_reveal
        self.next_reveal += 1
        return target

    def next_event_seq(self) -> int:
        self.event_seq += 1
        return self.event_seq
