from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class PendingRequest:
    request_id: int
    target_sequence: int


@dataclass(frozen=True, slots=True)
class SeedRecord:
    sequence: int
    input_seed: int | None
    secret_seed: int | None


class SeedStore:
    """
    Append-only seed history plus the single outstanding request slot.

    - input_seed[s] and secret_seed[s] are each written at most once
    - secret_seed[s] is never written before input_seed[s]
    - at most one PendingRequest at a time
    """

    def __init__(self) -> None:
        self._input: list[int | None] = []
        self._secret: list[int | None] = []
        self._secret_by_input: dict[int, int] = {}
        self._pending: PendingRequest | None = None

    def __len__(self) -> int:
        return len(self._input)

    # ---- Pending request slot ---------------------------------------

    @property
    def pending(self) -> PendingRequest | None:
        return self._pending

    def open_request(self, *, request_id: int, target_sequence: int) -> PendingRequest:
        if self._pending is not None:
            raise RuntimeError("a request is already outstanding")
        self._grow(target_sequence)
        self._pending = PendingRequest(request_id=request_id, target_sequence=target_sequence)
        return self._pending

    def close_request(self, *, request_id: int) -> PendingRequest | None:
        """
        Clear the slot if `request_id` matches it; returns what was cleared.
        """
        cur = self._pending
        if cur is None or cur.request_id != request_id:
            return None
        self._pending = None
        return cur

    def abandon_request(self) -> PendingRequest | None:
        cur, self._pending = self._pending, None
        return cur

    # ---- Seeds --------------------------------------------------------

    def set_input(self, *, sequence: int, value: int) -> None:
        self._grow(sequence)
        if self._input[sequence] is not None:
            raise RuntimeError(f"input seed already written for sequence {sequence}")
        self._input[sequence] = value

    def set_secret(self, *, sequence: int, value: int) -> None:
        input_seed = self.input_at(sequence)
        if input_seed is None:
            raise RuntimeError(f"input seed missing for sequence {sequence}")
        if self._secret[sequence] is not None:
            raise RuntimeError(f"secret seed already written for sequence {sequence}")
        self._secret[sequence] = value
        self._secret_by_input.setdefault(input_seed, value)

    def input_at(self, sequence: int) -> int | None:
        if 0 <= sequence < len(self._input):
            return self._input[sequence]
        return None

    def secret_at(self, sequence: int) -> int | None:
        if 0 <= sequence < len(self._secret):
            return self._secret[sequence]
        return None

    def secret_of(self, input_seed: int) -> int | None:
        return self._secret_by_input.get(input_seed)

    def record(self, sequence: int) -> SeedRecord:
        return SeedRecord(
            sequence=sequence,
            input_seed=self.input_at(sequence),
            secret_seed=self.secret_at(sequence),
        )

    def _grow(self, sequence: int) -> None:
        if sequence < 0:
            raise ValueError("sequence must be >= 0")
        while len(self._input) <= sequence:
            self._input.append(None)
            self._secret.append(None)
