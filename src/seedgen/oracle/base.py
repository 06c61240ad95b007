from __future__ import annotations

from typing import Callable, Protocol, Sequence

# (caller, request_id, random_words) -> None; raises SeedGenError to refuse
OracleCallback = Callable[[str, int, Sequence[int]], None]


class RandomnessOracle(Protocol):
    """
    External randomness provider.

    Requests are fire-and-forget; the answer arrives later through the
    consumer's registered callback, authenticated by `handle`.
    """

    handle: str

    def request_random_value(self, consumer: str) -> int:
        """
        Queue a request on behalf of `consumer` and return its request id (never 0).
        """
        ...
