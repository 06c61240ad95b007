from __future__ import annotations

import secrets
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Literal

import structlog

from seedgen.core.errors import SeedGenError
from seedgen.oracle.base import OracleCallback
from seedgen.vrf.curve import keccak256, word

log = structlog.get_logger()

DeliveryStatus = Literal["fulfilled", "expired", "rejected"]


@dataclass(frozen=True, slots=True)
class OracleRequest:
    request_id: int
    consumer: str
    requested_at: float
    index: int


@dataclass(frozen=True, slots=True)
class DeliveryOutcome:
    request_id: int
    consumer: str
    status: DeliveryStatus
    random_value: int | None = None
    error: str | None = None


@dataclass(frozen=True, slots=True)
class _Consumer:
    callback: OracleCallback
    max_pending_seconds: float


class InMemoryOracle:
    """
    In-process randomness oracle (dev / tests).

    Behaves like a VRF manager in front of an oracle network:
      - consumers are registered with a maximum pending time
      - requests queue up and are answered by deliver(), oldest first
      - a request older than its consumer's max pending time is dropped
        without any callback
      - a callback the consumer refuses is reported as "rejected"
    """

    def __init__(
        self,
        *,
        handle: str,
        base_seed: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if not handle:
            raise ValueError("handle must be non-empty")
        self.handle = handle
        self._base_seed = base_seed if base_seed is not None else secrets.randbits(256)
        self._clock = clock
        self._consumers: dict[str, _Consumer] = {}
        self._queue: deque[OracleRequest] = deque()
        self._index = 0

    @property
    def clock(self) -> Callable[[], float]:
        return self._clock

    def register_consumer(self, consumer: str, callback: OracleCallback, *, max_pending_seconds: float) -> None:
        if max_pending_seconds <= 0:
            raise ValueError("max_pending_seconds must be > 0")
        self._consumers[consumer] = _Consumer(callback=callback, max_pending_seconds=max_pending_seconds)
        log.info("oracle.consumer_registered", oracle=self.handle, consumer=consumer)

    def request_random_value(self, consumer: str) -> int:
        if consumer not in self._consumers:
            raise ValueError(f"consumer {consumer!r} is not registered with oracle {self.handle!r}")

        index = self._index
        self._index += 1
        digest = keccak256(word(self._base_seed) + word(index) + consumer.encode("utf-8"))
        request_id = int.from_bytes(digest, "big") or 1
        self._queue.append(
            OracleRequest(request_id=request_id, consumer=consumer, requested_at=self._clock(), index=index)
        )
        return request_id

    def pending(self) -> tuple[OracleRequest, ...]:
        return tuple(self._queue)

    def random_value_for(self, index: int) -> int:
        return int.from_bytes(keccak256(word(self._base_seed) + word(index)), "big")

    def deliver(self, *, now: float | None = None) -> list[DeliveryOutcome]:
        """
        Answer every queued request. Returns this round's outcomes.
        """
        at = self._clock() if now is None else now
        out: list[DeliveryOutcome] = []

        while self._queue:
            req = self._queue.popleft()
            consumer = self._consumers.get(req.consumer)
            if consumer is None or at - req.requested_at > consumer.max_pending_seconds:
                log.info("oracle.expired", oracle=self.handle, request_id=req.request_id, consumer=req.consumer)
                out.append(DeliveryOutcome(request_id=req.request_id, consumer=req.consumer, status="expired"))
                continue

            value = self.random_value_for(req.index)
            try:
                consumer.callback(self.handle, req.request_id, [value])
            except SeedGenError as exc:
                log.warning(
                    "oracle.callback_rejected",
                    oracle=self.handle,
                    request_id=req.request_id,
                    error=exc.code,
                )
                out.append(
                    DeliveryOutcome(
                        request_id=req.request_id,
                        consumer=req.consumer,
                        status="rejected",
                        random_value=value,
                        error=exc.code,
                    )
                )
                continue

            log.info("oracle.delivered", oracle=self.handle, request_id=req.request_id)
            out.append(
                DeliveryOutcome(
                    request_id=req.request_id,
                    consumer=req.consumer,
                    status="fulfilled",
                    random_value=value,
                )
            )

        return out


class InMemoryOracleDirectory:
    """
    In-process oracles by provider handle, each with the consumer registered.

    Used as the gateway's resolver: rotating to an unknown handle starts a
    fresh InMemoryOracle for it, rotating back reuses the earlier one.
    """

    def __init__(
        self,
        *,
        consumer: str,
        callback: OracleCallback,
        max_pending_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._consumer = consumer
        self._callback = callback
        self._max_pending_seconds = max_pending_seconds
        self._clock = clock
        self._oracles: dict[str, InMemoryOracle] = {}

    def add(self, oracle: InMemoryOracle) -> InMemoryOracle:
        oracle.register_consumer(self._consumer, self._callback, max_pending_seconds=self._max_pending_seconds)
        self._oracles[oracle.handle] = oracle
        return oracle

    def __call__(self, handle: str) -> InMemoryOracle:
        oracle = self._oracles.get(handle)
        if oracle is None:
            oracle = self.add(InMemoryOracle(handle=handle, clock=self._clock))
        return oracle
