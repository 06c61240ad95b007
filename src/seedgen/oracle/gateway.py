from __future__ import annotations

from typing import Callable, Sequence

import structlog

from seedgen.core.errors import InvalidOracleProvider, InvalidRequest
from seedgen.oracle.base import RandomnessOracle

log = structlog.get_logger()

UINT256_LIMIT = 1 << 256

# (request_id, random_value) -> None
RandomValueSink = Callable[[int, int], None]

# provider handle -> client for that provider (raises InvalidOracleProvider if unknown)
OracleResolver = Callable[[str], RandomnessOracle]


class OracleGateway:
    """
    Adapter between the Sequencer and the external oracle.

    Outbound: request_random_value() on the configured oracle client.
    Inbound: fulfill() authenticates the caller as the configured provider,
    validates the payload, and forwards the first random word to the sink.
    Request-id matching is the Sequencer's job (it owns the pending slot).
    """

    def __init__(
        self,
        *,
        oracle: RandomnessOracle,
        provider_handle: str,
        consumer: str,
        resolve: OracleResolver | None = None,
    ) -> None:
        if not provider_handle:
            raise InvalidOracleProvider("provider handle must be non-empty")
        if not consumer:
            raise ValueError("consumer must be non-empty")
        self._oracle = oracle
        self._provider = provider_handle
        self._consumer = consumer
        self._sink: RandomValueSink | None = None
        self._resolve = resolve

    @property
    def provider_handle(self) -> str:
        return self._provider

    @property
    def consumer(self) -> str:
        return self._consumer

    @property
    def oracle(self) -> RandomnessOracle:
        return self._oracle

    def use_resolver(self, resolve: OracleResolver) -> None:
        self._resolve = resolve

    def bind(self, sink: RandomValueSink) -> None:
        if self._sink is not None:
            raise RuntimeError("gateway already bound to a consumer")
        self._sink = sink

    def request(self) -> int:
        request_id = int(self._oracle.request_random_value(self._consumer))
        if request_id == 0:
            raise RuntimeError("oracle returned an empty request id")
        log.info("gateway.requested", provider=self._provider, request_id=request_id)
        return request_id

    def fulfill(self, caller: str, request_id: int, random_words: Sequence[int]) -> None:
        if caller != self._provider:
            log.info("gateway.rejected", reason="unknown_provider", caller=caller, request_id=request_id)
            raise InvalidRequest(f"callback from {caller!r}, expected {self._provider!r}")
        if not random_words:
            log.info("gateway.rejected", reason="no_random_words", request_id=request_id)
            raise InvalidRequest("callback carried no random words")

        value = int(random_words[0])
        if not 0 <= value < UINT256_LIMIT:
            log.info("gateway.rejected", reason="value_out_of_range", request_id=request_id)
            raise InvalidRequest("random value out of uint256 range")

        if self._sink is None:
            raise RuntimeError("gateway not bound")
        self._sink(request_id, value)

    def rotate(self, *, provider_handle: str, oracle: RandomnessOracle | None = None) -> None:
        """
        Point the gateway at another provider. Callbacks from the previous
        handle are refused from now on.

        Without an explicit `oracle` the client comes from the resolver; a new
        handle with no client to send requests to is refused.
        """
        if not provider_handle:
            raise InvalidOracleProvider("provider handle must be non-empty")
        if oracle is None and self._resolve is not None:
            oracle = self._resolve(provider_handle)
        if oracle is None and provider_handle != self._provider:
            raise InvalidOracleProvider(f"no oracle client for provider {provider_handle!r}")
        if oracle is not None and getattr(oracle, "handle", provider_handle) != provider_handle:
            raise InvalidOracleProvider("oracle client handle does not match provider handle")

        previous = self._provider
        self._provider = provider_handle
        if oracle is not None:
            self._oracle = oracle
        log.info("gateway.rotated", previous=previous, current=provider_handle)
