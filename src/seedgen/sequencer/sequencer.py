from __future__ import annotations

from threading import RLock
from typing import NamedTuple

import structlog

from seedgen.core.access import AccessControl
from seedgen.core.errors import (
    InputSeedNotReady,
    InvalidMaxDepth,
    InvalidRequest,
    NoInputSeed,
    NotPaused,
    Paused,
    RequestNotFulfilled,
    SecretSeedNotReady,
    TooManyPendingReveals,
)
from seedgen.core.events.admin import (
    ExecutorGranted,
    ExecutorRevoked,
    GeneratorPaused,
    GeneratorUnpaused,
    KeyHashChanged,
    OracleProviderChanged,
    RequestAbandoned,
)
from seedgen.core.events.base import Event
from seedgen.core.events.bus import EventBus
from seedgen.core.events.seeds import RandomSeedGenerated, RandomSeedRequested, RandomSeedRevealed
from seedgen.oracle.base import RandomnessOracle
from seedgen.oracle.gateway import OracleGateway
from seedgen.sequencer.state import SequencerState
from seedgen.sequencer.store import PendingRequest, SeedStore
from seedgen.vrf import verifier
from seedgen.vrf.proof import Proof

log = structlog.get_logger()


class Sequences(NamedTuple):
    next_request: int
    next_reveal: int
    max_depth: int


def _check_key_hash(key_hash: bytes) -> bytes:
    if len(key_hash) != 32:
        raise ValueError("key_hash must be 32 bytes")
    return bytes(key_hash)


class Sequencer:
    """
    Chained verifiable seed generator.

    Each sequence goes through three steps:
      next()     executor asks the oracle for a fresh value (one request in flight at most)
      callback   the oracle's value becomes input_seed[s]
      reveal()   anyone holding a valid VRF proof over input_seed[s] fixes secret_seed[s]

    Reveals consume sequences strictly in order. At most `max_depth` sequences
    may be requested but not yet revealed.

    All public operations are serialized on one lock.
    """

    def __init__(
        self,
        *,
        access: AccessControl,
        gateway: OracleGateway,
        key_hash: bytes,
        max_depth: int,
        bus: EventBus,
        store: SeedStore | None = None,
    ) -> None:
        if max_depth <= 0:
            raise InvalidMaxDepth(f"max_depth must be > 0, got {max_depth}")

        self._lock = RLock()
        self._access = access
        self._gateway = gateway
        self._bus = bus
        self._store = store if store is not None else SeedStore()
        self._state = SequencerState(max_depth=max_depth, key_hash=_check_key_hash(key_hash))

        gateway.bind(self._on_random_value)

    def _emit(self, event: Event) -> None:
        # callers only see rejections; once state is committed the event goes
        # out and subscriber failures are logged by the bus
        self._bus.publish(event, isolate=True)

    # ---------------- Views ----------------

    @property
    def state(self) -> SequencerState:
        return self._state

    @property
    def store(self) -> SeedStore:
        return self._store

    @property
    def access(self) -> AccessControl:
        return self._access

    @property
    def key_hash(self) -> bytes:
        return self._state.key_hash

    @property
    def oracle_handle(self) -> str:
        return self._gateway.provider_handle

    @property
    def paused(self) -> bool:
        return self._state.paused

    def sequences(self) -> Sequences:
        with self._lock:
            return Sequences(
                next_request=self._state.next_request,
                next_reveal=self._state.next_reveal,
                max_depth=self._state.max_depth,
            )

    def pending_request(self) -> int:
        """
        Outstanding request id, 0 when none.
        """
        pending = self._store.pending
        return 0 if pending is None else pending.request_id

    def input_seed_at(self, sequence: int) -> int:
        value = self._store.input_at(sequence)
        if value is None:
            raise InputSeedNotReady(f"no input seed for sequence {sequence}")
        return value

    def secret_seed_at(self, sequence: int) -> int:
        with self._lock:
            if self._store.input_at(sequence) is None:
                raise InputSeedNotReady(f"no input seed for sequence {sequence}")
            value = self._store.secret_at(sequence)
        if value is None:
            raise SecretSeedNotReady(f"sequence {sequence} not revealed")
        return value

    def secret_seed_of(self, input_seed: int) -> int:
        value = self._store.secret_of(input_seed)
        if value is None:
            raise SecretSeedNotReady("no revealed secret seed for this input seed")
        return value

    def verify_and_compute_seed(self, sequence: int, proof: Proof | bytes | str) -> int:
        """
        Secret seed `proof` would produce for `sequence`; no state change.
        Works for any sequence with an input seed, revealed or not.
        """
        with self._lock:
            input_seed = self._store.input_at(sequence)
            key_hash = self._state.key_hash
        if input_seed is None:
            raise NoInputSeed(f"no input seed for sequence {sequence}")
        return verifier.verify(key_hash, input_seed, proof)

    # ---------------- Protocol ----------------

    def next(self, *, caller: str) -> PendingRequest:
        with self._lock:
            self._access.require_executor(caller)
            st = self._state

            if st.paused:
                raise Paused("generator is paused")

            pending = self._store.pending
            if pending is not None:
                raise RequestNotFulfilled(f"request {pending.request_id} still outstanding")

            reissue = st.orphaned is not None
            if not reissue and st.unrevealed >= st.max_depth:
                raise TooManyPendingReveals(f"{st.unrevealed} sequences awaiting reveal (max_depth={st.max_depth})")

            request_id = self._gateway.request()

            if reissue:
                target = st.orphaned
                st.orphaned = None
            else:
                target = st.advance_request()

            pending = self._store.open_request(request_id=request_id, target_sequence=target)

            self._emit(
                RandomSeedRequested.create(
                    sequence=target,
                    request_id=request_id,
                    event_seq=st.next_event_seq(),
                )
            )
            log.info("sequencer.requested", sequence=target, request_id=request_id, reissue=reissue)
            return pending

    def _on_random_value(self, request_id: int, random_value: int) -> None:
        with self._lock:
            pending = self._store.close_request(request_id=request_id)
            if pending is None:
                log.info("sequencer.rejected", reason="unknown_request", request_id=request_id)
                raise InvalidRequest(f"request {request_id} is not outstanding")

            sequence = pending.target_sequence
            self._store.set_input(sequence=sequence, value=random_value)

            self._emit(
                RandomSeedGenerated.create(
                    sequence=sequence,
                    input_seed=random_value,
                    event_seq=self._state.next_event_seq(),
                )
            )
            log.info("sequencer.fulfilled", sequence=sequence, request_id=request_id)

    def reveal(self, proof: Proof | bytes | str) -> RandomSeedRevealed:
        """
        Reveal the oldest unrevealed sequence. Open to anyone: the proof is
        the authorization. Returns the emitted event (sequence and secret seed).
        """
        with self._lock:
            st = self._state
            if st.paused:
                raise Paused("generator is paused")

            sequence = st.next_reveal
            input_seed = self._store.input_at(sequence)
            if input_seed is None:
                raise NoInputSeed(f"no input seed for sequence {sequence}")

            secret_seed = verifier.verify(st.key_hash, input_seed, proof)

            self._store.set_secret(sequence=sequence, value=secret_seed)
            st.advance_reveal()

            revealed = RandomSeedRevealed.create(
                sequence=sequence,
                secret_seed=secret_seed,
                event_seq=st.next_event_seq(),
            )
            self._emit(revealed)
            log.info("sequencer.revealed", sequence=sequence)
            return revealed

    # ---------------- Admin ----------------

    def set_key_hash(self, *, caller: str, key_hash: bytes) -> None:
        with self._lock:
            self._access.require_owner(caller)
            new = _check_key_hash(key_hash)
            previous, self._state.key_hash = self._state.key_hash, new
            self._emit(
                KeyHashChanged.create(previous=previous, current=new, event_seq=self._state.next_event_seq())
            )
            log.info("sequencer.key_hash_changed", key_hash="0x" + new.hex())

    def change_oracle_provider(
        self,
        *,
        caller: str,
        provider_handle: str,
        oracle: RandomnessOracle | None = None,
    ) -> None:
        """
        Switch the oracle provider. Requires the paused state.

        An outstanding request is abandoned: its callback will be refused and
        its target sequence is re-requested by the next `next()` call.
        """
        with self._lock:
            self._access.require_owner(caller)
            if not self._state.paused:
                raise NotPaused("pause the generator before changing the oracle provider")

            previous = self._gateway.provider_handle
            self._gateway.rotate(provider_handle=provider_handle, oracle=oracle)

            abandoned = self._store.abandon_request()
            if abandoned is not None:
                self._state.orphaned = abandoned.target_sequence
                self._emit(
                    RequestAbandoned.create(
                        sequence=abandoned.target_sequence,
                        request_id=abandoned.request_id,
                        event_seq=self._state.next_event_seq(),
                    )
                )
                log.warning(
                    "sequencer.request_abandoned",
                    sequence=abandoned.target_sequence,
                    request_id=abandoned.request_id,
                )

            self._emit(
                OracleProviderChanged.create(
                    previous=previous,
                    current=provider_handle,
                    event_seq=self._state.next_event_seq(),
                )
            )

    def pause(self, *, caller: str) -> None:
        with self._lock:
            self._access.require_owner(caller)
            if self._state.paused:
                raise Paused("already paused")
            self._state.paused = True
            self._emit(GeneratorPaused.create(by=caller, event_seq=self._state.next_event_seq()))
            log.info("sequencer.paused", by=caller)

    def unpause(self, *, caller: str) -> None:
        with self._lock:
            self._access.require_owner(caller)
            if not self._state.paused:
                raise NotPaused("not paused")
            self._state.paused = False
            self._emit(GeneratorUnpaused.create(by=caller, event_seq=self._state.next_event_seq()))
            log.info("sequencer.unpaused", by=caller)

    def grant_executor(self, *, caller: str, handle: str) -> None:
        with self._lock:
            self._access.require_owner(caller)
            if self._access.grant_executor(handle):
                self._emit(ExecutorGranted.create(handle=handle, event_seq=self._state.next_event_seq()))

    def revoke_executor(self, *, caller: str, handle: str) -> None:
        with self._lock:
            self._access.require_owner(caller)
            if self._access.revoke_executor(handle):
                self._emit(ExecutorRevoked.create(handle=handle, event_seq=self._state.next_event_seq()))
