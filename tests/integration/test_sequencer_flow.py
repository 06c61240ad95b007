from __future__ import annotations

import pytest

from seedgen.core.access import AccessControl
from seedgen.core.assembly import build_generator
from seedgen.core.errors import (
    ExecutorForbidden,
    InputSeedNotReady,
    InvalidMaxDepth,
    InvalidOracleProvider,
    InvalidRequest,
    NoInputSeed,
    NotPaused,
    OwnerForbidden,
    Paused,
    RequestNotFulfilled,
    SecretSeedNotReady,
    TooManyPendingReveals,
    WrongProvingKey,
)
from seedgen.core.events.admin import OracleProviderChanged, RequestAbandoned
from seedgen.core.events.bus import ALL_EVENTS, EventBus
from seedgen.core.events.seeds import RandomSeedGenerated, RandomSeedRequested, RandomSeedRevealed
from seedgen.oracle.gateway import OracleGateway
from seedgen.oracle.memory import InMemoryOracle
from seedgen.sequencer.sequencer import Sequencer


def _generate(gen, recorder) -> RandomSeedGenerated:
    gen.sequencer.next(caller="admin")
    out = gen.oracle.deliver()
    assert [o.status for o in out] == ["fulfilled"]
    return recorder.of(RandomSeedGenerated)[-1]


def test_happy_path(gen, recorder, keypair, prover) -> None:
    seq = gen.sequencer
    generated = _generate(gen, recorder)
    assert generated.sequence == 0

    proof = prover(keypair, generated.input_seed)
    secret = seq.reveal(proof).secret_seed

    revealed = recorder.of(RandomSeedRevealed)
    assert [(e.sequence, e.secret_seed) for e in revealed] == [(0, secret)]
    assert seq.secret_seed_at(0) == secret
    assert seq.secret_seed_of(generated.input_seed) == secret
    assert seq.input_seed_at(0) == generated.input_seed


def test_multiple_rounds(gen, recorder, keypair, prover) -> None:
    seq = gen.sequencer
    for i in range(4):
        generated = _generate(gen, recorder)
        proof = prover(keypair, generated.input_seed)

        expected = seq.verify_and_compute_seed(i, proof)
        revealed = seq.reveal(proof)
        assert (revealed.sequence, revealed.secret_seed) == (i, expected)
        assert recorder.of(RandomSeedRevealed)[-1].sequence == i

    assert seq.sequences() == (4, 4, 1)


def test_construction_rejects_zero_depth(oracle, keypair) -> None:
    gw = OracleGateway(oracle=oracle, provider_handle="oracle", consumer="seedgen")
    with pytest.raises(InvalidMaxDepth):
        Sequencer(access=AccessControl(owner="admin"), gateway=gw, key_hash=keypair.key_hash, max_depth=0, bus=EventBus())


def test_next_requires_executor(gen) -> None:
    with pytest.raises(ExecutorForbidden):
        gen.sequencer.next(caller="alice")

    gen.sequencer.grant_executor(caller="admin", handle="alice")
    gen.sequencer.next(caller="alice")
    assert gen.sequencer.pending_request() != 0


def test_depth_one_backpressure(gen) -> None:
    seq = gen.sequencer
    seq.next(caller="admin")
    with pytest.raises(RequestNotFulfilled):
        seq.next(caller="admin")

    gen.oracle.deliver()
    with pytest.raises(TooManyPendingReveals):
        seq.next(caller="admin")


def test_deeper_pipeline_allows_several_unrevealed(oracle, keypair, recorder, prover) -> None:
    gen = build_generator(owner="admin", key_hash=keypair.key_hash, max_depth=3, oracle=oracle, extra_components=[recorder])
    seq = gen.sequencer
    for _ in range(3):
        seq.next(caller="admin")
        oracle.deliver()
    with pytest.raises(TooManyPendingReveals):
        seq.next(caller="admin")

    inputs = [e.input_seed for e in recorder.of(RandomSeedGenerated)]

    # strictly in order: sequence 1's proof is not accepted before sequence 0
    with pytest.raises(WrongProvingKey):
        seq.reveal(prover(keypair, inputs[1]))

    seq.reveal(prover(keypair, inputs[0]))
    assert seq.sequences() == (3, 1, 3)
    seq.next(caller="admin")


def test_reveal_without_input_seed(gen, keypair, prover) -> None:
    proof = prover(keypair, 153)
    with pytest.raises(NoInputSeed):
        gen.sequencer.reveal(proof)
    with pytest.raises(NoInputSeed):
        gen.sequencer.verify_and_compute_seed(0, proof)

    # requested but not yet answered
    gen.sequencer.next(caller="admin")
    with pytest.raises(NoInputSeed):
        gen.sequencer.reveal(proof)


def test_wrong_key_leaves_state_untouched(gen, recorder, other_keypair, prover) -> None:
    generated = _generate(gen, recorder)
    before = gen.sequencer.sequences()

    proof = prover(other_keypair, generated.input_seed)
    with pytest.raises(WrongProvingKey):
        gen.sequencer.reveal(proof)
    with pytest.raises(WrongProvingKey):
        gen.sequencer.verify_and_compute_seed(0, proof)

    assert gen.sequencer.sequences() == before
    with pytest.raises(SecretSeedNotReady):
        gen.sequencer.secret_seed_at(0)
    assert recorder.of(RandomSeedRevealed) == []


def test_verify_is_stable_across_reveal(gen, recorder, keypair, prover) -> None:
    generated = _generate(gen, recorder)
    proof = prover(keypair, generated.input_seed)

    before = gen.sequencer.verify_and_compute_seed(0, proof)
    gen.sequencer.reveal(proof)
    after = gen.sequencer.verify_and_compute_seed(0, proof)

    assert before == after == gen.sequencer.secret_seed_at(0)


def test_query_failure_modes(gen, recorder, keypair, prover) -> None:
    seq = gen.sequencer
    seq.next(caller="admin")

    with pytest.raises(InputSeedNotReady):
        seq.input_seed_at(0)
    with pytest.raises(InputSeedNotReady):
        seq.secret_seed_at(0)

    gen.oracle.deliver()
    input_seed = seq.input_seed_at(0)
    with pytest.raises(SecretSeedNotReady):
        seq.secret_seed_at(0)
    with pytest.raises(SecretSeedNotReady):
        seq.secret_seed_of(input_seed)

    seq.reveal(prover(keypair, input_seed))
    assert seq.secret_seed_of(input_seed) == seq.secret_seed_at(0)


def test_sequences_and_pending_request_track_the_cycle(gen, recorder, keypair, prover) -> None:
    seq = gen.sequencer
    for i in range(3):
        assert seq.pending_request() == 0
        seq.next(caller="admin")
        requested = recorder.of(RandomSeedRequested)[-1]
        assert requested.sequence == i
        assert seq.pending_request() == requested.request_id
        assert seq.sequences() == (i + 1, i, 1)

        gen.oracle.deliver()
        assert seq.pending_request() == 0

        seq.reveal(prover(keypair, seq.input_seed_at(i)))
        assert seq.sequences() == (i + 1, i + 1, 1)


def test_pause_blocks_next_and_reveal_but_not_fulfill(gen, recorder, keypair, prover) -> None:
    seq = gen.sequencer
    seq.next(caller="admin")
    seq.pause(caller="admin")

    with pytest.raises(Paused):
        seq.next(caller="admin")
    gen.oracle.deliver()
    input_seed = seq.input_seed_at(0)
    with pytest.raises(Paused):
        seq.reveal(prover(keypair, input_seed))

    seq.unpause(caller="admin")
    seq.reveal(prover(keypair, input_seed))


def test_admin_operations_are_owner_only(gen, other_keypair) -> None:
    seq = gen.sequencer
    with pytest.raises(OwnerForbidden):
        seq.set_key_hash(caller="alice", key_hash=other_keypair.key_hash)
    with pytest.raises(OwnerForbidden):
        seq.pause(caller="alice")
    seq.pause(caller="admin")
    with pytest.raises(OwnerForbidden):
        seq.change_oracle_provider(caller="alice", provider_handle="alice")
    with pytest.raises(OwnerForbidden):
        seq.unpause(caller="alice")
    with pytest.raises(OwnerForbidden):
        seq.grant_executor(caller="alice", handle="alice")


def test_key_rotation_applies_to_future_reveals(gen, recorder, keypair, other_keypair, prover) -> None:
    seq = gen.sequencer
    first = _generate(gen, recorder)
    seq.reveal(prover(keypair, first.input_seed))
    revealed = seq.secret_seed_at(0)

    seq.set_key_hash(caller="admin", key_hash=other_keypair.key_hash)
    assert seq.key_hash == other_keypair.key_hash

    second = _generate(gen, recorder)
    with pytest.raises(WrongProvingKey):
        seq.reveal(prover(keypair, second.input_seed))
    seq.reveal(prover(other_keypair, second.input_seed))

    assert seq.secret_seed_at(0) == revealed


def test_provider_rotation_requires_pause(gen) -> None:
    seq = gen.sequencer
    with pytest.raises(NotPaused):
        seq.change_oracle_provider(caller="admin", provider_handle="oracle-2")

    seq.pause(caller="admin")
    with pytest.raises(InvalidOracleProvider):
        seq.change_oracle_provider(caller="admin", provider_handle="")
    assert seq.oracle_handle == "oracle"


def test_stale_callback_after_rotation_is_refused(gen, recorder, clock, keypair, prover) -> None:
    seq = gen.sequencer
    old_oracle = gen.oracle
    seq.next(caller="admin")
    stale_id = seq.pending_request()

    seq.pause(caller="admin")
    new_oracle = InMemoryOracle(handle="oracle-2", base_seed=99, clock=clock)
    new_oracle.register_consumer("seedgen", gen.gateway.fulfill, max_pending_seconds=300.0)
    seq.change_oracle_provider(caller="admin", provider_handle="oracle-2", oracle=new_oracle)
    seq.unpause(caller="admin")

    assert seq.pending_request() == 0
    assert recorder.of(RequestAbandoned)[-1].request_id == stale_id
    assert recorder.of(OracleProviderChanged)[-1].current == "oracle-2"

    # old provider answering the old id
    with pytest.raises(InvalidRequest):
        gen.gateway.fulfill("oracle", stale_id, [1])
    assert [o.status for o in old_oracle.deliver()] == ["rejected"]
    # new provider replaying the old id
    with pytest.raises(InvalidRequest):
        gen.gateway.fulfill("oracle-2", stale_id, [1])

    # the abandoned sequence is requested again, without skipping
    seq.next(caller="admin")
    assert recorder.of(RandomSeedRequested)[-1].sequence == 0
    assert seq.sequences() == (1, 0, 1)

    new_oracle.deliver()
    seq.reveal(prover(keypair, seq.input_seed_at(0)))
    assert seq.sequences() == (1, 1, 1)


def test_expired_request_stalls_generation(gen, clock) -> None:
    seq = gen.sequencer
    seq.next(caller="admin")
    clock.advance(301.0)

    out = gen.oracle.deliver()

    assert [o.status for o in out] == ["expired"]
    with pytest.raises(InputSeedNotReady):
        seq.input_seed_at(0)
    assert seq.pending_request() != 0
    with pytest.raises(RequestNotFulfilled):
        seq.next(caller="admin")


def test_pause_twice_and_unpause_twice(gen) -> None:
    seq = gen.sequencer
    with pytest.raises(NotPaused):
        seq.unpause(caller="admin")
    seq.pause(caller="admin")
    with pytest.raises(Paused):
        seq.pause(caller="admin")


class _BrokenDisk:
    """
    Subscriber that fails on every notification, like an event log on a full disk.
    """

    def subscriptions(self):
        return [(ALL_EVENTS, self._on_event)]

    def _on_event(self, e) -> None:
        raise OSError("no space left on device")


def test_failing_subscriber_does_not_undo_transitions(clock, keypair, recorder, prover) -> None:
    gen = build_generator(
        owner="admin",
        key_hash=keypair.key_hash,
        max_depth=1,
        oracle=InMemoryOracle(handle="oracle", base_seed=7, clock=clock),
        extra_components=[_BrokenDisk(), recorder],
    )
    seq = gen.sequencer

    pending = seq.next(caller="admin")
    assert seq.sequences() == (1, 0, 1)
    assert seq.pending_request() == pending.request_id

    assert [o.status for o in gen.oracle.deliver()] == ["fulfilled"]
    input_seed = seq.input_seed_at(0)

    revealed = seq.reveal(prover(keypair, input_seed))
    assert seq.sequences() == (1, 1, 1)
    assert seq.secret_seed_at(0) == revealed.secret_seed

    # later subscribers still hear about every transition
    assert [type(e) for e in recorder.events] == [RandomSeedRequested, RandomSeedGenerated, RandomSeedRevealed]
