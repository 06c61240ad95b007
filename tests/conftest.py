from __future__ import annotations

from functools import lru_cache
from typing import Callable

import pytest

from seedgen.core.assembly import GeneratorHandle, build_generator
from seedgen.core.events.base import Event
from seedgen.core.events.bus import ALL_EVENTS
from seedgen.oracle.memory import InMemoryOracle
from seedgen.vrf.proof import Proof
from seedgen.vrf.prover import KeyPair, prove

ORACLE_SECRET = 0x3F1D5A0C9B7E22D4A6C8E0F1B3D5A7C9E1F3A5C7E9B1D3F5A7C9E1B3D5F7A9C1
OTHER_SECRET = 0x1B3D5F7A9C1E3F5A7C9E1B3D5F7A9C1E3A5C7E9B1D3F5A7C9E1F3A5C7E9B1D3


@lru_cache(maxsize=None)
def _cached_proof(secret_key: int, seed: int) -> Proof:
    return prove(secret_key, seed)


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class Recorder:
    """
    Collects every event published on a bus.
    """

    def __init__(self) -> None:
        self.events: list[Event] = []

    def subscriptions(self):
        return [(ALL_EVENTS, self._on_event)]

    def _on_event(self, e: Event) -> None:
        self.events.append(e)

    def of(self, cls: type) -> list:
        return [e for e in self.events if isinstance(e, cls)]


@pytest.fixture(scope="session")
def keypair() -> KeyPair:
    return KeyPair.from_secret(ORACLE_SECRET)


@pytest.fixture(scope="session")
def other_keypair() -> KeyPair:
    return KeyPair.from_secret(OTHER_SECRET)


@pytest.fixture
def prover() -> Callable[[KeyPair, int], Proof]:
    def _prove(kp: KeyPair, seed: int) -> Proof:
        return _cached_proof(kp.secret_key, seed)

    return _prove


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def oracle(clock: FakeClock) -> InMemoryOracle:
    return InMemoryOracle(handle="oracle", base_seed=7, clock=clock)


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def gen(oracle: InMemoryOracle, keypair: KeyPair, recorder: Recorder) -> GeneratorHandle:
    return build_generator(
        owner="admin",
        key_hash=keypair.key_hash,
        max_depth=1,
        oracle=oracle,
        max_pending_seconds=300.0,
        extra_components=[recorder],
    )
