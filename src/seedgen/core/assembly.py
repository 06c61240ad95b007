from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

import structlog

from seedgen.core.access import AccessControl
from seedgen.core.config.settings import AppSettings
from seedgen.core.eventlog import EventLogComponent
from seedgen.core.events.bus import EventBus
from seedgen.core.events.router import EventRouter, RouterWiring
from seedgen.core.logging.setup import bind_context
from seedgen.oracle.base import RandomnessOracle
from seedgen.oracle.gateway import OracleGateway
from seedgen.oracle.memory import InMemoryOracle, InMemoryOracleDirectory
from seedgen.sequencer.sequencer import Sequencer
from seedgen.storage.jsonl import JsonlEventStore

log = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class GeneratorHandle:
    """
    A wired generator in this process.

    `oracle` is the client requests currently go out through (it follows
    provider rotations); when it is an in-process InMemoryOracle, callers drive
    delivery with oracle.deliver().
    """

    sequencer: Sequencer
    gateway: OracleGateway
    bus: EventBus
    event_store: JsonlEventStore | None
    wiring: RouterWiring

    @property
    def oracle(self) -> RandomnessOracle:
        return self.gateway.oracle

    def close(self) -> None:
        if self.event_store is not None:
            self.event_store.close()


def build_generator(
    *,
    owner: str,
    key_hash: bytes,
    max_depth: int,
    oracle: RandomnessOracle,
    consumer: str = "seedgen",
    executors: tuple[str, ...] = (),
    max_pending_seconds: float = 300.0,
    events_path: Path | None = None,
    fsync: bool = True,
    extra_components: Iterable[object] = (),
) -> GeneratorHandle:
    bus = EventBus()
    access = AccessControl(owner=owner, executors=executors)
    gateway = OracleGateway(oracle=oracle, provider_handle=oracle.handle, consumer=consumer)
    sequencer = Sequencer(access=access, gateway=gateway, key_hash=key_hash, max_depth=max_depth, bus=bus)

    # Registering the consumer is the oracle operator's job; do it here for the
    # in-process oracle so a fresh generator works end to end, also after a
    # provider rotation.
    if isinstance(oracle, InMemoryOracle):
        directory = InMemoryOracleDirectory(
            consumer=consumer,
            callback=gateway.fulfill,
            max_pending_seconds=max_pending_seconds,
            clock=oracle.clock,
        )
        directory.add(oracle)
        gateway.use_resolver(directory)

    components: list[object] = []
    event_store = None
    if events_path is not None:
        event_store = JsonlEventStore(path=events_path, fsync=fsync)
        components.append(EventLogComponent(store=event_store))
    components.extend(extra_components)

    wiring = EventRouter(bus=bus).register(components)

    bind_context(consumer=consumer)
    log.info(
        "generator.assembled",
        owner=owner,
        oracle=oracle.handle,
        max_depth=max_depth,
        key_hash="0x" + key_hash.hex(),
        components=list(wiring.components()),
    )

    return GeneratorHandle(
        sequencer=sequencer,
        gateway=gateway,
        bus=bus,
        event_store=event_store,
        wiring=wiring,
    )


def build_from_settings(cfg: AppSettings) -> GeneratorHandle:
    """
    Generator wired to the in-process oracle, configured from AppSettings.
    """
    executors = (cfg.executor,) if cfg.executor else ()
    return build_generator(
        owner=cfg.owner,
        key_hash=cfg.key_hash_bytes(),
        max_depth=cfg.max_depth,
        oracle=InMemoryOracle(handle=cfg.oracle_handle),
        consumer=cfg.consumer_handle,
        executors=executors,
        max_pending_seconds=cfg.oracle_max_pending_seconds,
        events_path=cfg.events_jsonl,
        fsync=cfg.fsync_events,
    )
