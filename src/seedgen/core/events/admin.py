from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from seedgen.core.events.base import Event


@dataclass(frozen=True, slots=True)
class KeyHashChanged(Event):
    event_type: ClassVar[str] = "admin.key_hash_changed"

    previous: bytes
    current: bytes


@dataclass(frozen=True, slots=True)
class OracleProviderChanged(Event):
    event_type: ClassVar[str] = "admin.oracle_provider_changed"

    previous: str
    current: str


@dataclass(frozen=True, slots=True)
class RequestAbandoned(Event):
    """
    The outstanding request was dropped by a provider rotation.
    The target sequence will be re-requested by the next `next()` call.
    """

    event_type: ClassVar[str] = "admin.request_abandoned"

    sequence: int
    request_id: int


@dataclass(frozen=True, slots=True)
class GeneratorPaused(Event):
    event_type: ClassVar[str] = "admin.paused"

    by: str


@dataclass(frozen=True, slots=True)
class GeneratorUnpaused(Event):
    event_type: ClassVar[str] = "admin.unpaused"

    by: str


@dataclass(frozen=True, slots=True)
class ExecutorGranted(Event):
    event_type: ClassVar[str] = "admin.executor_granted"

    handle: str


@dataclass(frozen=True, slots=True)
class ExecutorRevoked(Event):
    event_type: ClassVar[str] = "admin.executor_revoked"

    handle: str


ADMIN_EVENT_TYPES: tuple[str, ...] = (
    KeyHashChanged.event_type,
    OracleProviderChanged.event_type,
    RequestAbandoned.event_type,
    GeneratorPaused.event_type,
    GeneratorUnpaused.event_type,
    ExecutorGranted.event_type,
    ExecutorRevoked.event_type,
)
