from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from seedgen.core.events.admin import ADMIN_EVENT_TYPES
from seedgen.core.events.base import Event
from seedgen.core.events.bus import EventHandler
from seedgen.core.events.seeds import SEED_EVENT_TYPES
from seedgen.storage.jsonl import JsonlEventStore


@dataclass(slots=True)
class EventLogComponent:
    """
    Bus component: persists generator notifications to events.jsonl.
    """

    store: JsonlEventStore
    event_types: tuple[str, ...] = SEED_EVENT_TYPES + ADMIN_EVENT_TYPES

    def subscriptions(self) -> Sequence[tuple[str, EventHandler]]:
        return [(et, self._on_event) for et in self.event_types]

    def _on_event(self, e: Event) -> None:
        self.store.append(e)
