from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, DefaultDict, Iterable, TypeAlias

import structlog

from seedgen.core.events.base import Event

log = structlog.get_logger()

EventHandler: TypeAlias = Callable[[Event], None]

# Subscribing to this pseudo type receives every published event.
ALL_EVENTS = "*"


@dataclass(frozen=True)
class Subscription:
    """
    A handler attached to one event_type (or ALL_EVENTS).
    """

    event_type: str
    handler: EventHandler


class EventBus:
    """
    Synchronous notification bus.

    - typed handlers run first, in subscription order, then ALL_EVENTS handlers
    - a raising handler propagates to the publisher (fail-fast), unless the
      publisher asks for isolate=True: then the failure is logged and the
      remaining handlers still run
    """

    def __init__(self) -> None:
        self._handlers: DefaultDict[str, list[EventHandler]] = defaultdict(list)

    def subscribe(self, *, event_type: str, handler: EventHandler) -> Subscription:
        if not event_type:
            raise ValueError("event_type must be non-empty")
        self._handlers[event_type].append(handler)
        log.debug("bus.subscribed", event_type=event_type, handler=getattr(handler, "__name__", "handler"))
        return Subscription(event_type=event_type, handler=handler)

    def unsubscribe(self, subscription: Subscription) -> None:
        handlers = self._handlers.get(subscription.event_type, [])
        if subscription.handler in handlers:
            handlers.remove(subscription.handler)

    def publish(self, event: Event, *, isolate: bool = False) -> None:
        handlers = (*self._handlers.get(event.event_type, ()), *self._handlers.get(ALL_EVENTS, ()))
        log.debug(
            "bus.publish",
            event_type=event.event_type,
            event_seq=event.event_seq,
            handlers=len(handlers),
        )
        for handler in handlers:
            if not isolate:
                handler(event)
                continue
            try:
                handler(event)
            except Exception:
                log.exception(
                    "bus.handler_failed",
                    event_type=event.event_type,
                    event_seq=event.event_seq,
                    handler=getattr(handler, "__qualname__", repr(handler)),
                )

    def subscribers_for(self, event_type: str) -> Iterable[EventHandler]:
        return tuple(self._handlers.get(event_type, []))
