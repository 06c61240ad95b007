from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Protocol, Sequence

from seedgen.core.events.bus import EventBus, EventHandler, Subscription


class EventComponent(Protocol):
    """
    Anything that listens on the bus declares its (event_type, handler) pairs.
    """

    def subscriptions(self) -> Sequence[tuple[str, EventHandler]]:
        ...


@dataclass(frozen=True, slots=True)
class WiredSubscription:
    component: str
    subscription: Subscription


@dataclass(frozen=True, slots=True)
class RouterWiring:
    """
    Record of what got wired, in wiring order.
    """

    subscriptions: tuple[WiredSubscription, ...]

    def components(self) -> tuple[str, ...]:
        seen: dict[str, None] = {}
        for w in self.subscriptions:
            seen.setdefault(w.component, None)
        return tuple(seen)


class EventRouter:
    """
    Attaches components to an EventBus.

    Components are wired in the order given; each component's subscription
    order is preserved. Wiring the same handler twice for one type is an error.
    """

    def __init__(self, *, bus: EventBus) -> None:
        self._bus = bus

    def register(self, components: Iterable[EventComponent]) -> RouterWiring:
        wired: list[WiredSubscription] = []
        seen: set[tuple[str, EventHandler]] = set()

        for component in components:
            cname = type(component).__name__

            subs = component.subscriptions()
            if not isinstance(subs, Sequence):
                raise TypeError(f"{cname}.subscriptions() must return a Sequence")

            for event_type, handler in subs:
                if not event_type:
                    raise ValueError(f"{cname} produced empty event_type")

                # bound methods compare equal per (instance, function)
                key = (event_type, handler)
                if key in seen:
                    raise RuntimeError(f"duplicate subscription detected: component={cname} event_type={event_type}")
                seen.add(key)

                s = self._bus.subscribe(event_type=event_type, handler=handler)
                wired.append(WiredSubscription(component=cname, subscription=s))

        return RouterWiring(subscriptions=tuple(wired))
