from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, ClassVar, TypeVar
from uuid import UUID, uuid4

E = TypeVar("E", bound="Event")


@dataclass(frozen=True, slots=True, kw_only=True)
class Event:
    """
    Base notification.

    - event_id / timestamp_utc identify the emission
    - event_seq is the generator-wide emission counter (log ordering)

    Subclasses declare `event_type` as a ClassVar and add their payload fields.
    """

    event_type: ClassVar[str] = "event"

    event_id: UUID
    timestamp_utc: datetime
    event_seq: int

    @classmethod
    def create(cls: type[E], *, event_seq: int, **fields: Any) -> E:
        return cls(
            event_id=uuid4(),
            timestamp_utc=datetime.now(timezone.utc),
            event_seq=event_seq,
            **fields,
        )
