from __future__ import annotations

import json
import os
from dataclasses import fields, is_dataclass
from datetime import datetime
from pathlib import Path
from typing import IO, Any, Iterator, Mapping
from uuid import UUID

from seedgen.core.events.base import Event


class JsonlEventStore:
    """
    Append-only JSONL event store.

    - one event per line, in publish order
    - bytes as 0x-hex, UUID/datetime as strings; ints stay exact (256-bit seeds included)
    - optional fsync after every append
    """

    def __init__(self, *, path: Path, fsync: bool = True) -> None:
        self._path = path
        self._fsync = fsync
        self._fh: IO[str] | None = None

        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def open(self) -> None:
        if self._fh is not None:
            return
        self._fh = self._path.open("a", encoding="utf-8", buffering=1)

    def close(self) -> None:
        if self._fh is None:
            return
        try:
            self._fh.flush()
            if self._fsync:
                os.fsync(self._fh.fileno())
        finally:
            self._fh.close()
            self._fh = None

    def append(self, event: Event) -> None:
        self.open()
        assert self._fh is not None

        line = json.dumps(event_to_dict(event), sort_keys=True, separators=(",", ":"), default=_json_default)
        self._fh.write(line + "\n")
        self._fh.flush()
        if self._fsync:
            os.fsync(self._fh.fileno())

    def iter_events(self) -> Iterator[Mapping[str, Any]]:
        if not self._path.exists():
            return
        with self._path.open("r", encoding="utf-8") as fh:
            for line in fh:
                s = line.strip()
                if s:
                    yield json.loads(s)


def event_to_dict(event: Event) -> dict[str, Any]:
    # slots dataclasses have no __dict__; walk the declared fields
    if not is_dataclass(event):
        raise TypeError(f"not an event dataclass: {type(event).__name__}")
    d = {f.name: getattr(event, f.name) for f in fields(event)}
    d["event_type"] = event.event_type
    return d


def _json_default(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    raise TypeError(f"not JSON serializable: {type(value).__name__}")
