from __future__ import annotations

import logging
import sys
from typing import Any

import orjson
import structlog


def _json_serializer(obj: Any, default: Any) -> str:
    return orjson.dumps(obj, default=_bytes_default(default)).decode("utf-8")


def _bytes_default(fallback: Any) -> Any:
    def _default(value: Any) -> Any:
        if isinstance(value, (bytes, bytearray)):
            return "0x" + bytes(value).hex()
        return fallback(value)

    return _default


def _stringify_big_ints(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """
    orjson rejects integers wider than 64 bits; seeds and request ids are 256-bit.
    """
    for key, value in event_dict.items():
        if isinstance(value, int) and not isinstance(value, bool) and value.bit_length() > 63:
            event_dict[key] = hex(value)
    return event_dict


def configure_logging(*, level: str = "INFO") -> None:
    """
    Configure structured logging for the whole process.

    Call once at startup (the app factory does it).
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    processors: list[Any] = [
        # run-wide context (generator, component, ...)
        structlog.contextvars.merge_contextvars,

        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),

        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.dict_tracebacks,

        _stringify_big_ints,
        structlog.processors.JSONRenderer(serializer=_json_serializer),
    ]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def bind_context(**values: Any) -> None:
    """
    Bind values to every subsequent log entry of this context.

    Example:
        bind_context(generator="main", component="sequencer")
    """
    structlog.contextvars.bind_contextvars(**values)
