from __future__ import annotations

from fastapi import Header, Request

from seedgen.core.assembly import GeneratorHandle


def get_generator(request: Request) -> GeneratorHandle:
    return request.app.state.generator


def get_caller(x_caller: str = Header(default="", alias="X-Caller")) -> str:
    """
    Caller identity, as asserted by the authenticating proxy in front of the service.
    """
    return x_caller


def parse_uint(text: str) -> int:
    """
    0x-hex or decimal unsigned integer.
    """
    value = int(text, 16) if text.lower().startswith("0x") else int(text, 10)
    if value < 0 or value >= 1 << 256:
        raise ValueError("value out of uint256 range")
    return value


def parse_bytes32(text: str) -> bytes:
    raw = bytes.fromhex(text[2:] if text.lower().startswith("0x") else text)
    if len(raw) != 32:
        raise ValueError("expected 32 bytes")
    return raw
