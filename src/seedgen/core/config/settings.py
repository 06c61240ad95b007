from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Process-level configuration for the seed generator service.

    Covers:
    - environment selection and logging
    - generator construction parameters (owner, oracle, key commitment, depth)
    - event log location
    """

    model_config = SettingsConfigDict(
        env_prefix="SEEDGEN_",
        env_file=".env",
        extra="ignore",
    )

    # ---- Environment -------------------------------------------------

    env: Literal["local", "staging", "prod"] = "local"

    # ---- Logging -----------------------------------------------------

    log_level: str = "INFO"

    # ---- Generator ---------------------------------------------------

    owner: str = Field(default="admin", description="Handle holding the owner capability")
    executor: str | None = Field(default=None, description="Optional extra executor handle")

    oracle_handle: str = Field(default="oracle", description="Identity the oracle calls back with")
    consumer_handle: str = Field(default="seedgen", description="Identity this generator requests with")

    # keccak256 of the oracle proving key (64-byte uncompressed point), 0x-hex
    key_hash: str = Field(default="0x" + "00" * 32)

    max_depth: int = Field(default=1, description="Max generated-but-unrevealed sequences")

    # Requests older than this are dropped by the in-process oracle
    oracle_max_pending_seconds: float = Field(default=300.0, gt=0)

    # ---- Event log ---------------------------------------------------

    data_dir: Path = Field(default=Path("data"), description="Directory holding events.jsonl")
    fsync_events: bool = True

    @field_validator("key_hash")
    @classmethod
    def _check_key_hash(cls, v: str) -> str:
        raw = v[2:] if v.startswith("0x") else v
        if len(raw) != 64:
            raise ValueError("key_hash must be 32 bytes of hex")
        bytes.fromhex(raw)
        return "0x" + raw.lower()

    def key_hash_bytes(self) -> bytes:
        return bytes.fromhex(self.key_hash[2:])

    @property
    def events_jsonl(self) -> Path:
        return self.data_dir / "events.jsonl"


settings = AppSettings()
