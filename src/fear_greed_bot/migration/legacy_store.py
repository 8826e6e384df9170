"""Read-only access to the legacy key-value store and its blob formats.

The legacy store kept one JSON blob per key: the subscriber id list under
`chat_ids`, and per-user blobs under `watchlist:<id>`,
`execution_history:<id>` and `active_position:<id>`.
"""
import json
from pathlib import Path
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field


class LegacyStore(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def list_keys(self, prefix: str = "") -> list[str]: ...


class LegacyKeyValueStore:
    """Legacy namespace held in memory, usually loaded from a JSON export.

    Two export layouts are accepted: a mapping of key to value, or a list of
    {"key": ..., "value": ...} objects. Non-string values are re-encoded as
    JSON so every value reads back as the raw blob text.
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data = {key: self._encode(value) for key, value in (data or {}).items()}

    @staticmethod
    def _encode(value: Any) -> str:
        return value if isinstance(value, str) else json.dumps(value)

    @classmethod
    def from_json_file(cls, path: str | Path) -> "LegacyKeyValueStore":
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        if isinstance(raw, list):
            raw = {item["key"]: item["value"] for item in raw}
        if not isinstance(raw, dict):
            raise ValueError(f"Unsupported legacy export format in {path}")
        return cls(raw)

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def list_keys(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self._data if k.startswith(prefix))


def chat_id_from_key(key: str) -> str:
    """'watchlist:123' -> '123'."""
    return key.split(":", 1)[1]


class LegacyExecution(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    signal_type: str = Field(alias="signalType", pattern="^(BUY|SELL)$")
    ticker: str = Field(min_length=1)
    execution_price: float = Field(alias="executionPrice")
    execution_date: int = Field(alias="executionDate")
    signal_price: float | None = Field(None, alias="signalPrice")


class LegacyPosition(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ticker: str = Field(min_length=1)
    entry_price: float = Field(alias="entryPrice")


class LegacyCacheBlob(BaseModel):
    data: Any
    timestamp: int
