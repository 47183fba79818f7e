from __future__ import annotations

from secretspace.core.errors import SecretNotFound
from secretspace.storage.base import Store


class MemoryStore(Store):
    """Dict-backed store; nothing survives the process."""

    def __init__(self, entries: dict[str, bytes] | None = None, name: str = "memory") -> None:
        self.name = name
        self._data: dict[str, bytes] = dict(entries or {})

    def get(self, key: str) -> bytes:
        try:
            return self._data[key]
        except KeyError:
            raise SecretNotFound(key) from None

    def put(self, key: str, data: bytes) -> None:
        self._data[key] = bytes(data)

    def delete(self, key: str) -> None:
        if self._data.pop(key, None) is None:
            raise SecretNotFound(key)

    def list(self) -> list[str]:
        return sorted(self._data)

    def exists(self, key: str) -> bool:
        return key in self._data
