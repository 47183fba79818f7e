from __future__ import annotations
from abc import ABC, abstractmethod


class Store(ABC):
    """A single secret backend. Keys are relative to the store's mount point.

    ``get`` and ``delete`` raise ``SecretNotFound`` for a missing key; I/O
    problems surface as ``StoreFailure``.
    """

    name: str = "store"

    @abstractmethod
    def get(self, key: str) -> bytes: ...

    @abstractmethod
    def put(self, key: str, data: bytes) -> None: ...

    @abstractmethod
    def delete(self, key: str) -> None: ...

    @abstractmethod
    def list(self) -> list[str]: ...

    def exists(self, key: str) -> bool:
        return key in self.list()

    def close(self) -> None:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"
