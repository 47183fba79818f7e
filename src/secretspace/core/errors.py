from __future__ import annotations


class SecretspaceError(Exception):
    """Base class for namespace errors."""


class SecretNotFound(SecretspaceError, KeyError):
    """Raised when an exact secret or directory was required but is absent."""

    def __init__(self, key: str, message: str | None = None) -> None:
        self.key = key
        super().__init__(message or f"not found: {key!r}")

    def __str__(self) -> str:
        return self.args[0]


class NotADirectory(SecretNotFound):
    """Raised when a trailing slash names something that is not a directory."""

    def __init__(self, key: str) -> None:
        super().__init__(key, f"not a directory: {key!r}")


class IsDirectory(SecretspaceError):
    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"is a directory: {key!r}")


class IsFileConflict(SecretspaceError):
    """Raised when a write would make a key both a secret and a directory."""

    def __init__(self, key: str, conflict: str | None = None) -> None:
        self.key = key
        self.conflict = conflict or key
        super().__init__(f"{key!r} conflicts with existing secret {self.conflict!r}")


class SecretExists(SecretspaceError):
    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"secret already exists: {key!r}")


class InvalidPath(SecretspaceError):
    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        self.reason = reason
        super().__init__(f"invalid path {key!r}: {reason}")


class MountError(SecretspaceError):
    pass


class StoreFailure(SecretspaceError):
    """Raised when a store read, write or delete fails."""

    def __init__(self, key: str, reason: str) -> None:
        self.key = key
        self.reason = reason
        super().__init__(f"store failure on {key!r}: {reason}")


class PartialFailure(StoreFailure):
    """Some units of a multi-secret operation failed; the rest were committed.

    ``failed`` holds the failed units (relocation or deletion results), each
    with a ``reason``.
    """

    def __init__(self, operation: str, failed: list, total: int) -> None:
        self.operation = operation
        self.failed = list(failed)
        self.total = total
        keys = ", ".join(repr(getattr(f, "source", f)) for f in self.failed)
        SecretspaceError.__init__(
            self, f"{operation}: {len(self.failed)} of {total} failed: {keys}"
        )
        self.key = getattr(self.failed[0], "source", "") if self.failed else ""
        self.reason = "partial failure"
