"""Key syntax helpers.

A key is a ``/``-separated path with no empty, ``.`` or ``..`` segments.
Raw input may carry a leading ``/`` (ignored) and a trailing ``/`` (directory
intent). The empty key ``""`` names the namespace root.
"""
from __future__ import annotations

from dataclasses import dataclass

from secretspace.core.errors import InvalidPath

SEP = "/"
_RESERVED_CHARS = ("\x00", "\\")


@dataclass(frozen=True)
class PathArg:
    """A parsed raw path argument."""

    raw: str
    key: str
    trailing_slash: bool

    @property
    def is_root(self) -> bool:
        return self.key == ""


def normalize(raw: str, *, allow_root: bool = False) -> str:
    return parse(raw, allow_root=allow_root).key


def parse(raw: str, *, allow_root: bool = False) -> PathArg:
    if not isinstance(raw, str):
        raise InvalidPath(repr(raw), "key must be a string")
    trailing = raw.endswith(SEP)
    key = raw.strip(SEP)
    if key == "":
        if not allow_root:
            raise InvalidPath(raw, "empty key")
        return PathArg(raw=raw, key="", trailing_slash=True)
    validate(key)
    return PathArg(raw=raw, key=key, trailing_slash=trailing)


def validate(key: str) -> None:
    for ch in _RESERVED_CHARS:
        if ch in key:
            raise InvalidPath(key, f"reserved character {ch!r}")
    for segment in key.split(SEP):
        if segment == "":
            raise InvalidPath(key, "empty segment")
        if segment in (".", ".."):
            raise InvalidPath(key, f"relative segment {segment!r}")


def join(*parts: str) -> str:
    return SEP.join(p.strip(SEP) for p in parts if p.strip(SEP))


def basename(key: str) -> str:
    return key.rsplit(SEP, 1)[-1]


def dirname(key: str) -> str:
    return key.rsplit(SEP, 1)[0] if SEP in key else ""


def depth(key: str) -> int:
    return key.count(SEP) + 1 if key else 0


def ancestors(key: str) -> list[str]:
    """Proper ancestors of ``key``, nearest last: ``a/b/c`` -> ``[a, a/b]``."""
    parts = key.split(SEP)
    return [SEP.join(parts[:i]) for i in range(1, len(parts))]


def is_under(key: str, prefix: str) -> bool:
    """True if ``key`` lies strictly below ``prefix``. Every key is under the root."""
    if prefix == "":
        return key != ""
    return key.startswith(prefix + SEP)


def relative_to(key: str, prefix: str) -> str:
    if prefix == "":
        return key
    return key[len(prefix) + 1:]


def is_hidden(key: str) -> bool:
    return any(segment.startswith(".") for segment in key.split(SEP))
