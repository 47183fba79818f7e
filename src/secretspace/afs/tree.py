"""In-memory view of the merged key space.

The tree is a sorted flat list of leaf keys. Directories are not stored; a
path is a directory exactly when some key sorts inside ``path + "/"``, so a
directory disappears as soon as its last key is gone and there is nothing
left to prune.
"""
from __future__ import annotations

import bisect
import logging
from enum import Enum
from typing import Iterable

from secretspace.afs import keys
from secretspace.afs.mount import MountTable
from secretspace.core.errors import InvalidPath

logger = logging.getLogger(__name__)

INF = -1
# first character sorting after "/"
_AFTER_SEP = chr(ord(keys.SEP) + 1)


class Kind(Enum):
    ABSENT = "absent"
    LEAF = "leaf"
    DIRECTORY = "directory"


class NamespaceTree:
    def __init__(self, entries: Iterable[str] = ()) -> None:
        self._keys: list[str] = sorted(set(entries))

    @classmethod
    def from_mounts(cls, table: MountTable) -> "NamespaceTree":
        tree = cls()
        tree.rebuild(table)
        return tree

    def rebuild(self, table: MountTable) -> None:
        """Replace the snapshot with the live listing of every mounted store.

        A store key is kept only when resolving its full key lands back in
        the same mount; root keys hidden below a nested mount are skipped.
        """
        merged: set[str] = set()
        for mp in table:
            for rel in mp.store.list():
                full = mp.full_key(rel)
                try:
                    keys.validate(full)
                except InvalidPath:
                    logger.warning("Skipping malformed key %r in %r", rel, mp.store)
                    continue
                if table.mount_for(full) is not mp:
                    logger.debug("Key %s in %r is shadowed by a nested mount", full, mp.store)
                    continue
                merged.add(full)
        self._keys = sorted(merged)
        logger.debug("Rebuilt tree: %d keys across %d mounts", len(self._keys), len(table))

    def _span(self, prefix: str) -> tuple[int, int]:
        if prefix == "":
            return 0, len(self._keys)
        lo = bisect.bisect_left(self._keys, prefix + keys.SEP)
        hi = bisect.bisect_left(self._keys, prefix + _AFTER_SEP, lo)
        return lo, hi

    def is_leaf(self, key: str) -> bool:
        i = bisect.bisect_left(self._keys, key)
        return i < len(self._keys) and self._keys[i] == key

    def is_dir(self, key: str) -> bool:
        lo, hi = self._span(key)
        return hi > lo

    def classify(self, key: str) -> Kind:
        if key and self.is_leaf(key):
            return Kind.LEAF
        if self.is_dir(key):
            return Kind.DIRECTORY
        return Kind.ABSENT

    def keys_under(self, prefix: str) -> list[str]:
        lo, hi = self._span(prefix)
        return self._keys[lo:hi]

    def list(self, max_depth: int = INF, show_hidden: bool = True) -> list[str]:
        return [
            k for k in self._keys
            if (max_depth < 0 or keys.depth(k) <= max_depth)
            and (show_hidden or not keys.is_hidden(k))
        ]

    def children(self, prefix: str = "", show_hidden: bool = True) -> list[str]:
        """Immediate children of ``prefix``; directories carry a trailing slash."""
        names: dict[str, bool] = {}
        for k in self.keys_under(prefix):
            rest = keys.relative_to(k, prefix)
            head, sep, _ = rest.partition(keys.SEP)
            if not show_hidden and head.startswith("."):
                continue
            names[head] = names.get(head, False) or bool(sep)
        return [f"{name}/" if is_dir else name for name, is_dir in sorted(names.items())]

    def find(self, needle: str, show_hidden: bool = True) -> list[str]:
        needle = needle.lower()
        return [k for k in self.list(show_hidden=show_hidden) if needle in k.lower()]

    def render(self, prefix: str = "", mounts: MountTable | None = None,
               show_hidden: bool = True) -> str:
        title = prefix or "/"
        lines = [self._label(title, prefix, mounts)]
        self._render_children(prefix, "", mounts, show_hidden, lines)
        return "\n".join(lines)

    def _render_children(self, prefix: str, indent: str, mounts: MountTable | None,
                         show_hidden: bool, lines: list[str]) -> None:
        entries = self.children(prefix, show_hidden=show_hidden)
        for i, entry in enumerate(entries):
            last = i == len(entries) - 1
            name = entry.rstrip(keys.SEP)
            child = keys.join(prefix, name)
            branch = "└── " if last else "├── "
            lines.append(indent + branch + self._label(entry, child, mounts))
            if entry.endswith(keys.SEP):
                self._render_children(child, indent + ("    " if last else "│   "),
                                      mounts, show_hidden, lines)

    @staticmethod
    def _label(text: str, key: str, mounts: MountTable | None) -> str:
        if mounts is not None and mounts.is_mount_point(key):
            return f"{text} ({mounts.mount_for(key).store.name})"
        return text

    def __contains__(self, key: str) -> bool:
        return self.is_leaf(key)

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self):
        return iter(list(self._keys))
