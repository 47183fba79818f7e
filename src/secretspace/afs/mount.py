from __future__ import annotations
import logging
from dataclasses import dataclass
from secretspace.afs import keys
from secretspace.core.errors import InvalidPath, MountError
from secretspace.storage.base import Store

logger = logging.getLogger(__name__)

ROOT = ""


@dataclass(frozen=True)
class MountPoint:
    prefix: str
    store: Store

    @property
    def is_root(self) -> bool:
        return self.prefix == ROOT

    def full_key(self, rel_key: str) -> str:
        return keys.join(self.prefix, rel_key)


class MountTable:
    """Maps mount prefixes to stores. Resolves keys via longest-prefix match.

    The root store (prefix ``""``) always exists and owns every key no more
    specific mount claims.
    """

    def __init__(self, root: Store) -> None:
        self._mounts: dict[str, MountPoint] = {ROOT: MountPoint(ROOT, root)}

    def mount(self, prefix: str, store: Store) -> MountPoint:
        try:
            prefix = keys.normalize(prefix)
        except InvalidPath as e:
            raise MountError(f"invalid mount prefix {prefix!r}: {e.reason}") from e
        if prefix in self._mounts:
            raise MountError(f"{prefix!r} is already mounted")
        mp = MountPoint(prefix, store)
        self._mounts[prefix] = mp
        logger.info("Mounted %r at %s", store, prefix)
        return mp

    def unmount(self, prefix: str) -> MountPoint:
        prefix = prefix.strip(keys.SEP)
        if prefix == ROOT:
            raise MountError("the root store cannot be unmounted")
        try:
            mp = self._mounts.pop(prefix)
        except KeyError:
            raise MountError(f"{prefix!r} is not mounted") from None
        logger.info("Unmounted %s", prefix)
        return mp

    def resolve(self, key: str) -> tuple[Store, str]:
        """Find the mount with the longest matching prefix and return (store, relative_key)."""
        mp = self.mount_for(key)
        return mp.store, keys.relative_to(key, mp.prefix) if key != mp.prefix else ""

    def mount_for(self, key: str) -> MountPoint:
        best = self._mounts[ROOT]
        for prefix, mp in self._mounts.items():
            if prefix == ROOT:
                continue
            if key == prefix or key.startswith(prefix + keys.SEP):
                if len(prefix) > len(best.prefix):
                    best = mp
        return best

    def mounts_under(self, key: str) -> list[MountPoint]:
        """Mount points strictly below ``key``; every non-root mount for the root."""
        return [mp for prefix, mp in sorted(self._mounts.items())
                if prefix != ROOT and keys.is_under(prefix, key)]

    def is_mount_point(self, key: str) -> bool:
        return key != ROOT and key in self._mounts

    @property
    def root(self) -> MountPoint:
        return self._mounts[ROOT]

    @property
    def mounts(self) -> dict[str, MountPoint]:
        return dict(sorted(self._mounts.items()))

    def __iter__(self):
        return iter(self.mounts.values())

    def __len__(self) -> int:
        return len(self._mounts)
