from __future__ import annotations
import logging
from dataclasses import dataclass
from secretspace.afs import keys, pathops
from secretspace.afs.mount import MountPoint, MountTable
from secretspace.afs.pathops import Relocation
from secretspace.afs.tree import INF, Kind, NamespaceTree
from secretspace.core.context import DEFAULT_CONTEXT, OpContext
from secretspace.core.errors import (
    InvalidPath, IsDirectory, IsFileConflict, MountError, NotADirectory,
    PartialFailure, SecretExists, SecretNotFound, SecretspaceError,
)
from secretspace.storage.base import Store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Deletion:
    source: str
    reason: str = ""


class Namespace:
    """Secret namespace spanning every mounted store.

    Every operation reconciles the tree with live store listings before it
    classifies anything and again once it has mutated, so no key that is no
    longer stored is ever listed or classified.
    """

    def __init__(self, root: Store) -> None:
        self._mounts = MountTable(root)
        self._tree = NamespaceTree.from_mounts(self._mounts)

    @property
    def mount_table(self) -> MountTable:
        return self._mounts

    @property
    def tree(self) -> NamespaceTree:
        return self._tree

    def refresh(self) -> NamespaceTree:
        self._tree.rebuild(self._mounts)
        return self._tree

    # mounts

    def mount(self, prefix: str, store: Store) -> MountPoint:
        self.refresh()
        key = prefix.strip(keys.SEP)
        if key and self._tree.is_leaf(key):
            raise MountError(f"cannot mount over secret {key!r}")
        for ancestor in keys.ancestors(key) if key else []:
            if self._tree.is_leaf(ancestor):
                raise MountError(f"cannot mount below secret {ancestor!r}")
        mp = self._mounts.mount(prefix, store)
        self.refresh()
        return mp

    def unmount(self, prefix: str) -> MountPoint:
        """Detach and close the store mounted at ``prefix``."""
        mp = self._mounts.unmount(prefix)
        try:
            mp.store.close()
        finally:
            self.refresh()
        return mp

    @property
    def mounts(self) -> dict[str, MountPoint]:
        return self._mounts.mounts

    # queries

    def list(self, ctx: OpContext = DEFAULT_CONTEXT, max_depth: int = INF) -> list[str]:
        return self.refresh().list(max_depth, show_hidden=ctx.show_hidden)

    def classify(self, path: str) -> Kind:
        return self.refresh().classify(keys.normalize(path, allow_root=True))

    def exists(self, path: str) -> bool:
        return self.classify(path) is not Kind.ABSENT

    def is_dir(self, path: str) -> bool:
        key = keys.normalize(path, allow_root=True)
        return self.classify(key) is Kind.DIRECTORY or self._mounts.is_mount_point(key)

    def children(self, ctx: OpContext = DEFAULT_CONTEXT, prefix: str = "") -> list[str]:
        key = keys.normalize(prefix, allow_root=True)
        tree = self.refresh()
        if key and tree.is_leaf(key):
            raise NotADirectory(key)
        return tree.children(key, show_hidden=ctx.show_hidden)

    def find(self, ctx: OpContext, needle: str) -> list[str]:
        return self.refresh().find(needle, show_hidden=ctx.show_hidden)

    def render(self, ctx: OpContext = DEFAULT_CONTEXT, prefix: str = "") -> str:
        key = keys.normalize(prefix, allow_root=True)
        return self.refresh().render(key, self._mounts, show_hidden=ctx.show_hidden)

    # secrets

    def get(self, path: str) -> bytes:
        key = keys.normalize(path)
        kind = self.refresh().classify(key)
        if kind is Kind.DIRECTORY:
            raise IsDirectory(key)
        if kind is Kind.ABSENT:
            raise SecretNotFound(key)
        store, rel = self._mounts.resolve(key)
        return store.get(rel)

    def set(self, ctx: OpContext, path: str, data: bytes) -> None:
        arg = keys.parse(path)
        if arg.trailing_slash:
            raise InvalidPath(path, "a secret key cannot end with '/'")
        key = arg.key
        if self._mounts.is_mount_point(key):
            raise InvalidPath(key, "a secret cannot replace a mount point")
        tree = self.refresh()
        for ancestor in keys.ancestors(key):
            if tree.is_leaf(ancestor):
                raise IsFileConflict(key, ancestor)
        if tree.is_dir(key):
            raise IsDirectory(key)
        if tree.is_leaf(key) and not ctx.always_yes:
            raise SecretExists(key)
        store, rel = self._mounts.resolve(key)
        try:
            store.put(rel, data)
        finally:
            self.refresh()
        logger.debug("Stored %s in %r", key, store)

    # path operations

    def move(self, ctx: OpContext, source: str, destination: str) -> list[Relocation]:
        return self._relocate(ctx, source, destination, move=True)

    def copy(self, ctx: OpContext, source: str, destination: str) -> list[Relocation]:
        return self._relocate(ctx, source, destination, move=False)

    def _relocate(self, ctx: OpContext, source: str, destination: str, *, move: bool) -> list[Relocation]:
        operation = "move" if move else "copy"
        tree = self.refresh()
        relocations = pathops.plan(tree, self._mounts, source, destination)
        pathops.check(tree, self._mounts, relocations, move=move, ctx=ctx)
        try:
            results = pathops.execute(self._mounts, relocations, move=move, ctx=ctx)
        finally:
            self.refresh()
        failed = [r for r in results if not r.ok]
        logger.info("%s %s -> %s: %d of %d secrets", operation, source, destination,
                    len(results) - len(failed), len(results))
        if failed:
            raise PartialFailure(operation, failed, len(results))
        return results

    def delete(self, ctx: OpContext, path: str, recursive: bool = False) -> list[str]:
        """Delete a secret, or a directory when ``recursive``. Returns the removed keys.

        Deleting a path that does not exist succeeds and removes nothing.
        """
        arg = keys.parse(path)
        key = arg.key
        tree = self.refresh()
        kind = tree.classify(key)
        if arg.trailing_slash and kind is Kind.LEAF:
            raise NotADirectory(key)
        if kind is Kind.ABSENT:
            logger.debug("Nothing to delete at %s", key)
            return []
        if kind is Kind.LEAF:
            store, rel = self._mounts.resolve(key)
            try:
                store.delete(rel)
            except SecretNotFound:
                logger.debug("%s already gone", key)
            finally:
                self.refresh()
            logger.info("Deleted %s", key)
            return [key]
        if not recursive:
            raise IsDirectory(key)

        targets = tree.keys_under(key)
        removed: list[str] = []
        failed: list[Deletion] = []
        try:
            for target in targets:
                store, rel = self._mounts.resolve(target)
                try:
                    store.delete(rel)
                except SecretNotFound:
                    logger.debug("%s already gone", target)
                except SecretspaceError as e:
                    logger.warning("Failed to delete %s: %s", target, e)
                    failed.append(Deletion(target, str(e)))
                    continue
                removed.append(target)
        finally:
            self.refresh()
        logger.info("Deleted %d secrets at %s", len(removed), key)
        if failed:
            raise PartialFailure("delete", failed, len(targets))
        return removed

    def close(self) -> None:
        for mp in self._mounts:
            mp.store.close()
