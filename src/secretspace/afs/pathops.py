"""Move and copy planning.

A move or copy is resolved up front into a list of per-secret relocations,
validated against a simulation of the resulting key set, and only then
executed. Nothing is written until the whole plan is known to be valid.

Source and destination forms follow ``mv``:

* ``foo`` (secret) -> ``bar``: rename, or ``bar/foo`` when ``bar`` is a
  directory or written ``bar/``.
* ``foo`` (directory) -> ``bar``: ``foo/x`` becomes ``bar/x`` when ``bar`` is
  absent, ``bar/foo/x`` when ``bar`` is a directory or written ``bar/``.
* ``foo/`` -> ``bar``: the contents only, ``foo/x`` becomes ``bar/x``.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from enum import Enum

from secretspace.afs import keys
from secretspace.afs.mount import MountTable
from secretspace.afs.tree import Kind, NamespaceTree
from secretspace.core.context import OpContext
from secretspace.core.errors import (
    InvalidPath, IsDirectory, IsFileConflict, NotADirectory, SecretExists,
    SecretNotFound, SecretspaceError,
)

logger = logging.getLogger(__name__)


class Outcome(Enum):
    PENDING = "pending"
    MOVED = "moved"
    COPIED = "copied"
    FAILED = "failed"


@dataclass(frozen=True)
class Relocation:
    source: str
    destination: str
    outcome: Outcome = Outcome.PENDING
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome in (Outcome.MOVED, Outcome.COPIED)


def plan(tree: NamespaceTree, mounts: MountTable, source: str, destination: str) -> list[Relocation]:
    """Resolve a move/copy request into relocations. Raises before any mutation."""
    src = keys.parse(source)
    dst = keys.parse(destination, allow_root=True)
    kind = tree.classify(src.key)
    dest_kind = tree.classify(dst.key) if not dst.is_root else Kind.DIRECTORY
    dest_is_dir = dest_kind is Kind.DIRECTORY or mounts.is_mount_point(dst.key)

    if src.trailing_slash and kind is not Kind.DIRECTORY:
        raise NotADirectory(src.key)
    if kind is Kind.ABSENT:
        raise SecretNotFound(src.key)
    if kind is Kind.DIRECTORY and dest_kind is Kind.LEAF:
        raise IsFileConflict(dst.raw, dst.key)

    if kind is Kind.LEAF:
        if dst.trailing_slash or dest_is_dir:
            target = keys.join(dst.key, keys.basename(src.key))
        else:
            target = dst.key
        _check_not_inside(src.key, target, destination)
        pairs = [(src.key, target)]
    else:
        if src.trailing_slash:
            base = dst.key
        elif dst.trailing_slash or dest_is_dir:
            base = keys.join(dst.key, keys.basename(src.key))
        else:
            base = dst.key
        _check_not_inside(src.key, base, destination)
        pairs = [(k, keys.join(base, keys.relative_to(k, src.key)))
                 for k in tree.keys_under(src.key)]

    logger.debug("Planned %d relocations for %s -> %s", len(pairs), source, destination)
    return [Relocation(s, d) for s, d in pairs]


def _check_not_inside(source: str, target: str, raw: str) -> None:
    if target == source:
        raise InvalidPath(raw, f"source and destination are the same: {source!r}")
    if keys.is_under(target, source):
        raise InvalidPath(raw, f"cannot move {source!r} into itself")


def check(tree: NamespaceTree, mounts: MountTable, relocations: list[Relocation],
          *, move: bool, ctx: OpContext) -> None:
    """Reject plans whose resulting key set breaks leaf/directory exclusion.

    Overwriting an existing secret needs ``ctx.always_yes``.
    """
    removed = {r.source for r in relocations} if move else set()
    targets = [r.destination for r in relocations]
    after = NamespaceTree((set(tree) - removed) | set(targets))

    for target in targets:
        if mounts.is_mount_point(target):
            raise InvalidPath(target, "a secret cannot replace a mount point")
        for ancestor in keys.ancestors(target):
            if after.is_leaf(ancestor):
                raise IsFileConflict(target, ancestor)
        if after.is_dir(target):
            raise IsDirectory(target)

    overwrites = [t for t in targets if t in tree and t not in removed]
    if overwrites and not ctx.always_yes:
        raise SecretExists(overwrites[0])
    for t in overwrites:
        logger.info("Overwriting existing secret %s", t)


def _run_all(fn, items: list, ctx: OpContext) -> list:
    if ctx.workers > 1 and len(items) > 1:
        with ThreadPoolExecutor(max_workers=ctx.workers) as pool:
            return list(pool.map(fn, items))
    return [fn(item) for item in items]


def _remove_source(mounts: MountTable, r: Relocation) -> Relocation:
    store, rel = mounts.resolve(r.source)
    try:
        store.delete(rel)
    except SecretNotFound:
        pass
    except SecretspaceError as e:
        logger.warning("Copied %s to %s but could not remove source: %s",
                       r.source, r.destination, e)
        return replace(r, outcome=Outcome.FAILED,
                       reason=f"written to destination, source not removed: {e}")
    return replace(r, outcome=Outcome.MOVED)


def execute(mounts: MountTable, relocations: list[Relocation], *, move: bool,
            ctx: OpContext) -> list[Relocation]:
    """Run every relocation; failures are recorded per unit, never raised.

    For a move, the source is deleted only after the destination write
    returned. When some destination is also the source of another unit
    (``a/a/b -> a/b`` alongside ``a/b -> b``) the plan runs in phases
    instead, see :func:`_execute_staged`.
    """
    sources = {r.source for r in relocations}
    if any(r.destination in sources for r in relocations):
        return _execute_staged(mounts, relocations, move=move, ctx=ctx)

    def run(r: Relocation) -> Relocation:
        src_store, src_rel = mounts.resolve(r.source)
        dst_store, dst_rel = mounts.resolve(r.destination)
        try:
            data = src_store.get(src_rel)
            dst_store.put(dst_rel, data)
        except SecretspaceError as e:
            logger.warning("Failed to write %s -> %s: %s", r.source, r.destination, e)
            return replace(r, outcome=Outcome.FAILED, reason=str(e))
        if not move:
            return replace(r, outcome=Outcome.COPIED)
        return _remove_source(mounts, r)

    return _run_all(run, relocations, ctx)


def _execute_staged(mounts: MountTable, relocations: list[Relocation], *, move: bool,
                    ctx: OpContext) -> list[Relocation]:
    """Read every source, then write every destination, then remove sources.

    A source that was overwritten by another unit's write already holds
    that unit's secret and is not removed.
    """
    def read(r: Relocation) -> tuple[Relocation, bytes]:
        store, rel = mounts.resolve(r.source)
        try:
            return r, store.get(rel)
        except SecretspaceError as e:
            logger.warning("Failed to read %s: %s", r.source, e)
            return replace(r, outcome=Outcome.FAILED, reason=str(e)), b""

    def write(item: tuple[Relocation, bytes]) -> Relocation:
        r, data = item
        if r.outcome is Outcome.FAILED:
            return r
        store, rel = mounts.resolve(r.destination)
        try:
            store.put(rel, data)
        except SecretspaceError as e:
            logger.warning("Failed to write %s -> %s: %s", r.source, r.destination, e)
            return replace(r, outcome=Outcome.FAILED, reason=str(e))
        return replace(r, outcome=Outcome.COPIED)

    written = _run_all(write, _run_all(read, relocations, ctx), ctx)
    if not move:
        return written
    overwritten = {r.destination for r in written if r.ok}

    def finish(r: Relocation) -> Relocation:
        if not r.ok:
            return r
        if r.source in overwritten:
            return replace(r, outcome=Outcome.MOVED)
        return _remove_source(mounts, r)

    logger.debug("Staged %d relocations over %d overwritten sources",
                 len(written), len(overwritten & {r.source for r in written}))
    return _run_all(finish, written, ctx)
