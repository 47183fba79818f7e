from __future__ import annotations
import logging
from pathlib import Path
from secretspace.core.errors import SecretNotFound, StoreFailure
from secretspace.core.primitives import atomic_write
from secretspace.storage.base import Store

logger = logging.getLogger(__name__)

SUFFIX = ".secret"
ESCAPE = "~"


def _encode_dir(segment: str) -> str:
    # a directory never ends in SUFFIX on disk, so it cannot meet a secret file
    if segment.endswith((SUFFIX, ESCAPE)):
        return segment + ESCAPE
    return segment


def _decode_dir(name: str) -> str:
    return name[:-len(ESCAPE)] if name.endswith(ESCAPE) else name


def encode_key(key: str) -> str:
    """Relative on-disk path of a secret: ``a.secret/b`` is stored as ``a.secret~/b.secret``."""
    *dirs, leaf = key.split("/")
    return "/".join([_encode_dir(d) for d in dirs] + [leaf + SUFFIX])


def decode_key(rel: str) -> str:
    *dirs, leaf = rel.split("/")
    return "/".join([_decode_dir(d) for d in dirs] + [leaf[:-len(SUFFIX)]])


class FilesystemStore(Store):
    """One file per secret under ``<root>/secrets``.

    Overwritten contents are kept as numbered revisions under
    ``<root>/revisions/<key>.secret/``, which also survive a delete. The
    ``.secret`` suffix lets ``foo`` and ``foo/bar`` exist on disk at the
    same time while a move is in flight; directory names that would end in
    it are escaped with a trailing ``~``.
    """

    def __init__(self, root: Path, name: str | None = None) -> None:
        self._root = Path(root)
        self._secrets = self._root / "secrets"
        self._revisions = self._root / "revisions"
        self.name = name or str(self._root)
        try:
            self._secrets.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreFailure(str(self._root), str(e)) from e

    @property
    def root(self) -> Path:
        return self._root

    def _secret_path(self, key: str) -> Path:
        return self._secrets / encode_key(key)

    def _revision_dir(self, key: str) -> Path:
        return self._revisions / encode_key(key)

    def get(self, key: str) -> bytes:
        sp = self._secret_path(key)
        try:
            return sp.read_bytes()
        except FileNotFoundError:
            raise SecretNotFound(key) from None
        except OSError as e:
            raise StoreFailure(key, str(e)) from e

    def put(self, key: str, data: bytes) -> None:
        sp = self._secret_path(key)
        try:
            if sp.exists():
                self._archive(key, sp.read_bytes())
            atomic_write(sp, data)
        except OSError as e:
            raise StoreFailure(key, str(e)) from e

    def _archive(self, key: str, previous: bytes) -> None:
        revisions = self.revisions(key)
        number = revisions[-1] + 1 if revisions else 1
        atomic_write(self._revision_dir(key) / f"v{number}", previous)
        logger.debug("Archived %s revision %d in %s", key, number, self.name)

    def revisions(self, key: str) -> list[int]:
        rdir = self._revision_dir(key)
        if not rdir.is_dir():
            return []
        numbers = []
        for f in rdir.iterdir():
            if f.is_file() and f.name.startswith("v") and not f.name.endswith(".tmp"):
                try:
                    numbers.append(int(f.name[1:]))
                except ValueError:
                    continue
        return sorted(numbers)

    def read_revision(self, key: str, number: int) -> bytes | None:
        f = self._revision_dir(key) / f"v{number}"
        if not f.is_file():
            return None
        return f.read_bytes()

    def delete(self, key: str) -> None:
        sp = self._secret_path(key)
        try:
            sp.unlink()
        except FileNotFoundError:
            raise SecretNotFound(key) from None
        except OSError as e:
            raise StoreFailure(key, str(e)) from e
        self._prune_empty_dirs(sp.parent)

    def _prune_empty_dirs(self, directory: Path) -> None:
        while directory != self._secrets and directory.is_dir():
            try:
                directory.rmdir()
            except OSError:
                # not empty
                return
            directory = directory.parent

    def list(self) -> list[str]:
        if not self._secrets.is_dir():
            return []
        results = []
        try:
            for f in self._secrets.rglob(f"*{SUFFIX}"):
                if f.is_file():
                    results.append(decode_key(f.relative_to(self._secrets).as_posix()))
        except OSError as e:
            raise StoreFailure(self.name, str(e)) from e
        return sorted(results)

    def exists(self, key: str) -> bool:
        return self._secret_path(key).is_file()
