import pytest

from secretspace.afs.namespace import Namespace
from secretspace.core.context import OpContext
from secretspace.storage.filesystem import FilesystemStore
from secretspace.storage.memory import MemoryStore
from secretspace.storage.sqlite import SqliteStore


def content_for(key: str) -> bytes:
    return f"secret:{key}".encode()


@pytest.fixture
def ctx():
    return OpContext(always_yes=True, show_hidden=True)


@pytest.fixture(params=["memory", "filesystem", "sqlite"])
def store_factory(request, tmp_path):
    """Builds empty stores of one backend kind; each call gets its own storage."""
    created = []

    def _make(name="root"):
        if request.param == "memory":
            store = MemoryStore(name=name)
        elif request.param == "filesystem":
            store = FilesystemStore(tmp_path / name, name=name)
        else:
            store = SqliteStore(tmp_path / f"{name}.db", name=name)
        created.append(store)
        return store

    yield _make
    for store in created:
        store.close()


@pytest.fixture
def seeded_ns(store_factory):
    """Namespace over a single root store seeded with the given keys."""
    def _make(*entries):
        store = store_factory()
        for key in entries:
            store.put(key, content_for(key))
        return Namespace(store)
    return _make


@pytest.fixture
def mounted_ns(store_factory):
    """Namespace whose keys are spread over a root store and mounted stores.

    ``mounts`` maps mount prefixes to the store names; keys are written
    through the namespace so they land in the owning store.
    """
    def _make(entries, mounts=()):
        ns = Namespace(store_factory("root"))
        for prefix in mounts:
            ns.mount(prefix, store_factory(prefix.replace("/", "_")))
        writer = OpContext(always_yes=True)
        for key in entries:
            ns.set(writer, key, content_for(key))
        return ns
    return _make
