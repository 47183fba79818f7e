import pytest

from secretspace.core.errors import SecretNotFound
from secretspace.storage.memory import MemoryStore


def test_memory_store_roundtrip():
    st = MemoryStore({"seed": b"s"})
    st.put("k", bytearray(b"v"))
    assert st.get("k") == b"v"
    assert isinstance(st.get("k"), bytes)
    assert st.list() == ["k", "seed"]


def test_memory_store_missing():
    st = MemoryStore()
    with pytest.raises(SecretNotFound):
        st.get("x")
    with pytest.raises(SecretNotFound):
        st.delete("x")


def test_empty_secret_can_be_deleted():
    st = MemoryStore({"empty": b""})
    st.delete("empty")
    assert st.list() == []


def test_repr():
    assert repr(MemoryStore(name="vault")) == "MemoryStore('vault')"
