from pathlib import Path

import pytest

from secretspace.core.errors import SecretNotFound, StoreFailure
from secretspace.storage.filesystem import FilesystemStore, decode_key, encode_key


def _store(tmp_path):
    return FilesystemStore(tmp_path / "store")


def test_put_and_get(tmp_path):
    st = _store(tmp_path)
    st.put("test/file1", b"content here")
    assert st.get("test/file1") == b"content here"
    assert (tmp_path / "store" / "secrets" / "test" / "file1.secret").exists()
    assert not (tmp_path / "store" / "secrets" / "test.secret").exists()


def test_get_missing(tmp_path):
    st = _store(tmp_path)
    with pytest.raises(SecretNotFound):
        st.get("nonexistent")


def test_list_is_flat_and_sorted(tmp_path):
    st = _store(tmp_path)
    for key in ["dir/beta", "dir/alpha", "top", "dir/sub/gamma"]:
        st.put(key, key.encode())
    assert st.list() == ["dir/alpha", "dir/beta", "dir/sub/gamma", "top"]


def test_leaf_and_directory_can_coexist_on_disk(tmp_path):
    st = _store(tmp_path)
    st.put("a/b", b"leaf")
    st.put("a/b/c", b"child")
    assert st.list() == ["a/b", "a/b/c"]


def test_delete_prunes_empty_directories(tmp_path):
    st = _store(tmp_path)
    st.put("del/deep/target", b"bye")
    st.put("keep", b"stay")
    st.delete("del/deep/target")
    with pytest.raises(SecretNotFound):
        st.get("del/deep/target")
    assert not (tmp_path / "store" / "secrets" / "del").exists()
    assert st.list() == ["keep"]
    with pytest.raises(SecretNotFound):
        st.delete("del/deep/target")


def test_exists(tmp_path):
    st = _store(tmp_path)
    st.put("x", b"1")
    assert st.exists("x")
    assert not st.exists("y")


def test_unwritable_root_raises_store_failure(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    with pytest.raises(StoreFailure):
        FilesystemStore(blocker / "store")


def test_directory_named_like_a_secret_file(tmp_path):
    st = _store(tmp_path)
    st.put("foo", b"leaf")
    st.put("foo.secret/x", b"nested")
    assert st.get("foo") == b"leaf"
    assert st.get("foo.secret/x") == b"nested"
    assert st.list() == ["foo", "foo.secret/x"]
    st.delete("foo")
    assert st.list() == ["foo.secret/x"]


def test_escaped_directory_names_round_trip(tmp_path):
    st = _store(tmp_path)
    keys = ["a~", "a~/b", "a.secret~/c", "a.secret/d", "plain/e"]
    for key in keys:
        st.put(key, key.encode())
    assert st.list() == sorted(keys)
    for key in keys:
        assert st.get(key) == key.encode()


def test_encode_key():
    assert encode_key("a/b") == "a/b.secret"
    assert encode_key("a.secret/b") == "a.secret~/b.secret"
    assert encode_key("a~/b~") == "a~~/b~.secret"
    assert decode_key("a.secret~/b.secret") == "a.secret/b"
    assert decode_key("a~~/b~.secret") == "a~/b~"


def test_list_failure_raises_store_failure(tmp_path, monkeypatch):
    st = _store(tmp_path)
    st.put("x", b"1")

    def broken_rglob(self, pattern):
        raise PermissionError("denied")

    monkeypatch.setattr(Path, "rglob", broken_rglob)
    with pytest.raises(StoreFailure):
        st.list()
