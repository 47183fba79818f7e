import pytest

from secretspace.afs import keys
from secretspace.core.errors import InvalidPath


def test_parse_trailing_slash():
    arg = keys.parse("foo/bar/")
    assert arg.key == "foo/bar"
    assert arg.trailing_slash is True
    assert keys.parse("foo").trailing_slash is False


def test_parse_leading_slash_is_ignored():
    assert keys.normalize("/foo/bar") == "foo/bar"


def test_root_only_when_allowed():
    assert keys.parse("/", allow_root=True).is_root
    assert keys.parse("", allow_root=True).is_root
    with pytest.raises(InvalidPath):
        keys.parse("/")


@pytest.mark.parametrize("bad", ["a//b", "a/./b", "../a", "a\\b", "a\x00b"])
def test_invalid_keys(bad):
    with pytest.raises(InvalidPath):
        keys.normalize(bad)


def test_helpers():
    assert keys.join("", "a") == "a"
    assert keys.join("a/", "b", "") == "a/b"
    assert keys.basename("a/b/c") == "c"
    assert keys.dirname("a/b/c") == "a/b"
    assert keys.dirname("a") == ""
    assert keys.depth("a/b/c") == 3
    assert keys.ancestors("a/b/c") == ["a", "a/b"]
    assert keys.relative_to("a/b/c", "a") == "b/c"


def test_is_under():
    assert keys.is_under("a/b", "a")
    assert not keys.is_under("ab", "a")
    assert not keys.is_under("a", "a")
    assert keys.is_under("a", "")


def test_is_hidden():
    assert keys.is_hidden(".env")
    assert keys.is_hidden("team/.ssh/key")
    assert not keys.is_hidden("team/ssh.key")
