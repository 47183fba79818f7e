import json
from pathlib import Path

import pytest

from secretspace.core.config import (
    Config, DEFAULT_BASE_DIR, StoreConfig, get_backend_class, load_config, register_backend,
    save_config,
)
from secretspace.storage.filesystem import FilesystemStore


def test_default_config():
    cfg = Config()
    assert cfg.base_dir == DEFAULT_BASE_DIR
    assert cfg.root.backend == "filesystem"
    assert cfg.mounts == {}
    assert cfg.always_yes is False


def test_load_config_missing_file(tmp_path):
    cfg = load_config(tmp_path / "nonexistent.json")
    assert cfg.workers == 1


def test_load_config_from_file(tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps({
        "base_dir": "/custom/path",
        "root": {"backend": "sqlite", "path": "root.db"},
        "mounts": {"work": {"backend": "filesystem", "path": "/srv/work"}},
        "show_hidden": True,
        "workers": 4,
    }))
    cfg = load_config(config_file)
    assert cfg.base_dir == Path("/custom/path")
    assert cfg.root == StoreConfig(backend="sqlite", path="root.db")
    assert cfg.mounts["work"].path == "/srv/work"
    assert cfg.show_hidden is True
    assert cfg.always_yes is False
    ctx = cfg.op_context()
    assert ctx.show_hidden and ctx.workers == 4


def test_save_and_load_config(tmp_path):
    cfg = Config(base_dir=tmp_path, mounts={"team": StoreConfig(backend="memory", path="")},
                 always_yes=True)
    path = tmp_path / "config.json"
    save_config(cfg, path)
    loaded = load_config(path)
    assert loaded == cfg


def test_store_path_resolution(tmp_path):
    assert StoreConfig(path="rel").resolve_path(tmp_path) == tmp_path / "rel"
    assert StoreConfig(path="/abs").resolve_path(tmp_path) == Path("/abs")


def test_backend_registry():
    assert get_backend_class("filesystem") is FilesystemStore
    with pytest.raises(KeyError):
        get_backend_class("vault9000")
    register_backend("fs-alias", "secretspace.storage.filesystem:FilesystemStore")
    assert get_backend_class("fs-alias") is FilesystemStore
