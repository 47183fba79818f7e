from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from secretspace.core.context import OpContext
from secretspace.core.primitives import atomic_write

DEFAULT_BASE_DIR = Path.home() / ".secretspace"


@dataclass
class StoreConfig:
    backend: str = "filesystem"
    path: str = "root"

    def resolve_path(self, base_dir: Path) -> Path:
        p = Path(self.path).expanduser()
        return p if p.is_absolute() else base_dir / p


@dataclass
class Config:
    base_dir: Path = field(default_factory=lambda: DEFAULT_BASE_DIR)
    root: StoreConfig = field(default_factory=StoreConfig)
    mounts: dict[str, StoreConfig] = field(default_factory=dict)
    always_yes: bool = False
    show_hidden: bool = False
    workers: int = 1

    def op_context(self) -> OpContext:
        return OpContext(always_yes=self.always_yes, show_hidden=self.show_hidden,
                         workers=self.workers)


def _store_config(data: dict) -> StoreConfig:
    kwargs: dict = {}
    for key in ("backend", "path"):
        if key in data:
            kwargs[key] = data[key]
    return StoreConfig(**kwargs)


def load_config(config_path: Path | None = None) -> Config:
    if config_path is None:
        config_path = DEFAULT_BASE_DIR / "config.json"
    if not config_path.exists():
        return Config()
    data = json.loads(config_path.read_text())
    kwargs: dict = {}
    if "base_dir" in data:
        kwargs["base_dir"] = Path(data["base_dir"])
    if "root" in data:
        kwargs["root"] = _store_config(data["root"])
    if "mounts" in data:
        kwargs["mounts"] = {prefix: _store_config(sc) for prefix, sc in data["mounts"].items()}
    for key in ("always_yes", "show_hidden", "workers"):
        if key in data:
            kwargs[key] = data[key]
    return Config(**kwargs)


def save_config(config: Config, config_path: Path) -> None:
    data = {
        "base_dir": str(config.base_dir),
        "root": {"backend": config.root.backend, "path": config.root.path},
        "mounts": {p: {"backend": sc.backend, "path": sc.path}
                   for p, sc in sorted(config.mounts.items())},
        "always_yes": config.always_yes,
        "show_hidden": config.show_hidden,
        "workers": config.workers,
    }
    atomic_write(config_path, (json.dumps(data, indent=2) + "\n").encode())


_BACKEND_REGISTRY: dict[str, str] = {
    "filesystem": "secretspace.storage.filesystem:FilesystemStore",
    "sqlite": "secretspace.storage.sqlite:SqliteStore",
    "memory": "secretspace.storage.memory:MemoryStore",
}


def register_backend(name: str, import_path: str) -> None:
    _BACKEND_REGISTRY[name] = import_path


def get_backend_class(name: str) -> type:
    import importlib
    if name not in _BACKEND_REGISTRY:
        raise KeyError(f"Unknown backend: {name}. Available: {list(_BACKEND_REGISTRY.keys())}")
    module_path, class_name = _BACKEND_REGISTRY[name].rsplit(":", 1)
    module = importlib.import_module(module_path)
    return getattr(module, class_name)
