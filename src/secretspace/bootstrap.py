from __future__ import annotations

import logging

from secretspace.afs.namespace import Namespace
from secretspace.core.config import Config, StoreConfig, get_backend_class
from secretspace.storage.base import Store

logger = logging.getLogger(__name__)


def open_store(store_config: StoreConfig, config: Config, name: str) -> Store:
    cls = get_backend_class(store_config.backend)
    if store_config.backend == "memory":
        return cls(name=name)
    path = store_config.resolve_path(config.base_dir)
    if store_config.backend == "sqlite" and path.suffix != ".db":
        path = path.with_suffix(".db")
    return cls(path, name=name)


def build_namespace(config: Config) -> Namespace:
    ns = Namespace(open_store(config.root, config, name="root"))
    # parents before children so nested mount checks see the outer mount
    for prefix in sorted(config.mounts):
        ns.mount(prefix, open_store(config.mounts[prefix], config, name=prefix.strip("/")))
    logger.debug("Built namespace with %d mounts under %s", len(config.mounts), config.base_dir)
    return ns
