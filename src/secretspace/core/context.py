from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class OpContext:
    """Per-call flags for namespace operations.

    always_yes: answer yes to every confirmation (overwrites).
    show_hidden: include keys with a dot-prefixed segment in listings.
    workers: thread pool size for per-secret relocations; 1 runs inline.
    """

    always_yes: bool = False
    show_hidden: bool = False
    workers: int = 1

    def with_options(self, **changes) -> "OpContext":
        return replace(self, **changes)


DEFAULT_CONTEXT = OpContext()
