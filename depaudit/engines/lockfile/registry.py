"""Adapter registry: one lockfile adapter per package manager."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class LockfileAdapter(Protocol):
    """Interface that every lockfile adapter must satisfy.

    ``parse`` receives the already-read file content and returns
    ``name -> resolved version``.  It raises ``LockfileParseError`` on a
    malformed document and never touches the filesystem.
    """

    manager: str
    lockfile_name: str

    def parse(self, content: str) -> dict[str, str]: ...


ADAPTER_REGISTRY: dict[str, LockfileAdapter] = {}


def register_adapter(adapter: LockfileAdapter) -> None:
    """Register an adapter instance by its manager id."""
    ADAPTER_REGISTRY[adapter.manager] = adapter


def get_adapter(manager: str) -> LockfileAdapter | None:
    return ADAPTER_REGISTRY.get(manager)
