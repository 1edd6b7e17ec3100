"""Process-wide registry of every permission string seen by the engine.

Used only to drive suggestions. It grows for the lifetime of the process
and is rebuilt from registrations and live checks on every start.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable


class KnownPermissionRegistry:
    """Append-only, thread-safe set of permission strings."""

    def __init__(self, permissions: Iterable[str] = ()) -> None:
        self._lock = threading.Lock()
        self._known: set[str] = set(permissions)

    def register(self, permission: str) -> None:
        with self._lock:
            self._known.add(permission)

    def register_all(self, permissions: Iterable[str]) -> None:
        with self._lock:
            self._known.update(permissions)

    def snapshot(self) -> list[str]:
        """Sorted copy of everything registered so far."""
        with self._lock:
            return sorted(self._known)

    def suggest(self, prefix: str = "", exclude: Iterable[str] = ()) -> list[str]:
        """Sorted known permissions starting with *prefix*, minus *exclude*."""
        skip = set(exclude)
        return [p for p in self.snapshot() if p.startswith(prefix) and p not in skip]

    def __contains__(self, permission: object) -> bool:
        with self._lock:
            return permission in self._known

    def __len__(self) -> int:
        with self._lock:
            return len(self._known)


_registry: KnownPermissionRegistry | None = None
_registry_lock = threading.Lock()


def init_registry(seed: Iterable[str] = ()) -> KnownPermissionRegistry:
    """Install a fresh process registry, optionally pre-populated."""
    global _registry
    with _registry_lock:
        _registry = KnownPermissionRegistry(seed)
        return _registry


def get_registry() -> KnownPermissionRegistry:
    """Return the process registry, creating an empty one on first use."""
    global _registry
    with _registry_lock:
        if _registry is None:
            _registry = KnownPermissionRegistry()
        return _registry
