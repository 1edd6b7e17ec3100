"""SQLite-backed permission storage for single-server deployments."""

from __future__ import annotations

from bastion_lite.storage.sqlite_store import SQLiteStore

__all__ = ["SQLiteStore"]
