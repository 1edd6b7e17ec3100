"""Bastion Lite: local SQLite storage and command line for Bastion."""

from __future__ import annotations

from bastion_lite.storage.sqlite_store import SQLiteStore

__all__ = ["SQLiteStore"]
