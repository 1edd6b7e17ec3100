"""PermissionStore implementation backed by a local SQLite database."""

from __future__ import annotations

import json
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from bastion_core.interfaces.provider import Subject, SubjectKind
from bastion_core.interfaces.storage import SerializedTree

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS user_permissions (
    user_id TEXT PRIMARY KEY,
    permission_tree TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS group_permissions (
    name TEXT PRIMARY KEY,
    permission_tree TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS group_users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL,
    group_name TEXT NOT NULL,
    UNIQUE (user_id, group_name)
);
CREATE INDEX IF NOT EXISTS idx_group_users_user ON group_users(user_id);
CREATE INDEX IF NOT EXISTS idx_group_users_group ON group_users(group_name);
"""

# (table, key column) per subject kind
_TREE_TABLES = {
    SubjectKind.user: ("user_permissions", "user_id"),
    SubjectKind.group: ("group_permissions", "name"),
}


class SQLiteStore:
    """PermissionStore using SQLite with WAL mode.

    Each thread gets its own connection, so readers never wait on another
    thread's open transaction. ``atomic()`` takes the database write lock
    up front with BEGIN IMMEDIATE, which serializes read-modify-write
    cycles across threads and processes.
    """

    def __init__(self, db_path: str = ".bastion/permissions.db", timeout: float = 5.0) -> None:
        if db_path == ":memory:":
            raise ValueError("SQLiteStore needs a file path; use InMemoryStore instead")
        path = Path(db_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        self.db_path = str(path)
        self.timeout = timeout
        self._local = threading.local()
        self._connections: list[sqlite3.Connection] = []
        self._connections_lock = threading.Lock()
        self._conn.executescript(_SCHEMA)

    # -- helpers ---------------------------------------------------------------

    @property
    def _conn(self) -> sqlite3.Connection:
        conn = getattr(self._local, "conn", None)
        if conn is None:
            # isolation_level=None => autocommit mode, giving us manual
            # transaction control in atomic().
            conn = sqlite3.connect(
                self.db_path,
                isolation_level=None,
                timeout=self.timeout,
                check_same_thread=False,
            )
            conn.execute("PRAGMA journal_mode=WAL")
            self._local.conn = conn
            self._local.depth = 0
            with self._connections_lock:
                self._connections.append(conn)
        return conn

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Run the block in one write transaction. Nested blocks join the outer one."""
        conn = self._conn
        if self._local.depth:
            self._local.depth += 1
            try:
                yield
            finally:
                self._local.depth -= 1
            return

        conn.execute("BEGIN IMMEDIATE")
        self._local.depth = 1
        try:
            yield
        except BaseException:
            conn.execute("ROLLBACK")
            raise
        else:
            conn.execute("COMMIT")
        finally:
            self._local.depth = 0

    def close(self) -> None:
        with self._connections_lock:
            for conn in self._connections:
                conn.close()
            self._connections.clear()
        self._local = threading.local()

    # -- trees -----------------------------------------------------------------

    def load_tree(self, subject: Subject) -> SerializedTree | None:
        table, column = _TREE_TABLES[subject.kind]
        row = self._conn.execute(
            f"SELECT permission_tree FROM {table} WHERE {column} = ?",
            (subject.id,),
        ).fetchone()
        return json.loads(row[0]) if row is not None else None

    def save_tree(self, subject: Subject, tree: SerializedTree) -> None:
        table, column = _TREE_TABLES[subject.kind]
        self._conn.execute(
            f"INSERT INTO {table} ({column}, permission_tree) VALUES (?, ?) "
            f"ON CONFLICT({column}) DO UPDATE SET permission_tree = excluded.permission_tree",
            (subject.id, json.dumps(tree)),
        )

    # -- memberships -----------------------------------------------------------

    def load_memberships(self, user_id: str) -> list[str]:
        rows = self._conn.execute(
            "SELECT group_name FROM group_users WHERE user_id = ? ORDER BY id ASC",
            (user_id,),
        ).fetchall()
        return [r[0] for r in rows]

    def has_membership(self, user_id: str, group: str) -> bool:
        row = self._conn.execute(
            "SELECT 1 FROM group_users WHERE user_id = ? AND group_name = ?",
            (user_id, group),
        ).fetchone()
        return row is not None

    def add_membership(self, user_id: str, group: str) -> None:
        self._conn.execute(
            "INSERT OR IGNORE INTO group_users (user_id, group_name) VALUES (?, ?)",
            (user_id, group),
        )

    def remove_membership(self, user_id: str, group: str) -> None:
        self._conn.execute(
            "DELETE FROM group_users WHERE user_id = ? AND group_name = ?",
            (user_id, group),
        )

    def list_members(self, group: str) -> list[str]:
        rows = self._conn.execute(
            "SELECT user_id FROM group_users WHERE group_name = ? ORDER BY id ASC",
            (group,),
        ).fetchall()
        return [r[0] for r in rows]

    # -- groups ----------------------------------------------------------------

    def list_groups(self) -> list[str]:
        rows = self._conn.execute(
            "SELECT name FROM group_permissions ORDER BY name ASC"
        ).fetchall()
        return [r[0] for r in rows]

    def group_exists(self, group: str) -> bool:
        row = self._conn.execute(
            "SELECT 1 FROM group_permissions WHERE name = ?", (group,)
        ).fetchone()
        return row is not None

    def create_group_record(self, group: str, tree: SerializedTree) -> None:
        self._conn.execute(
            "INSERT INTO group_permissions (name, permission_tree) VALUES (?, ?)",
            (group, json.dumps(tree)),
        )

    def delete_group_record(self, group: str) -> None:
        self._conn.execute("DELETE FROM group_permissions WHERE name = ?", (group,))

    # -- extras ----------------------------------------------------------------

    def stats(self) -> dict[str, int]:
        """Row counts per table."""
        counts: dict[str, int] = {}
        for table in ("user_permissions", "group_permissions", "group_users"):
            counts[table] = self._conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
        return counts
