"""PermissionStore kept entirely in process memory."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from bastion_core.interfaces.provider import Subject, SubjectKind
from bastion_core.interfaces.storage import SerializedTree
from bastion_core.tree import PermissionTree


def _copy(tree: SerializedTree) -> SerializedTree:
    """Copy a tree blob without recursion, however deep it is."""
    return PermissionTree.from_dict(tree).to_dict()


class InMemoryStore:
    """Dict-backed store for tests and embedding.

    Blobs are copied on the way in and out so callers never share
    state with the store. Writes and ``atomic()`` blocks hold one re-entrant
    lock; reads go straight to the dicts.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._user_trees: dict[str, SerializedTree] = {}
        self._group_trees: dict[str, SerializedTree] = {}
        # user -> groups, kept in insertion order
        self._memberships: dict[str, list[str]] = {}

    def _trees_for(self, subject: Subject) -> dict[str, SerializedTree]:
        if subject.kind is SubjectKind.user:
            return self._user_trees
        return self._group_trees

    @contextmanager
    def atomic(self) -> Iterator[None]:
        with self._lock:
            yield

    # -- trees ------------------------------------------------------------------

    def load_tree(self, subject: Subject) -> SerializedTree | None:
        tree = self._trees_for(subject).get(subject.id)
        return _copy(tree) if tree is not None else None

    def save_tree(self, subject: Subject, tree: SerializedTree) -> None:
        with self._lock:
            self._trees_for(subject)[subject.id] = _copy(tree)

    # -- memberships ------------------------------------------------------------

    def load_memberships(self, user_id: str) -> list[str]:
        return list(self._memberships.get(user_id, ()))

    def has_membership(self, user_id: str, group: str) -> bool:
        return group in self._memberships.get(user_id, ())

    def add_membership(self, user_id: str, group: str) -> None:
        with self._lock:
            groups = self._memberships.setdefault(user_id, [])
            if group not in groups:
                groups.append(group)

    def remove_membership(self, user_id: str, group: str) -> None:
        with self._lock:
            groups = self._memberships.get(user_id)
            if groups and group in groups:
                groups.remove(group)

    def list_members(self, group: str) -> list[str]:
        with self._lock:
            return [u for u, groups in self._memberships.items() if group in groups]

    # -- groups -----------------------------------------------------------------

    def list_groups(self) -> list[str]:
        with self._lock:
            return sorted(self._group_trees)

    def group_exists(self, group: str) -> bool:
        return group in self._group_trees

    def create_group_record(self, group: str, tree: SerializedTree) -> None:
        with self._lock:
            self._group_trees[group] = _copy(tree)

    def delete_group_record(self, group: str) -> None:
        with self._lock:
            self._group_trees.pop(group, None)
