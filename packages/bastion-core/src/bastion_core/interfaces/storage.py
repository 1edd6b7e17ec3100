"""Storage contract the engine needs from a backend."""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Any, Protocol, runtime_checkable

from bastion_core.interfaces.provider import Subject

# ``{"name": str, "children": [SerializedTree, ...]}``
SerializedTree = dict[str, Any]


@runtime_checkable
class TreeStore(Protocol):
    """Opaque per-subject tree blobs."""

    def atomic(self) -> AbstractContextManager[None]: ...

    def load_tree(self, subject: Subject) -> SerializedTree | None: ...

    def save_tree(self, subject: Subject, tree: SerializedTree) -> None: ...


@runtime_checkable
class MembershipStore(Protocol):
    """Group records and (user, group) membership edges."""

    def load_memberships(self, user_id: str) -> list[str]: ...

    def has_membership(self, user_id: str, group: str) -> bool: ...

    def add_membership(self, user_id: str, group: str) -> None: ...

    def remove_membership(self, user_id: str, group: str) -> None: ...

    def list_members(self, group: str) -> list[str]: ...

    def list_groups(self) -> list[str]: ...

    def group_exists(self, group: str) -> bool: ...

    def create_group_record(self, group: str, tree: SerializedTree) -> None: ...

    def delete_group_record(self, group: str) -> None: ...


@runtime_checkable
class PermissionStore(TreeStore, MembershipStore, Protocol):
    """Full backend: trees plus memberships.

    ``save_tree`` is an upsert. Everything executed inside ``atomic()``
    commits or rolls back together.
    """

    ...
