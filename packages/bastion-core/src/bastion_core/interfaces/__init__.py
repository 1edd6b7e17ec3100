"""Interfaces shared by the engine, storage backends and command layer."""

from bastion_core.interfaces.provider import (
    PermissionProvider,
    PermissionValue,
    Subject,
    SubjectKind,
)
from bastion_core.interfaces.storage import (
    MembershipStore,
    PermissionStore,
    SerializedTree,
    TreeStore,
)

__all__ = [
    "MembershipStore",
    "PermissionProvider",
    "PermissionStore",
    "PermissionValue",
    "SerializedTree",
    "Subject",
    "SubjectKind",
    "TreeStore",
]
