"""Permission tree and the grant handles it produces."""

from bastion_core.tree.models import (
    EXISTENCE_SUFFIX,
    ROOT_NAME,
    WILDCARD,
    Grant,
    PathGrant,
    RootGrant,
    is_numeric_segment,
)
from bastion_core.tree.tree import PermissionTree

__all__ = [
    "EXISTENCE_SUFFIX",
    "Grant",
    "PathGrant",
    "PermissionTree",
    "ROOT_NAME",
    "RootGrant",
    "WILDCARD",
    "is_numeric_segment",
]
