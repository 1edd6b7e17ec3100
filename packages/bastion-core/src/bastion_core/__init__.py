"""Bastion Core - permission trees, grant matching and the resolution engine."""

from bastion_core.config import BastionConfig, load_config
from bastion_core.engine import GroupAdmin, PermissionEngine
from bastion_core.errors import (
    BastionError,
    ConflictError,
    InvalidPermissionError,
    NotFoundError,
    ProtectedGroupError,
    TreeStructureError,
)
from bastion_core.interfaces import PermissionStore, PermissionValue, Subject
from bastion_core.registry import KnownPermissionRegistry, get_registry, init_registry
from bastion_core.storage import InMemoryStore
from bastion_core.syntax import parse_permission
from bastion_core.tree import PathGrant, PermissionTree, RootGrant

__version__ = "0.1.0"

__all__ = [
    "BastionConfig",
    "BastionError",
    "ConflictError",
    "GroupAdmin",
    "InMemoryStore",
    "InvalidPermissionError",
    "KnownPermissionRegistry",
    "NotFoundError",
    "PathGrant",
    "PermissionEngine",
    "PermissionStore",
    "PermissionTree",
    "PermissionValue",
    "ProtectedGroupError",
    "RootGrant",
    "Subject",
    "TreeStructureError",
    "get_registry",
    "init_registry",
    "load_config",
    "parse_permission",
]
