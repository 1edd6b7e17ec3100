"""Resolution engine and administrative operations."""

from bastion_core.engine.admin import DEFAULT_GROUP, GroupAdmin
from bastion_core.engine.locks import KeyedLock
from bastion_core.engine.resolver import PermissionEngine

__all__ = ["DEFAULT_GROUP", "GroupAdmin", "KeyedLock", "PermissionEngine"]
