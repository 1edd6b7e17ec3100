"""Group lifecycle and membership administration."""

from __future__ import annotations

import logging

from bastion_core.engine.resolver import PermissionEngine
from bastion_core.errors import ConflictError, NotFoundError, ProtectedGroupError
from bastion_core.interfaces.provider import Subject
from bastion_core.tree import PermissionTree

logger = logging.getLogger(__name__)

DEFAULT_GROUP = "everyone"


class GroupAdmin:
    """Create/delete groups and manage who belongs to them.

    Every failure is reported as an exception carrying a user-facing
    message; nothing is mutated when an operation fails.
    """

    def __init__(self, engine: PermissionEngine, default_group: str = DEFAULT_GROUP) -> None:
        self.engine = engine
        self.store = engine.store
        self.default_group = default_group

    # -- groups -----------------------------------------------------------------

    def create_group(self, name: str) -> None:
        key = Subject.group(name).key
        with self.engine.locks.hold(key), self.store.atomic():
            if self.store.group_exists(name):
                raise ConflictError(f"Group '{name}' already exists!")
            self.store.create_group_record(name, PermissionTree().to_dict())
        logger.info("Created group %s", name)

    def delete_group(self, name: str) -> None:
        key = Subject.group(name).key
        with self.engine.locks.hold(key), self.store.atomic():
            if not self.store.group_exists(name):
                raise NotFoundError(f"Group '{name}' does not exist!")
            self.store.delete_group_record(name)
        logger.info("Deleted group %s", name)

    def groups(self) -> list[str]:
        return self.store.list_groups()

    def members(self, name: str) -> list[str]:
        if not self.store.group_exists(name):
            raise NotFoundError(f"Group '{name}' does not exist!")
        return self.store.list_members(name)

    # -- memberships ------------------------------------------------------------

    def add_member(self, group: str, user_id: str) -> None:
        key = Subject.user(user_id).key
        with self.engine.locks.hold(key), self.store.atomic():
            if not self.store.group_exists(group):
                raise NotFoundError(f"Group '{group}' does not exist!")
            if self.store.has_membership(user_id, group):
                raise ConflictError(f"User '{user_id}' is already in group '{group}'!")
            self.store.add_membership(user_id, group)
        logger.info("Added %s to group %s", user_id, group)

    def remove_member(self, group: str, user_id: str) -> None:
        if group == self.default_group:
            raise ProtectedGroupError(group)
        key = Subject.user(user_id).key
        with self.engine.locks.hold(key), self.store.atomic():
            if not self.store.group_exists(group):
                raise NotFoundError(f"Group '{group}' does not exist!")
            if not self.store.has_membership(user_id, group):
                raise NotFoundError(f"User '{user_id}' is not in group '{group}'!")
            self.store.remove_membership(user_id, group)
        logger.info("Removed %s from group %s", user_id, group)

    # -- lifecycle --------------------------------------------------------------

    def ensure_default_group(self) -> bool:
        """Create the default group record if it is missing. True if created."""
        key = Subject.group(self.default_group).key
        with self.engine.locks.hold(key), self.store.atomic():
            if self.store.group_exists(self.default_group):
                return False
            self.store.create_group_record(self.default_group, PermissionTree().to_dict())
        logger.info("Created default group %s", self.default_group)
        return True

    def on_connect(self, user_id: str) -> bool:
        """Enrol a connecting user in the default group. True if enrolled now."""
        key = Subject.user(user_id).key
        with self.engine.locks.hold(key), self.store.atomic():
            if self.store.has_membership(user_id, self.default_group):
                return False
            self.store.add_membership(user_id, self.default_group)
        logger.info("Enrolled %s in default group %s", user_id, self.default_group)
        return True
