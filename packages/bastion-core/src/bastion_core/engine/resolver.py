"""Resolution engine: combines direct and group grants into one decision."""

from __future__ import annotations

import logging
from collections.abc import Callable

from bastion_core.engine.locks import KeyedLock
from bastion_core.interfaces.provider import PermissionValue, Subject
from bastion_core.interfaces.storage import PermissionStore
from bastion_core.registry import KnownPermissionRegistry, get_registry
from bastion_core.syntax import is_existence_query
from bastion_core.tree import PermissionTree

logger = logging.getLogger(__name__)


class PermissionEngine:
    """Checks, grants, revokes and lists permissions for users and groups."""

    def __init__(
        self,
        store: PermissionStore,
        registry: KnownPermissionRegistry | None = None,
    ) -> None:
        self.store = store
        self.registry = registry if registry is not None else get_registry()
        self.locks = KeyedLock()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_tree(self, subject: Subject) -> PermissionTree | None:
        data = self.store.load_tree(subject)
        if data is None:
            return None
        return PermissionTree.from_dict(data)

    def _load_or_create(self, subject: Subject) -> PermissionTree:
        tree = self.load_tree(subject)
        return tree if tree is not None else PermissionTree()

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def _observe(self, permission: str) -> None:
        if not is_existence_query(permission):
            self.registry.register(permission)

    def _direct(self, subject: Subject, permission: str) -> bool:
        tree = self.load_tree(subject)
        return tree is not None and tree.permits(permission)

    def check(self, subject: Subject, permission: str) -> PermissionValue:
        """Decide *permission* for *subject*.

        The subject's own tree wins outright. For users, groups are then
        tried in membership order and the first one that grants wins.
        An empty query names no permission and is never granted.
        """
        if not permission:
            return PermissionValue.default
        self._observe(permission)
        if self._direct(subject, permission):
            logger.debug("%s granted %s directly", subject, permission)
            return PermissionValue.granted

        if subject.is_user:
            for group in self.store.load_memberships(subject.id):
                if self._direct(Subject.group(group), permission):
                    logger.debug("%s granted %s via group %s", subject, permission, group)
                    return PermissionValue.granted

        return PermissionValue.default

    def check_group(self, group: str, permission: str) -> PermissionValue:
        return self.check(Subject.group(group), permission)

    def has_permission(self, subject: Subject, permission: str) -> bool:
        return self.check(subject, permission) is PermissionValue.granted

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def _mutate(self, subject: Subject, change: Callable[[PermissionTree], object]) -> None:
        """Load-or-create, change and persist *subject*'s tree as one unit."""
        with self.locks.hold(subject.key), self.store.atomic():
            tree = self._load_or_create(subject)
            change(tree)
            self.store.save_tree(subject, tree.to_dict())

    def grant(self, subject: Subject, permission: str) -> None:
        self._mutate(subject, lambda tree: tree.get_or_create(permission))
        logger.info("Granted %s to %s", permission, subject)

    def revoke(self, subject: Subject, permission: str) -> None:
        self._mutate(subject, lambda tree: tree.remove(permission))
        logger.info("Revoked %s from %s", permission, subject)

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def _own_paths(self, subject: Subject) -> list[str]:
        tree = self.load_tree(subject)
        return tree.paths(terminal_only=True) if tree is not None else []

    def list_granted(
        self,
        subject: Subject,
        inherited: bool = False,
        parent: str | None = None,
    ) -> list[str]:
        """Paths granted to *subject*.

        Own grants come first, then (when *inherited*) each group's grants
        in membership order. Duplicates are kept. With *parent*, only paths
        starting with it are returned, with the prefix stripped.
        """
        paths = self._own_paths(subject)
        if inherited and subject.is_user:
            for group in self.store.load_memberships(subject.id):
                paths.extend(self._own_paths(Subject.group(group)))
        if parent is not None:
            paths = [p.removeprefix(parent) for p in paths if p.startswith(parent)]
        return paths

    def groups_of(self, user_id: str) -> list[str]:
        return self.store.load_memberships(user_id)

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def register(self, *permissions: str) -> None:
        """Make *permissions* visible to suggestions without checking them."""
        self.registry.register_all(permissions)

    def known(self) -> list[str]:
        return self.registry.snapshot()
