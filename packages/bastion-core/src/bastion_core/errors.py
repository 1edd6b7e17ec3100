"""Exception hierarchy for the permission engine."""

from __future__ import annotations


class BastionError(Exception):
    """Base class for every error raised by bastion."""


class InvalidPermissionError(BastionError, ValueError):
    """A permission string failed boundary validation."""

    def __init__(self, permission: str, reason: str) -> None:
        self.permission = permission
        self.reason = reason
        super().__init__(reason)


class TreeStructureError(BastionError, RuntimeError):
    """A permission tree broke its structural invariants.

    Not recoverable: the tree is corrupt or was edited by hand.
    """


class NotFoundError(BastionError):
    """A group, membership or stored tree required by an operation is absent."""


class ConflictError(BastionError):
    """An operation collided with existing state."""


class ProtectedGroupError(ConflictError):
    """Members can never be removed from the default group."""

    def __init__(self, group: str) -> None:
        self.group = group
        super().__init__(f"Cannot remove user from group '{group}'!")


class CommandSyntaxError(BastionError):
    """A command line could not be matched against the command tree."""

    def __init__(self, message: str, cursor: int = 0) -> None:
        self.cursor = cursor
        super().__init__(message)
