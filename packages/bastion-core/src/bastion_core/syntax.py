"""Boundary validation for permission strings."""

from __future__ import annotations

import string

from bastion_core.errors import InvalidPermissionError
from bastion_core.tree.models import EXISTENCE_SUFFIX

ALLOWED_CHARACTERS = frozenset(string.ascii_letters + string.digits + "_-.*")

EXAMPLES = ("permissions.edit.user.grant", "permissions.groups.*")


def parse_permission(text: str) -> str:
    """Return *text* unchanged if it is a valid permission string.

    Only ``[0-9A-Za-z_.*-]`` is accepted. Anything else is rejected before it
    can reach the engine.
    """
    if not text:
        raise InvalidPermissionError(text, "Permission cannot be empty")
    for char in text:
        if char not in ALLOWED_CHARACTERS:
            raise InvalidPermissionError(
                text, f"Invalid character in permission: '{char}'"
            )
    return text


def parse_query(text: str) -> str:
    """Like :func:`parse_permission`, but also accepts a ``scope.?`` existence query."""
    if is_existence_query(text):
        parse_permission(text[: -len(EXISTENCE_SUFFIX)])
        return text
    return parse_permission(text)


def is_existence_query(permission: str) -> bool:
    """True for ``scope.?`` queries, which are never recorded as known."""
    return permission.endswith(EXISTENCE_SUFFIX)
