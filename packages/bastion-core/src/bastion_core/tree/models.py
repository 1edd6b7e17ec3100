"""Grant handles produced by flattening a permission tree."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

ROOT_NAME = "root"
WILDCARD = "*"
EXISTENCE_SUFFIX = ".?"

_NUMERIC_RE = re.compile(r"[+-]?[0-9]+")


def is_numeric_segment(name: str) -> bool:
    """True when *name* is an integer literal (a numeric leaf)."""
    return _NUMERIC_RE.fullmatch(name) is not None


@dataclass(frozen=True)
class RootGrant:
    """Grant held by the tree's top node itself. It has no path."""

    def path(self) -> None:
        return None

    def permits(self, permission: str) -> bool:
        return permission == ""


@dataclass(frozen=True)
class PathGrant:
    """Grant for one node of the tree, addressed by its segments."""

    segments: tuple[str, ...]
    terminal: bool = field(default=True, compare=False)

    def __post_init__(self) -> None:
        if not self.segments:
            raise ValueError("PathGrant needs at least one segment")

    def path(self) -> str:
        return ".".join(self.segments)

    @property
    def is_wildcard(self) -> bool:
        return self.segments[-1] == WILDCARD

    def permits(self, permission: str) -> bool:
        """Match *permission* against this grant.

        ``a.b`` permits exactly ``a.b``. ``a.b.*`` permits anything below
        ``a.b``. A query ending in ``.?`` asks whether anything at or below
        its scope is granted.
        """
        if permission.endswith(EXISTENCE_SUFFIX):
            scope = tuple(permission[: -len(EXISTENCE_SUFFIX)].split("."))
            if self.segments[: len(scope)] == scope:
                return True
            return self._dominates(scope)
        return self._dominates(tuple(permission.split(".")))

    def _dominates(self, query: tuple[str, ...]) -> bool:
        if self.is_wildcard:
            prefix = self.segments[:-1]
            return len(query) > len(prefix) and query[: len(prefix)] == prefix
        return query == self.segments


Grant = RootGrant | PathGrant
