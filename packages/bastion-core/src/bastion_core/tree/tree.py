"""Permission tree: granted permission paths stored as an ordered named tree."""

from __future__ import annotations

import json
from collections.abc import Iterator
from typing import Any

from bastion_core.errors import TreeStructureError
from bastion_core.tree.models import (
    ROOT_NAME,
    Grant,
    PathGrant,
    RootGrant,
    is_numeric_segment,
)

_ROOT = 0


class PermissionTree:
    """Ordered tree whose root-to-node paths are granted permissions.

    Nodes live in an arena addressed by index: ``_names[i]`` is the name
    segment of node ``i`` and ``_children[i]`` lists its child indices in
    insertion order. Index 0 is the top node. Removing a node only unlinks
    it from its parent, so detached slots are simply unreachable.
    """

    def __init__(self, name: str = ROOT_NAME) -> None:
        self._names: list[str] = [name]
        self._children: list[list[int]] = [[]]

    @property
    def name(self) -> str:
        return self._names[_ROOT]

    # ------------------------------------------------------------------
    # Walking
    # ------------------------------------------------------------------

    def _child(self, parent: int, name: str, *, create: bool) -> int | None:
        """Find the child of *parent* called *name*, optionally creating it."""
        if is_numeric_segment(self._names[parent]):
            raise TreeStructureError(
                "Nodes with numerical values cannot have child nodes "
                f"(tried to reach {name!r} under {self._names[parent]!r})"
            )
        for idx in self._children[parent]:
            if self._names[idx] == name:
                return idx
        if not create:
            return None
        self._names.append(name)
        self._children.append([])
        idx = len(self._names) - 1
        self._children[parent].append(idx)
        return idx

    def _walk(self, permission: str) -> list[int] | None:
        """Indices from the top node down to *permission*, or None if absent."""
        trail = [_ROOT]
        for segment in permission.split("."):
            if is_numeric_segment(self._names[trail[-1]]):
                return None
            idx = self._child(trail[-1], segment, create=False)
            if idx is None:
                return None
            trail.append(idx)
        return trail

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def get_or_create(self, permission: str) -> PathGrant:
        """Make sure every segment of *permission* exists as a node."""
        idx = _ROOT
        for segment in permission.split("."):
            idx = self._child(idx, segment, create=True)
        return PathGrant(
            tuple(permission.split(".")), terminal=not self._children[idx]
        )

    def remove(self, permission: str) -> bool:
        """Detach the node for *permission* from its parent.

        Ancestors stay in place even when they end up childless. Returns
        False when the path was not present.
        """
        trail = self._walk(permission)
        if trail is None:
            return False
        parent, node = trail[-2], trail[-1]
        self._children[parent].remove(node)
        return True

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def contains(self, permission: str) -> bool:
        return self._walk(permission) is not None

    def nodes(self) -> Iterator[Grant]:
        """Yield every grant in pre-order, children in insertion order.

        A tree topped by the ``root`` sentinel yields a :class:`RootGrant`
        first. Each call starts a fresh traversal.
        """
        if self.name == ROOT_NAME:
            yield RootGrant()
        stack: list[tuple[int, tuple[str, ...]]] = [
            (idx, (self._names[idx],)) for idx in reversed(self._children[_ROOT])
        ]
        while stack:
            idx, segments = stack.pop()
            children = self._children[idx]
            yield PathGrant(segments, terminal=not children)
            for child in reversed(children):
                stack.append((child, segments + (self._names[child],)))

    def paths(self, terminal_only: bool = False) -> list[str]:
        """Dotted paths of every granted node, in traversal order."""
        return [
            g.path()
            for g in self.nodes()
            if isinstance(g, PathGrant) and (g.terminal or not terminal_only)
        ]

    def permits(self, permission: str) -> bool:
        return any(g.permits(permission) for g in self.nodes())

    def is_empty(self) -> bool:
        return not self._children[_ROOT]

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Nested ``{"name", "children"}`` representation of the reachable tree."""
        out: dict[str, Any] = {"name": self._names[_ROOT], "children": []}
        stack: list[tuple[int, dict[str, Any]]] = [(_ROOT, out)]
        while stack:
            idx, data = stack.pop()
            for child in self._children[idx]:
                child_data: dict[str, Any] = {"name": self._names[child], "children": []}
                data["children"].append(child_data)
                stack.append((child, child_data))
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PermissionTree:
        """Rebuild a tree from :meth:`to_dict` output, validating its shape."""
        tree = cls(_read_name(data))
        stack: list[tuple[int, dict[str, Any]]] = [(_ROOT, data)]
        while stack:
            idx, node = stack.pop()
            children = node.get("children", [])
            if not isinstance(children, list):
                raise TreeStructureError(
                    f"children of {tree._names[idx]!r} must be a list"
                )
            if children and is_numeric_segment(tree._names[idx]):
                raise TreeStructureError(
                    f"Numeric node {tree._names[idx]!r} has child nodes"
                )
            seen: set[str] = set()
            for child_data in children:
                name = _read_name(child_data)
                if name in seen:
                    raise TreeStructureError(
                        f"Duplicate child {name!r} under {tree._names[idx]!r}"
                    )
                seen.add(name)
                tree._names.append(name)
                tree._children.append([])
                child = len(tree._names) - 1
                tree._children[idx].append(child)
                stack.append((child, child_data))
        return tree

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, data: str) -> PermissionTree:
        return cls.from_dict(json.loads(data))

    # ------------------------------------------------------------------
    # Dunder
    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PermissionTree):
            return NotImplemented
        if self.name != other.name:
            return False
        # walk both arenas in lockstep; child order is significant
        stack = [(_ROOT, _ROOT)]
        while stack:
            mine, theirs = stack.pop()
            left, right = self._children[mine], other._children[theirs]
            if len(left) != len(right):
                return False
            for a, b in zip(left, right):
                if self._names[a] != other._names[b]:
                    return False
                stack.append((a, b))
        return True

    def __repr__(self) -> str:
        return f"PermissionTree({self.paths()!r})"


def _read_name(data: Any) -> str:
    if not isinstance(data, dict) or not isinstance(data.get("name"), str):
        raise TreeStructureError(f"Malformed tree node: {data!r}")
    return data["name"]
