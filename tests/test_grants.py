"""Tests for grant matching — exact, trailing wildcard and existence queries."""

from __future__ import annotations

import pytest

from bastion_core.tree import PathGrant, RootGrant, is_numeric_segment


def grant(path: str) -> PathGrant:
    return PathGrant(tuple(path.split(".")))


class TestExactMatch:
    def test_same_path(self):
        assert grant("server.stop").permits("server.stop") is True

    def test_longer_query_not_permitted(self):
        assert grant("server").permits("server.stop") is False

    def test_shorter_query_not_permitted(self):
        assert grant("server.stop").permits("server") is False

    def test_sibling_not_permitted(self):
        assert grant("server.stop").permits("server.start") is False


class TestWildcard:
    @pytest.mark.parametrize("query", ["a.b.c", "a.b.c.d", "a.b.*", "a.b.c.d.e.f"])
    def test_trailing_wildcard_dominates_descendants(self, query):
        assert grant("a.b.*").permits(query) is True

    @pytest.mark.parametrize("query", ["a.x", "a.b", "a", "b.b.c"])
    def test_trailing_wildcard_outside_prefix(self, query):
        assert grant("a.b.*").permits(query) is False

    def test_bare_wildcard_permits_everything(self):
        assert grant("*").permits("anything.at.all") is True

    def test_inner_wildcard_is_literal(self):
        g = grant("a.*.c")
        assert g.permits("a.*.c") is True
        assert g.permits("a.b.c") is False

    def test_is_wildcard(self):
        assert grant("chat.*").is_wildcard is True
        assert grant("chat.color").is_wildcard is False


class TestExistenceQuery:
    def test_grant_below_scope(self):
        assert grant("permissions.groups.create").permits("permissions.groups.?") is True

    def test_grant_at_scope(self):
        assert grant("permissions.groups").permits("permissions.groups.?") is True

    def test_grant_above_scope(self):
        assert grant("permissions").permits("permissions.groups.?") is False

    def test_unrelated_grant(self):
        assert grant("chat.color").permits("permissions.groups.?") is False

    def test_wildcard_covering_scope(self):
        assert grant("permissions.*").permits("permissions.groups.?") is True

    def test_wildcard_inside_scope(self):
        assert grant("permissions.groups.*").permits("permissions.groups.?") is True


class TestRootGrant:
    def test_permits_only_the_root(self):
        assert RootGrant().permits("") is True
        assert RootGrant().permits("server.stop") is False

    def test_distinct_from_path_grant(self):
        assert RootGrant() != PathGrant(("",))


class TestPathGrant:
    def test_path(self):
        assert grant("a.b.c").path() == "a.b.c"

    def test_requires_segments(self):
        with pytest.raises(ValueError):
            PathGrant(())

    def test_terminal_ignored_in_equality(self):
        assert PathGrant(("a",), terminal=False) == PathGrant(("a",), terminal=True)


@pytest.mark.parametrize(
    "name,expected",
    [("5", True), ("-12", True), ("+3", True), ("007", True), ("5a", False), ("", False), ("*", False)],
)
def test_is_numeric_segment(name, expected):
    assert is_numeric_segment(name) is expected
