"""Tests for permission string validation at the boundary."""

from __future__ import annotations

import pytest

from bastion_core.errors import BastionError, InvalidPermissionError
from bastion_core.syntax import EXAMPLES, is_existence_query, parse_permission, parse_query


@pytest.mark.parametrize(
    "text",
    ["server.stop", "chat.*", "homes.max.5", "a_b-c.D9", "*", "permissions.groups.create"],
)
def test_valid_permissions_pass_through(text):
    assert parse_permission(text) == text


@pytest.mark.parametrize("char", [" ", "?", "/", ":", "é", "$"])
def test_invalid_character_rejected(char):
    with pytest.raises(InvalidPermissionError) as exc:
        parse_permission(f"chat{char}color")
    assert str(exc.value) == f"Invalid character in permission: '{char}'"


def test_existence_query_rejected_at_boundary():
    with pytest.raises(InvalidPermissionError):
        parse_permission("permissions.groups.?")


def test_empty_rejected():
    with pytest.raises(InvalidPermissionError):
        parse_permission("")


def test_error_is_value_error_and_bastion_error():
    with pytest.raises(ValueError):
        parse_permission("bad perm")
    with pytest.raises(BastionError):
        parse_permission("bad perm")


def test_is_existence_query():
    assert is_existence_query("a.b.?") is True
    assert is_existence_query("a.b") is False
    assert is_existence_query("a.b?") is False


def test_examples_are_valid():
    for example in EXAMPLES:
        assert parse_permission(example) == example


@pytest.mark.parametrize("text", ["server.stop", "permissions.groups.?", "chat.*.?"])
def test_query_accepts_permissions_and_existence_queries(text):
    assert parse_query(text) == text


@pytest.mark.parametrize("text", ["bad perm!", "bad scope.?", ".?", "", "a.?.b"])
def test_query_rejects_invalid(text):
    with pytest.raises(InvalidPermissionError):
        parse_query(text)
