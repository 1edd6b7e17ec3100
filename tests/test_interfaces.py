"""Tests for bastion_core.interfaces — subjects, enums, and structural subtyping."""

from __future__ import annotations

import uuid

import pytest
from pydantic import ValidationError

from bastion_core.interfaces import (
    MembershipStore,
    PermissionProvider,
    PermissionStore,
    PermissionValue,
    Subject,
    SubjectKind,
    TreeStore,
)
from bastion_core.storage import InMemoryStore


# ---------------------------------------------------------------------------
# Enum values
# ---------------------------------------------------------------------------


class TestPermissionValue:
    def test_members(self):
        assert set(PermissionValue) == {PermissionValue.granted, PermissionValue.default}

    def test_string_values(self):
        for member in PermissionValue:
            assert member.value == member.name


class TestSubjectKind:
    def test_string_values(self):
        assert SubjectKind("user") is SubjectKind.user
        assert SubjectKind("group") is SubjectKind.group


# ---------------------------------------------------------------------------
# Subject
# ---------------------------------------------------------------------------


class TestSubject:
    def test_user_from_uuid(self):
        uid = uuid.UUID("6a1f0c1e-3b9d-4d2f-9a57-0e2d6f3c8b11")
        subject = Subject.user(uid)
        assert subject.id == str(uid)
        assert subject.is_user

    def test_group(self):
        subject = Subject.group("admins")
        assert subject.kind is SubjectKind.group
        assert not subject.is_user

    def test_key_and_str(self):
        assert Subject.group("admins").key == "group:admins"
        assert str(Subject.user("u1")) == "user:u1"

    def test_same_id_different_kind_differ(self):
        assert Subject.user("admins") != Subject.group("admins")
        assert Subject.user("admins").key != Subject.group("admins").key

    def test_hashable_and_equal(self):
        assert {Subject.user("u1"), Subject.user("u1")} == {Subject.user("u1")}

    def test_frozen(self):
        subject = Subject.user("u1")
        with pytest.raises(ValidationError):
            subject.id = "u2"

    @pytest.mark.parametrize("bad", ["", "   "])
    def test_blank_id_rejected(self, bad):
        with pytest.raises(ValidationError):
            Subject.group(bad)

    def test_round_trip(self):
        subject = Subject.group("mods")
        assert Subject.model_validate_json(subject.model_dump_json()) == subject


# ---------------------------------------------------------------------------
# Structural subtyping
# ---------------------------------------------------------------------------


class TestProtocols:
    def test_memory_store_satisfies_all(self):
        store = InMemoryStore()
        assert isinstance(store, TreeStore)
        assert isinstance(store, MembershipStore)
        assert isinstance(store, PermissionStore)

    def test_partial_store_is_not_a_permission_store(self):
        class TreesOnly:
            def atomic(self): ...
            def load_tree(self, subject): ...
            def save_tree(self, subject, tree): ...

        assert isinstance(TreesOnly(), TreeStore)
        assert not isinstance(TreesOnly(), PermissionStore)

    def test_engine_satisfies_provider(self, engine):
        assert isinstance(engine, PermissionProvider)

    def test_plain_object_is_not_a_provider(self):
        assert not isinstance(object(), PermissionProvider)
