"""Subjects, decision values and the provider interface."""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, field_validator


class PermissionValue(str, Enum):
    """Outcome of a check. There is no explicit deny state."""

    granted = "granted"
    default = "default"


class SubjectKind(str, Enum):
    user = "user"
    group = "group"


class Subject(BaseModel):
    """The owner of a permission tree: a user id or a group name."""

    model_config = ConfigDict(frozen=True)

    kind: SubjectKind
    id: str

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v: object) -> object:
        if isinstance(v, uuid.UUID):
            return str(v)
        if isinstance(v, str) and not v.strip():
            raise ValueError("id cannot be empty or whitespace")
        return v

    @classmethod
    def user(cls, user_id: str | uuid.UUID) -> Subject:
        return cls(kind=SubjectKind.user, id=user_id)

    @classmethod
    def group(cls, name: str) -> Subject:
        return cls(kind=SubjectKind.group, id=name)

    @property
    def is_user(self) -> bool:
        return self.kind is SubjectKind.user

    @property
    def key(self) -> str:
        return f"{self.kind.value}:{self.id}"

    def __str__(self) -> str:
        return self.key


@runtime_checkable
class PermissionProvider(Protocol):
    """Operations the command layer consumes."""

    def check(self, subject: Subject, permission: str) -> PermissionValue: ...

    def grant(self, subject: Subject, permission: str) -> None: ...

    def revoke(self, subject: Subject, permission: str) -> None: ...

    def list_granted(
        self, subject: Subject, inherited: bool = False, parent: str | None = None
    ) -> list[str]: ...

    def groups_of(self, user_id: str) -> list[str]: ...

    def known(self) -> list[str]: ...
