from typing import Literal

from pydantic import BaseModel, Field, field_validator


class StorageConfig(BaseModel):
    backend: str = "sqlite"
    path: str = ".bastion/permissions.db"
    timeout: float = Field(default=5.0, gt=0)


class GroupsConfig(BaseModel):
    default_group: str = "everyone"
    auto_enroll: bool = True

    @field_validator("default_group")
    @classmethod
    def validate_default_group(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("default_group cannot be empty")
        return v


class RegistryConfig(BaseModel):
    seed: list[str] = Field(default_factory=list)


class BastionConfig(BaseModel):
    storage: StorageConfig = Field(default_factory=StorageConfig)
    groups: GroupsConfig = Field(default_factory=GroupsConfig)
    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    log_level: Literal["debug", "info", "warn", "error"] = "info"
    log_format: Literal["text", "json"] = "text"
