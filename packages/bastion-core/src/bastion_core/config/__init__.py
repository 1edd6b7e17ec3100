from .loader import load_config
from .models import (
    BastionConfig,
    GroupsConfig,
    RegistryConfig,
    StorageConfig,
)

__all__ = [
    "BastionConfig",
    "GroupsConfig",
    "RegistryConfig",
    "StorageConfig",
    "load_config",
]
