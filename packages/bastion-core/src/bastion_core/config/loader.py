"""YAML config loading with env var expansion."""

import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import BastionConfig


CONFIG_ENV_VAR = "BASTION_CONFIG"


def load_config(cli_path: str | None = None) -> BastionConfig:
    """Load config with resolution order:
    CLI > $BASTION_CONFIG > project-local > user-global > defaults.

    A path given on the command line or through the environment must exist.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    explicit = cli_path or env_path
    if explicit and not Path(explicit).exists():
        raise ValueError(f"Config file not found: {explicit}")

    config_paths = [
        Path(cli_path) if cli_path else None,
        Path(env_path) if env_path else None,
        Path("./bastion.yaml"),
        Path.home() / ".bastion" / "config.yaml",
    ]

    for path in config_paths:
        if path and path.exists():
            try:
                with open(path) as f:
                    raw = yaml.safe_load(f)
                if raw is None:
                    continue
                raw = _expand_env_vars(raw)
                return BastionConfig(**raw)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {path}: {e}") from e
            except ValidationError as e:
                raise ValueError(f"Invalid config in {path}: {e}") from e

    return BastionConfig()


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} references in strings."""
    if isinstance(obj, str):
        return re.sub(r"\$\{(\w+)\}", lambda m: os.environ.get(m.group(1), ""), obj)
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


# Default YAML template for `bastion config init`
DEFAULT_CONFIG_TEMPLATE = """\
# bastion.yaml

# Storage backend
storage:
  backend: "sqlite"            # sqlite | memory | <entry point name>
  path: ".bastion/permissions.db"
  timeout: 5.0                 # seconds to wait for a write lock

# Groups
groups:
  default_group: "everyone"    # every connecting user joins this group
  auto_enroll: true

# Known permissions offered as suggestions from the start
registry:
  seed: []
  # seed:
  #   - "permissions.groups.create"
  #   - "server.stop"

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""
