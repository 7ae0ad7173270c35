"""
Global Configuration and Defaults.

Values can be overridden through environment variables or an optional
YAML file (``.rbactree/config.yaml``). Nothing here is persisted; the
config is read once by whoever constructs the loader or the CLI.
"""

import logging
import os
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

MultipleRootsPolicy = Literal["error", "first"]

# --- Refresh ---
# Periodic re-fetch of the workspace listing (seconds)
REFRESH_INTERVAL_SECONDS: float = float(os.getenv("RBACTREE_REFRESH_INTERVAL", "600"))

# --- Hierarchy validation ---
# "error" rejects inputs with several null-parent records, "first" keeps the
# first one in input order and drops the rest
MULTIPLE_ROOTS_POLICY: MultipleRootsPolicy = (
    "first" if os.getenv("RBACTREE_MULTIPLE_ROOTS", "error").lower() == "first" else "error"
)

# --- Permissions ---
# application:resource pair guarding workspaces
WORKSPACE_PERMISSION: str = os.getenv("RBACTREE_WORKSPACE_PERMISSION", "inventory:groups")

DEFAULT_CONFIG_PATH = Path(".rbactree/config.yaml")


class RbacTreeConfig(BaseModel):
    """Resolved settings for a loader or CLI session."""
    refresh_interval: float = Field(default=REFRESH_INTERVAL_SECONDS, gt=0)
    multiple_roots: MultipleRootsPolicy = MULTIPLE_ROOTS_POLICY
    workspace_permission: str = WORKSPACE_PERMISSION


def load_config(config_path: Optional[Path] = None) -> RbacTreeConfig:
    """
    Load settings from a YAML file, falling back to defaults.

    A missing file is not an error. An unreadable or invalid file is logged
    and ignored.
    """
    path = config_path or DEFAULT_CONFIG_PATH
    if not path.exists():
        return RbacTreeConfig()

    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Could not read config {path}: {e}")
        return RbacTreeConfig()

    if not isinstance(data, dict):
        logger.warning(f"Ignoring config {path}: expected a mapping")
        return RbacTreeConfig()

    try:
        return RbacTreeConfig(**data.get("rbactree", data))
    except (TypeError, ValidationError) as e:
        logger.warning(f"Ignoring invalid config {path}: {e}")
        return RbacTreeConfig()
