"""
CLI Utilities - Shared helper functions for command line operations.

Loading of JSON exports (workspace listings, bindings, permissions) and
formatted printing used across commands.
"""

import json
import sys
from pathlib import Path
from typing import Any, List, Optional, Sequence

import click

from ..core.errors import MalformedHierarchy
from ..core.tree import WorkspaceTree, build_tree


def echo_error(message: str) -> None:
    """Print an error message in red to stderr."""
    click.echo(click.style(f"❌ {message}", fg="red"), err=True)


def echo_warning(message: str) -> None:
    """Print a warning message in yellow."""
    click.echo(click.style(f"⚠️  {message}", fg="yellow"))


def load_items(path: str) -> List[Any]:
    """
    Read a JSON export and return its list of items.

    Accepts either a bare JSON array or an API envelope ``{"data": [...]}``.
    Exits with status 1 when the file is not usable.
    """
    try:
        payload = json.loads(Path(path).read_text())
    except (OSError, json.JSONDecodeError) as e:
        echo_error(f"Could not read {path}: {e}")
        sys.exit(1)

    if isinstance(payload, dict):
        payload = payload.get("data", [])
    if not isinstance(payload, list):
        echo_error(f"Expected a list of items in {path}")
        sys.exit(1)
    return payload


def load_tree(path: str, exclude_ids: Sequence[str] = ()) -> Optional[WorkspaceTree]:
    """Build a tree from a workspace export, reporting malformed hierarchies."""
    try:
        result = build_tree(load_items(path), exclude_ids=exclude_ids)
    except ValueError as e:
        # pydantic validation errors of individual records
        echo_error(f"Invalid workspace record in {path}: {e}")
        return None

    error: Optional[MalformedHierarchy] = result.error_or_none
    if error is not None:
        echo_error(f"{type(error).__name__}: {error}")
    return result.unwrap_or(None)
