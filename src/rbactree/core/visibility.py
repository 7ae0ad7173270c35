"""
Permission-based visibility.

Restricts a workspace tree to what the caller's access list lets them
see. Ancestors of visible workspaces stay in the tree as passthrough
nodes: they are rendered to give the path context but cannot be
selected. The server stays the authority; nothing here enforces access.
"""

import logging
from enum import StrEnum
from typing import Any, Dict, Iterable, List, Optional, Union

from .. import config
from .tree import TreeNode, WorkspaceTree
from .types import Permission, WorkspaceKind, WorkspaceRecord

logger = logging.getLogger(__name__)

PermissionInput = Union[Permission, Dict[str, Any]]


class Verb(StrEnum):
    READ = "read"
    WRITE = "write"
    ANY = "*"


class WorkspaceAction(StrEnum):
    EDIT = "edit"
    MOVE = "move"
    DELETE = "delete"


# Workspace kinds each action is allowed on
ACTION_KINDS: Dict[WorkspaceAction, set] = {
    WorkspaceAction.EDIT: {WorkspaceKind.DEFAULT, WorkspaceKind.STANDARD},
    WorkspaceAction.MOVE: {WorkspaceKind.STANDARD},
    WorkspaceAction.DELETE: {WorkspaceKind.STANDARD},
}

# A granted verb satisfies every verb in its set
_IMPLIED_VERBS = {
    Verb.READ: {Verb.READ},
    Verb.WRITE: {Verb.READ, Verb.WRITE},
    Verb.ANY: {Verb.READ, Verb.WRITE},
}


def _coerce(permissions: Iterable[PermissionInput]) -> List[Permission]:
    return [p if isinstance(p, Permission) else Permission.model_validate(p) for p in permissions]


def grants(permission: str, required: Verb, workspace_permission: Optional[str] = None) -> bool:
    """
    Check whether a permission string grants ``required`` on workspaces.

    ``permission`` is ``application:resource:verb``; ``*`` matches any
    value in its segment. Malformed strings grant nothing.
    """
    parts = permission.split(":")
    if len(parts) != 3:
        logger.debug(f"Ignoring malformed permission '{permission}'")
        return False

    application, resource = (workspace_permission or config.WORKSPACE_PERMISSION).split(":", 1)
    app_part, resource_part, verb_part = parts
    if app_part not in ("*", application) or resource_part not in ("*", resource):
        return False

    try:
        granted = Verb(verb_part)
    except ValueError:
        return False
    return required in _IMPLIED_VERBS[granted]


def _allows(
    permissions: List[Permission],
    workspace_id: str,
    required: Verb,
    workspace_permission: Optional[str],
) -> bool:
    for entry in permissions:
        if not grants(entry.permission, required, workspace_permission):
            continue
        if not entry.is_scoped or workspace_id in entry.scoped_ids():
            return True
    return False


def is_directly_visible(
    workspace: WorkspaceRecord,
    permissions: Iterable[PermissionInput],
    workspace_permission: Optional[str] = None,
) -> bool:
    """True when some read (or stronger) grant covers this workspace."""
    return _allows(_coerce(permissions), workspace.id, Verb.READ, workspace_permission)


def filter_visible(
    tree: Optional[WorkspaceTree],
    permissions: Iterable[PermissionInput],
    workspace_permission: Optional[str] = None,
) -> Optional[WorkspaceTree]:
    """
    Prune ``tree`` to the workspaces the caller may see.

    Returns None when no workspace is visible.
    """
    if tree is None:
        return None

    entries = _coerce(permissions)
    visible = tree.prune(
        lambda record: _allows(entries, record.id, Verb.READ, workspace_permission),
        mark_passthrough=True,
    )
    if visible is None:
        logger.debug("Caller cannot see any workspace")
    return visible


def can_modify(
    workspace: Union[WorkspaceRecord, TreeNode],
    action: Union[WorkspaceAction, str],
    permissions: Iterable[PermissionInput],
    workspace_permission: Optional[str] = None,
) -> bool:
    """
    Whether the caller may edit, move or delete ``workspace``.

    Requires a write grant that is unscoped or scoped to the workspace, and
    the workspace kind must support the action (the root and ungrouped
    hosts can never be modified; the default workspace can only be edited).
    """
    record = workspace.workspace if isinstance(workspace, TreeNode) else workspace
    wanted = WorkspaceAction(action)
    if record.kind not in ACTION_KINDS[wanted]:
        return False
    return _allows(_coerce(permissions), record.id, Verb.WRITE, workspace_permission)
