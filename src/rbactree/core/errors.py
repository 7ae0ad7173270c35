"""
Exception taxonomy for rbactree.

MalformedHierarchy and its subclasses are fatal to tree construction.
Fetch failures are not exceptions at this level: the loader absorbs them
into store state.
"""

from typing import Iterable, List


class RbacTreeError(Exception):
    """Base class for every error raised by rbactree."""


class MalformedHierarchy(RbacTreeError):
    """The workspace records do not describe a single rooted tree."""


class DuplicateWorkspace(MalformedHierarchy):
    def __init__(self, workspace_id: str):
        self.workspace_id = workspace_id
        super().__init__(f"Workspace id '{workspace_id}' appears more than once")


class OrphanedNode(MalformedHierarchy):
    def __init__(self, workspace_id: str, parent_id: str):
        self.workspace_id = workspace_id
        self.parent_id = parent_id
        super().__init__(
            f"Workspace '{workspace_id}' references unknown parent '{parent_id}'"
        )


class CyclicHierarchy(MalformedHierarchy):
    def __init__(self, cycle: Iterable[str]):
        self.cycle: List[str] = sorted(cycle)
        super().__init__(f"Workspaces form a cycle: {', '.join(self.cycle)}")


class MultipleRoots(MalformedHierarchy):
    def __init__(self, root_ids: Iterable[str]):
        self.root_ids: List[str] = list(root_ids)
        super().__init__(
            f"Expected exactly one root workspace, found {len(self.root_ids)}: "
            f"{', '.join(self.root_ids)}"
        )


class NoRoot(MalformedHierarchy):
    def __init__(self):
        super().__init__("No root workspace (a workspace without a parent) was found")


class WorkspaceNotFound(RbacTreeError, KeyError):
    def __init__(self, workspace_id: str):
        self.workspace_id = workspace_id
        super().__init__(f"Workspace '{workspace_id}' is not in the tree")

    def __str__(self) -> str:
        return self.args[0]


class WorkspaceNotSelectable(RbacTreeError):
    def __init__(self, workspace_id: str):
        self.workspace_id = workspace_id
        super().__init__(
            f"Workspace '{workspace_id}' is only shown as an ancestor and cannot be selected"
        )
