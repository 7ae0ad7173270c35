"""
rbactree - Workspace hierarchy and effective access resolution.

Turns the flat workspace listing of an access-management API into a
rooted tree, filters it by name or by the caller's permissions, resolves
the role bindings a workspace inherits from its ancestors, and keeps a
small observable selection store for the consoles built on top of it.

Key Components:
- core.tree: Tree builder (rustworkx arena)
- core.search / core.visibility: Ancestor-preserving filters
- core.inheritance: Effective role-binding resolver
- core.store / core.loader: Observable selection state and sequenced fetching

Usage:
    from rbactree import WorkspaceTree, search_tree

    tree = WorkspaceTree.from_records(records)
    result = search_tree(tree, "prod")
"""

__version__ = "0.1.0"

from .core.errors import (
    CyclicHierarchy, MalformedHierarchy, MultipleRoots, NoRoot, OrphanedNode,
)
from .core.inheritance import resolve_effective
from .core.search import SearchResult, search_tree
from .core.store import SelectionState, WorkspacesStore
from .core.tree import TreeNode, WorkspaceTree, build_tree
from .core.types import EffectiveBinding, Permission, RoleBinding, WorkspaceRecord
from .core.visibility import filter_visible

__all__ = [
    "__version__",
    "WorkspaceRecord",
    "RoleBinding",
    "EffectiveBinding",
    "Permission",
    "WorkspaceTree",
    "TreeNode",
    "build_tree",
    "search_tree",
    "SearchResult",
    "filter_visible",
    "resolve_effective",
    "WorkspacesStore",
    "SelectionState",
    "MalformedHierarchy",
    "OrphanedNode",
    "CyclicHierarchy",
    "MultipleRoots",
    "NoRoot",
]
