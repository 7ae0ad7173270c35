"""
Core modules for rbactree.

This package contains the fundamental building blocks:
- types: Workspace, binding and permission records
- tree: Tree builder and immutable workspace tree
- search, visibility: Ancestor-preserving filters
- inheritance: Effective role-binding resolution
- store, loader: Observable selection state and fetch lifecycle
"""

from .errors import (
    CyclicHierarchy, DuplicateWorkspace, MalformedHierarchy, MultipleRoots,
    NoRoot, OrphanedNode, RbacTreeError, WorkspaceNotFound, WorkspaceNotSelectable,
)
from .inheritance import (
    SubjectAccess, index_bindings, resolve_effective, resolve_effective_async,
    split_effective, summarize_by_subject,
)
from .loader import WorkspaceLoader
from .result import Err, Ok, Result, map_ok
from .search import SearchResult, search_tree
from .store import FetchStatus, SelectionState, WorkspacesStore
from .tree import TreeNode, WorkspaceTree, build_tree
from .types import (
    AttributeFilter, EffectiveBinding, Permission, ResourceDefinition,
    RoleBinding, SubjectType, WorkspaceKind, WorkspaceRecord,
)
from .visibility import WorkspaceAction, can_modify, filter_visible, is_directly_visible

__all__ = [
    # Types
    "WorkspaceRecord", "WorkspaceKind", "RoleBinding", "EffectiveBinding",
    "SubjectType", "Permission", "ResourceDefinition", "AttributeFilter",
    # Result
    "Ok", "Err", "Result", "map_ok",
    # Errors
    "RbacTreeError", "MalformedHierarchy", "DuplicateWorkspace", "OrphanedNode",
    "CyclicHierarchy", "MultipleRoots", "NoRoot", "WorkspaceNotFound",
    "WorkspaceNotSelectable",
    # Tree
    "WorkspaceTree", "TreeNode", "build_tree",
    # Filters
    "search_tree", "SearchResult", "filter_visible", "is_directly_visible",
    "can_modify", "WorkspaceAction",
    # Inheritance
    "index_bindings", "resolve_effective", "resolve_effective_async",
    "split_effective", "summarize_by_subject", "SubjectAccess",
    # State
    "WorkspacesStore", "SelectionState", "FetchStatus", "WorkspaceLoader",
]
