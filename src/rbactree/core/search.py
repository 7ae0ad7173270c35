"""
Workspace search.

Matching is a case-insensitive substring test on the workspace name. A
matching workspace keeps its whole ancestor path so the result is still a
rooted tree.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from .tree import WorkspaceTree
from .types import WorkspaceRecord


@dataclass(frozen=True)
class SearchResult:
    """
    Outcome of a search.

    ``is_filtered`` distinguishes "nothing matched" (filtered, no tree) from
    "no search applied" (not filtered).
    """
    tree: Optional[WorkspaceTree]
    is_filtered: bool
    term: str = ""
    matched_ids: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def is_empty(self) -> bool:
        return self.is_filtered and self.tree is None


def matches(record: WorkspaceRecord, term: str) -> bool:
    return term.casefold() in record.name.casefold()


def search_tree(tree: Optional[WorkspaceTree], term: str) -> SearchResult:
    """
    Filter ``tree`` down to workspaces whose name contains ``term``.

    An empty (or whitespace-only) term returns the very same tree object,
    unfiltered.
    """
    needle = term.strip()
    if not needle:
        return SearchResult(tree=tree, is_filtered=False)

    # Nothing loaded yet, so nothing to filter.
    if tree is None:
        return SearchResult(tree=None, is_filtered=False, term=needle)

    result = tree.prune(lambda record: matches(record, needle))
    if result is None:
        return SearchResult(tree=None, is_filtered=True, term=needle)

    matched = frozenset(node.id for node in result.iter_nodes() if matches(node.workspace, needle))
    return SearchResult(tree=result, is_filtered=True, term=needle, matched_ids=matched)
