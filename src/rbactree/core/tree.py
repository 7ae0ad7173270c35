"""
Workspace tree backed by rustworkx.

The tree is an arena: every workspace record is a payload in a single
``rx.PyDiGraph`` and parent/child relationships are integer indices into
it. ``TreeNode`` objects are lightweight handles (tree + index); the
parent of a node is an index lookup and never owns anything.

Trees are never mutated after construction. Filtering produces a new
tree through ``WorkspaceTree.prune``.

It manages:
- Validation of the flat record list (duplicates, orphans, cycles, roots).
- Case-insensitive child ordering with the id as tie-break.
- Ancestor-preserving pruning shared by search and visibility filtering.
"""

import logging
from typing import (
    Any,
    Callable,
    Dict,
    FrozenSet,
    Iterable,
    Iterator,
    List,
    Optional,
    Sequence,
    Set,
    Union,
)

import rustworkx as rx

from .. import config
from .errors import (
    CyclicHierarchy,
    DuplicateWorkspace,
    MalformedHierarchy,
    MultipleRoots,
    NoRoot,
    OrphanedNode,
    WorkspaceNotFound,
)
from .result import Err, Ok, Result
from .types import WorkspaceKind, WorkspaceRecord

logger = logging.getLogger(__name__)

RecordInput = Union[WorkspaceRecord, Dict[str, Any]]


def _sort_key(record: WorkspaceRecord):
    return (record.name.casefold(), record.id)


class TreeNode:
    """
    Handle to one workspace inside a ``WorkspaceTree``.

    Two handles are equal when they point at the same index of the same
    tree, so nodes from a filtered tree never compare equal to nodes of the
    tree it was derived from.
    """

    __slots__ = ("_tree", "_index")

    def __init__(self, tree: "WorkspaceTree", index: int):
        self._tree = tree
        self._index = index

    @property
    def tree(self) -> "WorkspaceTree":
        return self._tree

    @property
    def workspace(self) -> WorkspaceRecord:
        return self._tree._graph[self._index]

    @property
    def id(self) -> str:
        return self.workspace.id

    @property
    def name(self) -> str:
        return self.workspace.name

    @property
    def kind(self) -> WorkspaceKind:
        return self.workspace.kind

    @property
    def children(self) -> List["TreeNode"]:
        return [TreeNode(self._tree, idx) for idx in self._tree._children[self._index]]

    @property
    def parent(self) -> Optional["TreeNode"]:
        idx = self._tree._parent.get(self._index)
        if idx is None:
            return None
        return TreeNode(self._tree, idx)

    @property
    def is_root(self) -> bool:
        return self._index == self._tree._root

    @property
    def is_selectable(self) -> bool:
        """False for ancestors kept only to show the path to a visible node."""
        return not self._tree.is_passthrough(self.id)

    @property
    def depth(self) -> int:
        return len(self._tree._ancestor_indices(self._index)) - 1

    def ancestors(self) -> List["TreeNode"]:
        """The chain from the root down to this node, both included."""
        return [TreeNode(self._tree, idx) for idx in self._tree._ancestor_indices(self._index)]

    def __eq__(self, other):
        if isinstance(other, TreeNode):
            return self._tree is other._tree and self._index == other._index
        return False

    def __hash__(self):
        return hash((id(self._tree), self._index))

    def __repr__(self) -> str:
        return f"TreeNode(id={self.id!r}, name={self.name!r})"


class WorkspaceTree:
    """
    Immutable, rooted tree of workspaces.

    Use ``build_tree`` (or ``WorkspaceTree.from_records``) to create one.
    """

    def __init__(
        self,
        records: Sequence[WorkspaceRecord],
        root_id: str,
        targets: Optional[FrozenSet[str]] = None,
        passthrough: FrozenSet[str] = frozenset(),
    ):
        """
        Assemble the arena from already validated records.

        Args:
            records: Records forming a single tree rooted at ``root_id``.
                Every non-root record's parent must be in the list.
            root_id: Id of the root record.
            targets: Ids that satisfied every filter applied so far.
                None means every node.
            passthrough: Ids kept only as ancestors of visible nodes.
        """
        self._graph = rx.PyDiGraph(multigraph=False)
        self._id_to_idx: Dict[str, int] = {}
        self._parent: Dict[int, int] = {}
        self._children: Dict[int, List[int]] = {}

        for record in records:
            idx = self._graph.add_node(record)
            self._id_to_idx[record.id] = idx
            self._children[idx] = []

        for record in records:
            if record.id == root_id:
                continue
            child_idx = self._id_to_idx[record.id]
            parent_idx = self._id_to_idx[record.parent_id]
            self._graph.add_edge(parent_idx, child_idx, None)
            self._parent[child_idx] = parent_idx
            self._children[parent_idx].append(child_idx)

        for child_indices in self._children.values():
            child_indices.sort(key=lambda i: _sort_key(self._graph[i]))

        self._root = self._id_to_idx[root_id]
        self._targets = targets
        self._passthrough = passthrough

    @classmethod
    def from_records(
        cls,
        records: Iterable[RecordInput],
        exclude_ids: Iterable[str] = (),
        multiple_roots: Optional[config.MultipleRootsPolicy] = None,
    ) -> "WorkspaceTree":
        """Build a tree, raising ``MalformedHierarchy`` on bad input."""
        return build_tree(records, exclude_ids=exclude_ids, multiple_roots=multiple_roots).unwrap()

    # =========================================================================
    # Lookup
    # =========================================================================

    @property
    def root(self) -> TreeNode:
        return TreeNode(self, self._root)

    def get(self, workspace_id: str) -> Optional[TreeNode]:
        idx = self._id_to_idx.get(workspace_id)
        if idx is None:
            return None
        return TreeNode(self, idx)

    def node(self, workspace_id: str) -> TreeNode:
        """Like ``get`` but raises ``WorkspaceNotFound``."""
        found = self.get(workspace_id)
        if found is None:
            raise WorkspaceNotFound(workspace_id)
        return found

    def is_passthrough(self, workspace_id: str) -> bool:
        return workspace_id in self._passthrough

    def is_target(self, workspace_id: str) -> bool:
        if workspace_id not in self._id_to_idx:
            return False
        return self._targets is None or workspace_id in self._targets

    def has_children(self, workspace_id: str) -> bool:
        return bool(self._children[self.node(workspace_id)._index])

    def __contains__(self, workspace_id: object) -> bool:
        return workspace_id in self._id_to_idx

    def __len__(self) -> int:
        return self._graph.num_nodes()

    # =========================================================================
    # Traversal
    # =========================================================================

    def _ancestor_indices(self, idx: int) -> List[int]:
        chain = [idx]
        while chain[-1] in self._parent:
            chain.append(self._parent[chain[-1]])
        chain.reverse()
        return chain

    def _preorder(self, start: int) -> Iterator[int]:
        stack = [start]
        while stack:
            idx = stack.pop()
            yield idx
            stack.extend(reversed(self._children[idx]))

    def iter_nodes(self) -> Iterator[TreeNode]:
        """Every node in pre-order, children in display order."""
        for idx in self._preorder(self._root):
            yield TreeNode(self, idx)

    def node_ids(self) -> Set[str]:
        return set(self._id_to_idx)

    def records(self) -> List[WorkspaceRecord]:
        return [self._graph[idx] for idx in self._preorder(self._root)]

    def descendant_ids(self, workspace_id: str) -> List[str]:
        """Ids below ``workspace_id`` in pre-order, excluding itself."""
        start = self.node(workspace_id)._index
        return [self._graph[idx].id for idx in self._preorder(start) if idx != start]

    def path_to(self, workspace_id: str) -> List[WorkspaceRecord]:
        """Breadcrumb from the root to ``workspace_id``."""
        return [node.workspace for node in self.node(workspace_id).ancestors()]

    # =========================================================================
    # Pruning
    # =========================================================================

    def prune(
        self,
        predicate: Callable[[WorkspaceRecord], bool],
        mark_passthrough: bool = False,
    ) -> Optional["WorkspaceTree"]:
        """
        Keep the nodes satisfying ``predicate`` plus all of their ancestors.

        Only nodes that satisfied every earlier prune are tested, so chained
        prunes give the same result in any order. Returns None when nothing
        survives.

        Args:
            predicate: Test applied to each candidate record.
            mark_passthrough: Record surviving ancestors that fail the
                predicate as passthrough (not selectable).
        """
        candidates = self._targets if self._targets is not None else self._id_to_idx.keys()
        targets = frozenset(
            ws_id for ws_id in candidates if predicate(self._graph[self._id_to_idx[ws_id]])
        )
        if not targets:
            return None

        survivors: Set[str] = set()
        for ws_id in targets:
            idx = self._id_to_idx[ws_id]
            while True:
                current = self._graph[idx].id
                if current in survivors:
                    break
                survivors.add(current)
                if idx not in self._parent:
                    break
                idx = self._parent[idx]

        kept = [record for record in self.records() if record.id in survivors]
        passthrough = self._passthrough & survivors
        if mark_passthrough:
            passthrough = passthrough | {r.id for r in kept if not predicate(r)}

        logger.debug(f"Pruned tree from {len(self)} to {len(kept)} nodes ({len(targets)} targets)")
        return WorkspaceTree(
            kept,
            self.root.id,
            targets=targets,
            passthrough=frozenset(passthrough),
        )

    # =========================================================================
    # Export
    # =========================================================================

    def to_dict(self) -> Dict[str, Any]:
        """Nested representation, children in display order."""

        def _node(idx: int) -> Dict[str, Any]:
            record = self._graph[idx]
            return {
                "id": record.id,
                "name": record.name,
                "description": record.description,
                "kind": record.kind.value,
                "selectable": record.id not in self._passthrough,
                "children": [_node(child) for child in self._children[idx]],
            }

        return _node(self._root)

    def structurally_equal(self, other: "WorkspaceTree") -> bool:
        return self is other or self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"WorkspaceTree(root={self.root.id!r}, nodes={len(self)})"


# =============================================================================
# Construction
# =============================================================================


def _find_cycle(graph: rx.PyDiGraph) -> List[str]:
    for component in rx.strongly_connected_components(graph):
        if len(component) > 1:
            return [graph[idx].id for idx in component]
    return []


def build_tree(
    records: Iterable[RecordInput],
    exclude_ids: Iterable[str] = (),
    multiple_roots: Optional[config.MultipleRootsPolicy] = None,
) -> Result[WorkspaceTree, MalformedHierarchy]:
    """
    Assemble flat workspace records into a rooted tree.

    Args:
        records: Workspace records (models or raw dicts).
        exclude_ids: Workspaces to leave out together with their descendants.
        multiple_roots: "error" to reject several null-parent records,
            "first" to keep the first in input order. Defaults to
            ``config.MULTIPLE_ROOTS_POLICY``.

    Returns:
        Ok(WorkspaceTree) or Err(MalformedHierarchy).
    """
    policy = multiple_roots or config.MULTIPLE_ROOTS_POLICY
    items = [r if isinstance(r, WorkspaceRecord) else WorkspaceRecord.model_validate(r) for r in records]

    # 1. Index by id
    graph = rx.PyDiGraph(multigraph=False)
    index: Dict[str, int] = {}
    for record in items:
        if record.id in index:
            return Err(DuplicateWorkspace(record.id))
        index[record.id] = graph.add_node(record)

    # 2. Parent references must resolve
    for record in items:
        if record.parent_id is None:
            continue
        if record.parent_id not in index:
            return Err(OrphanedNode(record.id, record.parent_id))
        if record.parent_id == record.id:
            return Err(CyclicHierarchy([record.id]))
        graph.add_edge(index[record.parent_id], index[record.id], None)

    # 3. No workspace may be its own ancestor
    if not rx.is_directed_acyclic_graph(graph):
        return Err(CyclicHierarchy(_find_cycle(graph)))

    # 4. Exactly one root
    roots = [record for record in items if record.parent_id is None]
    if not roots:
        return Err(NoRoot())
    if len(roots) > 1:
        if policy == "error":
            return Err(MultipleRoots(r.id for r in roots))
        logger.warning(
            f"Found {len(roots)} root workspaces, keeping '{roots[0].id}' and dropping "
            f"{', '.join(r.id for r in roots[1:])}"
        )
    root = roots[0]

    excluded = set(exclude_ids)
    if root.id in excluded:
        return Err(NoRoot())

    # 5. Collect the subtree reachable from the root, minus exclusions
    reachable: List[WorkspaceRecord] = []
    stack = [index[root.id]]
    while stack:
        idx = stack.pop()
        record = graph[idx]
        if record.id in excluded:
            continue
        reachable.append(record)
        stack.extend(graph.successor_indices(idx))

    logger.debug(f"Built workspace tree rooted at '{root.id}' with {len(reachable)} nodes")
    return Ok(WorkspaceTree(reachable, root.id))
