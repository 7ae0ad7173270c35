"""
Observable workspace selection store.

Holds the fetch lifecycle flags, the current tree and the selection, and
shared by any number of independent consumers. Every named setter
replaces the state snapshot and then synchronously calls each subscriber
once, in subscription order. Callers composing several setters get one
notification per setter unless they wrap them in ``batch()``.

Construct one store per selector and pass it to whatever needs it.
"""

import itertools
import logging
from contextlib import contextmanager
from enum import StrEnum
from typing import Callable, Dict, Iterable, Iterator, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict

from .errors import WorkspaceNotSelectable
from .tree import TreeNode, WorkspaceTree
from .types import WorkspaceRecord

logger = logging.getLogger(__name__)


class FetchStatus(StrEnum):
    IDLE = "idle"
    FETCHING = "fetching"
    ERROR = "error"


class SelectionState(BaseModel):
    """Immutable snapshot handed to subscribers."""
    is_menu_expanded: bool = False
    is_fetching: bool = False
    is_fetch_error: bool = False
    selected_node_id: Optional[str] = None
    tree: Optional[WorkspaceTree] = None
    fetched_workspaces: Tuple[WorkspaceRecord, ...] = ()

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @property
    def status(self) -> FetchStatus:
        if self.is_fetching:
            return FetchStatus.FETCHING
        if self.is_fetch_error:
            return FetchStatus.ERROR
        return FetchStatus.IDLE

    @property
    def selected_node(self) -> Optional[TreeNode]:
        if self.tree is None or self.selected_node_id is None:
            return None
        return self.tree.get(self.selected_node_id)


Subscriber = Callable[[SelectionState], None]
Selection = Union[TreeNode, WorkspaceRecord, str, None]


class WorkspacesStore:
    """Framework-free observable state container for a workspace selector."""

    def __init__(self, initial: Optional[SelectionState] = None):
        self._state = initial or SelectionState()
        self._subscribers: Dict[int, Subscriber] = {}
        self._ids = itertools.count(1)
        self._batch_depth = 0
        self._pending = False

    # =========================================================================
    # Subscription
    # =========================================================================

    def get_state(self) -> SelectionState:
        return self._state

    @property
    def state(self) -> SelectionState:
        return self._state

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register ``callback`` and return a function that removes it.

        Each registration gets its own id, so subscribing the same callable
        twice yields two independent subscriptions.
        """
        subscription_id = next(self._ids)
        self._subscribers[subscription_id] = callback

        def unsubscribe() -> None:
            self._subscribers.pop(subscription_id, None)

        return unsubscribe

    def _notify(self) -> None:
        if self._batch_depth:
            self._pending = True
            return

        state = self._state
        for subscription_id, callback in list(self._subscribers.items()):
            try:
                callback(state)
            except Exception:
                logger.exception(f"Workspace store subscriber {subscription_id} failed")

    def _update(self, **changes) -> None:
        self._state = self._state.model_copy(update=changes)
        self._notify()

    @contextmanager
    def batch(self) -> Iterator["WorkspacesStore"]:
        """
        Defer notifications until the block exits.

        Subscribers are called once at the end of the outermost batch if
        any setter ran inside it.
        """
        self._batch_depth += 1
        try:
            yield self
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and self._pending:
                self._pending = False
                self._notify()

    # =========================================================================
    # Setters
    # =========================================================================

    def set_is_menu_expanded(self, expanded: bool) -> None:
        self._update(is_menu_expanded=expanded)

    def set_is_fetching(self, fetching: bool) -> None:
        self._update(is_fetching=fetching)

    def set_is_fetch_error(self, error: bool) -> None:
        self._update(is_fetch_error=error)

    def set_fetched_workspaces(self, workspaces: Iterable[WorkspaceRecord]) -> None:
        self._update(fetched_workspaces=tuple(workspaces))

    def set_tree(self, tree: Optional[WorkspaceTree]) -> None:
        """
        Replace the tree and re-resolve the selection against it.

        A selected id missing from the new tree (or only present as a
        passthrough ancestor) falls back to the root.
        """
        selected = self._state.selected_node_id
        if tree is not None and selected is not None:
            if selected not in tree or tree.is_passthrough(selected):
                logger.debug(f"Selected workspace '{selected}' is gone, selecting root")
                selected = tree.root.id
        self._update(tree=tree, selected_node_id=selected)

    def set_selected_workspace(self, workspace: Selection) -> None:
        """
        Select a workspace by node, record or id; None clears the selection.

        Raises:
            WorkspaceNotFound: The id is not in the current tree.
            WorkspaceNotSelectable: The node is a passthrough ancestor.
        """
        if workspace is None:
            self._update(selected_node_id=None)
            return

        if isinstance(workspace, TreeNode) and not workspace.is_selectable:
            raise WorkspaceNotSelectable(workspace.id)

        workspace_id = workspace if isinstance(workspace, str) else workspace.id
        tree = self._state.tree
        if tree is not None:
            node = tree.node(workspace_id)
            if not node.is_selectable:
                raise WorkspaceNotSelectable(workspace_id)
        self._update(selected_node_id=workspace_id)
