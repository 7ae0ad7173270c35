"""
Workspace listing loader.

Drives the store through the fetch lifecycle:

    idle -> fetching -> idle            (success, tree rebuilt)
    idle -> fetching -> idle + error    (failure, previous tree kept)

Every refresh takes a sequence number. A response that finishes after a
newer one has already been accepted is dropped, so a slow periodic
refresh can never overwrite what a faster manual refresh brought in.
The fetching and error flags follow the newest issued request: an older
response that is still accepted after the newest one failed updates the
tree but leaves the error flag set. A cancelled refresh clears the
fetching flag and sets no error.
Retries and timeouts belong to the fetch collaborator.
"""

import asyncio
import contextlib
import inspect
import logging
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Union

from .. import config
from .store import WorkspacesStore
from .tree import build_tree
from .types import WorkspaceRecord

logger = logging.getLogger(__name__)

WorkspaceFetcher = Callable[[], Union[Iterable[Any], Awaitable[Iterable[Any]]]]


class WorkspaceLoader:
    """
    Fetches workspaces through a collaborator and publishes them to a store.

    Args:
        store: Store receiving the lifecycle flags, records and tree.
        fetch_workspaces: Callable returning workspace records (models or
            dicts), or an awaitable resolving to them.
        exclude_ids: Workspaces left out of the tree with their subtrees.
        refresh_interval: Seconds between periodic refreshes.
        multiple_roots: Policy passed to ``build_tree``.
    """

    def __init__(
        self,
        store: WorkspacesStore,
        fetch_workspaces: WorkspaceFetcher,
        exclude_ids: Iterable[str] = (),
        refresh_interval: Optional[float] = None,
        multiple_roots: Optional[config.MultipleRootsPolicy] = None,
    ):
        self.store = store
        self.exclude_ids = tuple(exclude_ids)
        self.refresh_interval = refresh_interval or config.REFRESH_INTERVAL_SECONDS
        self.multiple_roots = multiple_roots
        self._fetch = fetch_workspaces
        self._latest_issued = 0
        self._latest_accepted = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def latest_accepted(self) -> int:
        return self._latest_accepted

    async def _call_fetcher(self) -> List[WorkspaceRecord]:
        response = self._fetch()
        if inspect.isawaitable(response):
            response = await response
        return [r if isinstance(r, WorkspaceRecord) else WorkspaceRecord.model_validate(r) for r in response]

    async def refresh(self) -> bool:
        """
        Fetch the listing once and rebuild the tree.

        Returns True when this response was accepted into the store. Fetch
        and hierarchy errors are absorbed into the store's error flag.
        """
        self._latest_issued += 1
        sequence = self._latest_issued

        self.store.set_is_fetching(True)
        self.store.set_is_fetch_error(False)

        try:
            records = await self._call_fetcher()
        except asyncio.CancelledError:
            if sequence == self._latest_issued:
                self.store.set_is_fetching(False)
            raise
        except Exception as e:
            return self._fail(sequence, f"Unable to fetch workspaces: {e}")

        if sequence < self._latest_accepted:
            logger.debug(f"Discarding stale workspace response #{sequence} (have #{self._latest_accepted})")
            return False

        result = build_tree(records, exclude_ids=self.exclude_ids, multiple_roots=self.multiple_roots)
        if result.is_err():
            logger.error(f"Rejected workspace hierarchy: {result.error}")
            return self._fail(sequence, f"Malformed workspace hierarchy: {result.error}")

        self._latest_accepted = sequence
        if sequence == self._latest_issued:
            self.store.set_is_fetching(False)
            self.store.set_is_fetch_error(False)
        self.store.set_fetched_workspaces(records)
        self.store.set_tree(result.value)
        return True

    def _fail(self, sequence: int, message: str) -> bool:
        if sequence < self._latest_accepted:
            logger.debug(f"Ignoring failure of stale workspace request #{sequence}")
            return False

        logger.warning(message)
        # A newer request is still in flight and will settle the flags.
        if sequence == self._latest_issued:
            self.store.set_is_fetching(False)
            self.store.set_is_fetch_error(True)
        return False

    # =========================================================================
    # Periodic refresh
    # =========================================================================

    async def run_periodic(self) -> None:
        """Refresh now and then every ``refresh_interval`` seconds until cancelled."""
        while True:
            await self.refresh()
            await asyncio.sleep(self.refresh_interval)

    def start(self) -> asyncio.Task:
        """Schedule ``run_periodic`` on the running loop."""
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self.run_periodic())
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()
