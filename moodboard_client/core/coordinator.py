"""Mutations on a board view and the convergence cycles they trigger.

Every mutation that makes server-derived state stale (new items, deleted
items) restarts a polling cycle on the affected lane once its own request
has settled. Restarting bumps the lane's sequence, so a poll from the
previous cycle can never merge on top of the newer one.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Awaitable, Callable, List, Optional

import httpx

from moodboard_client.api.client import MoodboardAPI
from moodboard_client.core.config import Settings
from moodboard_client.core.fetcher import ResourceKey, ResourceKind, SnapshotFetcher
from moodboard_client.core.poller import (
    ConvergencePoller,
    PollOutcome,
    PollState,
    clusters_accepted,
    items_converged,
    valid_clusters,
)
from moodboard_client.core.reconciler import merge_items
from moodboard_client.core.session import CancelToken, ReconciliationSession
from moodboard_client.core.styles import StyleRegistry
from moodboard_client.schemas.cluster import ClusterGroup
from moodboard_client.schemas.item import ImageItemCreate, ItemRead, TextItemCreate
from moodboard_client.schemas.search import SearchResult

if TYPE_CHECKING:
    from moodboard_client.views.board_view import BoardViewState

logger = logging.getLogger(__name__)

SUPERSEDED = PollOutcome(PollState.SUPERSEDED, 0)


def import_payload(result: SearchResult):
    """Request body that copies a search hit (and its embedding) onto a board."""
    if result.type == "image":
        return ImageItemCreate(
            image_url=result.image_url or "",
            content=result.content,
            source_item_id=result.id,
        )
    return TextItemCreate(content=result.content or "", source_item_id=result.id)


class MutationCoordinator:
    def __init__(
        self,
        api: MoodboardAPI,
        fetcher: SnapshotFetcher,
        session: ReconciliationSession,
        state: "BoardViewState",
        settings: Settings,
        styles: StyleRegistry,
    ):
        self.api = api
        self.fetcher = fetcher
        self.session = session
        self.state = state
        self.settings = settings
        self.styles = styles

    @property
    def board_id(self) -> int:
        return self.session.board_id

    # --- Local state --- #

    def apply_items(self, fetched: List[ItemRead]) -> bool:
        """Merge an item snapshot; re-derive rendered cards only if something changed."""
        if self.session.closed:
            return False
        result = merge_items(self.session.items, fetched)
        if result.changed:
            self.session.items = result.items
            self.state.items = result.items
            self.state.rendered = self.styles.decorate(result.items)
        return result.changed

    def _leave_cluster_view(self):
        if self.state.show_clusters:
            self.state.show_clusters = False

    def _discard_clusters(self):
        self.session.clusters_lane.begin()
        self.session.clusters = []
        self.session.accepted_clusters = []
        self.state.clusters = []
        self.state.show_clusters = False

    async def _wait(self, task: Optional[asyncio.Task]) -> PollOutcome:
        if task is None:
            return SUPERSEDED
        await asyncio.wait({task})
        if task.cancelled():
            return SUPERSEDED
        return task.result()

    # --- Convergence cycles --- #

    def converge_items(self) -> Optional[asyncio.Task]:
        """Start (or restart) item polling for this board."""
        if self.session.closed:
            return None
        return self.session.items_lane.start(self._run_items_cycle)

    async def _run_items_cycle(self, sequence: int, token: CancelToken) -> PollOutcome:
        lane = self.session.items_lane
        key = ResourceKey(ResourceKind.ITEMS, self.board_id)

        async def fetch():
            if lane.is_current(sequence):
                lane.iterations += 1
            return await self.fetcher.fetch(key, token)

        poller = ConvergencePoller(
            fetch=fetch,
            predicate=items_converged,
            on_snapshot=self.apply_items,
            interval=self.settings.item_poll_interval,
            max_iterations=self.settings.item_poll_max,
            name=f"board {self.board_id} items",
        )
        return await poller.run(lambda: lane.is_current(sequence))

    async def _run_clusters_cycle(self, sequence: int, token: CancelToken) -> PollOutcome:
        lane = self.session.clusters_lane
        key = ResourceKey(ResourceKind.CLUSTERS, self.board_id)

        async def fetch():
            if lane.is_current(sequence):
                lane.iterations += 1
            return await self.fetcher.fetch(key, token)

        def remember(clusters: List[ClusterGroup]):
            self.session.clusters = clusters

        poller = ConvergencePoller(
            fetch=fetch,
            predicate=lambda clusters: clusters_accepted(
                clusters, self.session.accepted_clusters
            ),
            on_snapshot=remember,
            interval=self.settings.cluster_poll_interval,
            max_iterations=self.settings.cluster_poll_max,
            name=f"board {self.board_id} clusters",
        )
        outcome = await poller.run(lambda: lane.is_current(sequence))

        if outcome.converged:
            accepted = valid_clusters(outcome.snapshot)
            self.session.accepted_clusters = accepted
            self.state.clusters = accepted
            self.state.show_clusters = True
        return outcome

    async def _run_cluster_refresh(self, sequence: int, token: CancelToken) -> PollOutcome:
        lane = self.session.clusters_lane
        result = await self.fetcher.fetch(ResourceKey(ResourceKind.CLUSTERS, self.board_id), token)
        if result.cancelled or not lane.is_current(sequence):
            return SUPERSEDED
        if not result.ok:
            return PollOutcome(PollState.EXHAUSTED, 1)

        self.session.clusters = result.data
        self.state.clusters = [c for c in result.data if c.label]
        return PollOutcome(PollState.CONVERGED, 1, result.data)

    async def compute_clusters(self) -> Optional[PollOutcome]:
        """Ask the server to recluster, then poll until named clusters show up."""
        if self.state.clustering or self.session.closed:
            return None

        self.state.clustering = True
        try:
            try:
                await self.api.trigger_clustering(self.board_id)
            except httpx.HTTPError as e:
                logger.error(
                    f"❌ Failed to start clustering for board {self.board_id}: {e}",
                    exc_info=True,
                )
                return None
            logger.info(f"🔹 Clustering job enqueued for board {self.board_id}")
            return await self._wait(self.session.clusters_lane.start(self._run_clusters_cycle))
        finally:
            self.state.clustering = False

    # --- Title --- #

    async def save_title(self, title: str) -> bool:
        new_title = title.strip()
        if self.state.saving_title or not new_title:
            return False

        previous = self.state.title
        self.state.saving_title = True
        self.state.title = new_title
        try:
            await self.api.rename_board(self.board_id, new_title)
            self.state.draft_title = new_title
            return True
        except httpx.HTTPError as e:
            logger.error(f"❌ Failed to update title of board {self.board_id}: {e}", exc_info=True)
            self.state.title = previous
            self.state.draft_title = previous
            return False
        finally:
            self.state.saving_title = False
            self.state.editing_title = False

    # --- Items --- #

    async def _submit_item(
        self, description: str, submit: Callable[[], Awaitable]
    ) -> Optional[PollOutcome]:
        self._leave_cluster_view()
        try:
            await submit()
        except httpx.HTTPError as e:
            logger.error(
                f"❌ Failed to {description} on board {self.board_id}: {e}", exc_info=True
            )
            return None
        logger.info(f"✅ {description.capitalize()} on board {self.board_id}, waiting for embeddings")
        return await self._wait(self.converge_items())

    async def add_text_item(self, content: str) -> Optional[PollOutcome]:
        if not content.strip():
            return None
        self.state.adding_text = True
        try:
            return await self._submit_item(
                "add text item",
                lambda: self.api.add_item(self.board_id, TextItemCreate(content=content)),
            )
        finally:
            self.state.adding_text = False

    async def add_image_item(self, image_url: str) -> Optional[PollOutcome]:
        return await self._submit_item(
            "add image item",
            lambda: self.api.add_item(self.board_id, ImageItemCreate(image_url=image_url)),
        )

    async def upload_image(
        self, filename: str, data: bytes, content_type: str = "image/jpeg"
    ) -> Optional[PollOutcome]:
        return await self._submit_item(
            "upload image",
            lambda: self.api.upload_image(self.board_id, filename, data, content_type),
        )

    async def import_item(self, result: SearchResult) -> Optional[PollOutcome]:
        return await self._submit_item(
            f"import item {result.id}",
            lambda: self.api.add_item(self.board_id, import_payload(result)),
        )

    async def delete_item(self, item_id: int) -> Optional[PollOutcome]:
        self.state.deleting = item_id
        try:
            try:
                await self.api.delete_item(self.board_id, item_id)
            except httpx.HTTPError as e:
                logger.error(f"❌ Error deleting item {item_id}: {e}", exc_info=True)
                return None

            items_task = self.converge_items()

            # Any deletion invalidates cluster membership.
            if self.state.show_clusters:
                self._discard_clusters()
            elif not self.session.closed:
                await self._wait(self.session.clusters_lane.start(self._run_cluster_refresh))

            return await self._wait(items_task)
        finally:
            self.state.deleting = None
