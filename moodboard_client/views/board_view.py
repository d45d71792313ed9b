import logging
import random
from dataclasses import dataclass, field
from typing import List, Optional

from moodboard_client.api.client import MoodboardAPI
from moodboard_client.core.config import Settings
from moodboard_client.core.coordinator import MutationCoordinator
from moodboard_client.core.fetcher import ResourceKey, ResourceKind, SnapshotFetcher
from moodboard_client.core.poller import PollOutcome
from moodboard_client.core.session import ReconciliationSession
from moodboard_client.core.styles import RenderedItem, StyleRegistry
from moodboard_client.schemas.cluster import ClusterGroup
from moodboard_client.schemas.item import ItemRead
from moodboard_client.schemas.search import SearchResult

logger = logging.getLogger(__name__)


@dataclass
class BoardViewState:
    title: str
    draft_title: str
    items: List[ItemRead] = field(default_factory=list)
    rendered: List[RenderedItem] = field(default_factory=list)
    clusters: List[ClusterGroup] = field(default_factory=list)

    loading: bool = True
    deleting: Optional[int] = None
    adding_text: bool = False
    clustering: bool = False
    show_clusters: bool = False
    editing_title: bool = False
    saving_title: bool = False


class BoardView:
    """State and behaviour behind the detail page of a single board."""

    def __init__(
        self,
        api: MoodboardAPI,
        board_id: int,
        settings: Optional[Settings] = None,
        initial_title: Optional[str] = None,
        rng: Optional[random.Random] = None,
    ):
        self.api = api
        self.board_id = board_id
        self.settings = settings or Settings()
        self.fetcher = SnapshotFetcher(api)
        self.styles = StyleRegistry(rng)

        title = initial_title or f"Board #{board_id}"
        self.state = BoardViewState(title=title, draft_title=title)
        self.session: Optional[ReconciliationSession] = None
        self.coordinator: Optional[MutationCoordinator] = None

    def _new_session(self) -> MutationCoordinator:
        if self.session is not None:
            self.session.close()
        self.session = ReconciliationSession(board_id=self.board_id)
        self.coordinator = MutationCoordinator(
            self.api, self.fetcher, self.session, self.state, self.settings, self.styles
        )
        return self.coordinator

    async def fetch_title(self):
        result = await self.fetcher.fetch(ResourceKey(ResourceKind.BOARD, self.board_id))
        if result.ok:
            self.state.title = result.data.title
            self.state.draft_title = result.data.title
        else:
            logger.error(f"Error fetching title of board {self.board_id}: {result.error}")

    async def mount(self):
        """Load the board and start converging its items."""
        coordinator = self._new_session()
        session = self.session
        self.state.loading = True

        await self.fetch_title()
        result = await self.fetcher.fetch(
            ResourceKey(ResourceKind.ITEMS, self.board_id), session.items_lane.token
        )
        if session.closed:
            return
        self.state.loading = False

        if result.ok:
            coordinator.apply_items(result.data)
            coordinator.converge_items()

    def unmount(self):
        if self.session is not None:
            self.session.close()

    async def wait_idle(self):
        if self.session is not None:
            await self.session.wait_idle()

    # --- User actions --- #

    def start_editing_title(self):
        self.state.editing_title = True
        self.state.draft_title = self.state.title

    def cancel_editing_title(self):
        self.state.editing_title = False
        self.state.draft_title = self.state.title

    async def save_title(self, title: Optional[str] = None) -> bool:
        return await self._require().save_title(
            self.state.draft_title if title is None else title
        )

    async def add_text_item(self, content: str) -> Optional[PollOutcome]:
        return await self._require().add_text_item(content)

    async def add_image_item(self, image_url: str) -> Optional[PollOutcome]:
        return await self._require().add_image_item(image_url)

    async def upload_image(
        self, filename: str, data: bytes, content_type: str = "image/jpeg"
    ) -> Optional[PollOutcome]:
        return await self._require().upload_image(filename, data, content_type)

    async def add_from_search(self, result: SearchResult) -> Optional[PollOutcome]:
        return await self._require().import_item(result)

    async def delete_item(self, item_id: int) -> Optional[PollOutcome]:
        return await self._require().delete_item(item_id)

    async def compute_clusters(self) -> Optional[PollOutcome]:
        return await self._require().compute_clusters()

    def toggle_clusters(self):
        if self.state.clusters and not self.state.clustering:
            self.state.show_clusters = not self.state.show_clusters

    def _require(self) -> MutationCoordinator:
        if self.coordinator is None:
            raise RuntimeError(f"Board view {self.board_id} is not mounted")
        return self.coordinator
