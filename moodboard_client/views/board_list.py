import asyncio
import logging
import random
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import httpx

from moodboard_client.api.client import MoodboardAPI
from moodboard_client.core.config import Settings
from moodboard_client.core.coordinator import import_payload
from moodboard_client.core.fetcher import FetchResult, ResourceKey, ResourceKind, SnapshotFetcher
from moodboard_client.core.reconciler import merge_boards
from moodboard_client.core.retry import RetryController
from moodboard_client.core.session import CancelToken
from moodboard_client.schemas.board import PLACEHOLDER_PREFIX, BoardCard
from moodboard_client.schemas.search import SearchResult

logger = logging.getLogger(__name__)

BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def new_placeholder_id(rng: Optional[random.Random] = None) -> str:
    """temp-<millis>-<6 base36 chars>; never parses as a server id."""
    rng = rng or random
    suffix = "".join(rng.choice(BASE36) for _ in range(6))
    return f"{PLACEHOLDER_PREFIX}{int(time.time() * 1000)}-{suffix}"


def _log_refresh_failure(task: asyncio.Task):
    if task.cancelled() or task.exception() is None:
        return
    logger.error(f"❌ Board list refresh failed: {task.exception()}", exc_info=task.exception())


@dataclass
class BoardListState:
    boards: List[BoardCard] = field(default_factory=list)
    loading: bool = True


class BoardListView:
    """State and behaviour behind the list of boards."""

    def __init__(self, api: MoodboardAPI, settings: Optional[Settings] = None):
        self.api = api
        self.settings = settings or Settings()
        self.fetcher = SnapshotFetcher(api)
        self.retry = RetryController(self.settings.retry_config(), name="board list fetch")
        self.state = BoardListState()
        self._fetch_task: Optional[asyncio.Task] = None
        # Bumped by every confirmed create; maps new board ids to their bump.
        self._mutations = 0
        self._confirmed: Dict[int, int] = {}

    async def _attempt(self, token: CancelToken, timeout: float) -> FetchResult:
        return await self.fetcher.fetch(ResourceKey(ResourceKind.BOARDS), token, timeout)

    async def fetch_boards(self) -> bool:
        """Fetch the board list with retries. A newer call supersedes this one."""
        self.state.loading = True
        issued = self._mutations
        result = await self.retry.run(self._attempt)
        if result is None:
            return False

        recent = {bid for bid, seq in self._confirmed.items() if seq > issued}
        merged = merge_boards(self.state.boards, result.data, keep=recent)
        self._confirmed = {bid: seq for bid, seq in self._confirmed.items() if bid in recent}
        if merged.changed:
            self.state.boards = merged.items
        self.state.loading = False
        return True

    def refresh(self) -> asyncio.Task:
        """Start a board-list fetch in the background."""
        self._fetch_task = asyncio.create_task(self.fetch_boards())
        self._fetch_task.add_done_callback(_log_refresh_failure)
        return self._fetch_task

    async def mount(self) -> bool:
        return await self.refresh()

    def unmount(self):
        self.retry.cancel("board list unmounted")
        if self._fetch_task is not None and not self._fetch_task.done():
            self._fetch_task.cancel()

    # --- Mutations --- #

    async def create_board(self, title: str) -> Optional[BoardCard]:
        trimmed = title.strip()
        if not trimmed:
            return None

        temp_id = new_placeholder_id()
        self.state.boards = [
            BoardCard(id=temp_id, title=trimmed, is_generating=True),
            *self.state.boards,
        ]

        try:
            created = await self.api.create_board(trimmed)
        except httpx.HTTPError as e:
            logger.error(f"❌ Failed to create board '{trimmed}': {e}", exc_info=True)
            self.state.boards = [b for b in self.state.boards if b.id != temp_id]
            return None

        board = BoardCard.from_preview(created)
        self._mutations += 1
        self._confirmed[board.id] = self._mutations
        # A refresh that landed meanwhile may already list the new board.
        if any(b.id == board.id for b in self.state.boards):
            self.state.boards = [b for b in self.state.boards if b.id != temp_id]
        else:
            self.state.boards = [board if b.id == temp_id else b for b in self.state.boards]
        logger.info(f"✅ Created board {board.id} '{board.title}'")
        return board

    async def delete_board(self, board_id: int) -> bool:
        try:
            await self.api.delete_board(board_id)
        except httpx.HTTPError as e:
            logger.error(f"❌ Error deleting board {board_id}: {e}", exc_info=True)
            return False
        self.refresh()
        return True

    async def add_to_board(self, result: SearchResult, board_id: int):
        """Copy a search hit onto one of the listed boards."""
        await self.api.add_item(board_id, import_payload(result))
