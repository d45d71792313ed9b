import logging
from typing import Awaitable, Callable, Dict, List

import httpx

from moodboard_client.api.client import MoodboardAPI
from moodboard_client.schemas.search import SearchResult

logger = logging.getLogger(__name__)


class SearchPanel:
    """Semantic search across every board, with per-result add status."""

    def __init__(self, api: MoodboardAPI):
        self.api = api
        self.query = ""
        self.results: List[SearchResult] = []
        self.searching = False
        self.add_status: Dict[int, str] = {}

    async def search(self, query: str) -> List[SearchResult]:
        if not query.strip():
            return self.results

        self.query = query
        self.searching = True
        try:
            self.results = await self.api.search(query)
        except httpx.HTTPError as e:
            logger.error(f"Error searching for '{query}': {e}")
        finally:
            self.searching = False
        return self.results

    async def add(
        self,
        result: SearchResult,
        board_id: int,
        on_add: Callable[[SearchResult, int], Awaitable],
    ) -> bool:
        self.add_status[result.id] = "loading"
        try:
            await on_add(result, board_id)
        except httpx.HTTPError as e:
            logger.error(f"Error adding item {result.id} to board {board_id}: {e}")
            self.add_status[result.id] = "error"
            return False
        self.add_status[result.id] = "success"
        return True
