import logging
from typing import List, Optional

import httpx

from moodboard_client.core.config import STATIC_URL
from moodboard_client.schemas.board import BoardPreview
from moodboard_client.schemas.cluster import ClusterGroup, ClusterTriggerResponse
from moodboard_client.schemas.item import ItemCreate, ItemRead, UploadResponse
from moodboard_client.schemas.search import SearchResult

logger = logging.getLogger(__name__)


def resolve_image_url(image_url: Optional[str], static_url: str = STATIC_URL) -> Optional[str]:
    """Server-hosted uploads come back as /static/... paths; external URLs pass through."""
    if image_url and "static" in image_url and not image_url.startswith(("http://", "https://")):
        return f"{static_url}{image_url}"
    return image_url


class MoodboardAPI:
    """Thin typed wrapper over the Moodboard REST API.

    Every call raises httpx errors as-is; classification happens in the
    snapshot fetcher and the mutation coordinator.
    """

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    @classmethod
    def from_url(cls, base_url: str, timeout: float = 30.0) -> "MoodboardAPI":
        return cls(httpx.AsyncClient(base_url=base_url, timeout=timeout))

    async def aclose(self):
        await self.client.aclose()

    async def _get(self, path: str, timeout: Optional[float] = None, **kwargs):
        if timeout is not None:
            kwargs["timeout"] = timeout
        res = await self.client.get(path, **kwargs)
        res.raise_for_status()
        return res.json()

    # --- Boards --- #

    async def list_boards(self, timeout: Optional[float] = None) -> List[BoardPreview]:
        data = await self._get("/boards", timeout=timeout)
        return [BoardPreview.model_validate(b) for b in data]

    async def get_board(self, board_id: int, timeout: Optional[float] = None) -> BoardPreview:
        data = await self._get(f"/boards/{board_id}", timeout=timeout)
        return BoardPreview.model_validate(data)

    async def create_board(self, title: str) -> BoardPreview:
        res = await self.client.post("/boards", json={"title": title})
        res.raise_for_status()
        return BoardPreview.model_validate(res.json())

    async def rename_board(self, board_id: int, title: str) -> BoardPreview:
        res = await self.client.patch(f"/boards/{board_id}", json={"title": title})
        res.raise_for_status()
        return BoardPreview.model_validate(res.json())

    async def delete_board(self, board_id: int):
        res = await self.client.delete(f"/boards/{board_id}")
        res.raise_for_status()

    # --- Items --- #

    async def list_items(self, board_id: int, timeout: Optional[float] = None) -> List[ItemRead]:
        data = await self._get(f"/boards/{board_id}/items", timeout=timeout)
        return [ItemRead.model_validate(i) for i in data]

    async def add_item(self, board_id: int, item: ItemCreate) -> ItemRead:
        res = await self.client.post(
            f"/boards/{board_id}/items", json=item.model_dump(exclude_none=True)
        )
        res.raise_for_status()
        return ItemRead.model_validate(res.json())

    async def upload_image(
        self, board_id: int, filename: str, data: bytes, content_type: str = "image/jpeg"
    ) -> UploadResponse:
        res = await self.client.post(
            f"/boards/{board_id}/items/upload",
            files={"file": (filename, data, content_type)},
        )
        res.raise_for_status()
        return UploadResponse.model_validate(res.json())

    async def delete_item(self, board_id: int, item_id: int):
        res = await self.client.delete(f"/boards/{board_id}/items/{item_id}")
        res.raise_for_status()

    # --- Clusters --- #

    async def trigger_clustering(self, board_id: int) -> ClusterTriggerResponse:
        res = await self.client.post(f"/boards/{board_id}/cluster")
        res.raise_for_status()
        return ClusterTriggerResponse.model_validate(res.json())

    async def list_clusters(
        self, board_id: int, timeout: Optional[float] = None
    ) -> List[ClusterGroup]:
        data = await self._get(f"/boards/{board_id}/clusters", timeout=timeout)
        return [ClusterGroup.model_validate(c) for c in data]

    # --- Search --- #

    async def search(self, query: str) -> List[SearchResult]:
        data = await self._get("/search", params={"q": query})
        return [SearchResult.model_validate(r) for r in data]
