import enum
import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from moodboard_client.api.client import MoodboardAPI
from moodboard_client.core.session import CancelToken

logger = logging.getLogger(__name__)


class ResourceKind(str, enum.Enum):
    BOARDS = "boards"
    BOARD = "board"
    ITEMS = "items"
    CLUSTERS = "clusters"


class FetchStatus(str, enum.Enum):
    OK = "ok"
    NETWORK_ERROR = "network_error"
    TIMEOUT = "timeout"
    SERVER_ERROR = "server_error"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class ResourceKey:
    kind: ResourceKind
    board_id: Optional[int] = None

    def __str__(self) -> str:
        if self.board_id is None:
            return self.kind.value
        return f"board {self.board_id} {self.kind.value}"


@dataclass(frozen=True)
class FetchResult:
    status: FetchStatus
    data: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is FetchStatus.OK

    @property
    def cancelled(self) -> bool:
        return self.status is FetchStatus.CANCELLED

    @property
    def transient(self) -> bool:
        """Failures worth retrying. Cancellation is not one of them."""
        return self.status in (
            FetchStatus.NETWORK_ERROR,
            FetchStatus.TIMEOUT,
            FetchStatus.SERVER_ERROR,
        )


CANCELLED = FetchResult(FetchStatus.CANCELLED)


class SnapshotFetcher:
    """Issues a single read for one resource and classifies the outcome."""

    def __init__(self, api: MoodboardAPI):
        self.api = api

    async def _request(self, key: ResourceKey, timeout: Optional[float]):
        if key.kind is ResourceKind.BOARDS:
            return await self.api.list_boards(timeout=timeout)
        if key.kind is ResourceKind.BOARD:
            return await self.api.get_board(key.board_id, timeout=timeout)
        if key.kind is ResourceKind.ITEMS:
            return await self.api.list_items(key.board_id, timeout=timeout)
        return await self.api.list_clusters(key.board_id, timeout=timeout)

    async def fetch(
        self,
        key: ResourceKey,
        token: Optional[CancelToken] = None,
        timeout: Optional[float] = None,
    ) -> FetchResult:
        if key.kind is not ResourceKind.BOARDS and key.board_id is None:
            raise ValueError(f"{key.kind.value} snapshot needs a board id")
        if token is not None and token.cancelled:
            return CANCELLED

        try:
            data = await self._request(key, timeout)
            result = FetchResult(FetchStatus.OK, data=data)
        except httpx.TimeoutException as e:
            result = FetchResult(FetchStatus.TIMEOUT, error=str(e) or "timed out")
        except httpx.RequestError as e:
            result = FetchResult(FetchStatus.NETWORK_ERROR, error=str(e))
        except httpx.HTTPStatusError as e:
            result = FetchResult(
                FetchStatus.SERVER_ERROR, error=f"HTTP {e.response.status_code}"
            )
        except (ValidationError, ValueError, TypeError) as e:
            # Undecodable or null bodies land here along with schema mismatches.
            result = FetchResult(FetchStatus.SERVER_ERROR, error=f"bad payload: {e}")

        # A cancelled call never hands data (or errors) back to shared state.
        if token is not None and token.cancelled:
            logger.debug(f"Discarding {key} fetch: {token.reason}")
            return CANCELLED

        if not result.ok:
            logger.warning(f"⚠️ Fetch of {key} failed ({result.status.value}): {result.error}")
        return result
