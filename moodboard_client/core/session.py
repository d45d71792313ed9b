"""Per-board reconciliation state and sequence-based supersession.

A view owns one ``ReconciliationSession``. Each resource that gets polled
(items, clusters) runs on its own ``Lane``: starting a new cycle on a lane
bumps its sequence number and flags the previous cancel token, so any
response that arrives for an older cycle is recognised as stale and dropped
instead of being merged.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional

from moodboard_client.schemas.cluster import ClusterGroup
from moodboard_client.schemas.item import ItemRead

logger = logging.getLogger(__name__)


class CancelToken:
    """Cooperative cancellation flag handed to an in-flight fetch."""

    def __init__(self):
        self._cancelled = False
        self.reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self, reason: str = "superseded"):
        if not self._cancelled:
            self._cancelled = True
            self.reason = reason


@dataclass
class Lane:
    """Sequence counter, cancel token and task for one polled resource."""

    name: str
    sequence: int = 0
    token: CancelToken = field(default_factory=CancelToken)
    iterations: int = 0
    task: Optional[asyncio.Task] = None

    def begin(self) -> tuple[int, CancelToken]:
        """Start a new cycle, superseding whatever was in flight."""
        self.token.cancel(f"{self.name} cycle superseded")
        self.sequence += 1
        self.token = CancelToken()
        self.iterations = 0
        return self.sequence, self.token

    def is_current(self, sequence: int) -> bool:
        return sequence == self.sequence and not self.token.cancelled

    def start(
        self, run: Callable[[int, CancelToken], Awaitable]
    ) -> asyncio.Task:
        """Begin a cycle and schedule ``run(sequence, token)`` as its task."""
        sequence, token = self.begin()
        self.task = asyncio.create_task(run(sequence, token), name=f"{self.name}-{sequence}")
        return self.task

    def close(self):
        self.token.cancel(f"{self.name} closed")
        self.sequence += 1
        if self.task is not None and not self.task.done():
            self.task.cancel()
        self.task = None


@dataclass
class ReconciliationSession:
    board_id: int
    items: List[ItemRead] = field(default_factory=list)
    clusters: List[ClusterGroup] = field(default_factory=list)
    accepted_clusters: List[ClusterGroup] = field(default_factory=list)
    items_lane: Lane = field(default_factory=lambda: Lane("items"))
    clusters_lane: Lane = field(default_factory=lambda: Lane("clusters"))
    closed: bool = False

    def close(self):
        """Drop all in-flight work; nothing from this session may merge afterwards."""
        if self.closed:
            return
        self.closed = True
        self.items_lane.close()
        self.clusters_lane.close()
        logger.debug(f"Closed reconciliation session for board {self.board_id}")

    async def wait_idle(self):
        """Wait until no cycle is running on either lane.

        A finishing cycle may have started a newer one, so keep going until
        both lanes are quiet.
        """
        while True:
            tasks = [
                lane.task
                for lane in (self.items_lane, self.clusters_lane)
                if lane.task is not None and not lane.task.done()
            ]
            if not tasks:
                return
            await asyncio.gather(*tasks, return_exceptions=True)
