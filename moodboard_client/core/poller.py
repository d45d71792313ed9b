"""Repeated snapshot polling until the server's async work has settled."""

from __future__ import annotations

import asyncio
import enum
import logging
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Sequence

from moodboard_client.core.fetcher import FetchResult
from moodboard_client.schemas.cluster import ClusterGroup
from moodboard_client.schemas.item import ItemRead

logger = logging.getLogger(__name__)

# Labels the worker writes before the language model has named a cluster.
PLACEHOLDER_LABEL = re.compile(r"^Cluster \d+$")


class PollState(str, enum.Enum):
    IDLE = "idle"
    POLLING = "polling"
    CONVERGED = "converged"
    EXHAUSTED = "exhausted"
    SUPERSEDED = "superseded"


@dataclass
class PollOutcome:
    state: PollState
    iterations: int
    snapshot: Any = None

    @property
    def converged(self) -> bool:
        return self.state is PollState.CONVERGED


# --- Completion predicates --- #


def items_converged(items: Sequence[ItemRead]) -> bool:
    return all(item.is_resolved for item in items)


def is_placeholder_label(label: Optional[str]) -> bool:
    return not label or bool(PLACEHOLDER_LABEL.match(label))


def valid_clusters(clusters: Sequence[ClusterGroup]) -> List[ClusterGroup]:
    """Clusters whose label has been semantically resolved."""
    return [c for c in clusters if not is_placeholder_label(c.label)]


def clusters_accepted(
    clusters: Sequence[ClusterGroup], previous: Sequence[ClusterGroup]
) -> bool:
    """A clustering run is done once it yields a non-empty, new set of named clusters."""
    valid = valid_clusters(clusters)
    if not valid:
        return False
    return [c.signature() for c in valid] != [c.signature() for c in previous]


# --- Poller --- #


class ConvergencePoller:
    """Polls one resource on a fixed interval until a predicate holds.

    ``fetch`` performs a single snapshot read, ``on_snapshot`` merges a
    successful snapshot into local state, and ``predicate`` decides whether
    the snapshot is final. The loop never runs more than ``max_iterations``
    ticks.
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[FetchResult]],
        predicate: Callable[[Any], bool],
        on_snapshot: Callable[[Any], None],
        interval: float,
        max_iterations: int,
        name: str = "poll",
    ):
        self.fetch = fetch
        self.predicate = predicate
        self.on_snapshot = on_snapshot
        self.interval = interval
        self.max_iterations = max_iterations
        self.name = name
        self.state = PollState.IDLE
        self.iterations = 0

    def _finish(self, state: PollState, snapshot: Any = None) -> PollOutcome:
        self.state = state
        return PollOutcome(state, self.iterations, snapshot)

    async def run(self, is_current: Callable[[], bool] = lambda: True) -> PollOutcome:
        self.state = PollState.POLLING
        self.iterations = 0
        last_snapshot = None

        while self.iterations < self.max_iterations:
            await asyncio.sleep(self.interval)
            if not is_current():
                return self._finish(PollState.SUPERSEDED, last_snapshot)

            self.iterations += 1
            result = await self.fetch()

            # A newer cycle started while this request was in flight.
            if result.cancelled or not is_current():
                logger.debug(f"{self.name}: tick {self.iterations} superseded")
                return self._finish(PollState.SUPERSEDED, last_snapshot)

            if not result.ok:
                continue

            last_snapshot = result.data
            self.on_snapshot(result.data)

            if self.predicate(result.data):
                logger.info(f"🏁 {self.name} converged after {self.iterations} ticks")
                return self._finish(PollState.CONVERGED, last_snapshot)

        logger.warning(
            f"⚠️ {self.name} gave up after {self.max_iterations} ticks without converging"
        )
        return self._finish(PollState.EXHAUSTED, last_snapshot)
