"""Bounded exponential-backoff retry with last-call-wins supersession."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Awaitable, Callable, Optional

from moodboard_client.core.session import CancelToken

if TYPE_CHECKING:
    from moodboard_client.core.fetcher import FetchResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry behavior."""

    max_retries: int = 5
    """Retries after the first attempt (default: 5)"""

    base_delay: float = 1.0
    """Delay before the first retry in seconds (default: 1.0)"""

    backoff_multiplier: float = 2.0
    """Exponential backoff multiplier (default: 2.0)"""

    max_delay: float = 10.0
    """Cap on any single backoff delay in seconds (default: 10.0)"""

    timeout: float = 5.0
    """Per-attempt request timeout in seconds (default: 5.0)"""


class RetryController:
    """Runs a fetch with retries; a newer ``run`` supersedes any older one."""

    def __init__(self, config: RetryConfig, name: str = "fetch"):
        self.config = config
        self.name = name
        self._sequence = 0
        self._token = CancelToken()

    def calculate_backoff(self, retry: int) -> float:
        """Delay before retry number ``retry`` (0-indexed)."""
        delay = self.config.base_delay * (self.config.backoff_multiplier**retry)
        return min(delay, self.config.max_delay)

    def cancel(self, reason: str = "cancelled"):
        self._token.cancel(reason)
        self._sequence += 1

    async def run(
        self, attempt_fn: Callable[[CancelToken, float], Awaitable["FetchResult"]]
    ) -> Optional["FetchResult"]:
        """Call ``attempt_fn(token, timeout)`` until it succeeds or the budget runs out.

        Returns the successful result, or None when the run was superseded,
        cancelled, or gave up.
        """
        self._token.cancel(f"New {self.name} request initiated, canceling previous one.")
        self._sequence += 1
        sequence = self._sequence
        token = self._token = CancelToken()

        retry = 0
        while True:
            result = await attempt_fn(token, self.config.timeout)

            if sequence != self._sequence or result.cancelled:
                logger.debug(f"{self.name} attempt {retry + 1} superseded, dropping result")
                return None

            if result.ok:
                if retry:
                    logger.info(f"✅ {self.name} succeeded after {retry} retries")
                return result

            if retry >= self.config.max_retries:
                logger.warning(
                    f"⚠️ Giving up on {self.name} after {retry + 1} attempts "
                    f"(last status: {result.status.value})"
                )
                return None

            backoff = self.calculate_backoff(retry)
            logger.warning(
                f"🔁 {self.name} failed ({result.status.value}), "
                f"retrying in {backoff:.1f}s... ({retry + 1}/{self.config.max_retries})"
            )
            await asyncio.sleep(backoff)
            retry += 1

            if sequence != self._sequence:
                logger.debug(f"{self.name} superseded during backoff")
                return None
