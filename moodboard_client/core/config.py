import os
from pydantic import BaseModel

from moodboard_client.core.retry import RetryConfig

# Detect environment (default to production)
ENV = os.getenv("APP_ENV", "production").lower()
API_URL = os.getenv("MOODBOARD_API_URL", "http://localhost:8080/api")
STATIC_URL = os.getenv("MOODBOARD_STATIC_URL", "")


class Settings(BaseModel):
    api_url: str = API_URL
    static_url: str = STATIC_URL

    # Item embeddings are cheap, clustering is not: poll items longer.
    item_poll_interval: float = 2.0
    item_poll_max: int = 100
    cluster_poll_interval: float = 1.5
    cluster_poll_max: int = 10

    boards_timeout: float = 5.0
    retry_max_retries: int = 5
    retry_base_delay: float = 1.0
    retry_backoff_multiplier: float = 2.0
    retry_max_delay: float = 10.0

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from MOODBOARD_* environment variables."""
        return cls(
            api_url=os.getenv("MOODBOARD_API_URL", API_URL),
            static_url=os.getenv("MOODBOARD_STATIC_URL", STATIC_URL),
            item_poll_interval=float(os.getenv("MOODBOARD_ITEM_POLL_INTERVAL", "2.0")),
            item_poll_max=int(os.getenv("MOODBOARD_ITEM_POLL_MAX", "100")),
            cluster_poll_interval=float(
                os.getenv("MOODBOARD_CLUSTER_POLL_INTERVAL", "1.5")
            ),
            cluster_poll_max=int(os.getenv("MOODBOARD_CLUSTER_POLL_MAX", "10")),
            boards_timeout=float(os.getenv("MOODBOARD_BOARDS_TIMEOUT", "5.0")),
        )

    def retry_config(self) -> RetryConfig:
        return RetryConfig(
            max_retries=self.retry_max_retries,
            base_delay=self.retry_base_delay,
            backoff_multiplier=self.retry_backoff_multiplier,
            max_delay=self.retry_max_delay,
            timeout=self.boards_timeout,
        )
