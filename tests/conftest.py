import httpx
import pytest

from moodboard_client.api.client import MoodboardAPI
from moodboard_client.core.config import Settings
from tests.fake_server import FakeStore, create_app


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def settings():
    return Settings(
        api_url="http://test/api",
        item_poll_interval=0.0,
        item_poll_max=20,
        cluster_poll_interval=0.0,
        cluster_poll_max=10,
        boards_timeout=1.0,
        retry_base_delay=0.0,
        retry_max_delay=0.0,
    )


@pytest.fixture
async def api(store):
    client = httpx.AsyncClient(
        transport=httpx.ASGITransport(app=create_app(store)),
        base_url="http://test/api",
    )
    yield MoodboardAPI(client)
    await client.aclose()
