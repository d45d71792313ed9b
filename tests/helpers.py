import asyncio

from moodboard_client.core.fetcher import FetchResult, FetchStatus
from moodboard_client.schemas.item import ItemRead


async def wait_for(condition, tries: int = 500):
    """Yield to the event loop until ``condition()`` holds."""
    for _ in range(tries):
        if condition():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition never became true")


def item(item_id: int, embedding=None, content="text"):
    return ItemRead(id=item_id, type="text", content=content, embedding=embedding)


class ScriptedFetcher:
    """Fetcher whose responses the test releases by hand, in any order.

    It ignores cancel tokens on purpose, so only the sequence check can
    keep a stale response out of local state.
    """

    def __init__(self):
        self.pending = []
        self.keys = []

    async def fetch(self, key, token=None, timeout=None):
        future = asyncio.get_running_loop().create_future()
        self.pending.append(future)
        self.keys.append(key)
        data = await future
        return FetchResult(FetchStatus.OK, data=data)
