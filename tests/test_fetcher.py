"""Tests for snapshot fetch classification and the REST wrapper."""

import httpx
import pytest

from moodboard_client.api.client import MoodboardAPI, resolve_image_url
from moodboard_client.core.fetcher import FetchStatus, ResourceKey, ResourceKind, SnapshotFetcher
from moodboard_client.core.session import CancelToken

ITEMS = ResourceKey(ResourceKind.ITEMS, 3)


def fetcher_for(handler) -> SnapshotFetcher:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test/api")
    return SnapshotFetcher(MoodboardAPI(client))


async def test_ok_snapshot_is_typed():
    def handler(request):
        assert request.url.path == "/api/boards/3/items"
        return httpx.Response(200, json=[{"id": 1, "type": "text", "content": "hi", "embedding": None}])

    result = await fetcher_for(handler).fetch(ITEMS)

    assert result.ok
    assert result.data[0].id == 1
    assert result.data[0].embedding is None


@pytest.mark.parametrize(
    "exc, status",
    [
        (httpx.ConnectError, FetchStatus.NETWORK_ERROR),
        (httpx.ReadError, FetchStatus.NETWORK_ERROR),
        (httpx.ReadTimeout, FetchStatus.TIMEOUT),
        (httpx.ConnectTimeout, FetchStatus.TIMEOUT),
    ],
)
async def test_transport_failures_are_classified(exc, status):
    def handler(request):
        raise exc("boom", request=request)

    result = await fetcher_for(handler).fetch(ITEMS)

    assert result.status is status
    assert result.data is None


@pytest.mark.parametrize(
    "exc",
    [httpx.DecodingError, httpx.TooManyRedirects, httpx.UnsupportedProtocol],
)
async def test_other_request_errors_are_network_errors(exc):
    def handler(request):
        raise exc("bad gzip", request=request)

    result = await fetcher_for(handler).fetch(ITEMS)

    assert result.status is FetchStatus.NETWORK_ERROR


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="<html>oops</html>"),
        httpx.Response(200, content=b"null"),
        httpx.Response(200, json={"detail": "not a list"}),
    ],
)
async def test_undecodable_body_is_server_error(response):
    result = await fetcher_for(lambda request: response).fetch(ITEMS)

    assert result.status is FetchStatus.SERVER_ERROR
    assert result.data is None


async def test_http_error_status_is_server_error():
    result = await fetcher_for(lambda request: httpx.Response(503)).fetch(ITEMS)
    assert result.status is FetchStatus.SERVER_ERROR
    assert "503" in result.error


async def test_malformed_payload_is_server_error():
    result = await fetcher_for(lambda request: httpx.Response(200, json=[{"nope": 1}])).fetch(ITEMS)
    assert result.status is FetchStatus.SERVER_ERROR


async def test_cancelled_during_flight_hides_data():
    token = CancelToken()

    def handler(request):
        token.cancel("newer request")
        return httpx.Response(200, json=[])

    result = await fetcher_for(handler).fetch(ITEMS, token)

    assert result.status is FetchStatus.CANCELLED
    assert result.data is None


async def test_cancelled_failure_is_still_just_cancelled():
    token = CancelToken()

    def handler(request):
        token.cancel()
        raise httpx.ConnectError("boom", request=request)

    result = await fetcher_for(handler).fetch(ITEMS, token)
    assert result.cancelled


async def test_already_cancelled_token_skips_network():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=[])

    token = CancelToken()
    token.cancel()
    result = await fetcher_for(handler).fetch(ITEMS, token)

    assert result.cancelled
    assert calls == []


async def test_board_list_passes_timeout():
    seen = {}

    def handler(request):
        seen["timeout"] = request.extensions.get("timeout")
        return httpx.Response(200, json=[{"id": 1, "title": "Dusk", "preview_items": []}])

    result = await fetcher_for(handler).fetch(ResourceKey(ResourceKind.BOARDS), timeout=5.0)

    assert result.ok
    assert result.data[0].title == "Dusk"
    assert seen["timeout"]["read"] == 5.0


async def test_board_scoped_kind_needs_board_id():
    with pytest.raises(ValueError):
        await fetcher_for(lambda request: httpx.Response(200, json=[])).fetch(
            ResourceKey(ResourceKind.CLUSTERS)
        )


def test_resolve_image_url():
    assert resolve_image_url("/static/1_a.jpg", "https://cdn.example") == "https://cdn.example/static/1_a.jpg"
    assert resolve_image_url("https://images.example/p.jpg", "https://cdn.example") == "https://images.example/p.jpg"
    assert resolve_image_url(None, "https://cdn.example") is None
