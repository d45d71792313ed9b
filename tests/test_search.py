from moodboard_client.views.board_list import BoardListView
from moodboard_client.views.search import SearchPanel


async def test_search_finds_embedded_items(api, store):
    board = store.add_board("Coast")
    store.add_item(board, content="Sea spray at dawn", embedding=[0.1])
    store.add_item(board, content="sea glass", embedding=None)
    panel = SearchPanel(api)

    results = await panel.search("sea")

    assert [r.content for r in results] == ["Sea spray at dawn"]
    assert results[0].board_id == board
    assert panel.searching is False


async def test_blank_query_skips_request(api, store):
    panel = SearchPanel(api)
    assert await panel.search("  ") == []
    assert store.calls["search"] == 0


async def test_failed_search_keeps_previous_results(api, store):
    board = store.add_board("Coast")
    store.add_item(board, content="tide", embedding=[0.1])
    panel = SearchPanel(api)
    await panel.search("tide")
    store.failures["search"] = 1

    results = await panel.search("tide")

    assert [r.content for r in results] == ["tide"]
    assert panel.searching is False


async def test_add_tracks_status(api, store, settings):
    source_board = store.add_board("From")
    target = store.add_board("To")
    store.add_item(source_board, content="moss", embedding=[0.3])
    panel = SearchPanel(api)
    boards = BoardListView(api, settings)
    [hit] = await panel.search("moss")

    assert await panel.add(hit, target, boards.add_to_board) is True
    assert panel.add_status[hit.id] == "success"

    store.failures["add_item"] = 1
    assert await panel.add(hit, target, boards.add_to_board) is False
    assert panel.add_status[hit.id] == "error"
