"""Tests for identity-preserving snapshot merges."""

from moodboard_client.core.reconciler import merge_boards, merge_items
from moodboard_client.schemas.board import BoardCard, BoardPreview, PreviewItem
from tests.helpers import item

EMB = [0.1, 0.2]


class TestMergeItems:
    def test_resolving_item_is_replaced_and_resolved_item_kept(self):
        previous = [item(1), item(2, EMB)]
        fetched = [item(1, EMB), item(2, EMB)]

        result = merge_items(previous, fetched)

        assert result.changed is True
        assert result.items[0] is fetched[0]
        assert result.items[1] is previous[1]

    def test_merging_same_snapshot_twice_is_idempotent(self):
        previous = [item(1)]
        snapshot = [item(1, EMB), item(2, EMB)]

        first = merge_items(previous, snapshot)
        second = merge_items(first.items, [i.model_copy() for i in snapshot])

        assert first.changed is True
        assert second.changed is False
        assert second.items is first.items
        assert all(a is b for a, b in zip(second.items, first.items))

    def test_unchanged_snapshot_returns_previous_list(self):
        previous = [item(1, EMB), item(2)]
        result = merge_items(previous, [item(1, EMB), item(2)])

        assert result.changed is False
        assert result.items is previous

    def test_content_resolution_counts_as_change(self):
        previous = [item(1, EMB, content=None)]
        fetched = [item(1, EMB, content="caption")]

        result = merge_items(previous, fetched)

        assert result.changed is True
        assert result.items[0].content == "caption"

    def test_new_item_is_added(self):
        previous = [item(1, EMB)]
        fetched = [item(1, EMB), item(5)]

        result = merge_items(previous, fetched)

        assert result.changed is True
        assert [i.id for i in result.items] == [1, 5]
        assert result.items[0] is previous[0]

    def test_removed_item_is_dropped(self):
        previous = [item(1, EMB), item(2, EMB)]
        result = merge_items(previous, [item(2, EMB)])

        assert result.changed is True
        assert [i.id for i in result.items] == [2]
        assert result.items[0] is previous[1]

    def test_insert_and_delete_race_with_equal_ids_still_flags_size_change(self):
        # An unchanged id set but a different length only happens with duplicates;
        # the size guard must still report a change.
        previous = [item(1, EMB)]
        result = merge_items(previous, [item(1, EMB), item(1, EMB)])

        assert result.changed is True
        assert len(result.items) == 2

    def test_empty_to_empty_is_unchanged(self):
        previous = []
        result = merge_items(previous, [])
        assert result.changed is False
        assert result.items is previous


def _preview(board_id, title, preview_ids=()):
    return BoardPreview(
        id=board_id,
        title=title,
        preview_items=[PreviewItem(id=p, type="image", image_url=f"/static/{p}.jpg") for p in preview_ids],
    )


class TestMergeBoards:
    def test_unchanged_boards_keep_identity(self):
        previous = [BoardCard.from_preview(_preview(2, "b")), BoardCard.from_preview(_preview(1, "a"))]
        result = merge_boards(previous, [_preview(2, "b"), _preview(1, "a")])

        assert result.changed is False
        assert result.items is previous

    def test_renamed_board_is_replaced(self):
        previous = [BoardCard.from_preview(_preview(1, "old"))]
        result = merge_boards(previous, [_preview(1, "new")])

        assert result.changed is True
        assert result.items[0].title == "new"

    def test_new_preview_item_replaces_board(self):
        old = BoardCard.from_preview(_preview(1, "a", [3]))
        result = merge_boards([old], [_preview(1, "a", [4, 3])])

        assert result.changed is True
        assert result.items[0] is not old

    def test_pending_placeholder_survives_refresh(self):
        placeholder = BoardCard(id="temp-1-abcdef", title="new", is_generating=True)
        kept = BoardCard.from_preview(_preview(1, "a"))

        result = merge_boards([placeholder, kept], [_preview(1, "a")])

        assert result.changed is False
        assert result.items[0] is placeholder
        assert result.items[1] is kept

    def test_deleted_board_is_dropped(self):
        previous = [BoardCard.from_preview(_preview(2, "b")), BoardCard.from_preview(_preview(1, "a"))]
        result = merge_boards(previous, [_preview(1, "a")])

        assert result.changed is True
        assert [b.id for b in result.items] == [1]
        assert result.items[0] is previous[1]

    def test_board_confirmed_after_snapshot_is_kept(self):
        fresh = BoardCard.from_preview(_preview(2, "fresh"))
        older = BoardCard.from_preview(_preview(1, "a"))

        result = merge_boards([fresh, older], [_preview(1, "a")], keep={2})

        assert result.changed is False
        assert result.items[0] is fresh
        assert result.items[1] is older

    def test_kept_board_is_not_duplicated_when_listed(self):
        fresh = BoardCard.from_preview(_preview(2, "fresh"))

        result = merge_boards([fresh], [_preview(2, "fresh")], keep={2})

        assert [b.id for b in result.items] == [2]
