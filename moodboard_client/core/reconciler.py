"""Identity-preserving merges of fresh snapshots into local state.

Unchanged entries are carried over by reference so anything keyed on the
object (rendered styles, cached layout) stays put across polls.
"""

from dataclasses import dataclass
from typing import Collection, Generic, List, Sequence, TypeVar

from moodboard_client.schemas.board import BoardCard, BoardPreview
from moodboard_client.schemas.item import ItemRead

T = TypeVar("T")


@dataclass
class MergeResult(Generic[T]):
    items: List[T]
    changed: bool


def _newly_resolved(old: ItemRead, new: ItemRead) -> bool:
    return (old.embedding is None and new.embedding is not None) or (
        old.content is None and new.content is not None
    )


def merge_items(previous: List[ItemRead], fetched: Sequence[ItemRead]) -> MergeResult[ItemRead]:
    """Merge a fetched item snapshot into the previous local list.

    When nothing changed, the previous list object itself is returned.
    """
    by_id = {item.id: item for item in previous}
    changed = False
    merged: List[ItemRead] = []

    for new_item in fetched:
        old_item = by_id.get(new_item.id)
        if old_item is None or _newly_resolved(old_item, new_item):
            changed = True
            merged.append(new_item)
        else:
            merged.append(old_item)

    # Insertions racing deletions can leave every id looking unchanged.
    if len(previous) != len(merged):
        changed = True

    if not changed:
        return MergeResult(previous, False)
    return MergeResult(merged, True)


def _same_board(old: BoardCard, new: BoardPreview) -> bool:
    return old.title == new.title and [p.id for p in old.preview_items] == [
        p.id for p in new.preview_items
    ]


def merge_boards(
    previous: List[BoardCard],
    fetched: Sequence[BoardPreview],
    keep: Collection[int] = (),
) -> MergeResult[BoardCard]:
    """Merge a fetched board list, keeping pending placeholders at the front.

    Boards in ``keep`` were confirmed after the snapshot was requested, so
    their absence from it says nothing. They stay at the front along with
    the placeholders.
    """
    by_id = {b.id: b for b in previous if not b.is_placeholder}
    fetched_ids = {b.id for b in fetched}
    pinned = [
        b for b in previous if b.is_placeholder or (b.id in keep and b.id not in fetched_ids)
    ]
    changed = False
    merged: List[BoardCard] = []

    for board in fetched:
        old = by_id.get(board.id)
        if old is not None and _same_board(old, board):
            merged.append(old)
        else:
            changed = True
            merged.append(BoardCard.from_preview(board))

    merged = pinned + merged
    if len(merged) != len(previous) or any(
        a is not b for a, b in zip(merged, previous)
    ):
        changed = True

    if not changed:
        return MergeResult(previous, False)
    return MergeResult(merged, True)
