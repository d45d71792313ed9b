from typing import List, Optional, Union
from pydantic import BaseModel

PLACEHOLDER_PREFIX = "temp-"

class PreviewItem(BaseModel):
    id: int
    image_url: Optional[str] = None
    content: Optional[str] = None
    type: str

class BoardCreate(BaseModel):
    title: str

class BoardPreview(BaseModel):
    id: int
    title: str
    preview_items: List[PreviewItem] = []

class BoardCard(BaseModel):
    """A board as shown in the list, possibly still waiting on the server."""

    id: Union[int, str]
    title: str
    preview_items: List[PreviewItem] = []
    is_generating: bool = False

    @property
    def is_placeholder(self) -> bool:
        return isinstance(self.id, str) and self.id.startswith(PLACEHOLDER_PREFIX)

    @classmethod
    def from_preview(cls, board: BoardPreview) -> "BoardCard":
        return cls(
            id=board.id,
            title=board.title,
            preview_items=list(board.preview_items),
            is_generating=False,
        )
