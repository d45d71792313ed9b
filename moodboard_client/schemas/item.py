from typing import Optional, Literal, Union, List
from pydantic import BaseModel

class TextItemCreate(BaseModel):
    type: Literal["text"] = "text"
    content: str
    source_item_id: Optional[int] = None

class ImageItemCreate(BaseModel):
    type: Literal["image"] = "image"
    image_url: str
    content: Optional[str] = None
    source_item_id: Optional[int] = None

ItemCreate = Union[TextItemCreate, ImageItemCreate]

class ItemRead(BaseModel):
    id: int
    board_id: Optional[int] = None
    type: Literal["text", "image"]
    content: Optional[str] = None
    image_url: Optional[str] = None
    cluster_id: Optional[int] = None
    similarity: Optional[float] = None
    embedding: Optional[List[float]] = None

    @property
    def is_resolved(self) -> bool:
        """An item is settled once the server has embedded and captioned it."""
        return self.embedding is not None and bool(self.content)

class UploadResponse(BaseModel):
    id: int
    image_url: str
    caption: Optional[str] = None
