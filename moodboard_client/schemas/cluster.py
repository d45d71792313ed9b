from typing import List, Optional
from pydantic import BaseModel

class ClusterItem(BaseModel):
    id: int
    content: Optional[str] = None
    image_url: Optional[str] = None

class ClusterGroup(BaseModel):
    cluster_id: Optional[int] = None
    label: Optional[str] = None
    items: List[ClusterItem] = []

    def signature(self) -> tuple:
        """Label plus member ids, used to tell one clustering run from another."""
        return (self.label, tuple(i.id for i in self.items))

class ClusterTriggerResponse(BaseModel):
    cluster_message: str
