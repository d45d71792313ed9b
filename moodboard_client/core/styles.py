import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from moodboard_client.schemas.item import ItemRead

FONTS = ["serif-italic", "sans-light-upper", "mono-small", "serif-large", "semibold-wide"]
SIZES = ["wide", "tall", "tall-large"]
IMAGE_HEIGHTS = ["h-48", "h-64", "h-80", "h-96", "h-112"]
SHADOWS = ["soft", "medium", "deep"]


@dataclass(frozen=True)
class CardStyle:
    font: str
    size: str
    img: str
    shadow: str


@dataclass(frozen=True)
class RenderedItem:
    item: ItemRead
    style: CardStyle


class StyleRegistry:
    """Assigns each item id one random card style, once."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()
        self._styles: Dict[int, CardStyle] = {}

    def style_for(self, item_id: int) -> CardStyle:
        style = self._styles.get(item_id)
        if style is None:
            style = CardStyle(
                font=self.rng.choice(FONTS),
                size=self.rng.choice(SIZES),
                img=self.rng.choice(IMAGE_HEIGHTS),
                shadow=self.rng.choice(SHADOWS),
            )
            self._styles[item_id] = style
        return style

    def decorate(self, items: Sequence[ItemRead]) -> List[RenderedItem]:
        return [RenderedItem(item, self.style_for(item.id)) for item in items]
