"""Image search result model."""

from typing import Optional
from pydantic import BaseModel


class ImageCandidate(BaseModel):
    """One image returned by the custom search API."""
    link: str
    mime: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    thumbnail_link: Optional[str] = None
    thumbnail_width: Optional[int] = None
    thumbnail_height: Optional[int] = None

    @classmethod
    def from_item(cls, item: dict) -> "ImageCandidate":
        """Map a custom search `items[]` entry."""
        image = item.get("image") or {}
        return cls(
            link=item["link"],
            mime=item.get("mime"),
            width=image.get("width"),
            height=image.get("height"),
            thumbnail_link=image.get("thumbnailLink"),
            thumbnail_width=image.get("thumbnailWidth"),
            thumbnail_height=image.get("thumbnailHeight"),
        )
