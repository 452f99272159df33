"""Cloudinary asset models."""

from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class DerivedTransformation(BaseModel):
    """Eager (derived) transformation descriptor."""
    model_config = ConfigDict(extra="allow")

    transformation: str
    width: Optional[int] = None
    height: Optional[int] = None
    bytes: Optional[int] = None
    format: Optional[str] = None
    url: Optional[str] = None
    secure_url: Optional[str] = None


class AssetRecord(BaseModel):
    """Upload API response. Unknown fields are kept as extras."""
    model_config = ConfigDict(extra="allow")

    public_id: str = Field(..., description="Identifier used for delivery and destroy")
    asset_id: Optional[str] = None
    version: Optional[int] = None
    url: Optional[str] = None
    secure_url: str = Field(..., description="HTTPS delivery URL of the stored original")
    width: Optional[int] = None
    height: Optional[int] = None
    format: str = Field(..., description="File extension, e.g. png")
    resource_type: Optional[str] = None
    bytes: Optional[int] = None
    original_filename: Optional[str] = None
    colors: Optional[list[list[Any]]] = Field(
        None,
        description="Dominant color samples as [hex, percent] pairs, most dominant first"
    )
    predominant: Optional[dict[str, list[list[Any]]]] = None
    eager: Optional[list[DerivedTransformation]] = None

    @property
    def dominant_color(self) -> Optional[str]:
        """Hex string of the most dominant color sample, if extraction ran."""
        if not self.colors or not self.colors[0]:
            return None
        color = self.colors[0][0]
        return color if isinstance(color, str) else None

    @property
    def filename(self) -> str:
        """File name to publish the derived image under."""
        base = self.original_filename or self.public_id.rsplit("/", 1)[-1]
        return f"{base}.{self.format}"


class DestroyResult(BaseModel):
    """Destroy API response."""
    result: str
