"""
Image asset records handed back to the document layer.

A finished crop becomes an ``ImageAsset`` keyed by a generated identifier.
The document field only stores an ``AssetReference`` (identifier, original
filename, format tag); the asset itself is persisted by the caller.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from ratio_crop_tool.models import ProcessedImage


def create_asset_id() -> str:
    return uuid.uuid4().hex


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


@dataclass(frozen=True)
class AssetReference:
    """What a document field stores to point at an image asset."""
    asset_id: str
    filename: str
    format: str

    def to_dict(self) -> dict:
        return {"asset_id": self.asset_id, "filename": self.filename, "format": self.format}


@dataclass
class ImageAsset:
    """A processed image ready for persistence."""
    id: str
    filename: str
    mime_type: str
    format: str
    width: int
    height: int
    aspect_ratio: str
    data: bytes
    created_at: str
    updated_at: str

    def reference(self) -> AssetReference:
        return AssetReference(self.id, self.filename, self.format)


def build_asset(processed: ProcessedImage, filename: str, aspect_ratio) -> ImageAsset:
    """Wrap a ProcessedImage into a new asset record."""
    now = _now()
    return ImageAsset(
        id=create_asset_id(),
        filename=filename,
        mime_type=processed.mime_type,
        format=processed.format,
        width=processed.width,
        height=processed.height,
        aspect_ratio=str(aspect_ratio),
        data=processed.data,
        created_at=now,
        updated_at=now,
    )
