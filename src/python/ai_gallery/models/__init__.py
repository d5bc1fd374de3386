"""Data models for ai_gallery."""

from ai_gallery.models.batch import BatchResult
from ai_gallery.models.enums import FileFormat, MediaType, SourceTool
from ai_gallery.models.metadata import (
    DEFAULT_THUMBNAIL_POSITION,
    NormalizedMetadata,
    ThumbnailPosition,
)

__all__ = [
    "BatchResult",
    "DEFAULT_THUMBNAIL_POSITION",
    "FileFormat",
    "MediaType",
    "NormalizedMetadata",
    "SourceTool",
    "ThumbnailPosition",
]
