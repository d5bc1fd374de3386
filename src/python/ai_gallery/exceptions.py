"""
Exception types raised by ai_gallery.
"""


class GalleryError(Exception):
    """Base class for gallery errors."""


class ThumbnailDecodeError(GalleryError):
    """Raised when source bytes cannot be decoded into an image."""


class MediaNotFoundError(GalleryError, LookupError):
    """Raised when no media row exists for an id."""

    def __init__(self, media_id: int):
        super().__init__(f"Media not found: {media_id}")
        self.media_id = media_id


class UnsupportedMediaError(GalleryError, ValueError):
    """Raised when a file is neither an image nor a video."""
