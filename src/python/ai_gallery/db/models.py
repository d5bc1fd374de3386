"""
SQLAlchemy models for the gallery database.
"""
import base64
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, DateTime, Enum, Integer, LargeBinary, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ai_gallery.models.enums import MediaType
from ai_gallery.models.metadata import NormalizedMetadata, ThumbnailPosition


class Base(DeclarativeBase):
    pass


def _clamp_percent(value: Optional[int], default: int) -> int:
    if value is None:
        return default
    return min(max(int(value), 0), 100)


class MediaModel(Base):
    """One uploaded image or video and its generation metadata.

    Attributes:
        title: Display title
        prompt, model, tags, notes: Normalized generation metadata
        date_added: When the item was uploaded
        media_type: IMAGE or VIDEO
        thumbnail_data: Encoded JPEG thumbnail (images only)
        thumbnail_position_x, thumbnail_position_y: Focal point of the thumbnail crop
        metadata_json: Raw embedded metadata (PNG text chunks) or video file info
        server_path: Where the media file is stored
        file_size: Size of the stored file in bytes
        gallery_id: Group id; 0 means ungrouped
    """
    __tablename__ = "media"

    id: Mapped[int] = mapped_column(primary_key=True)

    # Normalized metadata
    title: Mapped[str] = mapped_column(String, nullable=False)
    prompt: Mapped[Optional[str]] = mapped_column(Text, default="")
    model: Mapped[Optional[str]] = mapped_column(String, default="")
    tags: Mapped[Optional[str]] = mapped_column(String, default="")
    notes: Mapped[Optional[str]] = mapped_column(Text, default="")

    date_added: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.now)
    media_type: Mapped[MediaType] = mapped_column(Enum(MediaType), default=MediaType.IMAGE)

    # Thumbnail
    thumbnail_data: Mapped[Optional[bytes]] = mapped_column(LargeBinary)
    thumbnail_position_x: Mapped[int] = mapped_column(Integer, default=50)
    thumbnail_position_y: Mapped[int] = mapped_column(Integer, default=25)

    # Raw metadata and storage
    metadata_json: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON)
    server_path: Mapped[Optional[str]] = mapped_column(String, unique=True, index=True)
    file_size: Mapped[Optional[int]] = mapped_column(Integer)

    gallery_id: Mapped[int] = mapped_column(Integer, default=0, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, index=True)

    @property
    def thumbnail_position(self) -> ThumbnailPosition:
        return ThumbnailPosition(
            _clamp_percent(self.thumbnail_position_x, 50),
            _clamp_percent(self.thumbnail_position_y, 25),
        )

    @thumbnail_position.setter
    def thumbnail_position(self, position: ThumbnailPosition) -> None:
        self.thumbnail_position_x = position.x
        self.thumbnail_position_y = position.y

    @property
    def metadata_record(self) -> NormalizedMetadata:
        """The normalized metadata fields of this row."""
        return NormalizedMetadata(
            title=self.title, prompt=self.prompt, model=self.model,
            tags=self.tags, notes=self.notes,
        )

    def to_dict(self, include_thumbnail: bool = True) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary (used for backups)."""
        data = {
            "id": self.id,
            "title": self.title,
            "prompt": self.prompt or "",
            "model": self.model or "",
            "tags": self.tags or "",
            "notes": self.notes or "",
            "date_added": self.date_added.isoformat() if self.date_added else None,
            "media_type": self.media_type.value if self.media_type else MediaType.IMAGE.value,
            "thumbnail_position": self.thumbnail_position.to_dict(),
            "metadata": self.metadata_json,
            "server_path": self.server_path,
            "file_size": self.file_size,
            "gallery_id": self.gallery_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if include_thumbnail:
            data["thumbnail_data"] = (
                base64.b64encode(self.thumbnail_data).decode("ascii") if self.thumbnail_data else None
            )
        return data

    def __repr__(self) -> str:
        return f"<MediaModel id={self.id} title={self.title!r} type={self.media_type}>"
