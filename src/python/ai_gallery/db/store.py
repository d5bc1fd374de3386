"""Persistent media store.

MediaStore wraps the ``media`` table: CRUD, search, grouping, statistics
and JSON backup export/import. Each public method runs in its own
transaction; returned MediaModel objects stay readable after the session
closes.
"""

import base64
import binascii
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

import pandas as pd
from sqlalchemy import Engine, case, delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError

from ai_gallery.config import Config, get_config
from ai_gallery.db.models import Base, MediaModel
from ai_gallery.db.session import create_engine_from_config, make_session_factory, session_scope
from ai_gallery.exceptions import MediaNotFoundError
from ai_gallery.models.enums import MediaType
from ai_gallery.models.metadata import ThumbnailPosition

logger = logging.getLogger(__name__)

EXPORT_VERSION = "4.0-server"

_WRITABLE_COLUMNS = frozenset(
    column.key for column in MediaModel.__table__.columns if column.key != "id"
)
_BACKUP_EXTRA_FIELDS = ("thumbnail_position", "metadata", "image_data")
_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def _snake_case(key: str) -> str:
    return _CAMEL_RE.sub("_", key).lower()


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        logger.debug("Unparseable date %r", value)
        return None


def decode_base64_data(value: Any) -> Optional[bytes]:
    """Accept raw bytes, base64 text or a base64 data URL."""
    if value is None or isinstance(value, bytes):
        return value
    text = str(value)
    if text.startswith("data:"):
        text = text.split(",", 1)[-1]
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError):
        logger.warning("Ignoring data that is not valid base64")
        return None


def data_url_mime_type(value: Any) -> Optional[str]:
    """MIME type of a ``data:<mime>;base64,...`` URL, or None."""
    if not isinstance(value, str) or not value.startswith("data:"):
        return None
    header = value[len("data:"):].split(",", 1)[0]
    return header.split(";", 1)[0] or None


def backup_records(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Normalize the records of a backup document to field dicts.

    Accepts the export_all() shape (``media`` key) and the older browser
    backup shape (``images`` key, camelCase field names). The browser
    backup's ``imageData`` (the media itself, as a data URL) is kept as
    ``image_data``; other unknown fields are dropped.

    Raises:
        ValueError: If the document holds neither list
    """
    records = data.get("media")
    if records is None:
        records = data.get("images")
    if not isinstance(records, list):
        raise ValueError("Backup has no 'media' or 'images' list")

    prepared = []
    for record in records:
        fields = {}
        for key, value in record.items():
            name = _snake_case(key)
            if name in _WRITABLE_COLUMNS or name in _BACKUP_EXTRA_FIELDS:
                fields[name] = value
            else:
                logger.debug("Dropping backup field %s", key)
        prepared.append(fields)
    return prepared


def _column_values(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Translate caller fields into column values.

    Besides column names this accepts ``thumbnail_position`` (a
    ThumbnailPosition or {x, y} dict) and ``metadata`` (stored as
    metadata_json).

    Raises:
        ValueError: For unknown field names or invalid positions
    """
    values: Dict[str, Any] = {}
    for key, value in fields.items():
        if key == "id":
            continue
        if key == "thumbnail_position":
            position = value if isinstance(value, ThumbnailPosition) else ThumbnailPosition.from_dict(value)
            values["thumbnail_position_x"] = position.x
            values["thumbnail_position_y"] = position.y
        elif key == "metadata":
            values["metadata_json"] = value
        elif key == "media_type":
            values[key] = value if isinstance(value, MediaType) else MediaType(value or "image")
        elif key == "thumbnail_data":
            values[key] = decode_base64_data(value)
        elif key in ("date_added", "created_at"):
            values[key] = _parse_datetime(value)
        elif key in _WRITABLE_COLUMNS:
            values[key] = value
        else:
            raise ValueError(f"Unknown media field: {key}")

    for text_field in ("prompt", "model", "tags", "notes"):
        if text_field in values and values[text_field] is None:
            values[text_field] = ""
    return values


class MediaStore:
    """Gallery database access.

    Example:
        >>> store = MediaStore.from_config()
        >>> store.create_all()
        >>> item = store.add_media(title="fox", prompt="a red fox", server_path="/g/fox.png")
        >>> [m.title for m in store.list_media(search="FOX")]
        ['fox']
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self._factory = make_session_factory(engine)

    @classmethod
    def from_config(cls, config: Optional[Config] = None) -> "MediaStore":
        config = config or get_config()
        store = cls(create_engine_from_config(config))
        store.create_all()
        return store

    def create_all(self) -> None:
        """Create tables that do not exist yet."""
        Base.metadata.create_all(self.engine)

    def session(self):
        return session_scope(self._factory)

    # --- Create -----------------------------------------------------------

    def add_media(self, **fields: Any) -> MediaModel:
        """Insert one media row and return it."""
        values = _column_values(fields)
        if not values.get("title"):
            values["title"] = "Untitled"
        values.setdefault("date_added", datetime.now())

        item = MediaModel(**values)
        with self.session() as session:
            session.add(item)
        logger.debug("Added media %s (%s)", item.id, item.title)
        return item

    def add_many(self, records: Iterable[Dict[str, Any]]) -> int:
        """Insert several rows; a row that fails is logged and skipped.

        Returns:
            Number of rows inserted
        """
        added = 0
        for record in records:
            try:
                self.add_media(**record)
            except (IntegrityError, ValueError) as e:
                logger.warning("Skipping media record %r: %s", record.get("title"), e)
                continue
            added += 1
        return added

    # --- Read -------------------------------------------------------------

    def get_media(self, media_id: int) -> MediaModel:
        """Get one item.

        Raises:
            MediaNotFoundError: If no item has this id
        """
        with self.session() as session:
            item = session.get(MediaModel, media_id)
        if item is None:
            raise MediaNotFoundError(media_id)
        return item

    def list_media(self, search: Optional[str] = None) -> List[MediaModel]:
        """List items, newest first.

        Args:
            search: Case-insensitive substring matched against title,
                prompt and tags

        Returns:
            List of MediaModel rows
        """
        stmt = select(MediaModel)
        if search:
            term = f"%{search.lower()}%"
            stmt = stmt.where(or_(
                func.lower(MediaModel.title).like(term),
                func.lower(func.coalesce(MediaModel.prompt, "")).like(term),
                func.lower(func.coalesce(MediaModel.tags, "")).like(term),
            ))
        stmt = stmt.order_by(MediaModel.created_at.desc(), MediaModel.id.desc())

        with self.session() as session:
            return list(session.scalars(stmt))

    def list_gallery(self, gallery_id: int) -> List[MediaModel]:
        """List the items of one group, newest first."""
        stmt = (
            select(MediaModel)
            .where(MediaModel.gallery_id == gallery_id)
            .order_by(MediaModel.created_at.desc(), MediaModel.id.desc())
        )
        with self.session() as session:
            return list(session.scalars(stmt))

    def get_stats(self) -> Dict[str, int]:
        """Item counts and total stored size.

        Returns:
            Dictionary with total, images, videos and total_size_mb
        """
        stmt = select(
            func.count(MediaModel.id),
            func.sum(case((MediaModel.media_type == MediaType.IMAGE, 1), else_=0)),
            func.sum(case((MediaModel.media_type == MediaType.VIDEO, 1), else_=0)),
            func.sum(MediaModel.file_size),
        )
        with self.session() as session:
            total, images, videos, total_size = session.execute(stmt).one()

        return {
            "total": total or 0,
            "images": images or 0,
            "videos": videos or 0,
            "total_size_mb": round((total_size or 0) / (1024 * 1024)),
        }

    # --- Update -----------------------------------------------------------

    def update_media(self, media_id: int, **fields: Any) -> MediaModel:
        """Update fields of one item.

        Raises:
            ValueError: If no fields are given or a field is unknown
            MediaNotFoundError: If no item has this id
        """
        values = _column_values(fields)
        if not values:
            raise ValueError("No fields to update")

        with self.session() as session:
            item = session.get(MediaModel, media_id)
            if item is None:
                raise MediaNotFoundError(media_id)
            for key, value in values.items():
                setattr(item, key, value)
        return item

    def group_media(self, media_ids: Sequence[int]) -> int:
        """Put items into a new group.

        Returns:
            The new gallery id
        """
        if not media_ids:
            raise ValueError("No media ids to group")

        with self.session() as session:
            current = session.scalar(select(func.max(MediaModel.gallery_id))) or 0
            gallery_id = current + 1
            session.execute(
                update(MediaModel).where(MediaModel.id.in_(media_ids)).values(gallery_id=gallery_id)
            )
        logger.info("Grouped %d items into gallery %d", len(media_ids), gallery_id)
        return gallery_id

    def ungroup_media(self, media_ids: Sequence[int]) -> None:
        with self.session() as session:
            session.execute(
                update(MediaModel).where(MediaModel.id.in_(media_ids)).values(gallery_id=0)
            )

    # --- Delete -----------------------------------------------------------

    def delete_media(self, media_id: int, delete_file: bool = True) -> bool:
        """Delete one item and, optionally, its stored file.

        Returns:
            True if a row was deleted, False if the id was unknown
        """
        with self.session() as session:
            item = session.get(MediaModel, media_id)
            if item is None:
                return False
            server_path = item.server_path
            session.delete(item)

        if delete_file and server_path:
            try:
                Path(server_path).unlink()
                logger.info("Deleted file: %s", server_path)
            except OSError as e:
                logger.error("Failed to delete file %s: %s", server_path, e)
        return True

    def clear_all(self) -> Dict[str, int]:
        """Delete every stored file and every row.

        Directories left empty by the file deletions are removed too.

        Returns:
            Dictionary with files_deleted, file_errors and records_deleted
        """
        with self.session() as session:
            paths = [p for p in session.scalars(select(MediaModel.server_path)) if p]

        files_deleted = 0
        file_errors = 0
        for server_path in paths:
            path = Path(server_path)
            if not path.exists():
                logger.info("File not found (skipping): %s", path)
                continue
            try:
                path.unlink()
                files_deleted += 1
            except OSError as e:
                logger.error("Failed to delete file %s: %s", path, e)
                file_errors += 1
                continue

            try:
                if not any(path.parent.iterdir()):
                    path.parent.rmdir()
            except OSError:
                logger.debug("Could not remove directory %s", path.parent)

        with self.session() as session:
            records_deleted = session.execute(delete(MediaModel)).rowcount

        logger.info("Cleared gallery: %d records, %d files", records_deleted, files_deleted)
        return {
            "files_deleted": files_deleted,
            "file_errors": file_errors,
            "records_deleted": records_deleted,
        }

    # --- Backup -----------------------------------------------------------

    def export_all(self) -> Dict[str, Any]:
        """Export every row as a JSON-serializable backup document."""
        items = self.list_media()
        return {
            "version": EXPORT_VERSION,
            "export_date": datetime.now().isoformat(),
            "total_items": len(items),
            "media": [item.to_dict() for item in items],
        }

    def import_all(self, data: Dict[str, Any]) -> int:
        """Import a backup document into the database only.

        See backup_records() for the accepted shapes. An image record
        without ``thumbnail_data`` falls back to its embedded
        ``image_data``. No media file is written; use
        MediaIngestor.import_backup() to restore files into the library.

        Returns:
            Number of rows imported
        """
        records = backup_records(data)
        for fields in records:
            image_data = fields.pop("image_data", None)
            is_image = fields.get("media_type") in (None, "", MediaType.IMAGE, MediaType.IMAGE.value)
            if image_data and not fields.get("thumbnail_data") and is_image:
                fields["thumbnail_data"] = decode_base64_data(image_data)

        imported = self.add_many(records)
        logger.info("Imported %d of %d backup records", imported, len(records))
        return imported

    @staticmethod
    def to_dataframe(items: Sequence[MediaModel]) -> pd.DataFrame:
        """Tabular view of media rows, without thumbnail bytes."""
        if not items:
            return pd.DataFrame()
        return pd.DataFrame([item.to_dict(include_thumbnail=False) for item in items])
