"""Database layer: SQLAlchemy model, sessions and the media store."""

from ai_gallery.db.models import Base, MediaModel
from ai_gallery.db.session import create_engine_for_uri, create_engine_from_config, session_scope
from ai_gallery.db.store import MediaStore

__all__ = [
    "Base",
    "MediaModel",
    "MediaStore",
    "create_engine_for_uri",
    "create_engine_from_config",
    "session_scope",
]
