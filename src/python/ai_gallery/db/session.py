"""Database engine and session management.

Provides helpers for creating engines from configuration and a
transactional session scope.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

from ai_gallery.config import Config, get_config


def create_engine_for_uri(uri: str, echo: bool = False) -> Engine:
    """Create an engine, making sure a SQLite file's directory exists.

    Args:
        uri: SQLAlchemy database URI
        echo: Echo SQL statements

    Returns:
        SQLAlchemy Engine instance
    """
    url = make_url(uri)
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(uri, echo=echo)


def create_engine_from_config(config: Optional[Config] = None) -> Engine:
    """Create an engine from configuration.

    Args:
        config: Optional Config instance. If None, uses get_config()

    Example:
        >>> engine = create_engine_from_config()
        >>> print(engine.url)
    """
    config = config or get_config()
    return create_engine_for_uri(config.database_uri, echo=config.database.echo)


def make_session_factory(engine: Engine) -> sessionmaker:
    """Session factory whose objects stay readable after commit."""
    return sessionmaker(bind=engine, expire_on_commit=False)


@contextmanager
def session_scope(factory: sessionmaker) -> Generator[Session, None, None]:
    """Provide a transactional scope for database operations.

    Automatically commits on success and rolls back on exception.
    Session is always closed when exiting the context.

    Example:
        >>> with session_scope(factory) as session:
        ...     session.add(MediaModel(title="cat"))
    """
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
