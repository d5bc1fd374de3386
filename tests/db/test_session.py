"""Unit tests for db.session module."""

import pytest
from sqlalchemy import select

from ai_gallery.config import Config
from ai_gallery.db import Base, MediaModel, create_engine_for_uri, create_engine_from_config, session_scope
from ai_gallery.db.session import make_session_factory


class TestEngine:
    """Tests for engine creation."""

    def test_sqlite_directory_is_created(self, tmp_path):
        db_path = tmp_path / "nested" / "dir" / "gallery.db"
        create_engine_for_uri(f"sqlite:///{db_path}")
        assert db_path.parent.is_dir()

    def test_in_memory(self):
        engine = create_engine_for_uri("sqlite:///:memory:")
        assert engine.url.database == ":memory:"

    def test_from_config_uses_library_root(self, config):
        engine = create_engine_from_config(config)
        assert engine.url.database == str(config.library.root_path / "gallery.db")

    def test_from_config_explicit_uri(self):
        config = Config.from_dict({"database": {"uri": "sqlite:///:memory:", "echo": True}})
        engine = create_engine_from_config(config)
        assert engine.echo is True


class TestSessionScope:
    """Tests for session_scope()."""

    @pytest.fixture
    def factory(self):
        engine = create_engine_for_uri("sqlite:///:memory:")
        Base.metadata.create_all(engine)
        return make_session_factory(engine)

    def test_commits(self, factory):
        with session_scope(factory) as session:
            session.add(MediaModel(title="fox"))

        with session_scope(factory) as session:
            assert session.scalars(select(MediaModel.title)).all() == ["fox"]

    def test_rolls_back_on_error(self, factory):
        with pytest.raises(RuntimeError):
            with session_scope(factory) as session:
                session.add(MediaModel(title="fox"))
                session.flush()
                raise RuntimeError("boom")

        with session_scope(factory) as session:
            assert session.scalars(select(MediaModel)).all() == []
