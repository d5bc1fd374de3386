"""Unit tests for NormalizedMetadata, ThumbnailPosition and BatchResult."""

import pytest

from ai_gallery.models import BatchResult, DEFAULT_THUMBNAIL_POSITION, NormalizedMetadata, ThumbnailPosition


class TestNormalizedMetadata:
    """Tests for the NormalizedMetadata dataclass."""

    def test_defaults_are_empty_strings(self):
        metadata = NormalizedMetadata()
        assert metadata.to_dict() == {"title": "", "prompt": "", "model": "", "tags": "", "notes": ""}
        assert metadata.is_empty

    def test_none_becomes_empty_string(self):
        metadata = NormalizedMetadata(prompt=None, model="SDXL")
        assert metadata.prompt == ""
        assert not metadata.is_empty

    def test_from_dict_ignores_unknown_keys(self):
        metadata = NormalizedMetadata.from_dict({"prompt": "a cat", "seed": 42, "notes": None})
        assert metadata == NormalizedMetadata(prompt="a cat")

    def test_from_dict_none(self):
        assert NormalizedMetadata.from_dict(None).is_empty


class TestThumbnailPosition:
    """Tests for the ThumbnailPosition dataclass."""

    def test_default(self):
        assert ThumbnailPosition() == DEFAULT_THUMBNAIL_POSITION == ThumbnailPosition(50, 25)

    @pytest.mark.parametrize("x,y", [(0, 0), (100, 100), (0, 100)])
    def test_bounds_are_inclusive(self, x, y):
        assert ThumbnailPosition(x, y).to_dict() == {"x": x, "y": y}

    @pytest.mark.parametrize("x,y", [(-1, 0), (0, 101), (50.5, 25), (True, 25), ("50", 25)])
    def test_invalid(self, x, y):
        with pytest.raises(ValueError):
            ThumbnailPosition(x, y)

    def test_from_dict_rounds_floats(self):
        assert ThumbnailPosition.from_dict({"x": 33.6, "y": "12"}) == ThumbnailPosition(34, 12)

    def test_from_dict_missing_keys(self):
        assert ThumbnailPosition.from_dict({"x": 10}) == ThumbnailPosition(10, 25)
        assert ThumbnailPosition.from_dict(None) == ThumbnailPosition()

    def test_from_dict_out_of_range(self):
        with pytest.raises(ValueError):
            ThumbnailPosition.from_dict({"x": 120, "y": 0})

    def test_frozen(self):
        position = ThumbnailPosition()
        with pytest.raises(AttributeError):
            position.x = 10


class TestBatchResult:
    """Tests for the BatchResult counters."""

    def test_str(self):
        result = BatchResult(processed=3, skipped=1, errors=2, total=6)
        assert str(result) == "3 processed, 1 skipped, 2 errors (6 total)"

    def test_to_dict(self):
        assert BatchResult().to_dict() == {"processed": 0, "skipped": 0, "errors": 0, "total": 0}
