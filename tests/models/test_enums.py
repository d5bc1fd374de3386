"""Unit tests for MediaType, SourceTool and FileFormat enums."""

import pytest

from ai_gallery.models import FileFormat, MediaType, SourceTool


class TestMediaType:
    """Tests for the MediaType enum."""

    def test_values(self):
        """Test the stored values."""
        assert MediaType.IMAGE.value == "image"
        assert MediaType.VIDEO.value == "video"

    @pytest.mark.parametrize("mime,expected", [
        ("image/png", MediaType.IMAGE),
        ("IMAGE/JPEG", MediaType.IMAGE),
        ("video/mp4", MediaType.VIDEO),
        ("application/pdf", None),
        ("", None),
    ])
    def test_from_mime_type(self, mime, expected):
        """Test MIME type lookup."""
        assert MediaType.from_mime_type(mime) is expected


class TestSourceTool:
    """Tests for the SourceTool enum."""

    def test_source_tool_count(self):
        """Test the expected number of SourceTool values."""
        assert len(SourceTool) == 4

    def test_a1111_value(self):
        assert SourceTool.A1111.value == "automatic1111"


class TestFileFormat:
    """Tests for the FileFormat enum."""

    @pytest.mark.parametrize("extension,expected", [
        (".png", FileFormat.PNG),
        ("PNG", FileFormat.PNG),
        (".jpeg", FileFormat.JPEG),
        ("jpg", FileFormat.JPEG),
        (".webp", FileFormat.WEBP),
        (".MP4", FileFormat.MP4),
        (".mov", FileFormat.MOV),
        (".txt", FileFormat.UNKNOWN),
        ("", FileFormat.UNKNOWN),
    ])
    def test_from_extension(self, extension, expected):
        """Test extension lookup."""
        assert FileFormat.from_extension(extension) == expected

    def test_from_filename(self):
        """Test lookup from a full path."""
        assert FileFormat.from_filename("/uploads/ComfyUI_00012_.png") == FileFormat.PNG
        assert FileFormat.from_filename("clip.final.webm") == FileFormat.WEBM
        assert FileFormat.from_filename("README") == FileFormat.UNKNOWN

    def test_image_formats(self):
        """Test that image formats are identified correctly."""
        for fmt in (FileFormat.PNG, FileFormat.JPEG, FileFormat.WEBP, FileFormat.GIF, FileFormat.BMP):
            assert fmt.is_image
            assert not fmt.is_video
            assert fmt.media_type == MediaType.IMAGE

    def test_video_formats(self):
        """Test that video formats are identified correctly."""
        for fmt in (FileFormat.MP4, FileFormat.WEBM, FileFormat.MOV, FileFormat.MKV):
            assert fmt.is_video
            assert not fmt.is_image
            assert fmt.media_type == MediaType.VIDEO

    def test_unknown_has_no_media_type(self):
        assert FileFormat.UNKNOWN.media_type is None
