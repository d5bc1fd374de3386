"""Enumerations for gallery models."""

from enum import Enum
from pathlib import Path


class MediaType(Enum):
    """
    Kind of media stored in the gallery.

    - IMAGE: Still images (PNG, JPEG, WEBP, ...)
    - VIDEO: Video clips (MP4, WEBM, MOV, ...)
    """
    IMAGE = "image"
    VIDEO = "video"

    @classmethod
    def from_mime_type(cls, mime_type: str) -> "MediaType | None":
        """
        Get MediaType from a declared MIME type such as "image/png".

        Returns:
            The matching MediaType, or None for anything else
        """
        if not mime_type:
            return None
        major = mime_type.split("/", 1)[0].lower()
        for media_type in cls:
            if media_type.value == major:
                return media_type
        return None


class SourceTool(Enum):
    """
    Generation tool inferred from an image's embedded metadata.

    The upstream tools do not share a schema, so the tool is detected
    from which text chunks are present and how they are shaped.
    """
    CHATGPT = "chatgpt"
    COMFYUI = "comfyui"
    A1111 = "automatic1111"
    UNKNOWN = "unknown"


class FileFormat(Enum):
    """
    File formats accepted by the gallery.

    Grouped by type:
    - Image formats: shown in the gallery and thumbnailed
    - Video formats: stored and played back, not thumbnailed
    """
    # Image formats
    PNG = "png"
    JPEG = "jpg"
    WEBP = "webp"
    GIF = "gif"
    BMP = "bmp"

    # Video formats
    MP4 = "mp4"
    WEBM = "webm"
    MOV = "mov"
    MKV = "mkv"

    # Unknown
    UNKNOWN = "unknown"

    @classmethod
    def from_extension(cls, extension: str) -> "FileFormat":
        """
        Get FileFormat from a file extension.

        Args:
            extension: File extension (with or without leading dot)

        Returns:
            The matching FileFormat, or UNKNOWN if not recognized
        """
        ext = extension.lower().lstrip(".")

        if ext in {"jpg", "jpeg"}:
            return cls.JPEG

        for fmt in cls:
            if fmt.value == ext:
                return fmt

        return cls.UNKNOWN

    @classmethod
    def from_filename(cls, filename: str) -> "FileFormat":
        """
        Get FileFormat from a filename or file path.

        Examples:
            >>> FileFormat.from_filename("ComfyUI_00012_.png")
            FileFormat.PNG
            >>> FileFormat.from_filename("/uploads/clip.MP4")
            FileFormat.MP4
        """
        return cls.from_extension(Path(filename).suffix)

    @property
    def is_image(self) -> bool:
        """Check if this format is an image format."""
        return self in (
            FileFormat.PNG, FileFormat.JPEG, FileFormat.WEBP,
            FileFormat.GIF, FileFormat.BMP,
        )

    @property
    def is_video(self) -> bool:
        """Check if this format is a video format."""
        return self in (FileFormat.MP4, FileFormat.WEBM, FileFormat.MOV, FileFormat.MKV)

    @property
    def media_type(self) -> "MediaType | None":
        """The MediaType this format belongs to, or None if unsupported."""
        if self.is_image:
            return MediaType.IMAGE
        if self.is_video:
            return MediaType.VIDEO
        return None
