"""Thumbnail generation for gallery images.

Thumbnails are fixed-size JPEG crops of the source image. The crop keeps
the target aspect ratio (no distortion) and is anchored at a focal point
given as percentages, so users can move the crop to keep a subject in
frame. The same routine serves automatic thumbnailing on upload, manual
repositioning and batch regeneration.
"""

import logging
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple, Union

from PIL import Image, ImageOps, UnidentifiedImageError

from ai_gallery.config import ThumbnailConfig
from ai_gallery.exceptions import ThumbnailDecodeError
from ai_gallery.models.batch import BatchResult
from ai_gallery.models.enums import MediaType
from ai_gallery.models.metadata import DEFAULT_THUMBNAIL_POSITION, ThumbnailPosition

logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 600
DEFAULT_HEIGHT = 400
DEFAULT_QUALITY = 92
DEFAULT_FILL_COLOR = "#f8f9fa"

PositionLike = Union[ThumbnailPosition, Dict[str, Any], None]
CropBox = Tuple[float, float, float, float]


@dataclass
class Thumbnail:
    """An encoded thumbnail and the focal position that produced it."""
    data: bytes
    position: ThumbnailPosition
    width: int
    height: int
    format: str = "JPEG"


def _as_position(position: PositionLike) -> ThumbnailPosition:
    if position is None:
        return DEFAULT_THUMBNAIL_POSITION
    if isinstance(position, ThumbnailPosition):
        return position
    return ThumbnailPosition.from_dict(position)


def compute_crop_box(
    source_width: int,
    source_height: int,
    target_width: int,
    target_height: int,
    position: PositionLike = None,
) -> CropBox:
    """Compute the source rectangle to scale into a thumbnail.

    The rectangle is the largest one with the target aspect ratio that
    fits in the source. Along the axis with slack (horizontal when the
    source is proportionally wider than the target, vertical otherwise)
    its origin is placed at ``slack * percent / 100``, so 0 pins it to
    the left/top edge and 100 to the right/bottom edge.

    Args:
        source_width: Source image width in pixels
        source_height: Source image height in pixels
        target_width: Thumbnail width in pixels
        target_height: Thumbnail height in pixels
        position: Focal position (defaults to x=50, y=25)

    Returns:
        (left, top, right, bottom) in source pixels, always within bounds

    Raises:
        ValueError: If any dimension is not positive
    """
    if min(source_width, source_height, target_width, target_height) <= 0:
        raise ValueError("Image and thumbnail dimensions must be positive")

    pos = _as_position(position)
    source_ratio = source_width / source_height
    target_ratio = target_width / target_height

    if source_ratio > target_ratio:
        # Wider than the target: crop horizontally
        crop_height = float(source_height)
        crop_width = crop_height * target_ratio
        slack = source_width - crop_width
        left = min(max(slack * pos.x / 100, 0.0), slack)
        top = 0.0
    else:
        # Taller than (or same shape as) the target: crop vertically
        crop_width = float(source_width)
        crop_height = crop_width / target_ratio
        slack = source_height - crop_height
        left = 0.0
        top = min(max(slack * pos.y / 100, 0.0), slack)

    return (left, top, left + crop_width, top + crop_height)


def _decode(data: bytes) -> Image.Image:
    try:
        with Image.open(BytesIO(data)) as img:
            img.load()
            return ImageOps.exif_transpose(img)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise ThumbnailDecodeError(f"Cannot decode image: {e}") from e


def generate_thumbnail(
    data: bytes,
    position: PositionLike = None,
    width: int = DEFAULT_WIDTH,
    height: int = DEFAULT_HEIGHT,
    quality: int = DEFAULT_QUALITY,
    fill_color: str = DEFAULT_FILL_COLOR,
) -> Thumbnail:
    """Generate a cropped JPEG thumbnail from encoded image bytes.

    A neutral fill color is painted under the image so transparent
    regions do not come out black.

    Args:
        data: Encoded source image (PNG, JPEG, WEBP, ...)
        position: Focal position (defaults to x=50, y=25)
        width: Thumbnail width
        height: Thumbnail height
        quality: JPEG quality (1-100)
        fill_color: Background color under transparent pixels

    Returns:
        Thumbnail with the encoded bytes and the position used

    Raises:
        ThumbnailDecodeError: If the source cannot be decoded
    """
    pos = _as_position(position)
    source = _decode(data)

    box = compute_crop_box(source.width, source.height, width, height, pos)

    rgba = source.convert("RGBA")
    cropped = rgba.resize((width, height), Image.Resampling.LANCZOS, box=box)

    canvas = Image.new("RGB", (width, height), fill_color)
    canvas.paste(cropped, (0, 0), cropped)

    buffer = BytesIO()
    canvas.save(buffer, "JPEG", quality=quality, optimize=True)
    return Thumbnail(data=buffer.getvalue(), position=pos, width=width, height=height)


def generate_thumbnail_from_config(
    data: bytes,
    position: PositionLike = None,
    settings: Optional[ThumbnailConfig] = None,
) -> Thumbnail:
    """generate_thumbnail() using the sizes and defaults of a ThumbnailConfig."""
    settings = settings or ThumbnailConfig()
    return generate_thumbnail(
        data,
        position=position if position is not None else settings.default_position,
        width=settings.width,
        height=settings.height,
        quality=settings.quality,
        fill_color=settings.fill_color,
    )


def _read_source(item) -> bytes:
    if not item.server_path:
        raise FileNotFoundError(f"Media {item.id} has no stored file")
    return Path(item.server_path).read_bytes()


def regenerate_thumbnail_for_item(
    store,
    media_id: int,
    position: PositionLike,
    settings: Optional[ThumbnailConfig] = None,
) -> bool:
    """Regenerate one item's thumbnail at a new focal position.

    Args:
        store: MediaStore holding the item
        media_id: Item id
        position: New focal position
        settings: Thumbnail settings (defaults to ThumbnailConfig())

    Returns:
        True if a thumbnail was written, False for videos

    Raises:
        MediaNotFoundError: If the item does not exist
        ThumbnailDecodeError: If the stored file cannot be decoded
    """
    item = store.get_media(media_id)

    if item.media_type == MediaType.VIDEO:
        logger.info("Skipping thumbnail regeneration for video item %s", media_id)
        return False

    pos = _as_position(position)
    thumbnail = generate_thumbnail_from_config(_read_source(item), pos, settings)
    store.update_media(media_id, thumbnail_data=thumbnail.data, thumbnail_position=pos)

    logger.info("Thumbnail regenerated for item %s at (%d, %d)", media_id, pos.x, pos.y)
    return True


def regenerate_thumbnails(
    store,
    force: bool = False,
    settings: Optional[ThumbnailConfig] = None,
    progress_callback: Optional[Callable[[Dict[str, Any]], None]] = None,
) -> BatchResult:
    """Generate thumbnails for every image in the store.

    Items are processed one at a time; a decode or read failure is logged
    and counted, and the batch continues.

    Args:
        store: MediaStore to process
        force: Regenerate thumbnails that already exist
        settings: Thumbnail settings (defaults to ThumbnailConfig())
        progress_callback: Called after each generated thumbnail with a
            dict of current, total, processed, skipped, errors, current_item

    Returns:
        BatchResult with processed, skipped and error counts
    """
    items = store.list_media()
    result = BatchResult(total=len(items))

    for index, item in enumerate(items, start=1):
        if item.media_type == MediaType.VIDEO:
            result.skipped += 1
            continue

        if item.thumbnail_data and not force:
            logger.debug("Image %s already has a thumbnail, skipping", item.id)
            result.skipped += 1
            continue

        try:
            position = item.thumbnail_position
            thumbnail = generate_thumbnail_from_config(_read_source(item), position, settings)
            store.update_media(item.id, thumbnail_data=thumbnail.data, thumbnail_position=position)
        except (ThumbnailDecodeError, OSError) as e:
            logger.error("Failed to generate thumbnail for image %s: %s", item.id, e)
            result.errors += 1
            continue

        result.processed += 1
        if progress_callback:
            progress_callback({
                "current": index,
                "total": result.total,
                "processed": result.processed,
                "skipped": result.skipped,
                "errors": result.errors,
                "current_item": item.title or "Untitled",
            })

    logger.info("Thumbnail generation complete: %s", result)
    return result
