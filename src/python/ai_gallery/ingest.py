"""
Upload pipeline.

Turns an uploaded file into a gallery row:

1. Save the file under ``<root>/<images|videos>/<YYYY-MM-DD>/``
2. For images, extract PNG text chunks and run the tool parser chain
3. Mine the embedded ComfyUI workflow for prompt and model names,
   only filling fields the parser left empty
4. Generate a thumbnail at the default focal position
5. Persist the row through MediaStore

Whole folders can be imported with import_directory(); the folder is
first scanned into a pandas DataFrame so it can be inspected before
importing.
"""

import logging
import mimetypes
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

import pandas as pd
from sqlalchemy.exc import IntegrityError

from ai_gallery.config import Config, get_config
from ai_gallery.db.models import MediaModel
from ai_gallery.db.store import MediaStore, backup_records, data_url_mime_type, decode_base64_data
from ai_gallery.exceptions import ThumbnailDecodeError, UnsupportedMediaError
from ai_gallery.extraction.chunks import extract_png_text_chunks, is_png
from ai_gallery.extraction.parsers import detect_source_tool, extract_ai_metadata
from ai_gallery.extraction.workflow import extract_model_from_workflow, extract_prompt_from_workflow
from ai_gallery.models.batch import BatchResult
from ai_gallery.models.enums import FileFormat, MediaType, SourceTool
from ai_gallery.models.metadata import NormalizedMetadata
from ai_gallery.thumbnails import generate_thumbnail_from_config
from ai_gallery.utils import sanitize_filename, title_from_filename

logger = logging.getLogger(__name__)

# Prompt text that counts as "not set by the user"
PROMPT_PLACEHOLDERS = ("aidma-niji, niji, anime style",)


def is_placeholder_prompt(prompt: Optional[str]) -> bool:
    """True when a prompt is empty or still holds a known default."""
    if not prompt or not prompt.strip():
        return True
    return any(placeholder in prompt for placeholder in PROMPT_PLACEHOLDERS)


def apply_workflow_mining(
    metadata: NormalizedMetadata,
    workflow: Union[str, Dict[str, Any], None],
) -> NormalizedMetadata:
    """
    Fill prompt and model from a workflow graph without overwriting edits.

    The prompt is replaced only when empty or a placeholder; the model
    only when empty.
    """
    if not workflow:
        return metadata

    if is_placeholder_prompt(metadata.prompt):
        prompt = extract_prompt_from_workflow(workflow)
        if prompt:
            metadata.prompt = prompt

    if not metadata.model.strip():
        model = extract_model_from_workflow(workflow)
        if model:
            metadata.model = model

    return metadata


def resolve_media_type(
    filename: str,
    media_type: Union[MediaType, str, None] = None,
    mime_type: Optional[str] = None,
) -> MediaType:
    """
    Decide whether an upload is an image or a video.

    Order: explicit media_type, file extension, declared MIME type.

    Raises:
        UnsupportedMediaError: If none of them identifies an image or video
    """
    if media_type:
        return media_type if isinstance(media_type, MediaType) else MediaType(media_type)

    resolved = FileFormat.from_filename(filename).media_type or MediaType.from_mime_type(mime_type or "")
    if resolved is None:
        raise UnsupportedMediaError(f"Not an image or video: {filename}")
    return resolved


def scan_import_directory(directory: Path, recursive: bool = False) -> pd.DataFrame:
    """
    List the files of a folder as import candidates.

    Args:
        directory: Folder to scan
        recursive: If True, include subfolders

    Returns:
        DataFrame with one row per file: filename, path, media_type
        (None for unsupported files), file_size and source_tool

    Raises:
        FileNotFoundError: If the directory does not exist
        NotADirectoryError: If the path is not a directory
    """
    if not directory.exists():
        raise FileNotFoundError(f"Directory not found: {directory}")

    if not directory.is_dir():
        raise NotADirectoryError(f"Not a directory: {directory}")

    iterator = directory.rglob("*") if recursive else directory.iterdir()

    rows = []
    for path in sorted(iterator):
        if not path.is_file() or path.name.startswith("."):
            continue

        file_format = FileFormat.from_filename(path.name)
        media_type = file_format.media_type

        source_tool = SourceTool.UNKNOWN
        if file_format == FileFormat.PNG:
            try:
                data = path.read_bytes()
            except OSError as e:
                logger.warning("Cannot read %s: %s", path, e)
            else:
                if is_png(data):
                    source_tool = detect_source_tool(extract_png_text_chunks(data), path.name)

        rows.append({
            "filename": path.name,
            "path": str(path),
            "media_type": media_type.value if media_type else None,
            "file_size": path.stat().st_size,
            "source_tool": source_tool.value,
        })

    if not rows:
        return pd.DataFrame(columns=["filename", "path", "media_type", "file_size", "source_tool"])
    return pd.DataFrame(rows)


class MediaIngestor:
    """
    Saves uploads into the library and records them in the store.

    Example:
        >>> ingestor = MediaIngestor(MediaStore.from_config())
        >>> item = ingestor.ingest_file(Path("ComfyUI_00042_.png"))
        >>> item.tags
        'ComfyUI,AI-Generated'
    """

    def __init__(self, store: MediaStore, config: Optional[Config] = None):
        self.store = store
        self.config = config or get_config()

    def _destination(self, media_type: MediaType, filename: str, now: datetime) -> Path:
        library = self.config.library
        subdir = library.videos_dir if media_type == MediaType.VIDEO else library.images_dir
        folder = library.root_path / subdir / now.strftime("%Y-%m-%d")
        folder.mkdir(parents=True, exist_ok=True)

        stamp = int(now.timestamp() * 1000)
        safe_name = sanitize_filename(Path(filename).name)
        candidate = folder / f"{stamp}_{safe_name}"
        counter = 1
        while candidate.exists():
            candidate = folder / f"{stamp}_{counter}_{safe_name}"
            counter += 1
        return candidate

    def ingest_bytes(
        self,
        data: bytes,
        filename: str,
        media_type: Union[MediaType, str, None] = None,
        mime_type: Optional[str] = None,
        title: Optional[str] = None,
        gallery_id: int = 0,
    ) -> MediaModel:
        """
        Store an uploaded file and create its gallery row.

        Args:
            data: File contents
            filename: Original filename
            media_type: Declared media kind (inferred when None)
            mime_type: Declared MIME type, used when the extension is unknown
            title: Title override (defaults to the filename stem)
            gallery_id: Group to put the item in (0 = none)

        Returns:
            The new MediaModel row

        Raises:
            UnsupportedMediaError: If the file is neither an image nor a video
        """
        kind = resolve_media_type(filename, media_type, mime_type)
        now = datetime.now()
        destination = self._destination(kind, filename, now)
        destination.write_bytes(data)
        logger.info("Saved upload %s to %s", filename, destination)

        fields: Dict[str, Any] = {
            "media_type": kind,
            "server_path": str(destination),
            "file_size": len(data),
            "gallery_id": gallery_id,
            "date_added": now,
        }

        if kind == MediaType.IMAGE:
            metadata, chunks, thumbnail_data = self._process_image(data, filename)
            fields.update(metadata.to_dict())
            fields["metadata"] = chunks
            fields["thumbnail_data"] = thumbnail_data
            fields["thumbnail_position"] = self.config.thumbnails.default_position
        else:
            fields["metadata"] = {
                "file_name": filename,
                "file_type": mime_type or Path(filename).suffix.lower().lstrip("."),
                "file_size": len(data),
            }

        fields["title"] = title or fields.get("title") or title_from_filename(filename)

        try:
            return self.store.add_media(**fields)
        except (IntegrityError, ValueError):
            destination.unlink(missing_ok=True)
            raise

    def _process_image(self, data: bytes, filename: str):
        chunks = extract_png_text_chunks(data)
        metadata = extract_ai_metadata(chunks, filename)
        if "workflow" in chunks:
            apply_workflow_mining(metadata, chunks["workflow"])

        thumbnail_data = None
        try:
            thumbnail = generate_thumbnail_from_config(
                data, self.config.thumbnails.default_position, self.config.thumbnails
            )
            thumbnail_data = thumbnail.data
        except ThumbnailDecodeError as e:
            logger.warning("No thumbnail for %s: %s", filename, e)

        return metadata, chunks, thumbnail_data

    def ingest_file(self, path: Path, **kwargs: Any) -> MediaModel:
        """ingest_bytes() for a file on disk; the file itself is copied, not moved."""
        return self.ingest_bytes(path.read_bytes(), path.name, **kwargs)

    def import_directory(self, directory: Path, recursive: bool = False) -> BatchResult:
        """
        Import every image and video in a folder.

        Unsupported files are skipped; a file that fails to import is
        logged and counted, and the import continues.
        """
        candidates = scan_import_directory(directory, recursive=recursive)
        result = BatchResult(total=len(candidates))

        for row in candidates.itertuples(index=False):
            if not row.media_type:
                result.skipped += 1
                continue
            try:
                self.ingest_file(Path(row.path), media_type=row.media_type)
            except (OSError, IntegrityError, UnsupportedMediaError) as e:
                logger.error("Failed to import %s: %s", row.path, e)
                result.errors += 1
                continue
            result.processed += 1

        logger.info("Directory import of %s complete: %s", directory, result)
        return result

    def import_backup(self, data: Dict[str, Any]) -> int:
        """
        Restore a backup document, writing embedded media into the library.

        Records from a browser backup carry the media itself as an
        ``imageData`` data URL. That file is decoded and saved like an
        upload, and an image without a stored thumbnail gets one at its
        saved focal position. Records without embedded media are
        imported as database rows only. A record that fails is logged
        and skipped.

        Returns:
            Number of rows imported

        Raises:
            ValueError: If the document holds no media list
        """
        records = backup_records(data)
        imported = 0
        for fields in records:
            image_data = fields.pop("image_data", None)
            destination = None
            if image_data:
                destination = self._restore_backup_file(fields, image_data)
            try:
                self.store.add_media(**fields)
            except (IntegrityError, ValueError) as e:
                logger.warning("Skipping backup record %r: %s", fields.get("title"), e)
                if destination is not None:
                    destination.unlink(missing_ok=True)
                continue
            imported += 1

        logger.info("Restored %d of %d backup records", imported, len(records))
        return imported

    def _restore_backup_file(self, fields: Dict[str, Any], image_data: Any) -> Optional[Path]:
        content = decode_base64_data(image_data)
        if not content:
            logger.warning("Backup record %r has unreadable media data", fields.get("title"))
            return None

        mime_type = data_url_mime_type(image_data)
        title = str(fields.get("title") or "backup")
        filename = title
        if FileFormat.from_filename(filename).media_type is None:
            filename += mimetypes.guess_extension(mime_type or "") or ".png"
        try:
            kind = resolve_media_type(filename, fields.get("media_type"), mime_type)
        except (UnsupportedMediaError, ValueError) as e:
            logger.warning("Backup record %r: %s", title, e)
            return None

        destination = self._destination(kind, filename, datetime.now())
        destination.write_bytes(content)
        fields["media_type"] = kind
        fields["server_path"] = str(destination)
        fields["file_size"] = len(content)

        if kind == MediaType.IMAGE and not fields.get("thumbnail_data"):
            try:
                thumbnail = generate_thumbnail_from_config(
                    content, fields.get("thumbnail_position"), self.config.thumbnails
                )
                fields["thumbnail_data"] = thumbnail.data
            except (ThumbnailDecodeError, ValueError) as e:
                logger.warning("No thumbnail for backup record %r: %s", title, e)
        return destination
