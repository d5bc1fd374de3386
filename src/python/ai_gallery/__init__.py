"""
AI Gallery - a personal gallery for AI-generated images and videos.

Stores media together with its generation metadata (prompts, models,
workflows). Metadata embedded by ComfyUI, AUTOMATIC1111 and ChatGPT is
extracted automatically on upload.

Core Concepts:
- NormalizedMetadata: the tool-agnostic {title, prompt, model, tags, notes} record
- ThumbnailPosition: focal point (x%, y%) of an item's thumbnail crop
- MediaStore: SQLite-backed storage of gallery rows

Usage:
    from pathlib import Path
    from ai_gallery import MediaIngestor, MediaStore

    store = MediaStore.from_config()
    item = MediaIngestor(store).ingest_file(Path("ComfyUI_00001_.png"))
    print(item.prompt)
"""

from ai_gallery.__version__ import __version__
from ai_gallery.db import MediaModel, MediaStore
from ai_gallery.extraction import (
    detect_source_tool,
    extract_ai_metadata,
    extract_model_from_workflow,
    extract_png_text_chunks,
    extract_prompt_from_workflow,
)
from ai_gallery.ingest import MediaIngestor
from ai_gallery.models import MediaType, NormalizedMetadata, SourceTool, ThumbnailPosition
from ai_gallery.thumbnails import generate_thumbnail
from ai_gallery.utils import clean_model_name, clean_prompt_text

__all__ = [
    "__version__",
    # Models
    "MediaType",
    "NormalizedMetadata",
    "SourceTool",
    "ThumbnailPosition",
    # Extraction
    "detect_source_tool",
    "extract_ai_metadata",
    "extract_model_from_workflow",
    "extract_png_text_chunks",
    "extract_prompt_from_workflow",
    # Storage and pipeline
    "MediaIngestor",
    "MediaModel",
    "MediaStore",
    "generate_thumbnail",
    # Text
    "clean_model_name",
    "clean_prompt_text",
]
