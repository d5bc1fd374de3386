"""Metadata extraction: PNG text chunks, tool parsers and workflow mining."""

from ai_gallery.extraction.chunks import extract_png_text_chunks, is_png
from ai_gallery.extraction.parsers import (
    ChatGPTParser,
    ComfyUIParser,
    detect_source_tool,
    extract_ai_metadata,
    select_parser,
)
from ai_gallery.extraction.workflow import (
    collect_model_candidates,
    collect_prompt_candidates,
    extract_model_from_workflow,
    extract_prompt_from_workflow,
)

__all__ = [
    "ChatGPTParser",
    "ComfyUIParser",
    "collect_model_candidates",
    "collect_prompt_candidates",
    "detect_source_tool",
    "extract_ai_metadata",
    "extract_model_from_workflow",
    "extract_png_text_chunks",
    "extract_prompt_from_workflow",
    "is_png",
    "select_parser",
]
