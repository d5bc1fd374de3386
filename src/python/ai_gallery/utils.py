"""
Utility functions for ai_gallery.
"""

import logging
import re
from datetime import date
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

# Default style tags some workflows prepend to every prompt
BOILERPLATE_PREFIX = "aidma-niji, niji, anime style, sharp image"

_BOILERPLATE_RE = re.compile(r"^" + re.escape(BOILERPLATE_PREFIX) + r"\s*", re.IGNORECASE)

# Inline generation settings like "cfg: 7", "weight:0.8," or "seed: 1234"
_NOISE_TOKEN_RE = re.compile(
    r"\b(?:weight|strength|scale|ratio|steps|cfg|seed)\s*:\s*-?\d+(?:\.\d+)?\s*,?",
    re.IGNORECASE,
)

_WHITESPACE_RE = re.compile(r"\s+")

_MODEL_EXTENSION_RE = re.compile(r"\.(?:safetensors|ckpt|pt)$", re.IGNORECASE)
_SDXL_PREFIX_RE = re.compile(r"^SDXL[/\\]", re.IGNORECASE)
_PATH_RE = re.compile(r"^.*[/\\]")

_UNSAFE_FILENAME_RE = re.compile(r"[^a-zA-Z0-9_.-]")
_UNSAFE_TITLE_RE = re.compile(r"[^a-zA-Z0-9]")


def _clean_prompt_once(text: str) -> str:
    cleaned = _WHITESPACE_RE.sub(" ", text).strip()
    cleaned = _BOILERPLATE_RE.sub("", cleaned)
    cleaned = _NOISE_TOKEN_RE.sub("", cleaned)
    return _WHITESPACE_RE.sub(" ", cleaned).strip()


def clean_prompt_text(text: Optional[str]) -> str:
    """
    Strip generation boilerplate and formatting noise from a prompt.

    Removes the default style-tag prefix, inline weight/steps/cfg/seed
    tokens and collapses whitespace. Runs to a fixed point, so
    ``clean_prompt_text(clean_prompt_text(x)) == clean_prompt_text(x)``.

    Args:
        text: Raw prompt text (None is treated as empty)

    Returns:
        Cleaned single-line text

    Example:
        >>> clean_prompt_text("aidma-niji, niji, anime style, sharp image a cat,\\n steps: 20, on a mat")
        'a cat, on a mat'
    """
    if not text:
        return ""

    cleaned = text
    previous = None
    while cleaned != previous:
        previous = cleaned
        cleaned = _clean_prompt_once(cleaned)
    return cleaned


def clean_model_name(model_name: Optional[str]) -> str:
    """
    Turn a model file reference into a readable name.

    Example:
        >>> clean_model_name("loras/SDXL/my_lora_v2.safetensors")
        'my lora v2'
    """
    if not model_name:
        return ""

    cleaned = _MODEL_EXTENSION_RE.sub("", model_name.strip())
    cleaned = _SDXL_PREFIX_RE.sub("", cleaned)
    cleaned = _PATH_RE.sub("", cleaned)
    cleaned = cleaned.replace("_", " ")
    return cleaned.strip()


def sanitize_filename(filename: str) -> str:
    """Replace characters outside [A-Za-z0-9_.-] with underscores."""
    return _UNSAFE_FILENAME_RE.sub("_", filename)


def generate_safe_filename(title: Optional[str], suffix: str = "", today: Optional[date] = None) -> str:
    """
    Build a download filename from a title.

    Args:
        title: Item title ("Untitled" when empty)
        suffix: Optional extra part, e.g. "workflow"
        today: Date stamp to append (defaults to today)

    Returns:
        Filename without extension, e.g. "My_Cat_workflow_2025-01-31"
    """
    safe_title = _UNSAFE_TITLE_RE.sub("_", title or "Untitled")
    stamp = (today or date.today()).isoformat()
    if suffix:
        return f"{safe_title}_{suffix}_{stamp}"
    return f"{safe_title}_{stamp}"


def format_file_size(num_bytes: int) -> str:
    """Format a byte count as KB below one megabyte, MB above."""
    if num_bytes > 1024 * 1024:
        return f"{num_bytes / (1024 * 1024):.1f} MB"
    return f"{num_bytes / 1024:.1f} KB"


def title_from_filename(filename: str) -> str:
    """Default display title for an upload: the filename without extension."""
    return Path(filename).stem or "Untitled"
