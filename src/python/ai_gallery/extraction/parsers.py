"""
Tool-specific metadata parsers.

Generation tools do not agree on a metadata schema, so the authoring tool
is inferred from which PNG text chunks are present and how they are
shaped. Each parser pairs a ``matches`` predicate with a ``parse`` step
that produces a NormalizedMetadata record.

Parsers are tried in a fixed order and the first match wins:

1. ChatGPT: ``prompt`` chunk is JSON with a ``tool`` naming ChatGPT,
   or the filename starts with "chatgpt". Checked first because ChatGPT
   payloads also carry a ``prompt`` key.
2. ComfyUI / AUTOMATIC1111: ``workflow``, ``prompt`` or ``parameters``
   chunk present.

Malformed JSON inside a chunk never aborts a parse; the parser falls back
to the raw text and notes what happened.
"""

import json
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from ai_gallery.models.enums import SourceTool
from ai_gallery.models.metadata import NormalizedMetadata

logger = logging.getLogger(__name__)

CHATGPT_TAGS = "ChatGPT,AI-Generated,Image-Gen"
CHATGPT_FALLBACK_TAGS = "ChatGPT,AI-Generated"
COMFYUI_TAGS = "ComfyUI,AI-Generated"
A1111_TAGS = "AUTOMATIC1111,AI-Generated"

# Minimum lengths for a string to count as a prompt
MIN_PROMPT_LENGTH = 10
MIN_RAW_PROMPT_LENGTH = 5

# (field, label) pairs for the ChatGPT notes digest, in output order
CHATGPT_NOTE_FIELDS: Sequence[Tuple[str, str]] = (
    ("date_generated", "📅 Generated: {}"),
    ("filename", "📄 Original filename: {}"),
    ("style", "🎨 Style: {}"),
    ("aspect_ratio", "📐 Aspect ratio: {}"),
    ("resolution", "🔍 Resolution: {}"),
    ("file_size_mb", "💾 File size: {} MB"),
    ("source_image", "🖼️ Source image: {}"),
)


def _load_json(text: Optional[str]) -> Tuple[Any, bool]:
    """Parse JSON, returning (value, ok) instead of raising."""
    if text is None:
        return None, False
    try:
        return json.loads(text), True
    except (TypeError, ValueError):
        return None, False


def _append_line(notes: str, line: str) -> str:
    return f"{notes}{line}\n"


class MetadataParser:
    """Base class for a predicate-guarded tool parser."""

    tool: SourceTool = SourceTool.UNKNOWN

    def matches(self, chunks: Mapping[str, str], filename: str = "") -> bool:
        raise NotImplementedError

    def parse(self, chunks: Mapping[str, str]) -> NormalizedMetadata:
        raise NotImplementedError


class ChatGPTParser(MetadataParser):
    """Parser for images exported from ChatGPT image generation."""

    tool = SourceTool.CHATGPT

    def matches(self, chunks: Mapping[str, str], filename: str = "") -> bool:
        if filename and filename.lower().startswith("chatgpt"):
            return True

        data, ok = _load_json(chunks.get("prompt"))
        if ok and isinstance(data, dict):
            tool = data.get("tool")
            return isinstance(tool, str) and "ChatGPT" in tool
        return False

    def parse(self, chunks: Mapping[str, str]) -> NormalizedMetadata:
        metadata = NormalizedMetadata()

        raw = chunks.get("prompt")
        if raw is None:
            return metadata

        data, ok = _load_json(raw)
        if not ok or not isinstance(data, dict):
            logger.debug("ChatGPT prompt chunk is not a JSON object")
            metadata.notes = "🤖 ChatGPT data found but could not parse JSON\n"
            metadata.tags = CHATGPT_FALLBACK_TAGS
            return metadata

        sections = []
        if data.get("prompt"):
            sections.append(f"USER PROMPT:\n{data['prompt']}")
        if data.get("internal_prompt"):
            sections.append(f"INTERNAL PROMPT:\n{data['internal_prompt']}")
        metadata.prompt = "\n\n".join(sections).strip()

        if data.get("tool"):
            metadata.model = str(data["tool"])

        notes = _append_line("", "🤖 ChatGPT Image Generation")
        for key, template in CHATGPT_NOTE_FIELDS:
            value = data.get(key)
            if value:
                notes = _append_line(notes, template.format(value))
        metadata.notes = notes
        metadata.tags = CHATGPT_TAGS
        return metadata


class ComfyUIParser(MetadataParser):
    """
    Parser for ComfyUI workflows and AUTOMATIC1111 ``parameters`` text.

    When both a ``parameters`` chunk and ComfyUI chunks are present the
    AUTOMATIC1111 tags win; tags are never merged.
    """

    tool = SourceTool.COMFYUI

    def matches(self, chunks: Mapping[str, str], filename: str = "") -> bool:
        return any(key in chunks for key in ("workflow", "prompt", "parameters"))

    def detect_tool(self, chunks: Mapping[str, str]) -> SourceTool:
        if "parameters" in chunks:
            return SourceTool.A1111
        return SourceTool.COMFYUI

    def parse(self, chunks: Mapping[str, str]) -> NormalizedMetadata:
        metadata = NormalizedMetadata()

        if "workflow" in chunks:
            self._parse_workflow(chunks["workflow"], metadata)

        if "prompt" in chunks and not metadata.prompt:
            metadata.prompt = self._prompt_from_prompt_chunk(chunks["prompt"])

        if "parameters" in chunks:
            metadata.prompt = metadata.prompt or chunks["parameters"]
            metadata.notes = _append_line(metadata.notes, "🤖 A1111 Parameters detected")

        for key in ("Software", "software"):
            if chunks.get(key):
                metadata.model = chunks[key]

        metadata.tags = A1111_TAGS if self.detect_tool(chunks) == SourceTool.A1111 else COMFYUI_TAGS
        return metadata

    def _parse_workflow(self, raw: str, metadata: NormalizedMetadata) -> None:
        workflow, ok = _load_json(raw)
        if not ok or not isinstance(workflow, (dict, list)):
            logger.debug("Workflow chunk is not valid JSON, keeping raw note")
            metadata.notes = _append_line(metadata.notes, "🔧 ComfyUI Workflow data found (raw)")
            return

        entries = workflow_entries(workflow)
        nodes = [node for node in entries if isinstance(node, dict)]
        node_types = collect_node_types(nodes)

        metadata.notes = _append_line(
            metadata.notes, f"🔧 ComfyUI Workflow detected ({len(entries)} nodes)"
        )
        if node_types:
            metadata.notes = _append_line(
                metadata.notes, f"🔗 Node Types: {', '.join(sorted(node_types))}"
            )

        metadata.prompt = first_encoded_text(nodes)

    @staticmethod
    def _prompt_from_prompt_chunk(raw: str) -> str:
        data, ok = _load_json(raw)
        if not ok:
            return raw if len(raw) > MIN_RAW_PROMPT_LENGTH else ""
        if isinstance(data, dict):
            values: Iterable[Any] = data.values()
        elif isinstance(data, list):
            values = data
        else:
            values = ()
        for value in values:
            if isinstance(value, str) and len(value) > MIN_PROMPT_LENGTH:
                return value
        return ""


def workflow_entries(workflow: Any) -> List[Any]:
    """
    All node entries of a ComfyUI workflow, objects or not.

    Supports the UI export shape (``{"nodes": [...]}``), the API shape
    (``{"<id>": {"class_type": ..., "inputs": {...}}}``) and a bare list
    of nodes.
    """
    if isinstance(workflow, dict) and isinstance(workflow.get("nodes"), list):
        return list(workflow["nodes"])
    if isinstance(workflow, dict):
        return list(workflow.values())
    if isinstance(workflow, list):
        return list(workflow)
    return []


def iter_workflow_nodes(workflow: Any) -> Iterable[Dict[str, Any]]:
    """Yield the node objects of a workflow; non-object entries are skipped."""
    for node in workflow_entries(workflow):
        if isinstance(node, dict):
            yield node


def node_type(node: Mapping[str, Any]) -> str:
    """Node type name from either workflow shape ("" when missing)."""
    value = node.get("type") or node.get("class_type") or ""
    return value if isinstance(value, str) else ""


def collect_node_types(nodes: Iterable[Mapping[str, Any]]) -> Set[str]:
    return {name for name in (node_type(node) for node in nodes) if name}


def first_encoded_text(nodes: List[Dict[str, Any]]) -> str:
    """
    First prompt text found on a text-encoding node.

    UI-shape nodes carry the text as the first widget value of a
    CLIPTextEncode node; API-shape nodes carry it in ``inputs.text``.
    """
    for node in nodes:
        if node.get("type") == "CLIPTextEncode":
            widgets = node.get("widgets_values")
            if isinstance(widgets, list) and widgets:
                text = widgets[0]
                if isinstance(text, str) and len(text) > MIN_PROMPT_LENGTH:
                    return text
        inputs = node.get("inputs")
        if isinstance(inputs, dict):
            text = inputs.get("text")
            if isinstance(text, str) and len(text) > MIN_PROMPT_LENGTH:
                return text
    return ""


PARSER_CHAIN: Tuple[MetadataParser, ...] = (ChatGPTParser(), ComfyUIParser())


def select_parser(chunks: Mapping[str, str], filename: str = "") -> Optional[MetadataParser]:
    """Return the first parser in priority order that matches, or None."""
    for parser in PARSER_CHAIN:
        if parser.matches(chunks, filename):
            return parser
    return None


def detect_source_tool(chunks: Mapping[str, str], filename: str = "") -> SourceTool:
    """Infer which generation tool authored an image."""
    parser = select_parser(chunks, filename)
    if parser is None:
        return SourceTool.UNKNOWN
    if isinstance(parser, ComfyUIParser):
        return parser.detect_tool(chunks)
    return parser.tool


def extract_ai_metadata(chunks: Mapping[str, str], filename: str = "") -> NormalizedMetadata:
    """
    Normalize the text chunks of one image.

    Args:
        chunks: Keyword to text mapping from extract_png_text_chunks()
        filename: Original upload filename, used as a secondary signal

    Returns:
        NormalizedMetadata from the first matching parser, or an empty
        record when no parser recognizes the chunks
    """
    parser = select_parser(chunks, filename)
    if parser is None:
        return NormalizedMetadata()

    metadata = parser.parse(chunks)
    logger.debug("Parsed %s metadata for %s", parser.tool.value, filename or "<bytes>")
    return metadata
