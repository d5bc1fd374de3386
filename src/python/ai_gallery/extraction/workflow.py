"""
Prompt and model mining over ComfyUI workflow graphs.

A saved ComfyUI workflow often holds its prompt text on several nodes:
custom prompt nodes, ShowText nodes that display processed prompts,
find/replace nodes and plain CLIPTextEncode nodes. The functions here
collect every candidate as a scored entry, deduplicate, and rank them.

These are pure functions: they return candidate values and never decide
whether a stored field may be overwritten. Callers apply that guard
(see ai_gallery.ingest.apply_workflow_mining).
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Union

from ai_gallery.utils import clean_prompt_text, clean_model_name

logger = logging.getLogger(__name__)

# Candidate priorities, lower wins
PRIORITY_CUSTOM_PROMPT = 1
PRIORITY_PROCESSED_TEXT = 2
PRIORITY_REPLACE_TEXT = 3
PRIORITY_TEXT_ENCODE = 4
PRIORITY_TEXT_NODE = 5

PRIORITY_CHECKPOINT = 1
PRIORITY_LORA = 2
PRIORITY_OTHER_MODEL = 3

SHOW_TEXT_NODE = "ShowText|pysssss"
FIND_REPLACE_NODE = "Text Find and Replace"
TEXT_ENCODE_NODE = "CLIPTextEncode"
CHECKPOINT_LOADER_NODE = "CheckpointLoaderSimple"
LORA_LOADER_NODE = "LoraLoader"
EXCLUDED_LOADER_NODES = {"ControlNetLoader", "VAELoader"}

MODEL_FILE_EXTENSIONS = (".safetensors", ".ckpt", ".pt")

MULTIPLE_PROMPTS_HEADER = "=== MULTIPLE PROMPTS FOUND ==="
MULTIPLE_PROMPTS_FOOTER = "=== END OF PROMPTS ==="


@dataclass
class PromptCandidate:
    """A piece of text found on a workflow node."""
    text: str
    priority: int
    source: str
    label: str


@dataclass
class ModelCandidate:
    """A model file referenced by a loader node."""
    name: str
    kind: str
    priority: int


def load_workflow(workflow: Union[str, Dict[str, Any], None]) -> Dict[str, Any]:
    """Accept a workflow as JSON text or an already-parsed object."""
    if isinstance(workflow, dict):
        return workflow
    if isinstance(workflow, str):
        try:
            data = json.loads(workflow)
        except ValueError:
            logger.debug("Workflow text is not valid JSON")
            return {}
        return data if isinstance(data, dict) else {}
    return {}


def _graph_nodes(workflow: Dict[str, Any]) -> Iterable[Dict[str, Any]]:
    nodes = workflow.get("nodes")
    if not isinstance(nodes, list):
        return []
    return [node for node in nodes if isinstance(node, dict)]


def _widget_values(node: Dict[str, Any]) -> List[Any]:
    values = node.get("widgets_values")
    return values if isinstance(values, list) else []


def _long_strings(values: Iterable[Any], min_length: int) -> List[str]:
    return [v for v in values if isinstance(v, str) and len(v) > min_length]


def collect_prompt_candidates(workflow: Union[str, Dict[str, Any], None]) -> List[PromptCandidate]:
    """
    Collect every prompt-like string in a workflow, unranked.

    A node can contribute to several tiers (a CLIPTextEncode node is also
    a "Text" node); duplicates are removed by rank_prompt_candidates().
    """
    candidates: List[PromptCandidate] = []

    for node in _graph_nodes(load_workflow(workflow)):
        kind = node.get("type")
        if not isinstance(kind, str):
            continue
        values = _widget_values(node)

        if "prompt" in kind:
            for text in _long_strings(values, 20):
                candidates.append(PromptCandidate(text, PRIORITY_CUSTOM_PROMPT, kind, "Custom Prompt"))

        if kind == SHOW_TEXT_NODE:
            for value in values:
                # ShowText keeps its text in nested lists
                items = value if isinstance(value, list) else [value]
                for text in _long_strings(items, 20):
                    candidates.append(PromptCandidate(text, PRIORITY_PROCESSED_TEXT, kind, "Processed Text"))

        if kind == FIND_REPLACE_NODE and len(values) > 1:
            for text in _long_strings(values[1:2], 20):
                candidates.append(PromptCandidate(text, PRIORITY_REPLACE_TEXT, kind, "Replace Text"))

        if kind == TEXT_ENCODE_NODE:
            for text in _long_strings(values, 10):
                is_embedding = "embedding:" in text
                if is_embedding and len(text) <= 30:
                    continue
                label = "Negative Prompt" if is_embedding else "Positive Prompt"
                candidates.append(PromptCandidate(text, PRIORITY_TEXT_ENCODE, kind, label))

        if "Text" in kind:
            for text in _long_strings(values, 20):
                candidates.append(PromptCandidate(text, PRIORITY_TEXT_NODE, kind, "Text Node"))

    return candidates


def rank_prompt_candidates(candidates: Iterable[PromptCandidate]) -> List[PromptCandidate]:
    """
    Drop candidates contained in an earlier one (or containing it), then
    sort by priority and, within a priority, longest text first.
    """
    unique: List[PromptCandidate] = []
    for candidate in candidates:
        if any(c.text in candidate.text or candidate.text in c.text for c in unique):
            continue
        unique.append(candidate)

    return sorted(unique, key=lambda c: (c.priority, -len(c.text)))


def extract_prompt_from_workflow(workflow: Union[str, Dict[str, Any], None]) -> str:
    """
    Best prompt text for a workflow.

    Returns:
        "" when nothing was found, the cleaned text when exactly one
        candidate remains, otherwise a document listing every candidate
        followed by the top-ranked one as PRIMARY PROMPT.
    """
    ranked = rank_prompt_candidates(collect_prompt_candidates(workflow))

    if not ranked:
        return ""
    if len(ranked) == 1:
        return clean_prompt_text(ranked[0].text)

    lines = [MULTIPLE_PROMPTS_HEADER, ""]
    for index, candidate in enumerate(ranked, start=1):
        lines.append(f"{index}. {candidate.label} ({candidate.source}):")
        lines.append(clean_prompt_text(candidate.text))
        lines.append("")
    lines.append(MULTIPLE_PROMPTS_FOOTER)
    lines.append("")
    lines.append("PRIMARY PROMPT:")
    lines.append(clean_prompt_text(ranked[0].text))

    logger.debug("Found %d unique prompts in workflow", len(ranked))
    return "\n".join(lines)


def _is_model_file(value: Any) -> bool:
    return isinstance(value, str) and value.lower().endswith(MODEL_FILE_EXTENSIONS)


def collect_model_candidates(workflow: Union[str, Dict[str, Any], None]) -> List[ModelCandidate]:
    """Collect model references from loader nodes, sorted by priority."""
    candidates: List[ModelCandidate] = []

    for node in _graph_nodes(load_workflow(workflow)):
        kind = node.get("type")
        if not isinstance(kind, str):
            continue
        values = _widget_values(node)

        if kind == CHECKPOINT_LOADER_NODE:
            if values and isinstance(values[0], str) and values[0]:
                candidates.append(ModelCandidate(values[0], "Checkpoint", PRIORITY_CHECKPOINT))
        elif kind == LORA_LOADER_NODE:
            if values and isinstance(values[0], str) and values[0]:
                candidates.append(ModelCandidate(values[0], "LoRA", PRIORITY_LORA))
        elif ("Loader" in kind or "Model" in kind) and kind not in EXCLUDED_LOADER_NODES:
            for value in values:
                if _is_model_file(value):
                    candidates.append(ModelCandidate(value, "Model", PRIORITY_OTHER_MODEL))

    return sorted(candidates, key=lambda c: c.priority)


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count > 1 else ''}"


def extract_model_from_workflow(workflow: Union[str, Dict[str, Any], None]) -> str:
    """
    Summarize the models a workflow loads.

    Example results:
        "juggernautXL v9"
        "juggernautXL v9 + 2 LoRAs + 1 additional model"
    """
    candidates = collect_model_candidates(workflow)
    if not candidates:
        return ""

    summary = clean_model_name(candidates[0].name)
    rest = candidates[1:]

    loras = [c for c in rest if c.kind == "LoRA"]
    if loras:
        summary += f" + {_plural(len(loras), 'LoRA')}"

    others = [c for c in rest if c.kind != "LoRA"]
    if others:
        summary += f" + {_plural(len(others), 'additional model')}"

    return summary
