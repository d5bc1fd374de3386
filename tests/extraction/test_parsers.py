"""Unit tests for extraction.parsers module."""

import json

import pytest

from ai_gallery.extraction.parsers import (
    A1111_TAGS,
    CHATGPT_FALLBACK_TAGS,
    CHATGPT_TAGS,
    COMFYUI_TAGS,
    ChatGPTParser,
    ComfyUIParser,
    collect_node_types,
    detect_source_tool,
    extract_ai_metadata,
    first_encoded_text,
    iter_workflow_nodes,
    select_parser,
    workflow_entries,
)
from ai_gallery.models.enums import SourceTool


@pytest.fixture
def chatgpt_chunks():
    payload = {
        "prompt": "a red fox sleeping in fresh snow",
        "internal_prompt": "A photorealistic red fox curled up asleep in powdery snow, soft morning light.",
        "tool": "ChatGPT-4",
        "date_generated": "2025-01-31",
        "style": "photo",
        "file_size_mb": 1.4,
    }
    return {"prompt": json.dumps(payload)}


class TestSelectParser:
    """Tests for parser ordering."""

    def test_chatgpt_json_wins_over_comfyui(self, chatgpt_chunks):
        # Both parsers match a "prompt" chunk; ChatGPT is checked first
        assert isinstance(select_parser(chatgpt_chunks), ChatGPTParser)

    def test_chatgpt_filename(self):
        assert isinstance(select_parser({}, "ChatGPT Image Jan 31, 2025.png"), ChatGPTParser)

    def test_comfyui_prompt_chunk(self):
        chunks = {"prompt": json.dumps({"3": {"class_type": "KSampler"}})}
        assert isinstance(select_parser(chunks), ComfyUIParser)

    def test_no_match(self):
        assert select_parser({"Author": "someone"}, "photo.png") is None


class TestDetectSourceTool:
    """Tests for detect_source_tool()."""

    def test_chatgpt(self, chatgpt_chunks):
        assert detect_source_tool(chatgpt_chunks) == SourceTool.CHATGPT

    def test_comfyui(self, comfy_workflow_json):
        assert detect_source_tool({"workflow": comfy_workflow_json}) == SourceTool.COMFYUI

    def test_a1111(self):
        assert detect_source_tool({"parameters": "a castle\nSteps: 20"}) == SourceTool.A1111

    def test_unknown(self):
        assert detect_source_tool({}) == SourceTool.UNKNOWN


class TestChatGPTParser:
    """Tests for ChatGPT metadata."""

    def test_full_payload(self, chatgpt_chunks):
        metadata = extract_ai_metadata(chatgpt_chunks, "image.png")

        assert metadata.prompt == (
            "USER PROMPT:\na red fox sleeping in fresh snow\n\n"
            "INTERNAL PROMPT:\nA photorealistic red fox curled up asleep in powdery snow, soft morning light."
        )
        assert metadata.model == "ChatGPT-4"
        assert metadata.tags == CHATGPT_TAGS
        assert metadata.notes == (
            "🤖 ChatGPT Image Generation\n"
            "📅 Generated: 2025-01-31\n"
            "🎨 Style: photo\n"
            "💾 File size: 1.4 MB\n"
        )

    def test_minimal_payload(self):
        chunks = {"prompt": '{"tool":"ChatGPT-4","prompt":"a red fox","date_generated":"2024-01-01"}'}
        metadata = extract_ai_metadata(chunks)

        assert metadata.model == "ChatGPT-4"
        assert "USER PROMPT:\na red fox" in metadata.prompt
        assert "2024-01-01" in metadata.notes

    def test_user_prompt_only(self):
        chunks = {"prompt": json.dumps({"prompt": "a lighthouse", "tool": "ChatGPT"})}
        metadata = extract_ai_metadata(chunks)

        assert metadata.prompt == "USER PROMPT:\na lighthouse"
        assert "INTERNAL PROMPT" not in metadata.prompt
        assert metadata.notes == "🤖 ChatGPT Image Generation\n"

    def test_bad_json_with_chatgpt_filename(self):
        metadata = extract_ai_metadata({"prompt": "{not json"}, "chatgpt_export.png")

        assert metadata.notes == "🤖 ChatGPT data found but could not parse JSON\n"
        assert metadata.tags == CHATGPT_FALLBACK_TAGS
        assert metadata.prompt == ""

    def test_filename_match_without_prompt_chunk(self):
        metadata = extract_ai_metadata({}, "ChatGPT Image.png")
        assert metadata.is_empty

    def test_tool_must_mention_chatgpt(self):
        chunks = {"prompt": json.dumps({"prompt": "a lighthouse", "tool": "DALL-E"})}
        assert not ChatGPTParser().matches(chunks)

    def test_falsy_note_values_are_omitted(self):
        payload = {"prompt": "a lighthouse", "tool": "ChatGPT", "file_size_mb": 0, "style": False, "resolution": []}
        metadata = extract_ai_metadata({"prompt": json.dumps(payload)})

        assert metadata.notes == "🤖 ChatGPT Image Generation\n"


class TestComfyUIParser:
    """Tests for ComfyUI and AUTOMATIC1111 metadata."""

    def test_workflow(self, comfy_workflow_json):
        metadata = extract_ai_metadata({"workflow": comfy_workflow_json}, "ComfyUI_00001_.png")

        assert metadata.prompt == "a lighthouse on a cliff at dusk, dramatic sky"
        assert metadata.tags == COMFYUI_TAGS
        assert metadata.notes == (
            "🔧 ComfyUI Workflow detected (4 nodes)\n"
            "🔗 Node Types: CLIPTextEncode, CheckpointLoaderSimple, KSampler, LoraLoader\n"
        )

    def test_single_node_workflow(self):
        chunks = {"workflow": '{"nodes":[{"type":"CLIPTextEncode","widgets_values":["a cat sitting on a mat, 4k"]}]}'}
        metadata = extract_ai_metadata(chunks)

        assert metadata.prompt == "a cat sitting on a mat, 4k"
        assert "ComfyUI" in metadata.tags.split(",")

    def test_api_shaped_workflow(self):
        workflow = {
            "6": {"class_type": "CLIPTextEncode", "inputs": {"text": "a misty harbor at dawn", "clip": ["4", 1]}},
            "4": {"class_type": "CheckpointLoaderSimple", "inputs": {"ckpt_name": "sd_xl_base_1.0.safetensors"}},
        }
        metadata = extract_ai_metadata({"workflow": json.dumps(workflow)})

        assert metadata.prompt == "a misty harbor at dawn"
        assert "(2 nodes)" in metadata.notes

    def test_invalid_workflow_json(self):
        metadata = extract_ai_metadata({"workflow": "{broken"})

        assert metadata.notes == "🔧 ComfyUI Workflow data found (raw)\n"
        assert metadata.prompt == ""
        assert metadata.tags == COMFYUI_TAGS

    def test_prompt_chunk_first_long_string(self):
        chunks = {"prompt": json.dumps({"seed": 42, "short": "tiny", "text": "a quiet forest path"})}
        assert extract_ai_metadata(chunks).prompt == "a quiet forest path"

    def test_prompt_chunk_api_graph_has_no_prompt(self):
        chunks = {"prompt": json.dumps({"3": {"class_type": "KSampler", "inputs": {}}})}
        assert extract_ai_metadata(chunks).prompt == ""

    def test_prompt_chunk_raw_text(self):
        assert extract_ai_metadata({"prompt": "sunset over sea"}).prompt == "sunset over sea"

    def test_prompt_chunk_raw_text_too_short(self):
        assert extract_ai_metadata({"prompt": "short"}).prompt == ""

    def test_prompt_chunk_json_array(self):
        chunks = {"prompt": json.dumps([42, "tiny", "a snowy mountain village"])}
        assert extract_ai_metadata(chunks).prompt == "a snowy mountain village"

    def test_node_count_includes_non_object_entries(self):
        workflow = {"nodes": [{"type": "KSampler"}, "junk", 3]}
        metadata = extract_ai_metadata({"workflow": json.dumps(workflow)})

        assert "(3 nodes)" in metadata.notes
        assert "🔗 Node Types: KSampler\n" in metadata.notes

    def test_workflow_prompt_takes_precedence(self, comfy_workflow_json):
        chunks = {
            "workflow": comfy_workflow_json,
            "prompt": json.dumps({"text": "another prompt entirely"}),
        }
        assert extract_ai_metadata(chunks).prompt == "a lighthouse on a cliff at dusk, dramatic sky"

    def test_a1111_parameters(self):
        parameters = "a castle on a hill\nNegative prompt: blurry\nSteps: 20, Sampler: Euler a"
        metadata = extract_ai_metadata({"parameters": parameters})

        assert metadata.prompt == parameters
        assert metadata.notes == "🤖 A1111 Parameters detected\n"
        assert metadata.tags == A1111_TAGS

    def test_a1111_tags_win_over_comfyui(self, comfy_workflow_json):
        metadata = extract_ai_metadata({"workflow": comfy_workflow_json, "parameters": "a castle"})

        assert metadata.tags == A1111_TAGS
        # Workflow prompt was found first and is kept
        assert metadata.prompt == "a lighthouse on a cliff at dusk, dramatic sky"
        assert metadata.notes.endswith("🤖 A1111 Parameters detected\n")

    def test_software_sets_model(self):
        metadata = extract_ai_metadata({"prompt": "sunset over sea", "Software": "ComfyUI"})
        assert metadata.model == "ComfyUI"

    def test_lowercase_software_wins(self):
        chunks = {"prompt": "sunset over sea", "Software": "ComfyUI", "software": "comfyui-portable"}
        assert extract_ai_metadata(chunks).model == "comfyui-portable"


class TestExtractAiMetadata:
    """Tests for the extract_ai_metadata() entry point."""

    def test_unrecognized_chunks_give_empty_record(self):
        metadata = extract_ai_metadata({"Author": "someone", "Title": "x"})
        assert metadata.is_empty

    def test_empty_chunks(self):
        assert extract_ai_metadata({}).is_empty


class TestWorkflowNodeHelpers:
    """Tests for workflow node helpers."""

    def test_iter_ui_shape(self, comfy_workflow):
        assert len(list(iter_workflow_nodes(comfy_workflow))) == 4

    def test_iter_skips_non_objects(self):
        assert list(iter_workflow_nodes({"nodes": [{"type": "A"}, "junk", 3]})) == [{"type": "A"}]

    def test_iter_bare_list(self):
        assert list(iter_workflow_nodes([{"type": "A"}])) == [{"type": "A"}]

    def test_iter_scalar(self):
        assert list(iter_workflow_nodes(42)) == []

    def test_workflow_entries_keep_non_objects(self):
        assert workflow_entries({"nodes": [{"type": "A"}, "junk", 3]}) == [{"type": "A"}, "junk", 3]

    def test_workflow_entries_api_shape(self):
        assert workflow_entries({"3": {"class_type": "KSampler"}, "4": 7}) == [{"class_type": "KSampler"}, 7]

    def test_collect_node_types_mixed_shapes(self):
        nodes = [{"type": "KSampler"}, {"class_type": "VAEDecode"}, {"type": None}, {}]
        assert collect_node_types(nodes) == {"KSampler", "VAEDecode"}

    def test_first_encoded_text_skips_short(self):
        nodes = [
            {"type": "CLIPTextEncode", "widgets_values": ["short"]},
            {"type": "CLIPTextEncode", "widgets_values": ["a long enough prompt"]},
        ]
        assert first_encoded_text(nodes) == "a long enough prompt"

    def test_first_encoded_text_none(self):
        assert first_encoded_text([{"type": "KSampler", "widgets_values": [1, 2]}]) == ""
