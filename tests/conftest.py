"""Pytest configuration and shared fixtures."""

import json
import struct
import zlib
from io import BytesIO
from pathlib import Path
from typing import Callable, Dict

import pytest
from PIL import Image as PILImage
from PIL.PngImagePlugin import PngInfo

from ai_gallery.config import Config, LibraryConfig
from ai_gallery.db import MediaStore, create_engine_for_uri

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def png_chunk(chunk_type: bytes, payload: bytes) -> bytes:
    """Encode one PNG chunk: length, type, payload, CRC."""
    crc = zlib.crc32(chunk_type + payload) & 0xFFFFFFFF
    return struct.pack(">I", len(payload)) + chunk_type + payload + struct.pack(">I", crc)


def text_chunk(keyword: str, text: str) -> bytes:
    return png_chunk(b"tEXt", keyword.encode("utf-8") + b"\x00" + text.encode("utf-8"))


@pytest.fixture
def raw_png() -> Callable[..., bytes]:
    """Build a minimal chunk stream (not decodable pixels) from tEXt chunks."""
    def _build(*chunks: bytes) -> bytes:
        ihdr = png_chunk(b"IHDR", struct.pack(">IIBBBBB", 1, 1, 8, 2, 0, 0, 0))
        return PNG_SIGNATURE + ihdr + b"".join(chunks) + png_chunk(b"IEND", b"")
    return _build


@pytest.fixture
def make_png() -> Callable[..., bytes]:
    """Build a real, decodable PNG carrying the given text chunks."""
    def _build(
        size=(64, 64),
        color=(200, 40, 40),
        mode: str = "RGB",
        text: Dict[str, str] = None,
    ) -> bytes:
        img = PILImage.new(mode, size, color)
        info = PngInfo()
        for key, value in (text or {}).items():
            info.add_text(key, value)
        buffer = BytesIO()
        img.save(buffer, "PNG", pnginfo=info)
        return buffer.getvalue()
    return _build


@pytest.fixture
def comfy_workflow() -> Dict:
    """A small ComfyUI UI-format workflow."""
    return {
        "last_node_id": 4,
        "nodes": [
            {"id": 1, "type": "CheckpointLoaderSimple", "widgets_values": ["SDXL/juggernautXL_v9.safetensors"]},
            {"id": 2, "type": "LoraLoader", "widgets_values": ["loras/detail_tweaker.safetensors", 0.8, 0.8]},
            {"id": 3, "type": "CLIPTextEncode", "widgets_values": ["a lighthouse on a cliff at dusk, dramatic sky"]},
            {"id": 4, "type": "KSampler", "widgets_values": [42, "fixed", 20, 7.0, "euler", "normal", 1.0]},
        ],
    }


@pytest.fixture
def comfy_workflow_json(comfy_workflow) -> str:
    return json.dumps(comfy_workflow)


@pytest.fixture
def store(tmp_path: Path) -> MediaStore:
    """An empty store backed by a SQLite file."""
    media_store = MediaStore(create_engine_for_uri(f"sqlite:///{tmp_path / 'gallery.db'}"))
    media_store.create_all()
    return media_store


@pytest.fixture
def config(tmp_path: Path) -> Config:
    """Default config with the library inside the test's temp directory."""
    return Config(library=LibraryConfig(root=str(tmp_path / "library")))
