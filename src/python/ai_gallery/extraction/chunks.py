"""
PNG text chunk extraction.

AI generation tools (ComfyUI, AUTOMATIC1111, ChatGPT exports) store their
metadata in PNG text chunks. This module walks the chunk stream of a raw
byte buffer and collects the uncompressed ``tEXt`` chunks into a mapping.

The scan is best effort: a truncated or corrupt buffer stops the walk and
returns whatever was collected, it never raises.

``zTXt`` (compressed) and ``iTXt`` (international) chunks are recognized
but not decoded.
"""

import logging
import struct
from typing import Dict

logger = logging.getLogger(__name__)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

TEXT_CHUNK_TYPES = (b"tEXt", b"zTXt", b"iTXt")

# length (4) + type (4)
_CHUNK_HEADER_SIZE = 8
_CHUNK_CRC_SIZE = 4


def is_png(data: bytes) -> bool:
    """Check whether a buffer starts with the 8-byte PNG signature."""
    return len(data) >= len(PNG_SIGNATURE) and data[:len(PNG_SIGNATURE)] == PNG_SIGNATURE


def extract_png_text_chunks(data: bytes) -> Dict[str, str]:
    """
    Extract text chunks from a PNG byte buffer.

    Args:
        data: Raw file contents

    Returns:
        Mapping of chunk keyword to UTF-8 decoded text. Empty if the buffer
        is not a PNG or holds no text chunks. A keyword repeated in several
        chunks keeps the last value.

    Example:
        >>> chunks = extract_png_text_chunks(Path("ComfyUI_00001_.png").read_bytes())
        >>> sorted(chunks)
        ['prompt', 'workflow']
    """
    chunks: Dict[str, str] = {}

    if not is_png(data):
        return chunks

    offset = len(PNG_SIGNATURE)
    end = len(data)

    while offset + _CHUNK_HEADER_SIZE <= end:
        length, chunk_type = struct.unpack(">I4s", data[offset:offset + _CHUNK_HEADER_SIZE])
        data_start = offset + _CHUNK_HEADER_SIZE
        data_end = data_start + length

        if data_end > end:
            logger.debug("Truncated %r chunk at offset %d, stopping scan", chunk_type, offset)
            break

        if chunk_type == b"tEXt":
            keyword, sep, text = data[data_start:data_end].partition(b"\x00")
            if sep:
                chunks[keyword.decode("utf-8", errors="replace")] = text.decode("utf-8", errors="replace")
        elif chunk_type in TEXT_CHUNK_TYPES:
            logger.debug("Skipping unsupported %s chunk", chunk_type.decode("ascii"))

        offset = data_end + _CHUNK_CRC_SIZE

    return chunks
