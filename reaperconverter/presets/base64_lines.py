"""Base64 payloads stored as wrapped lines inside REAPER chunks."""

from __future__ import annotations

import base64
import binascii

from reaperconverter.core.chunk import Node
from reaperconverter.core.errors import FormatError
from reaperconverter.utils.config import BASE64_LINE_LENGTH as LINE_LENGTH


def encode_lines(data: bytes, line_length: int = LINE_LENGTH) -> list[str]:
    """Base64 encode data and wrap it into lines of at most ``line_length`` chars."""
    text = base64.b64encode(data).decode("ascii")
    return [text[i : i + line_length] for i in range(0, len(text), line_length)]


def decode_lines(lines: list[str]) -> bytes:
    """Decode each line separately and concatenate the results."""
    try:
        return b"".join(base64.b64decode(line) for line in lines)
    except (binascii.Error, ValueError) as e:
        raise FormatError(f"Invalid Base64 data: {e}") from e


def add_lines(chunk: Node, data: bytes):
    for line in encode_lines(data):
        chunk.add_leaf(line)


def node_lines(nodes: list[Node]) -> list[str]:
    """The Base64 text of leaf nodes, whose name holds the whole line."""
    return [node.name for node in nodes if not node.is_chunk and node.name]
