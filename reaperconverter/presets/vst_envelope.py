"""The binary envelope REAPER wraps around VST plugin states.

Layout of the Base64 data of a ``<VST`` chunk, all values little-endian::

    vendor ID, magic (opaque or regular)
    number of inputs,  8 bytes per input
    number of outputs, 8 bytes per output
    payload size (including the sentinel pair), two marker ints
    [0xDEADBEEF 0xDEADF00D]   regular payloads only
    payload

The last line of the chunk holds ``program name\\0preset name\\0`` and a
4-byte tail.
"""

from __future__ import annotations

from dataclasses import dataclass

from reaperconverter.core.chunk import Node
from reaperconverter.core.constants import (
    VST_MAGIC_OPAQUE,
    VST_MAGIC_REGULAR,
    VST_NAME_TAIL,
    VST_SENTINEL,
    VST_STATE_MARKER,
    VST_STEREO_CONNECTIONS,
)
from reaperconverter.core.errors import UnsupportedFormat
from reaperconverter.presets.base64_lines import add_lines, decode_lines, node_lines
from reaperconverter.presets.stream import ByteReader, int_le


@dataclass
class PresetBlob:
    vendor_id: int = 0
    is_opaque: bool = True
    data: bytes = b""
    preset_name: str = ""
    program_name: str = ""


def decode_envelope(chunk: Node) -> PresetBlob:
    """Decode the Base64 lines of a ``<VST`` chunk."""
    lines = node_lines(chunk.children or [])
    if not lines:
        raise UnsupportedFormat("VST chunk has no state", chunk.param(0))

    blob = _decode_header(decode_lines(lines[:-1]))
    blob.program_name, blob.preset_name = _decode_names(decode_lines(lines[-1:]))
    return blob


def _decode_header(data: bytes) -> PresetBlob:
    reader = ByteReader(data)
    vendor_id = reader.int_le()
    magic = reader.int_le()
    if magic == VST_MAGIC_OPAQUE:
        is_opaque = True
    elif magic == VST_MAGIC_REGULAR:
        is_opaque = False
    else:
        raise UnsupportedFormat("Unsupported data format: %X" % magic)

    reader.skip(8 * reader.int_le())
    reader.skip(8 * reader.int_le())
    size = reader.int_le()
    reader.int_le()
    reader.int_le()

    if reader.remaining >= 8:
        mark = reader.position
        if (reader.int_le(), reader.int_le()) == VST_SENTINEL:
            size -= 8
        else:
            reader.position = mark

    return PresetBlob(vendor_id, is_opaque, reader.read(size))


def _decode_names(data: bytes) -> tuple[str, str]:
    if len(data) <= 1:
        return "", ""
    parts = data.split(b"\x00")
    program = parts[0].decode("utf-8", errors="replace")
    preset = parts[1].decode("utf-8", errors="replace") if len(parts) > 1 else ""
    return program, preset


def encode_envelope(chunk: Node, blob: PresetBlob):
    """Append the Base64 lines of a preset to a ``<VST`` chunk."""
    header = b"".join([
        int_le(blob.vendor_id),
        int_le(VST_MAGIC_OPAQUE if blob.is_opaque else VST_MAGIC_REGULAR),
        int_le(2),
        VST_STEREO_CONNECTIONS,
        int_le(2),
        VST_STEREO_CONNECTIONS,
        int_le(len(blob.data) if blob.is_opaque else len(blob.data) + 8),
        int_le(1 if blob.is_opaque else 0),
        int_le(VST_STATE_MARKER),
    ])
    add_lines(chunk, header)

    payload = blob.data
    if not blob.is_opaque:
        payload = int_le(VST_SENTINEL[0]) + int_le(VST_SENTINEL[1]) + payload
    add_lines(chunk, payload)

    names = (
        blob.program_name.encode("utf-8") + b"\x00"
        + blob.preset_name.encode("utf-8") + b"\x00"
        + VST_NAME_TAIL
    )
    add_lines(chunk, names)
