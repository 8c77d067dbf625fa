"""VST2 preset files (.fxp).

Big-endian header of 56 bytes (60 for opaque chunks) followed by the
plugin data.
"""

from __future__ import annotations

from reaperconverter.presets.stream import ByteReader, int_be
from reaperconverter.presets.vst_envelope import PresetBlob

CHUNK_MAGIC = b"CcnK"
OPAQUE_CHUNK = b"FPCh"
REGULAR_CHUNK = b"FxCk"
NAME_LENGTH = 28


def encode_fxp(blob: PresetBlob) -> bytes:
    name = blob.preset_name if blob.preset_name.strip() else blob.program_name
    if len(name) >= NAME_LENGTH:
        name = name[: NAME_LENGTH - 1]
    name_bytes = name.encode("ascii", errors="replace").ljust(NAME_LENGTH, b"\x00")

    parts = [
        CHUNK_MAGIC,
        int_be(48 + len(blob.data)),
        OPAQUE_CHUNK if blob.is_opaque else REGULAR_CHUNK,
        int_be(1),
        int_be(blob.vendor_id),
        int_be(1),
        int_be(0 if blob.is_opaque else len(blob.data) // 4),
        name_bytes,
    ]
    if blob.is_opaque:
        parts.append(int_be(len(blob.data)))
    parts.append(blob.data)
    return b"".join(parts)


def decode_fxp(data: bytes) -> PresetBlob:
    reader = ByteReader(data)
    reader.skip(4)
    reader.int_be()
    is_opaque = reader.read(4) == OPAQUE_CHUNK
    reader.int_be()
    vendor_id = reader.int_be()
    reader.int_be()
    reader.int_be()
    name = reader.read(NAME_LENGTH).split(b"\x00")[0].decode("ascii", errors="replace")
    if is_opaque:
        reader.int_be()
    return PresetBlob(vendor_id, is_opaque, reader.rest(), preset_name=name, program_name="")
