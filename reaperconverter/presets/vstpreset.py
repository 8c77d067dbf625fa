"""VST3 preset files (.vstpreset) and REAPER's VST3 state layout.

REAPER stores a VST3 state as up to two sub-chunks (component and
controller state), each prefixed with its size and a reserved int. A
.vstpreset file holds the same sub-chunks followed by a chunk list::

    'VST3' version classID[32] listOffset[8]
    data...
    'List' count {id[4] offset[8] size[8]}*
"""

from __future__ import annotations

from reaperconverter.core.constants import VST3_FIRST_CHUNK_MARKER
from reaperconverter.core.errors import FormatError, UnsupportedFormat
from reaperconverter.presets.stream import ByteReader, int_le, long_le
from reaperconverter.presets.vst_envelope import PresetBlob

HEADER_MAGIC = b"VST3"
LIST_MAGIC = b"List"
CHUNK_IDS = (b"Comp", b"Cont")
HEADER_SIZE = 48
CLASS_ID_LENGTH = 32


def split_reaper_state(data: bytes) -> list[bytes]:
    """Split REAPER's VST3 payload into its component/controller chunks."""
    reader = ByteReader(data)
    chunks: list[bytes] = []
    while reader.remaining > 8:
        size = reader.int_le()
        reader.skip(4)
        chunks.append(reader.read(size))
    if len(chunks) > 2:
        raise UnsupportedFormat(f"VST3 state has {len(chunks)} chunks, at most 2 are supported.")
    return chunks


def join_reaper_state(chunks: list[bytes]) -> bytes:
    parts = []
    for index, chunk in enumerate(chunks):
        parts.append(int_le(len(chunk)))
        parts.append(int_le(VST3_FIRST_CHUNK_MARKER if index == 0 else 0))
        parts.append(chunk)
    return b"".join(parts)


def encode_vstpreset(chunks: list[bytes], class_id: str) -> bytes:
    body = b"".join(chunks)
    class_bytes = class_id.encode("ascii", errors="replace")[:CLASS_ID_LENGTH].ljust(CLASS_ID_LENGTH, b"\x00")
    parts = [
        HEADER_MAGIC,
        int_le(1),
        class_bytes,
        long_le(HEADER_SIZE + len(body)),
        body,
        LIST_MAGIC,
        int_le(len(chunks)),
    ]
    offset = HEADER_SIZE
    for chunk_id, chunk in zip(CHUNK_IDS, chunks):
        parts.extend([chunk_id, long_le(offset), long_le(len(chunk))])
        offset += len(chunk)
    return b"".join(parts)


def decode_vstpreset(data: bytes) -> tuple[str, list[bytes]]:
    """Return the class ID and the chunk data of a .vstpreset file."""
    reader = ByteReader(data)
    if reader.read(4) != HEADER_MAGIC:
        raise FormatError("Not a VST3 preset file.")
    reader.int_le()
    class_id = reader.read(CLASS_ID_LENGTH).split(b"\x00")[0].decode("ascii", errors="replace")
    list_offset = reader.long_le()

    reader.position = list_offset
    if reader.read(4) != LIST_MAGIC:
        raise FormatError("List chunk not found.")
    count = reader.int_le()
    chunks: list[bytes] = []
    for _ in range(count):
        reader.read(4)
        offset = reader.long_le()
        size = reader.long_le()
        if offset + size > len(data):
            raise FormatError("VST3 preset chunk exceeds the file size.")
        chunks.append(data[offset : offset + size])
    return class_id, chunks


def blob_to_vstpreset(blob: PresetBlob, class_id: str) -> bytes:
    return encode_vstpreset(split_reaper_state(blob.data), class_id)


def vstpreset_to_blob(data: bytes) -> PresetBlob:
    _, chunks = decode_vstpreset(data)
    return PresetBlob(0, True, join_reaper_state(chunks), "", "")
