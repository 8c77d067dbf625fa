"""Tests for the plugin state codecs."""

import pytest

from reaperconverter.core.chunk import Node
from reaperconverter.core.errors import FormatError, TruncatedDataError, UnsupportedFormat
from reaperconverter.presets.base64_lines import LINE_LENGTH, add_lines, decode_lines, encode_lines, node_lines
from reaperconverter.presets.clap_state import decode_clap_state, encode_clap_state
from reaperconverter.presets.fxp import decode_fxp, encode_fxp
from reaperconverter.presets.stream import int_le
from reaperconverter.presets.vst_envelope import PresetBlob, decode_envelope, encode_envelope
from reaperconverter.presets.vstpreset import (
    blob_to_vstpreset,
    decode_vstpreset,
    encode_vstpreset,
    join_reaper_state,
    split_reaper_state,
    vstpreset_to_blob,
)


def _data(size: int) -> bytes:
    return bytes(i % 251 for i in range(size))


@pytest.mark.parametrize("size", [0, 1, 127, 128, 129, 100000])
def test_base64_lines_wrap(size):
    """Base64 lines are at most 128 characters and decode to the input."""
    data = _data(size)
    lines = encode_lines(data)
    assert all(len(line) <= LINE_LENGTH for line in lines)
    assert decode_lines(lines) == data


def test_base64_invalid():
    """Broken Base64 text raises a format error."""
    with pytest.raises(FormatError):
        decode_lines(["abc"])


def test_base64_chunk_lines():
    """Lines added to a chunk are read back from its leaves."""
    chunk = Node.chunk("STATE")
    add_lines(chunk, _data(300))
    assert decode_lines(node_lines(chunk.children)) == _data(300)


def test_envelope_opaque():
    """An opaque VST state survives the REAPER envelope."""
    blob = PresetBlob(0x52656576, True, _data(500), "My Preset", "Program 1")
    chunk = Node.chunk("VST", "VST: Reverb (Vendor)")
    encode_envelope(chunk, blob)
    decoded = decode_envelope(chunk)
    assert decoded.vendor_id == 0x52656576
    assert decoded.is_opaque
    assert decoded.data == blob.data
    assert decoded.preset_name == "My Preset"
    assert decoded.program_name == "Program 1"


def test_envelope_regular():
    """Regular states carry the sentinel pair which is not part of the data."""
    blob = PresetBlob(42, False, _data(64), "", "")
    chunk = Node.chunk("VST")
    encode_envelope(chunk, blob)
    decoded = decode_envelope(chunk)
    assert not decoded.is_opaque
    assert decoded.data == blob.data


def test_envelope_unknown_magic():
    """Unknown magic numbers are rejected."""
    chunk = Node.chunk("VST")
    add_lines(chunk, int_le(1) + int_le(0x12345678) + int_le(0) + int_le(0))
    add_lines(chunk, b"\x00\x00")
    with pytest.raises(UnsupportedFormat):
        decode_envelope(chunk)


def test_envelope_without_state():
    """A VST chunk without lines has no state."""
    with pytest.raises(UnsupportedFormat):
        decode_envelope(Node.chunk("VST", "VST: Empty (Nobody)"))


def test_fxp_round_trip():
    """FXP files keep vendor, data and preset name."""
    blob = PresetBlob(0x41424344, True, _data(100), "Warm Pad", "")
    data = encode_fxp(blob)
    assert data[:4] == b"CcnK"
    assert data[8:12] == b"FPCh"
    assert int.from_bytes(data[4:8], "big") == 48 + 100

    decoded = decode_fxp(data)
    assert decoded.vendor_id == 0x41424344
    assert decoded.is_opaque
    assert decoded.data == blob.data
    assert decoded.preset_name == "Warm Pad"


def test_fxp_regular_chunk():
    """Regular states are marked as parameter chunks."""
    data = encode_fxp(PresetBlob(1, False, _data(16), "", "Init"))
    assert data[8:12] == b"FxCk"
    assert decode_fxp(data).data == _data(16)


def test_fxp_truncated():
    """A short FXP stream raises a truncation error that is also an OSError."""
    with pytest.raises(TruncatedDataError):
        decode_fxp(b"CcnK")
    with pytest.raises(OSError):
        decode_fxp(b"CcnK\x00")


def test_vstpreset_round_trip():
    """Component and controller chunks survive a .vstpreset file."""
    class_id = "ABCDEF0123456789ABCDEF0123456789"
    chunks = [_data(40), b"controller"]
    data = encode_vstpreset(chunks, class_id)
    assert data[:4] == b"VST3"
    assert decode_vstpreset(data) == (class_id, chunks)


def test_vstpreset_not_a_preset():
    """Files without the VST3 magic are rejected."""
    with pytest.raises(FormatError):
        decode_vstpreset(b"XXXX" + bytes(60))


def test_reaper_vst3_state_layout():
    """REAPER's size-prefixed VST3 state splits back into its chunks."""
    chunks = [b"component state", b"controller state"]
    assert split_reaper_state(join_reaper_state(chunks)) == chunks


def test_vst3_blob_conversion():
    """A VST3 envelope payload converts to a preset file and back."""
    payload = join_reaper_state([_data(20), _data(10)])
    preset = blob_to_vstpreset(PresetBlob(0, True, payload), "5653544142434472")
    assert vstpreset_to_blob(preset).data == payload


def test_clap_state_round_trip():
    """CLAP states are stored in a STATE sub-chunk."""
    chunk = Node.chunk("CLAP", "CLAP: Synth (Vendor)", "com.vendor.synth", "")
    encode_clap_state(chunk, _data(200))
    assert chunk.child("STATE").is_chunk
    assert decode_clap_state(chunk) == _data(200)


def test_clap_state_missing():
    """A CLAP chunk without STATE cannot be converted."""
    with pytest.raises(UnsupportedFormat):
        decode_clap_state(Node.chunk("CLAP", "CLAP: Synth (Vendor)", "id", ""))
