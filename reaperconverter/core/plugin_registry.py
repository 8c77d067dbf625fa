"""Registry of the supported plugin kinds.

Maps REAPER's device descriptions (``VST3i: Name (Vendor)``) to plugin
kinds and holds, per kind, the preset file ending and the functions that
translate between REAPER's inline state and the preset file.
"""

from __future__ import annotations

import re
import struct
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from reaperconverter.core.chunk import Node
from reaperconverter.core.constants import (
    CHUNK_CLAP,
    CHUNK_VST,
    INSTRUMENT_TAGS,
    PLUGIN_CLAP,
    PLUGIN_CLAP_INSTRUMENT,
    PLUGIN_VST_2,
    PLUGIN_VST_2_INSTRUMENT,
    PLUGIN_VST_3,
    PLUGIN_VST_3_INSTRUMENT,
)
from reaperconverter.core.models import DeviceFormat, DeviceRole
from reaperconverter.presets.clap_state import decode_clap_state, encode_clap_state
from reaperconverter.presets.fxp import decode_fxp, encode_fxp
from reaperconverter.presets.vst_envelope import decode_envelope, encode_envelope
from reaperconverter.presets.vstpreset import blob_to_vstpreset, vstpreset_to_blob

DESCRIPTION_PATTERN = re.compile(r"(VST|VSTi|VST3|VST3i|CLAP|CLAPi)?:\s(.*)\s\((.*)\)")
_VST2_ID_PATTERN = re.compile(r"(.*)<.*")
_VST3_ID_PATTERN = re.compile(r".*\{(.*)\}")

FNV_OFFSET_BASIS = 0x811C9DC5
FNV_PRIME = 0x01000193


class PluginKind(Enum):
    VST2 = "vst2"
    VST3 = "vst3"
    CLAP = "clap"


@dataclass(frozen=True)
class PluginKindInfo:
    device_format: DeviceFormat
    chunk_name: str
    tag: str
    file_ending: str
    # REAPER chunk + device ID -> preset file content
    read_state: Callable[[Node, str], bytes]
    # preset file content -> appended to the REAPER chunk
    write_state: Callable[[Node, bytes], None]


@dataclass
class DeviceDescription:
    kind: PluginKind
    name: str
    vendor: str
    role: DeviceRole


def _read_vst2(chunk: Node, device_id: str) -> bytes:
    return encode_fxp(decode_envelope(chunk))


def _write_vst2(chunk: Node, data: bytes):
    encode_envelope(chunk, decode_fxp(data))


def _read_vst3(chunk: Node, device_id: str) -> bytes:
    return blob_to_vstpreset(decode_envelope(chunk), device_id)


def _write_vst3(chunk: Node, data: bytes):
    encode_envelope(chunk, vstpreset_to_blob(data))


def _read_clap(chunk: Node, device_id: str) -> bytes:
    return decode_clap_state(chunk)


PLUGIN_KINDS: dict[PluginKind, PluginKindInfo] = {
    PluginKind.VST2: PluginKindInfo(DeviceFormat.VST2, CHUNK_VST, PLUGIN_VST_2, ".fxp", _read_vst2, _write_vst2),
    PluginKind.VST3: PluginKindInfo(DeviceFormat.VST3, CHUNK_VST, PLUGIN_VST_3, ".vstpreset", _read_vst3, _write_vst3),
    PluginKind.CLAP: PluginKindInfo(DeviceFormat.CLAP, CHUNK_CLAP, PLUGIN_CLAP, ".clap-preset", _read_clap, encode_clap_state),
}

_TAG_KINDS = {
    PLUGIN_VST_2: PluginKind.VST2,
    PLUGIN_VST_2_INSTRUMENT: PluginKind.VST2,
    PLUGIN_VST_3: PluginKind.VST3,
    PLUGIN_VST_3_INSTRUMENT: PluginKind.VST3,
    PLUGIN_CLAP: PluginKind.CLAP,
    PLUGIN_CLAP_INSTRUMENT: PluginKind.CLAP,
}


def kind_info(kind: PluginKind) -> PluginKindInfo:
    return PLUGIN_KINDS[kind]


def kind_for_format(device_format: DeviceFormat) -> PluginKind:
    for kind, info in PLUGIN_KINDS.items():
        if info.device_format == device_format:
            return kind
    raise KeyError(device_format)


def parse_description(description: str) -> DeviceDescription | None:
    """Parse ``<tag>: <name> (<vendor>)``, ``None`` for unknown device types."""
    match = DESCRIPTION_PATTERN.match(description)
    if match is None or match.group(1) is None:
        return None
    tag = match.group(1)
    role = DeviceRole.INSTRUMENT if tag in INSTRUMENT_TAGS else DeviceRole.AUDIO_FX
    return DeviceDescription(_TAG_KINDS[tag], match.group(2), match.group(3), role)


def parse_device_id(kind: PluginKind, chunk: Node) -> str | None:
    """Extract the plugin ID from the parameters of a device chunk."""
    if kind == PluginKind.CLAP:
        return chunk.param(1)

    pattern = _VST2_ID_PATTERN if kind == PluginKind.VST2 else _VST3_ID_PATTERN
    match = pattern.match(chunk.param(4) or "")
    return match.group(1) if match else None


# ── Export side ID synthesis ────────────────────────────────────

def create_device_name(kind: PluginKind, device_name: str, vendor: str | None, instrument: bool = False) -> str:
    """``<tag>: <name> (<vendor>)``, instruments get the ``i`` suffixed tag."""
    tag = PLUGIN_KINDS[kind].tag + ("i" if instrument else "")
    return f"{tag}: {device_name} ({vendor or ''})"


def create_vst2_id(device_id: str, name: str) -> str:
    """``<id><hex>`` where the hex part mimics the VST3 ID REAPER derives for VST2 plugins."""
    fake_id = ("VST" + _int_to_text(int(device_id)) + name.lower())[:16]
    hex_part = "".join("%02x" % ord(c) for c in fake_id).ljust(32, "0")
    return f"{device_id}<{hex_part}>"


def create_vst3_id(device_id: str) -> str:
    """``<hash>{<uuid>}``, the hash being REAPER's FNV-1a over the class ID."""
    return f"{vst3_hash(device_id)}{{{device_id}}}"


def vst3_hash(device_id: str) -> int:
    uuid = bytearray(bytes.fromhex(device_id.replace("-", "")[:32].ljust(32, "0")))
    # GUID byte order: the first three groups are little-endian
    uuid[0:4] = uuid[0:4][::-1]
    uuid[4:6] = uuid[4:6][::-1]
    uuid[6:8] = uuid[6:8][::-1]

    value = FNV_OFFSET_BASIS
    for byte in uuid:
        value = ((value ^ byte) * FNV_PRIME) & 0xFFFFFFFF
    return value & 0x7FFFFFFF


def create_device_id(kind: PluginKind, device_id: str, name: str) -> str:
    if kind == PluginKind.VST2:
        return create_vst2_id(device_id, name)
    if kind == PluginKind.VST3:
        return create_vst3_id(device_id)
    return device_id


def _int_to_text(value: int) -> str:
    return struct.pack(">I", value & 0xFFFFFFFF).decode("latin-1")
