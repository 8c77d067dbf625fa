"""CLAP plugin states, stored as a ``<STATE`` sub-chunk of Base64 lines."""

from __future__ import annotations

from reaperconverter.core.chunk import Node
from reaperconverter.core.constants import CLAP_STATE
from reaperconverter.core.errors import UnsupportedFormat
from reaperconverter.presets.base64_lines import add_lines, decode_lines, node_lines


def decode_clap_state(chunk: Node) -> bytes:
    state = chunk.child(CLAP_STATE)
    if state is None or not state.is_chunk:
        raise UnsupportedFormat("no CLAP state", chunk.param(0))
    return decode_lines(node_lines(state.children))


def encode_clap_state(chunk: Node, data: bytes):
    add_lines(chunk.add_chunk(CLAP_STATE), data)
