"""Tests for the .rpp chunk parser and formatter."""

import tempfile
from pathlib import Path

import pytest

from reaperconverter.core.chunk import Node, format_number
from reaperconverter.core.errors import FormatError
from reaperconverter.core.rpp_parser import (
    format_rpp,
    parse_rpp,
    quote_parameter,
    read_rpp,
    write_rpp,
)

PROJECT_TEXT = """<REAPER_PROJECT 0.1 "6.33/win64" 1600000000
  TEMPO 120 4 4
  <TRACK
    NAME "Lead Vocal"
    VOLPAN 1 0 -1 -1 1
    <ITEM
      POSITION 2.5
    >
  >
  MARKER 1 4.0 'say "hi"' 0
>
"""


def _make_rpp(text: str) -> Path:
    """Create a temporary .rpp file with the given text."""
    tmp = tempfile.NamedTemporaryFile("w", suffix=".rpp", delete=False, encoding="utf-8", newline="")
    tmp.write(text)
    tmp.close()
    return Path(tmp.name)


def test_parse_root_and_children():
    """The root chunk and its children should be parsed in order."""
    root = parse_rpp(PROJECT_TEXT.splitlines())
    assert root.name == "REAPER_PROJECT"
    assert root.parameters == ["0.1", "6.33/win64", "1600000000"]
    assert [child.name for child in root.children] == ["TEMPO", "TRACK", "MARKER"]
    assert root.child("TEMPO").int_param(0) == 120


def test_parse_quoted_parameters():
    """Double and single quoted parameters keep their spaces."""
    root = parse_rpp(PROJECT_TEXT.splitlines())
    track = root.child("TRACK")
    assert track.child("NAME").param(0) == "Lead Vocal"
    assert root.child("MARKER").param(2) == 'say "hi"'


def test_parse_nested_chunks():
    """Items inside tracks should become nested chunks."""
    root = parse_rpp(PROJECT_TEXT.splitlines())
    item = root.child("TRACK").child("ITEM")
    assert item.is_chunk
    assert item.child("POSITION").float_param(0) == 2.5


def test_missing_project_chunk():
    """Files without the project chunk are rejected."""
    with pytest.raises(FormatError, match="Project chunk not found"):
        parse_rpp(["<SOMETHING_ELSE", ">"])


def test_unclosed_chunk():
    """A chunk without its closing line is an error."""
    with pytest.raises(FormatError, match="Chunk not closed"):
        parse_rpp(["<REAPER_PROJECT 0.1", "  <TRACK", "  NAME x"])


def test_format_round_trip():
    """Formatted text should parse back into an equal tree."""
    root = parse_rpp(PROJECT_TEXT.splitlines())
    text = format_rpp(root)
    assert parse_rpp(text.splitlines()) == root


def test_format_uses_crlf_and_indent():
    """Output uses CRLF line endings and two spaces per level."""
    root = Node.chunk("REAPER_PROJECT", "0.1", "6.33/win64")
    track = root.add_chunk("TRACK")
    track.add_leaf("NAME", "Drums")
    text = format_rpp(root)
    assert text == '<REAPER_PROJECT 0.1 "6.33/win64"\r\n  <TRACK\r\n    NAME Drums\r\n  >\r\n>\r\n'


def test_quote_parameter():
    """Blank values and values with whitespace or slashes are quoted."""
    assert quote_parameter("plain") == "plain"
    assert quote_parameter("") == '""'
    assert quote_parameter("two words") == '"two words"'
    assert quote_parameter("6.33/win64") == '"6.33/win64"'
    assert quote_parameter('say "hi"') == "'say \"hi\"'"


def test_write_and_read_file(tmp_path):
    """Files are written with CRLF and read back."""
    root = parse_rpp(PROJECT_TEXT.splitlines())
    path = tmp_path / "song.rpp"
    write_rpp(path, root)
    assert b"\r\n" in path.read_bytes()
    assert read_rpp(path) == root


def test_node_parameter_access():
    """Typed parameter access falls back to defaults."""
    node = Node.leaf("VOLPAN", "1.5", "abc")
    assert node.int_param(0) == 1
    assert node.float_param(0) == 1.5
    assert node.float_param(1, 7.0) == 7.0
    assert node.param(5) is None
    assert node.int_param(5, -1) == -1


def test_node_text_conversion():
    """Numbers and booleans are stored the way REAPER writes them."""
    node = Node.leaf("X", 1, True, False, 0.5, 120.0)
    assert node.parameters == ["1", "1", "0", "0.5", "120.0"]
    assert format_number(0.1) == "0.1"


def test_read_file_with_crlf():
    """Files saved by REAPER use CRLF line endings."""
    path = _make_rpp(PROJECT_TEXT.replace("\n", "\r\n"))
    try:
        root = read_rpp(path)
    finally:
        path.unlink()
    assert root.child("TRACK").child("NAME").param(0) == "Lead Vocal"
    assert root.child("MARKER").param(2) == 'say "hi"'


def test_quote_parameter_with_both_quote_kinds():
    """Values holding double and single quotes are wrapped in backticks."""
    value = 'He said "it\'s fine"'
    assert quote_parameter(value) == "`" + value + "`"
    assert quote_parameter("it's") == '"it\'s"'

    root = Node.chunk("REAPER_PROJECT", "0.1")
    root.add_leaf("NAME", value)
    parsed = parse_rpp(format_rpp(root).splitlines())
    assert parsed.child("NAME").param(0) == value


def test_empty_quoted_line_round_trip():
    """A line holding only an empty quoted string survives formatting."""
    root = parse_rpp(['<REAPER_PROJECT 0.1', '  <NOTES', '    ""', '  >', '>'])
    notes = root.child("NOTES")
    assert notes.children[0].name == ""
    text = format_rpp(root)
    assert '    ""\r\n' in text
    assert parse_rpp(text.splitlines()) == root
