"""Parser and formatter for REAPER .rpp project files.

Reads the nested-chunk text format into a tree of :class:`Node` objects and
writes such a tree back. Lines starting with ``<`` open a chunk, a line
consisting of ``>`` closes it, everything else is a leaf inside the current
chunk.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable

from reaperconverter.core.chunk import Node
from reaperconverter.core.constants import PROJECT_CHUNK
from reaperconverter.core.errors import FormatError

logger = logging.getLogger(__name__)

_TOKEN_PATTERN = re.compile(r"""[^\s"'`]+|"([^"]*)"|'([^']*)'|`([^`]*)`""")
_NEEDS_QUOTES = re.compile(r"""[\s/"'`]""")

LINE_SEPARATOR = "\r\n"
INDENT = "  "


class RppParser:
    """Parser for the lines of one REAPER project."""

    def __init__(self, lines: Iterable[str]):
        self.lines = iter(lines)
        self.line_number = 0

    def parse(self) -> Node:
        """Parse all lines and return the root project chunk."""
        first = self._next_line()
        if first is None or not first.strip().startswith("<" + PROJECT_CHUNK):
            raise FormatError("No Reaper file. Project chunk not found.")

        root = _parse_line(first.strip()[1:])
        root.children = []
        self._parse_children(root)
        return root

    def _next_line(self) -> str | None:
        line = next(self.lines, None)
        if line is not None:
            self.line_number += 1
        return line

    def _parse_children(self, chunk: Node):
        # Open chunks, innermost last
        stack = [chunk]
        while stack:
            line = self._next_line()
            if line is None:
                raise FormatError("Unsound file. Chunk not closed.", stack[-1].name)

            trimmed = line.strip()
            if not trimmed:
                continue
            if trimmed == ">":
                stack.pop()
                continue

            if trimmed.startswith("<"):
                node = _parse_line(trimmed[1:])
                node.children = []
                stack[-1].add(node)
                stack.append(node)
            else:
                node = _parse_line(trimmed)
                stack[-1].add(node)

        if self._next_line() is not None:
            logger.warning("Ignoring content after the end of the project chunk.")


def _parse_line(text: str) -> Node:
    tokens = [
        match.group(1) if match.group(1) is not None
        else match.group(2) if match.group(2) is not None
        else match.group(3) if match.group(3) is not None
        else match.group(0)
        for match in _TOKEN_PATTERN.finditer(text)
    ]
    if not tokens:
        return Node("", [], line=text)
    return Node(tokens[0], tokens[1:], line=text)


def parse_rpp(lines: Iterable[str]) -> Node:
    """Convenience function to parse project lines."""
    return RppParser(lines).parse()


def read_rpp(path: Path) -> Node:
    """Read and parse a .rpp file."""
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return parse_rpp(f.read().splitlines())


# ── Formatting ──────────────────────────────────────────────────

def format_rpp(root: Node) -> str:
    """Format a node tree into project text with CRLF line endings."""
    out: list[str] = []
    _format_node(root, 0, out)
    return "".join(out)


def write_rpp(path: Path, root: Node):
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(format_rpp(root))


def _format_node(node: Node, level: int, out: list[str]):
    indent = INDENT * level
    text = _format_line(node)
    if not node.is_chunk:
        out.append(f"{indent}{text}{LINE_SEPARATOR}")
        return

    out.append(f"{indent}<{text}{LINE_SEPARATOR}")
    for child in node.children:
        _format_node(child, level + 1, out)
    out.append(f"{indent}>{LINE_SEPARATOR}")


def _format_line(node: Node) -> str:
    parts = [node.name or quote_parameter(node.name)]
    for parameter in node.parameters:
        if parameter is None:
            continue
        parts.append(quote_parameter(parameter))
    return " ".join(parts)


def quote_parameter(parameter: str) -> str:
    if not parameter.strip() or _NEEDS_QUOTES.search(parameter):
        # Double quotes inside the value force single quotes, both kinds force backticks
        if '"' in parameter and "'" in parameter:
            return "`" + parameter.replace("`", "'") + "`"
        if '"' in parameter:
            return f"'{parameter}'"
        return f'"{parameter}"'
    return parameter
