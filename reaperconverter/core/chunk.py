"""Tree model of the REAPER project text format.

A project is a tree of nodes. A node is either a leaf (one line of
parameters) or a chunk which additionally holds ordered child nodes.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Node:
    name: str = ""
    parameters: list[str | None] = field(default_factory=list)
    line: str | None = field(default=None, compare=False, repr=False)
    children: list[Node] | None = None

    @classmethod
    def chunk(cls, name: str, *parameters) -> Node:
        return cls(name, [_to_text(p) for p in parameters], children=[])

    @classmethod
    def leaf(cls, name: str, *parameters) -> Node:
        return cls(name, [_to_text(p) for p in parameters])

    @property
    def is_chunk(self) -> bool:
        return self.children is not None

    # ── Parameter access ────────────────────────────────────────

    def param(self, index: int, default: str | None = None) -> str | None:
        if index < len(self.parameters):
            return self.parameters[index]
        return default

    def int_param(self, index: int, default: int = 0) -> int:
        value = self.param(index)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            try:
                return int(float(value))
            except ValueError:
                return default

    def float_param(self, index: int, default: float = 0.0) -> float:
        value = self.param(index)
        if value is None:
            return default
        try:
            return float(value)
        except ValueError:
            return default

    # ── Child access ────────────────────────────────────────────

    def child(self, name: str) -> Node | None:
        """Return the first direct child with the given name."""
        for node in self.children or []:
            if node.name == name:
                return node
        return None

    def children_named(self, name: str) -> list[Node]:
        return [node for node in self.children or [] if node.name == name]

    def add(self, node: Node) -> Node:
        if self.children is None:
            self.children = []
        self.children.append(node)
        return node

    def add_leaf(self, name: str, *parameters) -> Node:
        return self.add(Node.leaf(name, *parameters))

    def add_chunk(self, name: str, *parameters) -> Node:
        return self.add(Node.chunk(name, *parameters))


def _to_text(value) -> str | None:
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, float):
        return format_number(value)
    return str(value)


def format_number(value: float) -> str:
    """Render a float the way REAPER writes it: plain decimal, no exponent."""
    text = f"{value:.14f}".rstrip("0")
    if text.endswith("."):
        text += "0"
    return text
