"""
Style-sheet AST nodes.

This module contains the node classes produced by the parser and consumed by
the evaluator. Every node remembers where it came from (filename, line and
column) because the position is what ties an import seen during dependency
resolution to the same import seen again during the real compile.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field


@dataclass
class Node:
    """Base class for all AST nodes."""

    lineno: int = 0
    column: int = 0
    filename: str | None = None

    def clone(self) -> Node:
        """Return a deep copy of this node and its children."""
        return copy.deepcopy(self)


@dataclass
class Null(Node):
    """Placeholder for a missing value."""


@dataclass
class String(Node):
    """A quoted string literal."""

    val: str = ""
    quote: str = '"'

    def __str__(self) -> str:
        return f"{self.quote}{self.val}{self.quote}"


@dataclass
class Ident(Node):
    """A bare identifier, possibly bound to a variable."""

    name: str = ""

    def __str__(self) -> str:
        return self.name


@dataclass
class Call(Node):
    """A function call such as ``url("x.css")``."""

    name: str = ""
    args: list[Node] = field(default_factory=list)

    def __str__(self) -> str:
        return f"{self.name}({', '.join(str(arg) for arg in self.args)})"


@dataclass
class Expression(Node):
    """An ordered list of terms joined with ``+``."""

    nodes: list[Node] = field(default_factory=list)

    @property
    def first(self) -> Node:
        return self.nodes[0] if self.nodes else Null(self.lineno, self.column, self.filename)


@dataclass
class Import(Node):
    """An ``@import`` (or ``@require`` when ``once`` is set) statement."""

    path: Expression = field(default_factory=Expression)
    once: bool = False
    media: str = ""


@dataclass
class Assignment(Node):
    """A ``name = value`` variable binding."""

    name: str = ""
    value: Expression = field(default_factory=Expression)


@dataclass
class Rule(Node):
    """Raw style-sheet text emitted unchanged."""

    text: str = ""


@dataclass
class Block(Node):
    """A sequence of statements; also the root of a parsed file."""

    nodes: list[Node] = field(default_factory=list)

    def push(self, node: Node) -> None:
        self.nodes.append(node)


def literal_value(node: Node) -> str:
    """
    Get the literal text of an evaluated import target.

    Strings yield their value, identifiers their name. Anything else has no
    literal value and yields an empty string.
    """
    if isinstance(node, String):
        return node.val
    if isinstance(node, Ident):
        return node.name
    return ""


def walk(block: Block):
    """Yield every node under ``block`` in document order."""
    for node in block.nodes:
        yield node
        if isinstance(node, Block):
            yield from walk(node)
