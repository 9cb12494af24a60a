"""
Style-sheet evaluation.

The evaluator walks a parsed file, binds variables, copies rules to the
output and expands imports in place. Import handling is pluggable: an
``import_handler`` strategy passed at construction time is called for every
import node and may use :meth:`Evaluator.default_import` for the native
behaviour.
"""

from __future__ import annotations

import os
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import replace
from pathlib import Path

from .nodes import (
    Assignment,
    Block,
    Call,
    Expression,
    Ident,
    Import,
    Node,
    Null,
    Rule,
    String,
    literal_value,
)
from .parser import parse
from .utils import STYLE_EXTENSION, find, get_url_type, lookup_index

MAX_IMPORT_DEPTH = 64

CSS_LITERAL_RE = re.compile(r"\.css(?:\"|$)")
STYLE_LITERAL_RE = re.compile(r"\.styl$", re.IGNORECASE)

ImportHandler = Callable[["Evaluator", Import], Node | None]


class CompileError(Exception):
    """Raised when a parsed style-sheet cannot be evaluated."""

    def __init__(
        self, message: str, filename: str | None = None, lineno: int = 0, column: int = 0
    ) -> None:
        self.message = message
        self.filename = filename
        self.lineno = lineno
        self.column = column
        location = f"{filename or '<string>'}:{lineno}:{column}"
        super().__init__(f"{location}: {message}")


class Evaluator:
    """
    Evaluates one parsed style-sheet file.

    Attributes:
        root: Parsed file
        filename: File the tree was parsed from
        paths: Native search paths
        include_css: Inline imported .css files instead of keeping the @import
        import_handler: Strategy called for every import node, if any
        scope: Variables bound so far, shared with imported files
    """

    def __init__(
        self,
        root: Block,
        *,
        filename: str,
        paths: Sequence[str] = (),
        include_css: bool = False,
        define: Mapping[str, str] | None = None,
        import_handler: ImportHandler | None = None,
    ) -> None:
        self.root = root
        self.filename = filename
        self.paths = list(paths)
        self.include_css = include_css
        self.import_handler = import_handler
        self.scope: dict[str, Node] = {
            name: String(val=value) for name, value in (define or {}).items()
        }
        self._required: set[str] = set()
        self._depth = 0

    def evaluate(self) -> Block:
        """Evaluate the whole tree and return the output block."""
        return self.visit_block(self.root)

    def visit(self, node: Node) -> Node | None:
        method = getattr(self, f"visit_{type(node).__name__.lower()}", None)
        return method(node) if method else node

    def visit_block(self, block: Block) -> Block:
        output = Block(block.lineno, block.column, block.filename)
        for node in block.nodes:
            result = self.visit(node)
            if result is None:
                continue
            if isinstance(result, Block):
                output.nodes.extend(result.nodes)
            else:
                output.push(result)
        return output

    def visit_assignment(self, node: Assignment) -> None:
        self.scope[node.name] = self.evaluate_target(node.value)

    def visit_rule(self, node: Rule) -> Rule:
        return node

    def visit_import(self, node: Import) -> Node | None:
        if self.import_handler is not None:
            return self.import_handler(self, node)
        return self.default_import(node)

    def evaluate_target(
        self, expression: Expression, scope: Mapping[str, Node] | None = None
    ) -> Node:
        """
        Evaluate an import target without touching evaluator state.

        Variables are looked up in ``scope`` (the evaluator's scope by
        default) and ``+`` joined terms are concatenated into one string.
        The result carries the position of the first term.

        Returns:
            A String, Ident or Call node, or Null for an empty expression
        """
        scope = self.scope if scope is None else scope
        first = expression.first

        values = [_substitute(term, scope) for term in expression.nodes]
        if not values:
            return Null(expression.lineno, expression.column, expression.filename)
        if len(values) == 1:
            return values[0]

        text = "".join(value.val if isinstance(value, String) else str(value) for value in values)
        return String(first.lineno, first.column, first.filename, text)

    def default_import(self, node: Import) -> Node | None:
        """
        Native import handling.

        URLs, and .css files unless ``include_css`` is set, are kept as an
        ``@import`` rule. Anything else is looked up on the search paths and
        the imported files are evaluated in place.

        Raises:
            CompileError: If the import cannot be located or read
        """
        keyword = "require" if node.once else "import"
        target = self.evaluate_target(node.path)

        if isinstance(target, Call) and target.name == "url":
            return self._keep(node, str(target))

        path = literal_value(target)
        if not path:
            raise CompileError("@import string expected", node.filename, node.lineno, node.column)

        if path.startswith("#") or get_url_type(path) in ("scheme-relative", "absolute"):
            return self._keep(node, f'"{path}"')

        literal_css = bool(CSS_LITERAL_RE.search(path))
        if literal_css and not self.include_css:
            return self._keep(node, f'"{path}"')

        found = self.lookup(path)
        if not found:
            raise CompileError(
                f"failed to locate @{keyword} file {path}",
                target.filename or node.filename,
                target.lineno,
                target.column,
            )

        output = Block(node.lineno, node.column, node.filename)
        for file in found:
            key = os.path.normpath(file)
            if node.once:
                if key in self._required:
                    continue
                self._required.add(key)
            output.nodes.extend(self._import_file(file, literal_css, node).nodes)
        return output

    def lookup(self, path: str) -> list[str] | None:
        """Find ``path`` with the native lookup rules, relative to this file."""
        paths = [*self.paths, os.path.dirname(self.filename) or "."]

        if CSS_LITERAL_RE.search(path) or STYLE_LITERAL_RE.search(path):
            return find(path, paths, self.filename)

        return find(path + STYLE_EXTENSION, paths, self.filename) or lookup_index(
            path, paths, self.filename
        )

    def _import_file(self, file: str, literal_css: bool, node: Import) -> Block:
        if self._depth >= MAX_IMPORT_DEPTH:
            raise CompileError(
                f"import loop has been found while importing {file}",
                node.filename,
                node.lineno,
                node.column,
            )

        try:
            text = Path(file).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise CompileError(
                f"failed to read {file}: {e}", node.filename, node.lineno, node.column
            ) from e

        if literal_css:
            rules = [
                Rule(lineno, 1, file, line.rstrip())
                for lineno, line in enumerate(text.splitlines(), start=1)
                if line.strip()
            ]
            return Block(1, 1, file, rules)

        child = Evaluator(
            parse(text, file),
            filename=file,
            paths=self.paths,
            include_css=self.include_css,
            import_handler=self.import_handler,
        )
        child.scope = self.scope
        child._required = self._required
        child._depth = self._depth + 1
        return child.evaluate()

    @staticmethod
    def _keep(node: Import, target: str) -> Rule:
        text = f"@import {target} {node.media}" if node.media else f"@import {target}"
        return Rule(node.lineno, node.column, node.filename, text)


def _substitute(term: Node, scope: Mapping[str, Node]) -> Node:
    if isinstance(term, Ident) and term.name in scope:
        return replace(
            scope[term.name], lineno=term.lineno, column=term.column, filename=term.filename
        )
    return term


def render(block: Block) -> str:
    """Render an evaluated block as style-sheet text."""
    return "\n".join(node.text for node in block.nodes if isinstance(node, Rule))
