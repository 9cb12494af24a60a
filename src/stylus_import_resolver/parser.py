"""
Style-sheet parsing.

A deliberately small, line-oriented parser for the Stylus-like syntax this
package works with. It understands exactly what dependency resolution needs
to see: ``@import`` and ``@require`` statements, variable assignments and
``//`` comments. Every other line is kept as a raw rule and copied to the
output by the evaluator.

Statements on an import or assignment line may be separated with ``;``,
so several imports can share one line; their columns tell them apart.
"""

from __future__ import annotations

import re

from .nodes import Assignment, Block, Call, Expression, Ident, Import, Node, Rule, String

IMPORT_RE = re.compile(r"@(import|require)(?=[\s\"'(]|$)")
ASSIGN_RE = re.compile(r"([A-Za-z_$][\w$-]*)\s*=(?!=)\s*")
IDENT_RE = re.compile(r"[A-Za-z_$-][\w$-]*")
URL_CALL_RE = re.compile(r"url\s*\(", re.IGNORECASE)
MEDIA_QUERY_RE = re.compile(r"[A-Za-z(]")


class ParseError(Exception):
    """Raised when style-sheet source is malformed."""

    def __init__(
        self, message: str, filename: str | None = None, lineno: int = 0, column: int = 0
    ) -> None:
        self.message = message
        self.filename = filename
        self.lineno = lineno
        self.column = column
        location = f"{filename or '<string>'}:{lineno}:{column}"
        super().__init__(f"{location}: {message}")


def parse(source: str, filename: str | None = None) -> Block:
    """Parse ``source`` into a root block."""
    return Parser(source, filename).parse()


class Parser:
    """
    Parses one style-sheet source text.

    Attributes:
        source: Text to parse
        filename: Identifier of the file the text came from, stored on every node
    """

    def __init__(self, source: str, filename: str | None = None) -> None:
        self.source = source
        self.filename = filename

    def parse(self) -> Block:
        """
        Parse the whole source.

        Returns:
            Root block holding the statements in document order

        Raises:
            ParseError: If an import or assignment statement is malformed
        """
        root = Block(1, 1, self.filename)

        for lineno, line in enumerate(self.source.splitlines(), start=1):
            stripped = line.strip()
            if not stripped or stripped.startswith("//"):
                continue

            if not (IMPORT_RE.match(stripped) or ASSIGN_RE.match(stripped)):
                indent = len(line) - len(line.lstrip())
                root.push(Rule(lineno, indent + 1, self.filename, line.rstrip()))
                continue

            for column, statement in self._split_statements(line, lineno):
                root.push(self._parse_statement(statement, lineno, column))

        return root

    def _split_statements(self, line: str, lineno: int) -> list[tuple[int, str]]:
        """Split a line on top-level ``;`` and return (column, statement) pairs."""
        statements: list[tuple[int, str]] = []
        quote: str | None = None
        depth = 0
        start = 0

        for index, char in enumerate(line):
            if quote:
                if char == quote and line[index - 1] != "\\":
                    quote = None
            elif char in "\"'":
                quote = char
            elif char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
                if depth < 0:
                    raise ParseError("unexpected ')'", self.filename, lineno, index + 1)
            elif char == ";" and depth == 0:
                statements.append((start, line[start:index]))
                start = index + 1

        if quote:
            raise ParseError("unterminated string", self.filename, lineno, len(line))
        if depth:
            raise ParseError("missing ')'", self.filename, lineno, len(line))

        statements.append((start, line[start:]))

        result = []
        for offset, text in statements:
            if not text.strip():
                continue
            leading = len(text) - len(text.lstrip())
            result.append((offset + leading + 1, text.strip()))
        return result

    def _parse_statement(self, text: str, lineno: int, column: int) -> Node:
        match = IMPORT_RE.match(text)
        if match:
            start = match.end()
            if not text[start:].strip():
                raise ParseError(
                    f"expected a path after @{match.group(1)}", self.filename, lineno, column
                )
            path, end = self._parse_expression(text, start, lineno, column, media=True)
            return Import(
                lineno,
                column,
                self.filename,
                path,
                once=match.group(1) == "require",
                media=text[end:].strip(),
            )

        match = ASSIGN_RE.match(text)
        if match:
            if not text[match.end() :].strip():
                raise ParseError(
                    f"expected a value for '{match.group(1)}'", self.filename, lineno, column
                )
            value, _ = self._parse_expression(text, match.end(), lineno, column)
            return Assignment(lineno, column, self.filename, match.group(1), value)

        # A rule sharing a line with an import, e.g. `@import "a"; .b { c: d }`
        return Rule(lineno, column, self.filename, text)

    def _parse_expression(
        self, text: str, index: int, lineno: int, column: int, media: bool = False
    ) -> tuple[Expression, int]:
        """
        Parse ``term ('+' term)*`` starting at ``index`` of ``text``.

        ``column`` is the 1-based column of ``text[0]`` within its line. With
        ``media`` set, the expression may be followed by a media query, which
        is left unparsed.

        Returns:
            The expression and the index where parsing stopped
        """
        terms: list[Node] = []

        while True:
            index = self._skip_space(text, index)
            term, index = self._parse_term(text, index, lineno, column)
            terms.append(term)

            end = index
            index = self._skip_space(text, index)
            if index >= len(text):
                break
            if media and index > end and MEDIA_QUERY_RE.match(text, index):
                break
            if text[index] != "+":
                raise ParseError(
                    f"unexpected '{text[index]}'", self.filename, lineno, column + index
                )
            index += 1

        first = terms[0]
        return Expression(first.lineno, first.column, self.filename, terms), index

    def _parse_term(self, text: str, index: int, lineno: int, column: int) -> tuple[Node, int]:
        term_column = column + index

        if index >= len(text):
            raise ParseError("unexpected end of expression", self.filename, lineno, term_column)

        char = text[index]
        if char in "\"'":
            end = self._closing_quote(text, index)
            value = text[index + 1 : end].replace(f"\\{char}", char)
            return String(lineno, term_column, self.filename, value, char), end + 1

        match = URL_CALL_RE.match(text, index)
        if match:
            end = text.find(")", match.end())
            inner = text[match.end() : end].strip()
            if inner[:1] in ("'", '"') and inner[-1:] == inner[:1]:
                arg = String(lineno, term_column, self.filename, inner[1:-1], inner[0])
            else:
                arg = String(lineno, term_column, self.filename, inner, "")
            return Call(lineno, term_column, self.filename, "url", [arg]), end + 1

        match = IDENT_RE.match(text, index)
        if match:
            return Ident(lineno, term_column, self.filename, match.group(0)), match.end()

        raise ParseError(f"unexpected '{char}'", self.filename, lineno, term_column)

    def _closing_quote(self, text: str, index: int) -> int:
        quote = text[index]
        position = index + 1
        while position < len(text):
            if text[position] == quote and text[position - 1] != "\\":
                return position
            position += 1
        # _split_statements has already rejected unterminated strings
        return len(text) - 1

    @staticmethod
    def _skip_space(text: str, index: int) -> int:
        while index < len(text) and text[index].isspace():
            index += 1
        return index
