"""
Import injection.

This module provides the ImportInjector class, the import handler used by
the real compile. Instead of searching for imported files again, it looks up
the result dependency resolution already recorded for the same import and
hands the resolved file (or files) to the evaluator's native import
handling.

The real compile parses every file again, so its import nodes are new
objects. They are matched to their records by file, line, column and the
evaluated path.
"""

from __future__ import annotations

import os
from collections.abc import Iterable

from .context import BuildContext, BuildError
from .evaluator import CSS_LITERAL_RE, CompileError, Evaluator
from .host import HostResolveError
from .nodes import Block, Call, Expression, Import, Node, String, literal_value
from .parser import ParseError
from .types import DependencyIndex, Failed, Resolved, ResolvedMany
from .utils import is_url_import


class ImportInjector:
    """
    Import handler that substitutes pre-resolved files into import nodes.

    Pass an instance as the evaluator's ``import_handler``.

    Attributes:
        index: Dependency index built for this compile
        context: Build errors are reported to
    """

    def __init__(self, index: DependencyIndex, context: BuildContext) -> None:
        self.index = index
        self.context = context

    def __call__(self, evaluator: Evaluator, node: Import) -> Node | None:
        target = evaluator.evaluate_target(node.path)
        path = literal_value(target)
        resolve_error: Exception | None = None
        paths: Iterable[str] | None = None

        if self._is_resolvable(evaluator, target, path):
            record = self.index.find(
                os.path.normpath(evaluator.filename), target.lineno, target.column, path
            )
            if record is not None:
                if isinstance(record.result, Failed):
                    resolve_error = record.result.error
                elif isinstance(record.result, Resolved):
                    node = _with_target(node, record.result.path)
                elif isinstance(record.result, ResolvedMany):
                    paths = record.result.paths

        try:
            if paths is not None:
                return merge_blocks(
                    evaluator.default_import(_with_target(node, resolved)) for resolved in paths
                )
            return evaluator.default_import(node)
        except (CompileError, ParseError) as e:
            self.context.emit_error(_resolver_error(e, resolve_error))
            return None

    @staticmethod
    def _is_resolvable(evaluator: Evaluator, target: Node, path: str) -> bool:
        if isinstance(target, Call) and target.name == "url":
            return False
        if not path or is_url_import(path):
            return False
        # CSS kept as an @import must keep the path as written
        return evaluator.include_css or not CSS_LITERAL_RE.search(path)


def merge_blocks(blocks: Iterable[Node | None]) -> Block:
    """
    Merge the output of several imports into one block.

    The first block is reused and the contents of the others are appended in
    order. An empty input yields an empty block.
    """
    merged: Block | None = None

    for block in blocks:
        if block is None:
            continue
        if not isinstance(block, Block):
            block = Block(block.lineno, block.column, block.filename, [block])
        if merged is None:
            merged = block
        else:
            merged.nodes.extend(block.nodes)

    return merged if merged is not None else Block()


def _with_target(node: Import, path: str) -> Import:
    clone = node.clone()
    first = clone.path.first
    clone.path = Expression(
        first.lineno,
        first.column,
        first.filename,
        [String(first.lineno, first.column, first.filename, path)],
    )
    return clone


def _resolver_error(error: Exception, resolve_error: Exception | None) -> BuildError:
    message = f"Stylus resolver error: {getattr(error, 'message', error)}"

    if isinstance(resolve_error, HostResolveError):
        message += (
            f"\n\nHost resolver error details:\n{resolve_error.details}\n\n"
            "Host resolver error missing:\n" + "\n".join(resolve_error.missing) + "\n\n"
        )
    elif resolve_error is not None:
        message += f"\n\nHost resolver error details:\n{resolve_error}\n\n"

    return BuildError(message, cause=error)
