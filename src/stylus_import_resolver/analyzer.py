"""
Import analysis functionality.

This module provides the ImportAnalyzer class which is responsible for:
- Extracting import statements from a parsed style-sheet in document order
- Evaluating import targets that are variables or concatenations
- Classifying imports as literal CSS, literal style, bare or URL-only
"""

from __future__ import annotations

from collections.abc import Mapping

from .evaluator import CSS_LITERAL_RE, STYLE_LITERAL_RE, Evaluator
from .nodes import Assignment, Block, Call, Import, Node, literal_value, walk
from .types import ImportKind, ImportSite
from .utils import is_url_import


class ImportAnalyzer:
    """
    Extracts and classifies the import statements of a style-sheet.

    Import targets that are not plain strings are evaluated on their own,
    against the variables assigned earlier in the same file and the
    ``define`` globals. The file itself is never evaluated.

    Attributes:
        define: Global variables available to every file
    """

    def __init__(self, define: Mapping[str, str] | None = None) -> None:
        """
        Initialize the import analyzer.

        Args:
            define: Global variables available to every file
        """
        self.define = dict(define or {})

    def extract_imports(self, root: Block, filename: str) -> list[ImportSite]:
        """
        Extract the import sites of a parsed file.

        ``url(...)`` imports, URL-like paths and empty paths are left out.

        Args:
            root: Parsed file
            filename: Identifier of the parsed file

        Returns:
            Import sites in document order
        """
        evaluator = Evaluator(root, filename=filename, define=self.define)
        scope: dict[str, Node] = dict(evaluator.scope)
        sites: list[ImportSite] = []

        for node in walk(root):
            if isinstance(node, Assignment):
                scope[node.name] = evaluator.evaluate_target(node.value, scope)
                continue

            if not isinstance(node, Import):
                continue

            target = evaluator.evaluate_target(node.path, scope)
            if isinstance(target, Call) and target.name == "url":
                continue

            original_path = literal_value(target)
            if not original_path:
                continue

            kind = self.classify_import(original_path)
            if kind == "url-only":
                continue

            sites.append(ImportSite(filename, target.lineno, target.column, original_path, kind))

        return sites

    @staticmethod
    def classify_import(path: str) -> ImportKind:
        """
        Classify an import path.

        Returns:
            "url-only" for URLs, "literal-css" for .css paths, "literal-style"
            for .styl paths (any case) and "bare" otherwise
        """
        if is_url_import(path):
            return "url-only"
        if CSS_LITERAL_RE.search(path):
            return "literal-css"
        if STYLE_LITERAL_RE.search(path):
            return "literal-style"
        return "bare"
