"""
Compile management functionality.

This module provides the CompileManager class which orchestrates a whole
compile: it resolves the implicit imports from the options, builds the
dependency index of the root file's import tree, and then runs the real
compile with the import injector consuming that index.
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass, field
from pathlib import Path

from .analyzer import ImportAnalyzer
from .context import BuildContext, BuildError
from .evaluator import CompileError, Evaluator, render
from .finder import ImportFinder
from .graph import DependencyGraphBuilder
from .injector import ImportInjector
from .nodes import Block, Expression, Import, String
from .options import LoaderOptions
from .parser import ParseError, parse
from .source import FileSystemSource, ReadError
from .types import DependencyIndex, Failed, ImportKind, ImportSite, Resolved, ResolvedMany


@dataclass
class CompileResult:
    """
    Outcome of one compile.

    Attributes:
        css: Compiled output, or None if the compile failed
        errors: Build errors, in report order
        warnings: Build warnings, in report order
        dependencies: Files the output depends on
        context_dependencies: Directories the output depends on
        index: Dependency index used by the compile
    """

    css: str | None
    errors: list[Exception] = field(default_factory=list)
    warnings: list[Exception] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)
    context_dependencies: list[str] = field(default_factory=list)
    index: DependencyIndex = field(default_factory=DependencyIndex)

    @property
    def ok(self) -> bool:
        return not self.errors


class CompileManager:
    """
    Compiles one style-sheet with host-aware import resolution.

    This is the main class for using the package. A manager holds the build
    context of a single compile; create a new one for every build.

    Attributes:
        resource_path: Style-sheet being compiled
        options: Options of the build
        context: Build context collecting diagnostics and dependencies
        finder: Resolution strategy chain
    """

    def __init__(
        self,
        resource_path: Path | str,
        options: LoaderOptions | None = None,
        source: FileSystemSource | None = None,
        root_context: str | None = None,
    ) -> None:
        """
        Initialize the compile manager.

        Args:
            resource_path: Style-sheet to compile
            options: Build options (defaults when not given)
            source: Source accessor (the local file system when not given)
            root_context: Project directory (the resource's directory when not given)
        """
        self.resource_path = os.path.normpath(os.path.abspath(str(resource_path)))
        self.options = options or LoaderOptions()
        self.context = BuildContext(self.resource_path, source, root_context)
        self.analyzer = ImportAnalyzer(self.options.define)
        self.finder = ImportFinder(self.context, self.options.resolution_context())

    async def analyze(self, code: str | None = None) -> DependencyIndex:
        """
        Build the dependency index of the root file without compiling it.

        Args:
            code: Source of the root file (read from disk when not given)

        Returns:
            Dependency index of the whole import tree
        """
        if code is None:
            code = await self._read_root()
        imports = await self._resolve_option_imports()
        return await self._build_index(code, imports)

    async def compile(self, code: str | None = None) -> CompileResult:
        """
        Compile the root file.

        Errors never escape: they are reported in the result, and a result
        without output means the compile itself failed.

        Args:
            code: Source of the root file (read from disk when not given)

        Returns:
            Compiled output with the build's diagnostics and dependencies
        """
        index = DependencyIndex()
        css = None

        try:
            if code is None:
                code = await self._read_root()

            # Parsed on its own: the shadow pass builds a separate tree.
            root = parse(code, self.resource_path)
            imports = await self._resolve_option_imports()
            index = await self._build_index(code, imports)

            evaluator = Evaluator(
                root,
                filename=self.resource_path,
                paths=self.finder.resolution.paths,
                include_css=self.options.include_css,
                define=self.options.define,
                import_handler=ImportInjector(index, self.context),
            )

            output = Block()
            for path in imports:
                imported = evaluator.default_import(self._implicit_import(path))
                if isinstance(imported, Block):
                    output.nodes.extend(imported.nodes)
            output.nodes.extend(evaluator.evaluate().nodes)
            css = render(output)
        except (ReadError, ParseError, CompileError) as e:
            self.context.emit_error(e)

        return CompileResult(
            css=css,
            errors=list(self.context.errors),
            warnings=list(self.context.warnings),
            dependencies=self.context.dependencies,
            context_dependencies=self.context.context_dependencies,
            index=index,
        )

    async def _read_root(self) -> str:
        data = await self.context.source.read_file(self.resource_path)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ReadError(self.resource_path, e) from e

    async def _build_index(self, code: str, imports: list[str]) -> DependencyIndex:
        builder = DependencyGraphBuilder(
            self.context, self.finder, self.analyzer, self.options.report_self_imports
        )
        return await builder.build(code, self.resource_path, imports)

    async def _resolve_option_imports(self) -> list[str]:
        """Resolve the ``imports`` option through the same strategy chain as imports."""
        sites = [
            ImportSite(self.resource_path, 0, 0, path, kind)
            for path in self.options.imports
            if (kind := self._classify_option_import(path)) != "url-only"
        ]
        results = await asyncio.gather(*(self.finder.resolve(site) for site in sites))

        resolved: list[str] = []
        for site, result in zip(sites, results):
            if isinstance(result, Resolved):
                resolved.append(result.path)
            elif isinstance(result, ResolvedMany):
                resolved.extend(result.paths)
            elif isinstance(result, Failed):
                message = f"Can't resolve '{site.original_path}' from the imports option"
                error = BuildError(f"{message}: {result.error}", cause=result.error)
                self.context.emit_error(error)

        for path in resolved:
            self.context.add_dependency(path)
        return resolved

    def _classify_option_import(self, path: str) -> ImportKind:
        # Absolute file paths are common here and are not URLs
        if os.path.isabs(path):
            return self.analyzer.classify_import(os.path.basename(path))
        return self.analyzer.classify_import(path)

    def _implicit_import(self, path: str) -> Import:
        target = String(0, 0, self.resource_path, path)
        return Import(0, 0, self.resource_path, Expression(0, 0, self.resource_path, [target]))


def compile_file(path: Path | str, options: LoaderOptions | None = None) -> CompileResult:
    """Compile a style-sheet file synchronously."""
    return asyncio.run(CompileManager(path, options).compile())
