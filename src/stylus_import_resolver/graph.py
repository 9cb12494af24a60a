"""
Dependency graph building.

This module provides the DependencyGraphBuilder class which resolves every
import reachable from a root style-sheet before the real compile starts.
Each file is parsed, its imports are extracted and resolved concurrently,
and every resolved file is processed the same way. The result is the
dependency index the import injector consumes during the real compile.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Iterable

from .analyzer import ImportAnalyzer
from .context import BuildContext, BuildError
from .finder import ImportFinder
from .parser import ParseError, parse
from .source import ReadError
from .types import DependencyIndex, DependencyRecord, Resolved, ResolvedMany


class DependencyGraphBuilder:
    """
    Builds the dependency index of a whole import tree.

    Every file is processed at most once per build, whatever the number of
    files importing it. A file only waits for the files it was first to
    discover, so import cycles cannot make two files wait on each other.

    Parse, read and resolution failures never stop the walk: parse and read
    failures are reported on the build context, resolution failures are
    recorded in the index.

    Attributes:
        context: Build the index is created for
        finder: Strategy chain used to resolve each import
        analyzer: Extracts import sites from parsed files
        report_self_imports: Warn about files that import themselves
    """

    def __init__(
        self,
        context: BuildContext,
        finder: ImportFinder,
        analyzer: ImportAnalyzer | None = None,
        report_self_imports: bool = False,
    ) -> None:
        self.context = context
        self.finder = finder
        self.analyzer = analyzer or ImportAnalyzer()
        self.report_self_imports = report_self_imports
        self.index = DependencyIndex()
        self._tasks: dict[str, asyncio.Task[None]] = {}

    @property
    def visited_files(self) -> list[str]:
        """Files processed so far, in discovery order."""
        return list(self._tasks)

    async def build(
        self, code: str, filename: str, extra_files: Iterable[str] = ()
    ) -> DependencyIndex:
        """
        Resolve the whole import tree of a root file.

        Args:
            code: Source text of the root file
            filename: Identifier of the root file
            extra_files: Files imported implicitly alongside the root file

        Returns:
            Dependency index of every file with at least one resolved import
        """
        self.index = DependencyIndex()
        self._tasks = {}

        roots = [self._schedule(os.path.normpath(filename), code)]
        roots.extend(self._schedule(os.path.normpath(path)) for path in extra_files)
        await asyncio.gather(*(task for task in roots if task is not None))

        return self.index

    def _schedule(self, filename: str, code: str | None = None) -> asyncio.Task[None] | None:
        # No await between the check and the insert: a file is started once.
        if filename in self._tasks:
            return None
        task = asyncio.create_task(self._process(filename, code))
        self._tasks[filename] = task
        return task

    async def _process(self, filename: str, code: str | None) -> None:
        if code is None:
            code = await self._read(filename)
            if code is None:
                return

        try:
            root = parse(code, filename)
        except ParseError as e:
            self.context.emit_error(e)
            return

        sites = self.analyzer.extract_imports(root, filename)
        results = await asyncio.gather(*(self.finder.resolve(site) for site in sites))

        records: list[DependencyRecord] = []
        spawned: list[asyncio.Task[None]] = []

        for site, result in zip(sites, results):
            if isinstance(result, Resolved):
                if os.path.normpath(result.path) == filename:
                    if self.report_self_imports:
                        self.context.emit_warning(
                            BuildError(
                                f"{filename}:{site.lineno}:{site.column}: "
                                f"'{site.original_path}' imports the file itself and was skipped"
                            )
                        )
                    continue
                spawned.extend(self._follow([result.path], filename))
            elif isinstance(result, ResolvedMany):
                spawned.extend(self._follow(result.paths, filename))

            records.append(DependencyRecord(site, result))

        await asyncio.gather(*spawned)

        self.index.record(filename, records)

    def _follow(self, paths: Iterable[str], importer: str) -> list[asyncio.Task[None]]:
        tasks = []
        for path in paths:
            path = os.path.normpath(path)
            if path == importer:
                continue
            self.context.add_dependency(path)
            task = self._schedule(path)
            if task is not None:
                tasks.append(task)
        return tasks

    async def _read(self, filename: str) -> str | None:
        try:
            data = await self.context.source.read_file(filename)
            return data.decode("utf-8")
        except ReadError as e:
            self.context.emit_error(e)
        except UnicodeDecodeError as e:
            self.context.emit_error(ReadError(filename, e))
        return None
