"""
Build context.

The build context is the resolver's window onto the host build system: it
collects the errors and warnings a build reports, tracks every file and
directory the output depends on, gives access to source files and hands out
host resolvers.
"""

from __future__ import annotations

import os
from collections.abc import Awaitable, Callable
from dataclasses import replace

from .host import HostResolver, HostResolverConfig
from .source import FileSystemSource

Resolve = Callable[[str, str], Awaitable[str]]


class BuildError(Exception):
    """A build-level error reported for the file being compiled."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


class BuildContext:
    """
    Per-build state shared by dependency resolution and compilation.

    Attributes:
        resource_path: The style-sheet file being built
        root_context: Project directory the build runs in
        source: Accessor used to read files
        errors: Errors reported so far, in report order
        warnings: Warnings reported so far, in report order
        dependencies: Files the output depends on
        context_dependencies: Directories the output depends on
    """

    def __init__(
        self,
        resource_path: str,
        source: FileSystemSource | None = None,
        root_context: str | None = None,
    ) -> None:
        self.resource_path = os.path.normpath(resource_path)
        self.root_context = root_context or os.path.dirname(self.resource_path)
        self.source = source or FileSystemSource()
        self.errors: list[Exception] = []
        self.warnings: list[Exception] = []
        self._dependencies: dict[str, None] = {}
        self._context_dependencies: dict[str, None] = {}

    @property
    def dependencies(self) -> list[str]:
        return list(self._dependencies)

    @property
    def context_dependencies(self) -> list[str]:
        return list(self._context_dependencies)

    def emit_error(self, error: Exception) -> None:
        self.errors.append(error)

    def emit_warning(self, warning: Exception) -> None:
        self.warnings.append(warning)

    def add_dependency(self, path: str) -> None:
        """Register a file whose changes must invalidate the build."""
        self._dependencies[os.path.normpath(path)] = None

    def add_context_dependency(self, path: str) -> None:
        """Register a directory whose changes must invalidate the build."""
        self._context_dependencies[os.path.normpath(path)] = None

    def get_resolve(self, config: HostResolverConfig, **overrides) -> Resolve:
        """
        Create a host resolver function.

        Args:
            config: Base resolver configuration
            **overrides: Configuration fields to replace, e.g. ``resolve_to_context=True``

        Returns:
            Async function taking (context directory, request) and returning a path
        """
        resolver = HostResolver(replace(config, **overrides) if overrides else config)
        return resolver.resolve
