"""
Import resolution functionality.

This module provides the ImportFinder class which turns one import site into
a resolution result. The preprocessor's own lookup rules are tried first so
that its libraries resolve exactly as in a standalone compile; the host
build system's resolver is the fallback, and is also what expands directory
and glob imports into several files.
"""

from __future__ import annotations

import asyncio
import glob
import os
import re
from pathlib import Path

from .context import BuildContext, Resolve
from .evaluator import STYLE_LITERAL_RE
from .host import HostResolveError
from .types import Failed, ImportSite, ResolutionContext, ResolutionResult, Resolved, ResolvedMany
from .utils import STYLE_EXTENSION, find, lookup_index

# A `~` makes the request a module request
MODULE_REQUEST_RE = re.compile(r"^[^?]*~")
IS_MODULE_IMPORT = re.compile(r"^~([^/]+|[^/]+/|@[^/]+[/][^/]+|@[^/]+/?|@[^/]+[/][^/]+/)$")


def get_possible_requests(filename: str) -> list[str]:
    """
    Build the requests tried against the host resolver for an import path.

    ``~package`` becomes a package request (a bare package name gets a
    trailing slash so that it resolves as a directory), and the path is also
    tried as a relative request.
    """
    request = filename

    if MODULE_REQUEST_RE.match(filename):
        request = MODULE_REQUEST_RE.sub("", request)

    if IS_MODULE_IMPORT.match(filename) and not request.endswith("/"):
        request += "/"

    return list(dict.fromkeys([request, f"./{filename}"]))


def get_glob_base(pattern: str) -> str:
    """Leading part of a glob pattern that contains no magic characters."""
    base: list[str] = []
    for segment in pattern.split("/"):
        if glob.has_magic(segment):
            break
        base.append(segment)
    return "/".join(base)


class ImportFinder:
    """
    Resolves import sites through the ordered strategy chain.

    1. Native lookup on the search paths (``.styl`` appended to bare paths)
    2. Native index lookup, for bare paths only
    3. The host resolver, relative to the importing file

    Attributes:
        context: Build the resolution runs for
        resolution: Search paths and host resolver configuration
    """

    def __init__(self, context: BuildContext, resolution: ResolutionContext) -> None:
        self.context = context
        self.resolution = resolution
        self.file_resolve = context.get_resolve(resolution.host_config)
        self.context_resolve = context.get_resolve(resolution.host_config, resolve_to_context=True)

    async def resolve(self, site: ImportSite) -> ResolutionResult:
        """
        Resolve one import site.

        Resolution failures are returned as Failed, never raised.

        Raises:
            ValueError: If the site is a URL-only import
        """
        if site.kind == "url-only":
            raise ValueError(f"URL import {site.original_path!r} cannot be resolved to a file")

        found = self.find_native(site)
        if found:
            if len(found) == 1 and not glob.has_magic(site.original_path):
                return Resolved(found[0])
            return ResolvedMany(tuple(found))

        try:
            return await self.resolve_filename(os.path.dirname(site.filename), site.original_path)
        except HostResolveError as e:
            return Failed(e)

    def find_native(self, site: ImportSite) -> list[str] | None:
        """Look the site up with the preprocessor's own rules."""
        paths = self.resolution.search_paths(site.filename)
        path = site.original_path

        if site.kind != "bare":
            return find(path, paths, site.filename)

        return find(path + STYLE_EXTENSION, paths, site.filename) or lookup_index(
            path, paths, site.filename
        )

    async def resolve_filename(self, context_dir: str, filename: str) -> ResolutionResult:
        """
        Resolve an import path with the host resolver.

        Files are tried first. Glob patterns then expand from their base
        directory, and directories expand to the style files they contain.

        Raises:
            HostResolveError: If nothing can be resolved
        """
        possible_requests = get_possible_requests(filename)

        try:
            return Resolved(
                await self._resolve_requests(context_dir, possible_requests, self.file_resolve)
            )
        except HostResolveError as error:
            if glob.has_magic(filename):
                return ResolvedMany(await self._resolve_glob(context_dir, filename))

            try:
                directory = await self._resolve_requests(
                    context_dir, possible_requests, self.context_resolve
                )
            except HostResolveError:
                raise error from None

            if not self.context.source.is_directory(directory):
                raise error
            files = await asyncio.to_thread(_style_files, directory)
            if not files:
                raise error

            self.context.add_context_dependency(directory)
            return ResolvedMany(tuple(files))

    async def _resolve_glob(self, context_dir: str, pattern: str) -> tuple[str, ...]:
        base = get_glob_base(pattern)

        if not MODULE_REQUEST_RE.sub("", base):
            raise HostResolveError(
                pattern,
                context_dir,
                message=(
                    'Glob resolving without a glob base ("~**/*") is not supported, '
                    'please specify a glob base ("~package/**/*")'
                ),
            )

        directory = await self._resolve_requests(
            context_dir, get_possible_requests(base), self.context_resolve
        )
        if not self.context.source.is_directory(directory):
            raise HostResolveError(
                pattern, context_dir, message=f"Glob base {directory} is not a directory"
            )
        self.context.add_context_dependency(directory)

        files = await asyncio.to_thread(_expand_glob, directory, pattern[len(base) :].lstrip("/"))
        return tuple(files)

    @staticmethod
    async def _resolve_requests(context_dir: str, requests: list[str], resolve: Resolve) -> str:
        """Try each request in turn; the last failure is raised."""
        for index, request in enumerate(requests):
            try:
                return await resolve(context_dir, request)
            except HostResolveError:
                if index == len(requests) - 1:
                    raise
        raise HostResolveError(requests[0] if requests else "", context_dir)


def _style_files(directory: str) -> list[str]:
    return sorted(
        str(path)
        for path in Path(directory).iterdir()
        if path.is_file() and STYLE_LITERAL_RE.search(path.name)
    )


def _expand_glob(directory: str, pattern: str) -> list[str]:
    return sorted(
        str(path)
        for path in Path(directory).glob(pattern or "*")
        if path.is_file() and STYLE_LITERAL_RE.search(path.name)
    )
