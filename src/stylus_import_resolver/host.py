"""
Host build-system resolver.

This module provides a file-system implementation of the general-purpose
module resolver a build system offers: relative and absolute requests,
aliases, packages under ``node_modules`` (``exports`` with condition names,
main fields, main files) and extension probing. It is the fallback used when
the preprocessor's own lookup rules cannot find an import.

A resolver configured with ``resolve_to_context`` resolves directories
instead of files; it is used to expand directory and glob imports.
"""

from __future__ import annotations

import asyncio
import json
import os
import re
from dataclasses import dataclass, field
from pathlib import Path

SCOPED_PACKAGE_RE = re.compile(r"^(@[^/]+/[^/]+)(?:/(.*))?$")
PACKAGE_RE = re.compile(r"^([^/@][^/]*)(?:/(.*))?$")


@dataclass(frozen=True)
class HostResolverConfig:
    """
    Configuration of the host resolver.

    Attributes:
        condition_names: Package ``exports`` conditions to accept, in preference order
        main_fields: ``package.json`` fields naming a package's entry point
        main_files: File names (without extension) used for directories
        extensions: Extensions probed when a request names a file without one
        restrictions: Regular expressions a resolved file must match
        alias: Request prefixes replaced before resolution
        modules: Directory names searched for packages
        resolve_to_context: Resolve directories instead of files
    """

    condition_names: tuple[str, ...] = ("styl", "stylus", "style")
    main_fields: tuple[str, ...] = ("styl", "style", "stylus", "main")
    main_files: tuple[str, ...] = ("index",)
    extensions: tuple[str, ...] = (".styl", ".css")
    restrictions: tuple[str, ...] = (r"\.(css|styl)$",)
    alias: dict[str, str] = field(default_factory=dict, hash=False)
    modules: tuple[str, ...] = ("node_modules",)
    resolve_to_context: bool = False


class HostResolveError(Exception):
    """
    Raised when the host resolver cannot resolve a request.

    Attributes:
        request: Request that failed
        context: Directory the request was resolved from
        details: Human-readable trace of what was tried
        missing: Candidate paths that did not exist
    """

    def __init__(
        self,
        request: str,
        context: str,
        details: list[str] | None = None,
        missing: list[str] | None = None,
        message: str | None = None,
    ) -> None:
        self.request = request
        self.context = context
        self.details = "\n".join(details or [])
        self.missing = list(missing or [])
        super().__init__(message or f"Can't resolve '{request}' in '{context}'")


class _Trace:
    """Collects what a single resolution attempt tried."""

    def __init__(self) -> None:
        self.details: list[str] = []
        self.missing: list[str] = []

    def miss(self, path: str, reason: str = "doesn't exist") -> None:
        self.details.append(f"  {path} {reason}")
        self.missing.append(path)


class HostResolver:
    """
    Resolves requests the way the host build system does.

    Attributes:
        config: Resolver configuration
    """

    def __init__(self, config: HostResolverConfig | None = None) -> None:
        self.config = config or HostResolverConfig()
        self._restrictions = [
            re.compile(pattern, re.IGNORECASE) for pattern in self.config.restrictions
        ]

    async def resolve(self, context: str, request: str) -> str:
        """
        Resolve ``request`` from the directory ``context``.

        Raises:
            HostResolveError: If the request cannot be resolved
        """
        return await asyncio.to_thread(self.resolve_sync, context, request)

    def resolve_sync(self, context: str, request: str) -> str:
        """Blocking variant of :meth:`resolve`."""
        trace = _Trace()
        target = self._apply_alias(request)
        mode = "directory" if self.config.resolve_to_context else "file"
        trace.details.append(f"resolve '{request}' in '{context}' ({mode})")

        if os.path.isabs(target) or target in (".", "..") or target.startswith(("./", "../")):
            result = self._resolve_path(os.path.join(context, target), trace, target.endswith("/"))
        else:
            result = self._resolve_module(context, target, trace)

        if result is None:
            raise HostResolveError(request, context, trace.details, trace.missing)

        return os.path.normpath(result)

    def _apply_alias(self, request: str) -> str:
        for name, replacement in self.config.alias.items():
            if request == name or request.startswith(name + "/"):
                return replacement + request[len(name) :]
        return request

    def _resolve_path(self, path: str, trace: _Trace, directory_only: bool = False) -> str | None:
        path = os.path.normpath(path)

        if self.config.resolve_to_context:
            if os.path.isdir(path):
                return path
            trace.miss(path, "is not a directory")
            return None

        if not directory_only:
            found = self._resolve_as_file(path, trace)
            if found:
                return found

        if os.path.isdir(path):
            return self._resolve_as_directory(path, trace)

        trace.miss(path, "is not a directory")
        return None

    def _resolve_as_file(self, path: str, trace: _Trace) -> str | None:
        for candidate in (path, *(path + extension for extension in self.config.extensions)):
            if not os.path.isfile(candidate):
                trace.miss(candidate)
                continue
            if not self._is_allowed(candidate):
                trace.miss(candidate, "doesn't match the restrictions")
                continue
            return candidate
        return None

    def _resolve_as_directory(self, directory: str, trace: _Trace, depth: int = 0) -> str | None:
        package = self._read_package(directory)

        if package and depth < 2:
            for main_field in self.config.main_fields:
                entry = package.get(main_field)
                if not isinstance(entry, str) or not entry:
                    continue
                target = os.path.normpath(os.path.join(directory, entry))
                found = self._resolve_as_file(target, trace)
                if not found and os.path.isdir(target) and target != directory:
                    found = self._resolve_as_directory(target, trace, depth + 1)
                if found:
                    return found

        for main_file in self.config.main_files:
            found = self._resolve_as_file(os.path.join(directory, main_file), trace)
            if found:
                return found

        return None

    def _resolve_module(self, context: str, request: str, trace: _Trace) -> str | None:
        match = SCOPED_PACKAGE_RE.match(request) or PACKAGE_RE.match(request)
        if not match:
            trace.details.append(f"  '{request}' is not a valid package request")
            return None

        name, subpath = match.group(1), match.group(2) or ""

        for directory in self._module_directories(context):
            package_dir = os.path.join(directory, name)
            if not os.path.isdir(package_dir):
                if not subpath and not self.config.resolve_to_context:
                    found = self._resolve_as_file(package_dir, trace)
                    if found:
                        return found
                else:
                    trace.miss(package_dir)
                continue

            package = self._read_package(package_dir)
            if package and "exports" in package and not self.config.resolve_to_context:
                entry = self._exports_target(package["exports"], "./" + subpath if subpath else ".")
                if entry is None:
                    trace.details.append(
                        f"  package path '{subpath or '.'}' is not exported from {package_dir}"
                    )
                    return None
                return self._resolve_path(os.path.join(package_dir, entry), trace)

            return self._resolve_path(
                os.path.join(package_dir, subpath), trace, request.endswith("/")
            )

        return None

    def _module_directories(self, context: str) -> list[str]:
        directories = []
        current = Path(context).resolve()
        for folder in (current, *current.parents):
            for module in self.config.modules:
                candidate = folder / module
                if candidate.is_dir():
                    directories.append(str(candidate))
        return directories

    def _exports_target(self, exports: object, key: str) -> str | None:
        if isinstance(exports, dict) and any(name.startswith(".") for name in exports):
            return self._pick_condition(exports.get(key))
        if key == ".":
            return self._pick_condition(exports)
        return None

    def _pick_condition(self, entry: object) -> str | None:
        if isinstance(entry, str):
            return entry
        if isinstance(entry, list):
            for item in entry:
                picked = self._pick_condition(item)
                if picked:
                    return picked
        if isinstance(entry, dict):
            for condition, value in entry.items():
                if condition in self.config.condition_names or condition == "default":
                    picked = self._pick_condition(value)
                    if picked:
                        return picked
        return None

    def _is_allowed(self, path: str) -> bool:
        return all(restriction.search(path) for restriction in self._restrictions)

    @staticmethod
    def _read_package(directory: str) -> dict | None:
        package_json = os.path.join(directory, "package.json")
        if not os.path.isfile(package_json):
            return None
        try:
            data = json.loads(Path(package_json).read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return None
        return data if isinstance(data, dict) else None
