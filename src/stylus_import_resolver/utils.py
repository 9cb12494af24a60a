"""
Utility functions for native file lookup, URL detection and project discovery.

The lookup helpers implement the preprocessor's own resolution rules: a path
is joined with every search path in turn, glob patterns expand to their
sorted matches, and a directory can stand in for its index file.
"""

from __future__ import annotations

import glob
import json
import os
import re
from collections.abc import Sequence
from pathlib import Path

STYLE_EXTENSION = ".styl"
CSS_EXTENSION = ".css"

URL_RE = re.compile(r"^(?:url\s*\(\s*)?['\"]?(?:[#/]|(?:https?:)?//)", re.IGNORECASE)
IS_NATIVE_WIN32_PATH = re.compile(r"^[a-z]:[/\\]|^\\\\", re.IGNORECASE)
ABSOLUTE_SCHEME = re.compile(r"^[A-Za-z0-9+\-.]+:")


def is_url_import(path: str) -> bool:
    """
    Check whether an import path is a URL that must never be resolved as a file.

    Matches fragment references, absolute paths, scheme-relative URLs and
    http(s) URLs, optionally wrapped in ``url(...)``.
    """
    return bool(URL_RE.match(path))


def get_url_type(source: str) -> str:
    """
    Classify a path or URL.

    Returns:
        One of "scheme-relative", "path-absolute", "absolute" or "path-relative"
    """
    if source.startswith("/"):
        if source.startswith("//"):
            return "scheme-relative"
        return "path-absolute"

    if IS_NATIVE_WIN32_PATH.match(source):
        return "path-absolute"

    return "absolute" if ABSOLUTE_SCHEME.match(source) else "path-relative"


def find(path: str, paths: Sequence[str], ignore: str | None = None) -> list[str] | None:
    """
    Find ``path`` in the first search path that contains it.

    Glob patterns expand to every match within that search path, sorted.
    The ``ignore`` file (normally the importing file) never matches, so a
    file cannot find itself.

    Args:
        path: Path as written in the import, extension already applied
        paths: Ordered search directories
        ignore: File to skip

    Returns:
        List of matching files, or None if no search path has a match
    """
    ignored = os.path.normpath(ignore) if ignore else None

    for directory in paths:
        lookup = os.path.normpath(os.path.join(directory, path))
        if lookup == ignored:
            continue

        if glob.has_magic(lookup):
            found = sorted(
                match
                for match in glob.glob(lookup)
                if os.path.isfile(match) and os.path.normpath(match) != ignored
            )
        else:
            found = [lookup] if os.path.isfile(lookup) else []

        if found:
            return found

    return None


def lookup_index(name: str, paths: Sequence[str], ignore: str | None = None) -> list[str] | None:
    """
    Look up a directory import.

    Tries ``name/index.styl``, then ``name/<basename>.styl``, then a package
    under ``node_modules`` (its ``package.json`` ``main`` entry, or its index).

    Args:
        name: Import path without an appended extension
        paths: Ordered search directories
        ignore: File to skip

    Returns:
        List of matching files, or None if nothing matched
    """
    found = find(os.path.join(name, "index" + STYLE_EXTENSION), paths, ignore)

    if not found:
        basename = re.sub(r"\.styl$", "", os.path.basename(name.rstrip("/")), flags=re.IGNORECASE)
        if basename:
            found = find(os.path.join(name, basename + STYLE_EXTENSION), paths, ignore)

    if not found and "node_modules" not in name:
        found = _lookup_package(os.path.join("node_modules", name), paths, ignore)

    return found


def _lookup_package(directory: str, paths: Sequence[str], ignore: str | None) -> list[str] | None:
    package_json = find(os.path.join(directory, "package.json"), paths, ignore)

    if not package_json:
        if directory.lower().endswith(STYLE_EXTENSION):
            return lookup_index(directory, paths, ignore)
        return _lookup_package(directory + STYLE_EXTENSION, paths, ignore)

    try:
        main = json.loads(Path(package_json[0]).read_text(encoding="utf-8")).get("main")
    except (OSError, ValueError, AttributeError):
        main = None

    if main:
        return find(os.path.join(directory, main), paths, ignore)
    return lookup_index(directory, paths, ignore)


def find_project_root(start_path: Path | None = None) -> Path | None:
    """
    Find the project root by searching for pyproject.toml in parent directories.

    Starts from the given path (or current directory) and walks up the directory
    tree until it finds a directory containing pyproject.toml.

    Args:
        start_path: Starting directory for the search (default: current directory)

    Returns:
        Path to the project root directory, or None if not found
    """
    if start_path is None:
        start_path = Path.cwd()

    current = Path(start_path).resolve()

    while current != current.parent:
        if (current / "pyproject.toml").exists():
            return current
        current = current.parent

    if (current / "pyproject.toml").exists():
        return current

    return None
