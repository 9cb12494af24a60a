"""
Type definitions for the package.

This module contains the core data structures used throughout the package
for representing import sites, their resolution results and the per-build
dependency index that carries those results from dependency resolution into
the real compile.
"""

from __future__ import annotations

import os
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Literal, Union

from .host import HostResolverConfig

ImportKind = Literal["literal-css", "literal-style", "bare", "url-only"]


@dataclass(frozen=True)
class ImportSite:
    """
    One import statement occurrence in one source file.

    The position is the position of the import target within the parse of
    ``filename``. The real compile parses the file again, so an import is
    matched back to its site by (line, column, original path), never by
    node identity.

    Attributes:
        filename: File containing the import
        lineno: 1-based line of the import target
        column: 1-based column of the import target
        original_path: Path as written, before any extension is appended
        kind: Classification of the path:
            - "literal-css": ends in .css
            - "literal-style": ends in .styl
            - "bare": no recognised extension, .styl is inferred
            - "url-only": never resolved as a file
    """

    filename: str
    lineno: int
    column: int
    original_path: str
    kind: ImportKind

    @property
    def key(self) -> tuple[int, int, str]:
        return (self.lineno, self.column, self.original_path)


@dataclass(frozen=True)
class Resolved:
    """The import resolved to a single file."""

    path: str


@dataclass(frozen=True)
class ResolvedMany:
    """The import expanded to several files, in resolver order."""

    paths: tuple[str, ...]


@dataclass(frozen=True)
class Failed:
    """No strategy found the import; ``error`` is the last strategy's error."""

    error: Exception


ResolutionResult = Union[Resolved, ResolvedMany, Failed]


@dataclass(frozen=True)
class DependencyRecord:
    """An import site paired with its resolution result."""

    site: ImportSite
    result: ResolutionResult

    def matches(self, lineno: int, column: int, original_path: str) -> bool:
        return self.site.key == (lineno, column, original_path)


class DependencyIndex(Mapping[str, tuple[DependencyRecord, ...]]):
    """
    Mapping from file identifier to the ordered dependency records of that file.

    Each file is recorded at most once. Files without any record are not
    present. The index lives for exactly one compile.
    """

    def __init__(self) -> None:
        self._records: dict[str, tuple[DependencyRecord, ...]] = {}

    def record(self, filename: str, records: Sequence[DependencyRecord]) -> None:
        """
        Store the records of one file.

        Raises:
            ValueError: If the file has already been recorded
        """
        if filename in self._records:
            raise ValueError(f"Dependencies of {filename} have already been recorded")
        if records:
            self._records[filename] = tuple(records)

    def find(
        self, filename: str, lineno: int, column: int, original_path: str
    ) -> DependencyRecord | None:
        """Find the record of the import at the given position with the given path."""
        for record in self._records.get(filename, ()):
            if record.matches(lineno, column, original_path):
                return record
        return None

    def as_mapping(self) -> Mapping[str, tuple[DependencyRecord, ...]]:
        """Read-only view of the underlying mapping."""
        return MappingProxyType(self._records)

    def __getitem__(self, filename: str) -> tuple[DependencyRecord, ...]:
        return self._records[filename]

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)


@dataclass(frozen=True)
class ResolutionContext:
    """
    Resolution settings fixed for a whole build.

    Attributes:
        paths: Configured native search paths
        host_config: Host resolver configuration used for fallback resolution
    """

    paths: tuple[str, ...] = ()
    host_config: HostResolverConfig = field(default_factory=HostResolverConfig)

    def search_paths(self, filename: str) -> list[str]:
        """Native search paths for imports made from ``filename``."""
        return [*self.paths, os.path.dirname(filename) or "."]
