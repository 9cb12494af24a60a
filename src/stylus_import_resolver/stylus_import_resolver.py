"""
Main entry point for the stylus-import-resolver package.

This module provides the command-line interface for the package.
It can be invoked via:
- The `stylus-import-resolver` command (after installation)
- `python -m stylus_import_resolver`
- Direct import and call to main()
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from .manager import CompileManager
from .options import load_options
from .source import ReadError
from .types import DependencyIndex, Failed, Resolved
from .utils import find_project_root


def _parse_define(values: list[str] | None) -> dict[str, str] | None:
    if not values:
        return None
    define = {}
    for item in values:
        name, separator, value = item.partition("=")
        if not separator or not name:
            raise ValueError(f"Invalid --define value {item!r}, expected NAME=VALUE")
        define[name.strip()] = value
    return define


def _print_index(index: DependencyIndex) -> None:
    print(f"\nFound imports in {len(index)} files:")
    for filename, records in index.items():
        print(f"  {filename}")
        for record in records:
            site, result = record.site, record.result
            if isinstance(result, Resolved):
                resolved = result.path
            elif isinstance(result, Failed):
                resolved = f"unresolved ({result.error})"
            else:
                resolved = ", ".join(result.paths) or "no files"
            print(f"    {site.lineno}:{site.column} {site.original_path} -> {resolved}")


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the compiler.

    Parses command-line arguments, compiles the given style-sheet and writes
    the output.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    parser = argparse.ArgumentParser(
        description="Compile a Stylus style-sheet with host-aware import resolution"
    )
    parser.add_argument("file", type=Path, help="Style-sheet to compile")
    parser.add_argument(
        "--project-root",
        type=Path,
        help="Root directory of the project (auto-detected from pyproject.toml if not specified)",
    )
    parser.add_argument(
        "--paths",
        action="append",
        help="Additional native search path. Can be specified multiple times.",
    )
    parser.add_argument(
        "--include-css",
        action="store_true",
        default=None,
        help="Inline imported .css files instead of keeping the @import",
    )
    parser.add_argument(
        "--define",
        action="append",
        help="Global variable as NAME=VALUE. Can be specified multiple times.",
    )
    parser.add_argument(
        "--import",
        action="append",
        dest="imports",
        help="File imported before the style-sheet. Can be specified multiple times.",
    )
    parser.add_argument(
        "--analyze-only",
        action="store_true",
        help="Only resolve imports and print them, don't compile",
    )
    parser.add_argument("--output", "-o", type=Path, help="Write the output to this file")

    args = parser.parse_args(argv)

    try:
        project_root = args.project_root or find_project_root(args.file.resolve().parent)
        options = load_options(project_root).merged(
            paths=[str(Path(path).resolve()) for path in args.paths or []],
            include_css=args.include_css,
            define=_parse_define(args.define),
            imports=[str(Path(path).resolve()) for path in args.imports or []],
        )

        root_context = str(project_root) if project_root else None
        manager = CompileManager(args.file, options, root_context=root_context)

        if args.analyze_only:
            index = asyncio.run(manager.analyze())
            _print_index(index)
            for error in manager.context.errors:
                print(f"Error: {error}", file=sys.stderr)
            return 1 if manager.context.errors else 0

        result = asyncio.run(manager.compile())

        for warning in result.warnings:
            print(f"Warning: {warning}", file=sys.stderr)
        for error in result.errors:
            print(f"Error: {error}", file=sys.stderr)

        if result.css is not None:
            if args.output:
                args.output.write_text(result.css + "\n", encoding="utf-8")
            else:
                print(result.css)

        return 0 if result.ok else 1

    except (OSError, ValueError, ReadError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
