"""
Loader configuration.

Options come from the ``[tool.stylus-import-resolver]`` table of the
project's pyproject.toml and can be overridden from the command line:

    [tool.stylus-import-resolver]
    paths = ["styles/lib"]
    include-css = true
    imports = ["styles/variables.styl"]
    define = { theme = "dark" }

    [tool.stylus-import-resolver.resolve]
    alias = { "@styles" = "./styles" }
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field, fields, replace
from pathlib import Path

from .host import HostResolverConfig
from .types import ResolutionContext

TOOL_TABLE = "stylus-import-resolver"

_RESOLVE_KEYS = {
    "condition-names": "condition_names",
    "main-fields": "main_fields",
    "main-files": "main_files",
    "extensions": "extensions",
    "alias": "alias",
    "modules": "modules",
}


@dataclass
class LoaderOptions:
    """
    Options of one build.

    Attributes:
        paths: Native search paths, tried before the importing file's directory
        include_css: Inline imported .css files
        define: Global variables available to every file
        imports: Files imported before the root file's own content
        report_self_imports: Warn when a file imports itself
        host: Host resolver configuration
    """

    paths: list[str] = field(default_factory=list)
    include_css: bool = False
    define: dict[str, str] = field(default_factory=dict)
    imports: list[str] = field(default_factory=list)
    report_self_imports: bool = False
    host: HostResolverConfig = field(default_factory=HostResolverConfig)

    def resolution_context(self) -> ResolutionContext:
        """Resolution settings of the build; relative search paths become absolute."""
        return ResolutionContext(tuple(os.path.abspath(path) for path in self.paths), self.host)

    def merged(self, **overrides) -> LoaderOptions:
        """
        Return a copy with the given options replaced.

        ``None`` values are ignored; list and dict values are appended to
        (or merged with) the current ones.

        Raises:
            ValueError: If an unknown option is given
        """
        known = {option.name for option in fields(self)}
        changes = {}

        for name, value in overrides.items():
            if name not in known:
                raise ValueError(f"Unknown option: {name}")
            if value is None:
                continue
            current = getattr(self, name)
            if isinstance(current, list):
                value = [*current, *value]
            elif isinstance(current, dict):
                value = {**current, **value}
            changes[name] = value

        return replace(self, **changes)


def load_options(project_root: Path | None) -> LoaderOptions:
    """
    Load options from pyproject.toml.

    Relative search paths and implicit imports are resolved against the
    project root.

    Args:
        project_root: Directory containing pyproject.toml, or None for defaults

    Returns:
        Loaded options; defaults when there is no configuration

    Raises:
        ValueError: If the configuration is malformed
    """
    if project_root is None:
        return LoaderOptions()

    pyproject_path = project_root / "pyproject.toml"
    if not pyproject_path.exists():
        return LoaderOptions()

    try:
        data = tomllib.loads(pyproject_path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Could not parse {pyproject_path}: {e}") from e

    table = data.get("tool", {}).get(TOOL_TABLE, {})
    if not isinstance(table, dict):
        raise ValueError(f"[tool.{TOOL_TABLE}] must be a table")

    return LoaderOptions(
        paths=[str(project_root / path) for path in _list(table, "paths")],
        include_css=bool(table.get("include-css", False)),
        define={str(name): str(value) for name, value in table.get("define", {}).items()},
        imports=[str(project_root / path) for path in _list(table, "imports")],
        report_self_imports=bool(table.get("report-self-imports", False)),
        host=_host_config(table.get("resolve", {})),
    )


def _list(table: dict, key: str) -> list[str]:
    value = table.get(key, [])
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise ValueError(f"'{key}' must be a string or a list of strings")
    return [str(item) for item in value]


def _host_config(table: dict) -> HostResolverConfig:
    if not isinstance(table, dict):
        raise ValueError(f"[tool.{TOOL_TABLE}.resolve] must be a table")

    changes = {}
    for key, value in table.items():
        if key not in _RESOLVE_KEYS:
            raise ValueError(f"Unknown resolve option: {key}")
        name = _RESOLVE_KEYS[key]
        if name == "alias":
            changes[name] = {str(alias): str(target) for alias, target in value.items()}
        else:
            changes[name] = tuple(_list(table, key))

    return replace(HostResolverConfig(), **changes)
