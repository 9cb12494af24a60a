"""Tests for the host resolver."""

from __future__ import annotations

import asyncio
import json

import pytest

from stylus_import_resolver.host import HostResolveError, HostResolver, HostResolverConfig


@pytest.fixture
def project(write_files):
    return write_files(
        {
            "styles/main.styl": "",
            "styles/colors.styl": "",
            "styles/vendor.css": "",
            "styles/script.js": "",
            "styles/widgets/index.styl": "",
            "node_modules/theme/package.json": json.dumps(
                {"main": "index.js", "style": "dist/theme.styl"}
            ),
            "node_modules/theme/dist/theme.styl": "",
            "node_modules/theme/mixins/buttons.styl": "",
            "node_modules/@acme/kit/package.json": json.dumps(
                {
                    "exports": {
                        ".": {"stylus": "./src/kit.styl", "default": "./index.js"},
                        "./grid": {"style": "./src/grid.styl"},
                    }
                }
            ),
            "node_modules/@acme/kit/src/kit.styl": "",
            "node_modules/@acme/kit/src/grid.styl": "",
        }
    )


def test_relative_request_probes_extensions(project) -> None:
    resolver = HostResolver()

    resolved = resolver.resolve_sync(str(project / "styles"), "./colors")

    assert resolved == str(project / "styles" / "colors.styl")


def test_directory_uses_main_files(project) -> None:
    resolver = HostResolver()

    resolved = resolver.resolve_sync(str(project / "styles"), "./widgets")

    assert resolved == str(project / "styles" / "widgets" / "index.styl")


def test_package_main_field_order(project) -> None:
    resolver = HostResolver()

    resolved = resolver.resolve_sync(str(project / "styles"), "theme")

    assert resolved == str(project / "node_modules" / "theme" / "dist" / "theme.styl")


def test_package_subpath(project) -> None:
    resolver = HostResolver()

    resolved = resolver.resolve_sync(str(project / "styles"), "theme/mixins/buttons")

    assert resolved == str(project / "node_modules" / "theme" / "mixins" / "buttons.styl")


def test_exports_conditions(project) -> None:
    resolver = HostResolver()
    context = str(project / "styles")

    assert resolver.resolve_sync(context, "@acme/kit") == str(
        project / "node_modules" / "@acme" / "kit" / "src" / "kit.styl"
    )
    assert resolver.resolve_sync(context, "@acme/kit/grid") == str(
        project / "node_modules" / "@acme" / "kit" / "src" / "grid.styl"
    )


def test_unexported_subpath_fails(project) -> None:
    resolver = HostResolver()

    with pytest.raises(HostResolveError) as excinfo:
        resolver.resolve_sync(str(project / "styles"), "@acme/kit/private")

    assert "not exported" in excinfo.value.details


def test_alias(project) -> None:
    resolver = HostResolver(HostResolverConfig(alias={"@styles": str(project / "styles")}))

    resolved = resolver.resolve_sync(str(project), "@styles/colors")

    assert resolved == str(project / "styles" / "colors.styl")


def test_restrictions_reject_other_files(project) -> None:
    resolver = HostResolver()

    with pytest.raises(HostResolveError):
        resolver.resolve_sync(str(project / "styles"), "./script.js")


def test_resolve_to_context_returns_directories(project) -> None:
    resolver = HostResolver(HostResolverConfig(resolve_to_context=True))
    context = str(project / "styles")

    assert resolver.resolve_sync(context, "./widgets") == str(project / "styles" / "widgets")
    assert resolver.resolve_sync(context, "theme/mixins") == str(
        project / "node_modules" / "theme" / "mixins"
    )


def test_failure_lists_missing_candidates(project) -> None:
    resolver = HostResolver()

    with pytest.raises(HostResolveError) as excinfo:
        asyncio.run(resolver.resolve(str(project / "styles"), "./missing"))

    error = excinfo.value
    assert error.request == "./missing"
    assert str(project / "styles" / "missing.styl") in error.missing
    assert "Can't resolve './missing'" in str(error)
