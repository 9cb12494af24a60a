"""Tests for import extraction and classification."""

from __future__ import annotations

import pytest

from stylus_import_resolver import ImportAnalyzer, ImportSite
from stylus_import_resolver.parser import parse


def extract(source: str, define: dict[str, str] | None = None) -> list[ImportSite]:
    return ImportAnalyzer(define).extract_imports(parse(source, "/p/main.styl"), "/p/main.styl")


@pytest.mark.parametrize(
    "path, kind",
    [
        ("colors", "bare"),
        ("./partials/grid", "bare"),
        ("colors.styl", "literal-style"),
        ("COLORS.STYL", "literal-style"),
        ("vendor.css", "literal-css"),
        ("vendor.CSS", "bare"),
        ("~bootstrap/dist/bootstrap.css", "literal-css"),
        ("http://example.com/x.css", "url-only"),
        ("//cdn.example.com/x", "url-only"),
        ("#anchor", "url-only"),
    ],
)
def test_classify_import(path: str, kind: str) -> None:
    assert ImportAnalyzer.classify_import(path) == kind


def test_sites_are_in_document_order() -> None:
    sites = extract('@import "b"\n.a {}\n@require "c.styl"; @import "d.css"\n')

    assert [(site.original_path, site.kind) for site in sites] == [
        ("b", "bare"),
        ("c.styl", "literal-style"),
        ("d.css", "literal-css"),
    ]
    assert [(site.lineno, site.column) for site in sites] == [(1, 9), (3, 10), (3, 28)]
    assert all(site.filename == "/p/main.styl" for site in sites)


def test_url_imports_are_excluded() -> None:
    sites = extract(
        '@import url("theme.css")\n'
        '@import "http://example.com/x.css"\n'
        '@import "/static/x.css"\n'
        '@import "kept"\n'
    )

    assert [site.original_path for site in sites] == ["kept"]


def test_empty_path_is_skipped() -> None:
    assert extract('@import ""') == []


def test_identifier_without_binding_uses_its_name() -> None:
    sites = extract("@import nib")

    assert sites[0].original_path == "nib"
    assert sites[0].kind == "bare"


def test_identifier_bound_by_earlier_assignment() -> None:
    sites = extract('theme = "themes/dark"\n@import theme\n')

    assert sites[0].original_path == "themes/dark"
    # the position is where the import target is written
    assert (sites[0].lineno, sites[0].column) == (2, 9)


def test_assignment_after_import_is_not_visible() -> None:
    sites = extract('@import theme\ntheme = "themes/dark"\n')

    assert sites[0].original_path == "theme"


def test_define_and_concatenation() -> None:
    sites = extract('@import "themes/" + theme', define={"theme": "light"})

    assert sites[0].original_path == "themes/light"
    assert sites[0].kind == "bare"
