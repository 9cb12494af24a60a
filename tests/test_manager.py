"""End-to-end compile tests."""

from __future__ import annotations

import asyncio
from pathlib import Path

from stylus_import_resolver import (
    CompileManager,
    Failed,
    HostResolveError,
    LoaderOptions,
    Resolved,
    ResolvedMany,
    compile_file,
)
from stylus_import_resolver.parser import ParseError
from stylus_import_resolver.source import ReadError


def compile_main(root: Path, options: LoaderOptions | None = None, name: str = "a.styl"):
    return asyncio.run(CompileManager(root / name, options).compile())


def test_import_from_search_path(write_files) -> None:
    root = write_files(
        {
            "a.styl": '.a { color: red }\n@import "b"\n',
            "lib/b.styl": ".b { color: blue }\n",
        }
    )

    result = compile_main(root, LoaderOptions(paths=[str(root / "lib")]))

    assert result.ok
    assert result.css == ".a { color: red }\n.b { color: blue }"
    assert list(result.index) == [str(root / "a.styl")]
    (record,) = result.index[str(root / "a.styl")]
    assert (record.site.lineno, record.site.column) == (2, 9)
    assert record.result == Resolved(str(root / "lib" / "b.styl"))
    assert result.dependencies == [str(root / "lib" / "b.styl")]


def test_url_import_passes_through(write_files) -> None:
    root = write_files({"a.styl": '@import "http://example.com/x.css"\n'})

    result = compile_main(root)

    assert result.ok
    assert result.css == '@import "http://example.com/x.css"'
    assert len(result.index) == 0
    assert result.dependencies == []


def test_unresolvable_import_reports_both_errors(write_files) -> None:
    root = write_files({"a.styl": '@import "missing"\n'})

    result = compile_main(root)

    (record,) = result.index[str(root / "a.styl")]
    assert isinstance(record.result, Failed)
    assert isinstance(record.result.error, HostResolveError)
    assert not result.ok
    assert len(result.errors) == 1
    message = str(result.errors[0])
    assert "failed to locate @import file missing" in message
    assert "Host resolver error" in message
    assert result.css == ""


def test_directory_import_expands_in_order(write_files) -> None:
    root = write_files(
        {
            "a.styl": '@import "./pkgdir"\n',
            "pkgdir/c3.styl": ".c3 {}\n",
            "pkgdir/a1.styl": ".a1 {}\n",
            "pkgdir/b2.styl": ".b2 {}\n",
        }
    )

    result = compile_main(root)

    pkgdir = root / "pkgdir"
    (record,) = result.index[str(root / "a.styl")]
    assert record.result == ResolvedMany(
        (str(pkgdir / "a1.styl"), str(pkgdir / "b2.styl"), str(pkgdir / "c3.styl"))
    )
    assert result.css == ".a1 {}\n.b2 {}\n.c3 {}"
    assert str(pkgdir) in result.context_dependencies
    assert result.ok


def test_package_import(write_files) -> None:
    root = write_files(
        {
            "a.styl": '@import "~kit"\n.a {}\n',
            "node_modules/kit/package.json": '{"stylus": "src/kit.styl"}',
            "node_modules/kit/src/kit.styl": '@import "mixins"\n',
            "node_modules/kit/src/mixins.styl": ".mixins {}\n",
        }
    )

    result = compile_main(root)

    assert result.ok
    assert result.css == ".mixins {}\n.a {}"
    assert result.dependencies == [
        str(root / "node_modules" / "kit" / "src" / "kit.styl"),
        str(root / "node_modules" / "kit" / "src" / "mixins.styl"),
    ]


def test_define_is_used_for_resolution(write_files) -> None:
    root = write_files(
        {
            "a.styl": '@import "themes/" + theme\n',
            "themes/dark.styl": ".dark {}\n",
        }
    )

    result = compile_main(root, LoaderOptions(define={"theme": "dark"}))

    assert result.ok
    assert result.css == ".dark {}"
    assert result.dependencies == [str(root / "themes" / "dark.styl")]


def test_implicit_imports_come_first(write_files) -> None:
    root = write_files(
        {
            "a.styl": ".main {}\n",
            "vars.styl": '@import "colors"\n',
            "colors.styl": ".colors {}\n",
        }
    )

    result = compile_main(root, LoaderOptions(imports=[str(root / "vars.styl")]))

    assert result.ok
    assert result.css == ".colors {}\n.main {}"
    assert result.dependencies == [str(root / "vars.styl"), str(root / "colors.styl")]
    assert str(root / "vars.styl") in result.index


def test_unresolvable_implicit_import_is_reported(write_files) -> None:
    root = write_files({"a.styl": ".main {}\n"})

    result = compile_main(root, LoaderOptions(imports=["nowhere"]))

    assert result.css == ".main {}"
    assert len(result.errors) == 1
    assert "from the imports option" in str(result.errors[0])


def test_self_import_warning(write_files) -> None:
    root = write_files({"a.styl": '@import "a"\n'})

    result = compile_main(root, LoaderOptions(report_self_imports=True))

    assert len(result.warnings) == 1
    assert len(result.errors) == 1
    assert "failed to locate @import file a" in str(result.errors[0])


def test_root_parse_error_is_reported_once(write_files) -> None:
    root = write_files({"a.styl": '@import "b\n'})

    result = compile_main(root)

    assert result.css is None
    assert len(result.errors) == 1
    assert isinstance(result.errors[0], ParseError)


def test_unreadable_root(tmp_path) -> None:
    result = compile_main(tmp_path, name="absent.styl")

    assert result.css is None
    assert len(result.errors) == 1
    assert isinstance(result.errors[0], ReadError)


def test_source_code_can_be_given(write_files) -> None:
    root = write_files({"b.styl": ".b {}\n"})
    manager = CompileManager(root / "a.styl")

    result = asyncio.run(manager.compile('@import "b"\n.a {}'))

    assert result.css == ".b {}\n.a {}"


def test_analyze_builds_index_only(write_files) -> None:
    root = write_files({"a.styl": '@import "b"\n', "b.styl": ".b {}\n"})
    manager = CompileManager(root / "a.styl")

    index = asyncio.run(manager.analyze())

    assert index[str(root / "a.styl")][0].result == Resolved(str(root / "b.styl"))


def test_compile_file(write_files) -> None:
    root = write_files({"a.styl": ".a {}\n"})

    assert compile_file(root / "a.styl").css == ".a {}"


def test_undecodable_import_is_reported(write_files) -> None:
    root = write_files({"a.styl": '.a {}\n@import "b"\n'})
    (root / "b.styl").write_bytes(b"\xff\xfe.b {}\n")

    result = compile_main(root)

    assert result.css == ".a {}"
    assert len(result.errors) == 2
    assert isinstance(result.errors[0], ReadError)
    assert "failed to read" in str(result.errors[1])


def test_relative_search_paths(write_files, monkeypatch) -> None:
    root = write_files({"styles/a.styl": '@import "b"\n', "lib/b.styl": ".b {}\n"})
    monkeypatch.chdir(root)

    result = compile_main(root, LoaderOptions(paths=["lib"]), name="styles/a.styl")

    assert result.ok
    assert result.css == ".b {}"
    assert result.dependencies == [str(root / "lib" / "b.styl")]


def test_media_query_import(write_files) -> None:
    root = write_files({"a.styl": '@import "print.css" print\n.a {}\n', "print.css": ".print {}\n"})

    result = compile_main(root)

    assert result.ok
    assert result.css == '@import "print.css" print\n.a {}'
    assert result.dependencies == [str(root / "print.css")]
