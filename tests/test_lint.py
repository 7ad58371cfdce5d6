"""Tests for modfence.hosts.lint: import extraction, checking, and formatters."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from modfence.config import default_config, parse_config
from modfence.hosts.lint import (
    Diagnostic,
    ImportStatement,
    LintError,
    LintResult,
    check_imports,
    collect_source_files,
    extract_imports,
    extract_imports_from_source,
    format_json,
    format_message,
    format_porcelain,
    format_rich,
    get_language,
    lint,
    lint_file,
    load_project_config,
)
from modfence.policy.index_locator import IndexDirectoryCache
from modfence.policy.restrictions import DEFAULT_RESTRICTIONS, PRIVATE_MODULE_RESTRICTION


def _ts_available() -> bool:
    try:
        import tree_sitter_typescript  # noqa: F401

        return True
    except ImportError:
        return False


needs_ts = pytest.mark.skipif(not _ts_available(), reason="tree-sitter-typescript not installed")


# ---------------------------------------------------------------------------
# Import extraction
# ---------------------------------------------------------------------------


@needs_ts
class TestExtractImports:
    def test_import_forms(self) -> None:
        source = (
            'import React from "react";\n'
            "import { a, b } from './ab';\n"
            'import * as ns from "../ns";\n'
            'import "./side-effect";\n'
            'import type { T } from "./types";\n'
        )
        imports = extract_imports_from_source(source, "/p/src/x.ts", ".ts")
        assert [i.specifier for i in imports] == [
            "react",
            "./ab",
            "../ns",
            "./side-effect",
            "./types",
        ]
        assert [i.line_number for i in imports] == [1, 2, 3, 4, 5]
        assert all(i.file_path == "/p/src/x.ts" for i in imports)

    def test_re_exports(self) -> None:
        source = (
            'export * from "./Button";\n'
            'export { Icon } from "./parts/Icon";\n'
            "export const local = 1;\n"
        )
        imports = extract_imports_from_source(source, "/p/index.ts", ".ts")
        assert [i.specifier for i in imports] == ["./Button", "./parts/Icon"]

    def test_tsx(self) -> None:
        source = 'import { Icon } from "./Icon";\nexport const A = () => <Icon />;\n'
        imports = extract_imports_from_source(source, "/p/A.tsx", ".tsx")
        assert imports == [ImportStatement(file_path="/p/A.tsx", line_number=1, specifier="./Icon")]

    def test_line_numbers_skip_comments(self) -> None:
        source = "// header\n\n/* block */\nimport x from './x';\n"
        imports = extract_imports_from_source(source, "/p/a.ts", ".ts")
        assert imports[0].line_number == 4

    def test_empty_source(self) -> None:
        assert extract_imports_from_source("   \n", "/p/a.ts", ".ts") == []

    def test_extract_from_file(self, tmp_path: Path) -> None:
        path = tmp_path / "a.mjs"
        path.write_text("import x from './x.mjs';\n", encoding="utf-8")
        imports = extract_imports(path)
        assert len(imports) == 1
        assert imports[0].file_path == os.path.abspath(path)


class TestExtractImportsUnsupported:
    def test_unknown_extension(self) -> None:
        assert get_language(".py") is None
        assert extract_imports_from_source("import os\n", "/p/a.py", ".py") == []

    def test_unreadable_file(self, tmp_path: Path) -> None:
        assert extract_imports(tmp_path / "missing.ts") == []

    def test_binary_file(self, tmp_path: Path) -> None:
        path = tmp_path / "blob.ts"
        path.write_bytes(b"\xff\xfe\x00bad")
        assert extract_imports(path) == []


# ---------------------------------------------------------------------------
# Checking
# ---------------------------------------------------------------------------


class TestFormatMessage:
    def test_format(self) -> None:
        text = format_message("Import not allowed", "./Card.private", "/p/src/Other.ts")
        assert text == 'Import not allowed: "./Card.private" cannot be imported from "Other.ts"'


class TestCheckImports:
    def test_first_violation_only(self, tmp_path: Path) -> None:
        widgets = tmp_path / "widgets"
        widgets.mkdir()
        (widgets / "Card.private.ts").write_text("")
        importer = str(widgets / "Other.ts")
        imports = [ImportStatement(file_path=importer, line_number=3, specifier="./Card.private")]
        restrictions = (PRIVATE_MODULE_RESTRICTION, *DEFAULT_RESTRICTIONS)

        diagnostics = check_imports(imports, restrictions)

        assert len(diagnostics) == 1
        diag = diagnostics[0]
        assert diag.rule == "private-module"
        assert diag.line_number == 3
        assert diag.specifier == "./Card.private"
        assert diag.message.startswith(PRIVATE_MODULE_RESTRICTION.display_message)
        assert diag.message.endswith('cannot be imported from "Other.ts"')

    def test_bare_specifiers_ignored(self) -> None:
        imports = [ImportStatement(file_path="/p/a.ts", line_number=1, specifier="lodash")]
        assert check_imports(imports, DEFAULT_RESTRICTIONS) == []

    def test_no_restrictions(self) -> None:
        imports = [ImportStatement(file_path="/p/a.ts", line_number=1, specifier="./x.private")]
        assert check_imports(imports, []) == []


@needs_ts
class TestLintFile:
    def test_lint_file(self, lint_project: Path) -> None:
        other = lint_project / "src" / "widgets" / "Other.ts"
        diagnostics = lint_file(other, DEFAULT_RESTRICTIONS)
        assert [(d.line_number, d.rule) for d in diagnostics] == [(2, "private-module")]

    def test_owner_allowed(self, lint_project: Path) -> None:
        card = lint_project / "src" / "widgets" / "Card.ts"
        assert lint_file(card, DEFAULT_RESTRICTIONS) == []


# ---------------------------------------------------------------------------
# Project scan
# ---------------------------------------------------------------------------


class TestCollectSourceFiles:
    def test_default_globs(self, module_tree: Path) -> None:
        (module_tree / "node_modules" / "pkg").mkdir(parents=True)
        (module_tree / "node_modules" / "pkg" / "index.js").write_text("")
        (module_tree / "src" / "types.d.ts").write_text("")
        (module_tree / "README.md").write_text("")

        files = collect_source_files(module_tree, default_config())
        rel = [f.relative_to(module_tree).as_posix() for f in files]

        assert rel == [
            "src/components/Button/Button.tsx",
            "src/components/Button/index.ts",
            "src/components/Button/parts/Icon.tsx",
            "src/components/Input.ts",
            "src/pages/Home.ts",
            "src/plain/a.ts",
        ]

    def test_custom_include_exclude(self, module_tree: Path) -> None:
        config = parse_config(
            {"version": 1, "include": "src/components/**/*.tsx", "exclude": ["**/parts/**"]}
        )
        files = collect_source_files(module_tree, config)
        assert [f.name for f in files] == ["Button.tsx"]


class TestLoadProjectConfig:
    def test_missing_config(self, tmp_path: Path) -> None:
        assert load_project_config(tmp_path) == default_config()

    def test_invalid_config(self, tmp_path: Path) -> None:
        (tmp_path / "modfence.yml").write_text("version: 7\n")
        with pytest.raises(LintError, match="Invalid restrictions configuration"):
            load_project_config(tmp_path)

    def test_explicit_path(self, tmp_path: Path) -> None:
        path = tmp_path / "policy.yml"
        path.write_text("version: 1\npreset: filename\n")
        assert load_project_config(tmp_path, path).preset == "filename"


@needs_ts
class TestLint:
    def test_lint_project(self, lint_project: Path) -> None:
        result = lint(lint_project, default_config())

        assert result.files_scanned == 9
        assert result.imports_checked == 6
        assert result.elapsed_ms >= 0

        found = [
            (Path(d.file_path).relative_to(lint_project).as_posix(), d.line_number, d.rule)
            for d in result.diagnostics
        ]
        assert found == [
            ("src/pages/Home.ts", 1, "no-deep-import"),
            ("src/widgets/Other.ts", 2, "private-module"),
        ]

    def test_shared_cache_populated(self, lint_project: Path) -> None:
        cache = IndexDirectoryCache()
        lint(lint_project, default_config(), cache=cache)
        assert cache.stats()["entries"] > 0

    def test_strict_index_preset(self, lint_project: Path) -> None:
        config = parse_config({"version": 1, "preset": "strict-index"})
        result = lint(lint_project, config)
        assert [d.rule for d in result.diagnostics] == ["no-deep-import"]


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


def _make_result(diagnostics: list[Diagnostic] | None = None) -> LintResult:
    if diagnostics is None:
        diagnostics = [
            Diagnostic(
                file_path="/proj/src/pages/Home.ts",
                line_number=1,
                specifier="../components/Button/Button",
                rule="no-deep-import",
                message="Deep import",
            ),
            Diagnostic(
                file_path="/proj/src/widgets/Other.ts",
                line_number=2,
                specifier="./Card.private",
                rule="private-module",
                message="Private import",
            ),
        ]
    return LintResult(
        diagnostics=diagnostics, files_scanned=9, imports_checked=6, elapsed_ms=1200.0
    )


class TestFormatRich:
    def test_with_violations(self) -> None:
        output = format_rich(_make_result(), Path("/proj"))
        assert "Files: 9 scanned, 6 imports checked" in output
        assert "✗ src/pages/Home.ts:1" in output
        assert "  [private-module] Private import" in output
        assert output.endswith("2 violations found (1.2s)")

    def test_single_violation_noun(self) -> None:
        result = _make_result()
        result.diagnostics.pop()
        assert "1 violation found" in format_rich(result)

    def test_clean(self) -> None:
        output = format_rich(_make_result([]))
        assert "✓ No violations found (1.2s)" in output

    def test_paths_outside_root_kept(self) -> None:
        output = format_rich(_make_result(), Path("/elsewhere"))
        assert "/proj/src/pages/Home.ts:1" in output


class TestFormatJson:
    def test_structure(self) -> None:
        data = json.loads(format_json(_make_result(), Path("/proj")))
        assert data["summary"] == {
            "violations_count": 2,
            "files_scanned": 9,
            "imports_checked": 6,
            "elapsed_ms": 1200.0,
        }
        assert data["diagnostics"][1] == {
            "file_path": "src/widgets/Other.ts",
            "line_number": 2,
            "specifier": "./Card.private",
            "rule": "private-module",
            "message": "Private import",
        }

    def test_empty(self) -> None:
        data = json.loads(format_json(_make_result([])))
        assert data["diagnostics"] == []
        assert data["summary"]["violations_count"] == 0


class TestFormatPorcelain:
    def test_lines(self) -> None:
        output = format_porcelain(_make_result(), Path("/proj"))
        assert output.splitlines() == [
            "src/pages/Home.ts:1:no-deep-import:../components/Button/Button",
            "src/widgets/Other.ts:2:private-module:./Card.private",
        ]

    def test_empty(self) -> None:
        assert format_porcelain(_make_result([])) == ""
