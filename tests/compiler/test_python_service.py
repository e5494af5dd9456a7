# Copyright 2026 CompileHost Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the reference Python compile service, end to end through the host."""

from __future__ import annotations

import importlib.util
import marshal
from pathlib import Path

import pytest

from compilehost.compiler.diagnostics import CompileError, DiagnosticCategory
from compilehost.compiler.host import Host, NoOutputError
from compilehost.compiler.python_service import (
    CODE_FILE_NOT_FOUND,
    CODE_INVALID_OPTION,
    CODE_SEMANTIC_ERROR,
    CODE_SYNTAX_ERROR,
    CODE_SYNTAX_WARNING,
    PythonCompileService,
    PythonProgram,
)
from compilehost.compiler.service import CompilerHooks, CompilerOptions

# ###############
# Helpers
# ###############


def _write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def _host(tmp_path: Path, **options: object) -> tuple[Host, list[CompileError]]:
    host = Host(PythonCompileService(), CompilerOptions(**options), current_directory=tmp_path)
    errors: list[CompileError] = []
    host.on_error(errors.append)
    return host, errors


def _run(pyc: bytes) -> dict[str, object]:
    assert pyc[:4] == importlib.util.MAGIC_NUMBER
    namespace: dict[str, object] = {}
    exec(marshal.loads(pyc[16:]), namespace)
    return namespace


# ###############
# Parsing
# ###############


class TestParseSource:
    def test_valid_source_has_a_tree(self) -> None:
        parsed = PythonCompileService().parse_source("a.py", "x = 1\n")
        assert parsed.tree is not None
        assert parsed.syntax_diagnostic is None

    def test_syntax_error_is_located_in_the_source(self) -> None:
        parsed = PythonCompileService().parse_source("a.py", "x = 1\ndef f(:\n")
        assert parsed.tree is None
        diagnostic = parsed.syntax_diagnostic
        assert diagnostic is not None
        assert diagnostic.code == CODE_SYNTAX_ERROR
        assert diagnostic.file is parsed
        error = CompileError(diagnostic)
        assert error.file_name == "a.py"
        assert error.line == 2


# ###############
# Compiling through the host
# ###############


class TestCompile:
    def test_emits_runnable_pyc(self, tmp_path: Path) -> None:
        _write(tmp_path / "a.py", "answer = 6 * 7\n")
        host, errors = _host(tmp_path)
        host.add_file("a.py")

        pyc = host.retrieve_output("a.py")

        assert errors == []
        assert isinstance(pyc, bytes)
        assert _run(pyc)["answer"] == 42

    def test_pyc_carries_the_source_hash(self, tmp_path: Path) -> None:
        source = "answer = 42\n"
        _write(tmp_path / "a.py", source)
        host, _ = _host(tmp_path)
        host.add_file("a.py")

        pyc = host.retrieve_output("a.py")

        assert int.from_bytes(pyc[4:8], "little") == 0b11
        assert pyc[8:16] == importlib.util.source_hash(source.encode("utf-8"))

    def test_pyc_hash_matches_crlf_source_bytes(self, tmp_path: Path) -> None:
        raw = b"x = 1\r\ny = 2\r\n"
        (tmp_path / "a.py").write_bytes(raw)
        host, errors = _host(tmp_path)
        host.add_file("a.py")

        pyc = host.retrieve_output("a.py")

        assert errors == []
        assert pyc[8:16] == importlib.util.source_hash(raw)
        assert _run(pyc)["y"] == 2

    def test_output_mirrors_the_root_layout(self, tmp_path: Path) -> None:
        _write(tmp_path / "src" / "pkg" / "mod.py", "value = 'ok'\n")
        host, _ = _host(tmp_path, root_dir="src", out_dir="build")
        host.add_file("src/pkg/mod.py")

        host.compile()

        assert host.output("build/pkg/mod.pyc") is not None

    def test_syntax_error_fails_the_generation(self, tmp_path: Path) -> None:
        _write(tmp_path / "a.py", "def broken(:\n    pass\n")
        host, errors = _host(tmp_path)
        host.add_file("a.py")

        host.compile()

        assert [(e.code, e.file_name, e.line) for e in errors] == [(CODE_SYNTAX_ERROR, "a.py", 1)]
        assert host.has_error
        with pytest.raises(NoOutputError):
            host.retrieve_output("a.py")

    def test_code_generation_error_is_a_semantic_error(self, tmp_path: Path) -> None:
        _write(tmp_path / "a.py", "x = 1\nreturn x\n")
        host, errors = _host(tmp_path)
        host.add_file("a.py")

        host.compile()

        assert len(errors) == 1
        assert errors[0].code == CODE_SEMANTIC_ERROR
        assert errors[0].category == DiagnosticCategory.ERROR
        assert errors[0].line == 2
        assert "outside function" in str(errors[0])

    def test_syntax_warning_still_emits_by_default(self, tmp_path: Path) -> None:
        _write(tmp_path / "a.py", "x = 1\nsame = x is 1\n")
        host, errors = _host(tmp_path)
        host.add_file("a.py")

        pyc = host.retrieve_output("a.py")

        assert [(e.code, e.category, e.line) for e in errors] == [(CODE_SYNTAX_WARNING, DiagnosticCategory.WARNING, 2)]
        assert _run(pyc)["same"] is True

    def test_syntax_warning_blocks_output_with_no_emit_on_error(self, tmp_path: Path) -> None:
        _write(tmp_path / "a.py", "x = 1\nsame = x is 1\n")
        host, errors = _host(tmp_path, no_emit_on_error=True)
        host.add_file("a.py")

        host.compile()

        assert len(errors) == 1
        assert host.has_error
        assert host.output("a.pyc") is None

    def test_stub_file_has_no_output_after_one_compile(self, tmp_path: Path) -> None:
        _write(tmp_path / "a.pyi", "def f() -> int: ...\n")
        host, errors = _host(tmp_path)
        host.add_file("a.pyi")

        with pytest.raises(NoOutputError):
            host.retrieve_output("a.pyi")

        assert errors == []
        assert host.compile_count == 1

    def test_invalid_optimize_level_is_a_global_diagnostic(self, tmp_path: Path) -> None:
        _write(tmp_path / "a.py", "x = 1\nreturn x\n")
        host, errors = _host(tmp_path, optimize=7)
        host.add_file("a.py")

        host.compile()

        assert [e.code for e in errors] == [CODE_INVALID_OPTION]
        assert errors[0].file_name is None
        assert host.output("a.pyc") is None

    def test_unchanged_sources_are_not_reparsed_across_generations(self, tmp_path: Path) -> None:
        _write(tmp_path / "a.py", "a = 1\n")
        _write(tmp_path / "b.py", "b = 2\n")
        host, _ = _host(tmp_path)
        for _ in range(3):
            host.reset()
            host.add_file("a.py")
            host.add_file("b.py")
            host.compile()
        assert host.cache.parse_count == 2


class TestProgram:
    def test_unreadable_root_is_a_global_diagnostic(self, tmp_path: Path) -> None:
        hooks = CompilerHooks(read_source=lambda name: None, write_output=lambda name, data: None)
        program = PythonProgram(["missing.py"], CompilerOptions(root_dir=str(tmp_path)), hooks)

        diagnostics = program.get_global_diagnostics()

        assert [d.code for d in diagnostics] == [CODE_FILE_NOT_FOUND]
        assert program.emit().written_files == []

    def test_write_failure_becomes_an_emit_diagnostic(self, tmp_path: Path) -> None:
        service = PythonCompileService()
        parsed = service.parse_source("a.py", "x = 1\n")

        def fail(name: str, data: bytes | str) -> None:
            raise OSError("disk full")

        hooks = CompilerHooks(read_source=lambda name: parsed, write_output=fail)
        program = service.build_program([str(tmp_path / "a.py")], CompilerOptions(root_dir=str(tmp_path)), hooks)

        result = program.emit()

        assert result.written_files == []
        assert len(result.diagnostics) == 1
        assert "disk full" in str(CompileError(result.diagnostics[0]))
