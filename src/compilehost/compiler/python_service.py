# Copyright 2026 CompileHost Contributors
# SPDX-License-Identifier: Apache-2.0

"""Reference compile service: Python sources to hash-based ``.pyc`` bytes.

The service runs entirely in-process on top of the interpreter's own
compiler:

* **Parsing**: ``ast.parse``.  A ``SyntaxError`` becomes the file's syntax
  diagnostic, located at the offending character.
* **Global checks**: root files that could not be loaded and an invalid
  ``optimize`` level.
* **Semantic checks**: code generation of the parsed tree.  Errors raised at
  that stage (``'return' outside function``, misplaced ``nonlocal`` ...) are
  reported as errors, ``SyntaxWarning``s as warnings.
* **Emission**: one ``.pyc`` per root file, written through the host's
  ``write_output`` hook under the path the output mapper infers.  Stub files
  (``.pyi``) never produce output.
"""

from __future__ import annotations

import ast
import importlib.util
import logging
import marshal
import warnings
from collections.abc import Sequence
from dataclasses import dataclass, field
from types import CodeType

from compilehost.cache.file_cache import is_declaration_file
from compilehost.compiler.diagnostics import Diagnostic, DiagnosticCategory, position_of_line_and_column
from compilehost.compiler.service import CompilerHooks, CompilerOptions, EmitResult
from compilehost.paths.output_mapper import OutputPathMapper, replace_extension

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############

PYC_EXTENSION = ".pyc"
SOURCE_EXTENSIONS: tuple[str, ...] = (".py", ".pyi")

# Diagnostic codes reported by this service.
CODE_SYNTAX_ERROR = 1001
CODE_SEMANTIC_ERROR = 2001
CODE_SYNTAX_WARNING = 2002
CODE_INVALID_OPTION = 5024
CODE_WRITE_FAILED = 5033
CODE_FILE_NOT_FOUND = 6053

_VALID_OPTIMIZE_LEVELS = (-1, 0, 1, 2)


@dataclass
class ParsedSource:
    """Parsed handle produced by :meth:`PythonCompileService.parse_source`.

    Attributes:
        file_name: Name the source was parsed under (used in diagnostics).
        text: The parsed source text.
        tree: The module AST, or None when the source has a syntax error.
        syntax_diagnostic: The syntax error of the source, if any.
        parse_warnings: Diagnostics for warnings raised while parsing.
    """

    file_name: str
    text: str
    tree: ast.Module | None
    syntax_diagnostic: Diagnostic | None = None
    parse_warnings: list[Diagnostic] = field(default_factory=list)


class PythonCompileService:
    """Compiles Python source files with the running interpreter."""

    def parse_source(self, file_name: str, text: str) -> ParsedSource:
        parsed = ParsedSource(file_name=file_name, text=text, tree=None)
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always", SyntaxWarning)
            try:
                parsed.tree = ast.parse(text, filename=file_name, type_comments=False)
            except SyntaxError as exc:
                parsed.syntax_diagnostic = _diagnostic_from_syntax_error(exc, parsed, CODE_SYNTAX_ERROR)
        parsed.parse_warnings = _warning_diagnostics(caught, parsed)
        return parsed

    def build_program(
        self,
        root_names: Sequence[str],
        options: CompilerOptions,
        hooks: CompilerHooks,
    ) -> PythonProgram:
        return PythonProgram(root_names, options, hooks)

    def output_extension(self, file_name: str) -> str:
        return PYC_EXTENSION


class PythonProgram:
    """A set of Python root files compiled together in one pass."""

    def __init__(self, root_names: Sequence[str], options: CompilerOptions, hooks: CompilerHooks) -> None:
        self._options = options
        self._hooks = hooks
        self._mapper = OutputPathMapper(options.root_dir or ".", options.out_dir)
        self._missing: list[str] = []
        self._sources: dict[str, ParsedSource] = {}
        self._code: dict[str, CodeType] = {}
        self._semantic: list[Diagnostic] | None = None

        for name in root_names:
            parsed = hooks.read_source(name)
            if parsed is None:
                self._missing.append(name)
            else:
                self._sources[name] = parsed

    @property
    def source_names(self) -> list[str]:
        return list(self._sources)

    def get_syntax_diagnostics(self) -> list[Diagnostic]:
        return [p.syntax_diagnostic for p in self._sources.values() if p.syntax_diagnostic is not None]

    def get_global_diagnostics(self) -> list[Diagnostic]:
        diagnostics = [
            Diagnostic(DiagnosticCategory.ERROR, CODE_FILE_NOT_FOUND, f"File '{name}' not found.")
            for name in self._missing
        ]
        if self._options.optimize not in _VALID_OPTIMIZE_LEVELS:
            diagnostics.append(
                Diagnostic(
                    DiagnosticCategory.ERROR,
                    CODE_INVALID_OPTION,
                    f"Option 'optimize' must be one of {', '.join(map(str, _VALID_OPTIMIZE_LEVELS))}; "
                    f"got {self._options.optimize}.",
                )
            )
        return diagnostics

    def get_semantic_diagnostics(self) -> list[Diagnostic]:
        if self._semantic is None:
            self._semantic = []
            for name, parsed in self._sources.items():
                self._semantic.extend(parsed.parse_warnings)
                if parsed.tree is None:
                    continue
                self._semantic.extend(self._generate_code(name, parsed, parsed.tree))
        return list(self._semantic)

    def emit(self) -> EmitResult:
        result = EmitResult()
        if self._options.no_emit_on_error and (
            self.get_global_diagnostics() or self.get_syntax_diagnostics() or self.get_semantic_diagnostics()
        ):
            result.emit_skipped = True
            return result

        if self._options.optimize not in _VALID_OPTIMIZE_LEVELS:
            result.emit_skipped = True
            return result

        self.get_semantic_diagnostics()
        for name, code in self._code.items():
            parsed = self._sources[name]
            output_path = replace_extension(self._mapper.to_output(name), PYC_EXTENSION)
            data = _pyc_bytes(code, parsed.text)
            try:
                self._hooks.write_output(output_path, data)
            except OSError as exc:
                result.diagnostics.append(
                    Diagnostic(
                        DiagnosticCategory.ERROR,
                        CODE_WRITE_FAILED,
                        f"Could not write file '{output_path}': {exc}.",
                    )
                )
                continue
            result.written_files.append(output_path)
        logger.debug("python_service.emitted", extra={"files": len(result.written_files)})
        return result

    # ################
    # Implementation
    # ################

    def _generate_code(self, name: str, parsed: ParsedSource, tree: ast.Module) -> list[Diagnostic]:
        diagnostics: list[Diagnostic] = []
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always", SyntaxWarning)
            try:
                code = compile(
                    tree,
                    parsed.file_name,
                    "exec",
                    dont_inherit=True,
                    optimize=self._options.optimize if self._options.optimize in _VALID_OPTIMIZE_LEVELS else -1,
                )
            except SyntaxError as exc:
                diagnostics.append(_diagnostic_from_syntax_error(exc, parsed, CODE_SEMANTIC_ERROR))
                code = None
        diagnostics.extend(_warning_diagnostics(caught, parsed))
        if code is not None and not is_declaration_file(name):
            self._code[name] = code
        return diagnostics


def _diagnostic_from_syntax_error(exc: SyntaxError, parsed: ParsedSource, code: int) -> Diagnostic:
    start = position_of_line_and_column(parsed.text, exc.lineno or 1, exc.offset or 1)
    return Diagnostic(DiagnosticCategory.ERROR, code, exc.msg, file=parsed, start=start)


def _warning_diagnostics(caught: list[warnings.WarningMessage], parsed: ParsedSource) -> list[Diagnostic]:
    diagnostics = []
    for warning in caught:
        if not issubclass(warning.category, SyntaxWarning):
            continue
        start = position_of_line_and_column(parsed.text, warning.lineno or 1, 1)
        diagnostics.append(
            Diagnostic(DiagnosticCategory.WARNING, CODE_SYNTAX_WARNING, str(warning.message), file=parsed, start=start)
        )
    return diagnostics


def _pyc_bytes(code: CodeType, source_text: str) -> bytes:
    """Serialize *code* as a checked hash-based pyc (PEP 552)."""
    flags = 0b11
    return (
        importlib.util.MAGIC_NUMBER
        + flags.to_bytes(4, "little")
        + importlib.util.source_hash(source_text.encode("utf-8"))
        + marshal.dumps(code)
    )
