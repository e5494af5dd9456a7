# Copyright 2026 CompileHost Contributors
# SPDX-License-Identifier: Apache-2.0

"""Compile orchestration: diagnostics, the compile service contract, and the host."""

from compilehost.compiler.diagnostics import (
    CompileError,
    Diagnostic,
    DiagnosticCategory,
    DiagnosticMessageChain,
    flatten_message_text,
    line_and_character_of_position,
)
from compilehost.compiler.host import Host, NoOutputError
from compilehost.compiler.python_service import PythonCompileService
from compilehost.compiler.service import CompileService, CompilerHooks, CompilerOptions, EmitResult, Program
from compilehost.compiler.sourcemap import SourceMapError, rewrite_sources_field

__all__ = [
    "CompileError",
    "CompileService",
    "CompilerHooks",
    "CompilerOptions",
    "Diagnostic",
    "DiagnosticCategory",
    "DiagnosticMessageChain",
    "EmitResult",
    "Host",
    "NoOutputError",
    "Program",
    "PythonCompileService",
    "SourceMapError",
    "flatten_message_text",
    "line_and_character_of_position",
    "rewrite_sources_field",
]
