# Copyright 2026 CompileHost Contributors
# SPDX-License-Identifier: Apache-2.0

"""Contract between the host and an in-process compile service.

The host never parses, type-checks or emits anything itself.  It hands a
root-name list and a pair of hooks to a :class:`CompileService`; the service
pulls source through ``read_source`` and pushes artifacts through
``write_output``.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field

from compilehost.compiler.diagnostics import Diagnostic

# ###############
# Public Interface
# ###############

OutputData = bytes | str


class CompilerOptions(BaseModel):
    """Options shared by the host and the compile service.

    Keys the host does not know about are kept and passed through to the
    service untouched.

    Attributes:
        root_dir: Logical source root; defaults to the host's current directory.
        out_dir: Directory compiled artifacts are written to; defaults to ``root_dir``.
        no_emit_on_error: Treat semantic and emit diagnostics as fatal.
        inline_source_map: Rewrite the ``sources`` field of inline source maps
            on retrieval.
        optimize: Optimization level for services that support one.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    root_dir: str | None = Field(default=None, alias="root-dir")
    out_dir: str | None = Field(default=None, alias="out-dir")
    no_emit_on_error: bool = Field(default=False, alias="no-emit-on-error")
    inline_source_map: bool = Field(default=False, alias="inline-source-map")
    optimize: int = -1


@dataclass
class CompilerHooks:
    """File-system hooks the host installs into a compile service.

    Attributes:
        read_source: Returns the parsed handle for a path, or None if the file
            cannot be read.
        write_output: Stores an emitted artifact under an output path.
    """

    read_source: Callable[[str], Any | None]
    write_output: Callable[[str, OutputData], None]


@dataclass
class EmitResult:
    """Outcome of :meth:`Program.emit`."""

    written_files: list[str] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)
    emit_skipped: bool = False


class Program(Protocol):
    """A built program, ready to be checked and emitted."""

    def get_syntax_diagnostics(self) -> Sequence[Diagnostic]: ...

    def get_global_diagnostics(self) -> Sequence[Diagnostic]: ...

    def get_semantic_diagnostics(self) -> Sequence[Diagnostic]: ...

    def emit(self) -> EmitResult: ...


class CompileService(Protocol):
    """An external compiler the host orchestrates."""

    def parse_source(self, file_name: str, text: str) -> Any:
        """Parse *text* into the service's in-memory representation."""
        ...

    def build_program(self, root_names: Sequence[str], options: CompilerOptions, hooks: CompilerHooks) -> Program:
        """Build a program over *root_names*, loading sources through *hooks*."""
        ...

    def output_extension(self, file_name: str) -> str:
        """Return the extension of the artifact emitted for *file_name*."""
        ...
