# Copyright 2026 CompileHost Contributors
# SPDX-License-Identifier: Apache-2.0

"""Compile orchestration over one generation of cached source files.

The :class:`Host` is the shell between a build driver and a compile service:

1. The driver calls :meth:`Host.add_file` for every entry file of a build pass.
2. :meth:`Host.compile` builds one whole-project program over the roots and
   the dependency files, checks syntax, then semantics, then emits.  Sources
   are loaded through the :class:`~compilehost.cache.file_cache.FileCache`
   so unchanged files are never parsed twice, and artifacts land in an
   in-memory output store keyed by canonical output path.
3. :meth:`Host.retrieve_output` returns the artifact for a source file,
   compiling lazily (at most once) if nothing has been compiled yet.
4. :meth:`Host.reset` starts the next generation.

Diagnostics are never raised.  Each one is translated into a
:class:`~compilehost.compiler.diagnostics.CompileError` and delivered to the
error listeners; file listeners hear about every source file loaded.
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Callable, Iterable, Sequence

from compilehost.cache.file_cache import DEFAULT_DEPENDENCY_DIRS, FileCache
from compilehost.compiler.diagnostics import CompileError, Diagnostic
from compilehost.compiler.service import CompilerHooks, CompilerOptions, CompileService, OutputData, Program
from compilehost.compiler.sourcemap import rewrite_sources_field
from compilehost.paths.identity import PathResolutionError, canonicalize, follow
from compilehost.paths.output_mapper import OutputPathMapper, replace_extension

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############

FileListener = Callable[[str, str], None]
ErrorListener = Callable[[Exception], None]
SourceMapRewriter = Callable[[str, str], str]


class NoOutputError(Exception):
    """Raised when a source file has no compiled output to retrieve.

    Attributes:
        file_name: Canonical path of the requested source file.
    """

    def __init__(self, message: str, file_name: str) -> None:
        super().__init__(message)
        self.file_name = file_name


class Host:
    """Owns the file cache, the output store and the compile state of one generation.

    Args:
        service: The compile service programs are built with.
        options: Compiler options; ``root_dir`` defaults to *current_directory*
            and ``out_dir`` to ``root_dir``.
        current_directory: Directory relative paths are resolved against
            (default: the process working directory).
        base_dir: Directory source paths in rewritten source maps are made
            relative to (default: *current_directory*).
        dependency_dirs: Directory names marking third-party dependencies.
        rewrite_source_map: Helper rewriting the ``sources`` field of inline
            source maps.
    """

    def __init__(
        self,
        service: CompileService,
        options: CompilerOptions | None = None,
        *,
        current_directory: str | os.PathLike[str] | None = None,
        base_dir: str | os.PathLike[str] | None = None,
        dependency_dirs: Iterable[str] = DEFAULT_DEPENDENCY_DIRS,
        rewrite_source_map: SourceMapRewriter = rewrite_sources_field,
    ) -> None:
        self._service = service
        self._current_directory = canonicalize(current_directory or os.getcwd())
        self._base_dir = canonicalize(base_dir, self._current_directory) if base_dir else self._current_directory

        options = options or CompilerOptions()
        root_dir = canonicalize(options.root_dir or ".", self._current_directory)
        out_dir = canonicalize(options.out_dir, self._current_directory) if options.out_dir else root_dir
        self._options = options.model_copy(update={"root_dir": root_dir, "out_dir": out_dir})
        self._mapper = OutputPathMapper(root_dir, out_dir)

        self._rewrite_source_map = rewrite_source_map
        self._file_listeners: list[FileListener] = []
        self._error_listeners: list[ErrorListener] = []
        self._cache = FileCache(
            service.parse_source,
            current_directory=self._current_directory,
            dependency_dirs=dependency_dirs,
            on_file=self._notify_file,
        )
        self._output: dict[str, OutputData] = {}
        self._has_error = False
        self._compiled = False
        self.compile_count = 0

    @property
    def options(self) -> CompilerOptions:
        return self._options

    @property
    def mapper(self) -> OutputPathMapper:
        return self._mapper

    @property
    def cache(self) -> FileCache:
        return self._cache

    @property
    def has_error(self) -> bool:
        """True once a fatal diagnostic was reported in this generation."""
        return self._has_error

    @property
    def compiled(self) -> bool:
        """True once a compile pass was attempted in this generation."""
        return self._compiled

    def on_file(self, listener: FileListener) -> FileListener:
        """Register *listener* for ``(canonical_path, relative_path)`` file observations."""
        self._file_listeners.append(listener)
        return listener

    def on_error(self, listener: ErrorListener) -> ErrorListener:
        """Register *listener* for translated diagnostics and retrieval failures."""
        self._error_listeners.append(listener)
        return listener

    def emit_error(self, error: Exception) -> None:
        """Deliver *error* to every error listener."""
        for listener in self._error_listeners:
            listener(error)

    def add_file(self, path: str | os.PathLike[str], is_root: bool = True) -> object | None:
        """Add a source file to the current generation.

        Returns:
            The parsed handle, or None if the file cannot be read.
        """
        return self._cache.add_file(path, is_root=is_root)

    def reset(self) -> None:
        """Start a new generation: demote the cache, drop outputs and errors."""
        self._cache.reset()
        self._output = {}
        self._has_error = False
        self._compiled = False
        logger.debug("host.reset")

    def root_names(self) -> list[str]:
        """The names handed to the compile service: roots plus dependency files."""
        return sorted(self._cache.root_paths() | self._cache.dependency_paths())

    def compile(self) -> None:
        """Run one whole-project compile pass over the current generation."""
        self._compiled = True
        self.compile_count += 1
        started = time.monotonic()

        hooks = CompilerHooks(read_source=self._read_source, write_output=self._write_output)
        program = self._service.build_program(self.root_names(), self._options, hooks)

        if self._check_syntax(program.get_syntax_diagnostics()):
            self._log_compile(started)
            return

        self._check_semantics(program)

        emit_started = time.monotonic()
        emit_result = program.emit()
        logger.debug(
            "host.emit",
            extra={
                "elapsed_ms": (time.monotonic() - emit_started) * 1000,
                "written": len(emit_result.written_files),
                "skipped": emit_result.emit_skipped,
            },
        )
        self._check_emitted(emit_result.diagnostics)
        self._log_compile(started)

    def output(self, path: str | os.PathLike[str]) -> OutputData | None:
        """Return the stored artifact for a canonical or relative output path."""
        return self._output.get(canonicalize(path, self._current_directory))

    def output_key(self, path: str | os.PathLike[str]) -> str:
        """Return the output-store key the artifact of source *path* is expected under."""
        source = canonicalize(path, self._current_directory)
        return replace_extension(self._mapper.to_output(source), self._service.output_extension(source))

    def retrieve_output(self, path: str | os.PathLike[str]) -> OutputData:
        """Return the compiled artifact for source file *path*.

        If nothing was compiled yet in this generation, one compile pass is
        run before giving up; a generation that already compiled is never
        compiled again.

        Raises:
            NoOutputError: If the generation has errored or no artifact exists
                for *path* after at most one compile pass.
        """
        source = canonicalize(path, self._current_directory)
        return self._retrieve(source, already_missed=False)

    # ################
    # Implementation
    # ################

    def _retrieve(self, source: str, already_missed: bool) -> OutputData:
        if self._has_error:
            raise NoOutputError(f"compilation failed; no compiled file for {source}", source)

        key = self.output_key(source)
        output = self._output.get(key)

        if output is None:
            if already_missed or self._compiled:
                raise NoOutputError(f"no compiled file for {source}", source)
            logger.debug("host.output_miss", extra={"path": source})
            self.compile()
            return self._retrieve(source, already_missed=True)

        if self._options.inline_source_map and isinstance(output, str):
            relative = os.path.normpath(os.path.relpath(source, self._base_dir))
            output = self._rewrite_source_map(output, relative)

        return output

    def _read_source(self, path: str) -> object | None:
        record = self._cache.get(path)
        is_root = record.is_root if record is not None else False
        return self._cache.add_file(path, is_root=is_root)

    def _write_output(self, path: str, data: OutputData) -> None:
        output_path = canonicalize(path, self._current_directory)
        self._output[output_path] = data

        # A root reached through a symlinked directory must also be
        # retrievable under the output path of its real location.
        source_path = self._mapper.to_source(output_path)
        source_dir, base_name = os.path.split(source_path)
        try:
            real_dir = canonicalize(follow(source_dir))
        except PathResolutionError:
            return
        if real_dir == source_dir:
            return

        real_output = self._mapper.to_output(os.path.join(real_dir, base_name))
        self._output[real_output] = data
        logger.debug("host.symlinked_output", extra={"path": output_path, "real_path": real_output})

    def _notify_file(self, canonical_path: str, relative_path: str) -> None:
        for listener in self._file_listeners:
            listener(canonical_path, relative_path)

    def _report(self, diagnostics: Sequence[Diagnostic]) -> None:
        for diagnostic in diagnostics:
            error = CompileError(diagnostic)
            logger.debug("host.diagnostic", extra={"diagnostic": str(error)})
            self.emit_error(error)

    def _check_syntax(self, diagnostics: Sequence[Diagnostic]) -> bool:
        self._report(diagnostics)
        if diagnostics:
            self._has_error = True
        return bool(diagnostics)

    def _check_semantics(self, program: Program) -> None:
        diagnostics = program.get_global_diagnostics()
        if not diagnostics:
            diagnostics = program.get_semantic_diagnostics()
        self._report(diagnostics)
        if diagnostics and self._options.no_emit_on_error:
            self._has_error = True

    def _check_emitted(self, diagnostics: Sequence[Diagnostic]) -> None:
        self._report(diagnostics)
        if diagnostics and self._options.no_emit_on_error:
            self._has_error = True

    def _log_compile(self, started: float) -> None:
        logger.debug(
            "host.compile",
            extra={
                "elapsed_ms": (time.monotonic() - started) * 1000,
                "roots": len(self._cache.root_paths()),
                "has_error": self._has_error,
            },
        )
