# Copyright 2026 CompileHost Contributors
# SPDX-License-Identifier: Apache-2.0

"""Build passes over a :class:`~compilehost.compiler.host.Host`.

A :class:`BuildDriver` is what a build tool integration talks to.  Each build
pass starts with :meth:`BuildDriver.begin`, which rolls the host over to a new
generation and registers the pass's entry files.  Per-file requests then go
through :meth:`BuildDriver.transform`, which decides whether a file is
compiled, swallowed (declaration files) or passed through untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from compilehost.cache.file_cache import is_declaration_file
from compilehost.compiler.host import Host, NoOutputError
from compilehost.compiler.service import OutputData
from compilehost.paths.identity import canonicalize
from compilehost.pipeline.entries import EntryRow, resolve_entry_rows

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############

DEFAULT_SOURCE_EXTENSIONS: tuple[str, ...] = (".ts", ".tsx", ".py", ".pyi")
SCRIPT_EXTENSIONS: tuple[str, ...] = (".js", ".jsx")


class BuildPassError(Exception):
    """Raised when a build pass is driven out of order."""


class BuildDriver:
    """Drives build passes of a host on behalf of a build tool.

    Args:
        host: The host to compile with.
        source_extensions: Extensions of files handed to the compile service.
        allow_js: Also compile ``.js``/``.jsx`` files.
        global_transform: Also compile files inside dependency directories.
    """

    def __init__(
        self,
        host: Host,
        *,
        source_extensions: Iterable[str] = DEFAULT_SOURCE_EXTENSIONS,
        allow_js: bool = False,
        global_transform: bool = False,
    ) -> None:
        self._host = host
        extensions = tuple(ext.lower() for ext in source_extensions)
        self._compile_extensions = extensions + SCRIPT_EXTENSIONS if allow_js else extensions
        self._global_transform = global_transform
        self._passes = 0
        self._sealed = False
        self.ignored: list[str] = []

    @property
    def host(self) -> Host:
        return self._host

    @property
    def passes(self) -> int:
        """Number of build passes started so far."""
        return self._passes

    def begin(self, rows: Iterable[EntryRow | dict]) -> list[str]:
        """Start a build pass with the entry files named by *rows*.

        Every pass after the first starts a new host generation.

        Returns:
            The entry files added as roots.
        """
        if self._passes:
            self._host.reset()
        self._passes += 1
        self._sealed = False

        entries, self.ignored = resolve_entry_rows(
            row if isinstance(row, EntryRow) else EntryRow.model_validate(row) for row in rows
        )
        self.add_entries(entries)
        logger.debug("driver.begin", extra={"pass": self._passes, "entries": len(entries), "ignored": len(self.ignored)})
        return entries

    def add_entries(self, entries: Iterable[str]) -> None:
        """Add further entry files to the running pass.

        Raises:
            BuildPassError: If no pass was started or files of this pass were
                already transformed.
        """
        if not self._passes:
            raise BuildPassError("no build pass started; call begin() first")
        if self._sealed:
            raise BuildPassError("entry files must be added before the first file of the pass is transformed")
        for entry in entries:
            self._host.add_file(entry, is_root=True)

    def is_compilable(self, file_name: str) -> bool:
        """Return True if *file_name* is handed to the compile service."""
        if not file_name.lower().endswith(self._compile_extensions):
            return False
        canonical_path = canonicalize(file_name, self._host.cache.current_directory)
        if not self._global_transform and self._host.cache.is_dependency(canonical_path):
            return False
        return True

    def transform(self, file_name: str, source: OutputData) -> OutputData | None:
        """Return what the build tool should use in place of *source*.

        Declaration files produce empty output, compilable files their
        compiled artifact, and everything else passes through unchanged.  A
        missing artifact is reported on the host's error channel and yields
        None.
        """
        if not self._passes:
            raise BuildPassError("no build pass started; call begin() first")
        self._sealed = True

        if is_declaration_file(file_name):
            return b"" if isinstance(source, bytes) else ""
        if not self.is_compilable(file_name):
            return source
        if self._host.has_error:
            return None

        try:
            return self._host.retrieve_output(file_name)
        except NoOutputError as exc:
            if not self._host.has_error:
                self._host.emit_error(exc)
            return None
