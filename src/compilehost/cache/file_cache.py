# Copyright 2026 CompileHost Contributors
# SPDX-License-Identifier: Apache-2.0

"""Generational cache of parsed source files.

The cache keeps exactly two generations: the *current* one, filled during
the running build pass, and the *previous* one, which is what the current
generation was when :meth:`FileCache.reset` was last called.  A parsed
handle is reused only when the file contents are identical, so unchanged
files are never parsed twice across consecutive build passes.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from compilehost.paths.identity import canonicalize

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############

DEFAULT_DEPENDENCY_DIRS: tuple[str, ...] = ("node_modules", "site-packages")
DECLARATION_SUFFIXES: tuple[str, ...] = (".d.ts", ".pyi")

ParseFunction = Callable[[str, str], Any]
FileListener = Callable[[str, str], None]


@dataclass
class FileRecord:
    """One cached source file of the current generation.

    Attributes:
        canonical_path: Identity key of the file.
        relative_path: Path relative to the cache's current directory; this is
            the name handed to the parser.
        contents: Source text as read at the last ``add_file``.
        parsed: Opaque handle produced by the parser for ``contents``.
        is_root: Whether the file is an entry point of the current build.
        is_dependency: Whether the file lives in a dependency directory and is
            not declaration-only.
    """

    canonical_path: str
    relative_path: str
    contents: str
    parsed: Any
    is_root: bool
    is_dependency: bool


def is_declaration_file(path: str) -> bool:
    """Return True for declaration-only sources (``.d.ts``, ``.pyi``)."""
    return path.lower().endswith(DECLARATION_SUFFIXES)


class FileCache:
    """Two-generation cache of parsed source files keyed by canonical path.

    Args:
        parse: Callable ``(file_name, text) -> handle`` producing a fresh
            parsed representation.
        current_directory: Directory relative paths are resolved against and
            relative names are computed from.
        dependency_dirs: Directory names marking third-party dependencies.
        on_file: Listener notified with ``(canonical_path, relative_path)``
            whenever a file is added, cached or not.
    """

    def __init__(
        self,
        parse: ParseFunction,
        *,
        current_directory: str | os.PathLike[str] | None = None,
        dependency_dirs: Iterable[str] = DEFAULT_DEPENDENCY_DIRS,
        on_file: FileListener | None = None,
    ) -> None:
        self._parse = parse
        self._current_directory = canonicalize(current_directory or os.getcwd())
        self._dependency_pattern = _dependency_pattern(dependency_dirs)
        self._on_file = on_file
        self._current: dict[str, FileRecord] = {}
        self._previous: dict[str, FileRecord] = {}
        self.parse_count = 0

    @property
    def current_directory(self) -> str:
        return self._current_directory

    def add_file(self, path: str | os.PathLike[str], is_root: bool = False) -> Any | None:
        """Record *path* in the current generation and return its parsed handle.

        The parsed handle is taken from the current generation, then from the
        previous one, as long as the contents did not change; otherwise the
        file is parsed afresh.

        Args:
            path: Relative or absolute path of the source file.
            is_root: Whether the file is an entry point of the build.

        Returns:
            The parsed handle, or None when the file cannot be read.
        """
        canonical_path = canonicalize(path, self._current_directory)
        contents = _read_text(canonical_path)
        if contents is None:
            return None

        relative_path = os.path.relpath(canonical_path, self._current_directory)
        cached = self._reuse(canonical_path, contents)
        if cached is not None:
            parsed = cached.parsed
        else:
            parsed = self._parse(relative_path, contents)
            self.parse_count += 1
            logger.debug("file_cache.parsed", extra={"path": canonical_path})

        self._current[canonical_path] = FileRecord(
            canonical_path=canonical_path,
            relative_path=relative_path,
            contents=contents,
            parsed=parsed,
            is_root=is_root,
            is_dependency=self.is_dependency(canonical_path),
        )

        if self._on_file is not None:
            self._on_file(canonical_path, relative_path)

        return parsed

    def get(self, path: str | os.PathLike[str]) -> FileRecord | None:
        """Return the current-generation record for *path*, if any."""
        return self._current.get(canonicalize(path, self._current_directory))

    def reset(self) -> None:
        """Demote the current generation to previous and start an empty one."""
        self._previous = self._current
        self._current = {}

    def root_paths(self) -> set[str]:
        """Canonical paths of the current generation's root files."""
        return {record.canonical_path for record in self._current.values() if record.is_root}

    def dependency_paths(self) -> set[str]:
        """Canonical paths of the current generation's dependency files."""
        return {record.canonical_path for record in self._current.values() if record.is_dependency}

    def is_dependency(self, canonical_path: str) -> bool:
        """Return True if *canonical_path* is a non-declaration file in a dependency directory."""
        return bool(self._dependency_pattern.search(canonical_path)) and not is_declaration_file(canonical_path)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, os.PathLike)):
            return False
        return canonicalize(path, self._current_directory) in self._current

    def __len__(self) -> int:
        return len(self._current)

    # ################
    # Implementation
    # ################

    def _reuse(self, canonical_path: str, contents: str) -> FileRecord | None:
        current = self._current.get(canonical_path)
        if current is not None and current.contents == contents:
            return current

        previous = self._previous.pop(canonical_path, None)
        if previous is not None and previous.contents == contents:
            logger.debug("file_cache.reused_previous", extra={"path": canonical_path})
            return previous

        return None


def _dependency_pattern(dependency_dirs: Iterable[str]) -> re.Pattern[str]:
    names = "|".join(re.escape(name) for name in dependency_dirs)
    if not names:
        # Matches nothing.
        return re.compile(r"(?!)")
    return re.compile(rf"[\\/](?:{names})[\\/]")


def _read_text(path: str) -> str | None:
    try:
        # Decoded from bytes so line endings stay exactly as on disk.
        return Path(path).read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug("file_cache.read_failed", extra={"path": path, "error": str(exc)})
        return None
