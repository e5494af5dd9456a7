# Copyright 2026 CompileHost Contributors
# SPDX-License-Identifier: Apache-2.0

"""Generational source file cache."""

from compilehost.cache.file_cache import (
    DECLARATION_SUFFIXES,
    DEFAULT_DEPENDENCY_DIRS,
    FileCache,
    FileRecord,
    is_declaration_file,
)

__all__ = [
    "DECLARATION_SUFFIXES",
    "DEFAULT_DEPENDENCY_DIRS",
    "FileCache",
    "FileRecord",
    "is_declaration_file",
]
