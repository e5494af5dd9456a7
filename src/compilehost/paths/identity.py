# Copyright 2026 CompileHost Contributors
# SPDX-License-Identifier: Apache-2.0

"""Canonical file identity and symlink resolution.

Every file reference entering the host (build-tool paths, compiler paths,
inferred output paths) is reduced to one canonical string key so that the
cache holds at most one record per file.
"""

from __future__ import annotations

import os

# ###############
# Public Interface
# ###############

# Same bound the kernel uses for ELOOP.
MAX_SYMLINK_HOPS = 40


class PathResolutionError(Exception):
    """Raised when a path cannot be de-aliased through its symlinks.

    Attributes:
        path: The path that was being resolved.
    """

    def __init__(self, message: str, path: str) -> None:
        super().__init__(message)
        self.path = path


def canonicalize(path: str | os.PathLike[str], base_dir: str | os.PathLike[str] | None = None) -> str:
    """Return the canonical key for *path*.

    The path is resolved against *base_dir* (default: the process working
    directory) and ``.``/``..`` segments and duplicate separators are
    collapsed.  No filesystem access takes place and symlinks are left
    untouched.

    Args:
        path: A relative or absolute path.
        base_dir: Directory relative paths are resolved against.

    Returns:
        An absolute, normalized path string.
    """
    base = os.fspath(base_dir) if base_dir is not None else os.getcwd()
    return os.path.normpath(os.path.join(base, os.fspath(path)))


def follow(path: str | os.PathLike[str]) -> str:
    """Return *path* with every symlinked component replaced by its target.

    The path is walked from the root to the leaf.  Whenever the accumulated
    prefix is a symbolic link it is replaced by its (absolute) target before
    the walk continues, so chains of links are de-aliased as well.

    Raises:
        PathResolutionError: If a component does not exist or the links form
            a cycle.
    """
    return _follow(canonicalize(path), hops=0)


# ################
# Implementation
# ################


def _follow(path: str, hops: int) -> str:
    drive, rest = os.path.splitdrive(path)
    parts = [part for part in rest.split(os.sep) if part]
    resolved = drive + os.sep

    for index, part in enumerate(parts):
        candidate = os.path.join(resolved, part)
        if os.path.islink(candidate):
            hops += 1
            if hops > MAX_SYMLINK_HOPS:
                raise PathResolutionError(f"Too many levels of symbolic links in '{path}'", path)
            target = canonicalize(os.readlink(candidate), resolved)
            remainder = os.path.join(target, *parts[index + 1 :]) if index + 1 < len(parts) else target
            return _follow(remainder, hops)
        if not os.path.lexists(candidate):
            raise PathResolutionError(f"No such file or directory: '{candidate}'", path)
        resolved = candidate

    return resolved
