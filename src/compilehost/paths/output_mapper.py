# Copyright 2026 CompileHost Contributors
# SPDX-License-Identifier: Apache-2.0

"""Translation between source paths and virtual output paths."""

from __future__ import annotations

import os

from compilehost.paths.identity import canonicalize

# ###############
# Public Interface
# ###############


class OutputPathMapper:
    """Maps canonical source paths under a root directory to an output directory and back.

    The output directory mirrors the layout of the root directory.  When no
    output directory is configured, outputs sit next to their sources.

    Attributes:
        root_dir: Canonical logical source root.
        out_dir: Canonical output directory.
    """

    def __init__(self, root_dir: str | os.PathLike[str], out_dir: str | os.PathLike[str] | None = None) -> None:
        self.root_dir = canonicalize(root_dir)
        self.out_dir = canonicalize(out_dir) if out_dir is not None else self.root_dir

    def to_output(self, source_path: str) -> str:
        """Return the output-side path for a canonical source path."""
        return canonicalize(os.path.relpath(source_path, self.root_dir), self.out_dir)

    def to_source(self, output_path: str) -> str:
        """Return the source-side path for a canonical output path."""
        return canonicalize(os.path.relpath(output_path, self.out_dir), self.root_dir)

    def __repr__(self) -> str:
        return f"OutputPathMapper(root_dir={self.root_dir!r}, out_dir={self.out_dir!r})"


def replace_extension(path: str, extension: str) -> str:
    """Replace the last extension of *path* (``a/b.ts`` -> ``a/b.js``).

    Paths without an extension get *extension* appended.
    """
    stem, _ = os.path.splitext(path)
    return stem + extension
