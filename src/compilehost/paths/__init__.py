# Copyright 2026 CompileHost Contributors
# SPDX-License-Identifier: Apache-2.0

"""Path identity: canonical keys, symlink following, and output path mapping."""

from compilehost.paths.identity import MAX_SYMLINK_HOPS, PathResolutionError, canonicalize, follow
from compilehost.paths.output_mapper import OutputPathMapper, replace_extension

__all__ = [
    "MAX_SYMLINK_HOPS",
    "OutputPathMapper",
    "PathResolutionError",
    "canonicalize",
    "follow",
    "replace_extension",
]
