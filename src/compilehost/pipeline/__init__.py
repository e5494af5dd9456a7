# Copyright 2026 CompileHost Contributors
# SPDX-License-Identifier: Apache-2.0

"""Build pass driving for build tool integrations."""

from compilehost.pipeline.driver import BuildDriver, BuildPassError
from compilehost.pipeline.entries import EntryRow, resolve_entry_rows

__all__ = [
    "BuildDriver",
    "BuildPassError",
    "EntryRow",
    "resolve_entry_rows",
]
