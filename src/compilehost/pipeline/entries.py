# Copyright 2026 CompileHost Contributors
# SPDX-License-Identifier: Apache-2.0

"""Entry point discovery from build-tool records."""

from __future__ import annotations

import os
from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict

# ###############
# Public Interface
# ###############


class EntryRow(BaseModel):
    """A record the build tool produces for each module it was asked to bundle.

    Attributes:
        file: Path of the module file.
        id: Module identifier; used as the path when ``file`` is missing.
        source: Inline source text; rows carrying it have no file to compile.
        basedir: Directory a relative ``file``/``id`` is resolved against.
    """

    model_config = ConfigDict(extra="ignore")

    file: str | None = None
    id: str | None = None
    source: str | None = None
    basedir: str | None = None


def resolve_entry_rows(rows: Iterable[EntryRow]) -> tuple[list[str], list[str]]:
    """Split build-tool rows into entry files and ignored names.

    A row becomes an entry when it names a file and has no inline source.
    The name is resolved against ``basedir`` when one is given and kept as-is
    when already absolute; relative names without a ``basedir`` are ignored.

    Returns:
        A ``(entries, ignored)`` pair, both in row order.
    """
    entries: list[str] = []
    ignored: list[str] = []
    for row in rows:
        name = row.file or row.id
        if not name:
            continue
        if row.source is not None:
            ignored.append(name)
        elif row.basedir:
            entries.append(os.path.normpath(os.path.join(row.basedir, name)))
        elif os.path.isabs(name):
            entries.append(name)
        else:
            ignored.append(name)
    return entries, ignored
