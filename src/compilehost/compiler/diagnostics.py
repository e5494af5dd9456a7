# Copyright 2026 CompileHost Contributors
# SPDX-License-Identifier: Apache-2.0

"""Compiler diagnostics and their translation into addressable errors.

A :class:`Diagnostic` is what a compile service reports.  The host turns each
one into a :class:`CompileError` carrying the display message and, when the
diagnostic is attached to a source file, the 1-based line and column of its
start offset.  Program-global diagnostics have no location; their
``file_name``, ``line`` and ``column`` stay ``None``.
"""

from __future__ import annotations

import bisect
import enum
import os
from dataclasses import dataclass, field
from typing import Protocol

# ###############
# Public Interface
# ###############


class DiagnosticCategory(enum.IntEnum):
    """Severity of a diagnostic."""

    WARNING = 0
    ERROR = 1
    SUGGESTION = 2
    MESSAGE = 3

    @property
    def label(self) -> str:
        """Display name used in messages (``Error``, ``Warning``, ...)."""
        return self.name.capitalize()


class SourceText(Protocol):
    """The part of a parsed source handle needed to locate a diagnostic."""

    file_name: str
    text: str


@dataclass(frozen=True)
class DiagnosticMessageChain:
    """A message with nested detail messages."""

    message_text: str
    next: tuple[DiagnosticMessageChain, ...] = ()


@dataclass(frozen=True)
class Diagnostic:
    """A finding reported by a compile service.

    Attributes:
        category: Severity of the finding.
        code: Numeric diagnostic code.
        message_text: A plain message or a nested message chain.
        file: Source the diagnostic is attached to, or None if it is global.
        start: Character offset into ``file.text`` where the finding starts.
        length: Length of the affected span, if known.
    """

    category: DiagnosticCategory
    code: int
    message_text: str | DiagnosticMessageChain
    file: SourceText | None = field(default=None, compare=False)
    start: int | None = None
    length: int | None = None


class CompileError(Exception):
    """A diagnostic translated into an error with an optional source location.

    Attributes:
        diagnostic: The diagnostic this error was built from.
        category: Severity of the diagnostic.
        code: Numeric diagnostic code.
        file_name: Name of the source file, or None for global diagnostics.
        line: 1-based line of the diagnostic start, or None.
        column: 1-based column of the diagnostic start, or None.
    """

    def __init__(self, diagnostic: Diagnostic) -> None:
        category = diagnostic.category.label
        text = flatten_message_text(diagnostic.message_text, os.linesep)
        message = f"{category} {diagnostic.code}: {text}"

        file_name: str | None = None
        line: int | None = None
        column: int | None = None

        if diagnostic.file is not None:
            line0, character0 = line_and_character_of_position(diagnostic.file.text, diagnostic.start or 0)
            file_name = diagnostic.file.file_name
            line = line0 + 1
            column = character0 + 1
            message = f"{file_name}({line},{column}): {message}"

        super().__init__(message)
        self.diagnostic = diagnostic
        self.category = diagnostic.category
        self.code = diagnostic.code
        self.file_name = file_name
        self.line = line
        self.column = column

    @property
    def message(self) -> str:
        return str(self)


def flatten_message_text(message_text: str | DiagnosticMessageChain, new_line: str = "\n", indent: int = 0) -> str:
    """Flatten a possibly nested message into one string.

    Each nesting level starts on a new line and is indented by two spaces.
    """
    if isinstance(message_text, str):
        return message_text

    result = ""
    if indent:
        result += new_line + "  " * indent
    result += message_text.message_text
    for detail in message_text.next:
        result += flatten_message_text(detail, new_line, indent + 1)
    return result


def line_starts(text: str) -> list[int]:
    """Return the character offsets at which each line of *text* begins.

    ``\\r\\n``, ``\\r``, ``\\n`` and the Unicode line/paragraph separators
    all end a line.
    """
    starts = [0]
    position = 0
    length = len(text)
    while position < length:
        char = text[position]
        position += 1
        if char == "\r":
            if position < length and text[position] == "\n":
                position += 1
            starts.append(position)
        elif char in _LINE_BREAKS:
            starts.append(position)
    return starts


def line_and_character_of_position(text: str, position: int) -> tuple[int, int]:
    """Convert a character offset into a 0-based ``(line, character)`` pair.

    Offsets past the end of *text* are clamped to its end.
    """
    position = max(0, min(position, len(text)))
    starts = line_starts(text)
    line = bisect.bisect_right(starts, position) - 1
    return line, position - starts[line]


def position_of_line_and_column(text: str, line: int, column: int) -> int:
    """Convert a 1-based line and column into a character offset into *text*."""
    starts = line_starts(text)
    index = max(0, min(line - 1, len(starts) - 1))
    return min(starts[index] + max(column - 1, 0), len(text))


# ################
# Implementation
# ################

_LINE_BREAKS = frozenset({"\n", "\u2028", "\u2029"})
