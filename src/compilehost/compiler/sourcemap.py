# Copyright 2026 CompileHost Contributors
# SPDX-License-Identifier: Apache-2.0

"""Rewriting of inline source maps embedded in compiled output."""

from __future__ import annotations

import base64
import binascii
import json
import re
from typing import Any
from urllib.parse import unquote

# ###############
# Public Interface
# ###############

COMMENT_PATTERN = re.compile(
    r"^(?P<leading>[ \t]*)/(?:/|\*)[@#]\s+?sourceMappingURL=data:"
    r"(?:(?:application|text)/json)?"
    r"(?:;charset=(?P<charset>[^;,]+?)?)?"
    r"(?P<base64>;base64)?,(?P<data>.*?)[ \t]*(?:\*/)?[ \t]*$",
    re.MULTILINE,
)


class SourceMapError(Exception):
    """Raised when an inline source map cannot be decoded."""


def rewrite_sources_field(output_text: str, source_path: str) -> str:
    """Point the inline source map of *output_text* at *source_path*.

    The last inline ``sourceMappingURL`` data comment is decoded, its
    ``sources`` field replaced by ``[source_path]`` and the map re-encoded in
    place as a base64 ``//#`` comment.  Text without an inline source map is
    returned unchanged.

    Raises:
        SourceMapError: If the embedded map is not valid base64 or JSON.
    """
    match = None
    for match in COMMENT_PATTERN.finditer(output_text):
        pass
    if match is None:
        return output_text

    source_map = _decode(match)
    source_map["sources"] = [source_path]
    return output_text[: match.start()] + _encode(source_map, match.group("leading")) + output_text[match.end() :]


# ################
# Implementation
# ################


def _decode(match: re.Match[str]) -> dict[str, Any]:
    data = match.group("data")
    try:
        if match.group("base64"):
            raw = base64.b64decode(data, validate=True).decode(match.group("charset") or "utf-8")
        else:
            raw = unquote(data)
        source_map = json.loads(raw)
    except (binascii.Error, UnicodeDecodeError, LookupError, json.JSONDecodeError) as exc:
        raise SourceMapError(f"Invalid inline source map: {exc}") from exc
    if not isinstance(source_map, dict):
        raise SourceMapError("Invalid inline source map: expected a JSON object")
    return source_map


def _encode(source_map: dict[str, Any], leading: str) -> str:
    payload = json.dumps(source_map, separators=(",", ":")).encode("utf-8")
    encoded = base64.b64encode(payload).decode("ascii")
    return f"{leading}//# sourceMappingURL=data:application/json;charset=utf-8;base64,{encoded}"
