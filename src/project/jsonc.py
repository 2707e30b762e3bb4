"""Loader for JSON with comments and trailing commas (tsconfig.json dialect)."""

from __future__ import annotations

import json
import re
from typing import Any

_TRAILING_COMMA = re.compile(r",(\s*[}\]])")


def strip_comments(text: str) -> str:
    """Remove ``//`` and ``/* */`` comments that are not inside string literals.

    Args:
        text: JSON text with possible comments.

    Returns:
        JSON text with comments removed; newlines inside block comments are
        kept so parser error positions still point at the right line.
    """
    result = []
    i = 0
    n = len(text)
    in_string = False

    while i < n:
        char = text[i]

        if in_string:
            result.append(char)
            if char == "\\" and i + 1 < n:
                result.append(text[i + 1])
                i += 2
                continue
            if char == '"':
                in_string = False
            i += 1
            continue

        if char == '"':
            in_string = True
            result.append(char)
            i += 1
            continue

        if char == "/" and i + 1 < n and text[i + 1] == "/":
            while i < n and text[i] != "\n":
                i += 1
            continue

        if char == "/" and i + 1 < n and text[i + 1] == "*":
            i += 2
            while i < n and not (text[i] == "*" and i + 1 < n and text[i + 1] == "/"):
                if text[i] == "\n":
                    result.append("\n")
                i += 1
            i += 2
            continue

        result.append(char)
        i += 1

    return "".join(result)


def strip_trailing_commas(text: str) -> str:
    """Drop commas directly preceding a closing brace or bracket.

    Must run after :func:`strip_comments`; string contents are not inspected,
    which matches how tsconfig files are written in practice.
    """
    return _TRAILING_COMMA.sub(r"\1", text)


def loads(text: str) -> Any:
    """Parse JSONC text. Raises ``json.JSONDecodeError`` on malformed input."""
    return json.loads(strip_trailing_commas(strip_comments(text)))
