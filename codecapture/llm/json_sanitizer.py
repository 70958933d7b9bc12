"""
JSON Sanitizer

Deterministic fixes for the malformed JSON models commonly emit: raw control
characters inside strings, trailing commas, unquoted property names and
output cut off before its closing brackets. Each fix rewrites only text
outside string literals (control characters excepted) and runs only while
the text still fails to parse.
"""

import json
import re
from typing import Any, Callable

_TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")
_UNQUOTED_KEY_RE = re.compile(r"([{,]\s*)([A-Za-z_$][\w$-]*)(\s*:)")
_CONTROL_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t"}
_CLOSERS = {"{": "}", "[": "]"}


def _split_strings(text: str) -> list[tuple[bool, str]]:
    """Split text into (is_string_literal, segment) pieces.

    A string left open at the end of the text is returned as a final string
    segment without its closing quote.
    """
    segments: list[tuple[bool, str]] = []
    start = 0
    in_string = False
    escape = False

    for i, ch in enumerate(text):
        if in_string:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                segments.append((True, text[start : i + 1]))
                start = i + 1
                in_string = False
        elif ch == '"':
            if i > start:
                segments.append((False, text[start:i]))
            start = i
            in_string = True

    if start < len(text):
        segments.append((in_string, text[start:]))
    return segments


def _map_outside_strings(text: str, fix: Callable[[str], str]) -> str:
    return "".join(
        segment if is_string else fix(segment) for is_string, segment in _split_strings(text)
    )


def escape_control_characters(text: str) -> str:
    """Escape raw newlines and tabs that models leave inside string values."""
    pieces = []
    for is_string, segment in _split_strings(text):
        if is_string:
            for raw, escaped in _CONTROL_ESCAPES.items():
                segment = segment.replace(raw, escaped)
        pieces.append(segment)
    return "".join(pieces)


def remove_trailing_commas(text: str) -> str:
    return _map_outside_strings(text, lambda s: _TRAILING_COMMA_RE.sub(r"\1", s))


def quote_property_names(text: str) -> str:
    return _map_outside_strings(text, lambda s: _UNQUOTED_KEY_RE.sub(r'\1"\2"\3', s))


def close_truncated_structures(text: str) -> str:
    """Close an unterminated string and any brackets left open at the end."""
    stack: list[str] = []
    in_string = False
    escape = False
    for ch in text:
        if in_string:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch in _CLOSERS:
            stack.append(ch)
        elif ch in ("}", "]") and stack:
            stack.pop()

    if not stack and not in_string:
        return text

    repaired = text
    if in_string:
        # A dangling backslash would escape the added quote
        if escape:
            repaired = repaired[:-1]
        repaired += '"'
    repaired = repaired.rstrip()
    if repaired.endswith(","):
        repaired = repaired[:-1]
    elif repaired.endswith(":"):
        repaired += " null"
    return repaired + "".join(_CLOSERS[opener] for opener in reversed(stack))


# Applied in order, each only while parsing still fails
SANITIZERS: list[tuple[str, Callable[[str], str]]] = [
    ("escape_control_characters", escape_control_characters),
    ("remove_trailing_commas", remove_trailing_commas),
    ("quote_property_names", quote_property_names),
    ("close_truncated_structures", close_truncated_structures),
]


def parse_json_with_repair(text: str) -> tuple[Any, tuple[str, ...]]:
    """
    Parse JSON, repairing it step by step if it does not parse as-is.

    Args:
        text: Candidate JSON document

    Returns:
        (decoded value, names of the sanitizers that changed the text)

    Raises:
        json.JSONDecodeError: If the text still fails to parse after every
            sanitizer has run
    """
    try:
        return json.loads(text), ()
    except json.JSONDecodeError:
        pass

    applied: list[str] = []
    current = text
    for name, sanitizer in SANITIZERS:
        candidate = sanitizer(current)
        if candidate == current:
            continue
        current = candidate
        applied.append(name)
        try:
            return json.loads(current), tuple(applied)
        except json.JSONDecodeError:
            continue

    return json.loads(current), tuple(applied)
