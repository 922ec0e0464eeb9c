"""Input limits for schema and data files read by the CLI.

A schema AST or data set comes from outside; it is size-checked before it
is read and depth-checked after parsing, so an oversized or pathologically
nested file fails with ``SecurityError`` instead of exhausting memory or
recursion in the validators.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

DEFAULT_MAX_FILE_SIZE = 64 * 1024 * 1024  # 64 MB
DEFAULT_MAX_DEPTH = 64


class SecurityError(Exception):
    """An input file exceeds a limit or cannot be parsed."""
    pass


@dataclass(frozen=True)
class InputLimits:
    """Limits applied to one input file."""

    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    max_depth: int = DEFAULT_MAX_DEPTH


DEFAULT_LIMITS = InputLimits()


def nesting_depth(document: Any, limit: int = DEFAULT_MAX_DEPTH) -> int:
    """Depth of nested objects and arrays in a parsed document.

    Raises:
        SecurityError: As soon as ``limit`` is exceeded
    """
    deepest = 0
    stack = [(document, 0)]
    while stack:
        node, depth = stack.pop()
        if depth > limit:
            raise SecurityError(f"document nesting exceeds {limit} levels")
        deepest = max(deepest, depth)
        if isinstance(node, dict):
            stack.extend((child, depth + 1) for child in node.values())
        elif isinstance(node, list):
            stack.extend((child, depth + 1) for child in node)
    return deepest


def parse_json(text: str | bytes, limits: InputLimits = DEFAULT_LIMITS, source: str = "<input>") -> Any:
    """Parse JSON text and enforce the depth limit."""
    try:
        document = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise SecurityError(f"{source} is not valid JSON: {e}")
    nesting_depth(document, limits.max_depth)
    return document


def load_json_file(path: Path | str, limits: InputLimits = DEFAULT_LIMITS) -> Any:
    """Read and parse a JSON file within ``limits``."""
    path = Path(path)
    size = path.stat().st_size
    if size > limits.max_file_size:
        raise SecurityError(f"{path} is too large ({size} bytes > {limits.max_file_size})")
    return parse_json(path.read_bytes(), limits, source=str(path))
