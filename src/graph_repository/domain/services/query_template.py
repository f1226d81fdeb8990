"""
Positional query template rendering.

Templates reference call-site arguments with 1-based ``?N`` placeholders.
Each argument must be referenced exactly once; rendering produces a fully
literal query with string arguments quoted and escaped.
"""

import re
from collections.abc import Sequence
from typing import Any

from ..exceptions import (
    ArgumentCountMismatchError,
    PlaceholderOutOfRangeError,
    PlaceholderReuseError,
)

PLACEHOLDER_PATTERN = re.compile(r"\?([0-9]+)")


def quote_string(value: str) -> str:
    """Return ``value`` as a single-quoted literal that cannot be terminated early."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def format_literal(value: Any) -> str:
    """Render an argument as a query literal."""
    if isinstance(value, str):
        return quote_string(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def placeholders(template: str) -> list[int]:
    """List the placeholder indexes referenced by ``template`` in order of appearance."""
    return [int(match.group(1)) for match in PLACEHOLDER_PATTERN.finditer(template)]


def render(template: str, args: Sequence[Any]) -> str:
    """Substitute ``args`` into ``template`` and return the literal query."""
    parts: list[str] = []
    seen: set[int] = set()
    position = 0
    for match in PLACEHOLDER_PATTERN.finditer(template):
        index = int(match.group(1))
        if index < 1 or index > len(args):
            raise PlaceholderOutOfRangeError(index, len(args))
        if index in seen:
            raise PlaceholderReuseError(index)
        seen.add(index)
        parts.append(template[position : match.start()])
        parts.append(format_literal(args[index - 1]))
        position = match.end()
    parts.append(template[position:])

    if len(seen) != len(args):
        raise ArgumentCountMismatchError(len(seen), len(args))
    return "".join(parts)
