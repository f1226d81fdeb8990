"""Domain service layer: discovery, template rendering, result shaping and dispatch."""

from .dispatch import build_repository, interface_methods
from .query_template import format_literal, placeholders, render
from .registry import describe_repository, discover_repositories
from .result_shape import adapt, resolve_shape

__all__ = [
    "adapt",
    "build_repository",
    "describe_repository",
    "discover_repositories",
    "format_literal",
    "interface_methods",
    "placeholders",
    "render",
    "resolve_shape",
]
