"""Declarative query metadata for repository methods."""
from typing import Callable, Optional, TypeVar

QUERY_TEMPLATE_ATTR = "__query_template__"

F = TypeVar("F", bound=Callable)


def query(template: str) -> Callable[[F], F]:
    """Attach a positional query template (``?1``, ``?2``...) to a repository method."""
    if not isinstance(template, str) or not template.strip():
        raise ValueError("Query template must be a non-empty string")

    def decorator(func: F) -> F:
        setattr(func, QUERY_TEMPLATE_ATTR, template)
        return func

    return decorator


def get_query_template(func: Callable) -> Optional[str]:
    """Return the template attached to ``func``, if any."""
    return getattr(func, QUERY_TEMPLATE_ATTR, None)
