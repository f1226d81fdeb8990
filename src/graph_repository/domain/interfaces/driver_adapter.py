"""Abstract driver boundary used by the dispatch layer."""
from typing import Any, Optional, Protocol, TypeVar

T = TypeVar("T")


class DriverAdapter(Protocol):
    """Interface for query execution against the database."""

    def query(
        self,
        query: str,
        entity_type: type[T],
        parameters: Optional[dict[str, Any]] = None,
    ) -> list[T]:
        """Execute ``query`` and return its rows deserialized as ``entity_type``.

        Declarative queries arrive fully literal, with no parameters. Failures
        must be raised as ``DriverExecutionError``, never returned as an empty list.
        """
        raise NotImplementedError
