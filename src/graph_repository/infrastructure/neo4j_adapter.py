"""Neo4j implementation of the driver adapter boundary."""
from typing import Any, Optional, TypeVar

from loguru import logger
from neo4j import Driver, Record
from neo4j.exceptions import DriverError, Neo4jError
from neo4j.graph import Node, Path, Relationship
from pydantic import PydanticSchemaGenerationError, TypeAdapter, ValidationError

from ..domain.exceptions import DriverExecutionError
from ..domain.interfaces import DriverAdapter
from . import neo4j_utils

T = TypeVar("T")


def graph_value(value: Any) -> Any:
    """Convert driver graph objects into plain Python values."""
    if isinstance(value, (Node, Relationship)):
        return dict(value)
    if isinstance(value, Path):
        return [dict(node) for node in value.nodes]
    if isinstance(value, list):
        return [graph_value(item) for item in value]
    if isinstance(value, dict):
        return {key: graph_value(item) for key, item in value.items()}
    return value


def record_value(record: Record) -> Any:
    """Single-column records yield their value; wider records yield a dict."""
    if len(record) == 1:
        return graph_value(record[0])
    return {key: graph_value(record[key]) for key in record.keys()}


class Neo4jDriverAdapter(DriverAdapter):
    """DriverAdapter backed by Neo4j."""

    def __init__(
        self,
        driver: Optional[Driver] = None,
        database: Optional[str] = None,
        tx_type: str = "write",
    ) -> None:
        if tx_type not in neo4j_utils.TX_TYPES:
            raise ValueError(
                f"Invalid transaction type: {tx_type}. Must be 'read' or 'write'."
            )
        self.driver = driver
        self.database = database
        self.tx_type = tx_type

    def query(
        self,
        query: str,
        entity_type: type[T],
        parameters: Optional[dict[str, Any]] = None,
    ) -> list[T]:
        try:
            records = neo4j_utils.execute_query(
                query,
                parameters=parameters,
                database=self.database,
                tx_type=self.tx_type,
                driver=self.driver,
            )
        except (Neo4jError, DriverError) as exc:
            raise DriverExecutionError(f"Query execution failed: {exc}", query=query) from exc

        try:
            adapter = TypeAdapter(entity_type)
        except PydanticSchemaGenerationError as exc:
            raise DriverExecutionError(
                f"No row mapping for {getattr(entity_type, '__name__', entity_type)}: {exc}",
                query=query,
            ) from exc
        try:
            return [adapter.validate_python(record_value(record)) for record in records]
        except ValidationError as exc:
            logger.error(f"Could not map query rows to {entity_type!r}: {exc}")
            raise DriverExecutionError(
                f"Could not map query rows to {getattr(entity_type, '__name__', entity_type)}: {exc}",
                query=query,
            ) from exc
