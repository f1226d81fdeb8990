"""Infrastructure implementations of domain interfaces."""

from .neo4j_adapter import Neo4jDriverAdapter
from .neo4j_repository import Neo4jCrudRepository
from .neo4j_utils import close_neo4j_driver, execute_query, get_neo4j_driver

__all__ = [
    "Neo4jCrudRepository",
    "Neo4jDriverAdapter",
    "close_neo4j_driver",
    "execute_query",
    "get_neo4j_driver",
]
