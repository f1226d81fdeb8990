"""Generic Neo4j CRUD implementation keyed by entity type."""
from typing import Any, Generic, Optional, TypeVar

from loguru import logger
from pydantic import PydanticSchemaGenerationError, TypeAdapter

from ..domain.exceptions import RepositoryConfigurationError
from ..domain.interfaces import DriverAdapter
from .neo4j_utils import validate_label

EntityT = TypeVar("EntityT")
IdT = TypeVar("IdT")

# Identifiers are bound in the same JSON form ``save`` stores them in.
_ID_ADAPTER: TypeAdapter[Any] = TypeAdapter(Any)


class Neo4jCrudRepository(Generic[EntityT, IdT]):
    """
    Default bodies for repository methods without a query template.

    Entities are stored as nodes labelled with the entity class name and
    identified by the ``id_property`` node property. All queries bind their
    values as parameters.
    """

    def __init__(
        self,
        entity_type: type[EntityT],
        driver: DriverAdapter,
        id_property: str = "id",
    ) -> None:
        self.entity_type = entity_type
        self.driver = driver
        self.label = validate_label(entity_type.__name__)
        self.id_property = validate_label(id_property)
        try:
            self._adapter = TypeAdapter(entity_type)
        except PydanticSchemaGenerationError as exc:
            raise RepositoryConfigurationError(
                f"Entity type {entity_type.__name__} cannot be mapped to node properties: {exc}"
            ) from exc

    def _properties(self, entity: EntityT) -> dict[str, Any]:
        properties = self._adapter.dump_python(entity, mode="json")
        if not isinstance(properties, dict):
            raise TypeError(f"{self.label} entities must serialize to a mapping")
        return {key: value for key, value in properties.items() if value is not None}

    @staticmethod
    def _key(entity_id: Any) -> Any:
        return _ID_ADAPTER.dump_python(entity_id, mode="json")

    def _identifier(self, entity: EntityT) -> Any:
        entity_id = self._properties(entity).get(self.id_property)
        if entity_id is None:
            raise ValueError(f"{self.label} entity has no '{self.id_property}' value")
        return entity_id

    def get_by_id(self, entity_id: IdT) -> Optional[EntityT]:
        query = f"MATCH (n:{self.label} {{{self.id_property}: $id}}) RETURN n LIMIT 1"
        rows = self.driver.query(query, self.entity_type, {"id": self._key(entity_id)})
        return rows[0] if rows else None

    def save(self, entity: EntityT) -> EntityT:
        properties = self._properties(entity)
        entity_id = self._identifier(entity)
        query = (
            f"MERGE (n:{self.label} {{{self.id_property}: $id}}) "
            "SET n = $props RETURN n"
        )
        rows = self.driver.query(query, self.entity_type, {"id": entity_id, "props": properties})
        logger.info(f"Saved {self.label} {entity_id}")
        return rows[0] if rows else entity

    def delete(self, entity: EntityT) -> bool:
        return self.delete_by_id(self._identifier(entity))

    def delete_by_id(self, entity_id: IdT) -> bool:
        query = (
            f"MATCH (n:{self.label} {{{self.id_property}: $id}}) "
            "DETACH DELETE n RETURN count(n)"
        )
        rows = self.driver.query(query, int, {"id": self._key(entity_id)})
        deleted = bool(rows and rows[0])
        if deleted:
            logger.info(f"Deleted {self.label} {entity_id}")
        return deleted

    def find_all(self) -> list[EntityT]:
        return self.driver.query(f"MATCH (n:{self.label}) RETURN n", self.entity_type)

    def count(self) -> int:
        rows = self.driver.query(f"MATCH (n:{self.label}) RETURN count(n)", int)
        return rows[0] if rows else 0

    def exists_by_id(self, entity_id: IdT) -> bool:
        query = f"MATCH (n:{self.label} {{{self.id_property}: $id}}) RETURN count(n) > 0"
        rows = self.driver.query(query, bool, {"id": self._key(entity_id)})
        return bool(rows and rows[0])
