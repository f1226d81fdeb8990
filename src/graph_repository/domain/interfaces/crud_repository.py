"""Repository capability that declarative repository interfaces extend."""
from typing import Generic, Optional, TypeVar

EntityT = TypeVar("EntityT")
IdT = TypeVar("IdT")


class CrudRepository(Generic[EntityT, IdT]):
    """Interface for data access over one entity type.

    Subclass it with concrete type arguments to declare a repository::

        class Users(CrudRepository[User, str]):
            @query("MATCH (u:User) WHERE u.name = ?1 RETURN u")
            def find_by_name(self, name: str) -> Optional[User]: ...

    Methods without a query template are served by the generic CRUD
    implementation for the entity type.
    """

    def get_by_id(self, entity_id: IdT) -> Optional[EntityT]:
        """Return the entity with the given identifier, or ``None``."""
        raise NotImplementedError

    def save(self, entity: EntityT) -> EntityT:
        """Create or replace the entity and return the stored state."""
        raise NotImplementedError

    def delete(self, entity: EntityT) -> bool:
        """Delete the entity. Returns ``True`` if something was removed."""
        raise NotImplementedError

    def delete_by_id(self, entity_id: IdT) -> bool:
        raise NotImplementedError

    def find_all(self) -> list[EntityT]:
        raise NotImplementedError

    def count(self) -> int:
        raise NotImplementedError

    def exists_by_id(self, entity_id: IdT) -> bool:
        raise NotImplementedError
