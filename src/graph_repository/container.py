"""
Registry of ready-to-use repository implementations.

Each discovered repository interface gets one proxy, registered under the
interface's class name.
"""
from typing import Any, Callable, Iterator, Optional, Union

from loguru import logger

from .domain.exceptions import RepositoryConfigurationError
from .domain.interfaces import DriverAdapter
from .domain.models import RepositoryDescriptor
from .domain.services import build_repository

CrudFactory = Callable[[type], Any]


class RepositoryContainer:
    """Holds one repository instance per registered interface."""

    def __init__(self, driver: DriverAdapter, crud_factory: CrudFactory) -> None:
        self.driver = driver
        self.crud_factory = crud_factory
        self._repositories: dict[str, Any] = {}
        self._descriptors: dict[str, RepositoryDescriptor] = {}

    def register(self, descriptor: RepositoryDescriptor) -> Any:
        """Build and register the implementation for ``descriptor``."""
        name = descriptor.name
        if name in self._repositories:
            existing = self._descriptors[name].repository_type
            raise RepositoryConfigurationError(
                f"Repository name '{name}' is already registered for "
                f"{existing.__module__}.{existing.__qualname__}"
            )
        crud_target = self.crud_factory(descriptor.entity_type)
        repository = build_repository(descriptor, self.driver, crud_target)
        self._repositories[name] = repository
        self._descriptors[name] = descriptor
        logger.info(f"Registered repository '{name}' for {descriptor.entity_type.__name__}")
        return repository

    def get(self, key: Union[str, type]) -> Any:
        name = key if isinstance(key, str) else key.__name__
        try:
            return self._repositories[name]
        except KeyError:
            raise RepositoryConfigurationError(f"No repository registered as '{name}'") from None

    def descriptor(self, key: Union[str, type]) -> Optional[RepositoryDescriptor]:
        name = key if isinstance(key, str) else key.__name__
        return self._descriptors.get(name)

    def names(self) -> list[str]:
        return list(self._repositories)

    def __getitem__(self, key: Union[str, type]) -> Any:
        return self.get(key)

    def __contains__(self, key: object) -> bool:
        if isinstance(key, type):
            key = key.__name__
        return key in self._repositories

    def __iter__(self) -> Iterator[str]:
        return iter(self._repositories)

    def __len__(self) -> int:
        return len(self._repositories)
