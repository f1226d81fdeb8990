"""Declarative repositories over a graph database.

Declare a repository interface by extending ``CrudRepository`` and attach
positional query templates with ``@query``; ``initialize_repositories``
discovers the interfaces and builds an implementation for each.
"""

from .app_setup import configure_logging, initialize_repositories
from .container import RepositoryContainer
from .domain.exceptions import (
    ArgumentCountMismatchError,
    DiscoveryError,
    DriverExecutionError,
    PlaceholderOutOfRangeError,
    PlaceholderReuseError,
    QueryTemplateError,
    RepositoryConfigurationError,
    RepositoryError,
    UnsupportedReturnShapeError,
)
from .domain.interfaces import CrudRepository, DriverAdapter, query
from .domain.models import RepositoryDescriptor, ResultShape
from .domain.services import build_repository, describe_repository, discover_repositories, render

__version__ = "0.1.0"

__all__ = [
    "ArgumentCountMismatchError",
    "CrudRepository",
    "DiscoveryError",
    "DriverAdapter",
    "DriverExecutionError",
    "PlaceholderOutOfRangeError",
    "PlaceholderReuseError",
    "QueryTemplateError",
    "RepositoryConfigurationError",
    "RepositoryContainer",
    "RepositoryDescriptor",
    "RepositoryError",
    "ResultShape",
    "UnsupportedReturnShapeError",
    "build_repository",
    "configure_logging",
    "describe_repository",
    "discover_repositories",
    "initialize_repositories",
    "query",
    "render",
]
