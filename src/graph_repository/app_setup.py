import sys
from typing import Iterable, Optional

from loguru import logger

from .config import LoggingSettingsModel, RuntimeSettings, runtime_settings
from .container import CrudFactory, RepositoryContainer
from .domain.exceptions import RepositoryConfigurationError, UnsupportedReturnShapeError
from .domain.interfaces import DriverAdapter
from .domain.services import discover_repositories
from .infrastructure import Neo4jCrudRepository, Neo4jDriverAdapter


def configure_logging(settings: Optional[LoggingSettingsModel] = None) -> None:
    """Replace the default loguru sink with the configured sinks."""
    settings = settings or runtime_settings.logging
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.level.upper(),
        format=settings.format,
        colorize=True,
    )
    if settings.file_path:
        logger.add(
            settings.file_path,
            level=settings.level.upper(),
            rotation=settings.rotation,
        )
    logger.info("Logger configured with level: {}", settings.level.upper())


def initialize_repositories(
    packages: Optional[Iterable[str]] = None,
    driver: Optional[DriverAdapter] = None,
    crud_factory: Optional[CrudFactory] = None,
    settings: Optional[RuntimeSettings] = None,
) -> RepositoryContainer:
    """
    Discover repository interfaces and register an implementation for each.

    Args:
        packages: Packages to scan; defaults to ``repositories.scan_packages``.
        driver: Driver adapter for declarative queries; defaults to a
            ``Neo4jDriverAdapter`` over the shared driver.
        crud_factory: Builds the generic CRUD implementation for an entity
            type; defaults to ``Neo4jCrudRepository`` over ``driver``.
        settings: Runtime settings; defaults to the loaded settings.

    Returns:
        The populated ``RepositoryContainer``.

    Raises:
        DiscoveryError: If ``repositories.fail_fast`` is set and a declaration
            is malformed.
        RepositoryConfigurationError, UnsupportedReturnShapeError: If
            ``repositories.fail_fast`` is set and a repository cannot be built.
            Without ``fail_fast`` such repositories are logged and skipped
            and the rest are still registered.
    """
    settings = settings or runtime_settings
    options = settings.repositories
    scopes = list(packages) if packages is not None else list(options.scan_packages)
    driver = driver or Neo4jDriverAdapter(
        database=settings.neo4j.database, tx_type=options.tx_type
    )
    if crud_factory is None:

        def crud_factory(entity_type: type) -> Neo4jCrudRepository:
            return Neo4jCrudRepository(entity_type, driver, id_property=options.id_property)

    container = RepositoryContainer(driver, crud_factory)
    if not scopes:
        logger.warning("No repository packages configured; nothing to scan.")
        return container

    report = discover_repositories(*scopes, fail_fast=options.fail_fast)
    skipped = len(report.errors)
    for descriptor in report.descriptors:
        try:
            container.register(descriptor)
        except (RepositoryConfigurationError, UnsupportedReturnShapeError) as exc:
            if options.fail_fast:
                raise
            logger.error(f"Skipping repository {descriptor.describe()}: {exc}")
            skipped += 1
    if skipped:
        logger.warning(f"{skipped} repository declaration(s) skipped during initialization")
    logger.info(f"Initialized {len(container)} repositories")
    return container
