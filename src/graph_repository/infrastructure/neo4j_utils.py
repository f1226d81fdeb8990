import atexit
import re
import threading
from typing import Any, Optional

from loguru import logger
from neo4j import Driver, GraphDatabase, Record, Result, Transaction, unit_of_work
from neo4j.exceptions import Neo4jError, ServiceUnavailable

from ..config import Neo4jSettingsModel, runtime_settings

TX_TYPES = ("read", "write")

LABEL_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class Neo4jDriverManager:
    """Thread-safe manager for the Neo4j driver.

    The driver is created lazily and replaced only after ``cleanup`` or
    ``reset``; the manager does not inspect driver state.
    """

    def __init__(self, settings: Optional[Neo4jSettingsModel] = None) -> None:
        self._settings = settings
        self._driver: Optional[Driver] = None
        self._lock = threading.Lock()
        atexit.register(self.cleanup)

    @property
    def settings(self) -> Neo4jSettingsModel:
        return self._settings or runtime_settings.neo4j

    def get_driver(self) -> Driver:
        with self._lock:
            if self._driver is None:
                self._driver = create_neo4j_driver(self.settings)
            return self._driver

    def reset(self, driver: Driver) -> None:
        """Close and forget ``driver`` if it is the managed one, so the next call reconnects."""
        with self._lock:
            if self._driver is not driver:
                return
            self._driver = None
        logger.warning("Discarding Neo4j driver after the service became unavailable.")
        driver.close()

    def cleanup(self) -> None:
        with self._lock:
            if self._driver is not None:
                logger.info("Closing Neo4j driver.")
                self._driver.close()
                self._driver = None


driver_manager = Neo4jDriverManager()


def mask_uri(uri: str) -> str:
    """Mask sensitive parts of a URI for logging."""
    return re.sub(r"://([^:]+):([^@]+)@", r"://\1:***@", uri)


def mask_username(username: str) -> str:
    """Mask a username for logging."""
    if len(username) <= 2:
        return "***"
    return username[:2] + "*" * (len(username) - 2)


def validate_label(label: str) -> str:
    """Return ``label`` if it is a safe node label, else raise ``ValueError``."""
    if not LABEL_PATTERN.match(label):
        raise ValueError(
            f"Invalid label: {label}. Labels must be alphanumeric with underscores only."
        )
    return label


def create_neo4j_driver(settings: Neo4jSettingsModel) -> Driver:
    """Create and verify a new Neo4j driver using the provided settings."""
    if not settings.uri or not settings.user or not settings.password:
        raise ServiceUnavailable("Neo4j connection details are incomplete in settings.")

    logger.info(
        f"Initializing Neo4j driver for URI: {mask_uri(settings.uri)} "
        f"(user {mask_username(settings.user)})"
    )
    driver = GraphDatabase.driver(
        settings.uri,
        auth=(settings.user, settings.password),
        max_connection_lifetime=settings.max_connection_lifetime,
        max_connection_pool_size=settings.max_connection_pool_size,
        connection_acquisition_timeout=settings.connection_acquisition_timeout,
    )
    try:
        driver.verify_connectivity()
    except Exception:
        driver.close()
        raise
    logger.info("Neo4j driver initialized and connectivity verified.")
    return driver


def get_neo4j_driver() -> Driver:
    """Return the shared Neo4j driver instance."""
    return driver_manager.get_driver()


def close_neo4j_driver() -> None:
    """Close the shared driver if it is open."""
    driver_manager.cleanup()


def execute_query(
    query: str,
    parameters: Optional[dict[str, Any]] = None,
    database: Optional[str] = None,
    tx_type: str = "read",
    *,
    driver: Optional[Driver] = None,
    timeout: Optional[float] = None,
) -> list[Record]:
    """
    Execute a Cypher query in a managed transaction and return its records.

    Args:
        query: The Cypher query string to execute.
        parameters: Optional dictionary of parameters to pass to the query.
        database: Optional database name; defaults to the configured database.
        tx_type: Transaction type, either "read" or "write".
        driver: Optional driver; the shared driver is used when omitted.
        timeout: Optional transaction timeout in seconds.

    Returns:
        List of records returned by the query.

    Raises:
        ServiceUnavailable: If the Neo4j service is unavailable.
        Neo4jError: If an error occurs during query execution.
        ValueError: If an invalid transaction type is specified.
    """
    if tx_type not in TX_TYPES:
        raise ValueError(f"Invalid transaction type: {tx_type}. Must be 'read' or 'write'.")

    settings = driver_manager.settings
    driver = driver or get_neo4j_driver()
    db_name = database or settings.database

    @unit_of_work(timeout=timeout or settings.query_timeout)
    def _transaction_work(tx: Transaction) -> list[Record]:
        result: Result = tx.run(query, parameters)
        return list(result)

    try:
        with driver.session(database=db_name) as session:
            logger.debug(
                f"Executing query on database '{db_name}' with type '{tx_type}': {query[:100]}"
            )
            if tx_type == "read":
                records = session.execute_read(_transaction_work)
            else:
                records = session.execute_write(_transaction_work)
    except ServiceUnavailable:
        logger.error(
            f"Neo4j service became unavailable while attempting to execute query on '{db_name}'."
        )
        driver_manager.reset(driver)
        raise
    except Neo4jError as e:
        logger.error(f"Neo4j error executing Cypher query on database '{db_name}': {e}")
        logger.error(f"Query: {query}, Parameters: {parameters}")
        raise

    logger.debug(f"Query executed on database '{db_name}'. Fetched {len(records)} records.")
    return records
