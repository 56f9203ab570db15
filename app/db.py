from os import environ

import structlog
from neo4j import Driver, GraphDatabase

from app.utils.singleton import SingletonMeta

logger = structlog.get_logger(__name__)


class DatabaseManager(metaclass=SingletonMeta):
    """Singleton manager for Neo4j database connections.

    This class manages the lifecycle of the Neo4j driver backing the post
    store, ensuring only one driver is active at a time.

    Attributes:
        _driver: The Neo4j driver instance
        _uri: URI of the Neo4j database
        _auth: Tuple of username and password for authentication
        _database: Name of the Neo4j database to connect to
    """

    def __init__(self) -> None:
        """Initialize the database manager.

        Reads connection parameters from NEO4J_URI, NEO4J_USER,
        NEO4J_PASSWORD and NEO4J_DATABASE, then verifies connectivity.

        Raises:
            neo4j.exceptions.ServiceUnavailable: If database is not reachable
            neo4j.exceptions.AuthError: If credentials are invalid
        """
        self._driver: Driver | None = None
        self._uri: str = environ.get("NEO4J_URI", "bolt://localhost:7687")
        self._auth: tuple[str, str] = (
            environ.get("NEO4J_USER", "neo4j"),
            environ.get("NEO4J_PASSWORD", ""),
        )
        self._database: str = environ.get("NEO4J_DATABASE", "neo4j")
        self._verify_connectivity()

    def _verify_connectivity(self) -> None:
        with GraphDatabase.driver(self._uri, auth=self._auth) as test_driver:
            test_driver.verify_connectivity()
        logger.info("neo4j_connected", uri=self._uri, database=self._database)

    @property
    def driver(self) -> Driver:
        """Get or create the Neo4j driver instance.

        Returns:
            The Neo4j driver instance that can be used for database operations
        """
        if not self._driver:
            self._driver = GraphDatabase.driver(
                self._uri,
                auth=self._auth,
                max_connection_pool_size=10,
                connection_timeout=30,  # Seconds
            )
        return self._driver

    @property
    def database(self) -> str:
        return self._database

    def close(self) -> None:
        """Close the database connection.

        If no connection exists, this is a no-op.
        """
        if self._driver:
            self._driver.close()
            self._driver = None
