"""Document store client used by the connector.

``DocumentStore`` is the contract the connector needs from a document
database: database bootstrap, collection provisioning and key-based point
operations. Methods are synchronous and raise on failure; the connector runs
them on worker threads and reports outcomes through callbacks.

``ArangoDocumentStore`` implements the contract with python-arango. Point
operations are AQL statements with bind parameters, so collection names and
keys are never interpolated into query text.

Usage:
    store = ArangoDocumentStore(
        database_url="http://127.0.0.1:8529",
        username="deepstream",
        password="deepstream",
    )

    if "deepstream" not in store.list_databases():
        store.create_database("deepstream")
    store.use_database("deepstream")

    store.upsert("user", "abc123", {"_key": "abc123", "name": "Wolfram"})
    document = store.find("user", "abc123")
"""

from typing import Any, Optional, Protocol, runtime_checkable

from arango import ArangoClient
from arango.exceptions import CollectionCreateError

from arango_storage.common.logging import get_logger

logger = get_logger(__name__, component="store")

# ArangoDB error code for "duplicate name" on collection creation
ERROR_DUPLICATE_NAME = 1207

UPSERT_QUERY = """
UPSERT { _key: @key }
INSERT @document
REPLACE @document
IN @@collection
"""

FIND_QUERY = """
FOR r IN @@collection
FILTER r._key == @key
LIMIT 1
RETURN r
"""

REMOVE_QUERY = "REMOVE @key IN @@collection"


@runtime_checkable
class DocumentStore(Protocol):
    """Operations the connector requires from a document database."""

    def list_databases(self) -> list[str]: ...

    def create_database(self, name: str) -> None: ...

    def use_database(self, name: str) -> None: ...

    def has_collection(self, name: str) -> bool: ...

    def create_collection(self, name: str) -> None: ...

    def upsert(self, collection: str, key: str, document: dict[str, Any]) -> Any: ...

    def find(self, collection: str, key: str) -> Optional[dict[str, Any]]: ...

    def remove(self, collection: str, key: str) -> Any: ...


class ArangoDocumentStore:
    """ArangoDB implementation of DocumentStore.

    The configured user authenticates with HTTP basic auth against every
    database. ``use_database`` must be called before collection or document
    operations.
    """

    def __init__(
        self,
        database_url: str,
        username: str,
        password: str,
        client: Optional[ArangoClient] = None,
    ):
        """
        Args:
            database_url: ArangoDB endpoint (e.g., "http://127.0.0.1:8529")
            username: Basic auth username
            password: Basic auth password
            client: Preconfigured ArangoClient (created from database_url if omitted)
        """
        self.database_url = database_url
        self.username = username
        self._password = password
        self._client = client or ArangoClient(hosts=database_url)
        self._sys_db = self._client.db("_system", username=username, password=password)
        self._db = None

        logger.debug("ArangoDB client created", database_url=database_url, username=username)

    @property
    def database(self):
        """The selected database."""
        if self._db is None:
            raise RuntimeError("No database selected, call use_database() first")
        return self._db

    # ------------------------------------------------------------------
    # Databases
    # ------------------------------------------------------------------

    def list_databases(self) -> list[str]:
        """List databases the configured user can access."""
        return self._sys_db.databases_accessible_to_user()

    def create_database(self, name: str) -> None:
        """Create a database and grant the configured user access to it."""
        self._sys_db.create_database(
            name,
            users=[{"username": self.username, "password": self._password, "active": True}],
        )
        logger.info("Database created", database=name)

    def use_database(self, name: str) -> None:
        self._db = self._client.db(name, username=self.username, password=self._password)

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    def has_collection(self, name: str) -> bool:
        return self.database.has_collection(name)

    def create_collection(self, name: str) -> None:
        """Create a document collection accepting user-supplied keys.

        A collection created concurrently by another process counts as success.
        """
        try:
            self.database.create_collection(name, user_keys=True)
        except CollectionCreateError as e:
            if e.error_code != ERROR_DUPLICATE_NAME:
                raise
            logger.info("Collection already exists", collection=name)

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def upsert(self, collection: str, key: str, document: dict[str, Any]) -> Any:
        """Insert the document, or replace the one stored under the same key."""
        cursor = self.database.aql.execute(
            UPSERT_QUERY,
            bind_vars={"key": key, "document": document, "@collection": collection},
        )
        return cursor.statistics()

    def find(self, collection: str, key: str) -> Optional[dict[str, Any]]:
        """Return the document stored under key, or None."""
        cursor = self.database.aql.execute(
            FIND_QUERY,
            bind_vars={"key": key, "@collection": collection},
        )
        for document in cursor:
            return document
        return None

    def remove(self, collection: str, key: str) -> Any:
        """Remove the document stored under key.

        Raises:
            AQLQueryExecuteError: If no document is stored under key
        """
        cursor = self.database.aql.execute(
            REMOVE_QUERY,
            bind_vars={"key": key, "@collection": collection},
        )
        return cursor.statistics()

    def close(self) -> None:
        """Close the HTTP sessions held by the client."""
        self._client.close()
