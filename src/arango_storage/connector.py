"""Connects a real-time data platform's record storage to ArangoDB.

Collections, ids and performance
--------------------------------
The platform treats its storage as a simple key value store. ArangoDB is
faster with smaller, more granular collections, so record keys can carry a
collection name in front of a configured split character:

    user/i4vcg5j1-16n1qrnziuog
    user/i4vcg5x9-a2wc3g9pbhmi
    user/i4vcg74u-21ufhl1qs8fh

With ``split_char="/"`` the connector creates a ``user`` collection the first
time it sees one of these keys and stores users in it. Lookups then scan a
smaller set of documents. Keys without the split character go to the default
collection.

Lifecycle
---------
Bootstrap starts on construction: the target database is created if missing
and selected. The connector then emits ``ready`` (or ``error`` with a
BootstrapError) exactly once. Requests are not queued; issue them after
``ready``.

Usage:
    connector = Connector({"splitChar": "/"})
    connector.on("ready", lambda: print("storage ready"))
    connector.on("error", lambda err: print("storage failure", err))

    connector.set("user/abc123", {"_v": 1, "_d": {"name": "Wolfram"}}, callback)
    connector.get("user/abc123", lambda err, record: print(record))
    connector.delete("user/abc123", callback)

Every operation also returns a concurrent.futures.Future resolving to the same
result the callback receives.
"""

import threading
from collections.abc import Callable, Mapping
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from contextlib import contextmanager
from enum import Enum
from typing import Any, Optional, Union

from arango_storage import __version__
from arango_storage.common.config import StorageConfig, config
from arango_storage.common.events import EventEmitter, Listener
from arango_storage.common.logging import get_logger
from arango_storage.common.metrics import create_component_metrics
from arango_storage.common.metrics_registry import initialize_connector_info
from arango_storage.storage.client import ArangoDocumentStore, DocumentStore
from arango_storage.storage.errors import (
    BootstrapError,
    EnvelopeError,
    InvalidKeyError,
    StorageError,
    StoreFaultError,
)
from arango_storage.storage.provisioner import CollectionProvisioner
from arango_storage.storage.routing import KeyRouter
from arango_storage.storage.transform import KEY_FIELD, from_storage, to_storage

logger = get_logger(__name__, component="connector")
metrics = create_component_metrics("connector")

Callback = Callable[[Optional[BaseException], Any], None]


class ConnectorState(str, Enum):
    """Bootstrap states, INITIALIZING moves to READY or FAILED exactly once."""

    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


class Connector(EventEmitter):
    """Storage connector persisting platform records in ArangoDB.

    Attributes:
        name: Connector name reported to the host
        version: Connector version reported to the host
        is_ready: True once bootstrap succeeded
    """

    name = "arango-storage"
    version = __version__

    def __init__(
        self,
        settings: Union[StorageConfig, Mapping[str, Any], None] = None,
        store: Optional[DocumentStore] = None,
        executor: Optional[Executor] = None,
    ):
        """Create the connector and start bootstrapping.

        Args:
            settings: StorageConfig, or a host option map
                ({"databaseURL": ..., "splitChar": ...}); defaults to config.storage
            store: Document store (an ArangoDocumentStore built from settings if omitted)
            executor: Executor for store operations (a thread pool of
                settings.max_workers threads if omitted)
        """
        super().__init__()

        if settings is None:
            settings = config.storage
        elif not isinstance(settings, StorageConfig):
            settings = StorageConfig.from_options(settings)
        self.settings = settings

        self._state = ConnectorState.INITIALIZING
        self._state_lock = threading.Lock()
        self._settled = threading.Event()
        self._bootstrap_error: Optional[BootstrapError] = None
        self._closed = False
        self._dispatch_lock = threading.Lock()

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=settings.max_workers, thread_name_prefix="arango-storage",
        )

        self._owns_store = store is None
        self._store = store or ArangoDocumentStore(
            database_url=settings.database_url,
            username=settings.username,
            password=settings.password,
        )

        self._router = KeyRouter(settings.split_char, settings.default_collection)
        self._provisioner = CollectionProvisioner(
            self._store, self._executor, on_error=self._on_provisioning_error,
        )

        if config.observability.enable_metrics:
            initialize_connector_info(self.name, self.version, config.environment)

        logger.info(
            "Connector initialized",
            database_url=settings.database_url,
            database=settings.database_name,
            default_collection=settings.default_collection,
            split_char=settings.split_char,
        )

        self._executor.submit(self._bootstrap)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def state(self) -> ConnectorState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state == ConnectorState.READY

    @property
    def bootstrap_error(self) -> Optional[BootstrapError]:
        return self._bootstrap_error

    @property
    def provisioner(self) -> CollectionProvisioner:
        return self._provisioner

    def on(self, event: str, listener: Listener) -> Listener:
        """Register a listener.

        The bootstrap outcome is sticky: a ``ready`` listener registered after
        the connector became ready is called immediately, and so is an
        ``error`` listener registered after bootstrap failed.
        """
        with self._state_lock:
            super().on(event, listener)
            replay_ready = event == "ready" and self._state == ConnectorState.READY
            replay_error = event == "error" and self._state == ConnectorState.FAILED

        if replay_ready:
            self._notify(event, [listener])
        elif replay_error:
            self._notify(event, [listener], self._bootstrap_error)
        return listener

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until bootstrap finished.

        Returns:
            True if the connector is ready, False on failure or timeout
        """
        self._settled.wait(timeout)
        return self.is_ready

    def close(self) -> None:
        """Stop accepting operations and release owned resources.

        Waits for in-flight operations when the connector owns its executor.
        """
        with self._dispatch_lock:
            if self._closed:
                return
            self._closed = True

        if self._owns_executor:
            self._executor.shutdown(wait=True)
        if self._owns_store and hasattr(self._store, "close"):
            self._store.close()

        logger.info("Connector closed")

    def __enter__(self) -> "Connector":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _bootstrap(self) -> None:
        database_name = self.settings.database_name

        try:
            with logger.timer("bootstrap", database=database_name):
                if database_name not in self._store.list_databases():
                    self._store.create_database(database_name)
                self._store.use_database(database_name)

        except Exception as e:
            error = BootstrapError(
                database_name, f"Failed to bootstrap database {database_name}: {e}"
            )
            error.__cause__ = e
            self._bootstrap_error = error
            metrics.increment("bootstrap_total", labels={"status": "failed"})
            self._transition(ConnectorState.FAILED, "error", error)
            return

        metrics.increment("bootstrap_total", labels={"status": "ready"})
        self._transition(ConnectorState.READY, "ready")

    def _transition(self, state: ConnectorState, event: str, *args: Any) -> None:
        with self._state_lock:
            self._state = state
            listeners = self.listeners(event)
        self._settled.set()

        logger.info("Connector state changed", state=state.value)
        self._notify(event, listeners, *args)

    def _on_provisioning_error(self, error: StorageError) -> None:
        self.emit("error", error)

    # ------------------------------------------------------------------
    # Record operations
    # ------------------------------------------------------------------

    def set(self, key: str, value: dict[str, Any], callback: Optional[Callback] = None) -> Future:
        """Write a record, replacing any record stored under the same key.

        The callback receives (None, True) on success, (error, None) otherwise.
        """
        try:
            target = self._router.route(key)
            document = to_storage(value)
        except (InvalidKeyError, EnvelopeError) as e:
            return self._reject("set", key, e, callback)

        collection = target.collection_name
        document[KEY_FIELD] = target.document_id

        def write() -> bool:
            with self._measure("set", collection):
                try:
                    self._store.upsert(collection, target.document_id, document)
                except Exception as e:
                    raise self._store_fault("set", key, collection, e) from e

            self._count("set", collection, "success")
            logger.debug("Record stored", collection=collection, document_id=target.document_id)
            return True

        return self._dispatch("set", key, collection, write, callback)

    def get(self, key: str, callback: Optional[Callback] = None) -> Future:
        """Read a record.

        The callback receives (None, record), or (None, None) when the record
        does not exist. A failed query is also reported as (None, None); it is
        logged and counted as a suppressed fault. Invalid keys yield
        (InvalidKeyError, None).
        """
        try:
            target = self._router.route(key)
        except InvalidKeyError as e:
            return self._reject("get", key, e, callback)

        collection = target.collection_name

        def read() -> Optional[dict[str, Any]]:
            with self._measure("get", collection):
                try:
                    document = self._store.find(collection, target.document_id)
                except Exception as e:
                    logger.warning(
                        "Get query failed, reporting record as not found",
                        key=key,
                        collection=collection,
                        error=str(e),
                    )
                    metrics.increment(
                        "get_faults_suppressed_total", labels={"collection": collection},
                    )
                    self._count("get", collection, "error")
                    return None

            if document is None:
                self._count("get", collection, "not_found")
                return None

            self._count("get", collection, "success")
            return from_storage(document)

        return self._dispatch("get", key, collection, read, callback)

    def delete(self, key: str, callback: Optional[Callback] = None) -> Future:
        """Remove a record.

        The callback receives (None, True) on success, (error, None) otherwise.
        Removing an absent record fails the way ArangoDB fails it.
        """
        try:
            target = self._router.route(key)
        except InvalidKeyError as e:
            return self._reject("delete", key, e, callback)

        collection = target.collection_name

        def remove() -> bool:
            with self._measure("delete", collection):
                try:
                    self._store.remove(collection, target.document_id)
                except Exception as e:
                    raise self._store_fault("delete", key, collection, e) from e

            self._count("delete", collection, "success")
            logger.debug("Record removed", collection=collection, document_id=target.document_id)
            return True

        return self._dispatch("delete", key, collection, remove, callback)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _dispatch(
        self,
        operation: str,
        key: str,
        collection: str,
        fn: Callable[[], Any],
        callback: Optional[Callback],
    ) -> Future:
        # close() flips _closed under the same lock, so nothing is submitted
        # to an executor that is shutting down
        with self._dispatch_lock:
            closed = self._closed
            if not closed:
                self._provisioner.ensure(collection)
                future = self._executor.submit(fn)

        if closed:
            return self._reject(operation, key, StorageError("Connector is closed"), callback)

        _deliver(future, callback)
        return future

    def _reject(
        self,
        operation: str,
        key: Any,
        error: StorageError,
        callback: Optional[Callback],
    ) -> Future:
        logger.warning("Rejected operation", operation=operation, key=key, error=str(error))
        if isinstance(error, InvalidKeyError):
            metrics.increment("invalid_keys_total", labels={"operation": operation})

        future: Future = Future()
        future.set_exception(error)
        _deliver(future, callback)
        return future

    def _store_fault(
        self,
        operation: str,
        key: str,
        collection: str,
        cause: Exception,
    ) -> StoreFaultError:
        logger.error(
            "Store operation failed",
            operation=operation,
            key=key,
            collection=collection,
            error=str(cause),
        )
        self._count(operation, collection, "error")
        return StoreFaultError(operation, key, f"{operation} failed for key {key}: {cause}")

    def _count(self, operation: str, collection: str, status: str) -> None:
        metrics.increment(
            "operations_total",
            labels={"operation": operation, "collection": collection, "status": status},
        )

    @contextmanager
    def _measure(self, operation: str, collection: str):
        with metrics.timer(
            "operation_duration_seconds",
            labels={"operation": operation, "collection": collection},
        ):
            yield


def _deliver(future: Future, callback: Optional[Callback]) -> None:
    """Hand the future's outcome to a (error, result) callback."""
    if callback is None:
        return

    def done(f: Future) -> None:
        error = f.exception()
        if error is not None:
            callback(error, None)
        else:
            callback(None, f.result())

    future.add_done_callback(done)
