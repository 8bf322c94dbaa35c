"""
Global pytest configuration and fixtures for the storage connector tests.

Provides:
- InMemoryDocumentStore: thread-safe DocumentStore with fault injection
- A single-worker executor so store operations run in submission order
- A bootstrapped connector splitting keys on "/"
"""

import copy
import itertools
import threading
from collections.abc import Generator
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Optional

import pytest

from arango_storage.common.config import StorageConfig
from arango_storage.connector import Connector

WAIT_TIMEOUT = 5.0


class InMemoryDocumentStore:
    """DocumentStore keeping databases and collections in dictionaries.

    Like ArangoDB, it rejects document operations on collections that do not
    exist and removals of absent documents.

    Attributes:
        faults: Method name -> exception raised by the next calls to that method
        create_gate: When set, create_collection blocks until the event is set
    """

    def __init__(self, databases: Optional[list[str]] = None):
        self.databases = set(databases or ["_system"])
        self.selected: Optional[str] = None
        self.collections: dict[str, dict[str, dict[str, Any]]] = {}
        self.created_databases: list[str] = []
        self.create_collection_calls: list[str] = []
        self.faults: dict[str, Exception] = {}
        self.create_gate: Optional[threading.Event] = None
        self._lock = threading.Lock()
        self._revisions = itertools.count(1)

    def _check_fault(self, method: str) -> None:
        fault = self.faults.get(method)
        if fault is not None:
            raise fault

    def _documents(self, collection: str) -> dict[str, dict[str, Any]]:
        if collection not in self.collections:
            raise LookupError(f"collection or view not found: {collection}")
        return self.collections[collection]

    def list_databases(self) -> list[str]:
        self._check_fault("list_databases")
        return sorted(self.databases)

    def create_database(self, name: str) -> None:
        self._check_fault("create_database")
        self.databases.add(name)
        self.created_databases.append(name)

    def use_database(self, name: str) -> None:
        self._check_fault("use_database")
        if name not in self.databases:
            raise LookupError(f"database not found: {name}")
        self.selected = name

    def has_collection(self, name: str) -> bool:
        self._check_fault("has_collection")
        with self._lock:
            return name in self.collections

    def create_collection(self, name: str) -> None:
        if self.create_gate is not None:
            self.create_gate.wait(WAIT_TIMEOUT)
        self._check_fault("create_collection")
        with self._lock:
            self.create_collection_calls.append(name)
            self.collections.setdefault(name, {})

    def upsert(self, collection: str, key: str, document: dict[str, Any]) -> dict[str, Any]:
        self._check_fault("upsert")
        with self._lock:
            stored = copy.deepcopy(document)
            stored["_id"] = f"{collection}/{key}"
            stored["_rev"] = str(next(self._revisions))
            self._documents(collection)[key] = stored
            return {"writesExecuted": 1}

    def find(self, collection: str, key: str) -> Optional[dict[str, Any]]:
        self._check_fault("find")
        with self._lock:
            document = self._documents(collection).get(key)
            return copy.deepcopy(document) if document is not None else None

    def remove(self, collection: str, key: str) -> dict[str, Any]:
        self._check_fault("remove")
        with self._lock:
            documents = self._documents(collection)
            if key not in documents:
                raise KeyError(f"document not found: {collection}/{key}")
            del documents[key]
            return {"writesExecuted": 1}


class CallbackRecorder:
    """(error, result) callback that records its calls."""

    def __init__(self):
        self.calls: list[tuple[Optional[BaseException], Any]] = []
        self.thread: Optional[threading.Thread] = None
        self._called = threading.Event()

    def __call__(self, error, result) -> None:
        self.calls.append((error, result))
        self.thread = threading.current_thread()
        self._called.set()

    def wait(self, timeout: float = WAIT_TIMEOUT) -> tuple[Optional[BaseException], Any]:
        assert self._called.wait(timeout), "callback was not called"
        return self.calls[-1]


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def executor() -> Generator[ThreadPoolExecutor, None, None]:
    """Single worker: bootstrap, provisioning and writes run in submission order."""
    pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="test-storage")
    yield pool
    pool.shutdown(wait=True)


@pytest.fixture
def storage_config() -> StorageConfig:
    return StorageConfig(
        database_name="test_db",
        default_collection="test_docs",
        split_char="/",
    )


@pytest.fixture
def connector(storage_config, store, executor) -> Generator[Connector, None, None]:
    conn = Connector(storage_config, store=store, executor=executor)
    assert conn.wait_until_ready(WAIT_TIMEOUT)
    yield conn
    conn.close()


@pytest.fixture
def callback() -> CallbackRecorder:
    return CallbackRecorder()
