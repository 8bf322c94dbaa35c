"""Lazy collection provisioning.

Collections are created the first time a key routes to them. Creation is rare
(once per collection name) and runs on the executor so it never blocks the
calling thread.

The handle for a new collection name is installed in the cache before its
provisioning task is submitted, so concurrent callers share one handle and the
store sees one creation request per name.

Known race: operations issued while a handle is still PROVISIONING run
immediately. The very first write to a brand-new collection may reach the
store before the collection exists and then fails with a store fault.
"""

import threading
from collections.abc import Callable
from concurrent.futures import Executor
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from arango_storage.common.logging import get_logger
from arango_storage.common.metrics import create_component_metrics
from arango_storage.storage.client import DocumentStore
from arango_storage.storage.errors import ProvisioningError

logger = get_logger(__name__, component="provisioner")
metrics = create_component_metrics("provisioner")


class ProvisioningState(str, Enum):
    """Lifecycle of a cached collection handle."""

    NOT_PROVISIONED = "not_provisioned"
    PROVISIONING = "provisioning"
    READY = "ready"
    FAILED = "failed"


@dataclass(eq=False)
class CollectionHandle:
    """Cached reference to a backing collection."""

    name: str
    state: ProvisioningState = ProvisioningState.NOT_PROVISIONED
    error: Optional[BaseException] = None
    _settled: threading.Event = field(default_factory=threading.Event, repr=False)

    @property
    def is_ready(self) -> bool:
        return self.state == ProvisioningState.READY

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until provisioning settles (READY or FAILED).

        Returns:
            True if the collection is ready
        """
        self._settled.wait(timeout)
        return self.is_ready

    def _settle(self, state: ProvisioningState, error: Optional[BaseException] = None) -> None:
        self.state = state
        self.error = error
        self._settled.set()


class CollectionProvisioner:
    """Ensures collections exist before records are written to them.

    Usage:
        provisioner = CollectionProvisioner(store, executor, on_error=emit_error)
        handle = provisioner.ensure("user")
        store.upsert(handle.name, "abc123", document)
    """

    def __init__(
        self,
        store: DocumentStore,
        executor: Executor,
        on_error: Optional[Callable[[ProvisioningError], None]] = None,
    ):
        """
        Args:
            store: Document store to check and create collections in
            executor: Executor running existence checks and creation
            on_error: Called with a ProvisioningError when provisioning fails
        """
        self._store = store
        self._executor = executor
        self._on_error = on_error
        self._handles: dict[str, CollectionHandle] = {}
        self._lock = threading.Lock()

    def ensure(self, collection_name: str) -> CollectionHandle:
        """Return the handle for a collection, provisioning it on first use.

        Never raises for provisioning failures; those are reported to on_error.
        """
        with self._lock:
            handle = self._handles.get(collection_name)
            if handle is not None:
                return handle

            handle = CollectionHandle(name=collection_name, state=ProvisioningState.PROVISIONING)
            self._handles[collection_name] = handle
            cached = len(self._handles)

        metrics.gauge("collection_handles_cached", cached)
        logger.debug("Provisioning collection", collection=collection_name)

        self._executor.submit(self._provision, handle)
        return handle

    def handles(self) -> dict[str, CollectionHandle]:
        """Snapshot of the handle cache."""
        with self._lock:
            return dict(self._handles)

    def _provision(self, handle: CollectionHandle) -> None:
        try:
            if self._store.has_collection(handle.name):
                logger.debug("Collection exists", collection=handle.name)
            else:
                self._store.create_collection(handle.name)
                metrics.increment("collections_provisioned_total")
                logger.info("Collection created", collection=handle.name)

        except Exception as e:
            error = ProvisioningError(
                handle.name, f"Failed to provision collection {handle.name}: {e}"
            )
            error.__cause__ = e

            # Report before settling so waiters never see FAILED unreported
            try:
                logger.critical(
                    "Collection provisioning failed",
                    collection=handle.name,
                    error=str(e),
                )
                metrics.increment(
                    "provisioning_failures_total", labels={"collection": handle.name},
                )

                if self._on_error is not None:
                    self._on_error(error)
            finally:
                handle._settle(ProvisioningState.FAILED, error)
            return

        handle._settle(ProvisioningState.READY)
