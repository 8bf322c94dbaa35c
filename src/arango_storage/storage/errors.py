"""Exception types raised and reported by the storage layer.

Per-call errors (InvalidKeyError, EnvelopeError, StoreFaultError) reach the
caller through the operation's callback and returned Future. Lifecycle errors
(BootstrapError, ProvisioningError) are emitted as the connector's ``error``
event.
"""

from typing import Optional


class StorageError(Exception):
    """Base class for storage connector errors."""

    pass


class InvalidKeyError(StorageError, ValueError):
    """Raised when a record key cannot be routed to a collection."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Invalid key {key}")


class EnvelopeError(StorageError, ValueError):
    """Raised when a value is not a platform envelope with a dict or list payload."""

    pass


class StoreFaultError(StorageError):
    """Raised when the document store fails a point operation."""

    def __init__(self, operation: str, key: str, message: Optional[str] = None):
        self.operation = operation
        self.key = key
        super().__init__(message or f"{operation} failed for key {key}")


class ProvisioningError(StorageError):
    """Raised when a collection could not be checked or created."""

    def __init__(self, collection_name: str, message: Optional[str] = None):
        self.collection_name = collection_name
        super().__init__(message or f"Failed to provision collection {collection_name}")


class BootstrapError(StorageError):
    """Raised when the target database could not be found, created or selected."""

    def __init__(self, database_name: str, message: Optional[str] = None):
        self.database_name = database_name
        super().__init__(message or f"Failed to bootstrap database {database_name}")
