"""Storage layer for the ArangoDB connector.

Components:
- transform: Platform envelope <-> stored document conversion
- routing: Record key -> collection name and document id
- provisioner: Lazy, once-per-name collection creation
- client: Document store contract and its ArangoDB implementation
- errors: Exception types reported to callers and hosts
"""

from . import client, errors, provisioner, routing, transform

__all__ = ["client", "errors", "provisioner", "routing", "transform"]
