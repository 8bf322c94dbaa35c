"""Record key routing to collections and document ids.

Keeping collections small speeds up lookups, so record keys may carry their
collection name in front of a configured split character:

    user/i4vcg5j1-16n1qrnziuog  ->  collection "user", id "i4vcg5j1-16n1qrnziuog"

Keys without the split character (or any key when splitting is disabled) go
to the default collection with the full key as id. Only the first split
character is significant; later ones stay part of the id.

Examples:
    router = KeyRouter(split_char="/", default_collection="deepstream_docs")

    router.route("user/abc123")
    # Returns: RoutingResult(collection_name="user", document_id="abc123")

    router.route("abc123")
    # Returns: RoutingResult(collection_name="deepstream_docs", document_id="abc123")

    router.route("/abc123")
    # Raises: InvalidKeyError (empty collection name)
"""

from dataclasses import dataclass
from typing import Optional

from arango_storage.common.logging import get_logger
from arango_storage.storage.errors import InvalidKeyError

logger = get_logger(__name__, component="routing")


@dataclass(frozen=True)
class RoutingResult:
    """Physical location of a record."""

    collection_name: str
    document_id: str


def route(key: str, split_char: Optional[str], default_collection: str) -> RoutingResult:
    """Resolve a record key to its collection name and document id.

    Args:
        key: Record key supplied by the caller
        split_char: Single split character, or None when splitting is disabled
        default_collection: Collection for keys without a split character

    Raises:
        InvalidKeyError: If the key is empty or starts with the split character
    """
    if not isinstance(key, str) or not key:
        raise InvalidKeyError(key)

    index = key.find(split_char) if split_char else -1

    if index == 0:
        raise InvalidKeyError(key)
    if index == -1:
        return RoutingResult(collection_name=default_collection, document_id=key)

    return RoutingResult(collection_name=key[:index], document_id=key[index + 1 :])


class KeyRouter:
    """Routes record keys with a fixed split character and default collection.

    Usage:
        router = KeyRouter(split_char="/", default_collection="deepstream_docs")
        target = router.route("user/abc123")
    """

    def __init__(self, split_char: Optional[str], default_collection: str):
        self.split_char = split_char or None
        self.default_collection = default_collection

        logger.debug(
            "Key router initialized",
            split_char=self.split_char,
            default_collection=self.default_collection,
        )

    def route(self, key: str) -> RoutingResult:
        """Resolve a key (see :func:`route`)."""
        return route(key, self.split_char, self.default_collection)
