"""Conversion between the platform record envelope and stored documents.

The platform nests the record payload under ``_d`` and keeps metadata such as
the version ``_v`` next to it. Stored documents invert that structure so the
payload fields sit at the top level and can be queried naturally:

    {"_v": 1, "_d": {"name": "arango"}}  ->  {"name": "arango", "__ds": {"_v": 1}}

ArangoDB documents must be objects, so list payloads are wrapped:

    {"_v": 1, "_d": [1, 2]}  ->  {"__dsList": [1, 2], "__ds": {"_v": 1}}

Both functions deep-copy their argument; callers keep ownership of what they
pass in.
"""

import copy
from typing import Any

from arango_storage.storage.errors import EnvelopeError

PAYLOAD_FIELD = "_d"
META_FIELD = "__ds"
LIST_FIELD = "__dsList"
KEY_FIELD = "_key"

# Assigned by ArangoDB, never returned to callers
BOOKKEEPING_FIELDS = ("_id", "_rev", "_key")


def to_storage(value: dict[str, Any]) -> dict[str, Any]:
    """Transform a platform envelope into a storable document.

    Args:
        value: Envelope holding the payload under ``_d`` plus metadata fields

    Returns:
        Document with the metadata folded under ``__ds``

    Raises:
        EnvelopeError: If value is not a dict with a dict or list ``_d`` payload
    """
    if not isinstance(value, dict):
        raise EnvelopeError(f"Record must be a dict, got {type(value).__name__}")
    if PAYLOAD_FIELD not in value:
        raise EnvelopeError(f"Record is missing the {PAYLOAD_FIELD} payload field")

    metadata = copy.deepcopy(value)
    data = metadata.pop(PAYLOAD_FIELD)

    if isinstance(data, list):
        return {LIST_FIELD: data, META_FIELD: metadata}

    if not isinstance(data, dict):
        raise EnvelopeError(
            f"Payload must be a dict or list, got {type(data).__name__}"
        )

    data[META_FIELD] = metadata
    return data


def from_storage(document: dict[str, Any]) -> dict[str, Any]:
    """Transform a stored document back into the platform envelope.

    Bookkeeping fields are dropped. A document stored without ``__ds``, or
    with a ``__ds`` that is not an object, comes back with empty metadata.
    """
    data = copy.deepcopy(document)

    for field in BOOKKEEPING_FIELDS:
        data.pop(field, None)

    record = data.pop(META_FIELD, None)
    if not isinstance(record, dict):
        record = {}

    if isinstance(data.get(LIST_FIELD), list):
        record[PAYLOAD_FIELD] = data[LIST_FIELD]
    else:
        record[PAYLOAD_FIELD] = data

    return record
