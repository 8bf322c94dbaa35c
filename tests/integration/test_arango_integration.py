"""
Integration tests against a running ArangoDB.

Enabled with ARANGO_STORAGE_INTEGRATION=1 and skipped when no server is
reachable. Point them at a server with:
    ARANGO_STORAGE_DB_DATABASE_URL=http://127.0.0.1:8529
    ARANGO_STORAGE_DB_USERNAME=root
    ARANGO_STORAGE_DB_PASSWORD=...
"""

import os
import uuid

import pytest
from arango import ArangoClient

from arango_storage.common.config import StorageConfig
from arango_storage.common.logging import get_logger
from arango_storage.connector import Connector
from tests.conftest import WAIT_TIMEOUT, CallbackRecorder

logger = get_logger(__name__)

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(
        os.environ.get("ARANGO_STORAGE_INTEGRATION") != "1",
        reason="set ARANGO_STORAGE_INTEGRATION=1 to run against a live ArangoDB",
    ),
]


@pytest.fixture(scope="module")
def settings():
    return StorageConfig(
        database_name=f"arango_storage_it_{uuid.uuid4().hex[:8]}",
        default_collection="it_docs",
        split_char="/",
        max_workers=2,
    )


@pytest.fixture(scope="module")
def check_arango_available(settings):
    """Verify ArangoDB is accessible."""
    client = ArangoClient(hosts=settings.database_url, request_timeout=5)
    try:
        sys_db = client.db("_system", username=settings.username, password=settings.password)
        version = sys_db.version()
        logger.info("ArangoDB available", version=version)
        return True
    except Exception as e:
        pytest.skip(f"ArangoDB not available: {e}")
    finally:
        client.close()


@pytest.fixture(scope="module")
def live_connector(settings, check_arango_available):
    conn = Connector(settings)
    assert conn.wait_until_ready(WAIT_TIMEOUT), conn.bootstrap_error
    yield conn
    conn.close()

    client = ArangoClient(hosts=settings.database_url)
    try:
        sys_db = client.db("_system", username=settings.username, password=settings.password)
        sys_db.delete_database(settings.database_name, ignore_missing=True)
    finally:
        client.close()


def _provisioned(conn: Connector, collection: str) -> None:
    """Wait for a collection so the first write does not race its creation."""
    conn.get(f"{collection}/warmup").result(WAIT_TIMEOUT)
    assert conn.provisioner.handles()[collection].wait(WAIT_TIMEOUT)


class TestLiveConnector:
    """Scenario tests with a real database."""

    def test_get_missing_value(self, live_connector):
        callback = CallbackRecorder()
        _provisioned(live_connector, "it_docs")

        live_connector.get("impossibleMissingValue", callback)

        assert callback.wait() == (None, None)

    def test_set_get_delete(self, live_connector):
        _provisioned(live_connector, "it_docs")
        record = {"_d": {"v": 10}, "firstname": "Wolfram"}

        assert live_connector.set("someValue", record).result(WAIT_TIMEOUT) is True
        assert live_connector.get("someValue").result(WAIT_TIMEOUT) == record
        assert live_connector.delete("someValue").result(WAIT_TIMEOUT) is True
        assert live_connector.get("someValue").result(WAIT_TIMEOUT) is None

    def test_split_key_creates_collection(self, live_connector):
        _provisioned(live_connector, "user")
        record = {"_v": 1, "_d": {"name": "Wolfram", "langs": ["py", "aql"]}}

        assert live_connector.set("user/abc123", record).result(WAIT_TIMEOUT) is True
        assert live_connector.get("user/abc123").result(WAIT_TIMEOUT) == record

    def test_list_payload(self, live_connector):
        _provisioned(live_connector, "lists")
        record = {"_v": 2, "_d": [1, {"two": 2}, [3]]}

        live_connector.set("lists/l1", record).result(WAIT_TIMEOUT)

        assert live_connector.get("lists/l1").result(WAIT_TIMEOUT) == record
