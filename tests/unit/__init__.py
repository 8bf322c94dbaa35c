"""Unit tests for the storage connector.

Unit tests run against an in-memory document store and a mocked ArangoClient.

Run: pytest tests/unit/ -v -m unit
"""
