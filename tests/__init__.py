"""Storage connector tests.

Test organization:
- unit/: Fast unit tests, no external dependencies
- integration/: Tests requiring a running ArangoDB

Run tests with pytest:
    pytest tests/unit/ -v                                         # Unit tests only
    ARANGO_STORAGE_INTEGRATION=1 pytest tests/integration/ -v -m integration
"""
