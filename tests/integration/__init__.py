"""Integration tests against a running ArangoDB."""
