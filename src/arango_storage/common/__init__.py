"""Shared infrastructure: configuration, logging, metrics and listener registration."""

from . import config, events, logging, metrics

__all__ = ["config", "events", "logging", "metrics"]
