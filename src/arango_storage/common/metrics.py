"""
Prometheus metrics instrumentation.

Provides RED metrics (Rate, Errors, Duration) for connector components.
This module provides a simple API wrapper around the metrics registry.

Usage:
    from arango_storage.common.metrics import create_component_metrics

    metrics = create_component_metrics("connector")

    # Counter
    metrics.increment(
        "operations_total",
        labels={"operation": "set", "collection": "user", "status": "success"},
    )

    # Context manager for timing
    with metrics.timer(
        "operation_duration_seconds", labels={"operation": "get", "collection": "user"}
    ):
        store.find("user", "abc123")
"""

import time
from contextlib import contextmanager
from typing import Dict, Generator, Optional

from arango_storage.common.config import config
from arango_storage.common.metrics_registry import (
    get_counter,
    get_gauge,
    get_histogram,
)


class MetricsClient:
    """
    Lightweight wrapper around the Prometheus metrics registry.

    All metrics are pre-registered in metrics_registry.py. When metrics are
    disabled in the observability config every call is a no-op.
    """

    def __init__(
        self,
        default_labels: Optional[Dict[str, str]] = None,
        enabled: bool = True,
    ):
        """
        Args:
            default_labels: Labels applied to every metric
                (e.g., {"service": "arango-storage", "component": "connector"})
            enabled: Record metrics (False turns every call into a no-op)
        """
        self.default_labels = default_labels or {}
        self.enabled = enabled

    def _merge_labels(self, labels: Optional[Dict[str, str]]) -> Dict[str, str]:
        """Merge provided labels with default labels."""
        merged = self.default_labels.copy()
        if labels:
            merged.update(labels)
        return merged

    def increment(
        self,
        metric_name: str,
        value: int = 1,
        labels: Optional[Dict[str, str]] = None,
    ) -> None:
        """
        Increment a counter metric.

        Args:
            metric_name: Name of the counter (without arango_storage_ prefix)
            value: Amount to increment (default: 1)
            labels: Metric labels (merged with default labels)
        """
        if not self.enabled:
            return
        counter = get_counter(metric_name)
        counter.labels(**self._merge_labels(labels)).inc(value)

    def gauge(
        self,
        metric_name: str,
        value: float,
        labels: Optional[Dict[str, str]] = None,
    ) -> None:
        """Set a gauge metric to a specific value."""
        if not self.enabled:
            return
        gauge_metric = get_gauge(metric_name)
        gauge_metric.labels(**self._merge_labels(labels)).set(value)

    def histogram(
        self,
        metric_name: str,
        value: float,
        labels: Optional[Dict[str, str]] = None,
    ) -> None:
        """Record a histogram observation (typically a duration in seconds)."""
        if not self.enabled:
            return
        histogram_metric = get_histogram(metric_name)
        histogram_metric.labels(**self._merge_labels(labels)).observe(value)

    @contextmanager
    def timer(
        self,
        metric_name: str,
        labels: Optional[Dict[str, str]] = None,
    ) -> Generator[None, None, None]:
        """
        Context manager for timing operations.

        Records the duration in a histogram metric, also when the block raises.
        """
        start_time = time.perf_counter()
        try:
            yield
        finally:
            duration = time.perf_counter() - start_time
            self.histogram(metric_name, duration, labels)


def create_component_metrics(
    component: str,
    service: str = "arango-storage",
    environment: Optional[str] = None,
) -> MetricsClient:
    """
    Create a metrics client with default labels for a component.

    Args:
        component: Component name (e.g., "connector", "provisioner")
        service: Service name (default: "arango-storage")
        environment: Environment (defaults to the configured environment)

    Example:
        metrics = create_component_metrics("provisioner")
        metrics.increment("collections_provisioned_total")
        # Results in: arango_storage_collections_provisioned_total{
        #     service="arango-storage",
        #     environment="local",
        #     component="provisioner"
        # }
    """
    return MetricsClient(
        default_labels={
            "service": service,
            "environment": environment or config.environment,
            "component": component,
        },
        enabled=config.observability.enable_metrics,
    )
