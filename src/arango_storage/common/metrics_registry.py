"""
Prometheus metrics registry for the storage connector.

Pre-registers all metrics at module load time for better performance
and fail-fast behavior on duplicate metric names.

Metrics follow Prometheus naming conventions:
- snake_case names
- Base unit suffixes (_seconds, _total)
- Descriptive help text
"""

from typing import Dict

from prometheus_client import Counter, Gauge, Histogram, Info

# ==============================================================================
# Configuration
# ==============================================================================

# Standard labels applied to all metrics
STANDARD_LABELS = ["service", "environment", "component"]

# Per-operation labels (operation: get|set|delete)
OPERATION_LABELS = STANDARD_LABELS + ["operation", "collection"]

# Point operations against a single document
STORAGE_BUCKETS = [
    0.001,  # 1ms
    0.005,  # 5ms
    0.010,  # 10ms
    0.025,  # 25ms
    0.050,  # 50ms
    0.100,  # 100ms
    0.250,  # 250ms
    0.500,  # 500ms
    1.000,  # 1s
    5.000,  # 5s
]

# ==============================================================================
# Connector Information
# ==============================================================================

CONNECTOR_INFO = Info(
    "arango_storage_connector",
    "ArangoDB storage connector build information",
)

# ==============================================================================
# Record Operations
# ==============================================================================

OPERATIONS_TOTAL = Counter(
    "arango_storage_operations_total",
    "Total record operations by outcome",
    OPERATION_LABELS + ["status"],  # status: success|not_found|error
)

OPERATION_DURATION_SECONDS = Histogram(
    "arango_storage_operation_duration_seconds",
    "Record operation latency in seconds",
    OPERATION_LABELS,
    buckets=STORAGE_BUCKETS,
)

INVALID_KEYS_TOTAL = Counter(
    "arango_storage_invalid_keys_total",
    "Total operations rejected because the key could not be routed",
    STANDARD_LABELS + ["operation"],
)

GET_FAULTS_SUPPRESSED_TOTAL = Counter(
    "arango_storage_get_faults_suppressed_total",
    "Total get query faults reported to callers as not found",
    STANDARD_LABELS + ["collection"],
)

# ==============================================================================
# Collections & Bootstrap
# ==============================================================================

COLLECTIONS_PROVISIONED_TOTAL = Counter(
    "arango_storage_collections_provisioned_total",
    "Total collections created on first reference",
    STANDARD_LABELS,
)

PROVISIONING_FAILURES_TOTAL = Counter(
    "arango_storage_provisioning_failures_total",
    "Total collection provisioning failures",
    STANDARD_LABELS + ["collection"],
)

COLLECTION_HANDLES_CACHED = Gauge(
    "arango_storage_collection_handles_cached",
    "Collection handles currently held in the connector cache",
    STANDARD_LABELS,
)

BOOTSTRAP_TOTAL = Counter(
    "arango_storage_bootstrap_total",
    "Connector bootstrap attempts by outcome",
    STANDARD_LABELS + ["status"],  # status: ready|failed
)

# ==============================================================================
# Metric Registry (for dynamic lookup)
# ==============================================================================

_METRIC_REGISTRY: Dict[str, object] = {
    "operations_total": OPERATIONS_TOTAL,
    "operation_duration_seconds": OPERATION_DURATION_SECONDS,
    "invalid_keys_total": INVALID_KEYS_TOTAL,
    "get_faults_suppressed_total": GET_FAULTS_SUPPRESSED_TOTAL,
    "collections_provisioned_total": COLLECTIONS_PROVISIONED_TOTAL,
    "provisioning_failures_total": PROVISIONING_FAILURES_TOTAL,
    "collection_handles_cached": COLLECTION_HANDLES_CACHED,
    "bootstrap_total": BOOTSTRAP_TOTAL,
}


def get_metric(metric_name: str) -> object:
    """
    Get a registered metric by name.

    Args:
        metric_name: Metric name without the arango_storage_ prefix

    Raises:
        KeyError: If metric is not registered
    """
    if metric_name not in _METRIC_REGISTRY:
        raise KeyError(
            f"Metric '{metric_name}' not registered. "
            f"Available metrics: {sorted(_METRIC_REGISTRY.keys())}"
        )
    return _METRIC_REGISTRY[metric_name]


def get_counter(metric_name: str) -> Counter:
    """Get a counter metric by name."""
    return get_metric(metric_name)  # type: ignore[return-value]


def get_gauge(metric_name: str) -> Gauge:
    """Get a gauge metric by name."""
    return get_metric(metric_name)  # type: ignore[return-value]


def get_histogram(metric_name: str) -> Histogram:
    """Get a histogram metric by name."""
    return get_metric(metric_name)  # type: ignore[return-value]


def initialize_connector_info(name: str, version: str, environment: str) -> None:
    """Set connector build information, called once per connector instance."""
    CONNECTOR_INFO.info(
        {
            "name": name,
            "version": version,
            "environment": environment,
        }
    )
