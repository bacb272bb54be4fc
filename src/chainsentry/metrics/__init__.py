"""Metrics registry and Prometheus exporter."""

from chainsentry.metrics.exporter import MetricsExporter, RegistryCollector
from chainsentry.metrics.instrumented import InstrumentedClient
from chainsentry.metrics.registry import (
    DUPLICATE_REGISTRATION_METRIC,
    DuplicateMetricError,
    MetricFamily,
    MetricKind,
    MetricKindConflictError,
    MetricNameConflictError,
    MetricNotFoundError,
    MetricSeries,
    MetricsError,
    MetricsRegistry,
)

__all__ = [
    "DUPLICATE_REGISTRATION_METRIC",
    "DuplicateMetricError",
    "InstrumentedClient",
    "MetricFamily",
    "MetricKind",
    "MetricKindConflictError",
    "MetricNameConflictError",
    "MetricNotFoundError",
    "MetricSeries",
    "MetricsError",
    "MetricsExporter",
    "MetricsRegistry",
    "RegistryCollector",
]
