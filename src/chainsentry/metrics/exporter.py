"""Prometheus exposition for the metrics registry.

The collector reads the registry on every scrape, so the exported values are
whatever the last ``set``/``increment`` left behind. Nothing is cached.
"""

from typing import Iterable

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest
from prometheus_client.metrics_core import Metric
from prometheus_client.registry import Collector

from chainsentry.metrics.registry import MetricKind, MetricsRegistry, counter_base_name


class RegistryCollector(Collector):
    """Custom collector turning registry families into Prometheus metrics.

    Series under one name may carry different label keys, so samples are
    added one by one instead of through the fixed-label metric families.
    """

    def __init__(self, registry: MetricsRegistry):
        self._registry = registry

    def collect(self) -> Iterable[Metric]:
        for family in self._registry.collect():
            if family.kind is MetricKind.COUNTER:
                base_name = counter_base_name(family.name)
                metric = Metric(base_name, family.description, "counter")
                sample_name = f"{base_name}_total"
            else:
                metric = Metric(family.name, family.description, "gauge")
                sample_name = family.name

            for series in family.series:
                metric.add_sample(sample_name, series.labels, series.value)

            yield metric

    def describe(self) -> Iterable[Metric]:
        # Families are created at runtime; nothing to declare up front.
        return []


class MetricsExporter:
    """Renders a registry in the Prometheus text format."""

    content_type = CONTENT_TYPE_LATEST

    def __init__(self, registry: MetricsRegistry):
        self.registry = registry
        self._collector_registry = CollectorRegistry(auto_describe=False)
        self._collector_registry.register(RegistryCollector(registry))

    def render(self) -> bytes:
        """Current snapshot of all registered series."""
        return generate_latest(self._collector_registry)
