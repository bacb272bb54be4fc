"""Tests for the dynamic metrics registry."""

import asyncio
import threading

import pytest

from chainsentry.metrics import (
    DUPLICATE_REGISTRATION_METRIC,
    DuplicateMetricError,
    MetricKind,
    MetricKindConflictError,
    MetricNameConflictError,
    MetricNotFoundError,
    MetricsRegistry,
)
from chainsentry.metrics.registry import labels_equal


class TestLabelEquality:
    """Tests for label-set comparison."""

    def test_order_independent(self):
        assert labels_equal({"a": "1", "b": "2"}, {"b": "2", "a": "1"})

    def test_different_value(self):
        assert not labels_equal({"a": "1"}, {"a": "2"})

    def test_extra_key(self):
        assert not labels_equal({"a": "1"}, {"a": "1", "b": ""})

    def test_same_count_different_keys(self):
        assert not labels_equal({"a": "1"}, {"b": "1"})

    def test_empty(self):
        assert labels_equal({}, {})


class TestRegistration:
    """Tests for counter and gauge registration."""

    def test_duplicate_self_counter_always_present(self, registry):
        assert registry.series_count(DUPLICATE_REGISTRATION_METRIC) == 1
        assert registry.duplicate_registrations == 0

    def test_register_counter_starts_at_zero(self, registry):
        registry.register_counter("x", "help", {"a": "1"})

        assert registry.series_count("x") == 1
        assert registry.get_value("x", {"a": "1"}) == 0

    def test_duplicate_registration_raises_and_counts(self, registry):
        registry.register_counter("x", "help", {"a": "1"})

        with pytest.raises(DuplicateMetricError) as exc_info:
            registry.register_counter("x", "help", {"a": "1"})

        assert exc_info.value.name == "x"
        assert exc_info.value.labels == {"a": "1"}
        assert registry.duplicate_registrations == 1
        assert registry.get_value(DUPLICATE_REGISTRATION_METRIC) == 1
        assert registry.series_count("x") == 1

    def test_duplicate_gauge_registration_counts(self, registry):
        registry.register_gauge("g", "help", {"a": "1"})

        with pytest.raises(DuplicateMetricError):
            registry.register_gauge("g", "help", {"a": "1"})
        with pytest.raises(DuplicateMetricError):
            registry.register_gauge("g", "help", {"a": "1"})

        assert registry.duplicate_registrations == 2

    def test_distinct_label_set_registers(self, registry):
        registry.register_counter("x", "help", {"a": "1"})
        registry.register_counter("x", "help", {"a": "2"})
        registry.register_counter("x", "help", {})

        assert registry.series_count("x") == 3
        assert registry.duplicate_registrations == 0

    def test_label_order_does_not_create_new_series(self, registry):
        registry.register_counter("x", "help", {"a": "1", "b": "2"})

        with pytest.raises(DuplicateMetricError):
            registry.register_counter("x", "help", {"b": "2", "a": "1"})

    def test_none_labels_mean_empty_set(self, registry):
        registry.register_counter("x", "help")

        with pytest.raises(DuplicateMetricError):
            registry.register_counter("x", "help", {})

    def test_register_gauge_if_absent_is_idempotent(self, registry):
        assert registry.register_gauge_if_absent("g", "help", {"a": "1"}) is True
        assert registry.register_gauge_if_absent("g", "help", {"a": "1"}) is False

        assert registry.series_count("g") == 1
        assert registry.duplicate_registrations == 0

    def test_register_gauge_if_absent_keeps_existing_value(self, registry):
        registry.register_gauge("g", "help", {"a": "1"})
        registry.set("g", 7, {"a": "1"})

        registry.register_gauge_if_absent("g", "help", {"a": "1"})

        assert registry.get_value("g", {"a": "1"}) == 7

    def test_kind_conflict(self, registry):
        registry.register_counter("x", "help", {"a": "1"})

        with pytest.raises(MetricKindConflictError):
            registry.register_gauge("x", "help", {"a": "2"})
        with pytest.raises(MetricKindConflictError):
            registry.register_gauge_if_absent("x", "help", {"a": "1"})

        assert registry.series_count("x") == 1

    @pytest.mark.parametrize("name", ["", "1abc", "has-dash", "with space"])
    def test_invalid_metric_name(self, registry, name):
        with pytest.raises(ValueError):
            registry.register_counter(name, "help", {})

    def test_counter_name_with_empty_base_rejected(self, registry):
        with pytest.raises(ValueError):
            registry.register_counter("_total", "help", {})

        assert registry.series_count("_total") == 0

    def test_counter_and_total_suffixed_counter_conflict(self, registry):
        registry.register_counter("x", "help", {})

        with pytest.raises(MetricNameConflictError):
            registry.register_counter("x_total", "help", {})

        assert registry.series_count("x_total") == 0
        assert registry.duplicate_registrations == 0

    def test_counter_and_gauge_with_exported_name_conflict(self, registry):
        registry.register_gauge("x_total", "help", {})

        with pytest.raises(MetricNameConflictError):
            registry.register_counter("x", "help", {})
        assert registry.series_count("x") == 0

    def test_invalid_label_name(self, registry):
        with pytest.raises(ValueError):
            registry.register_counter("x", "help", {"bad-key": "1"})

    def test_series_count_unknown_name(self, registry):
        assert registry.series_count("never_registered") == 0


class TestUpdates:
    """Tests for increment and set."""

    def test_increment(self, registry):
        registry.register_counter("x", "help", {"a": "1"})

        registry.increment("x", {"a": "1"})
        assert registry.get_value("x", {"a": "1"}) == 1

        registry.increment("x", {"a": "1"})
        assert registry.get_value("x", {"a": "1"}) == 2

    def test_increment_only_touches_matching_series(self, registry):
        registry.register_counter("x", "help", {"a": "1"})
        registry.register_counter("x", "help", {"a": "2"})

        registry.increment("x", {"a": "2"})

        assert registry.get_value("x", {"a": "1"}) == 0
        assert registry.get_value("x", {"a": "2"}) == 1

    def test_set_overwrites(self, registry):
        registry.register_gauge("g", "help", {"a": "1"})
        registry.set("g", 3, {"a": "1"})
        registry.increment("g", {"a": "1"})

        registry.set("g", 42, {"a": "1"})

        assert registry.get_value("g", {"a": "1"}) == 42

    def test_non_string_label_values_match_on_update(self, registry):
        registry.register_counter("x", "help", {"shard": 1})
        registry.register_gauge("g", "help", {"shard": 1})

        registry.increment("x", {"shard": 1})
        registry.set("g", 5, {"shard": 1})

        assert registry.get_value("x", {"shard": 1}) == 1
        assert registry.get_value("x", {"shard": "1"}) == 1
        assert registry.get_value("g", {"shard": 1}) == 5

    def test_increment_unknown_name(self, registry):
        with pytest.raises(MetricNotFoundError) as exc_info:
            registry.increment("missing", {})

        assert exc_info.value.name == "missing"

    def test_update_with_non_matching_labels_changes_nothing(self, registry):
        registry.register_counter("x", "help", {"a": "1"})
        registry.increment("x", {"a": "1"})

        with pytest.raises(MetricNotFoundError):
            registry.increment("x", {"a": "2"})
        with pytest.raises(MetricNotFoundError):
            registry.set("x", 10, {"a": "1", "b": "2"})
        with pytest.raises(MetricNotFoundError):
            registry.set("x", 10, {})

        assert registry.get_value("x", {"a": "1"}) == 1

    def test_increment_is_not_implicit_registration(self, registry):
        with pytest.raises(MetricNotFoundError):
            registry.increment("x", {"a": "1"})

        assert registry.series_count("x") == 0


class TestCollect:
    """Tests for the exporter snapshot."""

    def test_collect_in_registration_order(self, registry):
        registry.register_gauge("b_metric", "B", {})
        registry.register_counter("a_metric", "A", {"k": "2"})
        registry.register_counter("a_metric", "A", {"k": "1"})

        families = registry.collect()
        names = [family.name for family in families]

        assert names == [DUPLICATE_REGISTRATION_METRIC, "b_metric", "a_metric"]
        assert [s.labels for s in families[2].series] == [{"k": "2"}, {"k": "1"}]
        assert families[1].kind is MetricKind.GAUGE
        assert families[2].kind is MetricKind.COUNTER

    def test_collect_reflects_latest_values(self, registry):
        registry.register_gauge("g", "help", {})
        registry.set("g", 1.5, {})
        assert registry.collect()[-1].series[0].value == 1.5

        registry.set("g", 2.5, {})
        assert registry.collect()[-1].series[0].value == 2.5

    def test_collect_returns_copies(self, registry):
        registry.register_counter("x", "help", {"a": "1"})

        snapshot = registry.collect()
        snapshot[-1].series[0].value = 99
        snapshot[-1].series[0].labels["a"] = "changed"

        assert registry.get_value("x", {"a": "1"}) == 0


class TestConcurrency:
    """Registration and updates under concurrent callers."""

    def test_concurrent_duplicate_registration_threads(self, registry):
        successes = []
        duplicates = []
        barrier = threading.Barrier(16)

        def register():
            barrier.wait()
            try:
                registry.register_counter("race", "help", {"a": "1"})
                successes.append(1)
            except DuplicateMetricError:
                duplicates.append(1)

        threads = [threading.Thread(target=register) for _ in range(16)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(successes) == 1
        assert len(duplicates) == 15
        assert registry.series_count("race") == 1
        assert registry.duplicate_registrations == 15

    def test_concurrent_increments_threads(self, registry):
        registry.register_counter("hits", "help", {})

        def work():
            for _ in range(1000):
                registry.increment("hits", {})

        threads = [threading.Thread(target=work) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert registry.get_value("hits", {}) == 8000

    @pytest.mark.asyncio
    async def test_concurrent_duplicate_registration_tasks(self):
        registry = MetricsRegistry()

        async def register():
            await asyncio.sleep(0)
            try:
                registry.register_gauge("race", "help", {"a": "1"})
                return True
            except DuplicateMetricError:
                return False

        results = await asyncio.gather(*(register() for _ in range(10)))

        assert results.count(True) == 1
        assert registry.series_count("race") == 1
        assert registry.duplicate_registrations == 9
