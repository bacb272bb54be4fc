"""Dynamic metrics registry.

Holds named, labeled counters and gauges registered at runtime by the
integration clients. Values live in memory and are read by the Prometheus
exporter at scrape time.

A series is identified by its name plus its label-set. Two label-sets are
equal when they have the same keys with the same values; key order does not
matter. Registering an existing (name, labels) pair is an error and is
counted in ``metrics_registry_duplicate_registration_count``.
"""

import logging
import re
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)

DUPLICATE_REGISTRATION_METRIC = "metrics_registry_duplicate_registration_count"

_METRIC_NAME_RE = re.compile(r"^[a-zA-Z_:][a-zA-Z0-9_:]*$")
_LABEL_NAME_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


class MetricKind(str, Enum):
    """Kind of a registered metric."""

    COUNTER = "counter"
    GAUGE = "gauge"


@dataclass
class MetricSeries:
    """One labeled series of a metric."""

    name: str
    kind: MetricKind
    labels: dict[str, str]
    value: float = 0.0

    def matches(self, labels: dict[str, str]) -> bool:
        """Check whether this series carries exactly ``labels``."""
        return labels_equal(self.labels, labels)


@dataclass
class MetricFamily:
    """All series registered under one metric name."""

    name: str
    kind: MetricKind
    description: str
    series: list[MetricSeries] = field(default_factory=list)

    def find(self, labels: dict[str, str]) -> Optional[MetricSeries]:
        for series in self.series:
            if series.matches(labels):
                return series
        return None


class MetricsError(Exception):
    """Base class for registry errors."""

    def __init__(self, message: str, name: str, labels: Optional[dict[str, str]] = None):
        super().__init__(message)
        self.name = name
        self.labels = dict(labels or {})


class DuplicateMetricError(MetricsError):
    """Raised when a (name, labels) pair is registered twice."""

    pass


class MetricNotFoundError(MetricsError):
    """Raised when updating a (name, labels) pair that was never registered."""

    pass


class MetricKindConflictError(MetricsError):
    """Raised when a name is registered as both a counter and a gauge."""

    pass


class MetricNameConflictError(MetricsError):
    """Raised when two distinct names would be exported under the same name.

    Counters are exported as ``<base>_total``, so ``x`` and ``x_total`` (or a
    counter ``x`` and a gauge ``x_total``) cannot coexist.
    """

    pass


def counter_base_name(name: str) -> str:
    """Counter name without its ``_total`` suffix."""
    return name[: -len("_total")] if name.endswith("_total") else name


def exposed_name(name: str, kind: MetricKind) -> str:
    """Name of the family as it appears in the Prometheus text output."""
    if kind is MetricKind.COUNTER:
        return f"{counter_base_name(name)}_total"
    return name


def _label_values(labels: Optional[dict[str, str]]) -> dict[str, str]:
    # Values are compared and exported as strings on every path.
    return {key: str(value) for key, value in (labels or {}).items()}


def labels_equal(left: dict[str, str], right: dict[str, str]) -> bool:
    """Compare two label-sets by key count and per-key value."""
    if len(left) != len(right):
        return False
    return all(key in right and right[key] == value for key, value in left.items())


class MetricsRegistry:
    """In-process table of counters and gauges.

    Create one per process and hand it to every component that reports
    metrics. All operations take the same lock, so a uniqueness check and
    the insert that follows it (or the read and write of an increment)
    happen as one step, whether callers are asyncio tasks or threads.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._families: dict[str, MetricFamily] = {}
        self._duplicate_series = MetricSeries(
            name=DUPLICATE_REGISTRATION_METRIC,
            kind=MetricKind.COUNTER,
            labels={},
        )
        self._families[DUPLICATE_REGISTRATION_METRIC] = MetricFamily(
            name=DUPLICATE_REGISTRATION_METRIC,
            kind=MetricKind.COUNTER,
            description="Counts the number of duplicate metric registration attempts",
            series=[self._duplicate_series],
        )

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_counter(
        self, name: str, description: str, labels: Optional[dict[str, str]] = None
    ) -> None:
        """Register a zero-valued counter series.

        Raises:
            DuplicateMetricError: If the (name, labels) pair already exists
            MetricKindConflictError: If ``name`` is registered as a gauge
            MetricNameConflictError: If another name exports as ``<base>_total``
            ValueError: If the name is invalid or is ``_total`` alone
        """
        self._register(name, description, labels, MetricKind.COUNTER)

    def register_gauge(
        self, name: str, description: str, labels: Optional[dict[str, str]] = None
    ) -> None:
        """Register a zero-valued gauge series.

        Raises:
            DuplicateMetricError: If the (name, labels) pair already exists
            MetricKindConflictError: If ``name`` is registered as a counter
            MetricNameConflictError: If a counter already exports as ``name``
        """
        self._register(name, description, labels, MetricKind.GAUGE)

    def register_gauge_if_absent(
        self, name: str, description: str, labels: Optional[dict[str, str]] = None
    ) -> bool:
        """Register a gauge series unless it already exists.

        An existing series is left untouched and is not counted as a
        duplicate.

        Returns:
            True if a new series was registered
        """
        labels = self._normalize(name, labels, MetricKind.GAUGE)
        with self._lock:
            family = self._families.get(name)
            if family is not None and family.find(labels) is not None:
                if family.kind is not MetricKind.GAUGE:
                    raise MetricKindConflictError(
                        f"Metric {name} is registered as a {family.kind.value}",
                        name,
                        labels,
                    )
                return False
            self._insert(name, description, labels, MetricKind.GAUGE)
            return True

    def _register(
        self,
        name: str,
        description: str,
        labels: Optional[dict[str, str]],
        kind: MetricKind,
    ) -> None:
        labels = self._normalize(name, labels, kind)
        with self._lock:
            family = self._families.get(name)
            if family is not None and family.find(labels) is not None:
                self._duplicate_series.value += 1
                raise DuplicateMetricError(
                    f"Duplicate {kind.value} registration detected for "
                    f"metric {name} with labels {labels}",
                    name,
                    labels,
                )
            self._insert(name, description, labels, kind)

    def _insert(
        self, name: str, description: str, labels: dict[str, str], kind: MetricKind
    ) -> None:
        # Caller holds the lock.
        family = self._families.get(name)
        if family is None:
            exported = exposed_name(name, kind)
            for other in self._families.values():
                if exposed_name(other.name, other.kind) == exported:
                    raise MetricNameConflictError(
                        f"Metric {name} would be exported as {exported}, "
                        f"which is already used by {other.kind.value} {other.name}",
                        name,
                        labels,
                    )
            family = MetricFamily(name=name, kind=kind, description=description)
            self._families[name] = family
        elif family.kind is not kind:
            raise MetricKindConflictError(
                f"Metric {name} is registered as a {family.kind.value}, "
                f"cannot add a {kind.value} series",
                name,
                labels,
            )
        family.series.append(MetricSeries(name=name, kind=kind, labels=labels))
        logger.debug(f"Registered {kind.value} {name} with labels {labels}")

    @staticmethod
    def _normalize(name: str, labels: Optional[dict[str, str]], kind: MetricKind) -> dict[str, str]:
        if not _METRIC_NAME_RE.match(name):
            raise ValueError(f"Invalid metric name: {name!r}")
        if kind is MetricKind.COUNTER and not counter_base_name(name):
            raise ValueError(f"Invalid counter name: {name!r}")
        labels = _label_values(labels)
        for key in labels:
            if not _LABEL_NAME_RE.match(key):
                raise ValueError(f"Invalid label name {key!r} for metric {name}")
        return labels

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------

    def increment(self, name: str, labels: Optional[dict[str, str]] = None) -> None:
        """Add 1 to the series matching ``labels`` exactly.

        Raises:
            MetricNotFoundError: If the name or label-set is not registered
        """
        labels = _label_values(labels)
        with self._lock:
            self._lookup(name, labels).value += 1

    def set(self, name: str, value: float, labels: Optional[dict[str, str]] = None) -> None:
        """Overwrite the value of the series matching ``labels`` exactly.

        Raises:
            MetricNotFoundError: If the name or label-set is not registered
        """
        labels = _label_values(labels)
        with self._lock:
            self._lookup(name, labels).value = float(value)

    def _lookup(self, name: str, labels: dict[str, str]) -> MetricSeries:
        # Caller holds the lock.
        family = self._families.get(name)
        if family is None:
            raise MetricNotFoundError(f"Metric with name {name} not found.", name, labels)
        series = family.find(labels)
        if series is None:
            raise MetricNotFoundError(
                f"Metric with name {name} and labels {labels} not found.", name, labels
            )
        return series

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def series_count(self, name: str) -> int:
        """Number of label-sets registered under ``name`` (0 if unknown)."""
        with self._lock:
            family = self._families.get(name)
            return len(family.series) if family else 0

    def get_value(self, name: str, labels: Optional[dict[str, str]] = None) -> float:
        """Current value of one series.

        Raises:
            MetricNotFoundError: If the name or label-set is not registered
        """
        labels = _label_values(labels)
        with self._lock:
            return self._lookup(name, labels).value

    @property
    def duplicate_registrations(self) -> int:
        """Number of rejected duplicate registrations so far."""
        with self._lock:
            return int(self._duplicate_series.value)

    def collect(self) -> list[MetricFamily]:
        """Snapshot of every family, in registration order.

        The returned objects are copies; mutating them does not affect the
        registry.
        """
        with self._lock:
            return [
                MetricFamily(
                    name=family.name,
                    kind=family.kind,
                    description=family.description,
                    series=[
                        MetricSeries(
                            name=series.name,
                            kind=series.kind,
                            labels=dict(series.labels),
                            value=series.value,
                        )
                        for series in family.series
                    ],
                )
                for family in self._families.values()
            ]
