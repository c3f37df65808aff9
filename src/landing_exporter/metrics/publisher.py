"""Metric publishing with stale-series retraction.

For every metric family a scan publishes, the label tuples set in this
cycle are compared with the ones the same scan set last cycle. Tuples that
disappeared (a group folder that emptied, a renamed root) are removed from
the sink instead of lingering with their last value.
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, NamedTuple

from landing_exporter.scanner.models import ScanCategory, ZombieType

if TYPE_CHECKING:
    from landing_exporter.config.models import ScannerConfig
    from landing_exporter.metrics.sink import PrometheusGaugeSink
    from landing_exporter.scanner.report import AggregateReport

logger = logging.getLogger(__name__)

LabelValues = tuple[str, ...]


@dataclass(frozen=True)
class MetricFamily:
    """Name, help text and label names of one gauge family."""

    name: str
    description: str
    label_names: LabelValues


TOTAL_FAILURES = MetricFamily(
    "total_failures",
    "Total failures per tenant. is_recent=true counts failures inside the "
    "recent window, is_recent=false counts all failures.",
    ("root_dir", "tenant", "env", "is_recent"),
)
GROUP_FAILURES = MetricFamily(
    "n_failures_in_group_folder",
    "Failures per group folder of a grouped tenant.",
    ("root_dir", "tenant", "env", "group_folder", "is_recent"),
)
TOTAL_ZOMBIES = MetricFamily(
    "total_zombies",
    "Total zombie folders per tenant by zombie_type (observed or non_observed).",
    ("root_dir", "tenant", "env", "is_recent", "zombie_type"),
)
GROUP_ZOMBIES = MetricFamily(
    "n_zombies_in_group_folder",
    "Zombie folders per group folder of a grouped tenant, by zombie_type.",
    ("root_dir", "tenant", "env", "group_folder", "is_recent", "zombie_type"),
)
TOTAL_TRANSCODED = MetricFamily(
    "total_transcoded_folders",
    "Transcoded folders that still contain files.",
    ("root_dir", "tenant", "env", "is_recent"),
)


class ScanKey(NamedTuple):
    """Identity of one scan's contribution to one metric family."""

    family: str
    tenant: str
    category: str
    is_recent: bool


class PublishedSeriesStore:
    """Label tuples most recently published per scan key.

    Lives for the whole process and is shared by every scan. A cycle
    replaces the set for its key wholesale; sets are never merged.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._series: dict[ScanKey, frozenset[LabelValues]] = {}

    def replace(
        self, key: ScanKey, current: frozenset[LabelValues]
    ) -> frozenset[LabelValues]:
        """Store ``current`` for ``key`` and return the previous set."""
        with self._lock:
            previous = self._series.get(key, frozenset())
            self._series[key] = current
            return previous

    def get(self, key: ScanKey) -> frozenset[LabelValues]:
        with self._lock:
            return self._series.get(key, frozenset())

    def __len__(self) -> int:
        with self._lock:
            return len(self._series)


@dataclass(frozen=True)
class LabelContext:
    """Label values shared by every series of one scan."""

    root_dir: str
    tenant: str
    env: str
    zombie_type: ZombieType | None = None


def _bool_label(value: bool) -> str:
    return "true" if value else "false"


def relative_group_path(group: str | Path, root_dir: str | Path) -> str:
    """Group folder relative to ``root_dir`` with forward slashes."""
    return os.path.relpath(group, root_dir).replace(os.sep, "/")


class MetricPublisher:
    """Turns aggregate reports into gauge series and sweeps stale ones."""

    def __init__(
        self,
        sink: PrometheusGaugeSink,
        store: PublishedSeriesStore,
        config: ScannerConfig,
    ) -> None:
        self._sink = sink
        self._store = store
        self._config = config

    def publish_report(
        self,
        category: ScanCategory,
        report: AggregateReport,
        context: LabelContext,
        scan_path: Path,
    ) -> None:
        """Publish total and per-group counts of a failure or zombie scan.

        Args:
            category: FAILURES or ZOMBIES.
            report: Completed aggregate report.
            context: Labels common to the scan.
            scan_path: Directory the traversal started from; it is never
                reported as a group of its own.
        """
        if category is ScanCategory.FAILURES:
            total_family, group_family = TOTAL_FAILURES, GROUP_FAILURES
            suffix: LabelValues = ()
            key_category = category.value
        elif category is ScanCategory.ZOMBIES:
            if context.zombie_type is None:
                raise ValueError("zombie scans need a zombie_type label")
            total_family, group_family = TOTAL_ZOMBIES, GROUP_ZOMBIES
            suffix = (context.zombie_type.value,)
            key_category = f"{category.value}:{context.zombie_type.value}"
        else:
            raise ValueError(f"report publishing does not apply to {category.value}")

        base = (context.root_dir, context.tenant, context.env)
        grouped = self._config.is_grouped(context.tenant)
        scan_root = str(scan_path).casefold()

        for recent in (False, True):
            count = report.recent_count if recent else report.total_count
            self._publish_family(
                total_family,
                ScanKey(total_family.name, context.tenant, key_category, recent),
                [(base + (_bool_label(recent),) + suffix, count)],
            )

            if not grouped:
                continue

            series = []
            for group, group_count in report.group_counts(recent=recent).items():
                if group_count <= 0 or group.casefold() == scan_root:
                    continue
                labels = (
                    base
                    + (relative_group_path(group, context.root_dir), _bool_label(recent))
                    + suffix
                )
                series.append((labels, group_count))
            self._publish_family(
                group_family,
                ScanKey(group_family.name, context.tenant, key_category, recent),
                series,
            )

    def publish_transcoded(
        self, total: int, recent: int, context: LabelContext
    ) -> None:
        """Publish the transcoded folder totals."""
        base = (context.root_dir, context.tenant, context.env)
        for is_recent, count in ((False, total), (True, recent)):
            self._publish_family(
                TOTAL_TRANSCODED,
                ScanKey(
                    TOTAL_TRANSCODED.name,
                    context.tenant,
                    ScanCategory.TRANSCODED.value,
                    is_recent,
                ),
                [(base + (_bool_label(is_recent),), count)],
            )

    def _publish_family(
        self,
        family: MetricFamily,
        key: ScanKey,
        series: Iterable[tuple[LabelValues, float]],
    ) -> None:
        current: set[LabelValues] = set()
        for label_values, value in series:
            self._sink.set_gauge(
                family.name, family.description, family.label_names, label_values, value
            )
            current.add(label_values)

        previous = self._store.replace(key, frozenset(current))
        stale = previous - current
        for label_values in stale:
            self._sink.remove_series(family.name, label_values)
        if stale:
            logger.info(
                "Removed %d stale %s series for %s", len(stale), family.name, key.tenant
            )
