"""Gauge publishing for scan results."""

from landing_exporter.metrics.publisher import (
    GROUP_FAILURES,
    GROUP_ZOMBIES,
    TOTAL_FAILURES,
    TOTAL_TRANSCODED,
    TOTAL_ZOMBIES,
    LabelContext,
    MetricFamily,
    MetricPublisher,
    PublishedSeriesStore,
    ScanKey,
    relative_group_path,
)
from landing_exporter.metrics.sink import CONTENT_TYPE_LATEST, PrometheusGaugeSink

__all__ = [
    "CONTENT_TYPE_LATEST",
    "GROUP_FAILURES",
    "GROUP_ZOMBIES",
    "TOTAL_FAILURES",
    "TOTAL_TRANSCODED",
    "TOTAL_ZOMBIES",
    "LabelContext",
    "MetricFamily",
    "MetricPublisher",
    "PrometheusGaugeSink",
    "PublishedSeriesStore",
    "ScanKey",
    "relative_group_path",
]
