"""Gauge sink backed by prometheus_client.

Gauges are created lazily, one per metric family, in a registry owned by
the sink. Label mistakes are logged and dropped instead of raised, so a bad
series can never take down a scan.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Gauge
from prometheus_client.exposition import generate_latest

logger = logging.getLogger(__name__)

__all__ = ["CONTENT_TYPE_LATEST", "PrometheusGaugeSink"]


class PrometheusGaugeSink:
    """Thread-safe gauge store exposing the Prometheus text format."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()
        self._lock = threading.Lock()
        self._gauges: dict[str, Gauge] = {}
        self._label_names: dict[str, tuple[str, ...]] = {}

    def set_gauge(
        self,
        name: str,
        description: str,
        label_names: Sequence[str],
        label_values: Sequence[str],
        value: float,
    ) -> None:
        """Set one labelled series of a gauge family.

        Args:
            name: Metric family name.
            description: Help text, used when the family is first created.
            label_names: Label names of the family.
            label_values: Values, in the same order as ``label_names``.
            value: Gauge value.
        """
        if len(label_names) != len(label_values):
            logger.error(
                "Label names count (%d) does not match label values count (%d) "
                "for metric %s",
                len(label_names),
                len(label_values),
                name,
            )
            return

        with self._lock:
            gauge = self._gauges.get(name)
            if gauge is None:
                try:
                    gauge = Gauge(
                        name,
                        description,
                        labelnames=list(label_names),
                        registry=self.registry,
                    )
                except ValueError as e:
                    logger.error("Cannot create gauge %s: %s", name, e)
                    return
                self._gauges[name] = gauge
                self._label_names[name] = tuple(label_names)
            elif self._label_names[name] != tuple(label_names):
                logger.error(
                    "Label names %s do not match existing labels %s for metric %s",
                    list(label_names),
                    list(self._label_names[name]),
                    name,
                )
                return

            gauge.labels(*label_values).set(value)

        logger.debug("Set %s%s = %s", name, list(label_values), value)

    def remove_series(self, name: str, label_values: Sequence[str]) -> None:
        """Remove one labelled series. Unknown families or series are ignored."""
        with self._lock:
            gauge = self._gauges.get(name)
            if gauge is None:
                logger.warning("Gauge %s not found, cannot remove series", name)
                return
            if len(label_values) != len(self._label_names[name]):
                logger.error(
                    "Cannot remove series of %s: expected %d label values, got %d",
                    name,
                    len(self._label_names[name]),
                    len(label_values),
                )
                return
            try:
                gauge.remove(*label_values)
            except KeyError:
                logger.debug("Series %s%s already absent", name, list(label_values))
                return

        logger.debug("Removed series %s%s", name, list(label_values))

    def get_value(self, name: str, label_values: Sequence[str]) -> float | None:
        """Current value of a series, or None if it is not published."""
        with self._lock:
            label_names = self._label_names.get(name)
        if label_names is None:
            return None
        return self.registry.get_sample_value(
            name, dict(zip(label_names, label_values, strict=True))
        )

    def render(self) -> bytes:
        """Registry contents in the Prometheus text exposition format."""
        return generate_latest(self.registry)
