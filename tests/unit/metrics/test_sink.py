"""Tests for PrometheusGaugeSink."""

from __future__ import annotations

import logging

import pytest

from landing_exporter.metrics.sink import PrometheusGaugeSink

LABELS = ("root_dir", "tenant", "env", "is_recent")


@pytest.fixture
def sink() -> PrometheusGaugeSink:
    return PrometheusGaugeSink()


class TestSetGauge:
    """Tests for set_gauge()."""

    def test_sets_and_overwrites_value(self, sink) -> None:
        values = ("/data", "Acme", "prod", "false")
        sink.set_gauge("total_failures", "help", LABELS, values, 3)
        sink.set_gauge("total_failures", "help", LABELS, values, 5)
        assert sink.get_value("total_failures", values) == 5.0

    def test_label_arity_mismatch_is_ignored(
        self, sink, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.ERROR):
            sink.set_gauge("total_failures", "help", LABELS, ("/data", "Acme"), 1)
        assert "does not match label values count" in caplog.text
        assert sink.get_value("total_failures", ("/data", "Acme", "prod", "false")) is None

    def test_label_names_mismatch_is_ignored(
        self, sink, caplog: pytest.LogCaptureFixture
    ) -> None:
        sink.set_gauge("total_failures", "help", LABELS, ("/d", "A", "prod", "true"), 1)
        with caplog.at_level(logging.ERROR):
            sink.set_gauge("total_failures", "help", ("a", "b"), ("1", "2"), 9)
        assert "do not match existing labels" in caplog.text
        assert sink.get_value("total_failures", ("/d", "A", "prod", "true")) == 1.0

    def test_invalid_metric_name_is_ignored(
        self, sink, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.ERROR):
            sink.set_gauge("bad name", "help", ("a",), ("1",), 1)
        assert "Cannot create gauge bad name" in caplog.text


class TestRemoveSeries:
    """Tests for remove_series()."""

    def test_removes_one_series(self, sink) -> None:
        keep = ("/d", "A", "prod", "false")
        drop = ("/d", "B", "prod", "false")
        sink.set_gauge("total_failures", "help", LABELS, keep, 1)
        sink.set_gauge("total_failures", "help", LABELS, drop, 2)

        sink.remove_series("total_failures", drop)

        assert sink.get_value("total_failures", keep) == 1.0
        assert sink.get_value("total_failures", drop) is None

    def test_unknown_family_and_series_are_ignored(self, sink) -> None:
        sink.remove_series("nope", ("a",))
        sink.set_gauge("total_failures", "help", LABELS, ("/d", "A", "prod", "false"), 1)
        sink.remove_series("total_failures", ("/d", "Z", "prod", "false"))
        sink.remove_series("total_failures", ("/d",))
        assert sink.get_value("total_failures", ("/d", "A", "prod", "false")) == 1.0


def test_render_exposition_format(sink) -> None:
    sink.set_gauge(
        "total_failures", "Total failures", LABELS, ("/d", "Acme", "prod", "true"), 2
    )
    text = sink.render().decode("utf-8")
    assert "# HELP total_failures Total failures" in text
    assert "# TYPE total_failures gauge" in text
    assert (
        'total_failures{root_dir="/d",tenant="Acme",env="prod",is_recent="true"} 2.0'
        in text
    )
