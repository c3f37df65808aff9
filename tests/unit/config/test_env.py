"""Tests for EnvReader class."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from landing_exporter.config.env import EnvReader


class TestEnvReader:
    """Tests for EnvReader typed getters."""

    def test_prefix_is_applied(self) -> None:
        reader = EnvReader(env={"LANDING_EXPORTER_ENV": "dev"})
        assert reader.get_str("ENV") == "dev"

    def test_unset_returns_default(self) -> None:
        reader = EnvReader(env={})
        assert reader.get_str("ENV") is None
        assert reader.get_int("SERVER_PORT", 9464) == 9464

    def test_get_int_parses(self) -> None:
        reader = EnvReader(env={"LANDING_EXPORTER_SERVER_PORT": "9000"})
        assert reader.get_int("SERVER_PORT") == 9000

    def test_get_int_invalid_logs_and_returns_default(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        reader = EnvReader(env={"LANDING_EXPORTER_SERVER_PORT": "abc"})
        with caplog.at_level(logging.WARNING):
            assert reader.get_int("SERVER_PORT") is None
        assert "Invalid integer value for LANDING_EXPORTER_SERVER_PORT" in caplog.text

    def test_get_float_invalid_returns_default(self) -> None:
        reader = EnvReader(env={"LANDING_EXPORTER_SERVER_SHUTDOWN_TIMEOUT": "soon"})
        assert reader.get_float("SERVER_SHUTDOWN_TIMEOUT", 1.5) == 1.5

    @pytest.mark.parametrize("value", ["true", "1", "YES", "on"])
    def test_get_bool_truthy(self, value: str) -> None:
        reader = EnvReader(env={"LANDING_EXPORTER_FLAG": value})
        assert reader.get_bool("FLAG") is True

    def test_get_bool_other_values_are_false(self) -> None:
        reader = EnvReader(env={"LANDING_EXPORTER_FLAG": "nope"})
        assert reader.get_bool("FLAG") is False

    def test_get_path_expands_user(self) -> None:
        reader = EnvReader(env={"LANDING_EXPORTER_ROOT_PATH": "~/landing"})
        assert reader.get_path("ROOT_PATH") == Path("~/landing").expanduser()

    def test_get_list_strips_and_drops_empty_items(self) -> None:
        reader = EnvReader(env={"LANDING_EXPORTER_GROUPED_TENANTS": " Acme, ,Beta ,"})
        assert reader.get_list("GROUPED_TENANTS") == ["Acme", "Beta"]
