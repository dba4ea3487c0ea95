"""Tests for duration parsing and settings validation."""

import logging

import pytest

from kubestorage.config import (
    ExporterSettings,
    parse_duration,
    parse_log_level,
    resolve_scrape_interval,
)
from kubestorage.errors import ConfigError


def test_parse_simple_durations():
    assert parse_duration("15s") == 15.0
    assert parse_duration("2m") == 120.0
    assert parse_duration("1h") == 3600.0
    assert parse_duration("250ms") == pytest.approx(0.25)


def test_parse_compound_and_fractional_durations():
    assert parse_duration("1m30s") == 90.0
    assert parse_duration("1.5h") == 5400.0
    assert parse_duration(".5s") == 0.5
    assert parse_duration("1h2m3s4ms") == pytest.approx(3723.004)


def test_parse_zero_and_signed():
    assert parse_duration("0") == 0.0
    assert parse_duration("-5s") == -5.0
    assert parse_duration("+5s") == 5.0


@pytest.mark.parametrize("bad", ["", "15", "abc", "5x", "s", "1m x", "--5s", "."])
def test_parse_rejects_invalid(bad):
    with pytest.raises(ValueError):
        parse_duration(bad)


def test_invalid_interval_falls_back_to_default(caplog):
    with caplog.at_level(logging.WARNING):
        assert resolve_scrape_interval("fifteen") == 15.0
    assert "Invalid SCRAPE_DURATION 'fifteen'" in caplog.text


def test_missing_interval_uses_default():
    assert resolve_scrape_interval(None) == 15.0
    assert resolve_scrape_interval("30s") == 30.0


def test_log_levels():
    assert parse_log_level("info") == logging.INFO
    assert parse_log_level("WARN") == logging.WARNING
    assert parse_log_level("trace") == logging.DEBUG
    assert parse_log_level("disabled") > logging.CRITICAL


def test_unknown_log_level_is_config_error():
    with pytest.raises(ConfigError):
        parse_log_level("loud")


def test_settings_need_a_node_or_url():
    with pytest.raises(ConfigError):
        ExporterSettings().validate()

    assert ExporterSettings(node_name="n1").validate().node_name == "n1"
    assert ExporterSettings(stats_url="http://127.0.0.1:10255").validate()


def test_settings_reject_bad_port_and_policy():
    with pytest.raises(ConfigError):
        ExporterSettings(node_name="n1", port=0).validate()
    with pytest.raises(ConfigError):
        ExporterSettings(node_name="n1", fetch_error_policy="ignore").validate()
