"""Tests for configuration module."""

import json

import pytest
from pydantic import ValidationError

from iio_scan.config import IIOD_PORT, Config, ProbeConfig


def test_config_defaults():
    config = Config()

    assert config.discovery.mdns_service_types == ["_iio._tcp.local."]
    assert config.discovery.browse_timeout_seconds == 3.0
    assert config.discovery.resolve_timeout_ms == 3000
    assert config.discovery.default_port == IIOD_PORT == 30431

    assert config.probe.timeout_seconds == 5.0
    assert config.probe.max_concurrent_probes == 16

    assert config.scan.deadline_seconds is None
    assert config.description.max_length == 255

    assert config.logging.level == "INFO"
    assert config.logging.format == "json"
    assert config.logging.file is None


def test_config_from_env(monkeypatch):
    monkeypatch.setenv("IIO_SCAN_LOGGING__LEVEL", "DEBUG")
    monkeypatch.setenv("IIO_SCAN_PROBE__TIMEOUT_SECONDS", "2.5")
    monkeypatch.setenv("IIO_SCAN_PROBE__MAX_CONCURRENT_PROBES", "4")
    monkeypatch.setenv("IIO_SCAN_SCAN__DEADLINE_SECONDS", "30")
    monkeypatch.setenv("IIO_SCAN_DISCOVERY__MDNS_SERVICE_TYPES", '["_iio._tcp.local.", "_iiod._tcp.local."]')

    config = Config()

    assert config.logging.level == "DEBUG"
    assert config.probe.timeout_seconds == 2.5
    assert config.probe.max_concurrent_probes == 4
    assert config.scan.deadline_seconds == 30
    assert config.discovery.mdns_service_types == ["_iio._tcp.local.", "_iiod._tcp.local."]


def test_config_from_file(tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps({
        "discovery": {"default_port": 5000},
        "probe": {"timeout_seconds": 1.0},
        "logging": {"format": "console"},
    }))

    config = Config.from_file(config_file)

    assert config.discovery.default_port == 5000
    assert config.probe.timeout_seconds == 1.0
    assert config.logging.format == "console"
    assert config.description.max_length == 255


def test_probe_config_validation():
    with pytest.raises(ValidationError):
        ProbeConfig(timeout_seconds=0)
    with pytest.raises(ValidationError):
        ProbeConfig(max_concurrent_probes=0)


def test_invalid_port_rejected(tmp_path):
    config_file = tmp_path / "bad.json"
    config_file.write_text(json.dumps({"discovery": {"default_port": 70000}}))
    with pytest.raises(ValidationError):
        Config.from_file(config_file)
