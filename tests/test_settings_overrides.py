from __future__ import annotations

from cli.config import load_config
from datastore.device_registry import build_default_registry
from settings import DEFAULT_MODEL_URN, get_settings


def test_defaults(monkeypatch) -> None:
    for name in (
        "IOT_SERVER_URL",
        "IOT_REQUEST_TIMEOUT",
        "SENSOR_MODEL_URN",
        "SENSOR_REPORT_INTERVAL",
        "SENSOR_POLL_INTERVAL",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = get_settings()

    assert settings.server_url == "http://localhost:8000"
    assert settings.model_urn == DEFAULT_MODEL_URN
    assert settings.report_interval == 5.0
    assert settings.poll_interval == 0.1
    assert settings.log_level == "INFO"


def test_environment_overrides_apply(monkeypatch, tmp_path) -> None:
    registry_path = tmp_path / "registry.json"
    monkeypatch.setenv("IOT_SERVER_URL", "http://iot.internal:8080")
    monkeypatch.setenv("IOT_REQUEST_TIMEOUT", "3")
    monkeypatch.setenv("SENSOR_MODEL_URN", "urn:test:model")
    monkeypatch.setenv("SENSOR_REPORT_INTERVAL", "1.5")
    monkeypatch.setenv("SENSOR_POLL_INTERVAL", "not-a-number")
    monkeypatch.setenv("MOCK_IOT_REGISTRY_PATH", str(registry_path))
    monkeypatch.setenv("LOG_LEVEL", " debug ")

    settings = get_settings()
    registry = build_default_registry()

    assert settings.server_url == "http://iot.internal:8080"
    assert settings.request_timeout == 3.0
    assert settings.model_urn == "urn:test:model"
    assert settings.report_interval == 1.5
    assert settings.poll_interval == 0.1
    assert settings.log_level == "DEBUG"
    assert registry.persistence_path == registry_path


def test_cli_options_override_environment(monkeypatch) -> None:
    monkeypatch.setenv("SENSOR_REPORT_INTERVAL", "2")
    monkeypatch.setenv("SENSOR_POLL_INTERVAL", "0.5")

    config = load_config(server_url="http://other/", report_interval=0.25, poll_interval=-1)

    assert config.server_url == "http://other"
    assert config.report_interval == 0.25
    assert config.poll_interval == 0.5
    agent_config = config.agent_config()
    assert agent_config.report_interval == 0.25
    assert agent_config.under_framework is False
