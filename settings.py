from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


DEFAULT_MODEL_URN = "urn:lsaetta:device1model1"

_SERVER_URL_ENV = "IOT_SERVER_URL"
_REQUEST_TIMEOUT_ENV = "IOT_REQUEST_TIMEOUT"
_MODEL_URN_ENV = "SENSOR_MODEL_URN"
_REPORT_INTERVAL_ENV = "SENSOR_REPORT_INTERVAL"
_POLL_INTERVAL_ENV = "SENSOR_POLL_INTERVAL"
_REGISTRY_PATH_ENV = "MOCK_IOT_REGISTRY_PATH"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    server_url: str
    request_timeout: float
    model_urn: str
    report_interval: float
    poll_interval: float
    registry_path: Optional[str]
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_positive_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        server_url=_read_str_env(_SERVER_URL_ENV, "http://localhost:8000"),
        request_timeout=_read_positive_float(_REQUEST_TIMEOUT_ENV, 10.0),
        model_urn=_read_str_env(_MODEL_URN_ENV, DEFAULT_MODEL_URN),
        report_interval=_read_positive_float(_REPORT_INTERVAL_ENV, 5.0),
        poll_interval=_read_positive_float(_POLL_INTERVAL_ENV, 0.1),
        registry_path=_read_optional_env(_REGISTRY_PATH_ENV, "./tmp/mock_iot_registry.json"),
        log_level=_read_log_level("INFO"),
    )
