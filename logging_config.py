from __future__ import annotations

import logging
import time
from logging.config import dictConfig
from typing import Iterable

from settings import get_settings

DEVICE_CONTEXT_KEYS = (
    "endpoint_id",
    "model_urn",
    "attribute",
    "value",
    "status_code",
    "reason",
)

_QUIET_LOGGERS = ("httpx", "httpcore")

_configured = False


class DeviceContextFormatter(logging.Formatter):
    """UTC formatter that appends device context passed through ``extra``."""

    converter = time.gmtime

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        context_keys: Iterable[str] = DEVICE_CONTEXT_KEYS,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.context_keys = tuple(context_keys)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = " ".join(
            f"{key}={record.__dict__[key]}"
            for key in self.context_keys
            if record.__dict__.get(key) is not None
        )
        return f"{message} | {context}" if context else message


def configure_logging(level: str | int | None = None) -> None:
    """Route diagnostics to stderr once per process; stdout belongs to the agent."""
    global _configured
    if _configured:
        return

    log_level = level if level is not None else get_settings().log_level

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "device": {
                    "()": "logging_config.DeviceContextFormatter",
                    "fmt": "%(asctime)sZ | %(levelname)s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%dT%H:%M:%S",
                }
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": "device",
                }
            },
            "loggers": {name: {"level": "WARNING"} for name in _QUIET_LOGGERS},
            "root": {"handlers": ["stderr"], "level": log_level},
        }
    )

    _configured = True
