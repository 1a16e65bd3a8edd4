from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from services.agent import AgentConfig
from settings import get_settings


@dataclass(frozen=True)
class CLIConfig:
    server_url: str
    request_timeout: float
    model_urn: str
    report_interval: float
    poll_interval: float
    log_level: str

    def agent_config(self) -> AgentConfig:
        return AgentConfig(
            model_urn=self.model_urn,
            report_interval=self.report_interval,
            poll_interval=self.poll_interval,
        )


def _positive_or(value: Optional[float], default: float) -> float:
    if value is None or value <= 0:
        return default
    return value


def load_config(
    server_url: Optional[str] = None,
    report_interval: Optional[float] = None,
    poll_interval: Optional[float] = None,
    log_level: Optional[str] = None,
) -> CLIConfig:
    """Overlay command-line options on the environment-backed settings."""
    settings = get_settings()
    url = (server_url or "").strip() or settings.server_url
    return CLIConfig(
        server_url=url.rstrip("/"),
        request_timeout=settings.request_timeout,
        model_urn=settings.model_urn,
        report_interval=_positive_or(report_interval, settings.report_interval),
        poll_interval=_positive_or(poll_interval, settings.poll_interval),
        log_level=(log_level or settings.log_level).upper(),
    )
