"""Domain models shared by the agent and the device client."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass(frozen=True, slots=True)
class Credentials:
    """Endpoint identifier and secret supplied at process start."""

    endpoint_id: str
    secret: str = field(repr=False)


@dataclass(slots=True)
class SensorReading:
    """The latest value published for a single device attribute."""

    attribute: str
    value: float
    recorded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
