"""Sensor sources polled by the agent."""

from __future__ import annotations

from typing import Protocol


class Sensor(Protocol):
    def read(self) -> float: ...


class SampleTemperatureSensor:
    """Stand-in temperature sensor: 25 on the first read, 26 on every read after."""

    def __init__(self, initial: float = 25, subsequent: float = 26) -> None:
        self.initial = initial
        self.subsequent = subsequent
        self._reads = 0

    def read(self) -> float:
        self._reads += 1
        return self.initial if self._reads == 1 else self.subsequent
