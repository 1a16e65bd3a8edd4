"""Cooperative stop signals for the agent loop."""

from __future__ import annotations

import logging
import sys
import threading
from typing import Optional, TextIO

logger = logging.getLogger(__name__)


class KeypressListener:
    """Sets :attr:`pressed` once a line is read from ``stream``.

    The reader runs on a daemon thread so a blocked read never delays
    process exit. End of input is not treated as a keypress.
    """

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream
        self.pressed = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._listen, name="keypress-listener", daemon=True
        )
        self._thread.start()

    def _listen(self) -> None:
        stream = self._stream if self._stream is not None else sys.stdin
        try:
            line = stream.readline()
        except (OSError, ValueError):
            logger.debug("Standard input unavailable; keypress exit disabled")
            return
        if line:
            self.pressed.set()


def wait_for_stop(
    stop: threading.Event,
    exiting: threading.Event,
    duration: float,
    step: float,
) -> bool:
    """Wait up to ``duration`` seconds in ``step`` increments.

    Returns True as soon as either event is observed at an increment boundary.
    """
    step = min(step, duration)
    ticks = max(1, round(duration / step))
    for _ in range(ticks):
        if exiting.is_set() or stop.wait(step) or exiting.is_set():
            return True
    return False
