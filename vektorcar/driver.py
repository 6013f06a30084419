"""Driver loop that records throttled speed and steering samples.

Every sweep is run through the driving law. At most one sample per
``period`` is kept, truncated to whole km/h and whole degrees. When the
loop ends, both series are written to a command file.
"""

from __future__ import annotations

import queue
import threading
import time
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any, Protocol, Union

from vektorcar.commands import write_series
from vektorcar.control import Decision, decide

DEFAULT_PERIOD = int(1000.0 / 15.0) / 1000.0
BACKWARD_RECORD = -1


class _Source(Protocol):
    def get(self, block: bool = ..., timeout: float | None = ...) -> Any: ...


def _distances(scan: Iterable[Any]) -> list[float]:
    return [float(getattr(point, "distance", point)) for point in scan]


class RecordingDriver:
    """Drives from lidar sweeps and records one sample per period."""

    _poll_interval = 0.05

    def __init__(
        self,
        scans: _Source,
        period: float = DEFAULT_PERIOD,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.scans = scans
        self.period = period
        self.clock = clock
        self.speeds: list[int] = [0]
        self.steering_angles: list[int] = [0]
        self._tick = clock()
        self._stop_event = threading.Event()

    def _due(self) -> bool:
        now = self.clock()
        if now - self._tick >= self.period:
            self._tick = now
            return True
        return False

    def step(self, scan: Iterable[Any]) -> Decision:
        """Decide on one sweep; record the result if a period has elapsed."""
        due = self._due()
        decision = decide(_distances(scan))
        if due:
            if decision.backward:
                self.speeds.append(BACKWARD_RECORD)
            else:
                self.speeds.append(int(decision.speed))
            self.steering_angles.append(int(decision.steering_angle))
        return decision

    def run(self, path: Union[str, Path]) -> None:
        """Process sweeps until stopped, then write the recorded series."""
        while not self._stop_event.is_set():
            try:
                scan = self.scans.get(timeout=self._poll_interval)
            except queue.Empty:
                continue
            if scan:
                self.step(scan)
        write_series(path, self.speeds, self.steering_angles)

    def stop(self) -> None:
        """Ask a running loop to finish."""
        self._stop_event.set()