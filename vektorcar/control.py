"""Reactive driving law computed from a full lidar sweep."""

from __future__ import annotations

import abc
import math
import queue
import threading
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, Union

from vektorcar.commands import LawCommand, append_latest

DISTANCE_DISPARITY = 1000
MAX_SPEED = 28.0
MAX_STEERING_ANGLE_DEGREES = 16.0
COEF_SPEED = 2500.0
DIST_LIMIT_BACKWARD = 500.0
BACKWARD_SPEED = -1.0
BACKWARD_ANGLE_POINT = 22.5

RESOLUTION_LIDAR = 8192


class _Source(Protocol):
    def get(self, block: bool = ..., timeout: float | None = ...) -> Any: ...


class _Sink(Protocol):
    def put(self, item: Any) -> None: ...


@dataclass(frozen=True)
class Decision:
    """Outcome of one control step: speed in km/h and steering in degrees."""

    speed: float
    steering_angle: float
    backward: bool


def clamp_speed(speed_mps: float) -> float:
    """Convert m/s to km/h and clamp it into ``[0, MAX_SPEED]``."""
    return min(max(speed_mps * 3.6, 0.0), MAX_SPEED)


def clamp_steering(angle_degrees: float) -> float:
    """Clamp a steering angle into the car's mechanical range."""
    return min(max(angle_degrees, -MAX_STEERING_ANGLE_DEGREES), MAX_STEERING_ANGLE_DEGREES)


def suppress_disparities(distances: Iterable[float], margin: int) -> list[float]:
    """Widen obstacles at depth jumps so the car keeps clear of their edges.

    At a near-to-far jump the near distance is spread forward over the next
    ``margin - 1`` samples and the sweep skips ahead; at a far-to-near jump
    the near distance is spread backward over the previous ``margin``
    samples. Indices wrap around the sweep.
    """
    data = list(distances)
    n = len(data)
    j = 0
    while j < n:
        following = data[(j + 1) % n]
        if data[j] < following - DISTANCE_DISPARITY:
            for offset in range(1, margin):
                data[(j + offset) % n] = data[j]
            j += margin % n
        elif data[j] > following + DISTANCE_DISPARITY:
            for offset in range(1, margin + 1):
                data[(j - offset) % n] = following
        j += 1
    return data


def decide(distances: Iterable[float]) -> Decision:
    """Compute speed and steering from one sweep of distances (mm).

    Sample 0 faces straight ahead; fields of view are fractions of the
    sweep length: a quarter for steering, 1/36 for speed, 1/72 for the
    wall check that triggers reversing.
    """
    raw = list(distances)
    n = len(raw)
    if n == 0:
        raise ValueError("a sweep needs at least one distance")
    vision_field = n // 4
    vision_field_speed = n // 36
    vision_field_backward = n // 72
    margin = n // 12

    data = suppress_disparities(raw, margin)

    distance_max = distance_max_speed = distance_max_backward = data[0]
    index_max = index_max_backward = 0
    for k, distance in enumerate(data):
        if k < vision_field or k > n - vision_field:
            if distance > distance_max:
                distance_max, index_max = distance, k
        if k < vision_field_speed or k > n - vision_field_speed:
            distance_max_speed = max(distance_max_speed, distance)
        if k < vision_field_backward or k > n - vision_field_backward:
            if distance > distance_max_backward:
                distance_max_backward, index_max_backward = distance, k

    angle_point = 0.0
    if distance_max_backward < DIST_LIMIT_BACKWARD:
        angle_point = (
            -BACKWARD_ANGLE_POINT
            if index_max_backward < vision_field_backward
            else BACKWARD_ANGLE_POINT
        )
        speed = BACKWARD_SPEED
        backward = True
    else:
        speed = clamp_speed(distance_max_speed / COEF_SPEED)
        backward = False
        if index_max < vision_field or index_max > n - vision_field:
            angle_point = float(index_max if index_max < vision_field else index_max - n)

    if angle_point:
        angle_degrees = math.copysign(360.0 / abs(n / angle_point), angle_point)
    else:
        angle_degrees = 0.0
    return Decision(speed, clamp_steering(angle_degrees), backward)


def _distances(scan: Iterable[Any]) -> list[float]:
    return [float(getattr(point, "distance", point)) for point in scan]


class _ScanWorker(abc.ABC):
    """Runs ``process`` on every sweep taken from a queue, in a thread."""

    _poll_interval = 0.05

    def __init__(self, scans: _Source) -> None:
        self.scans = scans
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @abc.abstractmethod
    def process(self, scan: Iterable[Any]) -> LawCommand:
        """Turn one sweep into a command."""

    def _start_thread(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def _stop_thread(self) -> None:
        if self._thread is None:
            return
        self._stop_event.set()
        self._thread.join()
        self._thread = None

    def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                scan = self.scans.get(timeout=self._poll_interval)
            except queue.Empty:
                continue
            if scan:
                self.process(scan)


class Controller(_ScanWorker):
    """Turns sweeps into commands pushed onto an output queue."""

    def __init__(self, scans: _Source, commands: _Sink) -> None:
        super().__init__(scans)
        self.commands = commands

    def process(self, scan: Iterable[Any]) -> LawCommand:
        """Decide on one sweep and emit the resulting command."""
        decision = decide(_distances(scan))
        command = LawCommand(decision.speed, decision.steering_angle)
        self.commands.put(command)
        return command

    def start(self) -> None:
        """Start processing sweeps in a background thread."""
        self._start_thread()

    def stop(self) -> None:
        """Ask the worker to finish and wait for it."""
        self._stop_thread()


class FileController(_ScanWorker):
    """Turns sweeps into commands appended to a command file."""

    def __init__(self, scans: _Source, path: Union[str, Path]) -> None:
        super().__init__(scans)
        self.path = Path(path)

    def process(self, scan: Iterable[Any]) -> LawCommand:
        """Decide on one sweep and append the command to the file."""
        decision = decide(_distances(scan))
        append_latest(self.path, decision.speed, decision.steering_angle)
        return LawCommand(decision.speed, decision.steering_angle)

    def start(self) -> None:
        """Open the command file and start processing sweeps in a thread."""
        if self.running:
            return
        # Fail early if the command file cannot be opened for appending.
        with open(self.path, "a", encoding="utf-8"):
            pass
        self._start_thread()

    def stop(self) -> None:
        """Ask the worker to finish and wait for it."""
        self._stop_thread()