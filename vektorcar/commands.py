"""Steering commands and the plain-text file that carries them between stages.

The file holds two lines, each a bracketed, comma-separated list: the first
with speeds in km/h, the second with steering angles in degrees.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Union

PathLike = Union[str, Path]


@dataclass(frozen=True)
class LawCommand:
    """A speed (km/h) and steering angle (degrees) to apply together."""

    speed: float
    steering_angle: float


def _format_number(value: float) -> str:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return f"{float(value):f}"


def format_values(values: Iterable[float]) -> str:
    """Render numbers as ``[a, b, c]``; floats get six decimals, ints none."""
    return "[" + ", ".join(_format_number(v) for v in values) + "]"


def parse_values(line: str) -> list[float]:
    """Parse a bracketed list such as ``[1.0, 2.5]`` into floats.

    The first and last characters are taken to be the brackets. An empty
    line or an empty element raises ValueError; a trailing comma is ignored.
    """
    if not line:
        raise ValueError("cannot parse values from an empty line")
    inner = line[1:-1]
    if not inner:
        return []
    pieces = inner.split(",")
    if pieces[-1] == "":
        pieces.pop()
    try:
        return [float(piece) for piece in pieces]
    except ValueError as exc:
        raise ValueError(f"malformed value list: {line!r}") from exc


def read_commands(path: PathLike) -> list[LawCommand]:
    """Read the speed and angle lines of a command file and pair them up.

    Pairs are formed up to the shorter of the two lists. A file with fewer
    than two non-empty lines yields no commands.
    """
    with open(path, encoding="utf-8") as handle:
        speed_line = handle.readline().rstrip("\r\n")
        angle_line = handle.readline().rstrip("\r\n")
    if not speed_line or not angle_line:
        return []
    speeds = parse_values(speed_line)
    angles = parse_values(angle_line)
    return [LawCommand(s, a) for s, a in zip(speeds, angles)]


def clear_commands(path: PathLike) -> None:
    """Truncate the command file, creating it if needed."""
    with open(path, "w", encoding="utf-8"):
        pass


def append_latest(path: PathLike, speed: float, steering_angle: float) -> None:
    """Append one speed line and one angle line to the command file."""
    with open(path, "a", encoding="utf-8") as handle:
        handle.write(format_values([speed]) + "\n")
        handle.write(format_values([steering_angle]) + "\n")


def write_series(
    path: PathLike,
    speeds: Iterable[float],
    steering_angles: Iterable[float],
) -> None:
    """Overwrite the command file with whole speed and angle series."""
    with open(path, "w", encoding="utf-8") as handle:
        handle.write(format_values(speeds) + "\n")
        handle.write(format_values(steering_angles) + "\n")