"""Serial link to the motor board and the senders that feed it commands.

A command travels as a fixed 20-byte frame whose first two bytes encode
speed and steering; the remaining bytes are zero.
"""

from __future__ import annotations

import abc
import argparse
import queue
import sys
import threading
import time
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Protocol, Union

import serial

from vektorcar.commands import LawCommand, clear_commands, parse_values, read_commands

DEFAULT_PORT = "/dev/ttyTHS1"
DEFAULT_BAUDRATE = 115200
DEFAULT_PERIOD = 0.088
FRAME_LENGTH = 20
MAX_MESSAGE_LENGTH = 256
TERMINATOR = b"#"

PathLike = Union[str, Path]


class UartError(OSError):
    """Raised when the serial port cannot be opened, written or read."""


class _Link(Protocol):
    def send(self, message: bytes) -> int: ...

    def close(self) -> None: ...


class _Source(Protocol):
    def get(self, block: bool = ..., timeout: float | None = ...) -> Any: ...


def _to_signed_byte(value: int) -> int:
    return (value + 128) % 256 - 128


def encode_command(command: LawCommand) -> bytes:
    """Encode a command as ``speed*100/8 + 100``, ``angle + 16`` and a NUL.

    Each value is truncated toward zero and wrapped into one byte.
    """
    speed_code = int(command.speed * 100 / 8 + 100) & 0xFF
    angle_code = int(command.steering_angle + 16) & 0xFF
    return bytes([speed_code, angle_code, 0])


def describe_command(command: LawCommand, message: bytes) -> str:
    """Human-readable line describing a command and the bytes sent for it."""
    speed_code = _to_signed_byte(int(command.speed * 100 / 8))
    return (
        f"Sent  : {speed_code} / {chr(message[0])}, "
        f"{command.steering_angle:g} / {chr(message[1])}"
    )


def load_simulation(path: PathLike) -> tuple[list[float], list[float]]:
    """Read a recorded run: a throttle list line, then a direction list line."""
    with open(path, encoding="utf-8") as handle:
        throttle_line = handle.readline().rstrip("\r\n")
        direction_line = handle.readline().rstrip("\r\n")
    throttle = parse_values(throttle_line) if throttle_line else []
    direction = parse_values(direction_line) if direction_line else []
    return throttle, direction


class SerialLink:
    """An 8N1 serial port without flow control, in raw blocking mode."""

    def __init__(self, port: str = DEFAULT_PORT, baudrate: int = DEFAULT_BAUDRATE) -> None:
        self.port = port
        self.baudrate = baudrate
        try:
            self._serial = serial.serial_for_url(
                port,
                baudrate=baudrate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                xonxoff=False,
                rtscts=False,
                timeout=None,
            )
            self._serial.reset_input_buffer()
            self._serial.reset_output_buffer()
        except (serial.SerialException, OSError, ValueError) as exc:
            raise UartError(f"unable to open UART {port!r}: {exc}") from exc

    def __enter__(self) -> SerialLink:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return bool(self._serial.is_open)

    def send(self, message: bytes) -> int:
        """Write ``message`` padded with zeros to one frame; return bytes written."""
        data = bytes(message)
        if len(data) > FRAME_LENGTH:
            raise ValueError(f"message longer than {FRAME_LENGTH} bytes")
        frame = data.ljust(FRAME_LENGTH, b"\x00")
        try:
            written = self._serial.write(frame)
        except (serial.SerialException, OSError) as exc:
            raise UartError(f"UART TX error: {exc}") from exc
        return FRAME_LENGTH if written is None else written

    def send_checked(self, message: bytes) -> bool:
        """Send a frame and report whether it went out."""
        try:
            self.send(message)
        except UartError:
            return False
        time.sleep(0.001)
        return True

    def read_message(self) -> bytes:
        """Read bytes up to and including ``#``; keep at most 256 of them."""
        received = bytearray()
        while True:
            try:
                byte = self._serial.read(1)
            except (serial.SerialException, OSError) as exc:
                raise UartError(f"UART RX error: {exc}") from exc
            if not byte:
                raise UartError("no data received from UART")
            if len(received) < MAX_MESSAGE_LENGTH:
                received += byte
            if byte == TERMINATOR:
                return bytes(received)

    def close(self) -> None:
        """Close the port; closing twice is harmless."""
        self._serial.close()


def _transmit(link: _Link, command: LawCommand) -> bytes:
    message = encode_command(command)
    link.send(message)
    print(describe_command(command, message), flush=True)
    return message


class _PeriodicSender(abc.ABC):
    """Background thread that sends at most once per ``period`` seconds."""

    _idle_wait = 0.01

    def __init__(self, link: _Link, period: float) -> None:
        self.link = link
        self.period = period
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @abc.abstractmethod
    def _send_due(self) -> bool:
        """Send what is due; report whether anything went out."""

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
        self.link.close()

    def _run(self) -> None:
        next_send = time.monotonic() + self.period
        while not self._stop_event.is_set():
            now = time.monotonic()
            if now < next_send:
                self._stop_event.wait(min(self._idle_wait, next_send - now))
                continue
            if self._send_due():
                next_send = now + self.period
            else:
                self._stop_event.wait(self._idle_wait)


class CommandSender(_PeriodicSender):
    """Sends commands taken from a queue, one per period."""

    _poll_interval = 0.05

    def __init__(self, link: _Link, commands: _Source, period: float = DEFAULT_PERIOD) -> None:
        super().__init__(link, period)
        self.commands = commands

    def _send_due(self) -> bool:
        try:
            command = self.commands.get(timeout=self._poll_interval)
        except queue.Empty:
            return False
        _transmit(self.link, command)
        return True

    def start(self) -> None:
        """Start sending in a background thread."""
        self._start_thread()

    def stop(self) -> None:
        """Stop the sending thread and close the link."""
        self._stop_thread()


class FileCommandSender(_PeriodicSender):
    """Sends the commands found in a command file, then empties the file."""

    def __init__(self, link: _Link, path: PathLike, period: float = DEFAULT_PERIOD) -> None:
        super().__init__(link, period)
        self.path = Path(path)

    def send_pending(self) -> list[LawCommand]:
        """Send every command in the file, clear it and return what was sent."""
        commands = read_commands(self.path)
        for command in commands:
            _transmit(self.link, command)
        clear_commands(self.path)
        return commands

    def _send_due(self) -> bool:
        try:
            return bool(self.send_pending())
        except FileNotFoundError:
            return False

    def start(self) -> None:
        """Start sending in a background thread."""
        self._start_thread()

    def stop(self) -> None:
        """Stop the sending thread and close the link."""
        self._stop_thread()


def _pairs(throttle: Iterable[float], direction: Iterable[float]) -> list[LawCommand]:
    return [LawCommand(speed, angle) for speed, angle in zip(throttle, direction)]


def replay(link: _Link, path: PathLike, period: float = DEFAULT_PERIOD) -> int:
    """Send a recorded run, one command per period; return how many were sent."""
    throttle, direction = load_simulation(path)
    print("Simulation data loaded.", flush=True)
    print(f"size: {len(throttle)}, {len(direction)}", flush=True)
    sent = 0
    for command in _pairs(throttle, direction):
        time.sleep(period)
        _transmit(link, command)
        sent += 1
    return sent


def main(argv: list[str] | None = None) -> int:
    """Replay a recorded run over the serial port."""
    parser = argparse.ArgumentParser(description="Replay recorded commands over UART.")
    parser.add_argument("path", nargs="?", default="data.txt")
    parser.add_argument("--port", default=DEFAULT_PORT)
    parser.add_argument("--baudrate", type=int, default=DEFAULT_BAUDRATE)
    parser.add_argument("--period", type=float, default=DEFAULT_PERIOD)
    args = parser.parse_args(argv)
    try:
        with SerialLink(args.port, args.baudrate) as link:
            replay(link, args.path, args.period)
    except UartError as exc:
        print(exc, file=sys.stderr)
        return 1
    return 0