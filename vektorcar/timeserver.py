"""Minimal TCP daytime server: each client gets the current time and a CRLF."""

from __future__ import annotations

import argparse
import socket
import time

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 12000
DEFAULT_INTERVAL = 1.0
BACKLOG = 10


def format_daytime(timestamp: float | None = None) -> str:
    """Render a timestamp in ``ctime`` form, cut to 24 characters, plus CRLF."""
    if timestamp is None:
        timestamp = time.time()
    return time.ctime(timestamp)[:24] + "\r\n"


def serve(
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    interval: float = DEFAULT_INTERVAL,
    max_connections: int | None = None,
) -> int:
    """Answer connections with the current time; return how many were served.

    Serves forever unless ``max_connections`` is given. After each client
    the server pauses for ``interval`` seconds.
    """
    served = 0
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as listener:
        listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        listener.bind((host, port))
        listener.listen(BACKLOG)
        while max_connections is None or served < max_connections:
            connection, _ = listener.accept()
            with connection:
                print("Accepted a connection.", flush=True)
                payload = format_daytime()
                print(f"Wrote {payload} to client.", flush=True)
                connection.sendall(payload.encode("ascii"))
            served += 1
            if max_connections is not None and served >= max_connections:
                break
            time.sleep(interval)
    return served


def main(argv: list[str] | None = None) -> int:
    """Command-line entry point."""
    parser = argparse.ArgumentParser(description="Serve the current time over TCP.")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--interval", type=float, default=DEFAULT_INTERVAL)
    parser.add_argument("--count", type=int, default=None, help="stop after this many clients")
    args = parser.parse_args(argv)
    try:
        serve(args.host, args.port, args.interval, args.count)
    except KeyboardInterrupt:
        pass
    return 0