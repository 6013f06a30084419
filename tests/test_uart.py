import queue
import time

import pytest

from vektorcar.commands import LawCommand, read_commands, write_series
from vektorcar.uart import (
    CommandSender,
    FileCommandSender,
    SerialLink,
    UartError,
    describe_command,
    encode_command,
    load_simulation,
    main,
    replay,
)


class FakeLink:
    def __init__(self):
        self.sent = []
        self.closed = False

    def send(self, message):
        self.sent.append(bytes(message))
        return len(message)

    def close(self):
        self.closed = True


def _wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


def test_encode_neutral_command():
    assert encode_command(LawCommand(0.0, 0.0)) == b"d\x10\x00"


@pytest.mark.parametrize(
    "speed, angle, expected",
    [
        (8.0, 4.0, bytes([200, 20, 0])),
        (-1.0, -16.0, bytes([87, 0, 0])),
        (1.0, 16.0, bytes([112, 32, 0])),
        (28.0, 0.0, bytes([194, 16, 0])),
    ],
)
def test_encode_values(speed, angle, expected):
    assert encode_command(LawCommand(speed, angle)) == expected


def test_describe_command():
    command = LawCommand(8.0, 4.0)
    text = describe_command(command, encode_command(command))
    assert text == "Sent  : 100 / \xc8, 4 / \x14"


def test_describe_command_negative_speed():
    command = LawCommand(-1.0, 0.0)
    text = describe_command(command, encode_command(command))
    assert text.startswith("Sent  : -12 / W, 0 / ")


def test_load_simulation(tmp_path):
    path = tmp_path / "data.txt"
    path.write_text("[8.000000, 2.500000]\n[4.000000, -3.000000]\n")
    throttle, direction = load_simulation(path)
    assert throttle == [8.0, 2.5]
    assert direction == [4.0, -3.0]
    first = encode_command(LawCommand(throttle[0], direction[0]))
    assert first == bytes([200, 20, 0])


def test_load_simulation_int_values(tmp_path):
    path = tmp_path / "data.txt"
    path.write_text("[0, 5, 12]\n[0, -2, 16]\n")
    assert load_simulation(path) == ([0.0, 5.0, 12.0], [0.0, -2.0, 16.0])


def test_serial_link_loopback_message():
    link = SerialLink("loop://", 115200)
    try:
        assert link.send(b"hi#") == 20
        assert link.read_message() == b"hi#"
    finally:
        link.close()


def test_serial_link_message_truncated_to_256():
    link = SerialLink("loop://", 115200)
    try:
        for _ in range(14):
            link.send(b"x" * 20)
        link.send(b"#")
        message = link.read_message()
        assert len(message) == 256
        assert set(message) == {ord("x")}
    finally:
        link.close()


def test_send_rejects_long_message():
    link = SerialLink("loop://", 115200)
    try:
        with pytest.raises(ValueError):
            link.send(b"y" * 21)
    finally:
        link.close()


def test_send_checked_reports_state():
    link = SerialLink("loop://", 115200)
    assert link.send_checked(b"ok") is True
    link.close()
    assert link.send_checked(b"ok") is False
    with pytest.raises(UartError):
        link.send(b"ok")


def test_open_missing_port_raises():
    with pytest.raises(UartError):
        SerialLink("/nonexistent/tty-device-for-tests", 115200)


def test_command_sender_sends_queued_commands():
    link = FakeLink()
    commands = queue.Queue()
    commands.put(LawCommand(0.0, 0.0))
    commands.put(LawCommand(8.0, 4.0))
    sender = CommandSender(link, commands, period=0.0)
    sender.start()
    try:
        assert _wait_for(lambda: len(link.sent) >= 2)
    finally:
        sender.stop()
    assert link.sent[:2] == [b"d\x10\x00", bytes([200, 20, 0])]
    assert link.closed is True


def test_file_sender_send_pending_clears_file(tmp_path):
    path = tmp_path / "lawCommands.txt"
    write_series(path, [0.0, 8.0], [0.0, 4.0, 1.0])
    link = FakeLink()
    sender = FileCommandSender(link, path, period=0.0)
    sent = sender.send_pending()
    assert sent == [LawCommand(0.0, 0.0), LawCommand(8.0, 4.0)]
    assert link.sent == [b"d\x10\x00", bytes([200, 20, 0])]
    assert path.read_text() == ""
    assert read_commands(path) == []


def test_file_sender_thread(tmp_path):
    path = tmp_path / "lawCommands.txt"
    write_series(path, [-1.0], [-16.0])
    link = FakeLink()
    sender = FileCommandSender(link, path, period=0.0)
    sender.start()
    try:
        assert _wait_for(lambda: len(link.sent) >= 1)
    finally:
        sender.stop()
    assert link.sent[0] == bytes([87, 0, 0])
    assert link.closed is True


def test_replay_sends_all_pairs(tmp_path, capsys):
    path = tmp_path / "data.txt"
    path.write_text("[0.000000, 8.000000, 1.000000]\n[0.000000, 4.000000]\n")
    link = FakeLink()
    assert replay(link, path, period=0.0) == 2
    assert link.sent == [b"d\x10\x00", bytes([200, 20, 0])]
    out = capsys.readouterr().out
    assert "size: 3, 2" in out


def test_main_over_loopback(tmp_path, capsys):
    path = tmp_path / "data.txt"
    path.write_text("[0.000000, 8.000000]\n[0.000000, 4.000000]\n")
    assert main([str(path), "--port", "loop://", "--period", "0"]) == 0
    out = capsys.readouterr().out
    assert "Simulation data loaded." in out
    assert "size: 2, 2" in out


def test_main_reports_bad_port(tmp_path):
    path = tmp_path / "data.txt"
    path.write_text("[0.0]\n[0.0]\n")
    assert main([str(path), "--port", "/nonexistent/tty-device-for-tests"]) == 1