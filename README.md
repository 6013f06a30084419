# vektorcar

Control software for a small autonomous race car. A full LiDAR sweep of
distances goes in. A speed and a steering angle come out and go to the motor
board over a serial line.

## Install

```
pip install vektorcar
```

For the tests:

```
pip install "vektorcar[test]"
pytest
```

## Modules

### `vektorcar.control`: the driving law

- `decide(distances)` takes one sweep of distances in millimetres, with sample 0
  facing straight ahead, and returns a `Decision(speed, steering_angle, backward)`.
  It first calls `suppress_disparities` to widen obstacles where near and far
  readings meet. It then finds the farthest reading within a quarter of the sweep
  on each side and steers toward it. The speed comes from the largest reading
  within 1/36 of the sweep. If everything within 1/72 of the sweep is closer than
  500 mm, the car backs off at speed -1 with a fixed steering turn. An empty
  sweep raises `ValueError`.
- `clamp_speed(speed_mps)` converts m/s to km/h and limits the result to 0–28.
  `clamp_steering(angle_degrees)` limits an angle to ±16°.
- `Controller(scans, commands)` reads sweeps from the `scans` queue on a
  background thread and puts a `LawCommand` on the `commands` queue for each one.
  `FileController(scans, path)` appends each decision to a command file instead.
  Both have `process(scan)`, `start()` and `stop()`. A sweep can be a list of
  numbers or of objects that have a `distance` attribute.

### `vektorcar.commands`: commands and the command file

`LawCommand(speed, steering_angle)` holds a speed in km/h and a steering angle
in degrees. A command file has two lines, each a bracketed, comma-separated
list: speeds first, then steering angles. The module provides these functions:

- `read_commands(path)` pairs the two lists, up to the length of the shorter one.
- `clear_commands(path)` empties the file.
- `append_latest(path, speed, steering_angle)` appends one speed line and one
  angle line.
- `write_series(path, speeds, steering_angles)` overwrites the file with whole
  series.
- `parse_values(line)` and `format_values(values)` read and write a single list.

### `vektorcar.uart`: the serial link

- `encode_command(command)` produces three bytes: `speed*100/8 + 100`,
  `angle + 16` and a NUL. Each value is truncated and wrapped into one byte.
  `describe_command(command, message)` gives the log line printed for each
  command that is sent.
- `SerialLink(port, baudrate)` opens an 8N1 port with no flow control. The
  defaults are `/dev/ttyTHS1` at 115200 baud. Any URL that pyserial accepts
  works too, for example `loop://`. The methods are:
  - `send(message)` pads the message with zeros to a 20-byte frame.
  - `send_checked(message)` reports success as a boolean.
  - `read_message()` reads up to and including `#` and keeps at most 256 bytes.
  - `close()` closes the port.

  `SerialLink` works as a context manager. Failures raise `UartError`.
- `CommandSender(link, commands, period)` sends commands from a queue, at most
  one every `period` seconds (0.088 s by default). `FileCommandSender(link, path,
  period)` sends everything in a command file and then clears it.
  `send_pending()` does this once. `start()` and `stop()` run it on a background
  thread. Stopping either sender closes the link.
- `load_simulation(path)` reads a recorded run. `replay(link, path, period)`
  sends the run one command per period and returns how many commands it sent.

### `vektorcar.driver`: recording runs

`RecordingDriver(scans, period, clock)` runs `decide` on every sweep passed to
`step(scan)`. It records at most one sample per `period`, which is about 1/15 s
by default. Samples are truncated to whole km/h and whole degrees, and reversing
is recorded as -1. `run(path)` reads sweeps from the queue until `stop()` is
called, then writes both series to `path` with `write_series`.

### `vektorcar.timeserver`: daytime server

`serve(host, port, interval, max_connections)` answers each TCP client with the
current time in `ctime` form followed by CRLF. `format_daytime(timestamp)`
builds that line.

## Example

```python
from vektorcar.control import decide

scan = [3000.0] * 8192          # millimetres, one per LiDAR step
print(decide(scan))
```

## Commands

Replay a recorded run (default file `data.txt`) on the serial port:

```
vektorcar-replay [path] [--port /dev/ttyTHS1] [--baudrate 115200] [--period 0.088]
```

Start the daytime server (default `0.0.0.0:12000`):

```
vektorcar-timeserver [--host HOST] [--port 12000] [--interval 1.0] [--count N]
```

## What it does not do

The package does not talk to a LiDAR. The caller must supply sweeps, as lists
on a queue or passed directly to `decide`. There is also no top-level supervisor
that starts the scanner, controller and sender together or watches the sensor
connection. Wiring `Controller` and `CommandSender` (or `FileController` and
`FileCommandSender`) to a sweep source is left to the application.