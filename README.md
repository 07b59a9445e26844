# serialterm

Small tools for talking to serial ports, built on pyserial.

## Install

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Commands

### serialterm-echo

```
serialterm-echo [--port PORT] [--timeout-ms MS] [--limit N]
```

Without `--port`, lists the serial ports it finds and asks for the index of
the one to use. It opens the port at 9600 baud, no parity, 8 data bits and
one stop bit, and writes `itas109`.

- By default every block of data received is printed as
  `receive data : ..., receive size : ..., receive count : ...` and written
  back. Once more than `--limit` blocks (default 7) have arrived, the port is
  closed and the program ends.
- With `--timeout-ms MS`, received data is printed only after the line has
  been quiet for `MS` milliseconds, and nothing is written back. The program
  then runs until interrupted with Ctrl-C.

The exit status is 1 when the port cannot be opened or no index is given
before input ends.

### serialterm-tui

```
serialterm-tui
```

A curses menu terminal (needs a platform where Python's `curses` module is
available). Use the arrow keys and Enter, or the capital letter of a menu
item, to choose:

- **Setting** – PortName lists the available ports and selects the first;
  BaudRate, Parity, DataBit and StopBit each step to the next value
  (defaults 9600, None, 8, 1); Exit quits.
- **OpenClose** – open or close the selected port.
- **Send** – send the fixed test string `itas109` to the open port.
- **Receive** – clear the body window.
- **Help** – show a one-line description of the program.

Received data appears in the body window prefixed with `[RX] - `.

## Library use

```python
from serialterm.session import SerialSession, Parity, DataBits, StopBits, available_ports

for info in available_ports():
    print(info.port_name, info.description)

session = SerialSession(receive_timeout_ms=50)
session.connect(lambda: print(session.read_all()))
session.open("/dev/ttyUSB0", 9600, Parity.NONE, DataBits.EIGHT, StopBits.ONE)
session.send("hello")
print(session.tx, session.rx)
session.close()
```

- `SerialSession.open` raises `PortError` when the port name is empty or the
  port cannot be opened; on POSIX systems ports are opened exclusively.
- `send` raises `PortError` when no port is open and returns the number of
  bytes written; `read_all` returns every waiting byte. Both update the
  `tx` and `rx` counters, which `clear_counters` resets.
- Callbacks added with `connect` run on a background thread when new data
  arrives; `disconnect_all` removes them. With a non-zero
  `receive_timeout_ms` (0 to 999999) the callbacks run only once the line
  has been quiet that long; the delay is handled by
  `serialterm.itimer.OneShotTimer`.
- `SerialSession` and `OneShotTimer` are context managers that close or stop
  on exit.
- `SerialSession(port_factory=...)` accepts a callable that takes the port
  name, baud rate, `Parity`, `DataBits` and `StopBits` and returns a
  pyserial-like object, which is handy for testing.

`serialterm.tui` holds the menu machinery on its own (`Tui`, `MenuItem`,
`LineEditor` and the helpers `pad_str`, `pre_pad`, `hotkey` and `menu_dim`),
and `serialterm.echo` holds `EchoResponder`, `TimeoutReceiver` and
`prompt_port_index`.

## What it does not do

- The menu terminal cannot send typed text; Send always writes the fixed
  test string. `LineEditor` handles the editing of a single-line field but
  is not wired into a menu.
- There is no hex view, logging to file or flow-control setting.
- There is no graphical window; the two commands above are the only front
  ends.