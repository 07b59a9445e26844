"""Console programs that print what arrives on a serial port, optionally echoing it back."""

from __future__ import annotations

import argparse
import sys
import threading
import time
from typing import Optional, Sequence, TextIO

from serialterm.itimer import OneShotTimer
from serialterm.session import PortError, PortInfo, SerialSession, available_ports

GREETING = "itas109"
DEFAULT_ECHO_LIMIT = 7
DEFAULT_TIMEOUT_MS = 50


def _report(out: TextIO, data: bytes, count: int, encoding: str) -> None:
    text = data.decode(encoding, errors="replace")
    print(
        f"receive data : {text}, receive size : {len(data)}, receive count : {count}",
        file=out,
        flush=True,
    )


class EchoResponder:
    """Print each received chunk and send it back until ``limit`` chunks have been echoed."""

    def __init__(
        self, session: SerialSession, limit: int = DEFAULT_ECHO_LIMIT, out: Optional[TextIO] = None
    ) -> None:
        self.session = session
        self.limit = limit
        self.out = out if out is not None else sys.stdout
        self.count = 0
        self._lock = threading.Lock()

    def on_receive(self) -> None:
        """Read what is waiting, report it, and echo it or close the port."""
        data = self.session.read_all()
        if not data:
            return
        with self._lock:
            self.count += 1
            count = self.count
        _report(self.out, data, count, self.session.encoding)
        if count > self.limit:
            print(
                f"close serial port when receive count > {self.limit}", file=self.out, flush=True
            )
            self.session.close()
        else:
            self.session.send(data)


class TimeoutReceiver:
    """Print received data once the line has been quiet for ``timeout_ms`` milliseconds."""

    def __init__(
        self,
        session: SerialSession,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        out: Optional[TextIO] = None,
    ) -> None:
        self.session = session
        self.timeout_ms = timeout_ms
        self.out = out if out is not None else sys.stdout
        self.count = 0
        self.timer = OneShotTimer()

    def on_receive(self) -> None:
        """Restart the quiet-period countdown."""
        if self.timer.is_running:
            self.timer.stop()
        self.timer.start_once(self.timeout_ms, self._read)

    def _read(self) -> None:
        data = self.session.read_all()
        if data:
            self.count += 1
            _report(self.out, data, self.count, self.session.encoding)


def prompt_port_index(ports: Sequence[PortInfo], stdin: TextIO, stdout: TextIO) -> int:
    """Ask until a valid index into ``ports`` is entered; raise EOFError when input ends."""
    if not ports:
        raise ValueError("no ports to choose from")
    while True:
        print(f"Please input index of the port(0 - {len(ports) - 1} ) : ", file=stdout, flush=True)
        line = stdin.readline()
        if not line:
            raise EOFError("no port index given")
        try:
            index = int(line.strip())
        except ValueError:
            continue
        if 0 <= index < len(ports):
            return index


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="serialterm-echo",
        description="Open a serial port at 9600 8N1, send a greeting and print what comes back.",
    )
    parser.add_argument("--port", help="port to open instead of choosing from a list")
    parser.add_argument(
        "--timeout-ms",
        type=int,
        default=None,
        help="only print data after the line has been quiet this long, without echoing",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=DEFAULT_ECHO_LIMIT,
        help="close the port after echoing this many chunks",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the echo program; return the exit status."""
    args = _build_parser().parse_args(argv)

    if args.port:
        port_name = args.port
    else:
        ports = available_ports()
        print("availableFriendlyPorts : ")
        for i, info in enumerate(ports):
            print(f"{i} - {info.port_name} {info.description}")
        if not ports:
            print("No valid port")
            return 0
        print()
        try:
            index = prompt_port_index(ports, sys.stdin, sys.stdout)
        except EOFError:
            return 1
        port_name = ports[index].port_name

    print(f"select port name : {port_name}")
    session = SerialSession()
    try:
        session.open(port_name)
    except PortError:
        print(f"open {port_name} failed")
        return 1
    print(f"open {port_name} success")

    if args.timeout_ms is not None:
        receiver = TimeoutReceiver(session, args.timeout_ms)
    else:
        receiver = EchoResponder(session, args.limit)
    session.connect(receiver.on_receive)

    try:
        session.send(GREETING)
        while session.is_open:
            time.sleep(0.001)
    except KeyboardInterrupt:
        pass
    finally:
        session.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())