"""Serial port session: opening, counted sends and read-ready notifications."""

from __future__ import annotations

import enum
import os
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

import serial
from serial.tools import list_ports

from serialterm.itimer import OneShotTimer

BAUD_RATES = (300, 600, 1200, 2400, 4800, 9600, 14400, 19200, 38400, 56000, 57600, 115200)
DEFAULT_BAUD_RATE = 9600
MAX_RECEIVE_TIMEOUT_MS = 999999


class PortError(Exception):
    """A serial port could not be opened or used."""


class Parity(enum.IntEnum):
    NONE = 0
    ODD = 1
    EVEN = 2
    MARK = 3
    SPACE = 4

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @property
    def pyserial(self) -> str:
        return _PARITY_CODES[self]


class DataBits(enum.IntEnum):
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8

    @property
    def label(self) -> str:
        return str(int(self))


class StopBits(enum.IntEnum):
    ONE = 0
    ONE_AND_HALF = 1
    TWO = 2

    @property
    def label(self) -> str:
        return _STOP_LABELS[self]

    @property
    def pyserial(self) -> float:
        return _STOP_CODES[self]


_PARITY_CODES = {
    Parity.NONE: serial.PARITY_NONE,
    Parity.ODD: serial.PARITY_ODD,
    Parity.EVEN: serial.PARITY_EVEN,
    Parity.MARK: serial.PARITY_MARK,
    Parity.SPACE: serial.PARITY_SPACE,
}
_STOP_LABELS = {StopBits.ONE: "1", StopBits.ONE_AND_HALF: "1.5", StopBits.TWO: "2"}
_STOP_CODES = {
    StopBits.ONE: serial.STOPBITS_ONE,
    StopBits.ONE_AND_HALF: serial.STOPBITS_ONE_POINT_FIVE,
    StopBits.TWO: serial.STOPBITS_TWO,
}


@dataclass(frozen=True)
class PortInfo:
    """A serial port present on this machine."""

    port_name: str
    description: str = ""
    hardware_id: str = ""


def available_ports() -> list[PortInfo]:
    """Serial ports present on this machine, sorted by name."""
    return sorted(
        (PortInfo(p.device, p.description or "", p.hwid or "") for p in list_ports.comports()),
        key=lambda info: info.port_name,
    )


PortFactory = Callable[[str, int, Parity, DataBits, StopBits], Any]


def _open_pyserial(
    port_name: str, baudrate: int, parity: Parity, data_bits: DataBits, stop_bits: StopBits
) -> serial.Serial:
    options = {"exclusive": True} if os.name == "posix" else {}
    return serial.Serial(
        port=port_name,
        baudrate=baudrate,
        parity=parity.pyserial,
        bytesize=int(data_bits),
        stopbits=stop_bits.pyserial,
        timeout=0,
        **options,
    )


class SerialSession:
    """An open-able serial port with byte counters and read-ready callbacks.

    Callbacks registered with ``connect`` take no arguments and are called when
    new data arrives; they fetch it with ``read_all``. A non-zero
    ``receive_timeout_ms`` delays the notification until the line has been
    quiet for that long, so bursts arrive as one.
    """

    encoding = "utf-8"
    poll_interval = 0.005

    def __init__(
        self, receive_timeout_ms: int = 0, port_factory: Optional[PortFactory] = None
    ) -> None:
        if not 0 <= receive_timeout_ms <= MAX_RECEIVE_TIMEOUT_MS:
            raise ValueError(
                f"receive timeout must be between 0 and {MAX_RECEIVE_TIMEOUT_MS} ms"
            )
        self.receive_timeout_ms = receive_timeout_ms
        self._factory: PortFactory = port_factory or _open_pyserial
        self._port: Any = None
        self._io_lock = threading.RLock()
        self._callbacks: list[Callable[[], None]] = []
        self._callbacks_lock = threading.Lock()
        self._timer = OneShotTimer()
        self._stop_reader = threading.Event()
        self.port_name = ""
        self.baudrate = DEFAULT_BAUD_RATE
        self.parity = Parity.NONE
        self.data_bits = DataBits.EIGHT
        self.stop_bits = StopBits.ONE
        self.rx = 0
        self.tx = 0

    @property
    def is_open(self) -> bool:
        with self._io_lock:
            return self._port is not None

    def open(
        self,
        port_name: str,
        baudrate: int = DEFAULT_BAUD_RATE,
        parity: Union[Parity, int] = Parity.NONE,
        data_bits: Union[DataBits, int] = DataBits.EIGHT,
        stop_bits: Union[StopBits, int] = StopBits.ONE,
    ) -> None:
        """Open ``port_name`` with the given line settings, closing any open port first."""
        if not port_name:
            raise PortError("no serial port found")
        self.close()
        self.port_name = port_name
        self.baudrate = int(baudrate)
        self.parity = Parity(parity)
        self.data_bits = DataBits(data_bits)
        self.stop_bits = StopBits(stop_bits)
        try:
            port = self._factory(
                self.port_name, self.baudrate, self.parity, self.data_bits, self.stop_bits
            )
        except (OSError, ValueError) as exc:
            raise PortError(f"cannot open {port_name}: port is in use or unavailable") from exc

        stop = threading.Event()
        with self._io_lock:
            self._port = port
            self._stop_reader = stop
        threading.Thread(
            target=self._watch, args=(port, stop), name=f"reader-{port_name}", daemon=True
        ).start()

    def close(self) -> None:
        """Close the port if it is open."""
        self._timer.stop()
        with self._io_lock:
            self._stop_reader.set()
            port, self._port = self._port, None
            if port is not None:
                port.close()

    def send(self, text: Union[str, bytes]) -> int:
        """Write ``text`` to the port and return the number of bytes sent."""
        data = text.encode(self.encoding) if isinstance(text, str) else bytes(text)
        with self._io_lock:
            if self._port is None:
                raise PortError("please open the serial port first")
            written = self._port.write(data)
            count = len(data) if written is None else written
            self.tx += count
        return count

    def read_all(self) -> bytes:
        """Read every byte waiting on the port; empty when the port is closed."""
        with self._io_lock:
            if self._port is None:
                return b""
            waiting = self._port.in_waiting
            data = bytes(self._port.read(waiting)) if waiting else b""
            self.rx += len(data)
        return data

    def clear_counters(self) -> None:
        """Reset the received and sent byte counters."""
        with self._io_lock:
            self.rx = 0
            self.tx = 0

    def connect(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Call ``callback`` whenever new data is ready to read."""
        with self._callbacks_lock:
            self._callbacks.append(callback)
        return callback

    def disconnect_all(self) -> None:
        """Remove every read-ready callback."""
        with self._callbacks_lock:
            self._callbacks.clear()

    def _watch(self, port: Any, stop: threading.Event) -> None:
        seen = 0
        while not stop.wait(self.poll_interval):
            try:
                with self._io_lock:
                    if self._port is not port:
                        return
                    waiting = port.in_waiting
            except (OSError, ValueError):
                return
            if waiting > seen:
                self._data_ready()
            seen = waiting

    def _data_ready(self) -> None:
        if self.receive_timeout_ms:
            self._timer.stop()
            self._timer.start_once(self.receive_timeout_ms, self._notify)
        else:
            self._notify()

    def _notify(self) -> None:
        with self._callbacks_lock:
            callbacks = list(self._callbacks)
        for callback in callbacks:
            callback()

    def __enter__(self) -> "SerialSession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()