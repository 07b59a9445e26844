import threading
import time
from types import SimpleNamespace
from unittest import mock

import pytest
import serial

from serialterm.session import (
    BAUD_RATES,
    DataBits,
    Parity,
    PortError,
    PortInfo,
    SerialSession,
    StopBits,
    available_ports,
)


class FakePort:
    def __init__(self, bus, name, settings):
        self.bus = bus
        self.name = name
        self.settings = settings
        self._lock = threading.Lock()
        self._incoming = bytearray()
        self.written = bytearray()
        self.closed = False

    @property
    def in_waiting(self):
        with self._lock:
            return len(self._incoming)

    def read(self, size):
        with self._lock:
            data = bytes(self._incoming[:size])
            del self._incoming[:size]
            return data

    def write(self, data):
        self.written.extend(data)
        return len(data)

    def close(self):
        self.closed = True
        self.bus.in_use.discard(self.name)

    def feed(self, data):
        with self._lock:
            self._incoming.extend(data)


class FakeBus:
    def __init__(self, names):
        self.names = list(names)
        self.in_use = set()
        self.opened = []

    def __call__(self, port_name, baudrate, parity, data_bits, stop_bits):
        if port_name not in self.names or port_name in self.in_use:
            raise OSError(16, "Device or resource busy")
        self.in_use.add(port_name)
        port = FakePort(
            self,
            port_name,
            {"baudrate": baudrate, "parity": parity, "data_bits": data_bits, "stop_bits": stop_bits},
        )
        self.opened.append(port)
        return port


@pytest.fixture
def bus():
    return FakeBus(["COM1", "COM2"])


@pytest.fixture
def sessions(bus):
    made = []

    def make(receive_timeout_ms=0):
        session = SerialSession(receive_timeout_ms, bus)
        made.append(session)
        return session

    yield make
    for session in made:
        session.close()


def _wait_until(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


# Cases carried over from the source's own tests.

def test_every_port_opens_when_idle(bus, sessions):
    session = sessions()
    for name in bus.names:
        session.open(name)
        assert session.is_open
        session.close()
    assert bus.in_use == set()


def test_open_unused_port(sessions):
    session = sessions()
    session.open("COM1")
    assert session.is_open


def test_open_port_in_use_fails(sessions):
    first, second = sessions(), sessions()
    first.open("COM1")
    assert first.is_open
    with pytest.raises(PortError):
        second.open("COM1")


def test_open_two_ports_at_once(sessions):
    first, second = sessions(), sessions()
    first.open("COM1")
    second.open("COM2")
    assert first.is_open and second.is_open


def test_is_open_matches_successful_open(sessions):
    session = sessions()
    session.open("COM1")
    assert session.is_open is True


def test_is_open_matches_failed_open(sessions):
    holder, session = sessions(), sessions()
    holder.open("COM1")
    with pytest.raises(PortError):
        session.open("COM1")
    assert session.is_open is False


def test_open_then_close(sessions):
    session = sessions()
    session.open("COM1")
    assert session.is_open
    session.close()
    assert not session.is_open


def test_open_close_twice(sessions):
    session = sessions()
    for _ in range(2):
        session.open("COM1")
        assert session.is_open
        session.close()
        assert not session.is_open


def test_switch_port_between_opens(bus, sessions):
    session = sessions()
    session.open("COM1")
    assert session.is_open
    session.close()
    assert not session.is_open
    session.open("COM2")
    assert session.is_open
    assert bus.opened[-1].name == "COM2"
    session.close()
    assert not session.is_open


def test_switch_baudrate_between_opens(bus, sessions):
    session = sessions()
    session.open("COM1", 9600)
    assert bus.opened[-1].settings["baudrate"] == 9600
    session.close()
    assert not session.is_open
    session.open("COM1", 115200)
    assert session.is_open
    assert bus.opened[-1].settings["baudrate"] == 115200
    session.close()
    assert not session.is_open


# Further behaviour.

def test_open_without_port_name_raises(sessions):
    with pytest.raises(PortError):
        sessions().open("")


def test_open_unknown_port_raises(sessions):
    with pytest.raises(PortError):
        sessions().open("COM9")


def test_open_defaults(bus, sessions):
    session = sessions()
    session.open("COM1")
    assert session.is_open is True
    assert session.parity is Parity.NONE
    assert bus.opened[-1].settings == {
        "baudrate": 9600,
        "parity": Parity.NONE,
        "data_bits": DataBits.EIGHT,
        "stop_bits": StopBits.ONE,
    }


def test_open_accepts_indices(bus, sessions):
    session = sessions()
    session.open("COM1", 4800, 2, 7, 1)
    settings = bus.opened[-1].settings
    assert settings["parity"] is Parity.EVEN
    assert settings["data_bits"] is DataBits.SEVEN
    assert settings["stop_bits"] is StopBits.ONE_AND_HALF
    assert session.parity is Parity.EVEN


def test_reopen_closes_previous_port(bus, sessions):
    session = sessions()
    session.open("COM1")
    session.open("COM2")
    assert session.is_open is True
    assert bus.opened[0].closed
    assert bus.in_use == {"COM2"}


def test_labels_match_dialog_choices():
    assert [Parity(i).label for i in range(5)] == ["None", "Odd", "Even", "Mark", "Space"]
    assert [DataBits(n).label for n in (5, 6, 7, 8)] == ["5", "6", "7", "8"]
    assert [StopBits(i).label for i in range(3)] == ["1", "1.5", "2"]


def test_pyserial_codes():
    assert Parity(2).pyserial == serial.PARITY_EVEN
    assert StopBits(1).pyserial == serial.STOPBITS_ONE_POINT_FIVE


def test_baud_rate_choices_include_default(bus, sessions):
    session = sessions()
    session.open("COM1")
    assert session.is_open is True
    assert bus.opened[-1].settings["baudrate"] in BAUD_RATES
    assert BAUD_RATES == tuple(sorted(BAUD_RATES))


def test_send_counts_bytes(bus, sessions):
    session = sessions()
    session.open("COM1")
    assert session.send("itas109") == 7
    assert session.tx == 7
    assert bytes(bus.opened[-1].written) == b"itas109"


def test_send_non_ascii_counts_encoded_bytes(bus, sessions):
    session = sessions()
    session.open("COM1")
    text = "串口"
    sent = session.send(text)
    assert sent == len(text.encode("utf-8"))
    assert bytes(bus.opened[-1].written).decode("utf-8") == text


def test_send_when_closed_raises(sessions):
    with pytest.raises(PortError):
        sessions().send("itas109")


def test_clear_counters(bus, sessions):
    session = sessions()
    session.open("COM1")
    session.send("abc")
    bus.opened[-1].feed(b"xy")
    session.read_all()
    session.clear_counters()
    assert (session.rx, session.tx) == (0, 0)


def test_read_all_when_closed_is_empty(sessions):
    assert sessions().read_all() == b""


def test_callback_reads_incoming_data(bus, sessions):
    session = sessions()
    received = []
    got = threading.Event()

    def on_ready():
        received.append(session.read_all())
        got.set()

    session.connect(on_ready)
    session.open("COM1")
    bus.opened[-1].feed(b"hello")
    assert got.wait(2.0)
    assert b"".join(received) == b"hello"
    assert session.rx == 5


def test_receive_timeout_groups_burst(bus, sessions):
    session = sessions(receive_timeout_ms=100)
    received = []
    session.connect(lambda: received.append(session.read_all()))
    session.open("COM1")
    port = bus.opened[-1]
    port.feed(b"abc")
    port.feed(b"def")
    assert _wait_until(lambda: received)
    time.sleep(0.2)
    assert received == [b"abcdef"]


def test_disconnect_all_stops_notifications(bus, sessions):
    session = sessions()
    calls = []
    session.connect(lambda: calls.append(1))
    session.disconnect_all()
    session.open("COM1")
    bus.opened[-1].feed(b"data")
    time.sleep(0.1)
    assert calls == []
    assert session.read_all() == b"data"


def test_close_from_callback(bus, sessions):
    session = sessions()
    session.connect(session.close)
    session.open("COM1")
    bus.opened[-1].feed(b"x")
    _wait_until(lambda: not session.is_open)
    assert session.is_open is False
    assert bus.opened[-1].closed


def test_context_manager_closes(bus):
    with SerialSession(0, bus) as session:
        session.open("COM1")
    assert bus.opened[-1].closed
    assert not session.is_open


@pytest.mark.parametrize("timeout", [-1, 1000000])
def test_invalid_receive_timeout(timeout):
    with pytest.raises(ValueError):
        SerialSession(timeout)


def test_available_ports_sorted():
    found = [
        SimpleNamespace(device="COM3", description="USB Serial", hwid="USB VID:PID=0000:0000"),
        SimpleNamespace(device="COM1", description="Communications Port", hwid="ACPI"),
    ]
    with mock.patch("serial.tools.list_ports.comports", return_value=found):
        ports = available_ports()
    assert ports == [
        PortInfo("COM1", "Communications Port", "ACPI"),
        PortInfo("COM3", "USB Serial", "USB VID:PID=0000:0000"),
    ]


def test_available_ports_empty():
    with mock.patch("serial.tools.list_ports.comports", return_value=[]):
        assert available_ports() == []