"""Menu-driven serial terminal built on the text user interface."""

from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence, TypeVar

from serialterm.session import (
    BAUD_RATES,
    DEFAULT_BAUD_RATE,
    DataBits,
    Parity,
    PortError,
    PortInfo,
    SerialSession,
    StopBits,
    available_ports,
)
from serialterm.tui import MenuItem, Tui

TITLE = "Serial Port Tui Demo"
ABOUT = "serialterm - serial port terminal"
GREETING = "itas109"

_T = TypeVar("_T")


def _next(options: Sequence[_T], current: _T) -> _T:
    try:
        return options[(list(options).index(current) + 1) % len(options)]
    except ValueError:
        return options[0]


class TuiApp:
    """Actions behind the terminal's menus."""

    def __init__(self, tui: Optional[Tui] = None, session: Optional[SerialSession] = None) -> None:
        self.tui = tui if tui is not None else Tui()
        self.session = session if session is not None else SerialSession()
        self.port_name = ""
        self.ports: list[PortInfo] = []
        self.baudrate = DEFAULT_BAUD_RATE
        self.parity = Parity.NONE
        self.data_bits = DataBits.EIGHT
        self.stop_bits = StopBits.ONE

    # ----- settings --------------------------------------------------------

    def set_port_name(self) -> None:
        """List the available ports and select the first one."""
        self.ports = available_ports()
        self.tui.body_msg("availableFriendlyPorts : \n")
        for i, info in enumerate(self.ports):
            if i == 0:
                self.port_name = info.port_name
            self.tui.body_msg(f"{i} - {info.port_name} {info.description}\n")
        if not self.ports:
            self.tui.body_msg("No valid port \n")

    def _cycle_baud_rate(self) -> None:
        self.baudrate = _next(BAUD_RATES, self.baudrate)
        self.tui.body_msg(f"baudrate : {self.baudrate}\n")

    def _cycle_parity(self) -> None:
        self.parity = _next(list(Parity), self.parity)
        self.tui.body_msg(f"parity : {self.parity.label}\n")

    def _cycle_data_bits(self) -> None:
        self.data_bits = _next(list(DataBits), self.data_bits)
        self.tui.body_msg(f"databit : {self.data_bits.label}\n")

    def _cycle_stop_bits(self) -> None:
        self.stop_bits = _next(list(StopBits), self.stop_bits)
        self.tui.body_msg(f"stopbit : {self.stop_bits.label}\n")

    # ----- open / close ----------------------------------------------------

    def open_port(self) -> None:
        """Open the selected port and start showing received data."""
        if not self.port_name:
            self.set_port_name()
        self.tui.body_msg(f"open {self.port_name}\n")
        try:
            self.session.open(
                self.port_name, self.baudrate, self.parity, self.data_bits, self.stop_bits
            )
        except PortError as exc:
            self.tui.body_msg(f"open failed, error : {exc}\n")
            return
        s = self.session
        self.tui.body_msg(
            f"open success. {s.port_name},{s.baudrate},{s.parity.label},"
            f"{int(s.data_bits)},{s.stop_bits.label}\n"
        )
        s.disconnect_all()
        s.connect(self._on_receive)

    def close_port(self) -> None:
        """Stop receiving and close the port."""
        self.tui.body_msg("close \n")
        self.session.disconnect_all()
        self.session.close()

    def _on_receive(self) -> None:
        data = self.session.read_all()
        if data:
            self.tui.body_msg("[RX] - ")
            self.tui.body_msg(data.decode(self.session.encoding, errors="replace"))
            self.tui.body_msg("\n")

    # ----- send / receive / help -------------------------------------------

    def send(self) -> None:
        """Send the greeting if the port is open."""
        if self.session.is_open:
            self.tui.body_msg(f"\n[TX] - {GREETING}\n")
            self.session.send(GREETING)
        else:
            self.tui.body_msg("\nPlease open serial port first\n")

    def clear_receive(self) -> None:
        """Clear the received text."""
        self.tui.clear_body()

    def about(self) -> None:
        """Show what this program is."""
        self.tui.body_msg(f"{ABOUT}\n")

    # ----- menus -----------------------------------------------------------

    def main_menu(self) -> list[MenuItem]:
        """The main menu with its submenus."""
        setting = [
            MenuItem("PortName", self.set_port_name, "serial port name, such as COM1 or /dev/ttyS0"),
            MenuItem("BaudRate", self._cycle_baud_rate, "baudrate, default 9600"),
            MenuItem("Parity", self._cycle_parity, "parity, default None"),
            MenuItem("DataBit", self._cycle_data_bits, "databit, default 8"),
            MenuItem("StopBit", self._cycle_stop_bits, "stopbit, default 1"),
            MenuItem("Exit", self.tui.exit, "Exit Serial Port TUI Demo"),
        ]
        open_close = [
            MenuItem("Open", self.open_port, "open serial port"),
            MenuItem("Close", self.close_port, "close serial port"),
        ]
        send = [MenuItem("Send", self.send, "send some data to serial port")]
        receive = [MenuItem("Clear Receive", self.clear_receive, "clear receive")]
        help_ = [MenuItem("About", self.about, "about")]
        return [
            MenuItem("Setting", lambda: self.tui.do_menu(setting), "Serial Port Setting"),
            MenuItem(
                "OpenClose", lambda: self.tui.do_menu(open_close), "Serial Port open and close"
            ),
            MenuItem("Send", lambda: self.tui.do_menu(send), "Serial Port Send"),
            MenuItem("Receive", lambda: self.tui.do_menu(receive), "Serial Port Receive"),
            MenuItem("Help", lambda: self.tui.do_menu(help_), "Serial Port Help"),
        ]


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the menu-driven terminal; return the exit status."""
    argparse.ArgumentParser(
        prog="serialterm-tui", description="Menu-driven serial port terminal."
    ).parse_args(argv)
    app = TuiApp()
    try:
        app.tui.start_menu(app.main_menu(), TITLE)
    finally:
        app.session.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())