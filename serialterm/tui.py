"""Menu-driven text user interface built on curses."""

from __future__ import annotations

import curses
import time
from dataclasses import dataclass
from itertools import takewhile
from typing import Callable, Optional, Sequence

MAXSTRLEN = 256
KEY_ESC = 0x1B

_NO_KEY = -1
_ENTER = ord("\n")
_TAB = ord("\t")

_TITLE_HEIGHT = 1
_MAIN_MENU_HEIGHT = 1
_STATUS_HEIGHT = 2

# role -> (colour pair, foreground, background, attributes)
_PALETTE = {
    "title": (1, curses.COLOR_BLACK, curses.COLOR_CYAN, 0),
    "main": (2, curses.COLOR_WHITE, curses.COLOR_CYAN, curses.A_BOLD),
    "main_rev": (3, curses.COLOR_WHITE, curses.COLOR_BLACK, curses.A_BOLD | curses.A_REVERSE),
    "sub": (4, curses.COLOR_WHITE, curses.COLOR_CYAN, curses.A_BOLD),
    "sub_rev": (5, curses.COLOR_WHITE, curses.COLOR_BLACK, curses.A_BOLD | curses.A_REVERSE),
    "body": (6, curses.COLOR_WHITE, curses.COLOR_BLUE, 0),
    "status": (7, curses.COLOR_WHITE, curses.COLOR_CYAN, curses.A_BOLD),
}


@dataclass(frozen=True)
class MenuItem:
    """A menu entry: its label, the action it runs and a status-line description."""

    name: str
    func: Optional[Callable[[], None]]
    desc: str = ""


def _active(items: Sequence[MenuItem]) -> list[MenuItem]:
    """Items up to the first one without an action."""
    return list(takewhile(lambda item: item.func is not None, items))


def pad_str(s: str, length: int) -> str:
    """Truncate or left-justify ``s`` to exactly ``length`` characters."""
    length = max(length, 0)
    return s[:length] if len(s) > length else s.ljust(length)


def pre_pad(s: str, length: int) -> str:
    """Prefix ``s`` with ``length`` spaces."""
    return " " * length + s if length > 0 else s


def hotkey(name: str) -> str:
    """The first upper-case letter of ``name``, or its first character."""
    return next((ch for ch in name if ch.isupper()), name[:1])


def menu_dim(items: Sequence[MenuItem]) -> tuple[int, int]:
    """Number of entries and the column width a menu needs."""
    active = _active(items)
    widest = max((len(item.name) for item in active), default=0)
    return len(active), widest + 2


def _upper_key(key: int) -> Optional[str]:
    return chr(key).upper() if 0 <= key < 256 else None


def _cycle_to_hotkey(items: Sequence[MenuItem], cur: int, key: int) -> tuple[int, bool]:
    """Move to the next entry whose hotkey matches ``key``."""
    target = _upper_key(key)
    start = cur
    while True:
        cur = (cur + 1) % len(items)
        if cur == start or hotkey(items[cur].name) == target:
            break
    return cur, hotkey(items[cur].name) == target


class LineEditor:
    """Editing state of a single-line input field."""

    ERASE_KEYS = frozenset({8, 127, curses.KEY_BACKSPACE})
    KILL_KEY = 0x15
    WORD_KEY = 0x17
    ACCEPT_KEYS = frozenset({_ENTER, curses.KEY_UP, curses.KEY_DOWN})
    INSERT_TOGGLE_KEYS = frozenset({_TAB, curses.KEY_IC, curses.KEY_EIC})

    def __init__(self, text: str, field: int) -> None:
        if field >= MAXSTRLEN or len(text) > field - 1:
            raise ValueError(f"text of length {len(text)} does not fit a field of {field}")
        self.field = field
        self.original = text
        self.text = text
        self.cursor = 0
        self.insert = False
        self.done = False
        self._default_display = True

    def feed(self, key: int) -> Optional[int]:
        """Apply one key; return it if it ends the edit, else None."""
        if key == KEY_ESC:
            self.text = self.original
            self.done = True
            return key
        if key in self.ACCEPT_KEYS:
            self.done = True
            return key
        if key == curses.KEY_LEFT:
            self.cursor = max(self.cursor - 1, 0)
        elif key == curses.KEY_RIGHT:
            self._default_display = False
            self.cursor = min(self.cursor + 1, len(self.text))
        elif key in self.INSERT_TOGGLE_KEYS:
            self._default_display = False
            self.insert = not self.insert
        elif key in self.ERASE_KEYS:
            if self.cursor > 0:
                self.text = self.text[: self.cursor - 1] + self.text[self.cursor:]
                self.cursor -= 1
        elif key == self.KILL_KEY:
            self.text = ""
            self.cursor = 0
        elif key == self.WORD_KEY:
            self._delete_word()
        elif 32 <= key < 127:
            self._type(chr(key))
        return None

    def _delete_word(self) -> None:
        end = self.cursor
        pos = end
        while pos > 0 and self.text[pos - 1] == " ":
            pos -= 1
        while pos > 0 and self.text[pos - 1] != " ":
            pos -= 1
        self.text = self.text[:pos] + self.text[end:]
        self.cursor = pos

    def _type(self, ch: str) -> None:
        if self._default_display:
            self.text = ""
            self.cursor = 0
            self._default_display = False
        if self.insert:
            if len(self.text) < self.field - 1:
                self.text = self.text[: self.cursor] + ch + self.text[self.cursor:]
                self.cursor += 1
        elif self.cursor < self.field - 1:
            self.text = self.text[: self.cursor] + ch + self.text[self.cursor + 1:]
            self.cursor += 1


class Tui:
    """A title bar, a horizontal main menu, a scrolling body and a status area."""

    def __init__(self) -> None:
        self.quit = False
        self.title = ""
        self.status = ""
        self.error = ""
        self.body_text = ""
        self._screen = None
        self._wtitle = None
        self._wmain = None
        self._wbody = None
        self._wstat = None
        self._colors = False
        self._key = _NO_KEY
        self._menu_pos = (_TITLE_HEIGHT + _MAIN_MENU_HEIGHT, 0)

    # ----- drawing helpers -------------------------------------------------

    @property
    def _width(self) -> int:
        return self._screen.getmaxyx()[1] if self._screen is not None else 80

    @staticmethod
    def _put(win, y: int, x: int, text: str) -> None:
        try:
            win.addstr(y, x, text)
        except curses.error:
            pass  # writing into the last cell of a window reports an error

    @staticmethod
    def _cursor(visibility: int) -> None:
        try:
            curses.curs_set(visibility)
        except curses.error:
            pass

    def _attr(self, role: str) -> int:
        pair, _, _, attrs = _PALETTE[role]
        if self._colors:
            return curses.color_pair(pair) | (attrs & ~curses.A_REVERSE)
        return attrs & ~curses.A_BOLD

    def _init_color(self) -> None:
        if not curses.has_colors():
            return
        curses.start_color()
        for pair, fg, bg, _ in _PALETTE.values():
            curses.init_pair(pair, fg, bg)
        self._colors = True

    def _colorbox(self, win, role: str, has_box: bool) -> None:
        attr = self._attr(role)
        win.attrset(attr)
        win.bkgd(" ", attr)
        win.erase()
        if has_box and win.getmaxyx()[0] > 2:
            win.box()
        win.touchwin()
        win.refresh()

    def _label(self, name: str, width: int) -> str:
        return pre_pad(pad_str(name, width - 1), 1)

    def _refresh_body(self) -> None:
        self._wbody.touchwin()
        self._wbody.refresh()

    # ----- messages --------------------------------------------------------

    def title_msg(self, msg: str) -> None:
        """Show ``msg`` in the title bar."""
        self.title = msg
        if self._wtitle is not None:
            self._put(self._wtitle, 0, 2, pad_str(msg, self._width - 3))
            self._wtitle.refresh()

    def body_msg(self, msg: str) -> None:
        """Append ``msg`` to the body window."""
        self.body_text += msg
        if self._wbody is not None:
            try:
                self._wbody.addstr(msg)
            except curses.error:
                pass
            self._wbody.refresh()

    def error_msg(self, msg: str) -> None:
        """Beep and show ``msg`` on the error line."""
        self.error = msg
        if self._wstat is not None:
            curses.beep()
            self._put(self._wstat, 0, 2, pad_str(msg, self._width - 3))
            self._wstat.refresh()

    def status_msg(self, msg: str) -> None:
        """Show ``msg`` on the status line."""
        self.status = msg
        if self._wstat is not None:
            self._put(self._wstat, 1, 2, pad_str(msg, self._width - 3))
            self._wstat.refresh()

    def _rm_error(self) -> None:
        self.error = ""
        if self._wstat is not None:
            self._put(self._wstat, 0, 1, pad_str(" ", self._width - 2))
            self._wstat.refresh()

    def clear_body(self) -> None:
        """Erase the body window."""
        self.body_text = ""
        if self._wbody is not None:
            self._wbody.erase()
            self._wbody.move(0, 0)

    def exit(self) -> None:
        """Ask the menu loops to finish."""
        self.quit = True

    # ----- input -----------------------------------------------------------

    def _idle(self) -> None:
        stamp = time.strftime(" %Y-%m-%d  %H:%M:%S")
        self._put(self._wtitle, 0, self._width - len(stamp) - 2, stamp)
        self._wtitle.refresh()

    def _wait_for_key(self) -> int:
        while True:
            self._idle()
            key = self._wbody.getch()
            if key != _NO_KEY:
                return key

    # ----- menus -----------------------------------------------------------

    def _main_help(self) -> None:
        self.status_msg("Use arrow keys and Enter to select")

    def _repaint_main(self, width: int, items: Sequence[MenuItem]) -> None:
        for i, item in enumerate(items):
            self._put(self._wmain, 0, i * width, self._label(item.name, width))
        self._wmain.touchwin()
        self._wmain.refresh()

    def _repaint_menu(self, wmenu, items: Sequence[MenuItem]) -> None:
        for i, item in enumerate(items):
            self._put(wmenu, i + 1, 2, item.name)
        wmenu.touchwin()
        wmenu.refresh()

    def _run(self, item: MenuItem) -> None:
        self._cursor(1)
        item.func()
        self._cursor(0)

    def _main_menu(self, items: Sequence[MenuItem]) -> None:
        items = _active(items)
        if not items:
            return
        count, width = menu_dim(items)
        self._repaint_main(width, items)
        old, cur = -1, 0
        while not self.quit:
            if cur != old:
                if old != -1:
                    self._put(self._wmain, 0, old * width, self._label(items[old].name, width))
                    self.status_msg(items[cur].desc)
                else:
                    self._main_help()
                self._wmain.attrset(self._attr("main_rev"))
                self._put(self._wmain, 0, cur * width, self._label(items[cur].name, width))
                self._wmain.attrset(self._attr("main"))
                old = cur
                self._wmain.refresh()

            key = self._key if self._key != _NO_KEY else self._wait_for_key()
            if key in (curses.KEY_DOWN, _ENTER):
                self._refresh_body()
                self._rm_error()
                self._menu_pos = (_TITLE_HEIGHT + _MAIN_MENU_HEIGHT, cur * width)
                self._run(items[cur])
                if self._key == curses.KEY_LEFT:
                    cur = (cur - 1) % count
                    self._key = _ENTER
                elif self._key == curses.KEY_RIGHT:
                    cur = (cur + 1) % count
                    self._key = _ENTER
                else:
                    self._key = _NO_KEY
                self._repaint_main(width, items)
                old = -1
            elif key == curses.KEY_LEFT:
                cur = (cur - 1) % count
            elif key == curses.KEY_RIGHT:
                cur = (cur + 1) % count
            elif key == KEY_ESC:
                self._main_help()
            else:
                cur, matched = _cycle_to_hotkey(items, cur, key)
                if matched:
                    self._key = _ENTER

        self._rm_error()
        self._refresh_body()

    def do_menu(self, items: Sequence[MenuItem]) -> None:
        """Pop up a vertical submenu and run the entries the user picks."""
        items = _active(items)
        if not items:
            return
        self._cursor(0)
        y, x = self._menu_pos
        count, width = menu_dim(items)
        wmenu = curses.newwin(count + 2, width + 2, y, x)
        self._colorbox(wmenu, "sub", True)
        self._repaint_menu(wmenu, items)

        self._key = _NO_KEY
        stop = False
        old, cur = -1, 0
        while not stop and not self.quit:
            if cur != old:
                if old != -1:
                    self._put(wmenu, old + 1, 1, self._label(items[old].name, width))
                wmenu.attrset(self._attr("sub_rev"))
                self._put(wmenu, cur + 1, 1, self._label(items[cur].name, width))
                wmenu.attrset(self._attr("sub"))
                self.status_msg(items[cur].desc)
                old = cur
                wmenu.refresh()

            key = self._key if self._key != _NO_KEY else self._wait_for_key()
            self._key = key
            if key == _ENTER:
                self._refresh_body()
                self._menu_pos = (y + 1, x + 1)
                self._rm_error()
                self._key = _NO_KEY
                self._run(items[cur])
                self._repaint_menu(wmenu, items)
                old = -1
            elif key == curses.KEY_UP:
                cur = (cur - 1) % count
                self._key = _NO_KEY
            elif key == curses.KEY_DOWN:
                cur = (cur + 1) % count
                self._key = _NO_KEY
            elif key in (KEY_ESC, curses.KEY_LEFT, curses.KEY_RIGHT):
                if key == KEY_ESC:
                    self._key = _NO_KEY
                stop = True
            else:
                cur, matched = _cycle_to_hotkey(items, cur, key)
                self._key = _ENTER if matched else _NO_KEY

        self._rm_error()
        del wmenu
        self._refresh_body()

    def start_menu(self, items: Sequence[MenuItem], title: str) -> None:
        """Set up the screen, run the main menu until exit, then restore the terminal."""
        self._screen = curses.initscr()
        try:
            self._init_color()
            lines, cols = self._screen.getmaxyx()
            body_height = lines - _TITLE_HEIGHT - _MAIN_MENU_HEIGHT - _STATUS_HEIGHT
            self._wtitle = self._screen.subwin(_TITLE_HEIGHT, cols, 0, 0)
            self._wmain = self._screen.subwin(_MAIN_MENU_HEIGHT, cols, _TITLE_HEIGHT, 0)
            self._wbody = self._screen.subwin(
                body_height, cols, _TITLE_HEIGHT + _MAIN_MENU_HEIGHT, 0
            )
            self._wstat = self._screen.subwin(
                _STATUS_HEIGHT, cols, _TITLE_HEIGHT + _MAIN_MENU_HEIGHT + body_height, 0
            )
            self._colorbox(self._wtitle, "title", False)
            self._colorbox(self._wmain, "main", False)
            self._colorbox(self._wbody, "body", False)
            self._colorbox(self._wstat, "status", False)

            if title:
                self.title_msg(title)

            curses.cbreak()
            curses.noecho()
            self._cursor(0)
            self._wbody.nodelay(True)
            curses.halfdelay(10)
            self._wbody.keypad(True)
            self._wbody.scrollok(True)
            for win in (self._screen, self._wtitle, self._wmain, self._wstat):
                win.leaveok(True)

            self._main_menu(items)
        finally:
            self._cleanup()

    def _cleanup(self) -> None:
        if self._screen is None:
            return
        self._cursor(1)
        curses.endwin()
        self._screen = self._wtitle = self._wmain = self._wbody = self._wstat = None