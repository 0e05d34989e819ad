from __future__ import annotations

import curses
import textwrap
from typing import Protocol

from .theme import Style, Theme

WELCOME_TITLE = "Welcome to the WP Engine API CLI Tool!"
WELCOME_HINT = "Use arrow keys to navigate, Enter to select, Escape to go back, and Ctrl+C to exit."
GOODBYE = "Exiting WP Engine API CLI Tool..."
FAREWELL = "Thank you for using the WP Engine API CLI Tool!"


def clamp(n: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, n))


def safe_addstr(stdscr: curses.window, y: int, x: int, text: str, attr: int = 0) -> None:
    h, w = stdscr.getmaxyx()
    if y < 0 or y >= h or x >= w:
        return
    if x < 0:
        text = text[-x:]
        x = 0
    if not text:
        return
    max_len = max(0, w - x - 1)
    if max_len <= 0:
        return
    try:
        stdscr.addnstr(y, x, text, max_len, attr)
    except curses.error:
        pass


def wrap_lines(text: str, width: int) -> list[str]:
    """Split on newlines and wrap any line longer than `width` columns."""
    width = max(1, width)
    out: list[str] = []
    for line in text.split("\n"):
        if len(line) <= width:
            out.append(line)
        else:
            out.extend(textwrap.wrap(line, width))
    return out


class Screen(Protocol):
    """Top-to-bottom line writer the menus and prompts render through."""

    def clear(self) -> None: ...

    def write(self, text: str = "", style: Style = "plain") -> None: ...

    def mark(self) -> int: ...

    def clear_from(self, row: int) -> None: ...

    def set_cursor(self, visible: bool) -> None: ...

    def size(self) -> tuple[int, int]: ...


class CursesScreen:
    def __init__(self, stdscr: curses.window, theme: Theme) -> None:
        self.stdscr = stdscr
        self.theme = theme
        self.row = 0

    def clear(self) -> None:
        self.stdscr.erase()
        self.row = 0
        self.stdscr.refresh()

    def write(self, text: str = "", style: Style = "plain") -> None:
        attr = self.theme.attr(style)
        for line in wrap_lines(text, self.size()[1] - 1):
            safe_addstr(self.stdscr, self.row, 0, line, attr)
            self.row += 1
        self.stdscr.refresh()

    def mark(self) -> int:
        return self.row

    def clear_from(self, row: int) -> None:
        h, _ = self.stdscr.getmaxyx()
        self.row = max(0, row)
        if self.row < h:
            self.stdscr.move(self.row, 0)
            self.stdscr.clrtobot()
        self.stdscr.refresh()

    def set_cursor(self, visible: bool) -> None:
        try:
            curses.curs_set(1 if visible else 0)
        except curses.error:
            pass

    def size(self) -> tuple[int, int]:
        h, w = self.stdscr.getmaxyx()
        return h, w


def fresh_page(screen: Screen) -> None:
    screen.clear()
    screen.write(WELCOME_TITLE, "welcome")
    screen.write(WELCOME_HINT, "hint")
    screen.write()
