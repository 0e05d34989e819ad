from __future__ import annotations

import curses
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator, Literal

from .errors import InputOwnershipError


KEY_ENTER = {10, 13, curses.KEY_ENTER}
KEY_BACK = {curses.KEY_BACKSPACE, 127, 8}
KEY_ESCAPE = {27, curses.KEY_EXIT}

KeyKind = Literal["up", "down", "enter", "escape", "backspace", "char", "interrupt", "other"]
KeySource = Callable[[], object]


@dataclass(frozen=True)
class KeyEvent:
    kind: KeyKind
    char: str = ""


def is_enter(key: object) -> bool:
    return isinstance(key, int) and key in KEY_ENTER or key in ("\n", "\r")


def is_backspace(key: object) -> bool:
    return isinstance(key, int) and key in KEY_BACK or key in ("\x7f", "\b")


def is_escape(key: object) -> bool:
    return isinstance(key, int) and key in KEY_ESCAPE or key == "\x1b"


def decode_key(key: object) -> KeyEvent:
    if key == "\x03":
        return KeyEvent("interrupt")
    if key == curses.KEY_UP:
        return KeyEvent("up")
    if key == curses.KEY_DOWN:
        return KeyEvent("down")
    if is_enter(key):
        return KeyEvent("enter")
    if is_escape(key):
        return KeyEvent("escape")
    if is_backspace(key):
        return KeyEvent("backspace")
    if isinstance(key, str) and key.isprintable():
        return KeyEvent("char", key)
    return KeyEvent("other")


class InputStream:
    """The terminal's key source with exactly one owner at a time.

    Menus and text prompts take the stream with ``claim()``; the previous
    owner gets it back when the ``with`` block exits, however it exits.
    """

    def __init__(self, source: KeySource) -> None:
        self._source = source
        self._owner: object | None = None

    @property
    def owner(self) -> object | None:
        return self._owner

    @contextmanager
    def claim(self, owner: object) -> Iterator[InputStream]:
        if owner is self._owner:
            raise InputOwnershipError(f"{owner!r} already owns the input stream")
        previous = self._owner
        self._owner = owner
        try:
            yield self
        finally:
            self._owner = previous

    def read(self, owner: object) -> KeyEvent:
        if owner is not self._owner:
            raise InputOwnershipError(f"{owner!r} does not own the input stream")
        while True:
            try:
                raw = self._source()
            except KeyboardInterrupt:
                return KeyEvent("interrupt")
            except curses.error:
                continue
            return decode_key(raw)
