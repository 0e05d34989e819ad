#!/usr/bin/env python3
"""WP Engine API console: browse accounts, sites and installs from the terminal."""

from __future__ import annotations

import curses
import os
import sys

from wpecli.tui.config import load_settings
from wpecli.tui.errors import AuthError, Interrupted, StartupError
from wpecli.tui.flow import FlowController
from wpecli.tui.gateway import WPEngineGateway
from wpecli.tui.keys import InputStream
from wpecli.tui.logstore import LogStore
from wpecli.tui.menu import Menu
from wpecli.tui.prompt import TextPrompt
from wpecli.tui.theme import Theme
from wpecli.tui.views import FAREWELL, GOODBYE, CursesScreen


def _session(stdscr: curses.window, gateway: WPEngineGateway, logstore: LogStore) -> None:
    try:
        curses.curs_set(0)
    except curses.error:
        pass
    stdscr.keypad(True)
    stdscr.timeout(-1)
    screen = CursesScreen(stdscr, Theme.init())
    stream = InputStream(stdscr.get_wch)
    flow = FlowController(gateway, Menu(stream, screen), TextPrompt(stream, screen), screen, logstore)
    flow.run()


def main() -> int:
    try:
        settings = load_settings()
    except AuthError as exc:
        print(exc, file=sys.stderr)
        return 1

    logstore = LogStore(log_dir=settings.log_dir)
    gateway = WPEngineGateway(settings, logstore)
    os.environ.setdefault("ESCDELAY", "25")

    try:
        curses.wrapper(_session, gateway, logstore)
    except (Interrupted, KeyboardInterrupt):
        logstore.append("info", "system", "main", "interrupted by user")
        print(GOODBYE)
        return 0
    except (AuthError, StartupError) as exc:
        logstore.append("error", "auth" if isinstance(exc, AuthError) else "system", "main", str(exc))
        print(exc, file=sys.stderr)
        return 1
    except Exception as exc:
        logstore.append_exception("main", "unhandled error", exc)
        print(f"An error occurred: {exc}", file=sys.stderr)
        print(f"Log file: {logstore.log_path}", file=sys.stderr)
        return 1

    logstore.append("info", "system", "main", "session finished")
    print(FAREWELL)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
