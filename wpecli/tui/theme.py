from __future__ import annotations

import curses
from dataclasses import dataclass
from typing import Literal

Style = Literal["plain", "welcome", "hint", "title", "focus", "info", "warning", "error", "success"]


@dataclass(frozen=True)
class ThemeAttrs:
    plain: int
    welcome: int
    hint: int
    title: int
    focus: int
    info: int
    warning: int
    error: int
    success: int


class Theme:
    def __init__(self, has_color: bool) -> None:
        self.has_color = has_color
        self.attrs = ThemeAttrs(
            plain=0,
            welcome=curses.A_BOLD,
            hint=curses.A_DIM,
            title=curses.A_BOLD,
            focus=curses.A_REVERSE,
            info=0,
            warning=curses.A_BOLD,
            error=curses.A_BOLD,
            success=curses.A_BOLD,
        )

    def attr(self, style: Style) -> int:
        return int(getattr(self.attrs, style, 0))

    @classmethod
    def init(cls) -> "Theme":
        has_color = curses.has_colors()
        theme = cls(has_color=has_color)
        if not has_color:
            return theme

        curses.start_color()
        curses.use_default_colors()

        curses.init_pair(1, curses.COLOR_BLUE, -1)    # welcome banner
        curses.init_pair(2, curses.COLOR_YELLOW, -1)  # titles, progress
        curses.init_pair(3, curses.COLOR_CYAN, -1)    # highlighted option
        curses.init_pair(4, curses.COLOR_RED, -1)     # errors, warnings
        curses.init_pair(5, curses.COLOR_GREEN, -1)   # success
        curses.init_pair(6, curses.COLOR_WHITE, -1)   # detail text

        theme.attrs = ThemeAttrs(
            plain=0,
            welcome=curses.color_pair(1) | curses.A_BOLD,
            hint=curses.A_DIM,
            title=curses.color_pair(2),
            focus=curses.color_pair(3) | curses.A_BOLD,
            info=curses.color_pair(6),
            warning=curses.color_pair(2) | curses.A_BOLD,
            error=curses.color_pair(4) | curses.A_BOLD,
            success=curses.color_pair(5) | curses.A_BOLD,
        )
        return theme
