from __future__ import annotations

from typing import Sequence

from .errors import Interrupted
from .keys import InputStream
from .state import BACK, MenuChoice, MenuCursor, apply_menu_key
from .views import Screen, fresh_page


class Menu:
    """Vertical option list driven by up/down/enter/escape.

    ``present`` blocks until the user picks an option (``MenuChoice.select``)
    or backs out (``BACK``). Ctrl+C raises ``Interrupted``.
    """

    def __init__(self, stream: InputStream, screen: Screen) -> None:
        self.stream = stream
        self.screen = screen
        self._active = False

    def present(
        self,
        title: str,
        options: Sequence[str],
        preserve_header: bool = False,
        initial: int = 0,
    ) -> MenuChoice:
        if self._active:
            raise RuntimeError("menu is already waiting for a selection")
        if not options:
            return BACK
        self._active = True
        try:
            with self.stream.claim(self):
                cursor = MenuCursor(count=len(options)).moved(initial)
                if not preserve_header:
                    fresh_page(self.screen)
                self.screen.write(title, "title")
                self.screen.write()
                region = self.screen.mark()
                top = self._render(options, cursor.index, 0, region)
                while True:
                    event = self.stream.read(self)
                    if event.kind == "interrupt":
                        raise Interrupted()
                    moved, choice = apply_menu_key(cursor, event)
                    if choice is not None:
                        return choice
                    if moved.index != cursor.index:
                        cursor = moved
                        self.screen.clear_from(region)
                        top = self._render(options, cursor.index, top, region)
        finally:
            self._active = False

    def _render(self, options: Sequence[str], selected: int, top: int, region: int) -> int:
        """Draw the slice of options that fits below `region`; return the new top."""
        h, w = self.screen.size()
        viewport = max(1, h - region)
        if selected < top:
            top = selected
        if selected >= top + viewport:
            top = selected - viewport + 1
        for idx in range(top, min(len(options), top + viewport)):
            label = options[idx][: max(1, w - 3)]
            if idx == selected:
                self.screen.write(f"→ {label}", "focus")
            else:
                self.screen.write(f"  {label}")
        return top
