from __future__ import annotations

from .errors import Interrupted
from .keys import InputStream
from .views import Screen, fresh_page


class TextPrompt:
    def __init__(self, stream: InputStream, screen: Screen) -> None:
        self.stream = stream
        self.screen = screen

    def read_line(self, prompt: str = "> ") -> str:
        buf: list[str] = []
        row = self.screen.mark()
        self.screen.write(prompt)
        self.screen.set_cursor(True)
        try:
            with self.stream.claim(self):
                while True:
                    event = self.stream.read(self)
                    if event.kind == "interrupt":
                        raise Interrupted()
                    if event.kind == "enter":
                        return "".join(buf)
                    if event.kind == "backspace":
                        if not buf:
                            continue
                        buf.pop()
                    elif event.kind == "char":
                        buf.append(event.char)
                    else:
                        continue
                    self.screen.clear_from(row)
                    self.screen.write(prompt + "".join(buf))
        finally:
            self.screen.set_cursor(False)

    def ask(self, label: str, hint: str = "") -> str:
        fresh_page(self.screen)
        self.screen.write(f"Enter {label}{f' {hint}' if hint else ''}:", "info")
        return self.read_line()

    def wait_for_key(self) -> None:
        self.screen.write("Press any key to continue...", "hint")
        with self.stream.claim(self):
            event = self.stream.read(self)
        if event.kind == "interrupt":
            raise Interrupted()
