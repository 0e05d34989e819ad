from __future__ import annotations

import json
import os
import time
import traceback
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

CATEGORIES = ("system", "network", "auth", "flow")


def default_log_dir() -> Path:
    return Path.home() / ".cache" / "wpe-console" / "logs"


def _render_value(value: Any) -> str:
    text = str(value)
    if not text or any(ch.isspace() for ch in text):
        return json.dumps(text)
    return text


@dataclass(frozen=True)
class LogEntry:
    """One line of the session log: who logged what, plus key=value fields."""

    ts: float
    level: str
    category: str
    source: str
    message: str
    fields: Mapping[str, Any] = field(default_factory=dict)

    def format_line(self) -> str:
        stamp = time.strftime("%H:%M:%S", time.localtime(self.ts))
        extra = "".join(f" {key}={_render_value(val)}" for key, val in self.fields.items())
        return f"{stamp} [{self.level.upper():5}] [{self.category}] [{self.source}] {self.message}{extra}"


class LogStore:
    """Session log file. Curses owns the terminal, so nothing is echoed."""

    def __init__(self, log_dir: Path | None = None) -> None:
        self.log_dir, fallback_reason = self._choose_dir(log_dir)
        self.log_path = self.log_dir / time.strftime("console-%Y%m%d-%H%M%S.log")
        if fallback_reason:
            self.append("warning", "system", "logstore", "using fallback log directory", reason=fallback_reason)
        self.append("info", "system", "logstore", "session started", path=self.log_path)

    @staticmethod
    def _choose_dir(preferred: Path | None) -> tuple[Path, str]:
        reason = ""
        if preferred is not None:
            try:
                preferred.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                reason = f"cannot create {preferred}: {exc}"
            else:
                if os.access(preferred, os.W_OK):
                    return preferred, ""
                reason = f"{preferred} is not writable"
        fallback = default_log_dir()
        fallback.mkdir(parents=True, exist_ok=True)
        return fallback, reason

    def append(self, level: str, category: str, source: str, message: str, **fields: Any) -> LogEntry:
        if category not in CATEGORIES:
            raise ValueError(f"unknown log category: {category}")
        entry = LogEntry(ts=time.time(), level=level, category=category, source=source, message=message, fields=fields)
        with self.log_path.open("a", encoding="utf-8") as fh:
            fh.write(entry.format_line())
            fh.write("\n")
        return entry

    def append_exception(self, source: str, message: str, exc: BaseException) -> LogEntry:
        trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)).rstrip()
        return self.append("error", "system", source, f"{message}\n{trace}")

