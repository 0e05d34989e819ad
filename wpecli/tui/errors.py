from __future__ import annotations

import json
from typing import Any


class Interrupted(Exception):
    """Ctrl+C while a menu or prompt owns the keyboard."""


class InputOwnershipError(RuntimeError):
    pass


class StartupError(Exception):
    pass


class AuthError(Exception):
    pass


class GatewayError(Exception):
    pass


class NetworkError(GatewayError):
    pass


class ApiError(GatewayError):
    def __init__(self, action: str, status: int, reason: str = "", body: Any = None) -> None:
        self.action = action
        self.status = status
        self.reason = reason
        self.body = body if body is not None else {}
        super().__init__(self._compose())

    def _compose(self) -> str:
        msg = f"{self.action}: {self.status} {self.reason}".rstrip()
        if self.body:
            msg += f"\n{_pretty(self.body)}"
        return msg


def _pretty(body: Any) -> str:
    if isinstance(body, (dict, list)):
        return json.dumps(body, indent=2)
    return str(body)
