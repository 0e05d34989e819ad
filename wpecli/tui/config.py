from __future__ import annotations

import base64
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from dotenv import load_dotenv

from .errors import AuthError

DEFAULT_BASE_URL = "https://api.wpengineapi.com/v1"
DEFAULT_TIMEOUT = 30.0

USER_ID_ENV = "WP_ENGINE_API_USER_ID"
PASSWORD_ENV = "WP_ENGINE_API_PASSWORD"
BASE_URL_ENV = "WP_ENGINE_API_BASE_URL"
TIMEOUT_ENV = "WP_ENGINE_API_TIMEOUT"
LOG_DIR_ENV = "WPE_CONSOLE_LOG_DIR"

MISSING_CREDENTIALS = (
    "Error: WP Engine API credentials not found in environment variables.\n"
    f"Please create a .env file with {USER_ID_ENV} and {PASSWORD_ENV}."
)


@dataclass(frozen=True)
class Settings:
    user_id: str
    password: str = field(repr=False)
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    log_dir: Path | None = None

    def auth_header(self) -> str:
        token = base64.b64encode(f"{self.user_id}:{self.password}".encode("utf-8")).decode("ascii")
        return f"Basic {token}"


def load_settings(environ: Mapping[str, str] | None = None, env_file: Path | None = None) -> Settings:
    """Read API settings, pulling in a ``.env`` file when reading ``os.environ``.

    Variables already set in the process environment win over the file.
    """
    if environ is None:
        dotenv_path = env_file or Path.cwd() / ".env"
        if dotenv_path.is_file():
            load_dotenv(dotenv_path, override=False)
        environ = os.environ

    user_id = environ.get(USER_ID_ENV, "").strip()
    password = environ.get(PASSWORD_ENV, "").strip()
    if not user_id or not password:
        raise AuthError(MISSING_CREDENTIALS)

    log_dir = environ.get(LOG_DIR_ENV, "").strip()
    return Settings(
        user_id=user_id,
        password=password,
        base_url=(environ.get(BASE_URL_ENV, "").strip() or DEFAULT_BASE_URL).rstrip("/"),
        timeout=_parse_timeout(environ.get(TIMEOUT_ENV, "")),
        log_dir=Path(log_dir).expanduser() if log_dir else None,
    )


def _parse_timeout(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        return DEFAULT_TIMEOUT
    return value if value > 0 else DEFAULT_TIMEOUT
