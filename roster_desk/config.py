from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

ENV_API_BASE = "ROSTER_DESK_API_BASE"
ENV_TOKEN = "ROSTER_DESK_TOKEN"
ENV_TIMEOUT = "ROSTER_DESK_TIMEOUT"
ENV_LOG_LEVEL = "ROSTER_DESK_LOG_LEVEL"

DEFAULT_TIMEOUT = 60.0
DEFAULT_LOG_LEVEL = "WARNING"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    api_base: str
    token: str
    timeout: float
    log_level: str


def load_env(dotenv_path: str | Path | None = None) -> None:
    path = Path(dotenv_path) if dotenv_path else None
    if path and path.exists():
        load_dotenv(path)
        return
    load_dotenv()


def _timeout_from_env() -> float:
    raw = os.getenv(ENV_TIMEOUT, "").strip()
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{ENV_TIMEOUT} must be a number of seconds, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{ENV_TIMEOUT} must be positive, got {raw!r}")
    return value


def load_settings(
    dotenv_path: str | Path | None = None,
    *,
    api_base: Optional[str] = None,
    token: Optional[str] = None,
    timeout: Optional[float] = None,
) -> Settings:
    """Read settings from the environment (and .env); explicit arguments win."""
    load_env(dotenv_path)
    base = api_base if api_base is not None else os.getenv(ENV_API_BASE, "")
    return Settings(
        api_base=base.strip().rstrip("/"),
        token=(token if token is not None else os.getenv(ENV_TOKEN, "")).strip(),
        timeout=timeout if timeout is not None else _timeout_from_env(),
        log_level=os.getenv(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL).strip().upper() or DEFAULT_LOG_LEVEL,
    )


def configure_logging(level: str | int = DEFAULT_LOG_LEVEL) -> None:
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING
    package_logger = logging.getLogger("roster_desk")
    package_logger.setLevel(level)
    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.addHandler(handler)
