# src/taskwindow/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Nothing required at import time; the scheduler validates what it is given.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

ENV_PREFIX = "TASKWINDOW"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally if python-dotenv is installed. Safe no-op otherwise."""
    try:
        from dotenv import load_dotenv  # type: ignore
    except Exception:
        return
    load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- Logging ----
    log_level: str
    log_debug: bool

    # ---- Storage ----
    data_dir: Path
    db_path: Path

    # ---- Poll loop ----
    cooldown: str

    @staticmethod
    def from_env(*, load_dotenv: bool = True) -> "Settings":
        if load_dotenv:
            _load_dotenv_if_available()

        log_level = _env(_k("LOG_LEVEL"), "INFO")
        # Per-tick/per-run debug chatter from the scheduler.
        log_debug = _env_bool(_k("LOG_DEBUG"), False)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskwindow"))
        db_path = _env_path(_k("DB_PATH"), data_dir / "tasks.sqlite3")

        cooldown = _env(_k("COOLDOWN"), "60s").strip() or "60s"

        return Settings(
            log_level=log_level,
            log_debug=log_debug,
            data_dir=data_dir,
            db_path=db_path,
            cooldown=cooldown,
        )


def get_settings() -> Settings:
    return Settings.from_env()
