# src/taskdeck/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- Nothing required at import time; every value has a local default.
- Paths default to a gitignored local data dir.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

ENV_PREFIX = "TASKDECK"

BACKENDS = ("local", "http")


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


_load_dotenv_if_available()


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_path: Path
    view_state_path: Path

    # ---- Repository ----
    # Artificial latency applied to every repository call (seconds).
    latency_seconds: float

    # ---- HTTP API ----
    api_host: str
    api_port: int
    api_base_url: str
    http_timeout_seconds: float

    # ---- Console backend: "local" (in-process repository) or "http" ----
    backend: str

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "taskdeck") or "taskdeck"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskdeck"))
        tasks_path = _env_path(_k("TASKS_PATH"), data_dir / "tasks.json")
        view_state_path = _env_path(_k("VIEW_STATE_PATH"), data_dir / "view_state.json")

        latency_seconds = max(0.0, _env_float(_k("LATENCY_SECONDS"), 0.5))

        api_host = _env(_k("API_HOST"), "127.0.0.1")
        api_port = _env_int(_k("API_PORT"), 8000)
        api_base_url = _env(_k("API_BASE_URL"), f"http://{api_host}:{api_port}")
        http_timeout_seconds = max(0.1, _env_float(_k("HTTP_TIMEOUT_SECONDS"), 10.0))

        backend = _env(_k("BACKEND"), "local").strip().lower()
        if backend not in BACKENDS:
            backend = "local"

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            tasks_path=tasks_path,
            view_state_path=view_state_path,
            latency_seconds=latency_seconds,
            api_host=api_host,
            api_port=api_port,
            api_base_url=api_base_url.rstrip("/"),
            http_timeout_seconds=http_timeout_seconds,
            backend=backend,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
