# src/maintdesk/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time (the offline model is used without a key).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "MAINTDESK"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


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

    # ---- Connector flags ----
    console_enabled: bool

    # ---- LLM / OpenRouter ----
    openrouter_api_key: str | None
    openrouter_base_url: str
    llm_model: str
    extra_headers: dict[str, str]
    llm_connect_timeout_seconds: float
    llm_read_timeout_seconds: float

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    state_dir: Path
    export_dir: Path

    @staticmethod
    def from_env() -> Settings:
        app_name = _env(_k("APP_NAME"), "maintdesk") or "maintdesk"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        openrouter_api_key = _first_env(_k("OPENROUTER_API_KEY"), "OPENROUTER_API_KEY", default=None)
        openrouter_base_url = _env(_k("OPENROUTER_BASE_URL"), "https://openrouter.ai/api/v1")
        llm_model = _env(_k("LLM_MODEL"), "google/gemini-2.5-flash").strip()

        http_referer = _env(_k("HTTP_REFERER"), "https://example.com")
        title = _env(_k("APP_TITLE"), app_name)

        extra_headers = {
            "HTTP-Referer": http_referer,
            "X-Title": title,
        }

        connect_timeout = _env_float(_k("LLM_CONNECT_TIMEOUT_SECONDS"), 5.0)
        read_timeout = _env_float(_k("LLM_READ_TIMEOUT_SECONDS"), 60.0)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/maintdesk"))
        state_dir = _env_path(_k("STATE_DIR"), data_dir / "state")
        export_dir = _env_path(_k("EXPORT_DIR"), data_dir / "exports")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            openrouter_api_key=openrouter_api_key,
            openrouter_base_url=openrouter_base_url,
            llm_model=llm_model,
            extra_headers=extra_headers,
            llm_connect_timeout_seconds=connect_timeout,
            llm_read_timeout_seconds=read_timeout,
            data_dir=data_dir,
            state_dir=state_dir,
            export_dir=export_dir,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
