# tests/test_config.py

from __future__ import annotations

from pathlib import Path

import pytest

from maintdesk.config import Settings

_VARS = (
    "MAINTDESK_APP_NAME",
    "MAINTDESK_OPENROUTER_API_KEY",
    "OPENROUTER_API_KEY",
    "MAINTDESK_LLM_MODEL",
    "MAINTDESK_LLM_READ_TIMEOUT_SECONDS",
    "MAINTDESK_DATA_DIR",
    "MAINTDESK_STATE_DIR",
    "MAINTDESK_EXPORT_DIR",
    "MAINTDESK_APP_TITLE",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    s = Settings.from_env()
    assert s.app_name == "maintdesk"
    assert s.openrouter_api_key is None
    assert s.llm_model == "google/gemini-2.5-flash"
    assert s.llm_read_timeout_seconds == 60.0
    assert s.state_dir == Path(".local/maintdesk") / "state"
    assert s.extra_headers["X-Title"] == "maintdesk"


def test_env_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-fallback")
    monkeypatch.setenv("MAINTDESK_LLM_MODEL", "  some/model  ")
    monkeypatch.setenv("MAINTDESK_LLM_READ_TIMEOUT_SECONDS", "not-a-number")
    monkeypatch.setenv("MAINTDESK_DATA_DIR", str(tmp_path))

    s = Settings.from_env()

    assert s.openrouter_api_key == "sk-fallback"
    assert s.llm_model == "some/model"
    assert s.llm_read_timeout_seconds == 60.0
    assert s.export_dir == tmp_path / "exports"
