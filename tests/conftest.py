# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from maintdesk.cli.bootstrap import build_state
from maintdesk.core.state import AppState
from maintdesk.tasks.task_store import TaskStore

from .fakes import InMemoryKVStore, RecordingExporter, ScriptedModelClient


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and core modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="maintdesk",
        llm_model="test-model",
        export_dir=tmp_path / "exports",
    )


@pytest.fixture()
def kv() -> InMemoryKVStore:
    return InMemoryKVStore()


@pytest.fixture()
def model() -> ScriptedModelClient:
    return ScriptedModelClient()


@pytest.fixture()
def exporter(tmp_path: Path) -> RecordingExporter:
    return RecordingExporter(directory=tmp_path)


@pytest.fixture()
def store(kv: InMemoryKVStore, exporter: RecordingExporter) -> TaskStore:
    """Empty TaskStore (no default tasks) over an in-memory kv store."""
    return TaskStore(kv, exporter, default_tasks=())


@pytest.fixture()
def state(settings: SimpleNamespace, kv: InMemoryKVStore, model: ScriptedModelClient) -> AppState:
    """
    AppState wired with deterministic fakes.

    NOTE: the real TaskStore/Transcript/ToolRegistry/ChatSession are used,
    because their interplay is what we want to test. Starts from the default task list.
    """
    return build_state(settings, kv=kv, model=model)
