# tests/test_kv_store.py

from __future__ import annotations

from pathlib import Path

import pytest

from maintdesk.cli.bootstrap import build_state
from maintdesk.storage.kv_store import JsonFileKVStore
from maintdesk.tasks.task_store import TaskStore

from .fakes import ScriptedModelClient, text_response


def test_get_missing_returns_none(tmp_path: Path) -> None:
    assert JsonFileKVStore(tmp_path).get("tasks") is None


def test_set_then_get(tmp_path: Path) -> None:
    kv = JsonFileKVStore(tmp_path / "state")
    kv.set("tasks", '[{"id": 1}]')
    assert kv.get("tasks") == '[{"id": 1}]'
    assert (tmp_path / "state" / "tasks.json").exists()
    assert not (tmp_path / "state" / "tasks.tmp").exists()


def test_rejects_path_like_keys(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        JsonFileKVStore(tmp_path).get("../escape")


def test_task_store_survives_restart(tmp_path: Path) -> None:
    s1 = TaskStore(JsonFileKVStore(tmp_path), default_tasks=())
    s1.add_complaint(5, "Leaking faucet")

    s2 = TaskStore(JsonFileKVStore(tmp_path), default_tasks=())
    assert s2.tasks == s1.tasks


@pytest.mark.asyncio
async def test_app_state_restores_transcript(tmp_path: Path, settings) -> None:
    model = ScriptedModelClient([text_response("hello")])
    first = build_state(settings, kv=JsonFileKVStore(tmp_path), model=model)
    await first.session.send_message("hi")

    second = build_state(settings, kv=JsonFileKVStore(tmp_path), model=ScriptedModelClient())
    assert [m.text for m in second.session.chat_log] == ["hi", "hello"]
