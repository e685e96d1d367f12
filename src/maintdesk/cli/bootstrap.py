# src/maintdesk/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (model/storage/tasks/export).
"""

from __future__ import annotations

import logging
from typing import Any

from ..config import get_settings
from ..core.chat import ChatSession
from ..core.persona import get_system_instruction
from ..core.ports import KeyValueStore, ModelClient
from ..core.state import AppState
from ..core.tools import ToolRegistry
from ..core.transcript import Transcript
from ..export.sheet import FileDownloader, HtmlSheetExporter
from ..llm.client import OpenRouterModelClient
from ..llm.offline import OfflineModelClient
from ..storage.kv_store import JsonFileKVStore
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.state_dir.mkdir(parents=True, exist_ok=True)
    settings.export_dir.mkdir(parents=True, exist_ok=True)


def _make_model(settings) -> ModelClient:
    try:
        return OpenRouterModelClient(settings)
    except RuntimeError as e:
        # Fallback for demos / local runs without external services.
        logger.warning("%s Using offline model.", e)
        return OfflineModelClient()


def build_state(
    settings: Any,
    *,
    kv: KeyValueStore,
    model: ModelClient,
) -> AppState:
    """Wire an AppState from already-built collaborators (used by tests as well)."""
    exporter = HtmlSheetExporter(FileDownloader(settings.export_dir))
    task_store = TaskStore(kv, exporter)
    transcript = Transcript(kv)
    registry = ToolRegistry(task_store)
    session = ChatSession(
        model,
        registry,
        transcript,
        system_instruction=get_system_instruction(),
    )
    return AppState(
        settings=settings,
        model=model,
        task_store=task_store,
        transcript=transcript,
        registry=registry,
        session=session,
    )


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    return build_state(
        settings,
        kv=JsonFileKVStore(settings.state_dir),
        model=_make_model(settings),
    )
