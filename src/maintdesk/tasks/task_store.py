# src/maintdesk/tasks/task_store.py

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import date

from ..core.ports import KeyValueStore, SheetExporter
from .task_models import UNASSIGNED, Task, TaskStatus, ToolResult

logger = logging.getLogger(__name__)

TASKS_KEY = "tasks"

TaskListener = Callable[[list[Task]], None]

DEFAULT_TASKS: tuple[Task, ...] = (
    Task(1, "Leaking pipe under the sink in the 2nd floor kitchen", TaskStatus.PENDING, "John Doe", "2024-07-28"),
    Task(2, "Flickering lights in the main conference room", TaskStatus.IN_PROGRESS, "Jane Smith", "2024-07-27"),
    Task(3, "Broken air conditioning unit in office 305", TaskStatus.COMPLETED, "Mike Johnson", "2024-07-26"),
    Task(4, "Jammed printer on the 1st floor", TaskStatus.PENDING, UNASSIGNED, "2024-07-28"),
)


class TaskStore:
    """
    In-memory, ordered task collection (most recent first).

    Persistence is opaque: the whole collection is written as JSON under one
    key after every successful mutation. Load happens once, here.

    Operations never raise on bad input; they return a ToolResult so the
    failure can be fed back to the model.
    """

    def __init__(
        self,
        kv: KeyValueStore,
        exporter: SheetExporter | None = None,
        *,
        key: str = TASKS_KEY,
        default_tasks: Iterable[Task] = DEFAULT_TASKS,
    ) -> None:
        self._kv = kv
        self._exporter = exporter
        self._key = key
        self._defaults = [replace(t) for t in default_tasks]
        self._tasks: list[Task] = self._load()
        self._listeners: list[TaskListener] = []
        logger.info("TaskStore ready key=%s total=%d", self._key, len(self._tasks))

    # ---- persistence ----

    def _load(self) -> list[Task]:
        try:
            raw = self._kv.get(self._key)
        except Exception:
            logger.exception("Failed to read tasks key=%s; using defaults.", self._key)
            return [replace(t) for t in self._defaults]

        if raw is None:
            return [replace(t) for t in self._defaults]

        try:
            tasks = loads_tasks(raw)
        except Exception:
            logger.exception("Corrupt task data under key=%s; using defaults.", self._key)
            return [replace(t) for t in self._defaults]
        return tasks

    def _save(self) -> None:
        try:
            self._kv.set(self._key, dumps_tasks(self._tasks))
        except Exception:
            logger.exception("Failed to persist tasks key=%s", self._key)

    def _commit(self) -> None:
        self._save()
        snapshot = self.tasks
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Task listener failed.")

    # ---- observers ----

    def subscribe(self, listener: TaskListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ---- queries ----

    @property
    def tasks(self) -> list[Task]:
        """Snapshot copy; callers cannot mutate the store through it."""
        return [replace(t) for t in self._tasks]

    def _find(self, task_id: int) -> Task | None:
        for t in self._tasks:
            if t.id == task_id:
                return t
        return None

    def get_task(self, task_id: int) -> Task | None:
        t = self._find(task_id)
        return replace(t) if t is not None else None

    def get_tasks(self, status: TaskStatus | None = None) -> ToolResult:
        if status is None:
            found = self.tasks
        else:
            found = [replace(t) for t in self._tasks if t.status == status]
        return ToolResult.ok(
            f"Found {len(found)} task(s).",
            tasks=[t.to_dict() for t in found],
        )

    # ---- mutations ----

    def add_complaint(
        self,
        task_id: int,
        description: str,
        assigned_to: str | None = None,
    ) -> ToolResult:
        if self._find(task_id) is not None:
            return ToolResult.fail(f"Task with ID {task_id} already exists. Please use a unique ID.")

        description = (description or "").strip()
        if not description:
            return ToolResult.fail("A task description is required.")

        task = Task(
            id=task_id,
            description=description,
            status=TaskStatus.PENDING,
            assigned_to=(assigned_to or "").strip() or UNASSIGNED,
            date=date.today().isoformat(),
        )
        self._tasks.insert(0, task)
        logger.info("Task added id=%s assigned_to=%s", task.id, task.assigned_to)
        self._commit()
        return ToolResult.ok(
            f"Complaint '{description}' added with ID {task_id}.",
            taskId=task_id,
        )

    def update_task(
        self,
        task_id: int,
        status: TaskStatus | None = None,
        assigned_to: str | None = None,
    ) -> ToolResult:
        task = self._find(task_id)
        if task is None:
            return ToolResult.fail(f"Task with ID {task_id} not found.")

        if status is None and not assigned_to:
            return ToolResult.fail(f"No updates provided for task ID {task_id}.")

        if status is not None:
            task.status = status
        if assigned_to:
            task.assigned_to = assigned_to
        logger.info("Task updated id=%s status=%s assigned_to=%s", task_id, task.status, task.assigned_to)
        self._commit()
        return ToolResult.ok(
            f"Task ID {task_id} has been updated.",
            task=task.to_dict(),
        )

    def delete_task(self, task_id: int) -> ToolResult:
        task = self._find(task_id)
        if task is None:
            return ToolResult.fail(f"Task with ID {task_id} not found.")

        self._tasks.remove(task)
        logger.info("Task deleted id=%s", task_id)
        self._commit()
        return ToolResult.ok(f"Task ID {task_id} has been deleted.")

    # ---- export ----

    async def export_task(self, task_id: int) -> ToolResult:
        task = self.get_task(task_id)
        if task is None:
            return ToolResult.fail(f"Task with ID {task_id} not found.")
        if self._exporter is None:
            return ToolResult.fail("Spreadsheet export is not configured.")

        path = await self._exporter.export(
            [task],
            title=f"Details for Task ID: {task_id}",
            filename=f"task-{task_id}-details.xls",
        )
        return ToolResult.ok(
            f"A styled spreadsheet for task {task_id} has been downloaded.",
            file=str(path),
        )

    async def export_all_tasks(self) -> ToolResult:
        tasks = self.tasks
        if not tasks:
            return ToolResult.fail("There are no tasks to export.")
        if self._exporter is None:
            return ToolResult.fail("Spreadsheet export is not configured.")

        path = await self._exporter.export(tasks, title="All Tasks Report", filename="all-tasks-report.xls")
        return ToolResult.ok(
            f"A styled spreadsheet with all {len(tasks)} tasks has been downloaded.",
            file=str(path),
        )


def dumps_tasks(tasks: Iterable[Task]) -> str:
    return json.dumps([t.to_dict() for t in tasks], ensure_ascii=False)


def loads_tasks(raw: str) -> list[Task]:
    data = json.loads(raw)
    if not isinstance(data, list):
        raise ValueError("task payload must be a JSON list")
    tasks = [Task.from_dict(item) for item in data]
    ids = [t.id for t in tasks]
    if len(ids) != len(set(ids)):
        raise ValueError("duplicate task ids in payload")
    return tasks
