# src/maintdesk/connectors/dashboard.py

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from typing import Final

from ..tasks.task_models import Task, TaskStatus

DASHBOARD_TITLE: Final[str] = "Maintenance Dashboard"

FILTERS: Final[dict[str, TaskStatus | None]] = {
    "all": None,
    "pending": TaskStatus.PENDING,
    "in-progress": TaskStatus.IN_PROGRESS,
    "completed": TaskStatus.COMPLETED,
}


def parse_filter(raw: str | None) -> TaskStatus | None:
    """'all' / missing -> None; otherwise a status (loose spelling accepted)."""
    key = (raw or "all").strip().lower()
    if key in FILTERS:
        return FILTERS[key]
    return TaskStatus.parse(key)


def _task_line(task: Task) -> str:
    return f"  #{task.id:<4} [{task.status.value}] {task.description}  (Assigned: {task.assigned_to}, {task.date})"


def render_dashboard(tasks: Sequence[Task], status_filter: TaskStatus | None = None) -> str:
    counts = Counter(t.status for t in tasks)
    label = status_filter.value if status_filter is not None else "All"

    lines = [
        f"{DASHBOARD_TITLE} [{label}]",
        " | ".join(f"{s.value}: {counts.get(s, 0)}" for s in TaskStatus),
    ]

    shown = [t for t in tasks if status_filter is None or t.status == status_filter]
    if not shown:
        lines.append("  No tasks found for this filter.")
    else:
        lines.extend(_task_line(t) for t in shown)
    return "\n".join(lines)
