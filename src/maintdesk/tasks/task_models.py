# src/maintdesk/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

UNASSIGNED = "Unassigned"


class TaskStatus(StrEnum):
    """
    Task lifecycle status.

    Values are the exact strings used on the wire: tool enums, persisted JSON
    and exported sheets all carry them verbatim.
    """

    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"

    @classmethod
    def parse(cls, raw: Any) -> TaskStatus:
        """Accept a wire value or a loose spelling ("in_progress", "completed")."""
        if isinstance(raw, TaskStatus):
            return raw
        s = str(raw or "").strip()
        try:
            return cls(s)
        except ValueError:
            pass
        norm = s.lower().replace("_", " ").replace("-", " ")
        for member in cls:
            if member.value.lower() == norm:
                return member
        raise ValueError(f"Unknown task status: {raw!r}")


@dataclass(slots=True)
class Task:
    id: int
    description: str
    status: TaskStatus
    assigned_to: str
    date: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "status": self.status.value,
            "assignedTo": self.assigned_to,
            "date": self.date,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        description = str(data["description"])
        if not description.strip():
            raise ValueError("description is required")
        return cls(
            id=int(data["id"]),
            description=description,
            status=TaskStatus.parse(data.get("status")),
            assigned_to=str(data.get("assignedTo") or UNASSIGNED),
            date=str(data.get("date") or ""),
        )


@dataclass(slots=True)
class ToolResult:
    """
    Structured outcome of a store operation / tool handler.

    Validation failures are reported here instead of raised, so the model can
    explain them conversationally.
    """

    success: bool
    message: str
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, message: str, **extra: Any) -> ToolResult:
        return cls(True, message, extra)

    @classmethod
    def fail(cls, message: str, **extra: Any) -> ToolResult:
        return cls(False, message, extra)

    def to_dict(self) -> dict[str, Any]:
        return {"success": self.success, "message": self.message, **self.extra}
