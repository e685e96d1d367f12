# src/maintdesk/core/tools.py

"""
Tool registry.

A closed set of tools the model may call. Each tool is described once by a
ToolSpec (name, description, ordered parameters, invocation type) and that
description drives both:
- the declarations sent to the model, and
- argument binding: raw model args are validated and bound in the declared
  parameter order into a typed invocation record.

Handlers are all async so the orchestration loop awaits every tool the same way.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any, Final

from ..tasks.task_models import TaskStatus, ToolResult
from ..tasks.task_store import TaskStore
from .ports import ToolCall

logger = logging.getLogger(__name__)

_STATUS_VALUES: Final[tuple[str, ...]] = tuple(s.value for s in TaskStatus)


class ToolError(Exception):
    """Base class for tool registry errors."""


class UnknownToolError(ToolError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Function {name} not found.")
        self.name = name


class ToolArgumentError(ToolError):
    """Model-supplied arguments do not match the tool's declared schema."""


# ---- typed invocations ----


@dataclass(frozen=True, slots=True)
class AddComplaint:
    task_id: int
    description: str
    assigned_to: str | None = None


@dataclass(frozen=True, slots=True)
class UpdateTask:
    task_id: int
    status: TaskStatus | None = None
    assigned_to: str | None = None


@dataclass(frozen=True, slots=True)
class DeleteTask:
    task_id: int


@dataclass(frozen=True, slots=True)
class GetTasks:
    status: TaskStatus | None = None


@dataclass(frozen=True, slots=True)
class ExportTask:
    task_id: int


@dataclass(frozen=True, slots=True)
class ExportAllTasks:
    pass


ToolInvocation = AddComplaint | UpdateTask | DeleteTask | GetTasks | ExportTask | ExportAllTasks


# ---- declarations ----


@dataclass(frozen=True, slots=True)
class ParamSpec:
    name: str
    type: str  # "number" | "string"
    description: str
    required: bool = False
    enum: tuple[str, ...] | None = None


@dataclass(frozen=True, slots=True)
class ToolSpec:
    name: str
    description: str
    params: tuple[ParamSpec, ...]
    invocation: type

    def declaration(self) -> dict[str, Any]:
        properties: dict[str, Any] = {}
        for p in self.params:
            prop: dict[str, Any] = {"type": p.type, "description": p.description}
            if p.enum:
                prop["enum"] = list(p.enum)
            properties[p.name] = prop

        parameters: dict[str, Any] = {"type": "object", "properties": properties}
        required = [p.name for p in self.params if p.required]
        if required:
            parameters["required"] = required

        return {"name": self.name, "description": self.description, "parameters": parameters}


_STATUS_HINT = ", ".join(_STATUS_VALUES)

TOOL_SPECS: Final[tuple[ToolSpec, ...]] = (
    ToolSpec(
        name="addComplaint",
        description="Adds a new maintenance complaint to the system. Use this only for creating brand new tasks.",
        params=(
            ParamSpec("id", "number", "A unique numeric ID for the new task.", required=True),
            ParamSpec("description", "string", "A detailed description of the complaint.", required=True),
            ParamSpec(
                "assignedTo",
                "string",
                'The name of the person assigned to the task. Defaults to "Unassigned" if not provided.',
            ),
        ),
        invocation=AddComplaint,
    ),
    ToolSpec(
        name="updateTask",
        description="Updates an existing maintenance task. Can be used to change the status or the assignee.",
        params=(
            ParamSpec("taskId", "number", "The ID of the task to update.", required=True),
            ParamSpec(
                "status",
                "string",
                f"The new status of the task. Must be one of: {_STATUS_HINT}",
                enum=_STATUS_VALUES,
            ),
            ParamSpec("assignedTo", "string", "The name of the new person assigned to the task."),
        ),
        invocation=UpdateTask,
    ),
    ToolSpec(
        name="deleteTask",
        description="Deletes a maintenance task from the system.",
        params=(ParamSpec("taskId", "number", "The ID of the task to delete.", required=True),),
        invocation=DeleteTask,
    ),
    ToolSpec(
        name="getTasks",
        description="Retrieves a list of maintenance tasks, optionally filtered by status.",
        params=(
            ParamSpec(
                "status",
                "string",
                f"The status to filter tasks by. If omitted, all tasks are returned. Must be one of: {_STATUS_HINT}",
                enum=_STATUS_VALUES,
            ),
        ),
        invocation=GetTasks,
    ),
    ToolSpec(
        name="createGoogleSheetForTask",
        description=(
            "Creates a downloadable, styled spreadsheet (.xls file) with the details of a specific task. "
            "Statuses are color-coded for easy viewing."
        ),
        params=(ParamSpec("taskId", "number", "The ID of the task to create a spreadsheet for.", required=True),),
        invocation=ExportTask,
    ),
    ToolSpec(
        name="createGoogleSheetForAllTasks",
        description=(
            "Creates a single downloadable, styled spreadsheet (.xls file) containing all tasks. "
            "Statuses are color-coded for easy viewing."
        ),
        params=(),
        invocation=ExportAllTasks,
    ),
)


# ---- argument binding ----


def _coerce_number(tool: str, param: ParamSpec, raw: Any) -> int:
    if isinstance(raw, bool):
        raise ToolArgumentError(f"{tool}: '{param.name}' must be a number, got {raw!r}.")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float) and raw.is_integer():
        return int(raw)
    if isinstance(raw, str):
        s = raw.strip()
        try:
            return int(s)
        except ValueError:
            try:
                f = float(s)
            except ValueError:
                f = None
            if f is not None and f.is_integer():
                return int(f)
    raise ToolArgumentError(f"{tool}: '{param.name}' must be a whole number, got {raw!r}.")


def _coerce(tool: str, param: ParamSpec, raw: Any) -> Any:
    if param.type == "number":
        return _coerce_number(tool, param, raw)

    if not isinstance(raw, str):
        raise ToolArgumentError(f"{tool}: '{param.name}' must be a string, got {raw!r}.")

    if param.enum:
        try:
            return TaskStatus.parse(raw)
        except ValueError:
            raise ToolArgumentError(
                f"{tool}: '{param.name}' must be one of: {', '.join(param.enum)} (got {raw!r})."
            ) from None
    return raw


def bind_arguments(spec: ToolSpec, args: Mapping[str, Any]) -> ToolInvocation:
    """
    Validate args and build the invocation positionally, in declared order.

    Absent, null and blank optional values are treated as "not supplied".
    """
    values: list[Any] = []
    for param in spec.params:
        raw = args.get(param.name)
        if raw is None or (isinstance(raw, str) and not raw.strip() and not param.required):
            if param.required:
                raise ToolArgumentError(f"{spec.name}: missing required argument '{param.name}'.")
            values.append(None)
            continue
        values.append(_coerce(spec.name, param, raw))

    extra = set(args) - {p.name for p in spec.params}
    if extra:
        logger.debug("Ignoring unexpected args for %s: %s", spec.name, sorted(extra))

    return spec.invocation(*values)


# ---- registry ----

ToolHandler = Callable[[Any], Awaitable[ToolResult]]


class ToolRegistry:
    """Maps tool names to specs and typed invocations to async handlers over a TaskStore."""

    def __init__(self, store: TaskStore, specs: tuple[ToolSpec, ...] = TOOL_SPECS) -> None:
        self._store = store
        self._specs: dict[str, ToolSpec] = {s.name: s for s in specs}
        self._handlers: dict[type, ToolHandler] = {
            AddComplaint: self._add_complaint,
            UpdateTask: self._update_task,
            DeleteTask: self._delete_task,
            GetTasks: self._get_tasks,
            ExportTask: self._export_task,
            ExportAllTasks: self._export_all_tasks,
        }

        declared = {s.invocation for s in specs}
        if declared != set(self._handlers):
            raise RuntimeError("Tool specs and handlers are out of sync.")

    @property
    def names(self) -> list[str]:
        return list(self._specs)

    def declarations(self) -> list[dict[str, Any]]:
        return [s.declaration() for s in self._specs.values()]

    def spec_for(self, name: str) -> ToolSpec:
        spec = self._specs.get(name)
        if spec is None:
            raise UnknownToolError(name)
        return spec

    def parse(self, call: ToolCall) -> ToolInvocation:
        return bind_arguments(self.spec_for(call.name), call.args)

    async def dispatch(self, invocation: ToolInvocation) -> ToolResult:
        handler = self._handlers.get(type(invocation))
        if handler is None:
            raise UnknownToolError(type(invocation).__name__)
        return await handler(invocation)

    async def execute(self, call: ToolCall) -> dict[str, Any]:
        """
        Run a model-requested tool call and return the result payload.

        Unknown tools raise UnknownToolError (fatal for the turn).
        Bad arguments become a failed result the model can explain.
        """
        spec = self.spec_for(call.name)
        try:
            invocation = bind_arguments(spec, call.args)
        except ToolArgumentError as e:
            logger.info("Rejected tool args: %s", e)
            return ToolResult.fail(str(e)).to_dict()

        logger.info("Tool call: %s", invocation)
        result = await self.dispatch(invocation)
        logger.info("Tool result: %s success=%s", call.name, result.success)
        return result.to_dict()

    # ---- handlers ----

    async def _add_complaint(self, inv: AddComplaint) -> ToolResult:
        return self._store.add_complaint(inv.task_id, inv.description, inv.assigned_to)

    async def _update_task(self, inv: UpdateTask) -> ToolResult:
        return self._store.update_task(inv.task_id, inv.status, inv.assigned_to)

    async def _delete_task(self, inv: DeleteTask) -> ToolResult:
        return self._store.delete_task(inv.task_id)

    async def _get_tasks(self, inv: GetTasks) -> ToolResult:
        return self._store.get_tasks(inv.status)

    async def _export_task(self, inv: ExportTask) -> ToolResult:
        return await self._store.export_task(inv.task_id)

    async def _export_all_tasks(self, inv: ExportAllTasks) -> ToolResult:
        return await self._store.export_all_tasks()
