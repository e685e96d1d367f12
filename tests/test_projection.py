# tests/test_projection.py

from __future__ import annotations

from maintdesk.core.projection import ChatDisplayMessage, Sender, project_chat_log
from maintdesk.core.transcript import Role, TextPart, ToolCallPart, Turn


def test_user_and_model_text() -> None:
    log = project_chat_log([Turn.user("hi"), Turn.model("hello")])
    assert log == [ChatDisplayMessage(Sender.USER, "hi"), ChatDisplayMessage(Sender.AI, "hello")]


def test_tool_turns_and_call_only_model_turns_are_skipped() -> None:
    turns = [
        Turn.user("delete task 3"),
        Turn(Role.MODEL, (ToolCallPart("deleteTask", {"taskId": 3}, "c1"),)),
        Turn.tool_result("deleteTask", {"success": True, "message": "ok"}, "c1"),
        Turn.model("Task 3 has been deleted."),
    ]
    assert project_chat_log(turns) == [
        ChatDisplayMessage(Sender.USER, "delete task 3"),
        ChatDisplayMessage(Sender.AI, "Task 3 has been deleted."),
    ]


def test_tool_turn_between_two_model_texts() -> None:
    turns = [
        Turn(Role.MODEL, (TextPart("Checking..."), ToolCallPart("getTasks", {}, "c1"))),
        Turn.tool_result("getTasks", {"success": True, "message": "Found 0 task(s).", "tasks": []}, "c1"),
        Turn.model("There are no tasks."),
    ]
    assert [m.text for m in project_chat_log(turns)] == ["Checking...", "There are no tasks."]


def test_model_turn_uses_first_text_part() -> None:
    turn = Turn(Role.MODEL, (ToolCallPart("getTasks", {}), TextPart("first"), TextPart("second")))
    assert project_chat_log([turn]) == [ChatDisplayMessage(Sender.AI, "first")]


def test_empty_model_turn_yields_nothing() -> None:
    assert project_chat_log([Turn(Role.MODEL, ())]) == []
