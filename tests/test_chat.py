# tests/test_chat.py

from __future__ import annotations

import asyncio

import pytest

from maintdesk.core.chat import APOLOGY_TEXT, TurnPhase
from maintdesk.core.projection import ChatDisplayMessage, Sender
from maintdesk.core.state import AppState
from maintdesk.core.transcript import TRANSCRIPT_KEY, Role, ToolCallPart, ToolResultPart, Transcript, Turn
from maintdesk.tasks.task_models import TaskStatus

from .fakes import InMemoryKVStore, ScriptedModelClient, text_response, tool_response


@pytest.mark.asyncio
async def test_plain_reply(state: AppState, model: ScriptedModelClient) -> None:
    model.push(text_response("Hello! How can I help?"))

    await state.session.send_message("  hi  ")

    assert [t.role for t in state.session.turns] == [Role.USER, Role.MODEL]
    assert state.session.chat_log == [
        ChatDisplayMessage(Sender.USER, "hi"),
        ChatDisplayMessage(Sender.AI, "Hello! How can I help?"),
    ]
    assert len(model.calls) == 1
    sent_turns, config = model.calls[0]
    assert sent_turns == [Turn.user("hi")]
    assert {d["name"] for d in config.tool_declarations} >= {"addComplaint", "deleteTask"}
    assert "maintenance" in config.system_instruction


@pytest.mark.asyncio
async def test_blank_message_is_a_noop(state: AppState, model: ScriptedModelClient) -> None:
    await state.session.send_message("   ")
    assert state.session.turns == []
    assert model.calls == []


@pytest.mark.asyncio
async def test_add_complaint_flow(state: AppState, model: ScriptedModelClient) -> None:
    model.push(
        tool_response(("addComplaint", {"id": 5, "description": "leaking faucet"})),
        text_response("Task 5 'leaking faucet' has been added."),
    )

    await state.session.send_message("add a leaking faucet complaint, id 5")

    task = state.task_store.get_task(5)
    assert task is not None
    assert task.status is TaskStatus.PENDING
    assert task.assigned_to == "Unassigned"
    assert state.task_store.tasks[0].id == 5

    turns = state.session.turns
    assert [t.role for t in turns] == [Role.USER, Role.MODEL, Role.TOOL, Role.MODEL]
    assert turns[1].tool_calls() == [ToolCallPart("addComplaint", {"id": 5, "description": "leaking faucet"}, "call_0")]
    result = turns[2].parts[0]
    assert isinstance(result, ToolResultPart)
    assert result.response["success"] is True
    assert result.call_id == "call_0"

    # The second model call sees the tool result.
    second_call_turns, _ = model.calls[1]
    assert second_call_turns[-1].role is Role.TOOL

    assert state.session.chat_log[-1] == ChatDisplayMessage(Sender.AI, "Task 5 'leaking faucet' has been added.")
    assert len(state.session.chat_log) == 2


@pytest.mark.asyncio
async def test_delete_existing_task(state: AppState, model: ScriptedModelClient) -> None:
    state.task_store.add_complaint(5, "leaking faucet")
    model.push(
        text_response("Are you sure you want to delete task ID 5? This action cannot be undone."),
        tool_response(("deleteTask", {"taskId": 5})),
        text_response("Task 5 has been deleted."),
    )

    await state.session.send_message("delete task 5")
    assert state.task_store.get_task(5) is not None

    await state.session.send_message("yes")
    assert state.task_store.get_task(5) is None
    assert state.session.chat_log[-1].text == "Task 5 has been deleted."


@pytest.mark.asyncio
async def test_delete_missing_task_relays_failure(state: AppState, model: ScriptedModelClient) -> None:
    before = state.task_store.tasks
    model.push(
        tool_response(("deleteTask", {"taskId": 999})),
        text_response("I couldn't find task 999."),
    )

    await state.session.send_message("delete task 999")

    tool_turn = state.session.turns[2]
    result = tool_turn.parts[0]
    assert isinstance(result, ToolResultPart)
    assert result.response == {"success": False, "message": "Task with ID 999 not found."}
    assert state.task_store.tasks == before
    assert state.session.chat_log[-1].text == "I couldn't find task 999."


@pytest.mark.asyncio
async def test_model_failure_appends_single_apology(state: AppState, model: ScriptedModelClient) -> None:
    model.push(text_response("hello"))
    await state.session.send_message("hi")

    model.push(RuntimeError("network down"))
    await state.session.send_message("list tasks")

    turns = state.session.turns
    assert [t.role for t in turns] == [Role.USER, Role.MODEL, Role.USER, Role.MODEL]
    assert turns[-1] == Turn.model(APOLOGY_TEXT)
    assert not state.session.is_loading
    assert state.session.phase is TurnPhase.IDLE


@pytest.mark.asyncio
async def test_failure_after_tool_discards_partial_turns(state: AppState, model: ScriptedModelClient) -> None:
    model.push(
        tool_response(("addComplaint", {"id": 5, "description": "leaking faucet"})),
        RuntimeError("second call failed"),
    )

    await state.session.send_message("add task 5")

    turns = state.session.turns
    assert [t.role for t in turns] == [Role.USER, Role.MODEL]
    assert turns[-1] == Turn.model(APOLOGY_TEXT)
    # Task store side effects already happened; only the transcript is rolled back.
    assert state.task_store.get_task(5) is not None


@pytest.mark.asyncio
async def test_unknown_tool_is_fatal_for_the_turn(
    state: AppState, model: ScriptedModelClient, caplog: pytest.LogCaptureFixture
) -> None:
    model.push(tool_response(("launchRocket", {"target": "moon"})))

    await state.session.send_message("launch")

    assert [t.role for t in state.session.turns] == [Role.USER, Role.MODEL]
    assert state.session.turns[-1] == Turn.model(APOLOGY_TEXT)
    assert len(model.calls) == 1
    assert "launchRocket" in caplog.text


@pytest.mark.asyncio
async def test_only_first_tool_call_is_honored(state: AppState, model: ScriptedModelClient) -> None:
    model.push(
        tool_response(
            ("addComplaint", {"id": 10, "description": "first"}),
            ("addComplaint", {"id": 11, "description": "second"}),
        ),
        text_response("Added task 10."),
    )

    await state.session.send_message("add two tasks")

    assert state.task_store.get_task(10) is not None
    assert state.task_store.get_task(11) is None
    model_turn = state.session.turns[1]
    assert [p.name for p in model_turn.tool_calls()] == ["addComplaint"]
    assert model_turn.tool_calls()[0].args["id"] == 10


@pytest.mark.asyncio
async def test_tool_call_with_text_keeps_text_in_chat_log(state: AppState, model: ScriptedModelClient) -> None:
    model.push(
        tool_response(("getTasks", {}), text="Let me check."),
        text_response("You have 4 tasks."),
    )

    await state.session.send_message("how many tasks?")

    assert [m.text for m in state.session.chat_log] == ["how many tasks?", "Let me check.", "You have 4 tasks."]


@pytest.mark.asyncio
async def test_user_turn_visible_while_loading(state: AppState) -> None:
    gate = asyncio.Event()
    seen: dict[str, object] = {}

    class SlowModel:
        async def generate(self, turns, config):
            seen["log"] = state.session.chat_log
            seen["loading"] = state.session.is_loading
            seen["phase"] = state.session.phase
            await gate.wait()
            return text_response("done")

    state.session._model = SlowModel()  # type: ignore[assignment]

    task = asyncio.create_task(state.session.send_message("hi"))
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    # A second message while in flight is rejected.
    await state.session.send_message("again")

    gate.set()
    await task

    assert seen["log"] == [ChatDisplayMessage(Sender.USER, "hi")]
    assert seen["loading"] is True
    assert seen["phase"] is TurnPhase.AWAITING_FIRST_RESPONSE
    assert [m.text for m in state.session.chat_log] == ["hi", "done"]
    assert not state.session.is_loading


@pytest.mark.asyncio
async def test_transcript_is_persisted_and_reloaded(state: AppState, kv: InMemoryKVStore, model: ScriptedModelClient) -> None:
    model.push(
        tool_response(("updateTask", {"taskId": 1, "status": "Completed"})),
        text_response("Task 1 is now Completed."),
    )

    await state.session.send_message("mark task 1 done")

    assert TRANSCRIPT_KEY in kv.data
    reloaded = Transcript(kv)
    assert reloaded.turns == state.session.turns


def test_corrupt_transcript_starts_empty(caplog: pytest.LogCaptureFixture) -> None:
    t = Transcript(InMemoryKVStore({TRANSCRIPT_KEY: "{broken"}))
    assert t.turns == []
    assert "Corrupt transcript" in caplog.text


@pytest.mark.asyncio
async def test_history_is_replayed_on_every_call(state: AppState, model: ScriptedModelClient) -> None:
    model.push(text_response("one"), text_response("two"))

    await state.session.send_message("first")
    await state.session.send_message("second")

    second_call_turns, _ = model.calls[1]
    assert [t.text() for t in second_call_turns] == ["first", "one", "second"]


def test_transcript_append_persists_and_notifies(kv: InMemoryKVStore) -> None:
    t = Transcript(kv)
    seen: list[int] = []
    unsubscribe = t.subscribe(lambda turns: seen.append(len(turns)))

    t.append(Turn.user("hi"))
    unsubscribe()
    t.append(Turn.model("hello"))

    assert seen == [1]
    assert Transcript(kv).turns == [Turn.user("hi"), Turn.model("hello")]
