"""Tests for the Session turn loop."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from deputy.agent.session import CANCELLED_OUTPUT, DENIED_OUTPUT, Session
from deputy.agent.tools import ListFilesTool, ReadFilesTool, ToolRegistry, WriteFileTool
from deputy.core.errors import (
    AuthenticationError,
    ExecutionFailedError,
    RateLimitError,
    ToolNotFoundError,
    UserInputError,
)
from deputy.core.messages import ModelMessage, ToolCall, ToolResult, UserMessage


def make_tool(name: str, output: str = "ok", fingerprint: str | None = None) -> MagicMock:
    """A tool double whose call is awaitable."""
    tool = MagicMock()
    tool.name = name
    tool.permission_id.return_value = fingerprint or name
    tool.call = AsyncMock(return_value=output)
    return tool


@pytest.fixture
def io():
    """IO double that allows once by default."""
    io = MagicMock()
    io.get_user_input.return_value = "1"
    return io


@pytest.fixture
def model():
    model = AsyncMock()
    return model


@pytest.mark.asyncio
async def test_turn_without_tool_calls(model, io):
    """Test a plain text reply ends the turn after one model call."""
    model.send_message.side_effect = [[ModelMessage("Hi there")]]
    session = Session(model, ToolRegistry(), io)

    await session.send_message(UserMessage("hello"))

    assert session.history == (UserMessage("hello"), ModelMessage("Hi there"))
    model.send_message.assert_awaited_once_with(UserMessage("hello"), [])
    io.show_message.assert_called_once_with("Deputy", "Hi there")


@pytest.mark.asyncio
async def test_list_files_scenario(model, io, tmp_path: Path):
    """Test the tool round trip: user, tool call, tool result, final answer."""
    (tmp_path / "a.txt").write_text("data")
    tools = ToolRegistry([ListFilesTool(tmp_path)])
    call = ToolCall(name="list_files_tool", arguments={"path": ""}, id="toolu_1")
    model.send_message.side_effect = [[call], [ModelMessage("There is one file.")]]
    session = Session(model, tools, io, auto_approve=True)

    await session.send_message(UserMessage("list files"))

    history = session.history
    assert len(history) == 4
    assert history[0] == UserMessage("list files")
    assert history[1] == call
    assert isinstance(history[2], ToolResult)
    assert history[2].id == "toolu_1"
    assert history[2].is_error is False
    assert "a.txt" in history[2].output
    assert history[3] == ModelMessage("There is one file.")

    second_message, second_history = model.send_message.await_args_list[1].args
    assert [*second_history, second_message] == [UserMessage("list files"), call, history[2]]


@pytest.mark.asyncio
async def test_batch_denial_cancels_remaining_calls(model, io):
    """Test A allowed, B denied, C cancelled without ever running."""
    tool_a, tool_b, tool_c = make_tool("A", output="A done"), make_tool("B"), make_tool("C")
    io.get_user_input.side_effect = ["1", "3"]
    calls = [
        ToolCall(name="A", arguments={}, id="1"),
        ToolCall(name="B", arguments={}, id="2"),
        ToolCall(name="C", arguments={}, id="3"),
    ]
    model.send_message.side_effect = [calls]
    session = Session(model, ToolRegistry([tool_a, tool_b, tool_c]), io)

    await session.send_message(UserMessage("do things"))

    assert model.send_message.await_count == 1
    tool_a.call.assert_awaited_once()
    tool_b.call.assert_not_awaited()
    tool_c.call.assert_not_awaited()
    tool_c.permission_id.assert_not_called()
    tool_c.ask_permission.assert_not_called()

    assert session.history == (
        UserMessage("do things"),
        calls[0],
        ToolResult(output="A done", id="1"),
        calls[1],
        ToolResult(output=DENIED_OUTPUT, is_error=True, id="2"),
        calls[2],
        ToolResult(output=CANCELLED_OUTPUT, is_error=True, id="3"),
    )


@pytest.mark.asyncio
async def test_denied_last_call_ends_turn(model, io):
    """Test a denied single call is committed and not sent back to the model."""
    tool = make_tool("exec_command")
    io.get_user_input.return_value = "3"
    call = ToolCall(name="exec_command", arguments={"command": "rm -rf build"}, id="c1")
    model.send_message.side_effect = [[ModelMessage("Cleaning up."), call]]
    session = Session(model, ToolRegistry([tool]), io)

    await session.send_message(UserMessage("clean"))

    assert model.send_message.await_count == 1
    assert session.history == (
        UserMessage("clean"),
        ModelMessage("Cleaning up."),
        call,
        ToolResult(output=DENIED_OUTPUT, is_error=True, id="c1"),
    )


@pytest.mark.asyncio
async def test_tool_failure_becomes_error_result(model, io):
    """Test a failing tool produces an error result and the loop continues."""
    tool = make_tool("read_files")
    tool.call.side_effect = ExecutionFailedError("file not found: x")
    call = ToolCall(name="read_files", arguments={"paths": ["x"]}, id="r1")
    model.send_message.side_effect = [[call], [ModelMessage("That file is missing.")]]
    session = Session(model, ToolRegistry([tool]), io, auto_approve=True)

    await session.send_message(UserMessage("read x"))

    result = session.history[2]
    assert result == ToolResult(output="Tool execution failed: file not found: x", is_error=True, id="r1")
    assert session.history[-1] == ModelMessage("That file is missing.")
    assert model.send_message.await_args_list[1].args[0] == result


@pytest.mark.asyncio
async def test_batch_results_are_paired_in_order(model, io):
    """Test earlier pairs are committed and only the last result is sent as the new message."""
    tool_a, tool_b = make_tool("A", output="a"), make_tool("B", output="b")
    calls = [ToolCall(name="A", arguments={}, id="1"), ToolCall(name="B", arguments={}, id="2")]
    model.send_message.side_effect = [calls, [ModelMessage("done")]]
    session = Session(model, ToolRegistry([tool_a, tool_b]), io, auto_approve=True)

    await session.send_message(UserMessage("go"))

    second_message, second_history = model.send_message.await_args_list[1].args
    assert second_message == ToolResult(output="b", id="2")
    assert second_history == [UserMessage("go"), calls[0], ToolResult(output="a", id="1"), calls[1]]
    assert len(session.history) == 6


@pytest.mark.asyncio
async def test_unknown_tool_aborts_turn(model, io):
    """Test an unregistered tool name raises and leaves committed history in place."""
    model.send_message.side_effect = [[ToolCall(name="teleport", arguments={}, id="t")]]
    session = Session(model, ToolRegistry(), io)

    with pytest.raises(ToolNotFoundError):
        await session.send_message(UserMessage("beam me up"))

    assert session.history == (UserMessage("beam me up"),)


@pytest.mark.asyncio
async def test_model_error_keeps_committed_history(model, io):
    """Test a model failure mid-turn propagates without rolling history back."""
    tool = make_tool("A")
    call = ToolCall(name="A", arguments={}, id="1")
    model.send_message.side_effect = [[call], RateLimitError("slow down")]
    session = Session(model, ToolRegistry([tool]), io, auto_approve=True)

    with pytest.raises(RateLimitError):
        await session.send_message(UserMessage("go"))

    assert session.history == (UserMessage("go"), call)


@pytest.mark.asyncio
async def test_auto_approve_skips_permission(model, io):
    """Test auto-approve runs tools without fingerprints or prompts."""
    tool = make_tool("exec_command")
    model.send_message.side_effect = [[ToolCall(name="exec_command", arguments={}, id="1")], []]
    session = Session(model, ToolRegistry([tool]), io, auto_approve=True)

    await session.send_message(UserMessage("run it"))

    tool.call.assert_awaited_once()
    tool.permission_id.assert_not_called()
    tool.ask_permission.assert_not_called()
    io.get_user_input.assert_not_called()


@pytest.mark.asyncio
async def test_history_grows_across_turns(model, io):
    """Test each turn appends to the same history."""
    model.send_message.side_effect = [[ModelMessage("one")], [ModelMessage("two")]]
    session = Session(model, ToolRegistry(), io)

    await session.send_message(UserMessage("first"))
    await session.send_message(UserMessage("second"))

    assert len(session.history) == 4
    model.send_message.assert_awaited_with(UserMessage("second"), [UserMessage("first"), ModelMessage("one")])


@pytest.mark.asyncio
async def test_debug_echoes_tool_activity(model, io):
    """Test debug mode shows tool calls and results."""
    tool = make_tool("A", output="result text")
    model.send_message.side_effect = [[ToolCall(name="A", arguments={"x": 1}, id="1")], []]
    session = Session(model, ToolRegistry([tool]), io, auto_approve=True, debug=True)

    await session.send_message(UserMessage("go"))

    debug_texts = [c.args[1] for c in io.show_message.call_args_list if c.args[0] == "debug"]
    assert len(debug_texts) == 2
    assert "call A" in debug_texts[0]
    assert "result text" in debug_texts[1]


@pytest.mark.asyncio
async def test_run_reads_until_exit(model, io):
    """Test the interactive loop skips blank lines and stops on exit."""
    io.get_user_input.side_effect = ["hello", "   ", "exit", "never read"]
    model.send_message.side_effect = [[ModelMessage("hi")]]
    session = Session(model, ToolRegistry(), io)

    await session.run()

    model.send_message.assert_awaited_once_with(UserMessage("hello"), [])
    io.show_message.assert_any_call("You", "hello")
    assert io.get_user_input.call_count == 3


@pytest.mark.asyncio
async def test_run_reports_errors_and_continues(model, io):
    """Test a failed turn is shown to the user and the loop keeps going."""
    io.get_user_input.side_effect = ["first", "second", None]
    model.send_message.side_effect = [AuthenticationError("bad key"), [ModelMessage("ok")]]
    session = Session(model, ToolRegistry(), io)

    await session.run()

    io.show_message.assert_any_call("Error", "Model API error: Authentication failed: bad key")
    assert model.send_message.await_count == 2
    assert session.history[-1] == ModelMessage("ok")


@pytest.mark.asyncio
async def test_run_wraps_input_failures(model, io):
    """Test an IO read failure surfaces as a user input error."""
    io.get_user_input.side_effect = OSError("terminal closed")
    session = Session(model, ToolRegistry(), io)

    with pytest.raises(UserInputError, match="terminal closed"):
        await session.run()


@pytest.mark.asyncio
async def test_binary_file_edit_becomes_error_result(model, io, tmp_path: Path):
    """Test a ranged edit of a non-UTF-8 file is reported back to the model."""
    (tmp_path / "blob.bin").write_bytes(b"\xff\xfe\x00binary")
    call = ToolCall(
        name="write_file",
        arguments={"path": "blob.bin", "content": "x", "range": {"start": 1, "end": 1}},
        id="w1",
    )
    model.send_message.side_effect = [[call], [ModelMessage("That file is binary.")]]
    session = Session(model, ToolRegistry([WriteFileTool(tmp_path)]), io, auto_approve=True)

    await session.send_message(UserMessage("edit blob.bin"))

    result = session.history[2]
    assert result == ToolResult(
        output="Tool execution failed: cannot edit binary file: blob.bin", is_error=True, id="w1"
    )
    assert session.history[-1] == ModelMessage("That file is binary.")


@pytest.mark.asyncio
async def test_null_byte_path_becomes_error_result(model, io, tmp_path: Path):
    """Test a path the OS rejects is an invalid-arguments result, not a crash."""
    call = ToolCall(name="read_files", arguments={"paths": ["a\x00b"]}, id="r1")
    model.send_message.side_effect = [[call], [ModelMessage("Bad path.")]]
    session = Session(model, ToolRegistry([ReadFilesTool(tmp_path)]), io, auto_approve=True)

    await session.send_message(UserMessage("read it"))

    result = session.history[2]
    assert isinstance(result, ToolResult)
    assert result.id == "r1"
    assert result.is_error is True
    assert result.output.startswith("Invalid tool arguments: invalid path")
    assert model.send_message.await_args_list[1].args[0] == result


@pytest.mark.asyncio
async def test_null_byte_write_prompts_then_reports_error(model, io, tmp_path: Path):
    """Test an unresolvable write path still goes through the prompt and fails as a result."""
    call = ToolCall(name="write_file", arguments={"path": "a\x00b", "content": "x"}, id="w2")
    model.send_message.side_effect = [[call], [ModelMessage("Bad path.")]]
    session = Session(model, ToolRegistry([WriteFileTool(tmp_path)]), io)

    await session.send_message(UserMessage("write it"))

    io.get_user_input.assert_called_once()
    result = session.history[2]
    assert result.id == "w2"
    assert result.is_error is True
    assert "invalid path" in result.output
