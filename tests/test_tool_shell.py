"""Tests for shell command execution."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from deputy.agent.tools.shell import ExecCommandTool, command_program
from deputy.core.errors import ExecutionFailedError, InvalidArgumentsError


@pytest.fixture
def tool(tmp_path: Path):
    """Create an exec tool rooted in a temporary workspace."""
    return ExecCommandTool(tmp_path)


@pytest.fixture
def io():
    return MagicMock()


def test_exec_tool_properties(tool):
    """Test basic structure."""
    assert tool.name == "exec_command"
    assert tool.input_schema["required"] == ["command"]


def test_command_program():
    """Test the fingerprint is the first shell token, taken verbatim."""
    assert command_program("ls -la") == "ls"
    assert command_program("  git   status") == "git"
    assert command_program("'my tool' --flag") == "my tool"
    assert command_program("FOO=1 make") == "FOO=1"
    assert command_program("echo 'unbalanced") == "echo"
    with pytest.raises(InvalidArgumentsError):
        command_program("   ")


def test_permission_and_preview(tool, io):
    """Test fingerprint and preview, including malformed arguments."""
    assert tool.permission_id({"command": "cargo build --release"}) == "cargo"
    with pytest.raises(InvalidArgumentsError):
        tool.permission_id({"cmd": "ls"})

    tool.ask_permission({"command": "cargo build"}, io)
    io.show_message.assert_called_with("exec_command", "$ cargo build")

    tool.ask_permission({"cmd": "ls"}, io)
    io.show_message.assert_called_with("exec_command", "$ <command could not be parsed>")


@pytest.mark.asyncio
async def test_exec_stdout(tool, io):
    """Test stdout is captured and a snippet is shown."""
    result = await tool.call({"command": "echo hello"}, io)

    assert result == "STDOUT:\nhello\n"
    io.show_message.assert_called_once_with("exec_command", "STDOUT:\nhello")


@pytest.mark.asyncio
async def test_exec_runs_in_workspace(tool, io, tmp_path: Path):
    """Test commands run from the workspace directory."""
    (tmp_path / "marker.txt").write_text("x")

    result = await tool.call({"command": "ls"}, io)

    assert "marker.txt" in result


@pytest.mark.asyncio
async def test_exec_stderr_and_exit_code(tool, io):
    """Test stderr and a nonzero exit code are reported, not raised."""
    result = await tool.call({"command": "echo oops >&2; exit 3"}, io)

    assert "STDERR:\noops" in result
    assert result.endswith("Exit code: 3")


@pytest.mark.asyncio
async def test_exec_no_output(tool, io):
    """Test a silent successful command."""
    assert await tool.call({"command": "true"}, io) == "(no output)"


@pytest.mark.asyncio
async def test_exec_timeout(tmp_path: Path, io):
    """Test long-running commands are killed."""
    tool = ExecCommandTool(tmp_path, timeout_s=1)

    with pytest.raises(ExecutionFailedError, match="timed out"):
        await tool.call({"command": "exec sleep 10"}, io)


@pytest.mark.asyncio
async def test_exec_command_with_null_byte(tool, io):
    """Test a command the OS cannot accept is a failed execution."""
    with pytest.raises(ExecutionFailedError, match="failed to start command"):
        await tool.call({"command": "echo a\x00b"}, io)
