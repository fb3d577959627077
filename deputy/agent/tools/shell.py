"""Shell command execution tool."""

from __future__ import annotations

import asyncio
import os
import shlex
from pathlib import Path
from typing import Any

from loguru import logger

from deputy.agent.tools.base import Tool
from deputy.core.errors import ExecutionFailedError, InvalidArgumentsError
from deputy.core.io import IO
from deputy.utils.helpers import truncate_output

MAX_OUTPUT_LENGTH = 10000
DEFAULT_TIMEOUT = 120
SNIPPET_LINES = 10


def command_program(command: str) -> str:
    """Return the first token of a shell command."""
    try:
        parts = shlex.split(command)
    except ValueError:
        parts = command.split()
    if not parts:
        raise InvalidArgumentsError("empty command")
    return parts[0]


class ExecCommandTool(Tool):
    """Run a shell command in the workspace."""

    def __init__(self, workspace: Path, timeout_s: int = DEFAULT_TIMEOUT) -> None:
        self.workspace = workspace.expanduser().resolve()
        self.timeout_s = timeout_s

    @property
    def name(self) -> str:
        return "exec_command"

    @property
    def description(self) -> str:
        return "Execute a bash command in the workspace directory and return stdout and stderr."

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "command": {
                    "type": "string",
                    "description": "The bash command to execute.",
                },
            },
            "required": ["command"],
        }

    def permission_id(self, args: Any) -> str:
        self.check_params(args)
        return command_program(args["command"])

    def ask_permission(self, args: Any, io: IO) -> None:
        if self.validate_params(args):
            io.show_message(self.name, "$ <command could not be parsed>")
            return
        io.show_message(self.name, f"$ {args['command']}")

    async def call(self, args: Any, io: IO) -> str:
        self.check_params(args)
        command = args["command"]
        logger.debug(f"ExecCommandTool: running {command!r} in {self.workspace}")

        try:
            process = await asyncio.create_subprocess_shell(
                command,
                cwd=str(self.workspace),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=os.environ.copy(),
            )
        except (OSError, ValueError) as e:
            raise ExecutionFailedError(f"failed to start command: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout_s)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise ExecutionFailedError(f"command timed out after {self.timeout_s}s")

        output_parts: list[str] = []
        if stdout:
            output_parts.append(f"STDOUT:\n{stdout.decode('utf-8', errors='replace')}")
        if stderr:
            output_parts.append(f"STDERR:\n{stderr.decode('utf-8', errors='replace')}")
        if process.returncode != 0:
            output_parts.append(f"Exit code: {process.returncode}")

        result = "\n".join(output_parts) if output_parts else "(no output)"
        snippet = result.splitlines()[:SNIPPET_LINES]
        io.show_message(self.name, "\n".join(snippet))
        return truncate_output(result, MAX_OUTPUT_LENGTH)
