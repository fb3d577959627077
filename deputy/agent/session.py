"""Session: the conversation turn loop."""

from __future__ import annotations

from loguru import logger

from deputy.agent.permissions import PermissionAuthority, PermissionRecord
from deputy.agent.tools.registry import ToolRegistry
from deputy.core.errors import ModelError, SessionError, ToolError, ToolNotFoundError, UserInputError
from deputy.core.io import IO
from deputy.core.messages import Message, ModelMessage, ToolCall, ToolResult, UserMessage, split_tool_calls
from deputy.providers.base import Model
from deputy.utils.helpers import format_error

DENIED_OUTPUT = "Denied by user."
CANCELLED_OUTPUT = "Cancelled: a prior call in this batch was denied by the user."


class Session:
    """
    One conversation between the operator, the model and the tools.

    A turn starts from a user message and alternates between the model and
    tool execution:
    1. Send the pending message with the committed history
    2. Commit the pending message and the model's non-tool output
    3. Authorize and run the requested tool calls in order
    4. Feed the last tool result back as the next pending message

    The turn ends when the model stops asking for tools or when the
    operator denies a call.
    """

    def __init__(
        self,
        model: Model,
        tools: ToolRegistry,
        io: IO,
        auto_approve: bool = False,
        debug: bool = False,
        assistant_name: str = "Deputy",
    ) -> None:
        self.model = model
        self.tools = tools
        self.io = io
        self.debug = debug
        self.assistant_name = assistant_name
        self._history: list[Message] = []
        self._permissions = PermissionAuthority(io, PermissionRecord(), auto_approve=auto_approve)

    @property
    def history(self) -> tuple[Message, ...]:
        return tuple(self._history)

    @property
    def permissions(self) -> PermissionAuthority:
        return self._permissions

    async def send_message(self, message: Message) -> None:
        """
        Run one turn starting from ``message``.

        Raises:
            ModelError: If the model call fails. History committed so far is kept.
            ToolNotFoundError: If the model requests an unregistered tool.
            ProcessingError: If a tool cannot render its permission prompt.
        """
        current = message
        iteration = 0

        while True:
            iteration += 1
            logger.debug(f"Turn iteration {iteration}: sending {type(current).__name__}")

            response = await self.model.send_message(current, list(self._history))
            self._history.append(current)

            tool_calls, others = split_tool_calls(response)
            for item in others:
                self._history.append(item)
                if isinstance(item, ModelMessage):
                    self.io.show_message(self.assistant_name, item.text)

            if not tool_calls:
                logger.debug(f"Turn finished after {iteration} iteration(s)")
                return

            results, denied = await self._run_batch(tool_calls)

            for call, result in zip(tool_calls[:-1], results[:-1]):
                self._history.append(call)
                self._history.append(result)
            self._history.append(tool_calls[-1])

            if denied:
                self._history.append(results[-1])
                logger.info("Turn ended: tool call denied by user")
                return

            current = results[-1]

    async def _run_batch(self, tool_calls: list[ToolCall]) -> tuple[list[ToolResult], bool]:
        results: list[ToolResult] = []
        denied = False

        for call in tool_calls:
            if denied:
                logger.debug(f"Cancelling {call.name} after denial")
                results.append(ToolResult(output=CANCELLED_OUTPUT, is_error=True, id=call.id))
                continue

            tool = self.tools.get(call.name)
            if not self._permissions.authorize(tool, call.arguments):
                denied = True
                results.append(ToolResult(output=DENIED_OUTPUT, is_error=True, id=call.id))
                continue

            self._echo(f"call {call.name} {call.arguments!r}")
            logger.info(f"Tool call: {call.name}")
            try:
                output = await tool.call(call.arguments, self.io)
                result = ToolResult(output=output, id=call.id)
            except ToolError as e:
                logger.warning(f"Tool {call.name} failed: {e}")
                result = ToolResult(output=str(e), is_error=True, id=call.id)
            self._echo(f"result {call.name} (is_error={result.is_error}):\n{result.output}")
            results.append(result)

        return results, denied

    def _echo(self, text: str) -> None:
        if self.debug:
            self.io.show_message("debug", text)

    async def run(self) -> None:
        """
        Interactive loop: read a line, run a turn, repeat.

        Ends on "exit" or when input is exhausted. Model and session failures
        abort only the current turn.

        Raises:
            UserInputError: If reading from the IO fails.
        """
        logger.info("Session started")
        while True:
            try:
                line = self.io.get_user_input("> ")
            except OSError as e:
                raise UserInputError(str(e)) from e

            if line is None:
                break
            line = line.strip()
            if not line:
                continue
            if line == "exit":
                break

            self.io.show_message("You", line)
            try:
                await self.send_message(UserMessage(line))
            except (ModelError, SessionError, ToolNotFoundError) as e:
                logger.error(f"Turn aborted: {e}")
                self.io.show_message("Error", format_error(e))

        logger.info("Session ended")
