"""Per-tool permission state and the authorization prompt."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from loguru import logger

from deputy.agent.tools.base import Tool
from deputy.core.errors import InvalidArgumentsError, ProcessingError, ToolError
from deputy.core.io import IO


@dataclass(frozen=True)
class Ask:
    """Every call prompts the operator."""


@dataclass(frozen=True)
class ApprovedForId:
    """Calls whose fingerprint matches run without prompting."""

    fingerprint: str


PermissionMode = Union[Ask, ApprovedForId]

ASK = Ask()


class PermissionChoice(str, Enum):
    ALLOW_ONCE = "1"
    ALWAYS_ALLOW = "2"
    DENY = "3"


class PermissionRecord:
    """Standing approvals, at most one fingerprint per tool."""

    def __init__(self) -> None:
        self._modes: dict[str, PermissionMode] = {}

    def mode_for(self, tool_name: str) -> PermissionMode:
        return self._modes.get(tool_name, ASK)

    def approve(self, tool_name: str, fingerprint: str) -> None:
        """Record "always allow"; replaces any earlier approval for the tool."""
        self._modes[tool_name] = ApprovedForId(fingerprint)

    def requires_prompt(self, tool_name: str, fingerprint: str | None) -> bool:
        mode = self.mode_for(tool_name)
        if isinstance(mode, ApprovedForId):
            return fingerprint is None or mode.fingerprint != fingerprint
        return True

    def __len__(self) -> int:
        return len(self._modes)


class PermissionAuthority:
    """
    Decides whether a tool call may execute.

    In auto-approve mode every call is allowed without consulting the record
    or the operator. Otherwise a call runs silently only when the tool holds
    a standing approval for the call's fingerprint; anything else prompts
    with exactly three choices, and any answer other than 1 or 2 denies.
    """

    def __init__(self, io: IO, record: PermissionRecord | None = None, auto_approve: bool = False) -> None:
        self.io = io
        self.record = record if record is not None else PermissionRecord()
        self.auto_approve = auto_approve

    def authorize(self, tool: Tool, args: Any) -> bool:
        if self.auto_approve:
            logger.debug(f"Auto-approving {tool.name}")
            return True

        fingerprint = self._fingerprint(tool, args)
        if not self.record.requires_prompt(tool.name, fingerprint):
            logger.debug(f"{tool.name} pre-approved for '{fingerprint}'")
            return True

        try:
            tool.ask_permission(args, self.io)
        except ToolError as e:
            raise ProcessingError(f"preview of {tool.name} failed: {e}") from e

        choice = self._prompt(tool, fingerprint)
        if choice is PermissionChoice.ALWAYS_ALLOW:
            if fingerprint is not None:
                self.record.approve(tool.name, fingerprint)
                logger.info(f"{tool.name} always allowed for '{fingerprint}'")
            return True
        if choice is PermissionChoice.ALLOW_ONCE:
            return True
        logger.info(f"{tool.name} denied by user")
        return False

    @staticmethod
    def _fingerprint(tool: Tool, args: Any) -> str | None:
        try:
            return tool.permission_id(args)
        except InvalidArgumentsError as e:
            # No fingerprint: always prompt and never record an approval.
            logger.warning(f"Cannot fingerprint {tool.name} call: {e}")
            return None
        except ToolError as e:
            raise ProcessingError(f"fingerprint of {tool.name} failed: {e}") from e

    def _prompt(self, tool: Tool, fingerprint: str | None) -> PermissionChoice:
        always = f"Always allow {tool.name} for '{fingerprint}'" if fingerprint is not None else (
            f"Always allow {tool.name} (unavailable, arguments could not be parsed; allows once)"
        )
        self.io.show_message(
            "Permission",
            f"Allow {tool.name} to run?\n"
            f"  {PermissionChoice.ALLOW_ONCE.value}. Allow once\n"
            f"  {PermissionChoice.ALWAYS_ALLOW.value}. {always}\n"
            f"  {PermissionChoice.DENY.value}. Deny",
        )
        answer = self.io.get_user_input("Choice [1/2/3]: ")
        try:
            return PermissionChoice((answer or "").strip())
        except ValueError:
            return PermissionChoice.DENY
