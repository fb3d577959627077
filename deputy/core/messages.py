"""Canonical, vendor-agnostic conversation messages."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union


@dataclass
class UserMessage:
    """Text typed by the human operator."""

    text: str


@dataclass
class ModelMessage:
    """Free text produced by the model."""

    text: str


@dataclass
class ToolCall:
    """A tool invocation requested by the model."""

    name: str
    arguments: Any
    id: str | None = None


@dataclass
class ToolResult:
    """Outcome of a tool invocation, correlated to its call by id."""

    output: str
    is_error: bool = False
    id: str | None = None


Message = Union[UserMessage, ModelMessage, ToolCall, ToolResult]


def split_tool_calls(messages: list[Message]) -> tuple[list[ToolCall], list[Message]]:
    """Partition a model response into tool calls and everything else, keeping order."""
    tool_calls: list[ToolCall] = []
    others: list[Message] = []
    for message in messages:
        if isinstance(message, ToolCall):
            tool_calls.append(message)
        else:
            others.append(message)
    return tool_calls, others
