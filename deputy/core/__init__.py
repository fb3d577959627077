"""Core contracts: messages, errors and IO."""

from deputy.core.io import IO
from deputy.core.messages import Message, ModelMessage, ToolCall, ToolResult, UserMessage

__all__ = ["IO", "Message", "ModelMessage", "ToolCall", "ToolResult", "UserMessage"]
