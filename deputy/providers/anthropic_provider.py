"""Anthropic Messages API adapter."""

from __future__ import annotations

from typing import Any

from loguru import logger
from pydantic import ValidationError

from deputy.core.errors import RequestError
from deputy.core.messages import Message, ModelMessage, ToolCall, ToolResult, UserMessage
from deputy.providers.base import HTTPModel
from deputy.providers.schemas import MessagesResponse

ANTHROPIC_VERSION = "2023-06-01"
DEFAULT_MAX_TOKENS = 3000


def message_to_wire(message: Message) -> dict[str, Any]:
    """Encode a canonical message as one Anthropic message with a single content block."""
    if isinstance(message, UserMessage):
        return {"role": "user", "content": [{"type": "text", "text": message.text}]}
    if isinstance(message, ModelMessage):
        return {"role": "assistant", "content": [{"type": "text", "text": message.text}]}
    if isinstance(message, ToolCall):
        if message.id is None:
            raise RequestError(f"tool call '{message.name}' has no id")
        return {
            "role": "assistant",
            "content": [
                {"type": "tool_use", "id": message.id, "name": message.name, "input": message.arguments}
            ],
        }
    if isinstance(message, ToolResult):
        if message.id is None:
            raise RequestError("tool result has no id")
        return {
            "role": "user",
            "content": [
                {
                    "type": "tool_result",
                    "tool_use_id": message.id,
                    "content": message.output,
                    "is_error": message.is_error,
                }
            ],
        }
    raise RequestError(f"cannot encode {type(message).__name__}")


def block_to_message(block: dict[str, Any], role: str) -> Message:
    """Decode one content block; unknown block types are rejected."""
    kind = block.get("type")
    try:
        if kind == "text":
            text = block["text"]
            return UserMessage(text) if role == "user" else ModelMessage(text)
        if kind == "tool_use":
            return ToolCall(name=block["name"], arguments=block.get("input", {}), id=block["id"])
        if kind == "tool_result":
            content = block.get("content", "")
            if isinstance(content, list):
                content = "".join(part.get("text", "") for part in content if part.get("type") == "text")
            return ToolResult(output=content, is_error=bool(block.get("is_error")), id=block["tool_use_id"])
    except KeyError as e:
        raise RequestError(f"{kind} block is missing field {e}") from e
    raise RequestError(f"Unsupported content block type: {kind!r}")


def message_from_wire(wire: dict[str, Any]) -> list[Message]:
    """Decode one Anthropic message into canonical messages, one per block."""
    role = wire.get("role")
    content = wire.get("content")
    if isinstance(content, str):
        return [UserMessage(content) if role == "user" else ModelMessage(content)]
    if not isinstance(content, list):
        raise RequestError("message content must be a string or a list of blocks")
    return [block_to_message(block, role) for block in content]


class AnthropicProvider(HTTPModel):
    """Provider for the Anthropic `/messages` endpoint."""

    vendor = "Anthropic"
    endpoint = "messages"
    default_base_url = "https://api.anthropic.com/v1"

    @classmethod
    def tool_definition(cls, tool: Any) -> dict[str, Any]:
        return {
            "name": tool.name,
            "description": tool.description,
            "input_schema": tool.input_schema,
        }

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "anthropic-version": ANTHROPIC_VERSION,
            "x-api-key": self.api_key,
        }

    def _build_request(self, messages: list[Message]) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.model_name,
            "max_tokens": self.max_tokens or DEFAULT_MAX_TOKENS,
            "messages": [message_to_wire(m) for m in messages],
        }
        if self.system_prompt:
            payload["system"] = self.system_prompt
        if self.tools:
            payload["tools"] = self.tools
        return payload

    def _decode_response(self, data: Any) -> list[Message]:
        try:
            body = MessagesResponse.model_validate(data)
        except ValidationError as e:
            raise self._validation_error(e) from e

        if body.usage:
            logger.debug(
                f"Anthropic usage: input={body.usage.input_tokens}, output={body.usage.output_tokens}, "
                f"stop_reason={body.stop_reason}"
            )

        result: list[Message] = []
        for block in body.content:
            if block.get("type") not in ("text", "tool_use"):
                raise RequestError(f"Only text and tool_use blocks are supported, got {block.get('type')!r}")
            result.append(block_to_message(block, "assistant"))
        return result
