"""OpenAI-compatible Chat Completions adapter."""

from __future__ import annotations

import json
from typing import Any

from loguru import logger
from pydantic import ValidationError

from deputy.core.errors import RequestError
from deputy.core.messages import Message, ModelMessage, ToolCall, ToolResult, UserMessage
from deputy.providers.base import HTTPModel
from deputy.providers.schemas import ChatCompletionResponse


def message_to_wire(message: Message) -> dict[str, Any]:
    """Encode a canonical message as one Chat Completions message."""
    if isinstance(message, UserMessage):
        return {"role": "user", "content": message.text}
    if isinstance(message, ModelMessage):
        return {"role": "assistant", "content": message.text}
    if isinstance(message, ToolCall):
        if message.id is None:
            raise RequestError(f"tool call '{message.name}' has no id")
        return {
            "role": "assistant",
            "content": None,
            "tool_calls": [
                {
                    "id": message.id,
                    "type": "function",
                    "function": {
                        "name": message.name,
                        "arguments": json.dumps(message.arguments, ensure_ascii=False),
                    },
                }
            ],
        }
    if isinstance(message, ToolResult):
        if message.id is None:
            raise RequestError("tool result has no id")
        # The tool role has no error flag; is_error is not transmitted.
        return {"role": "tool", "content": message.output, "tool_call_id": message.id}
    raise RequestError(f"cannot encode {type(message).__name__}")


def _text_content(content: Any) -> str | None:
    # Some providers can return segmented content payloads.
    if content is None or isinstance(content, str):
        return content
    text_parts: list[str] = []
    for part in content:
        if not isinstance(part, dict) or part.get("type") != "text":
            kind = part.get("type") if isinstance(part, dict) else type(part).__name__
            raise RequestError(f"Unsupported content part type: {kind!r}")
        text_parts.append(str(part.get("text", "")))
    return "".join(text_parts)


def _tool_call(raw: dict[str, Any]) -> ToolCall:
    if raw.get("type", "function") != "function":
        raise RequestError(f"Unsupported tool call type: {raw.get('type')!r}")
    try:
        function = raw["function"]
        arguments = json.loads(function["arguments"]) if function["arguments"] else {}
        return ToolCall(name=function["name"], arguments=arguments, id=raw["id"])
    except KeyError as e:
        raise RequestError(f"tool call is missing field {e}") from e
    except json.JSONDecodeError as e:
        raise RequestError(f"Failed to parse tool arguments: {e}") from e


def _assistant_messages(content: Any, tool_calls: list[dict[str, Any]] | None) -> list[Message]:
    result: list[Message] = []
    text = _text_content(content)
    if text:
        result.append(ModelMessage(text))
    for raw in tool_calls or []:
        result.append(_tool_call(raw))
    return result


def message_from_wire(wire: dict[str, Any]) -> list[Message]:
    """Decode one Chat Completions message into canonical messages."""
    role = wire.get("role")
    if role == "user":
        return [UserMessage(_text_content(wire.get("content")) or "")]
    if role == "assistant":
        return _assistant_messages(wire.get("content"), wire.get("tool_calls"))
    if role == "tool":
        if "tool_call_id" not in wire:
            raise RequestError("tool message is missing tool_call_id")
        return [ToolResult(output=_text_content(wire.get("content")) or "", id=wire["tool_call_id"])]
    raise RequestError(f"Unsupported message role: {role!r}")


class OpenAIProvider(HTTPModel):
    """Provider for OpenAI-style `/chat/completions` endpoints."""

    vendor = "OpenAI"
    endpoint = "chat/completions"
    default_base_url = "https://api.openai.com/v1"

    @classmethod
    def tool_definition(cls, tool: Any) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": tool.name,
                "description": tool.description,
                "parameters": tool.input_schema,
            },
        }

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

    def _build_request(self, messages: list[Message]) -> dict[str, Any]:
        wire_messages = [message_to_wire(m) for m in messages]
        if self.system_prompt:
            wire_messages.insert(0, {"role": "system", "content": self.system_prompt})
        payload: dict[str, Any] = {
            "model": self.model_name,
            "messages": wire_messages,
        }
        if self.tools:
            payload["tools"] = self.tools
        if self.max_tokens is not None:
            payload["max_tokens"] = self.max_tokens
        return payload

    def _decode_response(self, data: Any) -> list[Message]:
        try:
            body = ChatCompletionResponse.model_validate(data)
        except ValidationError as e:
            raise self._validation_error(e) from e

        if body.usage:
            logger.debug(
                f"OpenAI usage: prompt={body.usage.prompt_tokens}, completion={body.usage.completion_tokens}, "
                f"total={body.usage.total_tokens}"
            )

        result: list[Message] = []
        for choice in body.choices:
            tool_calls = [call.model_dump() for call in choice.message.tool_calls or []]
            result.extend(_assistant_messages(choice.message.content, tool_calls))
        return result
