"""Pydantic models for the vendor response bodies deputy decodes."""

from typing import Any

from pydantic import BaseModel, Field

# --- Shared ---

class ApiErrorBody(BaseModel):
    type: str | None = Field(default=None, description="Vendor error type, e.g. 'invalid_request_error'")
    message: str = Field(..., description="Human readable error message")


class ErrorResponse(BaseModel):
    """Error envelope used by both Anthropic and OpenAI: {"error": {...}}."""
    error: ApiErrorBody

# --- Anthropic Messages API ---

class AnthropicUsage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0


class MessagesResponse(BaseModel):
    id: str | None = None
    role: str = "assistant"
    content: list[dict[str, Any]] = Field(..., description="Content blocks, decoded by type")
    model: str | None = None
    stop_reason: str | None = None
    usage: AnthropicUsage | None = None

# --- OpenAI Chat Completions API ---

class FunctionCall(BaseModel):
    name: str
    arguments: str = Field(..., description="JSON-encoded arguments")


class ChoiceToolCall(BaseModel):
    id: str
    type: str = "function"
    function: FunctionCall


class ChoiceMessage(BaseModel):
    role: str = "assistant"
    content: str | list[dict[str, Any]] | None = None
    tool_calls: list[ChoiceToolCall] | None = None


class Choice(BaseModel):
    index: int = 0
    message: ChoiceMessage
    finish_reason: str | None = None


class CompletionUsage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatCompletionResponse(BaseModel):
    id: str | None = None
    model: str | None = None
    choices: list[Choice]
    usage: CompletionUsage | None = None
