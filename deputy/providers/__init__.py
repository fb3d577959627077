"""LLM providers module."""

from deputy.providers.anthropic_provider import AnthropicProvider
from deputy.providers.base import HTTPModel, Model
from deputy.providers.openai_provider import OpenAIProvider
from deputy.providers.retry import RetryPolicy

__all__ = ["AnthropicProvider", "HTTPModel", "Model", "OpenAIProvider", "RetryPolicy"]
