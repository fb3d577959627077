"""Select and construct the provider adapter once per session."""

from __future__ import annotations

from typing import Any, Iterable

import httpx

from deputy.config.schema import Config
from deputy.core.errors import InvalidConfigError, MissingConfigError
from deputy.providers.anthropic_provider import AnthropicProvider
from deputy.providers.base import HTTPModel
from deputy.providers.openai_provider import OpenAIProvider

PROVIDERS: dict[str, type[HTTPModel]] = {
    "anthropic": AnthropicProvider,
    "openai": OpenAIProvider,
}


def build_model(
    config: Config,
    tools: Iterable[Any],
    system_prompt: str | None = None,
    client: httpx.AsyncClient | None = None,
) -> HTTPModel:
    """
    Build the adapter named by ``config.model.provider``.

    Args:
        config: Loaded configuration.
        tools: Tools to advertise to the model.
        system_prompt: Assembled system prompt, if any.
        client: Optional shared HTTP client.

    Raises:
        MissingConfigError: If no API key is available for the provider.
        InvalidConfigError: If the provider is unknown.
    """
    provider = config.model.provider
    provider_cls = PROVIDERS.get(provider)
    if provider_cls is None:
        raise InvalidConfigError(f"unknown provider '{provider}'")

    api_key = config.get_api_key()
    if not api_key:
        raise MissingConfigError(f"no API key configured for provider '{provider}'")

    return provider_cls(
        api_key=api_key,
        model_name=config.model.model_name,
        max_tokens=config.model.max_tokens,
        system_prompt=system_prompt,
        tools=provider_cls.tool_definitions(tools),
        base_url=config.get_base_url(),
        client=client,
        timeout_s=config.model.timeout_s,
    )
