"""Configuration schema using Pydantic."""

import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ProviderName = Literal["anthropic", "openai"]

_API_KEY_ENV = {
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
}


class ModelConfig(BaseModel):
    """Which model to talk to and how."""

    model_config = ConfigDict(protected_namespaces=())

    provider: ProviderName = "anthropic"
    model_name: str = "claude-sonnet-4-20250514"
    max_tokens: int = Field(default=3000, gt=0)
    base_url_override: str | None = None
    timeout_s: float = Field(default=600.0, gt=0)


class ProviderConfig(BaseModel):
    """LLM provider credentials."""

    api_key: str = ""


class ProvidersConfig(BaseModel):
    """Credentials for each supported provider."""

    anthropic: ProviderConfig = Field(default_factory=ProviderConfig)
    openai: ProviderConfig = Field(default_factory=ProviderConfig)


class SessionConfig(BaseModel):
    """Conversation behaviour."""

    auto_approve: bool = False
    debug: bool = False
    assistant_name: str = "Deputy"


class ToolsConfig(BaseModel):
    """Built-in tool configuration."""

    workspace: str = "."
    restrict_to_workspace: bool = True
    exec_timeout_s: int = Field(default=120, gt=0)


class Config(BaseSettings):
    """Root configuration for deputy."""

    model: ModelConfig = Field(default_factory=ModelConfig)
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)

    model_config = SettingsConfigDict(
        env_prefix="DEPUTY_",
        env_nested_delimiter="__",
        extra="ignore",
        protected_namespaces=(),
    )

    @property
    def workspace_path(self) -> Path:
        """Get expanded, absolute workspace path."""
        return Path(self.tools.workspace).expanduser().resolve()

    def get_api_key(self) -> str | None:
        """API key of the selected provider, falling back to the vendor's usual env variable."""
        provider = self.model.provider
        configured = getattr(self.providers, provider).api_key
        return configured or os.environ.get(_API_KEY_ENV[provider]) or None

    def get_base_url(self) -> str | None:
        """Base URL override, if any."""
        return self.model.base_url_override or None
