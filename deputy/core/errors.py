"""Typed failure categories shared by every deputy component."""


class DeputyError(Exception):
    """Base class for all deputy errors."""

    category = "Error"
    label = "Error"

    def __init__(self, reason: str) -> None:
        super().__init__(f"{self.label}: {reason}")
        self.reason = reason


# --- Configuration (construction time only) ---

class ConfigError(DeputyError):
    category = "Configuration error"


class MissingConfigError(ConfigError):
    label = "Missing required configuration"


class InvalidConfigError(ConfigError):
    label = "Invalid configuration"


class ConfigReadError(ConfigError):
    label = "Failed to read configuration"


# --- Model / provider ---

class ModelError(DeputyError):
    category = "Model API error"


class AuthenticationError(ModelError):
    label = "Authentication failed"


class RateLimitError(ModelError):
    label = "Rate limit exceeded"

    def __init__(self, reason: str, retry_after: int | None = None) -> None:
        super().__init__(reason)
        self.retry_after = retry_after


class RequestError(ModelError):
    label = "API request failed"


class NetworkError(ModelError):
    label = "Network error"


# --- Tools ---

class ToolError(DeputyError):
    category = "Tool error"


class ToolNotFoundError(ToolError):
    label = "Tool not found"


class InvalidArgumentsError(ToolError):
    label = "Invalid tool arguments"


class ExecutionFailedError(ToolError):
    label = "Tool execution failed"


# --- Session ---

class SessionError(DeputyError):
    category = "Session error"


class ProcessingError(SessionError):
    label = "Session processing failed"


class UserInputError(SessionError):
    label = "User input error"
