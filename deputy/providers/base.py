"""Model contract and the shared HTTP plumbing of provider adapters."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable, Sequence

import httpx
from loguru import logger
from pydantic import ValidationError

from deputy.core.errors import AuthenticationError, ModelError, RateLimitError, RequestError
from deputy.core.messages import Message
from deputy.providers.retry import RetryPolicy, post_with_retry
from deputy.providers.schemas import ErrorResponse

DEFAULT_TIMEOUT_S = 600.0


class Model(ABC):
    """An LLM completion service speaking canonical messages."""

    @abstractmethod
    async def send_message(self, message: Message, history: Sequence[Message]) -> list[Message]:
        """
        Send the conversation so far plus one new message.

        Args:
            message: The newest message.
            history: Every earlier message, oldest first.

        Returns:
            The model's reply as zero or more canonical messages, in order.

        Raises:
            ModelError: On any failure (authentication, rate limit, request,
                network).
        """
        pass


class HTTPModel(Model):
    """
    Base for adapters that POST one JSON request per turn.

    Subclasses translate canonical messages to the vendor's wire format and
    back; this class handles retries and status interpretation.
    """

    vendor = "API"
    endpoint = ""
    default_base_url = ""

    def __init__(
        self,
        api_key: str,
        model_name: str,
        max_tokens: int | None = None,
        system_prompt: str | None = None,
        tools: list[dict[str, Any]] | None = None,
        base_url: str | None = None,
        client: httpx.AsyncClient | None = None,
        retry_policy: RetryPolicy = RetryPolicy(),
        timeout_s: float = DEFAULT_TIMEOUT_S,
    ) -> None:
        self.api_key = api_key
        self.model_name = model_name
        self.max_tokens = max_tokens
        self.system_prompt = system_prompt
        self.tools = tools or None
        self.base_url = (base_url or self.default_base_url).rstrip("/")
        self.retry_policy = retry_policy
        self._client = client or httpx.AsyncClient(timeout=timeout_s)
        self._owns_client = client is None

    @classmethod
    @abstractmethod
    def tool_definition(cls, tool: Any) -> dict[str, Any]:
        """Render a tool (name, description, input_schema) as the vendor expects it."""
        pass

    @classmethod
    def tool_definitions(cls, tools: Iterable[Any]) -> list[dict[str, Any]]:
        return [cls.tool_definition(tool) for tool in tools]

    @abstractmethod
    def _headers(self) -> dict[str, str]:
        pass

    @abstractmethod
    def _build_request(self, messages: list[Message]) -> dict[str, Any]:
        pass

    @abstractmethod
    def _decode_response(self, data: Any) -> list[Message]:
        pass

    @property
    def url(self) -> str:
        return f"{self.base_url}/{self.endpoint}"

    async def send_message(self, message: Message, history: Sequence[Message]) -> list[Message]:
        payload = self._build_request([*history, message])
        logger.debug(f"{self.vendor} request: model={self.model_name}, messages={len(payload['messages'])}")

        response = await post_with_retry(
            self._client,
            self.url,
            json=payload,
            headers=self._headers(),
            policy=self.retry_policy,
            vendor=self.vendor,
        )
        if not response.is_success:
            raise self._error_for(response)

        try:
            data = response.json()
        except ValueError as e:
            raise RequestError(f"Failed to parse response: {e}") from e
        return self._decode_response(data)

    def _error_for(self, response: httpx.Response) -> ModelError:
        status = response.status_code
        detail = self._error_detail(response)
        if status == 401:
            return AuthenticationError(detail or "invalid API key")
        if status == 429:
            return RateLimitError(detail or "too many requests", retry_after=_retry_after(response))
        if detail:
            return RequestError(detail)
        return RequestError(f"HTTP {status}: {response.text}")

    @staticmethod
    def _error_detail(response: httpx.Response) -> str | None:
        try:
            body = ErrorResponse.model_validate(response.json())
        except ValueError:
            return None
        if body.error.type:
            return f"{body.error.type}: {body.error.message}"
        return body.error.message

    @staticmethod
    def _validation_error(e: ValidationError) -> RequestError:
        return RequestError(f"Failed to parse response: {e}")

    async def aclose(self) -> None:
        """Close the HTTP client if this adapter created it."""
        if self._owns_client:
            await self._client.aclose()


def _retry_after(response: httpx.Response) -> int | None:
    value = response.headers.get("retry-after")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None
