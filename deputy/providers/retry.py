"""HTTP POST with exponential backoff on rate limiting."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

import httpx
from loguru import logger

from deputy.core.errors import NetworkError

TOO_MANY_REQUESTS = 429


@dataclass(frozen=True)
class RetryPolicy:
    """Retry only HTTP 429, sleeping base_delay * 2**attempt before each retry."""

    max_retries: int = 3
    base_delay: float = 6.0

    def delay_for(self, attempt: int) -> float:
        return self.base_delay * 2**attempt


async def post_with_retry(
    client: httpx.AsyncClient,
    url: str,
    *,
    json: dict[str, Any],
    headers: dict[str, str],
    policy: RetryPolicy = RetryPolicy(),
    vendor: str = "API",
) -> httpx.Response:
    """
    POST a JSON body, retrying while the server answers 429.

    Any other status, or a 429 that survives every retry, is returned to the
    caller for interpretation.

    Raises:
        NetworkError: On transport failures (DNS, connection, timeout); these
            are never retried.
    """
    attempt = 0
    while True:
        try:
            response = await client.post(url, json=json, headers=headers)
        except httpx.TransportError as e:
            raise NetworkError(f"{type(e).__name__}: {e}") from e

        if response.status_code != TOO_MANY_REQUESTS or attempt >= policy.max_retries:
            return response

        delay = policy.delay_for(attempt)
        attempt += 1
        logger.warning(
            f"{vendor} rate limit hit; retrying in {delay:g}s... (attempt {attempt}/{policy.max_retries})"
        )
        await asyncio.sleep(delay)
