"""Transport — the httpx layer with retry-on-rate-limit and timeout."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

import httpx

from replit_db.config import ClientOptions, RetryOptions
from replit_db.exceptions import TransportError

logger = logging.getLogger(__name__)

RetryHook = Callable[[httpx.Response, int, float], None]


def retry_after(response: httpx.Response) -> float | None:
    """Seconds requested by a numeric ``Retry-After`` header, if any."""
    raw = response.headers.get("Retry-After")
    if raw is None:
        return None
    try:
        seconds = float(raw)
    except ValueError:
        return None
    return max(seconds, 0.0)


class Transport:
    """Sends requests through one shared :class:`httpx.AsyncClient`.

    Redirects are never followed.  Responses whose status is in
    ``retry.statuses`` are retried up to ``retry.attempts`` total
    attempts; the last response is returned as-is either way.

    Parameters:
        options:   Client options (timeout, user agent, retry policy).
        transport: Optional httpx transport, e.g. ``httpx.MockTransport``
                   in tests.
        sleep:     Injectable async sleep for testing.
        on_retry:  Called as ``on_retry(response, attempt, delay)`` before
                   each retry sleep.
    """

    def __init__(
        self,
        options: ClientOptions,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
        on_retry: RetryHook | None = None,
    ) -> None:
        self._retry: RetryOptions = options.retry
        self._sleep = sleep or asyncio.sleep
        self._on_retry = on_retry
        self._client = httpx.AsyncClient(
            transport=transport,
            timeout=options.timeout,
            follow_redirects=False,
            headers={"User-Agent": options.user_agent},
        )

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
        content: str | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        """Send one request, retrying rate-limited responses.

        Raises:
            TransportError: If no response could be obtained.
        """
        kwargs: dict[str, Any] = {"params": params, "content": content, "headers": headers}
        attempt = 0
        while True:
            try:
                response = await self._client.request(method, url, **kwargs)
            except httpx.TransportError as exc:
                raise TransportError(method, url, str(exc) or type(exc).__name__) from exc

            attempt += 1
            if (
                response.status_code not in self._retry.statuses
                or attempt >= self._retry.attempts
            ):
                return response

            delay = retry_after(response)
            if delay is None:
                delay = self._retry.backoff(attempt - 1)
            delay = min(delay, self._retry.max_delay)
            logger.debug(
                "%s %s returned %d, retrying in %.2fs (attempt %d/%d)",
                method,
                url,
                response.status_code,
                delay,
                attempt,
                self._retry.attempts,
            )
            if self._on_retry is not None:
                self._on_retry(response, attempt, delay)
            await response.aclose()
            await self._sleep(delay)

    async def aclose(self) -> None:
        await self._client.aclose()
