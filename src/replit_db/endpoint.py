"""Endpoint resolution — explicit URLs and the environment-backed source."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol

import httpx

from replit_db._internal.wire import quote_component
from replit_db.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_PROTOCOLS = ("http", "https")


def _parse(raw: str | httpx.URL) -> httpx.URL:
    try:
        return httpx.URL(raw)
    except (httpx.InvalidURL, TypeError) as exc:
        raise ConfigurationError(f"`{raw}` is not a valid URL!") from exc


@dataclass(frozen=True)
class Endpoint:
    """Resolved base URL of a store instance.

    ``url`` is scheme, host, port and path only, without a trailing slash.
    """

    url: str

    @classmethod
    def from_httpx(cls, url: httpx.URL) -> Endpoint:
        netloc = url.netloc.decode("ascii")
        path = url.raw_path.split(b"?", 1)[0].decode("ascii").rstrip("/")
        return cls(f"{url.scheme}://{netloc}{path}")

    @classmethod
    def from_url(
        cls,
        raw: str | httpx.URL,
        allowed_hosts: tuple[str, ...] | None = None,
    ) -> Endpoint:
        """Validate an explicitly supplied URL.

        Raises:
            ConfigurationError: If the protocol is not http(s) or the host
                is not in *allowed_hosts*.
        """
        url = _parse(raw)
        if url.scheme not in _PROTOCOLS:
            raise ConfigurationError(f"`{url.scheme}:` is not a valid URL protocol!")
        if not url.host:
            raise ConfigurationError(f"`{raw}` is not a valid URL!")
        if allowed_hosts is not None and url.host not in allowed_hosts:
            raise ConfigurationError(f"`{url.host}` is not a valid database hostname!")
        return cls.from_httpx(url)

    @classmethod
    def from_env(cls, env_var: str) -> Endpoint:
        """Read the endpoint from *env_var*.

        Raises:
            ConfigurationError: If the variable is unset or not an absolute
                http(s) URL.
        """
        raw = os.getenv(env_var, "")
        try:
            if not raw:
                raise ConfigurationError(f"`{env_var}` is not set")
            return cls.from_url(raw)
        except ConfigurationError as exc:
            raise ConfigurationError(
                f"Unable to access environment variable `{env_var}`, "
                "or its value is not a valid URL!"
            ) from exc

    def item_url(self, key: str) -> str:
        return f"{self.url}/{quote_component(key)}"


class EndpointSource(Protocol):
    """Where a client reads its current endpoint from."""

    @property
    def current(self) -> Endpoint: ...

    def refresh(self) -> bool: ...

    def start(self) -> None: ...

    async def stop(self) -> None: ...


class StaticEndpoint:
    """A fixed endpoint given explicitly by the caller."""

    def __init__(self, endpoint: Endpoint) -> None:
        self._endpoint = endpoint

    @property
    def current(self) -> Endpoint:
        return self._endpoint

    def refresh(self) -> bool:
        return True

    def start(self) -> None:
        pass

    async def stop(self) -> None:
        pass


class EnvironmentEndpoint:
    """Endpoint read from an environment variable, optionally re-read.

    The backing URL may rotate while a process runs.  :meth:`start`
    launches a task that calls :meth:`refresh` every *interval* seconds;
    a failed refresh keeps the previous endpoint.

    Parameters:
        env_var:  Name of the environment variable.
        interval: Seconds between refreshes.  ``None`` makes :meth:`start`
                  a no-op.
        sleep:    Injectable async sleep for testing.
    """

    def __init__(
        self,
        env_var: str,
        interval: float | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        self._env_var = env_var
        self._interval = interval
        self._sleep = sleep or asyncio.sleep
        self._endpoint = Endpoint.from_env(env_var)
        self._task: asyncio.Task[None] | None = None

    @property
    def current(self) -> Endpoint:
        return self._endpoint

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def refresh(self) -> bool:
        """Re-read the environment.  Returns ``False`` and keeps the old value on failure."""
        try:
            endpoint = Endpoint.from_env(self._env_var)
        except ConfigurationError as exc:
            logger.debug("Endpoint refresh from %s failed: %s", self._env_var, exc)
            return False
        if endpoint != self._endpoint:
            logger.debug("Endpoint from %s changed", self._env_var)
        self._endpoint = endpoint
        return True

    def start(self) -> None:
        """Start the refresh task.  Needs a running event loop."""
        if self._interval is None or self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(self._interval))

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run(self, interval: float) -> None:
        while True:
            await self._sleep(interval)
            self.refresh()
