"""Client options.

These pydantic models hold everything a :class:`~replit_db.DatabaseClient`
is configured with.  They are validated once at construction.
"""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

from replit_db._version import __version__

ENV_VAR_DEFAULT = "REPLIT_DB_URL"
ALLOWED_HOSTS_DEFAULT = ("kv.replit.com",)
REFRESH_INTERVAL_DEFAULT = 1800.0

USER_AGENT_DEFAULT = f"replit-db-python/{__version__} httpx/{httpx.__version__}"


class RetryOptions(BaseModel):
    """Retry policy for rate-limited requests.

    Attributes:
        attempts: Total number of attempts, including the first one.
        min_delay: Backoff delay in seconds before the first retry.
        max_delay: Upper bound for any single delay, ``Retry-After`` included.
        multiplier: Growth factor of the backoff delay per retry.
        statuses: Response statuses that trigger a retry.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    attempts: int = Field(default=4, ge=1)
    min_delay: float = Field(default=1.0, ge=0)
    max_delay: float = Field(default=60.0, ge=0)
    multiplier: float = Field(default=2.0, ge=1)
    statuses: tuple[int, ...] = (429,)

    def backoff(self, retry_number: int) -> float:
        """Delay before retry number *retry_number* (0-based), capped."""
        return min(self.min_delay * self.multiplier**retry_number, self.max_delay)


class ClientOptions(BaseModel):
    """Options recognised by :class:`~replit_db.DatabaseClient`.

    Attributes:
        url: Explicit endpoint.  When omitted the endpoint is read from
            ``env_var`` and may be refreshed periodically.
        all_settled: Batch failure policy.  ``False`` stops at the first
            failing item, ``True`` attempts every item and raises one
            aggregate error at the end.
        retry: Retry policy for rate-limited requests.
        timeout: Per-request timeout in seconds.
        user_agent: ``User-Agent`` header sent with every request.
        env_var: Environment variable holding the default endpoint.
        allowed_hosts: Hosts an explicit ``url`` may point at.  ``None``
            accepts any host.
        refresh_interval: Seconds between environment re-reads.  ``None``
            disables the refresh task.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    url: str | None = None
    all_settled: bool = False
    retry: RetryOptions = Field(default_factory=RetryOptions)
    timeout: float = Field(default=60.0, gt=0)
    user_agent: str = USER_AGENT_DEFAULT
    env_var: str = Field(default=ENV_VAR_DEFAULT, min_length=1)
    allowed_hosts: tuple[str, ...] | None = ALLOWED_HOSTS_DEFAULT
    refresh_interval: float | None = Field(default=REFRESH_INTERVAL_DEFAULT, gt=0)

    @field_validator("url", mode="before")
    @classmethod
    def _url_to_str(cls, value: Any) -> Any:
        if isinstance(value, httpx.URL):
            return str(value)
        return value
