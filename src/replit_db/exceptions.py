"""Custom exceptions for the replit_db package."""

from __future__ import annotations


class DatabaseError(Exception):
    """Base exception for all database client errors."""


class ConfigurationError(DatabaseError):
    """Raised when the endpoint source or client options are invalid."""


class ValidationError(DatabaseError, ValueError):
    """Raised when an operation argument (key, filter) is invalid."""


class RemoteError(DatabaseError):
    """Raised when the store answers with a non-success status."""

    def __init__(
        self,
        operation: str,
        status_code: int,
        reason_phrase: str,
        body: str,
        key: str | None = None,
    ) -> None:
        self.operation = operation
        self.status_code = status_code
        self.reason_phrase = reason_phrase
        self.body = body
        self.key = key
        super().__init__(
            f"Unable to {operation} with status `{status_code} {reason_phrase}`: {body}"
        )


class TransportError(DatabaseError):
    """Raised when a request fails before any response is received."""

    def __init__(self, method: str, url: str, detail: str = "") -> None:
        self.method = method
        self.url = url
        msg = f"Request `{method} {url}` failed"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class BatchError(DatabaseError):
    """Raised by a settle-all batch when at least one item failed.

    ``errors`` keeps every failure paired with the key it belongs to.
    ``messages`` is the ordered, de-duplicated rendering used for ``str()``,
    so two items failing with the same text show up once there.
    """

    def __init__(self, errors: list[tuple[str, Exception]], messages: list[str]) -> None:
        self.errors = errors
        self.messages = messages
        super().__init__("\n".join(messages))
