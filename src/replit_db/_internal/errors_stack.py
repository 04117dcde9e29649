"""Failure collector for settle-all batch operations."""

from __future__ import annotations

from replit_db.exceptions import BatchError


def render_error(error: Exception) -> str:
    """Render *error* as a single ``"Name: message"`` line."""
    message = str(error)
    raw = f"{type(error).__name__}: {message}" if message else type(error).__name__
    return " ".join(raw.splitlines())


class ErrorsStack:
    """Ordered list of batch failures, rendered without duplicate lines."""

    def __init__(self) -> None:
        self._errors: list[tuple[str, Exception]] = []
        self._messages: list[str] = []

    def __len__(self) -> int:
        return len(self._errors)

    def push(self, key: str, error: Exception) -> None:
        self._errors.append((key, error))
        rendered = render_error(error)
        if rendered not in self._messages:
            self._messages.append(rendered)

    @property
    def messages(self) -> list[str]:
        return list(self._messages)

    def raise_if_any(self) -> None:
        if self._errors:
            raise BatchError(list(self._errors), self.messages)
