# Copyright (c) 2024 replit-db contributors
# SPDX-License-Identifier: Apache-2.0
"""Data transfer objects for the command runner.

``python -m replit_db`` reads one :class:`CommandInput` as JSON from
stdin and writes one :class:`CommandOutput` as JSON to stdout.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

Operation = Literal["get", "has", "set", "delete", "keys", "list", "clear", "size"]


class CommandInput(BaseModel):
    """A single command.

    Attributes:
        op: Operation to run.
        key: Key for ``get``, ``has`` and single-pair ``set``.
        keys: Keys for ``delete``.
        value: Value for single-pair ``set``.
        table: Entries for table-form ``set`` (used when ``key`` is absent).
        prefix: Prefix filter for ``keys`` and ``list``.
        url: Explicit endpoint; the environment is used when omitted.
        all_settled: Batch failure policy.
    """

    op: Operation
    key: str | None = None
    keys: list[str] = Field(default_factory=list)
    value: Any = None
    table: dict[str, Any] = Field(default_factory=dict)
    prefix: str = ""
    url: str | None = None
    all_settled: bool = False


class CommandOutput(BaseModel):
    """Result of one command.

    Attributes:
        success: Whether the command completed.
        result: Operation result (``None`` for writes).
        error: Error message on failure.
        error_type: Exception class name on failure.
    """

    success: bool
    result: Any = None
    error: str | None = None
    error_type: str | None = None
