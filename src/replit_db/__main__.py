# Copyright (c) 2024 replit-db contributors
# SPDX-License-Identifier: Apache-2.0
"""Entry point for the command runner.

Usage:
    echo '{"op": "get", "key": "greeting"}' | python -m replit_db

Exit codes:
    0: Success
    1: Failure (error details in JSON output)
"""

from __future__ import annotations

import asyncio
import sys
from typing import Any

import httpx

from replit_db.client import DatabaseClient
from replit_db.exceptions import ValidationError
from replit_db.schema import CommandInput, CommandOutput


async def run_command(
    command: CommandInput,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Any:
    """Execute *command* with a fresh client and return its result."""
    async with DatabaseClient(
        url=command.url,
        all_settled=command.all_settled,
        transport=transport,
    ) as db:
        if command.op == "get":
            return await db.get(_require_key(command))
        if command.op == "has":
            return await db.has(_require_key(command))
        if command.op == "set":
            if command.key is not None:
                await db.set(command.key, command.value)
            else:
                await db.set_many(command.table)
            return None
        if command.op == "delete":
            await db.delete_many(command.keys)
            return None
        if command.op == "keys":
            return await db.keys(command.prefix)
        if command.op == "list":
            return await db.list(command.prefix)
        if command.op == "clear":
            await db.clear()
            return None
        return await db.size()


def _require_key(command: CommandInput) -> str:
    if command.key is None:
        raise ValidationError(f"`{command.op}` requires `key`")
    return command.key


def main() -> int:
    """Main entry point.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    try:
        command = CommandInput.model_validate_json(sys.stdin.read())
        result = asyncio.run(run_command(command))
        output = CommandOutput(success=True, result=result)
    except Exception as e:
        # Always emit valid JSON, even on unexpected errors
        output = CommandOutput(success=False, error=str(e), error_type=type(e).__name__)

    print(output.model_dump_json())
    return 0 if output.success else 1


if __name__ == "__main__":
    sys.exit(main())
