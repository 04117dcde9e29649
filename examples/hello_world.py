"""
replit_db — Hello World

Reads the endpoint from REPLIT_DB_URL, stores a few values, lists them
back and cleans up.  Batch writes stop at the first failure unless the
client is created with all_settled=True.
"""

import asyncio
import logging

from replit_db import BatchError, DatabaseClient


async def main():
    logging.basicConfig(level=logging.DEBUG)

    # ──────────────────────────────────────
    #  1. Create the client (endpoint from the environment)
    # ──────────────────────────────────────
    async with DatabaseClient(all_settled=True) as db:
        # ──────────────────────────────────────
        #  2. Single values
        # ──────────────────────────────────────
        await db.set("greeting", {"text": "hello", "lang": "en"})
        print("greeting:", await db.get("greeting"))
        print("has missing?", await db.has("missing"))

        # ──────────────────────────────────────
        #  3. Batch writes
        # ──────────────────────────────────────
        await db.set_many({"user:alice": {"score": 10}, "user:bob": {"score": 7}})
        print("users:", await db.list("user:"))
        print("size:", await db.size())

        # ──────────────────────────────────────
        #  4. Clean up
        # ──────────────────────────────────────
        try:
            await db.clear()
        except BatchError as e:
            for key, error in e.errors:
                print(f"  [FAILED] key={key}  error={error}")


if __name__ == "__main__":
    asyncio.run(main())
