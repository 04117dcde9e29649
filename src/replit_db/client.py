"""DatabaseClient — async client for the HTTP key-value store."""

from __future__ import annotations

import re
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

import pydantic

from replit_db._internal.errors_stack import ErrorsStack
from replit_db._internal.wire import decode_key_list, form_body, load_json
from replit_db.config import ClientOptions
from replit_db.endpoint import Endpoint, EndpointSource, EnvironmentEndpoint, StaticEndpoint
from replit_db.exceptions import ConfigurationError, RemoteError, ValidationError
from replit_db.transport import RetryHook, Transport

if TYPE_CHECKING:
    import httpx

JsonValue = Any
KeysFilter = str | re.Pattern[str] | Callable[[str], bool]
Table = Mapping[str, JsonValue] | Iterable[tuple[str, JsonValue]]

_T = TypeVar("_T")

_MISSING: Any = object()


def _check_key(key: object) -> str:
    if not isinstance(key, str) or not key:
        raise ValidationError("Argument `key` is not a string (non-empty)!")
    return key


def _check_batch(items: object, name: str) -> None:
    if isinstance(items, (str, bytes)):
        raise ValidationError(f"Argument `{name}` must be a collection, not a single string!")


def _pair_key(pair: object) -> str:
    if isinstance(pair, tuple) and pair:
        return str(pair[0])
    return repr(pair)


def _remote_error(operation: str, response: httpx.Response, key: str | None = None) -> RemoteError:
    return RemoteError(
        operation,
        response.status_code,
        response.reason_phrase,
        response.text,
        key=key,
    )


@dataclass(frozen=True)
class KeyFilter:
    """A key listing filter.

    ``prefix`` is sent to the store; ``test``, when set, runs client-side
    on every decoded key since the store only filters by prefix.
    """

    prefix: str = ""
    test: Callable[[str], bool] | None = None

    @classmethod
    def resolve(cls, value: KeysFilter) -> KeyFilter:
        if isinstance(value, str):
            return cls(prefix=value)
        if isinstance(value, re.Pattern):
            pattern = value
            return cls(test=lambda key: pattern.search(key) is not None)
        if callable(value):
            return cls(test=value)
        raise ValidationError(
            "Argument `filter` must be a prefix string, a compiled pattern, or a predicate!"
        )

    def matches(self, key: str) -> bool:
        return self.test is None or bool(self.test(key))


class DatabaseClient:
    """Client for a Replit Database style key-value store.

    Every operation is an independent request (or a sequential chain of
    them for batch operations).  Batch operations follow
    ``options.all_settled``: stop at the first failure, or attempt every
    item and raise one :class:`~replit_db.BatchError`.

    Parameters:
        options:   Full options model.  Mutually exclusive with *overrides*.
        transport: Optional httpx transport (``httpx.MockTransport`` in tests).
        sleep:     Injectable async sleep used between retries.
        on_retry:  Called as ``on_retry(response, attempt, delay)`` before
                   each rate-limit retry.
        overrides: Keyword form of :class:`~replit_db.ClientOptions`.

    Example:
        async with DatabaseClient() as db:
            await db.set("greeting", {"text": "hello"})
            print(await db.get("greeting"))
    """

    def __init__(
        self,
        options: ClientOptions | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
        on_retry: RetryHook | None = None,
        **overrides: Any,
    ) -> None:
        if options is not None and overrides:
            raise ConfigurationError("Pass either `options` or keyword options, not both")
        if options is None:
            try:
                options = ClientOptions(**overrides)
            except pydantic.ValidationError as exc:
                raise ConfigurationError(f"Invalid client options: {exc}") from exc

        self._options = options
        self._source: EndpointSource
        if options.url is None:
            self._source = EnvironmentEndpoint(options.env_var, options.refresh_interval)
        else:
            self._source = StaticEndpoint(Endpoint.from_url(options.url, options.allowed_hosts))
        self._transport = Transport(options, transport=transport, sleep=sleep, on_retry=on_retry)

    # ── lifecycle ────────────────────────────────────────────

    async def __aenter__(self) -> DatabaseClient:
        self.start_refresh()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def start_refresh(self) -> None:
        """Start re-reading an environment-supplied endpoint in the background."""
        self._source.start()

    async def stop_refresh(self) -> None:
        await self._source.stop()

    def refresh_endpoint(self) -> bool:
        """Re-resolve the endpoint now.  Keeps the previous one on failure."""
        return self._source.refresh()

    async def aclose(self) -> None:
        """Stop the refresh task and close the HTTP connection pool."""
        await self._source.stop()
        await self._transport.aclose()

    # ── introspection ────────────────────────────────────────

    @property
    def url(self) -> str:
        return self._source.current.url

    @property
    def all_settled(self) -> bool:
        return self._options.all_settled

    @property
    def options(self) -> ClientOptions:
        return self._options

    # ── reads ────────────────────────────────────────────────

    async def get(self, key: str, default: JsonValue = None) -> JsonValue:
        """Return the value stored under *key*, or *default* when absent.

        An empty response body or a 404 means absent.  A stored JSON ``null`` comes
        back as ``None``, so with the default *default* the two cases look
        the same; pass a sentinel to tell them apart.
        """
        _check_key(key)
        response = await self._transport.request("GET", self._source.current.item_url(key))
        if response.status_code == 404:
            return default
        if not response.is_success:
            raise _remote_error(f"get the value from key `{key}`", response, key)
        raw = response.text
        return load_json(raw) if raw else default

    async def has(self, key: str) -> bool:
        return await self.get(key, _MISSING) is not _MISSING

    async def keys(self, filter: KeysFilter = "") -> list[str]:
        """Return all keys, optionally filtered.

        *filter* is a prefix (applied by the store), a compiled regular
        expression (``search`` semantics) or a predicate; the last two
        run client-side.
        """
        key_filter = KeyFilter.resolve(filter)
        response = await self._transport.request(
            "GET",
            self._source.current.url,
            params={"encode": "true", "prefix": key_filter.prefix},
        )
        if not response.is_success:
            raise _remote_error("get keys", response)
        return [key for key in decode_key_list(response.text) if key_filter.matches(key)]

    async def list(self, filter: KeysFilter = "") -> dict[str, JsonValue]:
        """Fetch every matching entry, one request per key, in listing order.

        Keys that vanish between listing and fetching are left out.  The
        result is not a snapshot.
        """
        result: dict[str, JsonValue] = {}
        for key in await self.keys(filter):
            value = await self.get(key, _MISSING)
            if value is not _MISSING:
                result[key] = value
        return result

    async def entries(self, filter: KeysFilter = "") -> list[tuple[str, JsonValue]]:
        return list((await self.list(filter)).items())

    async def values(self, filter: KeysFilter = "") -> list[JsonValue]:
        return list((await self.list(filter)).values())

    async def size(self) -> int:
        return len(await self.keys())

    # ── writes ───────────────────────────────────────────────

    async def set(self, key: str, value: JsonValue) -> None:
        """Store *value* (any JSON-serializable object) under *key*."""
        _check_key(key)
        try:
            body = form_body(key, value)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Value for key `{key}` is not JSON-serializable: {exc}") from exc
        response = await self._transport.request(
            "POST",
            self._source.current.url,
            content=body,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        if not response.is_success:
            raise _remote_error(f"set key `{key}`", response, key)

    async def set_many(self, table: Table) -> None:
        """Store every pair of *table* (a mapping or ``(key, value)`` pairs) in order."""
        _check_batch(table, "table")
        pairs = table.items() if isinstance(table, Mapping) else table

        async def store(pair: tuple[str, JsonValue]) -> None:
            if not isinstance(pair, tuple) or len(pair) != 2:
                raise ValidationError(f"Table entry `{pair!r}` is not a (key, value) pair!")
            await self.set(*pair)

        await self._run_batch(pairs, store, key_of=_pair_key)

    async def delete(self, *keys: str) -> None:
        """Delete one or more keys.  Deleting an absent key is not an error."""
        await self._run_batch(keys, self._delete_one, key_of=str)

    async def delete_many(self, keys: Iterable[str]) -> None:
        _check_batch(keys, "keys")
        await self._run_batch(keys, self._delete_one, key_of=str)

    async def clear(self) -> None:
        await self.delete_many(await self.keys())

    async def _delete_one(self, key: str) -> None:
        _check_key(key)
        response = await self._transport.request("DELETE", self._source.current.item_url(key))
        if response.status_code not in (204, 404):
            raise _remote_error(f"delete key `{key}`", response, key)

    # ── batch policy ─────────────────────────────────────────

    async def _run_batch(
        self,
        items: Iterable[_T],
        action: Callable[[_T], Awaitable[None]],
        *,
        key_of: Callable[[_T], str],
    ) -> None:
        """Apply *action* to each item strictly in order.

        Fail-fast re-raises the first error untouched.  Settle-all keeps
        going and raises a single ``BatchError`` if anything failed.
        """
        errors = ErrorsStack()
        for item in items:
            try:
                await action(item)
            except Exception as exc:
                if not self._options.all_settled:
                    raise
                errors.push(key_of(item), exc)
        errors.raise_if_any()
