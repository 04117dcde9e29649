"""Wire-format helpers for the key-value store's HTTP protocol."""

from __future__ import annotations

import json
import re
from typing import Any
from urllib.parse import quote, unquote

# Characters encodeURIComponent leaves alone on top of quote()'s defaults.
_COMPONENT_SAFE = "!*'()"

_LINE_SPLIT = re.compile(r"\r?\n")


def quote_component(text: str) -> str:
    """Percent-encode *text* for use as a single URL path or form component."""
    return quote(text, safe=_COMPONENT_SAFE)


def dump_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def load_json(raw: str) -> Any:
    return json.loads(raw)


def form_body(key: str, value: Any) -> str:
    """Build the ``key=value`` form body used to store one entry."""
    return f"{quote_component(key)}={quote_component(dump_json(value))}"


def decode_key_list(raw: str) -> list[str]:
    """Split a newline-delimited, percent-encoded key listing."""
    if not raw:
        return []
    return [unquote(line) for line in _LINE_SPLIT.split(raw) if line]
