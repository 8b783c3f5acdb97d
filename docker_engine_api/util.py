"""URL helpers shared by the resource modules."""

from __future__ import annotations

import json
from typing import Any, Mapping
from urllib.parse import urlencode


def encode_query(params: Mapping[str, Any]) -> str:
    """Encode query parameters the way the daemon expects them.

    ``None`` values are dropped, booleans become ``true``/``false``,
    dicts (filters, build args, labels) are sent as JSON and lists or
    tuples repeat the key once per element.
    """
    pairs: list[tuple[str, str]] = []
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            pairs.append((key, "true" if value else "false"))
        elif isinstance(value, dict):
            pairs.append((key, json.dumps(value)))
        elif isinstance(value, (list, tuple)):
            pairs.extend((key, str(item)) for item in value)
        else:
            pairs.append((key, str(value)))
    return urlencode(pairs)


def construct_ep(endpoint: str, params: Mapping[str, Any] | None = None) -> str:
    """Append the encoded *params* to *endpoint*, if there are any."""
    query = encode_query(params or {})
    return f"{endpoint}?{query}" if query else endpoint
