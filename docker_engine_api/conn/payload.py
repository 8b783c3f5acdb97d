"""Request payload and header value types."""

from __future__ import annotations

import enum
import json
from typing import Any, AsyncIterable, Iterator, Union

from docker_engine_api.errors import SerializationError

AUTH_HEADER = "X-Registry-Auth"

Body = Union[bytes, str, AsyncIterable[bytes]]


class PayloadKind(enum.Enum):
    NONE = "none"
    TEXT = "text"
    JSON = "json"
    XTAR = "x-tar"
    TAR = "tar"


_MIME_TYPES: dict[PayloadKind, str | None] = {
    PayloadKind.NONE: None,
    PayloadKind.TEXT: None,
    PayloadKind.JSON: "application/json",
    PayloadKind.XTAR: "application/x-tar",
    PayloadKind.TAR: "application/tar",
}


class Payload:
    """Classified body of an outgoing request.

    A payload is built per request and handed to the transport once.
    Bodies may be ``bytes``, ``str`` or an async iterable of ``bytes`` for
    uploads that should not be held in memory.
    """

    __slots__ = ("kind", "body")

    def __init__(self, kind: PayloadKind, body: Body | None = None) -> None:
        self.kind = kind
        self.body = body

    @classmethod
    def empty(cls) -> Payload:
        return cls(PayloadKind.NONE)

    @classmethod
    def text(cls, body: Body) -> Payload:
        return cls(PayloadKind.TEXT, body)

    @classmethod
    def json(cls, body: Any) -> Payload:
        """Build a JSON payload.

        ``bytes`` and ``str`` are sent as-is; anything else is serialized.
        """
        if not isinstance(body, (bytes, str)):
            try:
                body = json.dumps(body)
            except (TypeError, ValueError) as exc:
                raise SerializationError(f"Cannot encode request body: {exc}") from exc
        return cls(PayloadKind.JSON, body)

    @classmethod
    def xtar(cls, body: Body) -> Payload:
        return cls(PayloadKind.XTAR, body)

    @classmethod
    def tar(cls, body: Body) -> Payload:
        return cls(PayloadKind.TAR, body)

    def is_none(self) -> bool:
        return self.kind is PayloadKind.NONE

    def into_inner(self) -> Body | None:
        return None if self.is_none() else self.body

    def mime_type(self) -> str | None:
        return _MIME_TYPES[self.kind]

    def __repr__(self) -> str:
        return f"Payload({self.kind.value})"


class Headers:
    """Ordered header pairs attached to a single request."""

    def __init__(self, pairs: list[tuple[str, str]] | None = None) -> None:
        self._pairs: list[tuple[str, str]] = list(pairs or [])

    @staticmethod
    def none() -> Headers | None:
        return None

    @classmethod
    def single(cls, key: str, value: str) -> Headers:
        return cls([(key, value)])

    def add(self, key: str, value: str) -> None:
        self._pairs.append((key, value))

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(self._pairs)

    def __len__(self) -> int:
        return len(self._pairs)

    def __repr__(self) -> str:
        return f"Headers({self._pairs!r})"
