"""Framing helpers turning a chunked response body into lazy sequences.

All helpers consume an async iterable of raw ``bytes`` chunks exactly as
they arrive from the daemon and never reorder or buffer across requests.
"""

from __future__ import annotations

import json
from typing import Any, AsyncIterable, AsyncIterator, Iterator

import httpx

from docker_engine_api.errors import (
    DockerError,
    HttpClientError,
    HttpProtocolError,
    OpaqueError,
    SerializationError,
    TransportIOError,
)

CRLF = b"\r\n"

_decoder = json.JSONDecoder()


def wrap_transport_error(exc: Exception) -> DockerError:
    """Map an httpx or OS exception onto the client error taxonomy."""
    if isinstance(exc, DockerError):
        return exc
    if isinstance(exc, httpx.ProtocolError):
        return HttpProtocolError(str(exc) or type(exc).__name__)
    if isinstance(exc, (httpx.HTTPError, httpx.StreamError)):
        return HttpClientError(str(exc) or type(exc).__name__)
    if isinstance(exc, OSError):
        return TransportIOError(str(exc) or type(exc).__name__)
    return OpaqueError(f"{type(exc).__name__}: {exc}")


async def stream_body(chunks: AsyncIterable[bytes]) -> AsyncIterator[bytes]:
    """Yield every chunk of *chunks* unchanged.

    Joining the yielded chunks reproduces the body exactly.  A read error
    is raised as a :class:`DockerError` and ends the stream.
    """
    try:
        async for chunk in chunks:
            if chunk:
                yield chunk
    except (httpx.HTTPError, httpx.StreamError, OSError) as exc:
        raise wrap_transport_error(exc) from exc


async def stream_json_body(chunks: AsyncIterable[bytes]) -> AsyncIterator[bytes]:
    """Group raw chunks into CRLF-terminated JSON units.

    Each unit starts with an empty accumulator.  Chunks are appended until a
    chunk whose own bytes end with ``\\r\\n`` arrives, then the accumulator is
    emitted.  Only the tail of the latest chunk is inspected; a terminator
    split across two chunks or an object boundary inside a chunk does not
    close a unit.  Whatever is left when the body ends is emitted once.
    """
    buffer = bytearray()
    async for chunk in stream_body(chunks):
        buffer += chunk
        if chunk.endswith(CRLF):
            yield bytes(buffer)
            buffer = bytearray()
    if buffer:
        yield bytes(buffer)


async def stream_lines(chunks: AsyncIterable[bytes]) -> AsyncIterator[str]:
    """Split a byte stream into newline-delimited text lines.

    Lines may span any number of chunks.  The trailing ``\\n`` (and a
    preceding ``\\r``) is stripped; a final unterminated line is yielded
    when the body ends.
    """
    pending = b""
    async for chunk in stream_body(chunks):
        pending += chunk
        *lines, pending = pending.split(b"\n")
        for line in lines:
            yield _decode_line(line)
    if pending:
        yield _decode_line(pending)


def _decode_line(line: bytes) -> str:
    if line.endswith(b"\r"):
        line = line[:-1]
    try:
        return line.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise SerializationError(f"Stream line is not valid UTF-8: {exc}") from exc


def iter_json_values(data: bytes) -> Iterator[Any]:
    """Decode every JSON document contained in *data*.

    Documents may be separated by any amount of whitespace, so a unit that
    concatenates several CRLF-terminated objects still decodes fully.
    """
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise SerializationError(f"Stream unit is not valid UTF-8: {exc}") from exc
    idx = 0
    end = len(text)
    while True:
        while idx < end and text[idx].isspace():
            idx += 1
        if idx >= end:
            return
        try:
            value, idx = _decoder.raw_decode(text, idx)
        except json.JSONDecodeError as exc:
            raise SerializationError(f"Cannot decode stream unit: {exc}") from exc
        yield value
