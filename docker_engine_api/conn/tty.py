"""Docker TTY stream multiplexing.

Attach, exec and log endpoints of containers started without a TTY
interleave stdout and stderr over one connection.  Each frame has an
8-byte header:

  - byte 0: stream type (0 = stdin, 1 = stdout, 2 = stderr)
  - bytes 1-3: reserved (zero)
  - bytes 4-7: payload length (big-endian uint32)

followed by that many payload bytes.  Containers with a TTY send raw,
unframed bytes which are always stdout.
"""

from __future__ import annotations

import dataclasses
import enum
import struct
from types import TracebackType
from typing import AsyncIterable, AsyncIterator

from docker_engine_api.conn.upgrade import UpgradedStream
from docker_engine_api.errors import InvalidResponse

HEADER_SIZE = 8
_HEADER_FORMAT = ">BxxxI"


class StreamKind(enum.IntEnum):
    STDIN = 0
    STDOUT = 1
    STDERR = 2


@dataclasses.dataclass(frozen=True)
class TtyChunk:
    """A piece of output tagged with the stream it belongs to."""

    kind: StreamKind
    data: bytes

    @property
    def is_stdout(self) -> bool:
        return self.kind is StreamKind.STDOUT

    @property
    def is_stderr(self) -> bool:
        return self.kind is StreamKind.STDERR

    def text(self) -> str:
        """Decode the payload as UTF-8, replacing invalid sequences."""
        return self.data.decode("utf-8", errors="replace")


def parse_header(header: bytes) -> tuple[StreamKind, int]:
    """Parse an 8-byte frame header into ``(kind, payload_length)``.

    Raises:
        InvalidResponse: If the stream type byte is unknown.
    """
    stream_type, length = struct.unpack(_HEADER_FORMAT, header)
    try:
        kind = StreamKind(stream_type)
    except ValueError as exc:
        raise InvalidResponse(f"unknown tty stream type {stream_type}") from exc
    return kind, length


class _FrameBuffer:
    """Accumulates bytes and cuts complete frames off the front."""

    def __init__(self) -> None:
        self._buf = bytearray()

    def feed(self, data: bytes) -> list[TtyChunk]:
        self._buf += data
        frames: list[TtyChunk] = []
        while len(self._buf) >= HEADER_SIZE:
            kind, length = parse_header(bytes(self._buf[:HEADER_SIZE]))
            end = HEADER_SIZE + length
            if len(self._buf) < end:
                break
            payload = bytes(self._buf[HEADER_SIZE:end])
            del self._buf[:end]
            if payload:
                frames.append(TtyChunk(kind, payload))
        return frames

    def finish(self) -> None:
        if self._buf:
            raise InvalidResponse(
                f"stream ended inside a tty frame ({len(self._buf)} bytes left)"
            )


async def decode(
    chunks: AsyncIterable[bytes], *, tty: bool = False
) -> AsyncIterator[TtyChunk]:
    """Demultiplex a chunked byte stream into :class:`TtyChunk` values.

    Frames may straddle chunk boundaries.  With ``tty=True`` the stream is
    unframed and every chunk is yielded as stdout.

    Raises:
        InvalidResponse: On an unknown stream type or when the body ends in
                         the middle of a frame.
    """
    if tty:
        async for chunk in chunks:
            if chunk:
                yield TtyChunk(StreamKind.STDOUT, chunk)
        return

    frames = _FrameBuffer()
    async for chunk in chunks:
        for frame in frames.feed(chunk):
            yield frame
    frames.finish()


class Multiplexer:
    """Interactive session over an upgraded connection.

    Iterating yields the container's stdout/stderr as :class:`TtyChunk`
    values; :meth:`write` sends bytes to the container's stdin.

    Parameters:
        stream: Raw duplex stream returned by an upgrade request.
        tty: Whether the remote side allocated a pseudo-terminal, in which
             case output is unframed.
    """

    def __init__(self, stream: UpgradedStream, *, tty: bool = False) -> None:
        self._stream = stream
        self.tty = tty

    async def _raw_chunks(self) -> AsyncIterator[bytes]:
        while True:
            data = await self._stream.read()
            if not data:
                return
            yield data

    def __aiter__(self) -> AsyncIterator[TtyChunk]:
        return decode(self._raw_chunks(), tty=self.tty)

    async def write(self, data: bytes) -> None:
        await self._stream.write(data)

    async def aclose(self) -> None:
        await self._stream.aclose()

    async def __aenter__(self) -> Multiplexer:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
