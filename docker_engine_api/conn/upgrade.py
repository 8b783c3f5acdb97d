"""Raw duplex byte channel over an upgraded HTTP connection."""

from __future__ import annotations

from types import TracebackType
from typing import Any

import httpx

from docker_engine_api.conn.stream import wrap_transport_error
from docker_engine_api.metrics import UPGRADED_STREAMS

DEFAULT_READ_SIZE = 64 * 1024


class UpgradedStream:
    """Bidirectional byte stream detached from the HTTP layer.

    Wraps the ``101 Switching Protocols`` response together with the
    ``network_stream`` httpcore hands out for it.  Reads and writes go
    straight to the socket; closing the stream closes the response and
    with it the connection.

    Parameters:
        response: The upgraded response; must carry a ``network_stream``
                  extension.
        transport_kind: Label used for the open-stream gauge.
    """

    def __init__(self, response: httpx.Response, transport_kind: str) -> None:
        self._response = response
        self._network_stream: Any = response.extensions["network_stream"]
        self._transport_kind = transport_kind
        self._closed = False
        UPGRADED_STREAMS.labels(transport=transport_kind).inc()

    @property
    def closed(self) -> bool:
        return self._closed

    async def read(self, max_bytes: int = DEFAULT_READ_SIZE) -> bytes:
        """Read up to *max_bytes*; returns ``b""`` once the peer closed."""
        # httpcore raises its own exception family below the httpx layer.
        try:
            return await self._network_stream.read(max_bytes)
        except Exception as exc:
            raise wrap_transport_error(exc) from exc

    async def write(self, data: bytes) -> None:
        try:
            await self._network_stream.write(data)
        except Exception as exc:
            raise wrap_transport_error(exc) from exc

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        UPGRADED_STREAMS.labels(transport=self._transport_kind).dec()
        await self._response.aclose()

    async def __aenter__(self) -> UpgradedStream:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
