"""Connection layer: transports, payloads, stream framing and TTY demultiplexing."""

from docker_engine_api.conn.payload import AUTH_HEADER, Headers, Payload, PayloadKind
from docker_engine_api.conn.transport import (
    TcpTransport,
    TlsTransport,
    Transport,
    TransportKind,
    UnixTransport,
)
from docker_engine_api.conn.tty import Multiplexer, StreamKind, TtyChunk
from docker_engine_api.conn.upgrade import UpgradedStream

__all__ = [
    "AUTH_HEADER",
    "Headers",
    "Multiplexer",
    "Payload",
    "PayloadKind",
    "StreamKind",
    "TcpTransport",
    "TlsTransport",
    "Transport",
    "TransportKind",
    "TtyChunk",
    "UnixTransport",
    "UpgradedStream",
]
