"""Exceptions raised by the Docker Engine API client.

Every failure surfaces as a subclass of :class:`DockerError`.  The
hierarchy is deliberately flat: callers match on the concrete class and
the original library exception, when there is one, is chained as
``__cause__``.  Nothing in the client retries or recovers locally.
"""

from __future__ import annotations

from typing import Any


class DockerError(Exception):
    """Base error for all client failures."""

    def __init__(self, message: str, *, context: Any | None = None) -> None:
        super().__init__(message)
        self.context = context


class SerializationError(DockerError):
    """Raised when JSON cannot be encoded, decoded or validated."""


class HttpClientError(DockerError):
    """Raised for faults in the underlying HTTP client (connect, read, timeout)."""


class HttpProtocolError(DockerError):
    """Raised when the HTTP exchange itself is malformed."""


class TransportIOError(DockerError):
    """Raised for operating-system level I/O failures."""


class EncodingError(DockerError):
    """Raised when a response body is not valid UTF-8."""


class InvalidResponse(DockerError):
    """Raised when the daemon answers with an unexpected body."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"The response is invalid - {detail}")
        self.detail = detail


class Fault(DockerError):
    """Raised when the daemon reports a failure status.

    Attributes:
        code: HTTP status code returned by the daemon.
        message: Message extracted from the error body, or the status
                 reason phrase when the body carried none.
    """

    def __init__(self, code: int, message: str) -> None:
        super().__init__(f"error {code} - {message}")
        self.code = code
        self.message = message


class ConnectionNotUpgraded(DockerError):
    """Raised when an upgrade request is not answered with ``101``."""

    def __init__(self) -> None:
        super().__init__("The HTTP connection was not upgraded by the docker host")


class TlsError(DockerError):
    """Raised when TLS material cannot be loaded."""


class UnsupportedScheme(DockerError):
    """Raised for a connection URI whose scheme has no transport."""

    def __init__(self, scheme: str) -> None:
        super().__init__(f"Provided scheme `{scheme}` is not supported")
        self.scheme = scheme


class MissingAuthority(DockerError):
    """Raised when nothing follows ``scheme://`` in a connection URI."""

    def __init__(self) -> None:
        super().__init__("Provided URI is missing authority part after scheme")


class InvalidUrl(DockerError):
    """Raised when a URL cannot be parsed."""


class InvalidUri(DockerError):
    """Raised when a URI cannot be parsed."""


class InvalidPort(DockerError):
    """Raised for a port that is not a valid number."""


class InvalidProtocol(DockerError):
    """Raised for a port protocol other than tcp, udp or sctp."""


class MalformedVersion(DockerError):
    """Raised when an API version string cannot be parsed."""


class EndpointError(DockerError):
    """Raised when the daemon endpoint cannot be detected."""


class OpaqueError(DockerError):
    """Wraps an exception that fits no other category."""


__all__ = [
    "ConnectionNotUpgraded",
    "DockerError",
    "EncodingError",
    "EndpointError",
    "Fault",
    "HttpClientError",
    "HttpProtocolError",
    "InvalidPort",
    "InvalidProtocol",
    "InvalidResponse",
    "InvalidUri",
    "InvalidUrl",
    "MalformedVersion",
    "MissingAuthority",
    "OpaqueError",
    "SerializationError",
    "TlsError",
    "TransportIOError",
    "UnsupportedScheme",
]
