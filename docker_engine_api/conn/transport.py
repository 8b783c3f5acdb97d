"""Transports for communicating with the Docker daemon.

A transport owns one ``httpx.AsyncClient`` bound to a single connector
kind (plain TCP, TLS over TCP, or a Unix domain socket).  The kind is
fixed at construction.  Every exchange goes through :meth:`Transport.request`;
the remaining methods decide how the response is consumed: buffered as
text or JSON, streamed as raw chunks or CRLF-terminated JSON units, or
upgraded to a raw duplex stream.

The client performs zero retries.  Any failure is raised to the caller as
a :class:`~docker_engine_api.errors.DockerError`.
"""

from __future__ import annotations

import abc
import json
import ssl
import time
from pathlib import Path
from typing import Any, AsyncIterator, Literal

import httpx
import structlog

from docker_engine_api.conn.payload import Headers, Payload
from docker_engine_api.conn.stream import (
    stream_body,
    stream_json_body,
    wrap_transport_error,
)
from docker_engine_api.conn.upgrade import UpgradedStream
from docker_engine_api.errors import (
    ConnectionNotUpgraded,
    EncodingError,
    Fault,
    HttpProtocolError,
    InvalidUrl,
    SerializationError,
    TlsError,
)
from docker_engine_api.metrics import REQUEST_COUNT, REQUEST_DURATION
from docker_engine_api.version import ApiVersion

logger = structlog.get_logger(__name__)

TransportKind = Literal["tcp", "tls", "unix"]

SUCCESS_STATUSES = frozenset({200, 201, 101, 204})

DEFAULT_TIMEOUT = 60.0


class Transport(abc.ABC):
    """Common request machinery shared by every connector kind.

    Parameters:
        timeout: Connect/write/pool timeout in seconds.  Reads are not
                 bounded so that followed logs and event streams stay open.
        client: Pre-built client to use instead of creating one.  The
                transport does not close clients it did not create.
    """

    kind: TransportKind

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._timeout = httpx.Timeout(timeout, read=None)
        self._client = client or self._create_client()
        self._owns_client = client is None

    @property
    @abc.abstractmethod
    def remote_addr(self) -> str:
        """Host or socket path of the daemon."""

    @property
    @abc.abstractmethod
    def base_url(self) -> str:
        """URL prefix that request endpoints are appended to."""

    @abc.abstractmethod
    def _create_client(self) -> httpx.AsyncClient: ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.remote_addr!r})"

    # ------------------------------------------------------------------
    # Request construction and dispatch
    # ------------------------------------------------------------------

    def build_request(
        self,
        method: str,
        endpoint: str,
        payload: Payload | None = None,
        headers: Headers | None = None,
    ) -> httpx.Request:
        """Build a request for *endpoint* on this transport.

        Caller headers are attached in order.  ``Content-Type`` and a body
        are only set when the payload is not empty.
        """
        payload = payload or Payload.empty()
        request_headers: list[tuple[str, str]] = list(headers or [])
        content = None
        if not payload.is_none():
            mime = payload.mime_type()
            if mime is not None:
                request_headers.append(("Content-Type", mime))
            content = payload.into_inner()
        if not endpoint.startswith("/"):
            endpoint = f"/{endpoint}"
        try:
            return self._client.build_request(
                method,
                f"{self.base_url}{endpoint}",
                headers=request_headers,
                content=content,
            )
        except httpx.InvalidURL as exc:
            raise InvalidUrl(f"Failed to parse url - {exc}") from exc

    async def send_request(self, request: httpx.Request) -> httpx.Response:
        """Send *request* and return the response with its body unread."""
        endpoint = request.url.raw_path.decode("ascii", errors="replace")
        start = time.perf_counter()
        try:
            response = await self._client.send(request, stream=True)
        except (httpx.HTTPError, httpx.StreamError, OSError) as exc:
            await logger.awarning(
                "docker_request_failed",
                method=request.method,
                endpoint=endpoint,
                transport=self.kind,
                detail=str(exc),
            )
            raise wrap_transport_error(exc) from exc

        duration = time.perf_counter() - start
        await logger.adebug(
            "docker_request",
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code,
            duration_ms=round(duration * 1000, 2),
            transport=self.kind,
        )
        REQUEST_COUNT.labels(
            method=request.method,
            transport=self.kind,
            status_code=str(response.status_code),
        ).inc()
        REQUEST_DURATION.labels(
            method=request.method,
            transport=self.kind,
        ).observe(duration)
        return response

    async def request(
        self,
        method: str,
        endpoint: str,
        payload: Payload | None = None,
        headers: Headers | None = None,
        *,
        version: ApiVersion | None = None,
    ) -> httpx.Response:
        """Perform one exchange and return the raw response.

        The status is not checked.  When *version* is given the endpoint is
        prefixed with its path segment (``/v1.41``).
        """
        if version is not None:
            endpoint = version.make_endpoint(endpoint)
        request = self.build_request(method, endpoint, payload, headers)
        return await self.send_request(request)

    # ------------------------------------------------------------------
    # Response interpretation
    # ------------------------------------------------------------------

    async def get_body(
        self,
        method: str,
        endpoint: str,
        payload: Payload | None = None,
        headers: Headers | None = None,
        *,
        version: ApiVersion | None = None,
    ) -> httpx.Response:
        """Send a request and return the response if it succeeded.

        The returned response body is still unread.  Any status other than
        200, 201, 101 or 204 is turned into a :class:`Fault`.

        Raises:
            Fault: With the daemon's ``message`` when the error body carries
                   one, otherwise with the status reason phrase.
            EncodingError: If the error body is not valid UTF-8.
        """
        response = await self.request(
            method, endpoint, payload, headers, version=version
        )
        status = response.status_code
        if status in SUCCESS_STATUSES:
            return response

        raw = await self._read_all(response)
        try:
            body = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise EncodingError(f"Error body is not valid UTF-8: {exc}") from exc

        message = self.get_error_message(body)
        if message is None:
            message = httpx.codes.get_reason_phrase(status) or "unknown error code"
        raise Fault(status, message)

    @staticmethod
    def get_error_message(body: str) -> str | None:
        """Extract ``message`` from a Docker JSON error body."""
        try:
            data = json.loads(body)
        except ValueError:
            return None
        if isinstance(data, dict) and isinstance(data.get("message"), str):
            return data["message"]
        return None

    async def _read_all(self, response: httpx.Response) -> bytes:
        try:
            return await response.aread()
        except (httpx.HTTPError, httpx.StreamError, OSError) as exc:
            raise wrap_transport_error(exc) from exc
        finally:
            await response.aclose()

    async def request_string(
        self,
        method: str,
        endpoint: str,
        payload: Payload | None = None,
        headers: Headers | None = None,
        *,
        version: ApiVersion | None = None,
    ) -> str:
        """Return the full body of a successful response as text."""
        response = await self.get_body(
            method, endpoint, payload, headers, version=version
        )
        raw = await self._read_all(response)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise EncodingError(f"Response body is not valid UTF-8: {exc}") from exc

    async def request_json(
        self,
        method: str,
        endpoint: str,
        payload: Payload | None = None,
        headers: Headers | None = None,
        *,
        version: ApiVersion | None = None,
    ) -> Any:
        """Return the decoded JSON body of a successful response.

        An empty body (``204 No Content``) decodes to ``None``.
        """
        text = await self.request_string(
            method, endpoint, payload, headers, version=version
        )
        if not text.strip():
            return None
        try:
            return json.loads(text)
        except ValueError as exc:
            raise SerializationError(f"Cannot decode response body: {exc}") from exc

    async def get_response(
        self,
        method: str,
        endpoint: str,
        payload: Payload | None = None,
        headers: Headers | None = None,
        *,
        version: ApiVersion | None = None,
    ) -> httpx.Response:
        """Return a successful response with its body already buffered."""
        response = await self.get_body(
            method, endpoint, payload, headers, version=version
        )
        await self._read_all(response)
        return response

    async def stream_chunks(
        self,
        method: str,
        endpoint: str,
        payload: Payload | None = None,
        headers: Headers | None = None,
        *,
        version: ApiVersion | None = None,
    ) -> AsyncIterator[bytes]:
        """Yield raw body chunks of a successful response as they arrive.

        The request is only sent once iteration starts.  Closing the
        iterator early closes the response.
        """
        response = await self.get_body(
            method, endpoint, payload, headers, version=version
        )
        try:
            async for chunk in stream_body(response.aiter_bytes()):
                yield chunk
        finally:
            await response.aclose()

    async def stream_json_chunks(
        self,
        method: str,
        endpoint: str,
        payload: Payload | None = None,
        headers: Headers | None = None,
        *,
        version: ApiVersion | None = None,
    ) -> AsyncIterator[bytes]:
        """Yield CRLF-terminated JSON units of a successful response."""
        response = await self.get_body(
            method, endpoint, payload, headers, version=version
        )
        try:
            async for unit in stream_json_body(response.aiter_bytes()):
                yield unit
        finally:
            await response.aclose()

    async def stream_upgrade(
        self,
        method: str,
        endpoint: str,
        payload: Payload | None = None,
        *,
        version: ApiVersion | None = None,
    ) -> UpgradedStream:
        """Upgrade the connection to a raw duplex byte stream.

        Raises:
            ConnectionNotUpgraded: Unless the daemon answers
                                   ``101 Switching Protocols``.
        """
        if version is not None:
            endpoint = version.make_endpoint(endpoint)
        request = self.build_request(
            method,
            endpoint,
            payload,
            Headers([("Connection", "Upgrade"), ("Upgrade", "tcp")]),
        )
        response = await self.send_request(request)
        if response.status_code != 101:
            await response.aclose()
            raise ConnectionNotUpgraded()
        if "network_stream" not in response.extensions:
            await response.aclose()
            raise HttpProtocolError("Upgraded response exposes no network stream")
        return UpgradedStream(response, self.kind)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()


class TcpTransport(Transport):
    """Plain HTTP over TCP.

    Parameters:
        host: Authority part of the daemon address (``host:port``).
    """

    kind: TransportKind = "tcp"

    def __init__(
        self,
        host: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.host = host
        super().__init__(timeout=timeout, client=client)

    @property
    def remote_addr(self) -> str:
        return self.host

    @property
    def base_url(self) -> str:
        return f"http://{self.host}"

    def _create_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout)


class TlsTransport(Transport):
    """HTTPS over TCP with client certificate authentication.

    Parameters:
        host: Authority part of the daemon address (``host:port``).
        cert_path: Directory containing ``cert.pem`` and ``key.pem``, plus
                   ``ca.pem`` when *verify* is set.
        verify: Verify the daemon certificate against ``ca.pem``.
    """

    kind: TransportKind = "tls"

    def __init__(
        self,
        host: str,
        cert_path: str | Path,
        verify: bool = False,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.host = host
        self.cert_path = Path(cert_path)
        self.verify = verify
        super().__init__(timeout=timeout, client=client)

    @property
    def remote_addr(self) -> str:
        return self.host

    @property
    def base_url(self) -> str:
        return f"https://{self.host}"

    def ssl_context(self) -> ssl.SSLContext:
        """Build the client SSL context from the certificate directory.

        Raises:
            TlsError: If a certificate, key or CA file cannot be loaded.
        """
        try:
            if self.verify:
                context = ssl.create_default_context(
                    cafile=str(self.cert_path / "ca.pem")
                )
            else:
                context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
                context.check_hostname = False
                context.verify_mode = ssl.CERT_NONE
            context.set_ciphers("DEFAULT")
            context.load_cert_chain(
                certfile=str(self.cert_path / "cert.pem"),
                keyfile=str(self.cert_path / "key.pem"),
            )
        except OSError as exc:
            raise TlsError(f"Cannot load TLS material from {self.cert_path}: {exc}") from exc
        return context

    def _create_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(verify=self.ssl_context(), timeout=self._timeout)


class UnixTransport(Transport):
    """HTTP over a Unix domain socket.

    Idle connections are never kept: each request opens a fresh
    connection to the socket.

    Parameters:
        path: Filesystem path of the daemon socket.
    """

    kind: TransportKind = "unix"

    def __init__(
        self,
        path: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.path = path
        super().__init__(timeout=timeout, client=client)

    @property
    def remote_addr(self) -> str:
        return self.path

    @property
    def base_url(self) -> str:
        return "http://docker"

    def _create_client(self) -> httpx.AsyncClient:
        transport = httpx.AsyncHTTPTransport(
            uds=self.path,
            limits=httpx.Limits(max_keepalive_connections=0),
        )
        return httpx.AsyncClient(transport=transport, timeout=self._timeout)


__all__ = [
    "SUCCESS_STATUSES",
    "TcpTransport",
    "TlsTransport",
    "Transport",
    "TransportKind",
    "UnixTransport",
]
