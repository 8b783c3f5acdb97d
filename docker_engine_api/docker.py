"""Main entrypoint for interacting with the Docker Engine API.

API Reference: https://docs.docker.com/engine/api/v1.41/
"""

from __future__ import annotations

import json
import socket
from contextlib import aclosing
from pathlib import Path
from types import TracebackType
from typing import Any, AsyncIterator

import httpx
import structlog

from docker_engine_api.api.container import Containers
from docker_engine_api.api.exec import Exec
from docker_engine_api.api.image import Images
from docker_engine_api.api.network import Networks
from docker_engine_api.api.volume import Volumes
from docker_engine_api.config import Settings
from docker_engine_api.conn.payload import Headers, Payload
from docker_engine_api.conn.stream import iter_json_values, stream_lines
from docker_engine_api.conn.transport import (
    DEFAULT_TIMEOUT,
    TcpTransport,
    TlsTransport,
    Transport,
    UnixTransport,
)
from docker_engine_api.conn.upgrade import UpgradedStream
from docker_engine_api.detect_host import find_docker_host
from docker_engine_api.errors import (
    InvalidResponse,
    InvalidUri,
    MissingAuthority,
    SerializationError,
    UnsupportedScheme,
)
from docker_engine_api.models import Event, SystemInfo, SystemVersion, validate
from docker_engine_api.util import construct_ep
from docker_engine_api.version import LATEST_API_VERSION, ApiVersion

logger = structlog.get_logger(__name__)

_UNIX_SUPPORTED = hasattr(socket, "AF_UNIX")


class Docker:
    """Async client for one Docker daemon.

    A ``Docker`` owns a single transport, chosen at construction, plus the
    API version used to prefix every request path.  Resource handles
    returned by :meth:`containers`, :meth:`images` and friends share that
    transport, so they are cheap to create and safe to use concurrently.

    Parameters:
        transport: Connector used to reach the daemon.
        version: API version for request paths.
    """

    def __init__(
        self, transport: Transport, version: ApiVersion = LATEST_API_VERSION
    ) -> None:
        self._transport = transport
        self._version = version

    def __repr__(self) -> str:
        return f"Docker({self._transport!r}, version={self._version})"

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def new(cls, uri: str, *, timeout: float = DEFAULT_TIMEOUT) -> Docker:
        """Create a client choosing the transport from *uri*'s scheme.

        Supported schemes are ``unix://`` (where Unix sockets exist),
        ``tcp://`` and ``http://``.  Use :meth:`tls` for TLS.

        Raises:
            UnsupportedScheme: For any other scheme, including an empty one.
            MissingAuthority: When nothing follows ``scheme://``.
            InvalidUri: When a TCP authority is not ``host[:port]``.
        """
        scheme, sep, rest = uri.partition("://")
        if scheme == "unix":
            if not _UNIX_SUPPORTED:
                raise UnsupportedScheme("unix")
            if not sep or not rest:
                raise MissingAuthority()
            return cls.unix(rest, timeout=timeout)
        if scheme in ("tcp", "http"):
            if not sep or not rest:
                raise MissingAuthority()
            try:
                url = httpx.URL(f"http://{rest}")
            except httpx.InvalidURL as exc:
                raise InvalidUri(f"Invalid authority {rest!r} - {exc}") from exc
            if not url.host or url.path not in ("", "/"):
                raise InvalidUri(f"Invalid authority {rest!r}")
            return cls.tcp(rest.rstrip("/"), timeout=timeout)
        raise UnsupportedScheme(scheme)

    @classmethod
    def unix(cls, socket_path: str, *, timeout: float = DEFAULT_TIMEOUT) -> Docker:
        """Connect to a daemon listening on the Unix socket *socket_path*.

        *socket_path* is what follows ``unix://``, so ``unix:///run/docker.sock``
        has the path ``/run/docker.sock``.
        """
        return cls(UnixTransport(socket_path, timeout=timeout))

    @classmethod
    def tcp(cls, host: str, *, timeout: float = DEFAULT_TIMEOUT) -> Docker:
        """Connect to a daemon listening on TCP at *host* (``host:port``)."""
        return cls(TcpTransport(host, timeout=timeout))

    @classmethod
    def tls(
        cls,
        host: str,
        cert_path: str | Path,
        verify: bool = False,
        *,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> Docker:
        """Connect to a daemon over TLS.

        *cert_path* must hold ``cert.pem`` and ``key.pem``; with *verify*
        the daemon certificate is checked against ``ca.pem`` as well.

        Raises:
            TlsError: If the certificate material cannot be loaded.
        """
        return cls(TlsTransport(host, cert_path, verify, timeout=timeout))

    @classmethod
    def from_env(cls, settings: Settings | None = None) -> Docker:
        """Create a client configured like the ``docker`` CLI would be.

        The endpoint comes from ``DOCKER_CONTEXT``, ``DOCKER_HOST``, the CLI
        config file or the platform default.  A ``tcp://`` endpoint with
        ``DOCKER_CERT_PATH`` set is reached over TLS.
        """
        settings = settings or Settings()
        host = find_docker_host(settings)
        version = ApiVersion.parse(settings.DOCKER_API_VERSION)
        timeout = settings.DOCKER_TIMEOUT

        scheme, _, authority = host.partition("://")
        if settings.DOCKER_CERT_PATH and scheme in ("tcp", "https") and authority:
            docker = cls.tls(
                authority,
                settings.DOCKER_CERT_PATH,
                settings.tls_verify,
                timeout=timeout,
            )
        else:
            docker = cls.new(host, timeout=timeout)
        docker._version = version
        logger.debug(
            "docker_client_configured",
            host=host,
            transport=docker._transport.kind,
            api_version=str(version),
        )
        return docker

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def api_version(self) -> ApiVersion:
        return self._version

    async def adjust_api_version(self) -> ApiVersion:
        """Use the API version reported by the daemon from now on.

        Performs one unversioned ``GET /version``.  Calling it again simply
        fetches and stores the version again.
        """
        data = await self._transport.request_json("GET", "/version")
        reported = validate(SystemVersion, data)
        if not reported.api_version:
            raise InvalidResponse("version response carries no ApiVersion")
        self._version = ApiVersion.parse(reported.api_version)
        await logger.ainfo("docker_api_version_adjusted", api_version=str(self._version))
        return self._version

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    def containers(self) -> Containers:
        return Containers(self)

    def images(self) -> Images:
        return Images(self)

    def networks(self) -> Networks:
        return Networks(self)

    def volumes(self) -> Volumes:
        return Volumes(self)

    def exec(self, exec_id: str) -> Exec:
        """Return a handle for an existing exec instance."""
        return Exec.get(self, exec_id)

    # ------------------------------------------------------------------
    # System
    # ------------------------------------------------------------------

    async def version(self) -> SystemVersion:
        """Return the daemon's version information.

        API Reference: https://docs.docker.com/engine/api/v1.41/#operation/SystemVersion
        """
        return await self.get_json("/version", SystemVersion)

    async def info(self) -> SystemInfo:
        """Return system-wide information about the daemon.

        API Reference: https://docs.docker.com/engine/api/v1.41/#operation/SystemInfo
        """
        return await self.get_json("/info", SystemInfo)

    async def ping(self) -> str:
        """Check that the daemon is reachable; returns ``"OK"``."""
        return await self.get("/_ping")

    def events(
        self,
        *,
        since: int | str | None = None,
        until: int | str | None = None,
        filters: dict[str, list[str]] | None = None,
    ) -> AsyncIterator[Event]:
        """Stream daemon events as they happen.

        Without *until* the stream stays open until the caller stops
        iterating.

        API Reference: https://docs.docker.com/engine/api/v1.41/#operation/SystemEvents
        """
        ep = construct_ep(
            "/events", {"since": since, "until": until, "filters": filters}
        )
        return self.stream_get_lines_into(ep, Event)

    async def data_usage(self) -> dict[str, Any]:
        """Return disk usage by images, containers, volumes and build cache."""
        return await self.get_json("/system/df")

    # ------------------------------------------------------------------
    # Request helpers used by the resource modules
    # ------------------------------------------------------------------

    async def get(self, endpoint: str) -> str:
        return await self._transport.request_string(
            "GET", endpoint, version=self._version
        )

    async def get_json(self, endpoint: str, model: Any = None) -> Any:
        data = await self._transport.request_json(
            "GET", endpoint, version=self._version
        )
        return data if model is None else validate(model, data)

    async def post(
        self,
        endpoint: str,
        payload: Payload | None = None,
        headers: Headers | None = None,
    ) -> str:
        return await self._transport.request_string(
            "POST", endpoint, payload, headers, version=self._version
        )

    async def post_json(
        self,
        endpoint: str,
        payload: Payload | None = None,
        headers: Headers | None = None,
        model: Any = None,
    ) -> Any:
        data = await self._transport.request_json(
            "POST", endpoint, payload, headers, version=self._version
        )
        return data if model is None else validate(model, data)

    async def put(self, endpoint: str, payload: Payload | None = None) -> str:
        return await self._transport.request_string(
            "PUT", endpoint, payload, version=self._version
        )

    async def delete(self, endpoint: str) -> str:
        return await self._transport.request_string(
            "DELETE", endpoint, version=self._version
        )

    async def delete_json(self, endpoint: str, model: Any = None) -> Any:
        data = await self._transport.request_json(
            "DELETE", endpoint, version=self._version
        )
        return data if model is None else validate(model, data)

    async def head(self, endpoint: str) -> httpx.Headers:
        """Send a ``HEAD`` request and return the response headers."""
        response = await self._transport.get_response(
            "HEAD", endpoint, version=self._version
        )
        return response.headers

    def stream_get(self, endpoint: str) -> AsyncIterator[bytes]:
        return self._transport.stream_chunks("GET", endpoint, version=self._version)

    def stream_post(
        self,
        endpoint: str,
        payload: Payload | None = None,
        headers: Headers | None = None,
    ) -> AsyncIterator[bytes]:
        return self._transport.stream_chunks(
            "POST", endpoint, payload, headers, version=self._version
        )

    async def stream_post_into(
        self,
        endpoint: str,
        payload: Payload | None = None,
        headers: Headers | None = None,
        model: Any = None,
    ) -> AsyncIterator[Any]:
        """Stream a POST whose body is a sequence of JSON documents.

        Every CRLF-terminated unit is decoded fully, so a unit carrying more
        than one document yields each of them in order.
        """
        units = self._transport.stream_json_chunks(
            "POST", endpoint, payload, headers, version=self._version
        )
        async with aclosing(units):
            async for unit in units:
                for value in iter_json_values(unit):
                    yield value if model is None else validate(model, value)

    async def stream_get_lines_into(
        self, endpoint: str, model: Any = None
    ) -> AsyncIterator[Any]:
        """Stream a GET whose body is newline-delimited JSON."""
        async with aclosing(self.stream_get(endpoint)) as chunks:
            async for line in stream_lines(chunks):
                if not line.strip():
                    continue
                try:
                    value = json.loads(line)
                except ValueError as exc:
                    raise SerializationError(f"Cannot decode stream line: {exc}") from exc
                yield value if model is None else validate(model, value)

    async def stream_post_upgrade(
        self, endpoint: str, payload: Payload | None = None
    ) -> UpgradedStream:
        return await self._transport.stream_upgrade(
            "POST", endpoint, payload, version=self._version
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        """Close the underlying transport and its connections."""
        await self._transport.aclose()

    async def __aenter__(self) -> Docker:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
