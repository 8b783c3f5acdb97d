"""Create and manage containers.

API Reference: https://docs.docker.com/engine/api/v1.41/#tag/Container
"""

from __future__ import annotations

import base64
import json
import posixpath
from contextlib import aclosing
from typing import TYPE_CHECKING, Any, AsyncIterator

import structlog

from docker_engine_api import tarball
from docker_engine_api.api.exec import Exec
from docker_engine_api.api.port import PublishPort, as_port
from docker_engine_api.conn.payload import Body, Payload
from docker_engine_api.conn.tty import Multiplexer, TtyChunk, decode
from docker_engine_api.conn.upgrade import UpgradedStream
from docker_engine_api.errors import InvalidResponse
from docker_engine_api.models import (
    Change,
    ContainerCreateResponse,
    ContainerDetails,
    ContainerSummary,
    ContainerWaitResponse,
    PruneReport,
    Stats,
    Top,
)
from docker_engine_api.util import construct_ep

if TYPE_CHECKING:
    from docker_engine_api.docker import Docker

logger = structlog.get_logger(__name__)

PATH_STAT_HEADER = "X-Docker-Container-Path-Stat"


class Containers:
    """Operations on the set of containers of a daemon."""

    def __init__(self, docker: Docker) -> None:
        self.docker = docker

    async def list(
        self,
        *,
        all: bool = False,
        limit: int | None = None,
        size: bool = False,
        filters: dict[str, list[str]] | None = None,
    ) -> list[ContainerSummary]:
        """List containers; only running ones unless *all* is set.

        API Reference: https://docs.docker.com/engine/api/v1.41/#operation/ContainerList
        """
        ep = construct_ep(
            "/containers/json",
            {"all": all or None, "limit": limit, "size": size or None, "filters": filters},
        )
        return await self.docker.get_json(ep, list[ContainerSummary])

    def get(self, container_id: str) -> Container:
        """Return a handle for *container_id* (an ID or name) without a request."""
        return Container(self.docker, container_id)

    async def create(
        self,
        config: dict[str, Any],
        *,
        name: str | None = None,
        expose: list[PublishPort | str | int] | None = None,
        publish: dict[PublishPort | str | int, int] | None = None,
    ) -> Container:
        """Create a container from a raw ``ContainerConfig`` mapping.

        Parameters:
            config: Body as documented for ``POST /containers/create``
                    (``Image``, ``Cmd``, ``HostConfig``, ...).
            name: Optional container name.
            expose: Container ports to expose, e.g. ``["80/tcp", 53]``.
            publish: Container ports mapped to host ports; they are exposed
                     as well.

        Returns:
            A handle for the new container.

        Raises:
            InvalidPort: If a port specification cannot be parsed.
            InvalidProtocol: If a port names an unknown protocol.
        """
        config = dict(config)
        exposed = dict(config.get("ExposedPorts") or {})
        for port in expose or []:
            exposed[str(as_port(port))] = {}
        if publish:
            host_config = dict(config.get("HostConfig") or {})
            bindings = dict(host_config.get("PortBindings") or {})
            for port, host_port in publish.items():
                key = str(as_port(port))
                exposed[key] = {}
                bindings[key] = [{"HostPort": str(host_port)}]
            host_config["PortBindings"] = bindings
            config["HostConfig"] = host_config
        if exposed:
            config["ExposedPorts"] = exposed

        ep = construct_ep("/containers/create", {"name": name})
        created: ContainerCreateResponse = await self.docker.post_json(
            ep, Payload.json(config), model=ContainerCreateResponse
        )
        for warning in created.warnings or []:
            await logger.awarning("docker_container_create_warning", warning=warning)
        return Container(self.docker, created.id)

    async def prune(
        self, *, filters: dict[str, list[str]] | None = None
    ) -> PruneReport:
        """Delete stopped containers."""
        ep = construct_ep("/containers/prune", {"filters": filters})
        return await self.docker.post_json(ep, model=PruneReport)


class Container:
    """Handle for a single container.

    Parameters:
        docker: Client the container lives on.
        container_id: Container ID or name.
    """

    def __init__(self, docker: Docker, container_id: str) -> None:
        self.docker = docker
        self.id = container_id

    def __repr__(self) -> str:
        return f"Container({self.id!r})"

    def _ep(self, suffix: str = "", params: dict[str, Any] | None = None) -> str:
        return construct_ep(f"/containers/{self.id}{suffix}", params)

    async def _has_tty(self) -> bool:
        details = await self.inspect()
        return bool((details.config or {}).get("Tty", False))

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    async def inspect(self) -> ContainerDetails:
        return await self.docker.get_json(self._ep("/json"), ContainerDetails)

    async def top(self, psargs: str | None = None) -> Top:
        """List processes running inside the container."""
        return await self.docker.get_json(self._ep("/top", {"ps_args": psargs}), Top)

    async def changes(self) -> list[Change]:
        """Return filesystem changes relative to the image."""
        changes = await self.docker.get_json(self._ep("/changes"), list[Change] | None)
        return changes or []

    async def stat_file(self, path: str) -> dict[str, Any]:
        """Return stat information for *path* inside the container.

        Raises:
            InvalidResponse: If the daemon sent no decodable stat header.
        """
        headers = await self.docker.head(self._ep("/archive", {"path": path}))
        encoded = headers.get(PATH_STAT_HEADER)
        if encoded is None:
            raise InvalidResponse(f"missing {PATH_STAT_HEADER} header")
        try:
            return json.loads(base64.b64decode(encoded))
        except ValueError as exc:
            raise InvalidResponse(f"undecodable {PATH_STAT_HEADER} header") from exc

    # ------------------------------------------------------------------
    # Streams
    # ------------------------------------------------------------------

    async def logs(
        self,
        *,
        follow: bool = False,
        stdout: bool = True,
        stderr: bool = True,
        since: int | None = None,
        until: int | None = None,
        timestamps: bool = False,
        tail: int | str | None = None,
        tty: bool | None = None,
    ) -> AsyncIterator[TtyChunk]:
        """Yield the container's log output.

        With *follow* the stream stays open and yields new output as it is
        written.  *tty* says whether the container runs with a TTY; when
        ``None`` the container is inspected first to find out.
        """
        if tty is None:
            tty = await self._has_tty()
        ep = self._ep(
            "/logs",
            {
                "follow": follow,
                "stdout": stdout,
                "stderr": stderr,
                "since": since,
                "until": until,
                "timestamps": timestamps,
                "tail": tail,
            },
        )
        async with aclosing(self.docker.stream_get(ep)) as chunks:
            async for chunk in decode(chunks, tty=tty):
                yield chunk

    def export(self) -> AsyncIterator[bytes]:
        """Stream the container filesystem as an uncompressed tarball."""
        return self.docker.stream_get(self._ep("/export"))

    def stats(self, *, stream: bool = True) -> AsyncIterator[Stats]:
        """Yield resource usage samples, one per second while *stream* is set."""
        return self.docker.stream_get_lines_into(
            self._ep("/stats", {"stream": stream}), Stats
        )

    async def attach(self, *, tty: bool | None = None) -> Multiplexer:
        """Attach to stdin, stdout and stderr over an upgraded connection.

        Raises:
            ConnectionNotUpgraded: If the daemon refused the upgrade.
        """
        if tty is None:
            tty = await self._has_tty()
        stream = await self.attach_raw()
        return Multiplexer(stream, tty=tty)

    async def attach_raw(self) -> UpgradedStream:
        """Attach and return the undecoded duplex stream."""
        ep = self._ep(
            "/attach", {"stream": 1, "stdout": 1, "stderr": 1, "stdin": 1}
        )
        return await self.docker.stream_post_upgrade(ep)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        await self.docker.post(self._ep("/start"))
        await logger.ainfo("docker_container_started", container=self.id)

    async def stop(self, wait: int | None = None) -> None:
        """Stop the container, killing it after *wait* seconds."""
        await self.docker.post(self._ep("/stop", {"t": wait}))
        await logger.ainfo("docker_container_stopped", container=self.id)

    async def restart(self, wait: int | None = None) -> None:
        await self.docker.post(self._ep("/restart", {"t": wait}))
        await logger.ainfo("docker_container_restarted", container=self.id)

    async def kill(self, signal: str | None = None) -> None:
        await self.docker.post(self._ep("/kill", {"signal": signal}))

    async def rename(self, name: str) -> None:
        await self.docker.post(self._ep("/rename", {"name": name}))

    async def pause(self) -> None:
        await self.docker.post(self._ep("/pause"))

    async def unpause(self) -> None:
        await self.docker.post(self._ep("/unpause"))

    async def wait(self, condition: str | None = None) -> ContainerWaitResponse:
        """Block until the container stops and return its exit status."""
        return await self.docker.post_json(
            self._ep("/wait", {"condition": condition}), model=ContainerWaitResponse
        )

    async def delete(self) -> None:
        """Delete the container; it must not be running."""
        await self.docker.delete(self._ep())
        await logger.ainfo("docker_container_deleted", container=self.id)

    async def remove(
        self, *, force: bool = False, volumes: bool = False, link: bool = False
    ) -> None:
        """Delete the container with removal options."""
        await self.docker.delete(
            self._ep("", {"force": force, "v": volumes, "link": link})
        )
        await logger.ainfo("docker_container_deleted", container=self.id, force=force)

    # ------------------------------------------------------------------
    # Exec
    # ------------------------------------------------------------------

    async def exec(
        self,
        cmd: list[str],
        *,
        env: list[str] | None = None,
        working_dir: str | None = None,
        user: str | None = None,
        privileged: bool = False,
        tty: bool = False,
    ) -> AsyncIterator[TtyChunk]:
        """Run *cmd* in the container and yield its output."""
        instance = await Exec.create(
            self.docker,
            self.id,
            cmd,
            env=env,
            working_dir=working_dir,
            user=user,
            privileged=privileged,
            tty=tty,
        )
        async with aclosing(instance.start()) as output:
            async for chunk in output:
                yield chunk

    # ------------------------------------------------------------------
    # Filesystem
    # ------------------------------------------------------------------

    def copy_from(self, path: str) -> AsyncIterator[bytes]:
        """Stream *path* out of the container as a tarball."""
        return self.docker.stream_get(self._ep("/archive", {"path": path}))

    async def copy_file_into(self, path: str, data: bytes, mode: int = 0o644) -> None:
        """Write *data* to the file at *path* inside the container.

        The parent directory must already exist.
        """
        directory, name = posixpath.split(path)
        archive = tarball.single_file(name, data, mode)
        await self.copy_to(directory or "/", archive)

    async def copy_to(self, path: str, body: Body) -> None:
        """Extract the tar archive *body* into the directory *path*."""
        await self.docker.put(self._ep("/archive", {"path": path}), Payload.tar(body))
