"""Run new commands inside running containers.

API Reference: https://docs.docker.com/engine/api/v1.41/#tag/Exec
"""

from __future__ import annotations

from contextlib import aclosing
from typing import TYPE_CHECKING, AsyncIterator

import structlog

from docker_engine_api.conn.payload import Payload
from docker_engine_api.conn.tty import Multiplexer, TtyChunk, decode
from docker_engine_api.models import ExecInspect
from docker_engine_api.util import construct_ep

if TYPE_CHECKING:
    from docker_engine_api.docker import Docker

logger = structlog.get_logger(__name__)


class Exec:
    """Handle for one exec instance.

    Parameters:
        docker: Client the exec instance lives on.
        exec_id: Identifier returned by the daemon on creation.
        tty: Whether the instance was created with a pseudo-terminal.
             ``None`` means unknown; it is looked up when needed.
    """

    def __init__(self, docker: Docker, exec_id: str, tty: bool | None = None) -> None:
        self.docker = docker
        self.id = exec_id
        self._tty = tty

    def __repr__(self) -> str:
        return f"Exec({self.id!r})"

    @classmethod
    async def create(
        cls,
        docker: Docker,
        container_id: str,
        cmd: list[str],
        *,
        env: list[str] | None = None,
        working_dir: str | None = None,
        user: str | None = None,
        privileged: bool = False,
        tty: bool = False,
        attach_stdin: bool = False,
        attach_stdout: bool = True,
        attach_stderr: bool = True,
        detach_keys: str | None = None,
    ) -> Exec:
        """Create an exec instance in *container_id*; it is not started.

        Set *attach_stdin* when the instance will be driven through
        :meth:`start_interactive`.

        Returns:
            A handle for the new instance.
        """
        body: dict[str, object] = {
            "Cmd": cmd,
            "AttachStdin": attach_stdin,
            "AttachStdout": attach_stdout,
            "AttachStderr": attach_stderr,
            "Tty": tty,
            "Privileged": privileged,
        }
        if env:
            body["Env"] = env
        if working_dir:
            body["WorkingDir"] = working_dir
        if user:
            body["User"] = user
        if detach_keys:
            body["DetachKeys"] = detach_keys

        data = await docker.post_json(
            f"/containers/{container_id}/exec", Payload.json(body)
        )
        exec_id = data["Id"]
        await logger.adebug("docker_exec_created", exec_id=exec_id, container=container_id)
        return cls(docker, exec_id, tty)

    @classmethod
    def get(cls, docker: Docker, exec_id: str) -> Exec:
        """Return a handle for an existing exec instance without a request."""
        return cls(docker, exec_id)

    async def inspect(self) -> ExecInspect:
        return await self.docker.get_json(f"/exec/{self.id}/json", ExecInspect)

    async def _resolve_tty(self) -> bool:
        if self._tty is None:
            details = await self.inspect()
            self._tty = bool((details.process_config or {}).get("tty", False))
        return self._tty

    async def start(self) -> AsyncIterator[TtyChunk]:
        """Start the instance and yield its output until it exits."""
        tty = await self._resolve_tty()
        # The daemon frames the output unless the start body asks for a TTY.
        body = Payload.json({"Detach": False, "Tty": tty})
        async with aclosing(
            self.docker.stream_post(f"/exec/{self.id}/start", body)
        ) as chunks:
            async for chunk in decode(chunks, tty=tty):
                yield chunk

    async def start_interactive(self) -> Multiplexer:
        """Start the instance over an upgraded connection.

        The returned :class:`Multiplexer` yields the output and accepts
        writes to the process's stdin.

        Raises:
            ConnectionNotUpgraded: If the daemon refused the upgrade.
        """
        tty = await self._resolve_tty()
        stream = await self.docker.stream_post_upgrade(
            f"/exec/{self.id}/start", Payload.json({"Detach": False, "Tty": tty})
        )
        return Multiplexer(stream, tty=tty)

    async def resize(self, height: int, width: int) -> None:
        """Resize the pseudo-terminal of an instance created with a TTY."""
        await self.docker.post(
            construct_ep(f"/exec/{self.id}/resize", {"h": height, "w": width})
        )
