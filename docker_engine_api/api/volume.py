"""Create and manage persistent storage that can be attached to containers.

API Reference: https://docs.docker.com/engine/api/v1.41/#tag/Volume
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from docker_engine_api.conn.payload import Payload
from docker_engine_api.models import PruneReport, VolumeInfo, VolumeList
from docker_engine_api.util import construct_ep

if TYPE_CHECKING:
    from docker_engine_api.docker import Docker


class Volumes:
    """Operations on the set of volumes of a daemon."""

    def __init__(self, docker: Docker) -> None:
        self.docker = docker

    async def list(
        self, *, filters: dict[str, list[str]] | None = None
    ) -> list[VolumeInfo]:
        """List volumes.  The daemon's ``null`` list is returned as empty."""
        ep = construct_ep("/volumes", {"filters": filters})
        listing: VolumeList = await self.docker.get_json(ep, VolumeList)
        return listing.volumes or []

    def get(self, name: str) -> Volume:
        return Volume(self.docker, name)

    async def create(
        self,
        name: str | None = None,
        *,
        driver: str | None = None,
        driver_opts: dict[str, str] | None = None,
        labels: dict[str, str] | None = None,
    ) -> VolumeInfo:
        """Create a volume; the daemon picks a name when *name* is omitted."""
        body: dict[str, Any] = {}
        if name:
            body["Name"] = name
        if driver:
            body["Driver"] = driver
        if driver_opts:
            body["DriverOpts"] = driver_opts
        if labels:
            body["Labels"] = labels
        return await self.docker.post_json(
            "/volumes/create", Payload.json(body), model=VolumeInfo
        )

    async def prune(
        self, *, filters: dict[str, list[str]] | None = None
    ) -> PruneReport:
        """Delete unused local volumes."""
        ep = construct_ep("/volumes/prune", {"filters": filters})
        return await self.docker.post_json(ep, model=PruneReport)


class Volume:
    """Handle for a single named volume."""

    def __init__(self, docker: Docker, name: str) -> None:
        self.docker = docker
        self.name = name

    def __repr__(self) -> str:
        return f"Volume({self.name!r})"

    async def inspect(self) -> VolumeInfo:
        return await self.docker.get_json(f"/volumes/{self.name}", VolumeInfo)

    async def delete(self, *, force: bool = False) -> None:
        ep = construct_ep(f"/volumes/{self.name}", {"force": force or None})
        await self.docker.delete(ep)
