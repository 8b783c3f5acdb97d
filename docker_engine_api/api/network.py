"""Create and manage user-defined networks that containers can be attached to.

API Reference: https://docs.docker.com/engine/api/v1.41/#tag/Network
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from docker_engine_api.conn.payload import Payload
from docker_engine_api.models import NetworkCreateResponse, NetworkInfo, PruneReport
from docker_engine_api.util import construct_ep

if TYPE_CHECKING:
    from docker_engine_api.docker import Docker

logger = structlog.get_logger(__name__)


class Networks:
    """Operations on the set of networks of a daemon."""

    def __init__(self, docker: Docker) -> None:
        self.docker = docker

    async def list(
        self, *, filters: dict[str, list[str]] | None = None
    ) -> list[NetworkInfo]:
        ep = construct_ep("/networks", {"filters": filters})
        return await self.docker.get_json(ep, list[NetworkInfo])

    def get(self, network_id: str) -> Network:
        return Network(self.docker, network_id)

    async def create(
        self,
        name: str,
        *,
        driver: str | None = None,
        internal: bool = False,
        attachable: bool = False,
        enable_ipv6: bool = False,
        options: dict[str, str] | None = None,
        labels: dict[str, str] | None = None,
        ipam: dict[str, Any] | None = None,
    ) -> Network:
        """Create a network and return a handle for it."""
        body: dict[str, Any] = {
            "Name": name,
            "CheckDuplicate": True,
            "Internal": internal,
            "Attachable": attachable,
            "EnableIPv6": enable_ipv6,
        }
        if driver:
            body["Driver"] = driver
        if options:
            body["Options"] = options
        if labels:
            body["Labels"] = labels
        if ipam:
            body["IPAM"] = ipam

        created: NetworkCreateResponse = await self.docker.post_json(
            "/networks/create", Payload.json(body), model=NetworkCreateResponse
        )
        if created.warning:
            await logger.awarning(
                "docker_network_create_warning", network=name, warning=created.warning
            )
        return Network(self.docker, created.id)

    async def prune(
        self, *, filters: dict[str, list[str]] | None = None
    ) -> PruneReport:
        """Delete unused networks."""
        ep = construct_ep("/networks/prune", {"filters": filters})
        return await self.docker.post_json(ep, model=PruneReport)


class Network:
    """Handle for a single network.

    Parameters:
        docker: Client the network lives on.
        network_id: Network ID or name.
    """

    def __init__(self, docker: Docker, network_id: str) -> None:
        self.docker = docker
        self.id = network_id

    def __repr__(self) -> str:
        return f"Network({self.id!r})"

    async def inspect(self) -> NetworkInfo:
        return await self.docker.get_json(f"/networks/{self.id}", NetworkInfo)

    async def delete(self) -> None:
        await self.docker.delete(f"/networks/{self.id}")

    async def connect(
        self,
        container_id: str,
        *,
        aliases: list[str] | None = None,
        ipv4_address: str | None = None,
        ipv6_address: str | None = None,
    ) -> None:
        """Attach *container_id* to this network."""
        endpoint: dict[str, Any] = {}
        if aliases:
            endpoint["Aliases"] = aliases
        ipam = {}
        if ipv4_address:
            ipam["IPv4Address"] = ipv4_address
        if ipv6_address:
            ipam["IPv6Address"] = ipv6_address
        if ipam:
            endpoint["IPAMConfig"] = ipam

        body: dict[str, Any] = {"Container": container_id}
        if endpoint:
            body["EndpointConfig"] = endpoint
        await self.docker.post(f"/networks/{self.id}/connect", Payload.json(body))

    async def disconnect(self, container_id: str, *, force: bool = False) -> None:
        """Detach *container_id* from this network."""
        body = {"Container": container_id, "Force": force}
        await self.docker.post(f"/networks/{self.id}/disconnect", Payload.json(body))
