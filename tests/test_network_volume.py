"""Tests for network and volume operations."""

from __future__ import annotations

import json

import httpx
import pytest


@pytest.mark.asyncio
async def test_network_lifecycle(make_docker) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        path = request.url.path
        if path.endswith("/networks/create"):
            return httpx.Response(201, json={"Id": "n1", "Warning": ""})
        if path == "/v1.41/networks":
            return httpx.Response(200, json=[{"Id": "n1", "Name": "backend"}])
        if request.method == "GET":
            return httpx.Response(
                200, json={"Id": "n1", "Name": "backend", "Driver": "bridge", "EnableIPv6": False}
            )
        return httpx.Response(200)

    networks = make_docker(handler).networks()
    network = await networks.create("backend", driver="bridge", labels={"team": "a"})
    listed = await networks.list()
    details = await network.inspect()
    await network.connect("c1", aliases=["api"], ipv4_address="172.20.0.5")
    await network.disconnect("c1", force=True)
    await network.delete()

    assert network.id == "n1"
    assert [n.name for n in listed] == ["backend"]
    assert details.driver == "bridge"
    assert details.enable_ipv6 is False

    create, _, _, connect, disconnect, delete = seen
    assert json.loads(create.content)["Labels"] == {"team": "a"}
    assert json.loads(connect.content) == {
        "Container": "c1",
        "EndpointConfig": {"Aliases": ["api"], "IPAMConfig": {"IPv4Address": "172.20.0.5"}},
    }
    assert json.loads(disconnect.content) == {"Container": "c1", "Force": True}
    assert (delete.method, delete.url.path) == ("DELETE", "/v1.41/networks/n1")


@pytest.mark.asyncio
async def test_network_prune(make_docker) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"NetworksDeleted": ["old"]})

    report = await make_docker(handler).networks().prune()
    assert report.networks_deleted == ["old"]


@pytest.mark.asyncio
async def test_volume_lifecycle(make_docker) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        path = request.url.path
        if path.endswith("/volumes/create"):
            return httpx.Response(201, json={"Name": "data", "Driver": "local"})
        if path == "/v1.41/volumes":
            return httpx.Response(200, json={"Volumes": None, "Warnings": None})
        if request.method == "GET":
            return httpx.Response(
                200, json={"Name": "data", "Mountpoint": "/var/lib/docker/volumes/data"}
            )
        return httpx.Response(204)

    volumes = make_docker(handler).volumes()
    created = await volumes.create("data", labels={"keep": "yes"})
    listed = await volumes.list()
    details = await volumes.get("data").inspect()
    await volumes.get("data").delete(force=True)

    assert created.name == "data"
    assert listed == []
    assert details.mountpoint == "/var/lib/docker/volumes/data"
    assert json.loads(seen[0].content) == {"Name": "data", "Labels": {"keep": "yes"}}
    assert seen[-1].method == "DELETE"
    assert seen[-1].url.params["force"] == "true"


@pytest.mark.asyncio
async def test_volume_prune(make_docker) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v1.41/volumes/prune"
        return httpx.Response(200, json={"VolumesDeleted": ["v"], "SpaceReclaimed": 1})

    report = await make_docker(handler).volumes().prune()
    assert report.volumes_deleted == ["v"]
