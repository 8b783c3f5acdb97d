"""Tests for container operations against a fake daemon."""

from __future__ import annotations

import base64
import io
import json
import tarfile

import httpx
import pytest
from fakes import FakeNetworkStream, chunked, frame

from docker_engine_api.conn.tty import Multiplexer, StreamKind
from docker_engine_api.errors import Fault, InvalidResponse
from docker_engine_api.models import ContainerSummary, Stats


@pytest.mark.asyncio
async def test_list_containers(make_docker) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json=[
                {"Id": "c1", "Names": ["/web"], "Image": "nginx", "State": "running"},
                {"Id": "c2", "Names": ["/db"], "ImageID": "sha256:abc", "Extra": 1},
            ],
        )

    docker = make_docker(handler)
    containers = await docker.containers().list(all=True, filters={"status": ["running"]})

    assert all(isinstance(c, ContainerSummary) for c in containers)
    assert [c.id for c in containers] == ["c1", "c2"]
    assert containers[0].names == ["/web"]
    assert containers[1].image_id == "sha256:abc"
    request = seen[0]
    assert request.url.path == "/v1.41/containers/json"
    assert request.url.params["all"] == "true"
    assert json.loads(request.url.params["filters"]) == {"status": ["running"]}


@pytest.mark.asyncio
async def test_create_container_with_ports(make_docker) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json={"Id": "new1", "Warnings": ["low memory"]})

    docker = make_docker(handler)
    container = await docker.containers().create(
        {"Image": "nginx", "HostConfig": {"Memory": 1024}},
        name="web",
        expose=["53/udp"],
        publish={80: 8080},
    )

    assert container.id == "new1"
    request = seen[0]
    assert request.method == "POST"
    assert request.url.params["name"] == "web"
    body = json.loads(request.content)
    assert body["Image"] == "nginx"
    assert body["ExposedPorts"] == {"53/udp": {}, "80/tcp": {}}
    assert body["HostConfig"] == {
        "Memory": 1024,
        "PortBindings": {"80/tcp": [{"HostPort": "8080"}]},
    }


@pytest.mark.asyncio
async def test_inspect_missing_container_raises_fault(make_docker) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"message": "No such container: doesnotexist"})

    docker = make_docker(handler)
    with pytest.raises(Fault) as excinfo:
        await docker.containers().get("doesnotexist").inspect()
    assert excinfo.value.code == 404


@pytest.mark.asyncio
async def test_top_and_changes(make_docker) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path.endswith("/top"):
            return httpx.Response(
                200, json={"Titles": ["PID", "CMD"], "Processes": [["1", "nginx"]]}
            )
        return httpx.Response(200, json=None)

    container = make_docker(handler).containers().get("c1")
    top = await container.top("aux")
    changes = await container.changes()

    assert top.titles == ["PID", "CMD"]
    assert top.processes == [["1", "nginx"]]
    assert changes == []
    assert seen[0].url.params["ps_args"] == "aux"


@pytest.mark.asyncio
async def test_logs_demultiplexes_output(make_docker) -> None:
    seen: list[httpx.Request] = []
    body = frame(1, b"line 1\n") + frame(2, b"error\n")

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=chunked(body[:5], body[5:]))

    container = make_docker(handler).containers().get("c1")
    chunks = [c async for c in container.logs(tail=10, timestamps=True, tty=False)]

    assert [(c.kind, c.data) for c in chunks] == [
        (StreamKind.STDOUT, b"line 1\n"),
        (StreamKind.STDERR, b"error\n"),
    ]
    params = seen[0].url.params
    assert params["tail"] == "10"
    assert params["timestamps"] == "true"
    assert params["follow"] == "false"


@pytest.mark.asyncio
async def test_logs_inspects_for_tty_when_unknown(make_docker) -> None:
    paths: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        if request.url.path.endswith("/json"):
            return httpx.Response(200, json={"Id": "c1", "Config": {"Tty": True}})
        return httpx.Response(200, content=b"raw tty output")

    container = make_docker(handler).containers().get("c1")
    chunks = [c async for c in container.logs()]

    assert paths == ["/v1.41/containers/c1/json", "/v1.41/containers/c1/logs"]
    assert [c.data for c in chunks] == [b"raw tty output"]


@pytest.mark.asyncio
async def test_stats_stream(make_docker) -> None:
    sample = json.dumps({"id": "c1", "memory_stats": {"usage": 1}}).encode()

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["stream"] == "false"
        return httpx.Response(200, content=sample + b"\n")

    container = make_docker(handler).containers().get("c1")
    samples = [s async for s in container.stats(stream=False)]

    assert len(samples) == 1
    assert isinstance(samples[0], Stats)
    assert samples[0].memory_stats == {"usage": 1}


@pytest.mark.asyncio
async def test_lifecycle_endpoints(make_docker) -> None:
    seen: list[tuple[str, str, dict[str, str]]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path, dict(request.url.params)))
        if request.url.path.endswith("/wait"):
            return httpx.Response(200, json={"StatusCode": 3})
        return httpx.Response(204)

    container = make_docker(handler).containers().get("c1")
    await container.start()
    await container.stop(wait=5)
    await container.restart()
    await container.kill("SIGKILL")
    await container.rename("renamed")
    await container.pause()
    await container.unpause()
    result = await container.wait()
    await container.remove(force=True)
    await container.delete()

    assert result.status_code == 3
    assert seen == [
        ("POST", "/v1.41/containers/c1/start", {}),
        ("POST", "/v1.41/containers/c1/stop", {"t": "5"}),
        ("POST", "/v1.41/containers/c1/restart", {}),
        ("POST", "/v1.41/containers/c1/kill", {"signal": "SIGKILL"}),
        ("POST", "/v1.41/containers/c1/rename", {"name": "renamed"}),
        ("POST", "/v1.41/containers/c1/pause", {}),
        ("POST", "/v1.41/containers/c1/unpause", {}),
        ("POST", "/v1.41/containers/c1/wait", {}),
        ("DELETE", "/v1.41/containers/c1", {"force": "true", "v": "false", "link": "false"}),
        ("DELETE", "/v1.41/containers/c1", {}),
    ]


@pytest.mark.asyncio
async def test_prune(make_docker) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, json={"ContainersDeleted": ["c1", "c2"], "SpaceReclaimed": 2048}
        )

    report = await make_docker(handler).containers().prune()
    assert report.containers_deleted == ["c1", "c2"]
    assert report.space_reclaimed == 2048


@pytest.mark.asyncio
async def test_stat_file_decodes_header(make_docker) -> None:
    stat = {"name": "hosts", "size": 174, "mode": 420}
    encoded = base64.b64encode(json.dumps(stat).encode()).decode()

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "HEAD"
        assert request.url.params["path"] == "/etc/hosts"
        return httpx.Response(200, headers={"X-Docker-Container-Path-Stat": encoded})

    container = make_docker(handler).containers().get("c1")
    assert await container.stat_file("/etc/hosts") == stat


@pytest.mark.asyncio
async def test_stat_file_without_header_is_invalid(make_docker) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200)

    container = make_docker(handler).containers().get("c1")
    with pytest.raises(InvalidResponse):
        await container.stat_file("/etc/hosts")


@pytest.mark.asyncio
async def test_copy_file_into_uploads_tar(make_docker) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200)

    container = make_docker(handler).containers().get("c1")
    await container.copy_file_into("/etc/app/config.toml", b"key = 1\n")

    request = seen[0]
    assert request.method == "PUT"
    assert request.url.path == "/v1.41/containers/c1/archive"
    assert request.url.params["path"] == "/etc/app"
    assert request.headers["content-type"] == "application/tar"
    with tarfile.open(fileobj=io.BytesIO(request.content)) as archive:
        assert archive.extractfile("config.toml").read() == b"key = 1\n"


@pytest.mark.asyncio
async def test_copy_from_streams_archive(make_docker) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=chunked(b"tar", b"data"))

    container = make_docker(handler).containers().get("c1")
    assert b"".join([c async for c in container.copy_from("/etc")]) == b"tardata"


@pytest.mark.asyncio
async def test_exec_creates_and_starts(make_docker) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path.endswith("/exec"):
            return httpx.Response(201, json={"Id": "e1"})
        return httpx.Response(200, content=frame(1, b"hi\n"))

    container = make_docker(handler).containers().get("c1")
    output = [c async for c in container.exec(["echo", "hi"], env=["A=1"])]

    assert [c.data for c in output] == [b"hi\n"]
    create, start = seen
    assert create.url.path == "/v1.41/containers/c1/exec"
    assert json.loads(create.content)["Cmd"] == ["echo", "hi"]
    assert json.loads(create.content)["Env"] == ["A=1"]
    assert start.url.path == "/v1.41/exec/e1/start"
    assert json.loads(start.content) == {"Detach": False, "Tty": False}


@pytest.mark.asyncio
async def test_attach_upgrades_connection(make_docker) -> None:
    seen: list[httpx.Request] = []
    network = FakeNetworkStream(frame(1, b"ready\n"))

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(101, extensions={"network_stream": network})

    container = make_docker(handler).containers().get("c1")
    session = await container.attach(tty=False)
    assert isinstance(session, Multiplexer)
    async with session:
        await session.write(b"input\n")
        output = [c async for c in session]

    assert [c.data for c in output] == [b"ready\n"]
    assert network.written == [b"input\n"]
    params = seen[0].url.params
    assert (params["stream"], params["stdin"], params["stdout"], params["stderr"]) == (
        "1",
        "1",
        "1",
        "1",
    )


@pytest.mark.asyncio
async def test_closing_logs_early_closes_the_response(make_docker) -> None:
    responses: list[httpx.Response] = []

    def handler(request: httpx.Request) -> httpx.Response:
        response = httpx.Response(
            200, content=chunked(frame(1, b"one\n"), frame(1, b"two\n"))
        )
        responses.append(response)
        return response

    logs = make_docker(handler).containers().get("c1").logs(follow=True, tty=False)
    async for chunk in logs:
        assert chunk.data == b"one\n"
        break
    await logs.aclose()

    assert responses[0].is_closed
