"""Shared pytest fixtures for the Docker Engine API test suite."""

from __future__ import annotations

from typing import AsyncIterator, Callable

import httpx
import pytest
import pytest_asyncio

from docker_engine_api.conn.transport import TcpTransport
from docker_engine_api.docker import Docker
from docker_engine_api.version import LATEST_API_VERSION, ApiVersion

DockerFactory = Callable[..., Docker]

_DOCKER_ENV = (
    "DOCKER_HOST",
    "DOCKER_CONTEXT",
    "DOCKER_CONFIG",
    "DOCKER_CERT_PATH",
    "DOCKER_TLS_VERIFY",
    "DOCKER_API_VERSION",
    "DOCKER_TIMEOUT",
)


@pytest.fixture(autouse=True)
def _clean_docker_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's Docker environment out of the tests."""
    for name in _DOCKER_ENV:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def requests() -> list[httpx.Request]:
    """Requests seen by the fake daemon, in arrival order."""
    return []


@pytest_asyncio.fixture()
async def make_docker() -> AsyncIterator[DockerFactory]:
    """Yield a factory building ``Docker`` clients against a fake daemon.

    The factory takes a handler receiving each ``httpx.Request`` and
    returning an ``httpx.Response``.  Requests never leave the process:
    ``httpx.MockTransport`` is injected into a TCP transport.
    """
    clients: list[httpx.AsyncClient] = []

    def factory(handler, *, version: ApiVersion = LATEST_API_VERSION) -> Docker:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        clients.append(client)
        return Docker(TcpTransport("127.0.0.1:2375", client=client), version)

    yield factory
    for client in clients:
        await client.aclose()


@pytest_asyncio.fixture()
async def recording_docker(
    make_docker: DockerFactory, requests: list[httpx.Request]
) -> Callable[[httpx.Response], Docker]:
    """Return a factory for a daemon answering every request with one response."""

    def factory(response: httpx.Response) -> Docker:
        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return response

        return make_docker(handler)

    return factory
