"""Async client for the Docker Engine API.

Example::

    async with Docker.from_env() as docker:
        for summary in await docker.containers().list(all=True):
            print(summary.id, summary.names)
"""

from docker_engine_api.api import (
    Container,
    Containers,
    Exec,
    Image,
    Images,
    Network,
    Networks,
    PublishPort,
    RegistryAuth,
    Volume,
    Volumes,
)
from docker_engine_api.config import Settings
from docker_engine_api.conn import Multiplexer, StreamKind, TtyChunk, UpgradedStream
from docker_engine_api.docker import Docker
from docker_engine_api.errors import DockerError, Fault
from docker_engine_api.version import LATEST_API_VERSION, ApiVersion

__version__ = "0.1.0"

__all__ = [
    "ApiVersion",
    "Container",
    "Containers",
    "Docker",
    "DockerError",
    "Exec",
    "Fault",
    "Image",
    "Images",
    "LATEST_API_VERSION",
    "Multiplexer",
    "Network",
    "Networks",
    "PublishPort",
    "RegistryAuth",
    "Settings",
    "StreamKind",
    "TtyChunk",
    "UpgradedStream",
    "Volume",
    "Volumes",
    "__version__",
]
