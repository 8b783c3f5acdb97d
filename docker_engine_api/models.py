"""Response models for the Docker Engine API.

Only the responses the client hands back directly are modelled.  Field
names are snake_case with Docker's own spelling as the alias; unknown
fields are kept so nothing the daemon sends is lost.
"""

from __future__ import annotations

import functools
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel, to_pascal

from docker_engine_api.errors import SerializationError


@functools.lru_cache(maxsize=None)
def _adapter(tp: Any) -> TypeAdapter[Any]:
    return TypeAdapter(tp)


def validate(tp: Any, data: Any) -> Any:
    """Validate decoded JSON *data* against the type *tp*.

    *tp* may be a model class or a generic such as ``list[ContainerSummary]``.

    Raises:
        SerializationError: If the data does not match.
    """
    try:
        return _adapter(tp).validate_python(data)
    except ValidationError as exc:
        raise SerializationError(f"Unexpected response shape: {exc}") from exc


class DockerModel(BaseModel):
    """Base for models whose JSON keys are PascalCase."""

    model_config = ConfigDict(
        alias_generator=to_pascal,
        populate_by_name=True,
        extra="allow",
    )


# ---------------------------------------------------------------------------
# System
# ---------------------------------------------------------------------------


class SystemVersion(DockerModel):
    version: str | None = None
    api_version: str | None = None
    min_api_version: str | None = Field(default=None, alias="MinAPIVersion")
    git_commit: str | None = None
    go_version: str | None = None
    os: str | None = None
    arch: str | None = None
    kernel_version: str | None = None
    build_time: str | None = None


class SystemInfo(DockerModel):
    id: str | None = Field(default=None, alias="ID")
    containers: int | None = None
    containers_running: int | None = None
    images: int | None = None
    driver: str | None = None
    docker_root_dir: str | None = None
    kernel_version: str | None = None
    mem_total: int | None = None
    n_cpu: int | None = Field(default=None, alias="NCPU")
    name: str | None = None
    operating_system: str | None = None
    server_version: str | None = None


class Actor(DockerModel):
    id: str | None = Field(default=None, alias="ID")
    attributes: dict[str, str] = {}


class Event(BaseModel):
    """A single entry of the ``/events`` stream."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    type: str | None = Field(default=None, alias="Type")
    action: str | None = Field(default=None, alias="Action")
    actor: Actor | None = Field(default=None, alias="Actor")
    scope: str | None = None
    time: int | None = None
    time_nano: int | None = Field(default=None, alias="timeNano")


# ---------------------------------------------------------------------------
# Containers
# ---------------------------------------------------------------------------


class ContainerSummary(DockerModel):
    id: str
    names: list[str] = []
    image: str | None = None
    image_id: str | None = Field(default=None, alias="ImageID")
    command: str | None = None
    created: int | None = None
    state: str | None = None
    status: str | None = None
    ports: list[dict[str, Any]] = []
    labels: dict[str, str] | None = None
    size_rw: int | None = None
    size_root_fs: int | None = None


class ContainerDetails(DockerModel):
    id: str
    created: str | None = None
    path: str | None = None
    args: list[str] = []
    state: dict[str, Any] | None = None
    image: str | None = None
    name: str | None = None
    restart_count: int | None = None
    config: dict[str, Any] | None = None
    host_config: dict[str, Any] | None = None
    network_settings: dict[str, Any] | None = None
    mounts: list[dict[str, Any]] = []


class ContainerCreateResponse(DockerModel):
    id: str
    warnings: list[str] | None = None


class ContainerWaitResponse(DockerModel):
    status_code: int
    error: dict[str, Any] | None = None


class Top(DockerModel):
    titles: list[str] = []
    processes: list[list[str]] = []


class Change(DockerModel):
    path: str
    kind: int


class Stats(BaseModel):
    """One sample of the ``/containers/{id}/stats`` stream."""

    model_config = ConfigDict(extra="allow")

    id: str | None = None
    name: str | None = None
    read: str | None = None
    cpu_stats: dict[str, Any] | None = None
    precpu_stats: dict[str, Any] | None = None
    memory_stats: dict[str, Any] | None = None
    networks: dict[str, Any] | None = None


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------


class ImageSummary(DockerModel):
    id: str
    parent_id: str | None = None
    repo_tags: list[str] | None = None
    repo_digests: list[str] | None = None
    created: int | None = None
    size: int | None = None
    shared_size: int | None = None
    labels: dict[str, str] | None = None
    containers: int | None = None


class ImageDetails(DockerModel):
    id: str
    repo_tags: list[str] | None = None
    repo_digests: list[str] | None = None
    parent: str | None = None
    created: str | None = None
    architecture: str | None = None
    os: str | None = None
    size: int | None = None
    config: dict[str, Any] | None = None


class ImageHistoryItem(DockerModel):
    id: str
    created: int | None = None
    created_by: str | None = None
    tags: list[str] | None = None
    size: int | None = None
    comment: str | None = None


class ImageDeleteItem(DockerModel):
    untagged: str | None = None
    deleted: str | None = None


class ImageSearchItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    description: str | None = None
    star_count: int | None = None
    is_official: bool | None = None
    is_automated: bool | None = None


class ImageBuildChunk(BaseModel):
    """One progress message from a build, pull, push or import stream.

    Exactly which fields are set depends on the message: build output has
    ``stream``, pull progress has ``status``/``progress``, failures carry
    ``error`` and digests arrive in ``aux``.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    stream: str | None = None
    status: str | None = None
    id: str | None = None
    progress: str | None = None
    progress_detail: dict[str, Any] | None = None
    error: str | None = None
    error_detail: dict[str, Any] | None = None
    aux: dict[str, Any] | None = None

    @property
    def is_error(self) -> bool:
        return self.error is not None


# ---------------------------------------------------------------------------
# Networks, volumes, exec
# ---------------------------------------------------------------------------


class NetworkInfo(DockerModel):
    id: str
    name: str
    created: str | None = None
    scope: str | None = None
    driver: str | None = None
    enable_ipv6: bool | None = Field(default=None, alias="EnableIPv6")
    internal: bool | None = None
    attachable: bool | None = None
    containers: dict[str, Any] | None = None
    options: dict[str, str] | None = None
    labels: dict[str, str] | None = None


class NetworkCreateResponse(DockerModel):
    id: str
    warning: str | None = None


class VolumeInfo(DockerModel):
    name: str
    driver: str | None = None
    mountpoint: str | None = None
    created_at: str | None = None
    labels: dict[str, str] | None = None
    scope: str | None = None
    options: dict[str, str] | None = None


class VolumeList(DockerModel):
    volumes: list[VolumeInfo] | None = None
    warnings: list[str] | None = None


class ExecInspect(DockerModel):
    id: str = Field(alias="ID")
    running: bool | None = None
    exit_code: int | None = None
    open_stdin: bool | None = None
    open_stderr: bool | None = None
    open_stdout: bool | None = None
    container_id: str | None = Field(default=None, alias="ContainerID")
    pid: int | None = None
    process_config: dict[str, Any] | None = None


class PruneReport(BaseModel):
    """Result of any ``/<resource>/prune`` call."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    space_reclaimed: int | None = Field(default=None, alias="SpaceReclaimed")
    containers_deleted: list[str] | None = Field(default=None, alias="ContainersDeleted")
    images_deleted: list[dict[str, Any]] | None = Field(default=None, alias="ImagesDeleted")
    networks_deleted: list[str] | None = Field(default=None, alias="NetworksDeleted")
    volumes_deleted: list[str] | None = Field(default=None, alias="VolumesDeleted")
    caches_deleted: list[str] | None = Field(default=None, alias="CachesDeleted")
