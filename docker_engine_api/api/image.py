"""Create and manage images.

API Reference: https://docs.docker.com/engine/api/v1.41/#tag/Image
"""

from __future__ import annotations

import asyncio
import io
import os
from typing import TYPE_CHECKING, Any, AsyncIterator

import structlog

from docker_engine_api import tarball
from docker_engine_api.api.auth import RegistryAuth
from docker_engine_api.conn.payload import AUTH_HEADER, Body, Headers, Payload
from docker_engine_api.models import (
    ImageBuildChunk,
    ImageDeleteItem,
    ImageDetails,
    ImageHistoryItem,
    ImageSearchItem,
    ImageSummary,
    PruneReport,
)
from docker_engine_api.util import construct_ep

if TYPE_CHECKING:
    from docker_engine_api.docker import Docker

logger = structlog.get_logger(__name__)


def _auth_headers(auth: RegistryAuth | None) -> Headers | None:
    if auth is None:
        return Headers.none()
    return Headers.single(AUTH_HEADER, auth.serialize())


async def _tar_directory(path: str | os.PathLike[str]) -> bytes:
    buf = io.BytesIO()
    await asyncio.to_thread(tarball.directory, buf, path)
    return buf.getvalue()


class Images:
    """Operations on the set of images of a daemon."""

    def __init__(self, docker: Docker) -> None:
        self.docker = docker

    async def list(
        self,
        *,
        all: bool = False,
        digests: bool = False,
        filters: dict[str, list[str]] | None = None,
    ) -> list[ImageSummary]:
        """List images; intermediate layers only when *all* is set.

        API Reference: https://docs.docker.com/engine/api/v1.41/#operation/ImageList
        """
        ep = construct_ep(
            "/images/json",
            {"all": all or None, "digests": digests or None, "filters": filters},
        )
        return await self.docker.get_json(ep, list[ImageSummary])

    def get(self, name: str) -> Image:
        """Return a handle for *name* (name, ``name:tag``, ID or digest)."""
        return Image(self.docker, name)

    async def build(
        self,
        path: str | os.PathLike[str],
        *,
        tag: str | None = None,
        dockerfile: str | None = None,
        quiet: bool = False,
        nocache: bool = False,
        pull: bool = False,
        rm: bool = True,
        forcerm: bool = False,
        buildargs: dict[str, str] | None = None,
        labels: dict[str, str] | None = None,
        network_mode: str | None = None,
        platform: str | None = None,
        target: str | None = None,
    ) -> AsyncIterator[ImageBuildChunk]:
        """Build an image from the directory at *path* and yield progress.

        The directory is sent as a gzip tarball build context; it must hold
        the Dockerfile unless *dockerfile* points elsewhere inside it.  A
        failed build ends with a chunk whose ``error`` is set.
        """
        ep = construct_ep(
            "/build",
            {
                "t": tag,
                "dockerfile": dockerfile,
                "q": quiet or None,
                "nocache": nocache or None,
                "pull": pull or None,
                "rm": rm,
                "forcerm": forcerm or None,
                "buildargs": buildargs,
                "labels": labels,
                "networkmode": network_mode,
                "platform": platform,
                "target": target,
            },
        )
        context = await _tar_directory(path)
        await logger.adebug("docker_build_context", path=str(path), size=len(context))
        async for chunk in self.docker.stream_post_into(
            ep, Payload.tar(context), model=ImageBuildChunk
        ):
            yield chunk

    def pull(
        self,
        image: str,
        *,
        tag: str | None = "latest",
        platform: str | None = None,
        auth: RegistryAuth | None = None,
    ) -> AsyncIterator[ImageBuildChunk]:
        """Pull *image* from a registry and yield progress messages.

        With ``tag=None`` every tag of the repository is pulled.
        """
        ep = construct_ep(
            "/images/create",
            {"fromImage": image, "tag": tag, "platform": platform},
        )
        return self.docker.stream_post_into(
            ep, headers=_auth_headers(auth), model=ImageBuildChunk
        )

    def import_(self, tarball_body: Body) -> AsyncIterator[ImageBuildChunk]:
        """Load images from a tarball produced by ``docker save``.

        The tarball may be uncompressed or compressed with gzip, bzip2 or xz.
        """
        return self.docker.stream_post_into(
            "/images/load", Payload.xtar(tarball_body), model=ImageBuildChunk
        )

    def export(self, names: list[str]) -> AsyncIterator[bytes]:
        """Stream several images as one tarball."""
        return self.docker.stream_get(construct_ep("/images/get", {"names": names}))

    async def search(self, term: str, *, limit: int | None = None) -> list[ImageSearchItem]:
        """Search Docker Hub for images matching *term*."""
        ep = construct_ep("/images/search", {"term": term, "limit": limit})
        return await self.docker.get_json(ep, list[ImageSearchItem])

    async def prune(
        self, *, filters: dict[str, list[str]] | None = None
    ) -> PruneReport:
        """Delete unused images."""
        ep = construct_ep("/images/prune", {"filters": filters})
        return await self.docker.post_json(ep, model=PruneReport)

    async def clear_cache(
        self,
        *,
        all: bool = False,
        keep_storage: int | None = None,
        filters: dict[str, list[str]] | None = None,
    ) -> PruneReport:
        """Delete the builder cache."""
        ep = construct_ep(
            "/build/prune",
            {"all": all or None, "keep-storage": keep_storage, "filters": filters},
        )
        return await self.docker.post_json(ep, model=PruneReport)

    async def push(
        self, name: str, *, tag: str | None = None, auth: RegistryAuth | None = None
    ) -> None:
        """Push the image *name* to its registry."""
        await self.get(name).push(tag=tag, auth=auth)


class Image:
    """Handle for a single image.

    Parameters:
        docker: Client the image lives on.
        name: Image name, ``name:tag``, ID or ``name@digest``.
    """

    def __init__(self, docker: Docker, name: str) -> None:
        self.docker = docker
        self.name = name

    def __repr__(self) -> str:
        return f"Image({self.name!r})"

    async def inspect(self) -> ImageDetails:
        return await self.docker.get_json(f"/images/{self.name}/json", ImageDetails)

    async def history(self) -> list[ImageHistoryItem]:
        """Return the layers the image was built from, newest first."""
        return await self.docker.get_json(
            f"/images/{self.name}/history", list[ImageHistoryItem]
        )

    async def remove(
        self, *, force: bool = False, noprune: bool = False
    ) -> list[ImageDeleteItem]:
        """Remove the image with options; returns what was untagged or deleted."""
        ep = construct_ep(
            f"/images/{self.name}", {"force": force or None, "noprune": noprune or None}
        )
        removed = await self.docker.delete_json(ep, list[ImageDeleteItem])
        await logger.ainfo("docker_image_removed", image=self.name, items=len(removed))
        return removed

    async def delete(self) -> list[ImageDeleteItem]:
        """Remove the image without options."""
        return await self.docker.delete_json(
            f"/images/{self.name}", list[ImageDeleteItem]
        )

    def export(self) -> AsyncIterator[bytes]:
        """Stream the image as a tarball."""
        return self.docker.stream_get(f"/images/{self.name}/get")

    async def tag(self, repo: str, tag: str | None = None) -> None:
        """Tag the image as ``repo[:tag]``."""
        await self.docker.post(
            construct_ep(f"/images/{self.name}/tag", {"repo": repo, "tag": tag})
        )

    async def push(
        self, *, tag: str | None = None, auth: RegistryAuth | None = None
    ) -> None:
        """Push the image to its registry."""
        ep = construct_ep(f"/images/{self.name}/push", {"tag": tag})
        await self.docker.post(ep, headers=_auth_headers(auth))
        await logger.ainfo("docker_image_pushed", image=self.name, tag=tag)

    async def distribution_inspect(self) -> dict[str, Any]:
        """Return the digest and platforms of the image as seen by its registry."""
        return await self.docker.post_json(f"/distribution/{self.name}/json")
