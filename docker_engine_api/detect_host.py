"""Detect the daemon endpoint the same way the ``docker`` CLI does.

Resolution order:

1. ``DOCKER_CONTEXT`` -> the host stored in that context's metadata
2. ``DOCKER_HOST``
3. ``currentContext`` in ``<config dir>/config.json``
4. The platform default endpoint
"""

from __future__ import annotations

import hashlib
import json
import socket
from pathlib import Path
from typing import Any

import structlog

from docker_engine_api.config import Settings
from docker_engine_api.errors import EndpointError

logger = structlog.get_logger(__name__)

if hasattr(socket, "AF_UNIX"):
    DEFAULT_DOCKER_ENDPOINT = "unix:///var/run/docker.sock"
else:
    # Named pipes are not supported; fall back to the daemon's TCP port.
    DEFAULT_DOCKER_ENDPOINT = "tcp://127.0.0.1:2375"


def find_docker_host(settings: Settings) -> str:
    """Return the daemon URI selected by *settings* and the CLI config.

    Raises:
        EndpointError: If the selected context cannot be read, or
                       ``config.json`` exists but names no usable context.
    """
    if settings.DOCKER_CONTEXT and settings.DOCKER_CONTEXT.strip():
        return host_from_context(settings.DOCKER_CONTEXT, docker_config_dir(settings))

    if settings.DOCKER_HOST and settings.DOCKER_HOST.strip():
        return settings.DOCKER_HOST

    config_file = docker_config_dir(settings) / "config.json"
    if config_file.exists():
        host = host_from_config_file(config_file)
        if host is None:
            raise EndpointError(f"{config_file} does not select a docker context")
        return host

    return DEFAULT_DOCKER_ENDPOINT


def docker_config_dir(settings: Settings) -> Path:
    """Return ``DOCKER_CONFIG`` or ``~/.docker``."""
    if settings.DOCKER_CONFIG and settings.DOCKER_CONFIG.strip():
        return Path(settings.DOCKER_CONFIG)
    try:
        return Path.home() / ".docker"
    except RuntimeError as exc:
        raise EndpointError("Cannot find the user home directory") from exc


def host_from_config_file(config_file: Path) -> str | None:
    """Resolve ``currentContext`` from a CLI ``config.json``.

    Returns ``None`` when the file sets no current context.
    """
    data = _read_json(config_file)
    context = data.get("currentContext") if isinstance(data, dict) else None
    if not isinstance(context, str):
        return None
    return host_from_context(context, config_file.parent)


def host_from_context(context: str, config_dir: Path) -> str:
    """Load the host of *context* from its metadata file.

    Metadata lives in ``contexts/meta/<sha256 of name>/meta.json`` under
    the config directory, with the host at ``Endpoints.docker.Host``.
    """
    digest = hashlib.sha256(context.encode("utf-8")).hexdigest()
    meta_file = config_dir / "contexts" / "meta" / digest / "meta.json"
    data = _read_json(meta_file)
    try:
        host = data["Endpoints"]["docker"]["Host"]
    except (KeyError, TypeError) as exc:
        raise EndpointError(
            f"{meta_file} is missing field Endpoints.docker.Host"
        ) from exc
    if not isinstance(host, str):
        raise EndpointError(f"{meta_file} has a non-string Endpoints.docker.Host")
    logger.debug("docker_context_resolved", context=context, host=host)
    return host


def _read_json(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise EndpointError(f"Cannot read {path}: {exc}") from exc
    try:
        return json.loads(text)
    except ValueError as exc:
        raise EndpointError(f"Invalid JSON in {path}: {exc}") from exc
