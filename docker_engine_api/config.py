"""Client configuration via environment variables and .env file.

Uses pydantic-settings to read the same environment variables the
``docker`` command line understands, with optional fallback to a .env
file.  Settings are only consulted by ``Docker.from_env`` and host
detection; explicit constructors ignore them.
"""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Connection settings for the Docker daemon.

    Attributes:
        DOCKER_HOST: Daemon socket to connect to
                     (e.g. ``unix:///var/run/docker.sock``, ``tcp://10.0.0.5:2376``).
        DOCKER_CONTEXT: Name of the ``docker context`` to use; overrides
                        ``DOCKER_HOST``.
        DOCKER_CONFIG: Location of the client configuration directory
                       (defaults to ``~/.docker``).
        DOCKER_CERT_PATH: Directory holding ``cert.pem``, ``key.pem`` and
                          ``ca.pem`` for TLS connections.
        DOCKER_TLS_VERIFY: Any non-empty value turns on verification of the
                           daemon certificate against ``ca.pem``.
        DOCKER_API_VERSION: API version used to prefix request paths.
        DOCKER_TIMEOUT: Timeout in seconds for connecting and reading.
        LOG_LEVEL: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    DOCKER_HOST: str | None = None
    DOCKER_CONTEXT: str | None = None
    DOCKER_CONFIG: str | None = None
    DOCKER_CERT_PATH: str | None = None
    DOCKER_TLS_VERIFY: str | None = None
    DOCKER_API_VERSION: str = "1.41"
    DOCKER_TIMEOUT: float = 60.0
    LOG_LEVEL: str = "INFO"

    @property
    def tls_verify(self) -> bool:
        return bool(self.DOCKER_TLS_VERIFY)
