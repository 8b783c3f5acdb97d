"""Docker Engine API version handling."""

from __future__ import annotations

from dataclasses import dataclass

from docker_engine_api.errors import MalformedVersion


@dataclass(frozen=True, order=True)
class ApiVersion:
    """A ``major.minor`` Docker Engine API version.

    Instances order naturally, so ``ApiVersion(1, 40) < ApiVersion(1, 41)``.
    """

    major: int
    minor: int

    @classmethod
    def parse(cls, value: str) -> ApiVersion:
        """Parse a version string such as ``"1.41"``.

        Raises:
            MalformedVersion: If either part is not a number, the minor
                              part is missing, or extra parts follow.
        """
        parts = value.split(".")
        if not parts[0].isdigit():
            raise MalformedVersion(f"Invalid version - bad major part in {value!r}")
        if len(parts) < 2:
            raise MalformedVersion("Invalid version - expected minor version")
        if not parts[1].isdigit():
            raise MalformedVersion(f"Invalid version - bad minor part in {value!r}")
        if len(parts) > 2:
            raise MalformedVersion("Invalid version - unexpected extra tokens")
        return cls(int(parts[0]), int(parts[1]))

    def make_endpoint(self, endpoint: str) -> str:
        """Prefix *endpoint* with this version's path segment."""
        sep = "" if endpoint.startswith("/") else "/"
        return f"/v{self}{sep}{endpoint}"

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"


LATEST_API_VERSION = ApiVersion(1, 41)
