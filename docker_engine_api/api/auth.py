"""Registry credentials sent in the ``X-Registry-Auth`` header."""

from __future__ import annotations

import base64

from pydantic import BaseModel, ConfigDict, Field


class RegistryAuth(BaseModel):
    """Credentials for pulling from or pushing to a registry.

    Use :meth:`with_password` for username/password login or :meth:`token` for
    an identity token obtained from ``/auth``.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    username: str | None = None
    password: str | None = None
    email: str | None = None
    server_address: str | None = Field(default=None, alias="serveraddress")
    identity_token: str | None = Field(default=None, alias="identitytoken")

    @classmethod
    def with_password(
        cls,
        username: str,
        password: str,
        *,
        email: str | None = None,
        server_address: str | None = None,
    ) -> RegistryAuth:
        return cls(
            username=username,
            password=password,
            email=email,
            server_address=server_address,
        )

    @classmethod
    def token(cls, identity_token: str) -> RegistryAuth:
        return cls(identity_token=identity_token)

    def serialize(self) -> str:
        """Return the URL-safe base64 encoding of the credentials JSON."""
        payload = self.model_dump_json(by_alias=True, exclude_none=True)
        return base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii")
