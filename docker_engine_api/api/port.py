"""Container port specifications (``80/tcp``)."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from docker_engine_api.errors import InvalidPort, InvalidProtocol


class Protocol(str, enum.Enum):
    TCP = "tcp"
    UDP = "udp"
    SCTP = "sctp"

    @classmethod
    def parse(cls, value: str) -> Protocol:
        try:
            return cls(value)
        except ValueError as exc:
            raise InvalidProtocol(value) from exc


@dataclass(frozen=True)
class PublishPort:
    """A container port together with its protocol."""

    port: int
    protocol: Protocol = Protocol.TCP

    @classmethod
    def tcp(cls, port: int) -> PublishPort:
        return cls(port, Protocol.TCP)

    @classmethod
    def udp(cls, port: int) -> PublishPort:
        return cls(port, Protocol.UDP)

    @classmethod
    def sctp(cls, port: int) -> PublishPort:
        return cls(port, Protocol.SCTP)

    @classmethod
    def parse(cls, value: str) -> PublishPort:
        """Parse ``"<port>/<protocol>"``.

        Raises:
            InvalidPort: If the port is not a number or the protocol is missing.
            InvalidProtocol: If the protocol is not tcp, udp or sctp.
        """
        port, sep, protocol = value.partition("/")
        if not port.isdigit():
            raise InvalidPort(f"expected port number - got {port!r}")
        if not sep or not protocol:
            raise InvalidPort("missing protocol")
        return cls(int(port), Protocol.parse(protocol))

    def __str__(self) -> str:
        return f"{self.port}/{self.protocol.value}"


def as_port(value: PublishPort | str | int) -> PublishPort:
    """Coerce a port given as ``PublishPort``, ``"80/udp"`` or a bare TCP number."""
    if isinstance(value, PublishPort):
        return value
    if isinstance(value, int):
        return PublishPort.tcp(value)
    return PublishPort.parse(value)
