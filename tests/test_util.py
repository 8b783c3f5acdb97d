"""Tests for query encoding, payloads, registry auth, ports and tarballs."""

from __future__ import annotations

import base64
import io
import json
import tarfile
from urllib.parse import parse_qsl

import pytest

from docker_engine_api.api.auth import RegistryAuth
from docker_engine_api.api.port import Protocol, PublishPort, as_port
from docker_engine_api.conn.payload import Headers, Payload, PayloadKind
from docker_engine_api.conn.stream import iter_json_values
from docker_engine_api.errors import (
    InvalidPort,
    InvalidProtocol,
    SerializationError,
)
from docker_engine_api.tarball import directory, single_file
from docker_engine_api.util import construct_ep, encode_query


def test_encode_query_value_kinds() -> None:
    query = encode_query(
        {
            "all": True,
            "size": False,
            "limit": 5,
            "missing": None,
            "filters": {"status": ["running"]},
            "names": ["a", "b"],
        }
    )
    pairs = parse_qsl(query)
    assert ("all", "true") in pairs
    assert ("size", "false") in pairs
    assert ("limit", "5") in pairs
    assert [v for k, v in pairs if k == "names"] == ["a", "b"]
    assert json.loads(dict(pairs)["filters"]) == {"status": ["running"]}
    assert "missing" not in dict(pairs)


def test_construct_ep() -> None:
    assert construct_ep("/containers/json") == "/containers/json"
    assert construct_ep("/containers/json", {"all": None}) == "/containers/json"
    assert construct_ep("/images/search", {"term": "nginx"}) == "/images/search?term=nginx"


def test_payload_kinds_and_mime_types() -> None:
    assert Payload.empty().is_none()
    assert Payload.empty().into_inner() is None
    assert Payload.text("x").mime_type() is None
    assert Payload.json({"a": 1}).into_inner() == '{"a": 1}'
    assert Payload.json(b"{}").into_inner() == b"{}"
    assert Payload.xtar(b"").mime_type() == "application/x-tar"
    assert Payload.tar(b"").kind is PayloadKind.TAR
    assert Payload.tar(b"").mime_type() == "application/tar"
    with pytest.raises(SerializationError):
        Payload.json({"bad": object()})


def test_headers_keep_order() -> None:
    headers = Headers.single("A", "1")
    headers.add("B", "2")
    assert list(headers) == [("A", "1"), ("B", "2")]
    assert len(headers) == 2
    assert Headers.none() is None


def test_iter_json_values_handles_concatenated_documents() -> None:
    assert list(iter_json_values(b'{"a":1}{"b":2}\r\n {"c":3}\r\n')) == [
        {"a": 1},
        {"b": 2},
        {"c": 3},
    ]
    assert list(iter_json_values(b"\r\n")) == []
    with pytest.raises(SerializationError):
        list(iter_json_values(b'{"a":'))


def _decode_auth(value: str) -> dict:
    return json.loads(base64.urlsafe_b64decode(value.encode()))


def test_registry_auth_token() -> None:
    auth = RegistryAuth.token("abc")
    assert _decode_auth(auth.serialize()) == {"identitytoken": "abc"}


def test_registry_auth_password() -> None:
    auth = RegistryAuth.with_password(
        "user", "pass", email="me@example.com", server_address="registry.example.com"
    )
    assert _decode_auth(auth.serialize()) == {
        "username": "user",
        "password": "pass",
        "email": "me@example.com",
        "serveraddress": "registry.example.com",
    }


def test_publish_port_parsing() -> None:
    assert PublishPort.parse("80/tcp") == PublishPort.tcp(80)
    assert str(PublishPort.parse("53/udp")) == "53/udp"
    assert PublishPort.parse("132/sctp").protocol is Protocol.SCTP
    assert as_port(8080) == PublishPort(8080, Protocol.TCP)
    assert as_port("1/udp") == PublishPort.udp(1)


@pytest.mark.parametrize("value", ["http/tcp", "80", "80/"])
def test_publish_port_rejects_bad_ports(value: str) -> None:
    with pytest.raises(InvalidPort):
        PublishPort.parse(value)


def test_publish_port_rejects_bad_protocol() -> None:
    with pytest.raises(InvalidProtocol):
        PublishPort.parse("80/icmp")


def test_directory_tarball_uses_relative_names(tmp_path) -> None:
    (tmp_path / "Dockerfile").write_text("FROM scratch\n")
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "app.py").write_text("print('hi')\n")

    buf = io.BytesIO()
    directory(buf, tmp_path)
    buf.seek(0)
    with tarfile.open(fileobj=buf, mode="r:gz") as archive:
        names = archive.getnames()
        dockerfile = archive.extractfile("Dockerfile").read()

    assert sorted(names) == ["Dockerfile", "src", "src/app.py"]
    assert dockerfile == b"FROM scratch\n"


def test_directory_tarball_requires_directory(tmp_path) -> None:
    target = tmp_path / "file"
    target.write_text("x")
    with pytest.raises(NotADirectoryError):
        directory(io.BytesIO(), target)


def test_single_file_tarball() -> None:
    data = single_file("hello.txt", b"hello", mode=0o600)
    with tarfile.open(fileobj=io.BytesIO(data)) as archive:
        member = archive.getmember("hello.txt")
        assert member.mode == 0o600
        assert archive.extractfile(member).read() == b"hello"
