"""Tar archive helpers for build contexts and file uploads."""

from __future__ import annotations

import io
import os
import tarfile
import time
from pathlib import Path
from typing import BinaryIO


def directory(buf: BinaryIO, path: str | os.PathLike[str]) -> None:
    """Write a gzip-compressed tarball of the directory at *path* to *buf*.

    Entry names are relative to *path*; the directory itself is not an
    entry.  Symbolic links are resolved.
    """
    base = Path(path).resolve()
    if not base.is_dir():
        raise NotADirectoryError(f"{base} is not a directory")
    with tarfile.open(fileobj=buf, mode="w:gz", compresslevel=9) as archive:
        for root, dirs, files in os.walk(base):
            dirs.sort()
            for name in sorted(dirs) + sorted(files):
                full = Path(root) / name
                arcname = full.relative_to(base).as_posix()
                archive.add(str(full.resolve()), arcname=arcname, recursive=False)


def single_file(name: str, data: bytes, mode: int = 0o644) -> bytes:
    """Return an uncompressed tar archive holding one regular file."""
    buf = io.BytesIO()
    info = tarfile.TarInfo(name=name)
    info.size = len(data)
    info.mode = mode
    info.mtime = int(time.time())
    with tarfile.open(fileobj=buf, mode="w") as archive:
        archive.addfile(info, io.BytesIO(data))
    return buf.getvalue()
