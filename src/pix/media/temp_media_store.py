"""Working-file storage for incoming uploads."""

from __future__ import annotations

import base64
import hashlib
import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO

from ..config import MediaPaths


def squish_md5(digest: bytes | str) -> str:
    """Compact MD5 representation: base64 without ``/`` or trailing padding."""
    if isinstance(digest, str):
        digest = bytes.fromhex(digest)
    return base64.b64encode(digest).decode("ascii").replace("/", "_").rstrip("=")


@dataclass(slots=True)
class PersistedUpload:
    path: Path
    size_bytes: int
    md5: str


class WorkingFile:
    """Write-once sink that hashes bytes as they are stored."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.size_bytes = 0
        self._digest = hashlib.md5()
        self._handle: BinaryIO | None = path.open("xb")

    def write(self, chunk: bytes) -> None:
        if self._handle is None:
            raise ValueError("working file already closed")
        self._digest.update(chunk)
        self._handle.write(chunk)
        self.size_bytes += len(chunk)

    def close(self) -> PersistedUpload:
        if self._handle is not None:
            self._handle.close()
            self._handle = None
        return PersistedUpload(
            path=self.path,
            size_bytes=self.size_bytes,
            md5=squish_md5(self._digest.digest()),
        )

    def discard(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None
        self.path.unlink(missing_ok=True)


@dataclass(slots=True)
class TempMediaStore:
    """Hands out uniquely named working files in the tmp directory."""

    paths: MediaPaths
    log: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))

    def new_working_path(self) -> Path:
        self.paths.tmp.mkdir(parents=True, exist_ok=True)
        return self.paths.tmp / f"upload_{uuid.uuid4().hex}"

    def open_working_file(self) -> WorkingFile:
        working = WorkingFile(self.new_working_path())
        self.log.debug("media.temp.opened", extra={"path": str(working.path)})
        return working
