"""Data structures for the upload pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any


class ImageExtension(StrEnum):
    JPG = "jpg"
    PNG = "png"
    GIF = "gif"

    @property
    def suffix(self) -> str:
        return f".{self.value}"


class SessionState(StrEnum):
    """States of a single upload session."""

    RECEIVING = "receiving"
    VERIFYING = "verifying"
    DEDUPING = "deduping"
    TRANSFORMING = "transforming"
    PUBLISHING = "publishing"
    RECORDING = "recording"
    DONE = "done"
    FAILED = "failed"


class NotificationName(StrEnum):
    UPLOAD_STATUS = "upload_status"
    UPLOAD_ERROR = "upload_error"
    ON_IMAGE_ALLOC = "on_image_alloc"


@dataclass(frozen=True, slots=True)
class Notification:
    name: NotificationName
    argument: str

    def as_message(self) -> dict[str, str]:
        return {"func": self.name.value, "arg": self.argument}


@dataclass(slots=True)
class UploadContext:
    """Request-scoped data extracted from the submitted form."""

    working_path: Path
    filename: str
    content_length: int
    client_id: str | None = None
    pinky: bool = False
    spoiler: int | None = None


@dataclass(frozen=True, slots=True)
class ThumbnailSpec:
    """Derived thumbnail geometry for one session; never persisted."""

    dims: tuple[int, int]
    quality: int
    background: str
    bound: tuple[int, int]
    ratio: float


@dataclass(frozen=True, slots=True)
class ImageRecord:
    """Image state handed from stage to stage.

    Stages return a new record built with :func:`dataclasses.replace`; a
    record is never mutated in place.
    """

    path: Path
    filename: str
    md5: str
    ext: ImageExtension | None = None
    imgnm: str | None = None
    size: int | None = None
    dims: tuple[int, ...] = ()
    fingerprint: str | None = None
    apng: bool = False
    spoiler: int | None = None
    thumb_path: Path | None = None
    comp_path: Path | None = None
    src: str | None = None
    thumb: str | None = None
    composite: str | None = None

    @property
    def tagged_path(self) -> str:
        """Source path prefixed with the format hint the raster engine expects."""
        if self.ext is None:
            return str(self.path)
        return f"{self.ext.value}:{self.path}"

    @property
    def thumbnail_name(self) -> str | None:
        """Published thumbnail; small images serve as their own thumbnail."""
        return self.thumb or self.src

    def files(self) -> list[Path]:
        """Every artifact path currently associated with the record."""
        paths = [self.path]
        if self.thumb_path is not None:
            paths.append(self.thumb_path)
        if self.comp_path is not None:
            paths.append(self.comp_path)
        return paths


@dataclass(frozen=True, slots=True)
class DuplicateMatch:
    image_id: str


@dataclass(slots=True)
class ImageAlloc:
    """Payload persisted by the storage collaborator once publishing succeeds."""

    image: dict[str, Any]
    paths: list[str] = field(default_factory=list)
