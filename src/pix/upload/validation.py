"""Format, size and dimension checks for uploaded images."""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass, replace
from pathlib import PurePath

from ..config import UploadLimits
from .concurrency import join_all
from .raster import AnimationClassifier, RasterEngine
from .upload_errors import (
    DimensionError,
    InternalError,
    PayloadTooLargeError,
    ProcessingError,
    TooTallError,
    TooWideError,
    UnsupportedFormatError,
)
from .upload_models import ImageExtension, ImageRecord

logger = logging.getLogger(__name__)

MAX_FILENAME_LENGTH = 256


def normalize_extension(filename: str) -> ImageExtension:
    """Map a declared filename to one of the accepted extensions."""
    suffix = PurePath(filename).suffix.lower().lstrip(".")
    if suffix == "jpeg":
        suffix = "jpg"
    try:
        return ImageExtension(suffix)
    except ValueError:
        raise UnsupportedFormatError() from None


@dataclass(slots=True)
class ImageValidator:
    """Validate declared format, file size and pixel dimensions."""

    limits: UploadLimits
    engine: RasterEngine
    classifier: AnimationClassifier

    def classify(self, record: ImageRecord) -> ImageRecord:
        ext = normalize_extension(record.filename)
        return replace(record, ext=ext, imgnm=record.filename[:MAX_FILENAME_LENGTH])

    async def verify(self, record: ImageRecord) -> ImageRecord:
        if record.ext is None:
            record = self.classify(record)

        checks = {
            "stat": asyncio.to_thread(os.stat, record.path),
            "dims": self.engine.identify(record.tagged_path),
        }
        if record.ext is ImageExtension.PNG:
            checks["apng"] = self.classifier.is_animated(record.path)

        try:
            results = await join_all(checks)
        except ProcessingError:
            raise
        except OSError as exc:
            logger.error(
                "upload.verify.stat_failed",
                extra={"path": str(record.path), "error": str(exc)},
            )
            raise InternalError("Bad image.") from exc

        size = results["stat"].st_size
        width, height = results["dims"]
        if size > self.limits.max_bytes:
            raise PayloadTooLargeError()
        if width <= 0 or height <= 0:
            raise DimensionError()
        if width > self.limits.max_width:
            raise TooWideError()
        if height > self.limits.max_height:
            raise TooTallError()

        return replace(
            record,
            size=size,
            dims=(width, height),
            apng=bool(results.get("apng", False)),
        )
