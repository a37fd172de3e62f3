"""Perceptual fingerprinting and duplicate lookup."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, replace
from pathlib import Path

from ..media.file_ops import remove_file
from ..repositories.interfaces import ImageStore, StorageError
from .raster import FingerprintExtractor, RasterEngine
from .upload_errors import DuplicateError, HashError, InternalError, ProcessingError
from .upload_models import ImageRecord

logger = logging.getLogger(__name__)

HASH_RASTER_SIZE = "16x16!"


def hash_raster_args(tagged_path: str, dest: Path) -> list[str]:
    """Downsample the first frame to a 16x16 8-bit grayscale raw raster."""
    return [
        f"{tagged_path}[0]",
        "-background", "white", "-mosaic", "+matte",
        "-scale", HASH_RASTER_SIZE,
        "-type", "grayscale", "-depth", "8",
        str(dest),
    ]


@dataclass(slots=True)
class Deduplicator:
    engine: RasterEngine
    extractor: FingerprintExtractor
    scratch_dir: Path

    async def fingerprint(self, record: ImageRecord) -> str:
        raster = self.scratch_dir / f"hash{uuid.uuid4().hex}.gray"
        try:
            try:
                await self.engine.convert(hash_raster_args(record.tagged_path, raster))
            except ProcessingError as exc:
                raise HashError("Hashing error.") from exc
            return await self.extractor.extract(raster)
        finally:
            if raster.exists():
                await remove_file(raster)

    async def check(self, record: ImageRecord, store: ImageStore) -> ImageRecord:
        """Return the record with its fingerprint, or raise on a duplicate."""
        fingerprint = await self.fingerprint(record)
        try:
            match = await store.check_duplicate(fingerprint)
        except StorageError as exc:
            logger.error("upload.dedup.lookup_failed", extra={"error": str(exc)})
            raise InternalError("Duplicate check failed.") from exc
        if match is not None:
            logger.info(
                "upload.dedup.duplicate",
                extra={"fingerprint": fingerprint, "existing_id": match.image_id},
            )
            raise DuplicateError(match.image_id)
        return replace(record, fingerprint=fingerprint)
