"""Move working files into permanent storage."""

from __future__ import annotations

import logging
import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass, field, replace

from ..config import MediaPaths
from ..media.file_ops import move_all
from ..repositories.interfaces import ImageStore
from .tracking import track_quietly
from .upload_errors import DistributionError
from .upload_models import ImageRecord

logger = logging.getLogger(__name__)


def published_basename() -> str:
    """Millisecond timestamp followed by three random digits."""
    return f"{int(time.time() * 1000)}{secrets.randbelow(1000):03d}"


@dataclass(slots=True)
class Publisher:
    paths: MediaPaths
    name_factory: Callable[[], str] = field(default=published_basename)

    async def publish(self, record: ImageRecord, store: ImageStore) -> ImageRecord:
        """Move source, thumbnail and composite; then swap temp tracking."""
        if record.ext is None:
            raise DistributionError()
        base = self.name_factory()
        src_name = f"{base}{record.ext.suffix}"
        src_dest = self.paths.media_path("src", src_name)
        moves = [(record.path, src_dest)]

        thumb_name = thumb_dest = None
        if record.thumb_path is not None:
            thumb_name = f"{base}.jpg"
            thumb_dest = self.paths.media_path("thumb", thumb_name)
            moves.append((record.thumb_path, thumb_dest))

        comp_name = comp_dest = None
        if record.comp_path is not None:
            comp_name = f"{base}s{record.spoiler}.jpg"
            comp_dest = self.paths.media_path("thumb", comp_name)
            moves.append((record.comp_path, comp_dest))

        try:
            await move_all(moves)
        except OSError as exc:
            logger.error(
                "upload.publish.failed",
                extra={"src": str(record.path), "base": base, "error": str(exc)},
            )
            raise DistributionError() from exc

        published = replace(
            record,
            path=src_dest,
            thumb_path=thumb_dest,
            comp_path=comp_dest,
            src=src_name,
            thumb=thumb_name,
            composite=comp_name,
            spoiler=None if comp_name else record.spoiler,
        )
        await track_quietly(store, published.files(), record.files())
        logger.info(
            "upload.publish.done",
            extra={"src": src_name, "thumb": thumb_name, "composite": comp_name},
        )
        return published
