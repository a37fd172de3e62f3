"""Move published images into the dead tree."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from ..config import MediaPaths
from ..media.file_ops import move_all
from .bury_errors import BuryDistributionError, InvalidNameError

logger = logging.getLogger(__name__)

PUBLISHED_NAME = re.compile(r"\d+\w*\.\w+", re.ASCII)


def is_published_name(filename: str) -> bool:
    return PUBLISHED_NAME.fullmatch(filename) is not None


@dataclass(slots=True)
class BuryService:
    """Soft-delete published files by moving them under ``dead/``."""

    paths: MediaPaths

    async def bury(
        self,
        src: str | None,
        thumb: str | None = None,
        realthumb: str | None = None,
    ) -> list[Path]:
        """Quarantine an image's files and return their new locations.

        Every name is checked before anything moves. A missing ``src`` is a
        no-op.
        """
        if not src:
            return []
        if not is_published_name(src):
            raise InvalidNameError("Invalid image.", src)
        moves = [(self.paths.media_path("src", src), self.paths.dead_path("src", src))]
        for name in (thumb, realthumb):
            if not name:
                continue
            if not is_published_name(name):
                raise InvalidNameError("Invalid thumbnail.", name)
            moves.append(
                (self.paths.media_path("thumb", name), self.paths.dead_path("thumb", name))
            )

        for _, dest in moves:
            dest.parent.mkdir(parents=True, exist_ok=True)
        try:
            await move_all(moves)
        except OSError as exc:
            logger.error("bury.failed", extra={"src": src, "error": str(exc)})
            raise BuryDistributionError("Distro failure.") from exc

        logger.info("bury.done", extra={"src": src, "files": len(moves)})
        return [dest for _, dest in moves]
