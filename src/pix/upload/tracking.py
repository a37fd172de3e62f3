"""Temp registry updates that never abort a session."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from ..repositories.interfaces import ImageStore, StorageError
from .upload_errors import TrackingWarning

logger = logging.getLogger(__name__)


async def track_quietly(
    store: ImageStore,
    new_paths: Sequence[Path] = (),
    old_paths: Sequence[Path] = (),
) -> TrackingWarning | None:
    """Update the temp registry; log and return a warning instead of raising."""
    try:
        await store.track_temporaries(list(new_paths), list(old_paths))
    except StorageError as exc:
        warning = TrackingWarning(str(exc))
        logger.warning(
            "upload.tracking.failed",
            extra={
                "new_paths": [str(path) for path in new_paths],
                "old_paths": [str(path) for path in old_paths],
                "error": str(exc),
            },
        )
        return warning
    return None
