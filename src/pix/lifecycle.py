"""Housekeeping for files left behind by interrupted uploads."""

from __future__ import annotations

import logging
from datetime import timedelta
from pathlib import Path

from .db.db_models import utcnow
from .repositories.image_store_repository import TemporaryRegistry

logger = logging.getLogger(__name__)


def reap_orphaned_temporaries(
    registry: TemporaryRegistry,
    *,
    max_age: timedelta | None = None,
    dry_run: bool = False,
) -> list[Path]:
    """Delete tracked temporaries and forget them; return the reaped paths.

    With ``max_age`` only paths tracked longer ago than that are touched, so
    uploads still in flight keep their working files. Without it every
    tracked path goes, which is only safe while no upload is running.
    """
    older_than = utcnow() - max_age if max_age is not None else None
    paths = registry.list_temporaries(older_than=older_than)
    if dry_run or not paths:
        return paths

    for path in paths:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("lifecycle.reap.remove_failed", extra={"path": str(path), "error": str(exc)})
    registry.forget(paths)
    logger.info("lifecycle.reap.done", extra={"count": len(paths)})
    return paths
