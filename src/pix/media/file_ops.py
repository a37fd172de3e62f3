"""No-clobber moves and best-effort removal."""

from __future__ import annotations

import asyncio
import contextlib
import errno
import logging
import os
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)

_CROSS_DEVICE = {errno.EXDEV, errno.EPERM, errno.ENOTSUP, errno.EMLINK}


def move_no_clobber(src: Path, dest: Path) -> None:
    """Move ``src`` to ``dest``; raise ``FileExistsError`` if ``dest`` exists.

    The destination is created with a hard link (or an exclusive copy when
    linking across devices is impossible) so an existing file is never
    replaced.
    """
    try:
        os.link(src, dest)
    except FileExistsError:
        raise
    except OSError as exc:
        if exc.errno not in _CROSS_DEVICE:
            raise
        _copy_exclusive(src, dest)
    os.unlink(src)


def _copy_exclusive(src: Path, dest: Path) -> None:
    with open(src, "rb") as source:
        sink = open(dest, "xb")
        try:
            with sink:
                shutil.copyfileobj(source, sink)
            shutil.copystat(src, dest)
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(dest)
            raise


async def move_file(src: Path, dest: Path) -> None:
    await asyncio.to_thread(move_no_clobber, src, dest)


async def remove_file(path: Path) -> bool:
    """Delete ``path``; log and return ``False`` on failure."""
    try:
        await asyncio.to_thread(os.unlink, path)
    except OSError as exc:
        logger.warning("media.remove.failed", extra={"path": str(path), "error": str(exc)})
        return False
    return True


async def move_all(moves: list[tuple[Path, Path]]) -> None:
    """Move every ``(src, dest)`` pair concurrently, all or nothing.

    All moves run to completion. If any of them failed, the ones that
    succeeded are moved back to their source before the first error is
    re-raised.
    """
    outcomes = await asyncio.gather(
        *(move_file(src, dest) for src, dest in moves), return_exceptions=True
    )
    errors = [outcome for outcome in outcomes if isinstance(outcome, BaseException)]
    if not errors:
        return
    for (src, dest), outcome in zip(moves, outcomes):
        if isinstance(outcome, BaseException):
            logger.error(
                "media.move.failed",
                extra={"src": str(src), "dest": str(dest), "error": str(outcome)},
            )
            continue
        try:
            await move_file(dest, src)
        except OSError as exc:
            logger.error(
                "media.move.rollback_failed",
                extra={"src": str(dest), "dest": str(src), "error": str(exc)},
            )
    raise errors[0]
