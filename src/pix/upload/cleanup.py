"""Single failure path for upload sessions."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from ..media.file_ops import remove_file
from ..repositories.interfaces import ImageStore, StorageError
from .tracking import track_quietly
from .upload_errors import UploadError
from .upload_models import ImageRecord

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ResponseChannel:
    """Terminal HTTP response of a session; written at most once."""

    status_code: int | None = None
    body: str | None = None
    closed: bool = False

    def send(self, status_code: int, body: str) -> bool:
        if self.closed:
            return False
        self.status_code = status_code
        self.body = body
        self.closed = True
        return True


@dataclass(slots=True)
class CleanupManager:
    """Delete artifacts, untrack them and report the failure once.

    Repeated calls clean up again but the client hears about the first
    failure only.
    """

    store: ImageStore
    report: Callable[[str], None]
    response: ResponseChannel | None = None
    failed: bool = field(default=False)

    async def fail(self, error: UploadError, image: ImageRecord | None = None) -> None:
        if self.response is not None:
            self.response.send(error.status_code, error.message)
        if not self.failed:
            self.failed = True
            self.report(error.message)
        logger.warning(
            "upload.failed",
            extra={"error": error.message, "kind": error.__class__.__name__},
        )

        if image is not None:
            files = image.files()
            await asyncio.gather(*(remove_file(path) for path in files))
            await track_quietly(self.store, (), files)

        try:
            await self.store.disconnect()
        except StorageError as exc:
            logger.warning("upload.disconnect.failed", extra={"error": str(exc)})
