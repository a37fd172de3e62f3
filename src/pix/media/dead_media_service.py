"""Serve quarantined files back to moderators."""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass

from fastapi import HTTPException, status
from fastapi.responses import FileResponse

from ..bury.bury_service import is_published_name
from ..config import MediaPaths


@dataclass(slots=True)
class DeadMediaService:
    paths: MediaPaths

    def open_media(self, kind: str, filename: str) -> FileResponse:
        """Return FileResponse for a buried file or raise 404."""
        if not is_published_name(filename):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Image not found")
        try:
            path = self.paths.dead_path(kind, filename)
        except KeyError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Image not found") from exc
        if not path.is_file():
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Image not found")

        media_type, _ = mimetypes.guess_type(path.name)
        return FileResponse(
            path=path,
            media_type=media_type or "application/octet-stream",
            filename=path.name,
        )
