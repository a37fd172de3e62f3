"""Storage contracts consumed by the upload pipeline."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from ..exceptions import AppError
from ..upload.upload_models import DuplicateMatch, ImageAlloc


class StorageError(AppError):
    """Raised when the storage backend fails."""


class ImageStore(Protocol):
    """Per-session handle on duplicate lookup, temp tracking and allocations."""

    async def track_temporaries(
        self, new_paths: Sequence[Path], old_paths: Sequence[Path]
    ) -> None:
        ...

    async def check_duplicate(self, fingerprint: str) -> DuplicateMatch | None:
        ...

    async def record_image_alloc(self, image_id: str, alloc: ImageAlloc) -> None:
        ...

    async def disconnect(self) -> None:
        ...


class ImageStoreFactory(Protocol):
    def __call__(self) -> ImageStore:
        ...
