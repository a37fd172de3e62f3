"""SQLAlchemy-backed storage collaborator."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import asdict
from datetime import datetime
from pathlib import Path

from sqlalchemy import delete, select
from sqlalchemy import exc as sa_exc
from sqlalchemy.orm import Session

from ..db.db_models import ImageAllocModel, TempFileModel, utcnow
from ..upload.upload_models import DuplicateMatch, ImageAlloc
from .interfaces import StorageError

logger = logging.getLogger(__name__)


@contextmanager
def handle_sqlalchemy_errors(action: str) -> Iterator[None]:
    """Translate SQLAlchemy errors into :class:`StorageError`."""
    try:
        yield
    except sa_exc.SQLAlchemyError as exc:
        raise StorageError(f"{action} failed: {exc.__class__.__name__}") from exc


class SqlImageStore:
    """One store per upload session, holding a single ORM session."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session: Session | None = session_factory()

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StorageError("store is disconnected")
        return self._session

    async def track_temporaries(
        self, new_paths: Sequence[Path], old_paths: Sequence[Path]
    ) -> None:
        await asyncio.to_thread(self._track, list(new_paths), list(old_paths))

    async def check_duplicate(self, fingerprint: str) -> DuplicateMatch | None:
        return await asyncio.to_thread(self._find_duplicate, fingerprint)

    async def record_image_alloc(self, image_id: str, alloc: ImageAlloc) -> None:
        await asyncio.to_thread(self._record_alloc, image_id, alloc)

    async def disconnect(self) -> None:
        if self._session is None:
            return
        session, self._session = self._session, None
        await asyncio.to_thread(session.close)

    def _track(self, new_paths: list[Path], old_paths: list[Path]) -> None:
        session = self.session
        with handle_sqlalchemy_errors("track_temporaries"):
            try:
                _untrack(session, old_paths)
                now = utcnow()
                for path in new_paths:
                    session.merge(TempFileModel(path=str(path), tracked_at=now))
                session.commit()
            except sa_exc.SQLAlchemyError:
                session.rollback()
                raise

    def _find_duplicate(self, fingerprint: str) -> DuplicateMatch | None:
        session = self.session
        with handle_sqlalchemy_errors("check_duplicate"):
            image_id = session.scalars(
                select(ImageAllocModel.id)
                .where(ImageAllocModel.fingerprint == fingerprint)
                .order_by(ImageAllocModel.created_at)
                .limit(1)
            ).first()
        if image_id is None:
            return None
        return DuplicateMatch(image_id=image_id)

    def _record_alloc(self, image_id: str, alloc: ImageAlloc) -> None:
        session = self.session
        with handle_sqlalchemy_errors("record_image_alloc"):
            try:
                session.add(
                    ImageAllocModel(
                        id=image_id,
                        fingerprint=str(alloc.image.get("hash") or ""),
                        md5=alloc.image.get("MD5"),
                        payload_json=json.dumps(asdict(alloc)),
                    )
                )
                _untrack(session, [Path(path) for path in alloc.paths])
                session.commit()
            except sa_exc.SQLAlchemyError:
                session.rollback()
                raise


def _untrack(session: Session, paths: Sequence[Path]) -> None:
    if paths:
        session.execute(
            delete(TempFileModel).where(TempFileModel.path.in_([str(path) for path in paths]))
        )


class TemporaryRegistry:
    """Housekeeping view over tracked temporaries for crash recovery."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def list_temporaries(self, older_than: datetime | None = None) -> list[Path]:
        """Return tracked paths, only those tracked before ``older_than`` when given."""
        statement = select(TempFileModel.path)
        if older_than is not None:
            statement = statement.where(TempFileModel.tracked_at < older_than)
        with self._session_factory() as session:
            with handle_sqlalchemy_errors("list_temporaries"):
                rows = session.scalars(statement).all()
        return [Path(row) for row in rows]

    def forget(self, paths: Sequence[Path]) -> None:
        with self._session_factory() as session:
            with handle_sqlalchemy_errors("forget_temporaries"):
                _untrack(session, paths)
                session.commit()

    def get_alloc(self, image_id: str) -> ImageAlloc:
        with self._session_factory() as session:
            model = session.get(ImageAllocModel, image_id)
            if model is None:
                raise KeyError(f"Image allocation '{image_id}' not found")
            payload = json.loads(model.payload_json)
        return ImageAlloc(image=payload["image"], paths=payload.get("paths", []))


def sql_store_factory(session_factory: Callable[[], Session]) -> Callable[[], SqlImageStore]:
    return lambda: SqlImageStore(session_factory)
