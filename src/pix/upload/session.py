"""Upload session: the sequenced state machine from request to publication."""

from __future__ import annotations

import logging
import uuid
from collections.abc import AsyncIterator
from dataclasses import dataclass, field, replace

from ..config import SpoilerImages, UploadLimits
from ..media.temp_media_store import TempMediaStore
from ..notifications.notifier import Notifier
from ..repositories.interfaces import ImageStore, ImageStoreFactory, StorageError
from .cleanup import CleanupManager, ResponseChannel
from .dedup import Deduplicator
from .form_reader import UploadFormReader
from .image_binder import image_view
from .progress import ProgressTracker
from .publisher import Publisher
from .tracking import track_quietly
from .transform import TransformPlanner
from .upload_errors import (
    BadSpoilerError,
    InternalError,
    MissingImageError,
    PayloadTooLargeError,
    UploadAbortedError,
    UploadError,
)
from .upload_models import (
    ImageAlloc,
    ImageRecord,
    Notification,
    NotificationName,
    SessionState,
    UploadContext,
)
from .validation import ImageValidator

logger = logging.getLogger(__name__)


def _parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


@dataclass(slots=True)
class UploadPipeline:
    """Stage services shared by every session."""

    limits: UploadLimits
    spoilers: SpoilerImages
    temp_store: TempMediaStore
    validator: ImageValidator
    deduplicator: Deduplicator
    planner: TransformPlanner
    publisher: Publisher
    notifier: Notifier
    store_factory: ImageStoreFactory

    def open_session(self, response: ResponseChannel | None = None) -> "UploadSession":
        return UploadSession(pipeline=self, store=self.store_factory(), response=response)


@dataclass(slots=True)
class UploadSession:
    """Drive one upload through every stage; divert to cleanup on failure."""

    pipeline: UploadPipeline
    store: ImageStore
    response: ResponseChannel | None = None
    client_id: str | None = None
    state: SessionState = SessionState.RECEIVING
    image: ImageRecord | None = None
    image_id: str | None = None
    cleanup: CleanupManager = field(init=False)
    progress: ProgressTracker = field(init=False)

    def __post_init__(self) -> None:
        self.cleanup = CleanupManager(
            store=self.store,
            report=lambda text: self.notify(NotificationName.UPLOAD_ERROR, text),
            response=self.response,
        )
        self.progress = ProgressTracker(
            emit=self.status,
            coarse_threshold_bytes=self.pipeline.limits.coarse_progress_threshold_bytes,
        )

    @property
    def failed(self) -> bool:
        return self.cleanup.failed

    def notify(self, name: NotificationName, argument: str) -> None:
        if self.client_id:
            self.pipeline.notifier.notify(self.client_id, Notification(name, argument))

    def status(self, text: str) -> None:
        self.notify(NotificationName.UPLOAD_STATUS, text)

    def begin(self, content_length: int | None) -> None:
        """Reject oversized requests before any of the body is read."""
        if content_length and content_length > self.pipeline.limits.request_cap_bytes:
            raise PayloadTooLargeError()
        self.state = SessionState.RECEIVING

    def on_progress(self, received: int, total: int) -> None:
        self.progress.update(received, total)

    def note_client(self, client_id: str | None) -> None:
        """Remember the correlation id as soon as its field has been parsed."""
        if client_id:
            self.client_id = client_id

    async def count(self, chunks: AsyncIterator[bytes], content_length: int | None) -> AsyncIterator[bytes]:
        """Pass request chunks through, reporting progress and enforcing the cap."""
        cap = self.pipeline.limits.request_cap_bytes
        received = 0
        async for chunk in chunks:
            received += len(chunk)
            if received > cap:
                raise PayloadTooLargeError()
            yield chunk
            if content_length:
                self.on_progress(received, content_length)

    def _on_field(self, name: str, value: str) -> None:
        if name == "client_id":
            self.note_client(value.strip() or None)

    async def receive(
        self,
        chunks: AsyncIterator[bytes],
        content_type: str,
        content_length: int | None = None,
    ) -> UploadContext:
        """Persist the image part and extract the control fields."""
        reader = UploadFormReader(
            self.pipeline.temp_store,
            max_field_bytes=self.pipeline.limits.max_field_bytes,
            on_field=self._on_field,
        )
        try:
            form = await reader.read(self.count(chunks, content_length), content_type)
        finally:
            persisted = reader.form.image
            if persisted is not None and self.image is None:
                self.image = ImageRecord(
                    path=persisted.path,
                    filename=reader.form.filename or "",
                    md5=persisted.md5,
                )

        if self.image is None or not form.filename:
            raise MissingImageError()

        await track_quietly(self.store, [self.image.path])

        context = UploadContext(
            working_path=self.image.path,
            filename=form.filename,
            content_length=content_length or form.image.size_bytes,
            client_id=self.client_id,
            pinky=bool(_parse_int(form.fields.get("op"))),
        )

        spoiler = _parse_int(form.fields.get("spoiler"))
        if spoiler:
            if not self.pipeline.spoilers.is_known(spoiler):
                raise BadSpoilerError()
            context.spoiler = spoiler
            self.image = replace(self.image, spoiler=spoiler)
        return context

    async def process(self, context: UploadContext) -> str | None:
        """Run the remaining stages; return the allocated image id on success."""
        if self.image is None:
            await self.fail(MissingImageError())
            return None
        try:
            return await self._run_stages(context, self.image)
        except UploadError as exc:
            await self.fail(exc)
        except Exception:
            logger.exception("upload.unexpected_error", extra={"client_id": self.client_id})
            await self.fail(InternalError("Upload request problem."))
        return None

    async def _run_stages(self, context: UploadContext, record: ImageRecord) -> str:
        pipeline = self.pipeline

        self.state = SessionState.VERIFYING
        record = pipeline.validator.classify(record)
        self.image = record
        self.status("Verifying...")
        record = await pipeline.validator.verify(record)
        self.image = record
        self._check_live()

        self.state = SessionState.DEDUPING
        record = await pipeline.deduplicator.check(record, self.store)
        self.image = record
        self._check_live()

        self.state = SessionState.TRANSFORMING
        plan = pipeline.planner.plan(record, pinky=context.pinky)
        self.image = plan.record
        if plan.status:
            self.status(plan.status)
        record = await pipeline.planner.execute(plan)
        renders = [path for path in (record.thumb_path, record.comp_path) if path is not None]
        if renders:
            await track_quietly(self.store, renders)
        self._check_live()

        self.state = SessionState.PUBLISHING
        self.status("Publishing...")
        record = await pipeline.publisher.publish(record, self.store)
        self.image = record
        self._check_live()

        self.state = SessionState.RECORDING
        return await self._record(record, pinky=context.pinky)

    async def _record(self, record: ImageRecord, *, pinky: bool) -> str:
        image_id = uuid.uuid4().hex
        alloc = ImageAlloc(
            image=image_view(record, pinky=pinky),
            paths=[str(path) for path in record.files()],
        )
        try:
            await self.store.record_image_alloc(image_id, alloc)
        except StorageError as exc:
            logger.error("upload.record.failed", extra={"image_id": image_id, "error": str(exc)})
            raise InternalError("Publishing failure.") from exc

        self.image_id = image_id
        self.state = SessionState.DONE
        self.notify(NotificationName.ON_IMAGE_ALLOC, image_id)
        await self.store.disconnect()
        if self.response is not None:
            self.response.send(202, "OK")
        logger.info(
            "upload.done",
            extra={"image_id": image_id, "src": record.src, "client_id": self.client_id},
        )
        return image_id

    def _check_live(self) -> None:
        if self.failed:
            raise UploadAbortedError()

    async def abort(self) -> None:
        await self.fail(UploadAbortedError())

    async def fail(self, error: UploadError) -> None:
        self.state = SessionState.FAILED
        await self.cleanup.fail(error, self.image)
