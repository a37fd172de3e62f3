"""Dependency wiring helpers."""

from fastapi import FastAPI

from .bury.bury_service import BuryService
from .config import AppConfig
from .media.dead_media_service import DeadMediaService
from .media.temp_media_store import TempMediaStore
from .notifications.notifications_api import router as notifications_router
from .notifications.notifier import ClientNotificationHub
from .public.dead_media_router import build_dead_media_router
from .public.image_router import build_image_router
from .repositories.image_store_repository import TemporaryRegistry, sql_store_factory
from .upload.dedup import Deduplicator
from .upload.image_binder import ImageBinder
from .upload.publisher import Publisher
from .upload.raster import (
    AnimationClassifier,
    FingerprintExtractor,
    RasterEngine,
    SubprocessToolRunner,
    ToolRunner,
)
from .upload.session import UploadPipeline
from .upload.transform import TransformPlanner
from .upload.upload_api import router as upload_router
from .upload.validation import ImageValidator


def build_upload_pipeline(
    config: AppConfig,
    *,
    notifier: ClientNotificationHub,
    tool_runner: ToolRunner | None = None,
) -> UploadPipeline:
    runner = tool_runner or SubprocessToolRunner()
    engine = RasterEngine(tools=config.tools, runner=runner)
    return UploadPipeline(
        limits=config.upload_limits,
        spoilers=config.spoilers,
        temp_store=TempMediaStore(paths=config.media_paths),
        validator=ImageValidator(
            limits=config.upload_limits,
            engine=engine,
            classifier=AnimationClassifier(tools=config.tools, runner=runner),
        ),
        deduplicator=Deduplicator(
            engine=engine,
            extractor=FingerprintExtractor(tools=config.tools, runner=runner),
            scratch_dir=config.media_paths.tmp,
        ),
        planner=TransformPlanner(
            thumbnails=config.thumbnails,
            spoilers=config.spoilers,
            limits=config.upload_limits,
            engine=engine,
        ),
        publisher=Publisher(paths=config.media_paths),
        notifier=notifier,
        store_factory=sql_store_factory(config.session_factory),
    )


def include_routers(app: FastAPI, config: AppConfig, *, tool_runner: ToolRunner | None = None) -> None:
    """Mount module routers and attach services."""
    notification_hub = ClientNotificationHub()
    upload_pipeline = build_upload_pipeline(
        config, notifier=notification_hub, tool_runner=tool_runner
    )
    dead_media_service = DeadMediaService(paths=config.media_paths)

    app.state.config = config
    app.state.notification_hub = notification_hub
    app.state.upload_pipeline = upload_pipeline
    app.state.bury_service = BuryService(paths=config.media_paths)
    app.state.temporary_registry = TemporaryRegistry(config.session_factory)
    app.state.image_binder = ImageBinder()

    app.include_router(upload_router)
    app.include_router(notifications_router)
    app.include_router(build_dead_media_router(dead_media_service))
    app.include_router(build_image_router(app.state.temporary_registry))
