"""Thumbnail and spoiler-composite planning on top of the raster engine."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import StrEnum
from pathlib import Path

from ..config import SpoilerImages, ThumbnailSettings, UploadLimits
from .concurrency import join_all
from .geometry import thumbnail_spec
from .raster import RasterEngine
from .upload_errors import ProcessingError
from .upload_models import ImageExtension, ImageRecord, ThumbnailSpec

logger = logging.getLogger(__name__)

DECODE_GAMMA = "0.454545"
ENCODE_GAMMA = "2.2"
SELF_THUMBNAIL_FORMATS = (ImageExtension.JPG, ImageExtension.PNG)


class TransformKind(StrEnum):
    SKIP = "skip"
    THUMBNAIL = "thumbnail"
    OVERLAY = "overlay"


@dataclass(frozen=True, slots=True)
class ResizeJob:
    """Arguments shared by the flat thumbnail and the composite render."""

    src: str
    ext: ImageExtension
    dest: Path
    dims: tuple[int, int]
    quality: int
    background: str
    composite: Path | None = None
    comp_dest: Path | None = None
    comp_dims: tuple[int, int] | None = None


@dataclass(frozen=True, slots=True)
class TransformPlan:
    kind: TransformKind
    spec: ThumbnailSpec
    record: ImageRecord
    job: ResizeJob | None = None

    @property
    def status(self) -> str | None:
        if self.kind is TransformKind.OVERLAY:
            return "Spoilering..."
        if self.kind is TransformKind.THUMBNAIL and self.record.spoiler is None:
            return "Thumbnailing..."
        return None


def _geometry(dims: tuple[int, int]) -> str:
    return f"{dims[0]}x{dims[1]}"


def resize_args(job: ResizeJob, *, composite: bool) -> list[str]:
    """Build the ``convert`` argument list for one output.

    The flat thumbnail is shrunk to exactly ``dims``; the composite covers
    the bounding box, gets the spoiler artwork layered on top and is cropped
    back to the box.
    """
    args: list[str] = []
    if job.ext is ImageExtension.JPG:
        args += ["-define", f"jpeg:size={job.dims[0] * 2}x{job.dims[1] * 2}"]
    args += [f"{job.src}[0]", "-gamma", DECODE_GAMMA, "-filter", "box"]
    if composite:
        if job.composite is None or job.comp_dest is None or job.comp_dims is None:
            raise ValueError("composite render requested without composite inputs")
        geometry = _geometry(job.comp_dims)
        args += ["-resize", f"{geometry}^"]
    else:
        geometry = _geometry(job.dims)
        args += ["-resize", f"{geometry}!"]
    args += ["-gamma", ENCODE_GAMMA, "-background", job.background]
    if composite:
        args += [str(job.composite), "-layers", "flatten", "-extent", geometry]
    else:
        args += ["-layers", "mosaic", "+matte"]
    dest = job.comp_dest if composite else job.dest
    args += ["-strip", "-interlace", "none", "-quality", str(job.quality), f"jpg:{dest}"]
    return args


@dataclass(slots=True)
class TransformPlanner:
    """Decide which artifacts a session needs and render them."""

    thumbnails: ThumbnailSettings
    spoilers: SpoilerImages
    limits: UploadLimits
    engine: RasterEngine

    def needs_thumbnail(self, record: ImageRecord, spec: ThumbnailSpec) -> bool:
        width, height = record.dims[:2]
        return not (
            record.spoiler is None
            and record.size is not None
            and record.size < self.limits.small_file_bytes
            and record.ext in SELF_THUMBNAIL_FORMATS
            and not record.apng
            and width <= spec.dims[0]
            and height <= spec.dims[1]
        )

    def plan(self, record: ImageRecord, *, pinky: bool) -> TransformPlan:
        width, height = record.dims[:2]
        spec = thumbnail_spec(width, height, pinky=pinky, settings=self.thumbnails)
        if not self.needs_thumbnail(record, spec):
            return TransformPlan(kind=TransformKind.SKIP, spec=spec, record=record)

        if record.ext is None:
            raise ProcessingError("Conversion error.")
        thumb_path = Path(f"{record.path}_thumb")
        if self.spoilers.is_overlay(record.spoiler):
            comp_path = Path(f"{record.path}_comp")
            job = ResizeJob(
                src=record.tagged_path,
                ext=record.ext,
                dest=thumb_path,
                dims=spec.dims,
                quality=spec.quality,
                background=spec.background,
                composite=self.spoilers.artwork(record.spoiler, pinky=pinky),
                comp_dest=comp_path,
                comp_dims=spec.bound,
            )
            planned = replace(
                record,
                thumb_path=thumb_path,
                comp_path=comp_path,
                dims=(width, height, *spec.bound),
            )
            return TransformPlan(kind=TransformKind.OVERLAY, spec=spec, record=planned, job=job)

        job = ResizeJob(
            src=record.tagged_path,
            ext=record.ext,
            dest=thumb_path,
            dims=spec.dims,
            quality=spec.quality,
            background=spec.background,
        )
        planned = replace(record, thumb_path=thumb_path, dims=(width, height, *spec.dims))
        return TransformPlan(kind=TransformKind.THUMBNAIL, spec=spec, record=planned, job=job)

    async def execute(self, plan: TransformPlan) -> ImageRecord:
        if plan.job is None:
            return plan.record
        renders = {"thumb": self.engine.convert(resize_args(plan.job, composite=False))}
        if plan.kind is TransformKind.OVERLAY:
            renders["comp"] = self.engine.convert(resize_args(plan.job, composite=True))
        await join_all(renders)
        logger.info(
            "upload.transform.done",
            extra={"path": str(plan.record.path), "kind": plan.kind.value},
        )
        return plan.record
