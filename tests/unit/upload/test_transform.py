from pathlib import Path

import pytest

from src.pix.config import SpoilerImages, ThumbnailSettings, ToolPaths, UploadLimits
from src.pix.upload.raster import RasterEngine
from src.pix.upload.transform import ResizeJob, TransformKind, TransformPlanner, resize_args
from src.pix.upload.upload_errors import ProcessingError
from src.pix.upload.upload_models import ImageExtension, ImageRecord
from tests.mocks.tools import FakeToolRunner


def build_planner(tmp_path: Path, runner: FakeToolRunner) -> TransformPlanner:
    return TransformPlanner(
        thumbnails=ThumbnailSettings(),
        spoilers=SpoilerImages(opaque=(20,), overlay=(1, 2), directory=tmp_path / "kana"),
        limits=UploadLimits(),
        engine=RasterEngine(tools=ToolPaths(), runner=runner),
    )


def verified(tmp_path: Path, **overrides) -> ImageRecord:
    path = tmp_path / "upload_1"
    path.write_bytes(b"img")
    values = dict(
        path=path,
        filename="a.jpg",
        md5="m",
        ext=ImageExtension.JPG,
        size=10 * 1024,
        dims=(100, 80),
    )
    values.update(overrides)
    return ImageRecord(**values)


@pytest.mark.asyncio
async def test_small_plain_image_skips_transform(tmp_path: Path) -> None:
    runner = FakeToolRunner()
    planner = build_planner(tmp_path, runner)
    record = verified(tmp_path)

    plan = planner.plan(record, pinky=False)
    result = await planner.execute(plan)

    assert plan.kind is TransformKind.SKIP
    assert plan.status is None
    assert result.thumb_path is None
    assert runner.calls == []


@pytest.mark.parametrize(
    "overrides",
    [
        {"size": 40 * 1024},
        {"ext": ImageExtension.GIF},
        {"apng": True, "ext": ImageExtension.PNG},
        {"dims": (300, 80)},
        {"spoiler": 20},
    ],
)
def test_thumbnail_required_when_any_skip_condition_fails(tmp_path: Path, overrides) -> None:
    planner = build_planner(tmp_path, FakeToolRunner())

    plan = planner.plan(verified(tmp_path, **overrides), pinky=False)

    assert plan.kind is TransformKind.THUMBNAIL


@pytest.mark.asyncio
async def test_plain_thumbnail_runs_one_convert(tmp_path: Path) -> None:
    runner = FakeToolRunner()
    planner = build_planner(tmp_path, runner)
    record = verified(tmp_path, size=500 * 1024, dims=(800, 600))

    plan = planner.plan(record, pinky=False)
    result = await planner.execute(plan)

    assert plan.status == "Thumbnailing..."
    assert result.dims == (800, 600, 250, 188)
    assert result.thumb_path == Path(f"{record.path}_thumb")
    assert result.thumb_path.exists()
    assert runner.calls_to("convert") == [
        [
            "-define", "jpeg:size=500x376",
            f"jpg:{record.path}[0]",
            "-gamma", "0.454545", "-filter", "box",
            "-resize", "250x188!",
            "-gamma", "2.2", "-background", "#eef2ff",
            "-layers", "mosaic", "+matte",
            "-strip", "-interlace", "none", "-quality", "50",
            f"jpg:{record.path}_thumb",
        ]
    ]


@pytest.mark.asyncio
async def test_opaque_spoiler_thumbnails_quietly(tmp_path: Path) -> None:
    runner = FakeToolRunner()
    planner = build_planner(tmp_path, runner)

    plan = planner.plan(verified(tmp_path, spoiler=20), pinky=True)
    await planner.execute(plan)

    assert plan.kind is TransformKind.THUMBNAIL
    assert plan.status is None
    assert len(runner.calls_to("convert")) == 1


@pytest.mark.asyncio
async def test_overlay_spoiler_renders_thumbnail_and_composite(tmp_path: Path) -> None:
    runner = FakeToolRunner()
    planner = build_planner(tmp_path, runner)
    record = verified(tmp_path, ext=ImageExtension.PNG, spoiler=2, size=900 * 1024, dims=(1000, 500))

    plan = planner.plan(record, pinky=True)
    result = await planner.execute(plan)

    assert plan.kind is TransformKind.OVERLAY
    assert plan.status == "Spoilering..."
    assert result.dims == (1000, 500, 125, 125)
    assert result.comp_path == Path(f"{record.path}_comp")
    assert result.comp_path.exists()
    converts = runner.calls_to("convert")
    assert len(converts) == 2
    composite = next(args for args in converts if args[-1].endswith("_comp"))
    assert composite == [
        f"png:{record.path}[0]",
        "-gamma", "0.454545", "-filter", "box",
        "-resize", "125x125^",
        "-gamma", "2.2", "-background", "#d6daf0",
        str(tmp_path / "kana" / "spoilers2.png"),
        "-layers", "flatten", "-extent", "125x125",
        "-strip", "-interlace", "none", "-quality", "50",
        f"jpg:{record.path}_comp",
    ]


@pytest.mark.asyncio
async def test_convert_failure_is_conversion_error(tmp_path: Path) -> None:
    planner = build_planner(tmp_path, FakeToolRunner(failing={"convert"}))
    plan = planner.plan(verified(tmp_path, size=100 * 1024), pinky=False)

    with pytest.raises(ProcessingError) as excinfo:
        await planner.execute(plan)

    assert excinfo.value.message == "Conversion error."


def test_composite_render_requires_composite_inputs() -> None:
    job = ResizeJob(
        src="gif:/x",
        ext=ImageExtension.GIF,
        dest=Path("/x_thumb"),
        dims=(10, 10),
        quality=50,
        background="#fff",
    )

    with pytest.raises(ValueError):
        resize_args(job, composite=True)


def test_plan_without_recognised_format_is_conversion_error(tmp_path: Path) -> None:
    planner = build_planner(tmp_path, FakeToolRunner())

    with pytest.raises(ProcessingError) as excinfo:
        planner.plan(verified(tmp_path, ext=None, size=100 * 1024), pinky=False)

    assert excinfo.value.message == "Conversion error."
