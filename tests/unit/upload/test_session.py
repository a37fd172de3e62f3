from pathlib import Path

import pytest

from src.pix.upload.cleanup import ResponseChannel
from src.pix.upload.upload_errors import PayloadTooLargeError, UploadError
from src.pix.upload.upload_models import NotificationName, SessionState
from tests.helpers.pipeline import build_pipeline, multipart_body, stream_of
from tests.mocks.stores import InMemoryImageStore, RecordingNotifier
from tests.mocks.tools import FINGERPRINT, FakeToolRunner


async def run_upload(pipeline, fields, image, *, chunk_size: int = 1024):
    body, content_type = multipart_body(fields, image=image)
    channel = ResponseChannel()
    session = pipeline.open_session(channel)
    session.begin(len(body))
    try:
        context = await session.receive(stream_of(body, chunk_size), content_type, len(body))
    except UploadError as exc:
        await session.fail(exc)
        return session, channel
    await session.process(context)
    return session, channel


@pytest.mark.asyncio
async def test_small_jpeg_is_published_without_transform(tmp_path: Path) -> None:
    runner = FakeToolRunner(dims=(100, 80))
    store = InMemoryImageStore()
    notifier = RecordingNotifier()
    pipeline = build_pipeline(tmp_path, runner=runner, store=store, notifier=notifier)

    session, channel = await run_upload(
        pipeline, {"client_id": "c1"}, ("cat.jpg", b"\xff\xd8" + b"\0" * (10 * 1024))
    )

    assert (channel.status_code, channel.body) == (202, "OK")
    assert session.state is SessionState.DONE
    assert runner.calls_to("convert")[0][-1].endswith(".gray")
    assert len(runner.calls_to("convert")) == 1
    record = session.image
    assert record.thumbnail_name == record.src
    assert (pipeline.publisher.paths.src / record.src).exists()
    alloc = store.allocs[session.image_id]
    assert alloc.image["hash"] == FINGERPRINT
    assert alloc.image["dims"] == [100, 80]
    assert "thumb" not in alloc.image
    assert store.tracked == set()
    assert notifier.arguments(NotificationName.UPLOAD_STATUS)[-2:] == [
        "Verifying...",
        "Publishing...",
    ]
    assert notifier.arguments(NotificationName.ON_IMAGE_ALLOC) == [session.image_id]
    assert store.disconnects == 1


@pytest.mark.asyncio
async def test_overlay_spoiler_publishes_composite(tmp_path: Path) -> None:
    runner = FakeToolRunner(dims=(1000, 500))
    store = InMemoryImageStore()
    notifier = RecordingNotifier()
    pipeline = build_pipeline(tmp_path, runner=runner, store=store, notifier=notifier)

    session, channel = await run_upload(
        pipeline,
        {"client_id": "c2", "spoiler": "2", "op": "1"},
        ("big.png", b"\x89PNG" + b"\0" * 4096),
    )

    assert channel.status_code == 202
    image = store.allocs[session.image_id].image
    assert image["thumb"].endswith("s2.jpg")
    assert image["realthumb"] == image["src"].replace(".png", ".jpg")
    assert image["dims"] == [1000, 500, 125, 125]
    assert image["pinky"] is True
    assert "spoiler" not in image
    assert "Spoilering..." in notifier.arguments(NotificationName.UPLOAD_STATUS)
    paths = pipeline.publisher.paths
    assert (paths.thumb / image["thumb"]).exists()
    assert (paths.thumb / image["realthumb"]).exists()


@pytest.mark.asyncio
async def test_duplicate_short_circuits_and_cleans_up(tmp_path: Path) -> None:
    runner = FakeToolRunner(dims=(100, 80))
    store = InMemoryImageStore(fingerprints={FINGERPRINT: "img-7"})
    notifier = RecordingNotifier()
    pipeline = build_pipeline(tmp_path, runner=runner, store=store, notifier=notifier)

    session, channel = await run_upload(pipeline, {"client_id": "c3"}, ("dup.gif", b"GIF89a"))

    assert (channel.status_code, channel.body) == (409, "Duplicate of image img-7.")
    assert session.state is SessionState.FAILED
    assert notifier.arguments(NotificationName.UPLOAD_ERROR) == ["Duplicate of image img-7."]
    assert not session.image.path.exists()
    assert store.tracked == set()
    assert store.allocs == {}
    assert list(pipeline.publisher.paths.src.iterdir()) == []


@pytest.mark.asyncio
async def test_unknown_spoiler_rejected(tmp_path: Path) -> None:
    pipeline = build_pipeline(tmp_path)

    session, channel = await run_upload(pipeline, {"spoiler": "99"}, ("a.jpg", b"data"))

    assert (channel.status_code, channel.body) == (400, "Bad spoiler.")
    assert not session.image.path.exists()


@pytest.mark.asyncio
async def test_missing_image_part(tmp_path: Path) -> None:
    pipeline = build_pipeline(tmp_path)

    session, channel = await run_upload(pipeline, {"client_id": "c4"}, None)

    assert (channel.status_code, channel.body) == (400, "No image.")
    assert session.image is None


@pytest.mark.asyncio
async def test_unsupported_format_stops_before_tools(tmp_path: Path) -> None:
    runner = FakeToolRunner()
    pipeline = build_pipeline(tmp_path, runner=runner)

    session, channel = await run_upload(pipeline, {}, ("foo.bmp", b"BM"))

    assert (channel.status_code, channel.body) == (415, "Invalid image format.")
    assert runner.calls == []
    assert list(pipeline.temp_store.paths.tmp.iterdir()) == []


@pytest.mark.asyncio
async def test_progress_reaches_client_during_receive(tmp_path: Path) -> None:
    notifier = RecordingNotifier()
    pipeline = build_pipeline(tmp_path, runner=FakeToolRunner(dims=(10, 10)), notifier=notifier)

    await run_upload(pipeline, {"client_id": "c5"}, ("a.png", b"\0" * 20000), chunk_size=512)

    progress = [
        text for text in notifier.arguments(NotificationName.UPLOAD_STATUS) if "received" in text
    ]
    assert progress[-1] == "100% received..."
    percents = [int(text.split("%")[0]) for text in progress]
    assert percents == sorted(percents)
    assert len(progress) >= 5


def test_begin_rejects_oversized_request(tmp_path: Path) -> None:
    pipeline = build_pipeline(tmp_path)
    session = pipeline.open_session(ResponseChannel())

    with pytest.raises(PayloadTooLargeError):
        session.begin(pipeline.limits.request_cap_bytes + 1)

    session.begin(pipeline.limits.request_cap_bytes)


@pytest.mark.asyncio
async def test_record_failure_is_publishing_failure(tmp_path: Path) -> None:
    store = InMemoryImageStore(fail_record=True)
    pipeline = build_pipeline(tmp_path, runner=FakeToolRunner(dims=(10, 10)), store=store)

    session, channel = await run_upload(pipeline, {}, ("a.png", b"\0" * 100))

    assert (channel.status_code, channel.body) == (500, "Publishing failure.")
    assert not session.image.path.exists()


@pytest.mark.asyncio
async def test_thumbnail_render_failure_reports_conversion_error(tmp_path: Path) -> None:
    runner = FakeToolRunner(dims=(800, 600), failing_outputs=("_thumb",))
    notifier = RecordingNotifier()
    store = InMemoryImageStore()
    pipeline = build_pipeline(tmp_path, runner=runner, store=store, notifier=notifier)

    session, channel = await run_upload(pipeline, {"client_id": "c6"}, ("wide.gif", b"GIF89a" + b"\0" * 64))

    assert (channel.status_code, channel.body) == (500, "Conversion error.")
    assert notifier.arguments(NotificationName.UPLOAD_ERROR) == ["Conversion error."]
    assert not session.image.path.exists()
    assert store.allocs == {}


@pytest.mark.asyncio
async def test_hash_render_failure_reports_hashing_error(tmp_path: Path) -> None:
    notifier = RecordingNotifier()
    pipeline = build_pipeline(
        tmp_path, runner=FakeToolRunner(dims=(10, 10), failing={"convert"}), notifier=notifier
    )

    session, channel = await run_upload(pipeline, {"client_id": "c7"}, ("a.gif", b"GIF89a"))

    assert (channel.status_code, channel.body) == (500, "Hashing error.")
    assert notifier.arguments(NotificationName.UPLOAD_ERROR) == ["Hashing error."]
