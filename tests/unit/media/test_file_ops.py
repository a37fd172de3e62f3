import errno
from pathlib import Path

import pytest

from src.pix.media import file_ops
from src.pix.media.file_ops import move_all, move_no_clobber, remove_file


def test_move_refuses_to_overwrite(tmp_path: Path) -> None:
    src = tmp_path / "a"
    dest = tmp_path / "b"
    src.write_bytes(b"new")
    dest.write_bytes(b"old")

    with pytest.raises(FileExistsError):
        move_no_clobber(src, dest)

    assert src.read_bytes() == b"new"
    assert dest.read_bytes() == b"old"


def test_move_relocates_file(tmp_path: Path) -> None:
    src = tmp_path / "a"
    src.write_bytes(b"data")

    move_no_clobber(src, tmp_path / "b")

    assert not src.exists()
    assert (tmp_path / "b").read_bytes() == b"data"


@pytest.mark.asyncio
async def test_move_all_is_all_or_nothing(tmp_path: Path) -> None:
    first = tmp_path / "first"
    first.write_bytes(b"1")
    target = tmp_path / "out"
    target.mkdir()

    with pytest.raises(FileNotFoundError):
        await move_all([(first, target / "first"), (tmp_path / "missing", target / "missing")])

    assert first.read_bytes() == b"1"
    assert list(target.iterdir()) == []


@pytest.mark.asyncio
async def test_remove_file_reports_failure(tmp_path: Path) -> None:
    path = tmp_path / "x"
    path.write_bytes(b"x")

    assert await remove_file(path) is True
    assert await remove_file(path) is False


def cross_device_link(src, dest):
    raise OSError(errno.EXDEV, "Invalid cross-device link")


def test_cross_device_move_copies_then_removes_source(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(file_ops.os, "link", cross_device_link)
    src = tmp_path / "a"
    src.write_bytes(b"data")

    move_no_clobber(src, tmp_path / "b")

    assert not src.exists()
    assert (tmp_path / "b").read_bytes() == b"data"


def test_failed_cross_device_copy_leaves_no_partial_destination(tmp_path: Path, monkeypatch) -> None:
    def disk_full(source, sink):
        sink.write(source.read(2))
        raise OSError(errno.ENOSPC, "No space left on device")

    monkeypatch.setattr(file_ops.os, "link", cross_device_link)
    monkeypatch.setattr(file_ops.shutil, "copyfileobj", disk_full)
    src = tmp_path / "a"
    dest = tmp_path / "b"
    src.write_bytes(b"data")

    with pytest.raises(OSError) as excinfo:
        move_no_clobber(src, dest)

    assert excinfo.value.errno == errno.ENOSPC
    assert not dest.exists()
    assert src.read_bytes() == b"data"
