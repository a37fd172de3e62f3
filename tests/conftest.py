from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from src.pix.config import AppConfig, MediaPaths, SpoilerImages, ThumbnailSettings, ToolPaths, UploadLimits
from src.pix.db.db_init import init_db


@pytest.fixture()
def engine(tmp_path: Path):
    engine = create_engine(
        f"sqlite:///{(tmp_path / 'pix-test.db').as_posix()}",
        future=True,
        connect_args={"check_same_thread": False},
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine) -> sessionmaker:
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture()
def app_config(tmp_path: Path, engine, session_factory) -> AppConfig:
    media_paths = MediaPaths.under(tmp_path / "media")
    media_paths.ensure()
    return AppConfig(
        media_paths=media_paths,
        upload_limits=UploadLimits(),
        thumbnails=ThumbnailSettings(),
        spoilers=SpoilerImages(directory=tmp_path / "kana"),
        tools=ToolPaths(),
        database_url=str(engine.url),
        engine=engine,
        session_factory=session_factory,
    )
