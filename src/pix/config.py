"""Application configuration builder."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .core.config import EnvSettings
from .db.db_init import init_db

TRANSPORT_SLACK_BYTES = 20 * 1024


@dataclass(slots=True)
class UploadLimits:
    max_bytes: int = 3 * 1024 * 1024
    max_width: int = 5000
    max_height: int = 5000
    transport_slack_bytes: int = TRANSPORT_SLACK_BYTES
    max_field_bytes: int = 50 * 1024
    small_file_bytes: int = 30 * 1024
    coarse_progress_threshold_bytes: int = 512 * 1024

    @property
    def request_cap_bytes(self) -> int:
        return self.max_bytes + self.transport_slack_bytes


@dataclass(slots=True)
class ThumbnailSettings:
    thumb_dimensions: tuple[int, int] = (250, 250)
    pinky_dimensions: tuple[int, int] = (125, 125)
    thumb_quality: int = 50
    pinky_quality: int = 50
    thumb_background: str = "#eef2ff"
    pinky_background: str = "#d6daf0"


@dataclass(slots=True)
class SpoilerImages:
    opaque: tuple[int, ...] = ()
    overlay: tuple[int, ...] = tuple(range(1, 11))
    directory: Path = Path("www/kana")

    def is_known(self, spoiler: int) -> bool:
        return spoiler in self.opaque or spoiler in self.overlay

    def is_overlay(self, spoiler: int | None) -> bool:
        return spoiler is not None and spoiler in self.overlay

    def artwork(self, spoiler: int, *, pinky: bool) -> Path:
        prefix = "spoilers" if pinky else "spoiler"
        return self.directory / f"{prefix}{spoiler}.png"


@dataclass(slots=True)
class MediaPaths:
    root: Path
    src: Path
    thumb: Path
    tmp: Path
    dead: Path

    @classmethod
    def under(cls, root: Path) -> "MediaPaths":
        return cls(
            root=root,
            src=root / "src",
            thumb=root / "thumb",
            tmp=root / "tmp",
            dead=root / "dead",
        )

    def public_dir(self, kind: str) -> Path:
        if kind == "src":
            return self.src
        if kind == "thumb":
            return self.thumb
        raise KeyError(kind)

    def media_path(self, kind: str, filename: str) -> Path:
        return self.public_dir(kind) / filename

    def dead_path(self, kind: str, filename: str) -> Path:
        if kind not in ("src", "thumb"):
            raise KeyError(kind)
        return self.dead / kind / filename

    def ensure(self) -> None:
        for directory in (
            self.root,
            self.src,
            self.thumb,
            self.tmp,
            self.dead / "src",
            self.dead / "thumb",
        ):
            directory.mkdir(parents=True, exist_ok=True)


@dataclass(slots=True)
class ToolPaths:
    convert: str = "convert"
    identify: str = "identify"
    perceptual: str = "perceptual"
    findapng: str = "findapng"


@dataclass(slots=True)
class AppConfig:
    media_paths: MediaPaths
    upload_limits: UploadLimits
    thumbnails: ThumbnailSettings
    spoilers: SpoilerImages
    tools: ToolPaths
    database_url: str
    engine: Engine
    session_factory: sessionmaker[Session]
    debug: bool = False
    temp_ttl_seconds: int = 3600


def load_config(settings: EnvSettings | None = None) -> AppConfig:
    """Build configuration from ``PIX_*`` environment variables."""
    env = settings or EnvSettings()

    media_paths = MediaPaths.under(env.media_root)
    media_paths.ensure()

    upload_limits = UploadLimits(
        max_bytes=env.image_filesize_max,
        max_width=env.image_width_max,
        max_height=env.image_height_max,
    )
    thumbnails = ThumbnailSettings(
        thumb_dimensions=(env.thumb_width, env.thumb_height),
        pinky_dimensions=(env.pinky_width, env.pinky_height),
        thumb_quality=env.thumb_quality,
        pinky_quality=env.pinky_quality,
    )
    spoilers = SpoilerImages(
        opaque=tuple(env.spoilers_opaque),
        overlay=tuple(env.spoilers_overlay),
        directory=env.spoiler_dir,
    )
    tools = ToolPaths(
        convert=env.convert_bin,
        identify=env.identify_bin,
        perceptual=env.perceptual_bin,
        findapng=env.findapng_bin,
    )

    engine = create_engine(env.database_url, future=True)
    session_factory: sessionmaker[Session] = sessionmaker(bind=engine, expire_on_commit=False)
    init_db(engine)

    return AppConfig(
        media_paths=media_paths,
        upload_limits=upload_limits,
        thumbnails=thumbnails,
        spoilers=spoilers,
        tools=tools,
        database_url=env.database_url,
        engine=engine,
        session_factory=session_factory,
        debug=env.debug,
        temp_ttl_seconds=env.temp_ttl_seconds,
    )
