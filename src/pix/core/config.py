"""Environment-backed settings for pix.

Values are read from ``PIX_*`` environment variables. The defaults mirror a
small single-node deployment: media under ``./var/media``, SQLite for the
upload bookkeeping and ImageMagick binaries resolved from ``PATH``.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_media_root() -> Path:
    return Path("./var/media")


class EnvSettings(BaseSettings):
    """Pydantic settings container read once at startup."""

    model_config = SettingsConfigDict(env_prefix="PIX_")

    database_url: str = Field(
        default="sqlite:///pix.db",
        description="SQLAlchemy URL for temp tracking and image allocations.",
    )
    media_root: Path = Field(
        default_factory=_default_media_root,
        description="Root directory holding src/, thumb/, tmp/ and dead/.",
    )
    spoiler_dir: Path = Field(
        default=Path("www/kana"),
        description="Directory with spoiler artwork (spoiler<N>.png).",
    )
    image_filesize_max: int = Field(default=3 * 1024 * 1024, ge=1)
    image_width_max: int = Field(default=5000, ge=1)
    image_height_max: int = Field(default=5000, ge=1)
    thumb_width: int = Field(default=250, ge=1)
    thumb_height: int = Field(default=250, ge=1)
    pinky_width: int = Field(default=125, ge=1)
    pinky_height: int = Field(default=125, ge=1)
    thumb_quality: int = Field(default=50, ge=1, le=100)
    pinky_quality: int = Field(default=50, ge=1, le=100)
    spoilers_opaque: list[int] = Field(
        default_factory=list,
        description="Spoiler ids that replace the thumbnail entirely.",
    )
    spoilers_overlay: list[int] = Field(
        default_factory=lambda: list(range(1, 11)),
        description="Spoiler ids composited over a cropped copy of the image.",
    )
    convert_bin: str = Field(default="convert")
    identify_bin: str = Field(default="identify")
    perceptual_bin: str = Field(default="perceptual")
    findapng_bin: str = Field(default="findapng")
    temp_ttl_seconds: int = Field(
        default=3600,
        ge=0,
        description="Age after which a tracked temporary counts as orphaned by the cleanup job.",
    )
    debug: bool = Field(default=False)
