"""Move image attributes between a post record and its image sub-record."""

from __future__ import annotations

from collections.abc import MutableMapping
from typing import Any

from .upload_models import ImageRecord

IMAGE_ATTRS = (
    "src", "thumb", "dims", "size", "MD5", "hash", "imgnm",
    "spoiler", "realthumb", "vint", "apng",
)


def is_image(post: MutableMapping[str, Any] | None) -> bool:
    return bool(post) and bool(post.get("src") or post.get("vint"))


class ImageBinder:
    """Extract an image out of a flat post and inline it back."""

    attrs: tuple[str, ...] = IMAGE_ATTRS

    def extract_image(self, post: MutableMapping[str, Any]) -> dict[str, Any] | None:
        if not is_image(post):
            return None
        image = {key: post.pop(key) for key in self.attrs if key in post}
        dims = image.get("dims")
        if isinstance(dims, str):
            image["dims"] = [int(part) for part in dims.split(",")]
        if "size" in image:
            image["size"] = int(image["size"])
        image.pop("hash", None)
        post["image"] = image
        return image

    def inline_image(self, dest: MutableMapping[str, Any], source: MutableMapping[str, Any]) -> None:
        image = source.get("image")
        if not image:
            return
        for key in self.attrs:
            if key in image:
                dest[key] = image[key]


def image_view(record: ImageRecord, *, pinky: bool) -> dict[str, Any]:
    """Serialisable view of a published record, keyed by :data:`IMAGE_ATTRS`."""
    view: dict[str, Any] = {
        "src": record.src,
        "dims": list(record.dims),
        "size": record.size,
        "MD5": record.md5,
        "hash": record.fingerprint,
        "imgnm": record.imgnm,
    }
    if record.thumb is not None:
        view["thumb"] = record.thumb
    if record.spoiler is not None:
        view["spoiler"] = record.spoiler
    if record.apng:
        view["apng"] = 1
    if record.composite is not None:
        view["realthumb"] = view.get("thumb")
        view["thumb"] = record.composite
    view["pinky"] = pinky
    return view
