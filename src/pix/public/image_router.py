"""Read access to recorded image allocations in flat post form."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request

from ..repositories.image_store_repository import TemporaryRegistry
from ..upload.image_binder import ImageBinder


def get_image_binder(request: Request) -> ImageBinder:
    """Fetch image binder from application state."""
    try:
        return request.app.state.image_binder  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - defensive path
        raise RuntimeError("ImageBinder is not configured") from exc


def build_image_router(registry: TemporaryRegistry) -> APIRouter:
    router = APIRouter(prefix="/images", tags=["images"])

    @router.get("/{image_id}")
    def get_image(image_id: str, binder: ImageBinder = Depends(get_image_binder)) -> dict[str, Any]:
        try:
            alloc = registry.get_alloc(image_id)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail="Image not found") from exc
        post: dict[str, Any] = {"num": image_id}
        binder.inline_image(post, {"image": alloc.image})
        return post

    return router
