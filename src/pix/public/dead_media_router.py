"""Read-only access to buried images."""

from fastapi import APIRouter

from ..media.dead_media_service import DeadMediaService


def build_dead_media_router(service: DeadMediaService) -> APIRouter:
    router = APIRouter(prefix="/dead", tags=["dead-media"])

    @router.get("/{kind}/{filename}")
    def get_dead_media(kind: str, filename: str):
        return service.open_media(kind, filename)

    return router
