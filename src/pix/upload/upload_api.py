"""HTTP route accepting image uploads."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse, Response
from starlette.requests import ClientDisconnect

from .cleanup import ResponseChannel
from .session import UploadPipeline, UploadSession
from .upload_errors import InternalError, UploadAbortedError, UploadError

router = APIRouter(tags=["upload"])
logger = logging.getLogger(__name__)


def get_upload_pipeline(request: Request) -> UploadPipeline:
    """Fetch upload pipeline from application state."""
    try:
        return request.app.state.upload_pipeline  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - defensive path
        raise RuntimeError("UploadPipeline is not configured") from exc


def _content_length(request: Request) -> int | None:
    raw = request.headers.get("content-length")
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


async def _request_chunks(request: Request) -> AsyncIterator[bytes]:
    try:
        async for chunk in request.stream():
            if chunk:
                yield chunk
    except ClientDisconnect as exc:
        raise UploadAbortedError() from exc


def _reply(channel: ResponseChannel) -> Response:
    if channel.status_code is None:
        return PlainTextResponse("Upload request problem.", status_code=500)
    return PlainTextResponse(channel.body or "", status_code=channel.status_code)


@router.post("/upload")
async def submit_upload(
    request: Request,
    pipeline: UploadPipeline = Depends(get_upload_pipeline),
) -> Response:
    """Receive one image and run it through the publishing pipeline."""
    channel = ResponseChannel()
    session: UploadSession = pipeline.open_session(channel)
    content_length = _content_length(request)

    try:
        session.begin(content_length)
        context = await session.receive(
            _request_chunks(request),
            request.headers.get("content-type", ""),
            content_length,
        )
    except UploadAbortedError:
        logger.info("upload.aborted", extra={"client_id": session.client_id})
        await session.abort()
        return _reply(channel)
    except UploadError as exc:
        await session.fail(exc)
        return _reply(channel)
    except Exception:
        logger.exception("upload.receive.unexpected", extra={"client_id": session.client_id})
        await session.fail(InternalError("Upload request problem."))
        return _reply(channel)

    await session.process(context)
    return _reply(channel)
