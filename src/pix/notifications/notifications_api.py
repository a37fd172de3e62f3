"""Long-poll route delivering upload notifications to the submitting client."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request, Response, status

from .notifier import ClientNotificationHub

router = APIRouter(prefix="/notifications", tags=["notifications"])


def get_notification_hub(request: Request) -> ClientNotificationHub:
    """Fetch notification hub from application state."""
    try:
        return request.app.state.notification_hub  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - defensive path
        raise RuntimeError("ClientNotificationHub is not configured") from exc


@router.get("/{client_id}")
async def poll_notifications(
    client_id: str,
    timeout: float = Query(default=25.0, ge=0, le=60),
    hub: ClientNotificationHub = Depends(get_notification_hub),
) -> dict[str, list[dict[str, str]]]:
    """Return queued notifications, waiting up to ``timeout`` seconds for the first."""
    batch = await hub.poll(client_id, timeout=timeout)
    return {"messages": [notification.as_message() for notification in batch]}


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
async def drop_subscription(
    client_id: str,
    hub: ClientNotificationHub = Depends(get_notification_hub),
) -> Response:
    hub.unsubscribe(client_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
