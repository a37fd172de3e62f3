"""Fire-and-forget notifications keyed by client correlation id."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Protocol

from ..upload.upload_models import Notification

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def notify(self, client_id: str, notification: Notification) -> None:
        ...


@dataclass(slots=True)
class ClientNotificationHub:
    """In-process fan-out to subscribed clients.

    Each subscriber gets a bounded queue; when it is full the oldest message
    is dropped. Notifications for unknown clients are discarded.
    """

    max_pending: int = 64
    _queues: dict[str, asyncio.Queue[Notification]] = field(default_factory=dict)

    def subscribe(self, client_id: str) -> asyncio.Queue[Notification]:
        queue = self._queues.get(client_id)
        if queue is None:
            queue = asyncio.Queue(maxsize=self.max_pending)
            self._queues[client_id] = queue
        return queue

    def unsubscribe(self, client_id: str) -> None:
        self._queues.pop(client_id, None)

    def notify(self, client_id: str, notification: Notification) -> None:
        queue = self._queues.get(client_id)
        if queue is None:
            logger.debug(
                "notify.no_subscriber",
                extra={"client_id": client_id, "func": notification.name.value},
            )
            return
        if queue.full():
            queue.get_nowait()
        queue.put_nowait(notification)

    async def poll(self, client_id: str, *, timeout: float) -> list[Notification]:
        """Wait up to ``timeout`` seconds for pending notifications and drain them.

        Polling subscribes the client, so notifications sent between polls
        are queued rather than discarded.
        """
        queue = self.subscribe(client_id)
        batch: list[Notification] = []
        if queue.empty() and timeout > 0:
            try:
                batch.append(await asyncio.wait_for(queue.get(), timeout))
            except asyncio.TimeoutError:
                return batch
        while not queue.empty():
            batch.append(queue.get_nowait())
        return batch
