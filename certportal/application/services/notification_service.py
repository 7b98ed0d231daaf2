"""Fire-and-forget delivery of status change notifications"""

from __future__ import annotations

import asyncio
import logging

from certportal.application.interfaces.services import (INotificationSink,
                                                        Notification)

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """
    Hands notifications to a sink on detached tasks.

    ``enqueue`` never blocks the caller and delivery failures are only
    logged, so a transition never fails because of its notification.
    """

    def __init__(self, sink: INotificationSink):
        self.sink = sink
        self._pending: set[asyncio.Task] = set()

    def enqueue(self, notification: Notification) -> None:
        task = asyncio.get_running_loop().create_task(self._deliver(notification))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, notification: Notification) -> None:
        try:
            await self.sink.send(notification)
        except Exception as e:
            logger.warning(
                f"Notification for application {notification.application_id} "
                f"({notification.new_status}) failed: {e}"
            )

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for in-flight deliveries (shutdown and tests)"""
        if self._pending:
            await asyncio.gather(*list(self._pending))
