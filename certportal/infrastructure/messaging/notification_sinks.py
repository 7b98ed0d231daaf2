"""Notification sinks for application status changes"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime

import redis.asyncio as redis

from certportal.application.interfaces.services import Notification
from certportal.infrastructure.config.settings import get_settings

logger = logging.getLogger(__name__)


class LoggingNotificationSink:
    """Writes notifications to the application log"""

    async def send(self, notification: Notification) -> None:
        logger.info(
            f"Notify {notification.recipient}: application "
            f"{notification.application_code} is now {notification.new_status}"
        )


class RedisNotificationSink:
    """
    Publishes status changes to a per-recipient Redis channel.

    Channel: ``{prefix}:{recipient}``. Subscribers (web push, SMS or email
    relays) deliver the message onward.
    """

    def __init__(self, redis_client: redis.Redis | None = None) -> None:
        self.redis = redis_client
        self.settings = get_settings()
        self.channel_prefix = self.settings.notification_channel_prefix
        self._connected = redis_client is not None

    async def connect(self) -> None:
        """Establish Redis connection"""
        if self.redis is None:
            try:
                self.redis = redis.Redis(
                    host=self.settings.redis_host,
                    port=self.settings.redis_port,
                    db=self.settings.redis_db,
                    password=self.settings.redis_password or None,
                    decode_responses=True,
                    socket_connect_timeout=5,
                )
                await self.redis.ping()
                self._connected = True
                logger.info("Redis notification publisher connected")
            except (redis.ConnectionError, redis.TimeoutError) as e:
                logger.warning(f"Redis notification publisher connection failed: {e}")
                self._connected = False
                self.redis = None

    async def disconnect(self) -> None:
        """Close Redis connection"""
        if self.redis:
            await self.redis.aclose()
            self._connected = False
            logger.info("Redis notification publisher disconnected")

    def is_available(self) -> bool:
        return self._connected and self.redis is not None

    def _get_channel(self, recipient: str) -> str:
        return f"{self.channel_prefix}:{recipient}"

    async def send(self, notification: Notification) -> None:
        """
        Publish a notification.

        Raises:
            ConnectionError: Redis is not connected
            redis.RedisError: Publishing failed
        """
        if not self.is_available() or self.redis is None:
            raise ConnectionError("Redis notification publisher is not connected")

        message = notification.to_dict()
        message["timestamp"] = datetime.now(UTC).isoformat()
        channel = self._get_channel(notification.recipient)
        await self.redis.publish(channel, json.dumps(message))
        logger.debug(f"Published status change to {channel}: {notification.new_status}")
