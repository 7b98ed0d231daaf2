"""Tests for notification sinks"""

import json
import logging
from unittest.mock import AsyncMock

import pytest

from certportal.application.interfaces.services import Notification
from certportal.infrastructure.messaging.notification_sinks import (
    LoggingNotificationSink, RedisNotificationSink)


@pytest.fixture
def notification():
    return Notification(
        application_id="app_1",
        application_code="APP2026ABCDEFGHIJ",
        new_status="additional_info_needed",
        recipient="citizen-1",
        reason="Upload address proof",
    )


async def test_redis_sink_publishes_to_recipient_channel(notification):
    client = AsyncMock()
    sink = RedisNotificationSink(redis_client=client)

    await sink.send(notification)

    channel, payload = client.publish.call_args[0]
    assert channel == "application_status:citizen-1"
    message = json.loads(payload)
    assert message["new_status"] == "additional_info_needed"
    assert message["reason"] == "Upload address proof"
    assert "timestamp" in message


async def test_disconnected_redis_sink_raises(notification):
    sink = RedisNotificationSink()

    with pytest.raises(ConnectionError):
        await sink.send(notification)


async def test_logging_sink_writes_log_line(notification, caplog):
    with caplog.at_level(logging.INFO):
        await LoggingNotificationSink().send(notification)

    assert "APP2026ABCDEFGHIJ is now additional_info_needed" in caplog.text
