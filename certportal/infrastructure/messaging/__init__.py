from certportal.infrastructure.messaging.notification_sinks import (
    LoggingNotificationSink, RedisNotificationSink)

__all__ = ["LoggingNotificationSink", "RedisNotificationSink"]
