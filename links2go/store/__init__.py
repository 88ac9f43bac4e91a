"""
Storage module for Links2Go.
Implements Strategy Pattern over the key-value store (Redis).
"""

from .records import RecordStore, RedisRecordStore
from .analytics import AnalyticsLog, RedisAnalyticsLog, MAX_EVENTS
from .connection import create_redis_client, verify_connection

__all__ = [
    "RecordStore",
    "RedisRecordStore",
    "AnalyticsLog",
    "RedisAnalyticsLog",
    "MAX_EVENTS",
    "create_redis_client",
    "verify_connection",
]
