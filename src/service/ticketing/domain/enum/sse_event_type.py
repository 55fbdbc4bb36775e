"""
SSE Event Type Enum - Domain Value Object

This enum defines the types of Server-Sent Events for real-time updates.
"""

from enum import Enum


class SseEventType(Enum):
    """SSE event type enumeration for real-time streaming"""

    METRICS_SNAPSHOT = 'metrics_snapshot'
    CHECK_IN = 'check_in'
    NOTICE_FEED = 'notice_feed'
    PULSE_CLEARED = 'pulse_cleared'
    TOKEN_ROTATED = 'token_rotated'
    STALLED = 'stalled'
