"""Ticketing Domain Value Objects"""

from src.service.ticketing.domain.value_object.metric_snapshot import (
    CheckInSignal,
    MetricSnapshot,
    RecentTicket,
)
from src.service.ticketing.domain.value_object.verification_result import (
    VerificationOutcome,
    VerificationResult,
)
from src.service.ticketing.domain.value_object.verification_token import VerificationToken

__all__ = [
    'CheckInSignal',
    'MetricSnapshot',
    'RecentTicket',
    'VerificationOutcome',
    'VerificationResult',
    'VerificationToken',
]
