"""
Wire Modules Configuration

Defines the modules that need dependency injection wiring.
Shared between production and test environments.
"""

from types import ModuleType

from src.service.ticketing.app.command import (
    create_event_use_case,
    delete_event_use_case,
    publish_notice_use_case,
    reserve_ticket_use_case,
    revoke_ticket_use_case,
    verify_ticket_use_case,
)
from src.service.ticketing.app.query import (
    get_event_use_case,
    list_events_use_case,
    stream_dashboard_metrics_use_case,
    stream_notice_feed_use_case,
    ticket_pass_use_case,
)
from src.service.ticketing.driving_adapter.http_controller.auth import identity


WIRE_MODULES: list[ModuleType] = [
    reserve_ticket_use_case,
    verify_ticket_use_case,
    revoke_ticket_use_case,
    create_event_use_case,
    delete_event_use_case,
    publish_notice_use_case,
    get_event_use_case,
    list_events_use_case,
    ticket_pass_use_case,
    stream_dashboard_metrics_use_case,
    stream_notice_feed_use_case,
    identity,
]
