from prometheus_client import Counter, Gauge, Histogram


class TicketingMetrics:
    """
    Ticketing core metrics collector

    Tracks reservations, door check-ins, host notices and the number of open
    live streams (dashboards, notice feeds, token passes).
    """

    def __init__(self):
        # ========== Ticket Lifecycle Metrics ==========
        self.tickets_reserved = Counter(
            'tickets_reserved_total',
            'Total tickets reserved',
        )

        self.tickets_revoked = Counter(
            'tickets_revoked_total',
            'Total tickets revoked by organizers',
        )

        self.ticket_verifications = Counter(
            'ticket_verifications_total',
            'Door verifications by outcome',
            ['outcome'],  # admitted/already_admitted/malformed/not_found/unavailable/error
        )

        self.ticket_verification_duration = Histogram(
            'ticket_verification_duration_seconds',
            'Verification processing time',
            buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0],
        )

        # ========== Broadcast Metrics ==========
        self.notices_published = Counter(
            'notices_published_total',
            'Total host notices published',
        )

        # ========== Live Stream Metrics ==========
        self.live_subscriptions = Gauge(
            'live_subscriptions',
            'Open live streams',
            ['kind'],  # dashboard/notice_feed/token
        )

    # ========== Helper Methods ==========

    def record_ticket_reserved(self):
        self.tickets_reserved.inc()

    def record_ticket_revoked(self):
        self.tickets_revoked.inc()

    def record_verification(self, *, outcome: str, duration: float):
        self.ticket_verifications.labels(outcome=outcome).inc()
        self.ticket_verification_duration.observe(duration)

    def record_notice_published(self):
        self.notices_published.inc()

    def subscription_opened(self, *, kind: str):
        self.live_subscriptions.labels(kind=kind).inc()

    def subscription_closed(self, *, kind: str):
        self.live_subscriptions.labels(kind=kind).dec()


# Global metrics instance
metrics = TicketingMetrics()
