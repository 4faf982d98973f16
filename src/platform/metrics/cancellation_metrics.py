from prometheus_client import Counter, Gauge, Histogram


class CancellationMetrics:
    """
    Event Cancellation Metrics Collector

    Tracks the cancellation lifecycle and per-item outcomes of the processor
    (refunds and notifications), so partial failures show up on dashboards.
    """

    def __init__(self):
        # ========== Lifecycle Metrics ==========
        self.cancellation_transitions = Counter(
            'event_cancellation_transitions_total',
            'Cancellation status transitions',
            ['status'],  # pending/confirmed/processing/completed/failed
        )

        self.cancellation_processing_duration = Histogram(
            'event_cancellation_processing_duration_seconds',
            'Duration of one processing run',
            ['processing_method', 'result'],
            buckets=[0.1, 0.5, 1.0, 5.0, 10.0, 30.0, 60.0, 300.0],
        )

        self.cancellations_in_progress = Gauge(
            'event_cancellations_in_progress', 'Processing runs currently executing'
        )

        # ========== Per-item Outcomes ==========
        self.refund_attempts = Counter(
            'event_cancellation_refund_attempts_total',
            'Refund or credit outcomes',
            ['compensation_type', 'result'],  # result: succeeded/failed/manual_required
        )

        self.notification_attempts = Counter(
            'event_cancellation_notification_attempts_total',
            'Attendee notification outcomes',
            ['result'],  # sent/failed
        )

        self.conflicts = Counter(
            'event_cancellation_conflicts_total',
            'Optimistic concurrency conflicts on save',
        )

    # ========== Helper Methods ==========

    def record_transition(self, *, status: str):
        self.cancellation_transitions.labels(status=status).inc()

    def record_processing_run(self, *, processing_method: str, result: str, duration: float):
        self.cancellation_processing_duration.labels(
            processing_method=processing_method, result=result
        ).observe(duration)

    def record_refund(self, *, compensation_type: str, result: str):
        self.refund_attempts.labels(compensation_type=compensation_type, result=result).inc()

    def record_notification(self, *, result: str):
        self.notification_attempts.labels(result=result).inc()

    def record_conflict(self):
        self.conflicts.inc()


# Global metrics instance
metrics = CancellationMetrics()
