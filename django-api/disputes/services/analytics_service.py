"""Read-only rollups over the dispute history."""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime

from disputes.stores.interfaces import DisputeStore

SECONDS_PER_DAY = 60 * 60 * 24


@dataclass(frozen=True)
class ResolutionTime:
    """Days from creation to resolution."""

    average: float = 0.0
    median: float = 0.0


@dataclass(frozen=True)
class DisputeAnalyticsReport:
    total_disputes: int = 0
    by_status: dict[str, int] = field(default_factory=dict)
    by_type: dict[str, int] = field(default_factory=dict)
    by_priority: dict[str, int] = field(default_factory=dict)
    resolution_time: ResolutionTime = ResolutionTime()
    escalated_disputes: int = 0
    escalation_rate: float = 0.0


class DisputeAnalytics:
    """Aggregates counts and timings for disputes created in a date window."""

    def __init__(self, store: DisputeStore) -> None:
        self._store = store

    def report(
        self, start_date: datetime | None = None, end_date: datetime | None = None
    ) -> DisputeAnalyticsReport:
        disputes = self._store.list_created_between(start_date, end_date)
        total = len(disputes)
        if not total:
            return DisputeAnalyticsReport()

        durations = sorted(
            (d.resolved_at - d.created_at).total_seconds() / SECONDS_PER_DAY
            for d in disputes
            if d.resolved_at and d.created_at
        )
        resolution_time = ResolutionTime()
        if durations:
            # Upper median for even counts.
            resolution_time = ResolutionTime(
                average=sum(durations) / len(durations),
                median=durations[len(durations) // 2],
            )

        escalated = sum(1 for d in disputes if d.is_escalated)
        return DisputeAnalyticsReport(
            total_disputes=total,
            by_status=dict(Counter(d.status.value for d in disputes)),
            by_type=dict(Counter(d.dispute_type.value for d in disputes)),
            by_priority=dict(Counter(d.priority.value for d in disputes)),
            resolution_time=resolution_time,
            escalated_disputes=escalated,
            escalation_rate=escalated / total * 100,
        )
