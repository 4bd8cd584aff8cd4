"""Cache keys for analytics reports.

Reports are cached per date window under a generation number. Any
dispute write bumps the generation, which orphans every cached window
at once without having to know which windows exist.
"""

from datetime import datetime

from django.core.cache import cache

from disputes.conf import dispute_setting

ANALYTICS_GENERATION_KEY = "disputes:analytics:generation"


def analytics_generation() -> int:
    cache.add(ANALYTICS_GENERATION_KEY, 1, timeout=None)
    return cache.get(ANALYTICS_GENERATION_KEY, 1)


def analytics_key(start_date: datetime | None, end_date: datetime | None) -> str:
    start = start_date.isoformat() if start_date else "-"
    end = end_date.isoformat() if end_date else "-"
    return f"disputes:analytics:{analytics_generation()}:{start}:{end}"


def get_analytics(start_date: datetime | None, end_date: datetime | None):
    return cache.get(analytics_key(start_date, end_date))


def set_analytics(start_date: datetime | None, end_date: datetime | None, data) -> None:
    cache.set(
        analytics_key(start_date, end_date),
        data,
        timeout=dispute_setting("ANALYTICS_CACHE_TIMEOUT"),
    )


def invalidate_analytics() -> None:
    cache.add(ANALYTICS_GENERATION_KEY, 1, timeout=None)
    try:
        cache.incr(ANALYTICS_GENERATION_KEY)
    except ValueError:
        # Evicted between add and incr.
        cache.set(ANALYTICS_GENERATION_KEY, 2, timeout=None)
