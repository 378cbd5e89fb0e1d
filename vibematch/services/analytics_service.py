"""Analytics Service - read-only platform aggregates."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from vibematch.models import ROLE_BUILDER, ROLE_INVESTOR, ROLE_TECHNICAL
from vibematch.models.base import format_datetime, utc_now
from vibematch.models.match import MATCH_ACCEPTED
from vibematch.services.storage import Storage

DEFAULT_PERIOD = "30d"
PERIODS = {
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "90d": timedelta(days=90),
    "1y": timedelta(days=365),
}


def period_window(period: str | None, now: datetime | None = None) -> tuple[str, datetime, datetime]:
    """Resolve a period name to (name, start, end). Unknown names mean 30 days."""
    end = now or utc_now()
    if period not in PERIODS:
        period = DEFAULT_PERIOD
    return period, end - PERIODS[period], end


class AnalyticsService:
    def __init__(self, storage: Storage):
        self._storage = storage

    def users_by_role(self) -> list[dict[str, Any]]:
        return self._storage.count_profiles_by_role()

    def overview(self) -> dict[str, Any]:
        counts = {row["role"]: row["count"] for row in self._storage.count_profiles_by_role()}
        return {
            "totalUsers": sum(counts.values()),
            "usersByRole": {
                "builders": counts.get(ROLE_BUILDER, 0),
                "investors": counts.get(ROLE_INVESTOR, 0),
                "techLeads": counts.get(ROLE_TECHNICAL, 0),
            },
            "projectsHosted": self._storage.count_projects(),
            "matchesMade": self._storage.count_matches(MATCH_ACCEPTED),
            "totalConnections": self._storage.count_matches(),
        }

    def demographics(self) -> dict[str, Any]:
        return {
            "byLocation": self._storage.location_histogram(),
            "byTags": self._storage.tag_histogram(),
        }

    def growth(self, period: str | None = None, now: datetime | None = None) -> dict[str, Any]:
        period, start, end = period_window(period, now)
        return {
            "period": period,
            "startDate": format_datetime(start),
            "endDate": format_datetime(end),
            "metrics": self._storage.count_created_between(start, end),
        }
