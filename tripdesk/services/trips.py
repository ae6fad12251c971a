"""Trip read model: lookup, search, count.  Reads never fail for "no rows"."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from tripdesk.config import Settings
from tripdesk.config import settings as default_settings
from tripdesk.domain.entities import DashboardWindow, TripView
from tripdesk.infrastructure.database import Database
from tripdesk.infrastructure.repositories import TripRepository


class TripQueryService:
    def __init__(self, database: Database, settings: Settings = default_settings):
        self.database = database
        self.settings = settings

    def dashboard_window(self, now: Optional[datetime] = None) -> DashboardWindow:
        """Live statuses, plus settled ones that started within the window."""
        now = now or datetime.now(timezone.utc)
        return DashboardWindow(
            live_statuses=tuple(self.settings.dashboard_live_statuses),
            recent_statuses=tuple(self.settings.dashboard_recent_statuses),
            since=now - timedelta(days=self.settings.dashboard_window_days),
        )

    async def get_trip(self, trip_id: int) -> Optional[TripView]:
        async with self.database.session() as session:
            return await TripRepository(session).get_view(trip_id)

    async def list_trips(
        self,
        search: Optional[str] = None,
        region_id: Optional[int] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        dashboard: bool = False,
    ) -> list[TripView]:
        window = self.dashboard_window() if dashboard else None
        async with self.database.session() as session:
            return await TripRepository(session).search(
                search=search,
                region_id=region_id,
                dashboard=window,
                limit=limit,
                offset=offset,
            )

    async def count_trips(
        self,
        search: Optional[str] = None,
        region_id: Optional[int] = None,
        dashboard: bool = False,
    ) -> int:
        window = self.dashboard_window() if dashboard else None
        async with self.database.session() as session:
            return await TripRepository(session).count(
                search=search, region_id=region_id, dashboard=window
            )

    async def list_trips_for_place(self, place_id: int) -> list[TripView]:
        """Trips whose origin or destination (location or venue) is *place_id*."""
        async with self.database.session() as session:
            return await TripRepository(session).for_place(place_id)
