"""
Trip Lifecycle Manager
======================

Owns every write to a trip's status triple (status, sub_status,
breakdown_issue) and to its append-only history.

Invariants
----------
* A trip's ``status`` always names a row of ``trip_statuses`` at write time;
  unknown names raise ``InvalidState`` before anything is written.
* Each distinct change of the triple writes exactly one history row; an
  unchanged triple writes none.  Creation always writes history row #1.
* The trip update and its history insert share one transaction, the insert
  ordered after the update.

The manager performs no authorisation; callers check permissions first.
Any status may move to any other unless the injected ``TransitionPolicy``
says otherwise.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from tripdesk.config import settings as default_settings
from tripdesk.config import Settings
from tripdesk.domain.entities import HistoryEntry, StatusTriple, TripDraft
from tripdesk.domain.errors import InvalidState, NotFound
from tripdesk.domain.transitions import PERMISSIVE, TransitionPolicy
from tripdesk.infrastructure.database import Database
from tripdesk.infrastructure.models import TripModel, VehicleModel
from tripdesk.infrastructure.repositories import (
    HierarchyRepository,
    ProfileRepository,
    TaxonomyRepository,
    TripHistoryRepository,
    TripRepository,
    VehicleRepository,
)

logger = logging.getLogger(__name__)


class TripLifecycleManager:
    def __init__(
        self,
        database: Database,
        policy: TransitionPolicy = PERMISSIVE,
        settings: Settings = default_settings,
    ):
        self.database = database
        self.policy = policy
        self.settings = settings

    # ── Public API ────────────────────────────────────────────────────

    async def create_trip(self, draft: TripDraft) -> int:
        triple = self._draft_triple(draft)
        async with self.database.transaction() as session:
            await self._validate_status(session, triple)
            await self._validate_references(session, draft)

            trip = await TripRepository(session).create(
                TripModel(
                    **self._draft_columns(draft),
                    status=triple.status,
                    sub_status=triple.sub_status,
                    breakdown_issue=triple.breakdown_issue,
                )
            )
            await TripHistoryRepository(session).append(
                trip.id, triple, trip.passengers_boarded
            )
            if draft.driver_id:
                await ProfileRepository(session).mark_driver(draft.driver_id)
            trip_id = trip.id

        logger.info("Created trip %d (%s) in status %r", trip_id, draft.route_code, triple.status)
        return trip_id

    async def update_trip(self, trip_id: int, draft: TripDraft) -> bool:
        """Full update of a trip.  Returns True if a history row was written."""
        triple = self._draft_triple(draft)
        async with self.database.transaction() as session:
            trip = await self._get_trip(session, trip_id)
            await self._validate_references(session, draft)

            for column, value in self._draft_columns(draft).items():
                setattr(trip, column, value)
            changed = await self._apply_triple(session, trip, triple)
            if draft.driver_id:
                await ProfileRepository(session).mark_driver(draft.driver_id)

        return changed

    async def apply_status_change(
        self,
        trip_id: int,
        status: str,
        sub_status: Optional[str] = None,
        breakdown_issue: Optional[str] = None,
        passengers_boarded: Optional[int] = None,
    ) -> bool:
        """Move a trip to a new triple.  Returns True if history was appended."""
        triple = StatusTriple.normalize(status, sub_status, breakdown_issue)
        async with self.database.transaction() as session:
            trip = await self._get_trip(session, trip_id)
            if passengers_boarded is not None:
                trip.passengers_boarded = passengers_boarded
            return await self._apply_triple(session, trip, triple)

    async def update_trip_details(
        self,
        trip_id: int,
        *,
        volunteer_id: Optional[int] = None,
        driver_id: Optional[int] = None,
        vehicle_registration: str = "",
        passengers_boarded: int = 0,
        wheelchairs_boarded: int = 0,
        notes: Optional[str] = None,
    ) -> None:
        """Quick crew / vehicle / headcount update.  Never touches status."""
        async with self.database.transaction() as session:
            trip = await self._get_trip(session, trip_id)
            profiles = ProfileRepository(session)
            for profile_id in (volunteer_id, driver_id):
                if profile_id and await profiles.get_by_id(profile_id) is None:
                    raise NotFound(f"Profile {profile_id} not found")

            vehicle_id = None
            registration = vehicle_registration.strip()
            if registration:
                vehicles = VehicleRepository(session)
                vehicle = await vehicles.get_by_registration(registration)
                if vehicle is None:
                    vehicle = await vehicles.create(
                        VehicleModel(registration=registration, type="Unknown",
                                     make_model="Unknown", capacity=0)
                    )
                    logger.info("Registered placeholder vehicle %r", registration)
                vehicle_id = vehicle.id

            trip.volunteer_id = volunteer_id
            trip.driver_id = driver_id
            trip.vehicle_id = vehicle_id
            trip.passengers_boarded = passengers_boarded
            trip.wheelchairs_boarded = wheelchairs_boarded
            trip.notes = notes or ""
            if driver_id:
                await profiles.mark_driver(driver_id)

    async def delete_trip(self, trip_id: int) -> None:
        async with self.database.transaction() as session:
            repo = TripRepository(session)
            if await repo.get_by_id(trip_id) is None:
                raise NotFound(f"Trip {trip_id} not found")
            await repo.delete(trip_id)
        logger.info("Deleted trip %d and its history", trip_id)

    async def get_history(self, trip_id: int) -> list[HistoryEntry]:
        async with self.database.session() as session:
            rows = await TripHistoryRepository(session).for_trip(trip_id)
        return [
            HistoryEntry(
                id=r.id,
                trip_id=r.trip_id,
                status=r.status,
                sub_status=r.sub_status,
                breakdown_issue=r.breakdown_issue,
                passengers_boarded=r.passengers_boarded,
                changed_at=r.changed_at,
            )
            for r in rows
        ]

    # ── Internals ─────────────────────────────────────────────────────

    async def _get_trip(self, session: AsyncSession, trip_id: int) -> TripModel:
        trip = await TripRepository(session).get_for_update(trip_id)
        if trip is None:
            raise NotFound(f"Trip {trip_id} not found")
        return trip

    async def _apply_triple(
        self, session: AsyncSession, trip: TripModel, triple: StatusTriple
    ) -> bool:
        current = StatusTriple(trip.status, trip.sub_status or "", trip.breakdown_issue)
        if current == triple:
            return False

        await self._validate_status(session, triple)
        self.policy.check(current.status, triple.status)

        trip.status = triple.status
        trip.sub_status = triple.sub_status
        trip.breakdown_issue = triple.breakdown_issue
        await session.flush()
        await TripHistoryRepository(session).append(
            trip.id, triple, trip.passengers_boarded
        )
        logger.info(
            "Trip %d: %s/%s -> %s/%s",
            trip.id, current.status, current.sub_status,
            triple.status, triple.sub_status,
        )
        return True

    async def _validate_status(self, session: AsyncSession, triple: StatusTriple) -> None:
        repo = TaxonomyRepository(session)
        if await repo.get_status_by_name(triple.status) is None:
            raise InvalidState(f"Unknown trip status '{triple.status}'")
        if triple.sub_status:
            sub_status = await repo.get_sub_status_by_name(triple.sub_status)
            if sub_status is None or sub_status.linked_status != triple.status:
                # Linkage is advisory
                logger.warning(
                    "Sub-status %r is not linked to status %r",
                    triple.sub_status, triple.status,
                )

    async def _validate_references(self, session: AsyncSession, draft: TripDraft) -> None:
        hierarchy = HierarchyRepository(session)
        places = (
            ("locations", draft.origin_id),
            ("locations", draft.destination_id),
            ("venues", draft.origin_venue_id),
            ("venues", draft.destination_venue_id),
            ("regions", draft.region_id),
        )
        for table, entity_id in places:
            if entity_id and await hierarchy.get(table, entity_id) is None:
                raise NotFound(f"{table[:-1].capitalize()} {entity_id} not found")

        profiles = ProfileRepository(session)
        for profile_id in (draft.volunteer_id, draft.driver_id):
            if profile_id and await profiles.get_by_id(profile_id) is None:
                raise NotFound(f"Profile {profile_id} not found")
        if draft.vehicle_id and await VehicleRepository(session).get_by_id(draft.vehicle_id) is None:
            raise NotFound(f"Vehicle {draft.vehicle_id} not found")

    def _draft_triple(self, draft: TripDraft) -> StatusTriple:
        return StatusTriple.normalize(
            draft.status or self.settings.default_trip_status,
            draft.sub_status if draft.sub_status is not None
            else self.settings.default_trip_sub_status,
            draft.breakdown_issue,
        )

    @staticmethod
    def _draft_columns(draft: TripDraft) -> dict:
        return {
            "route_code": draft.route_code,
            "origin_id": draft.origin_id,
            "origin_venue_id": draft.origin_venue_id,
            "destination_id": draft.destination_id,
            "destination_venue_id": draft.destination_venue_id,
            "region_id": draft.region_id,
            "start_time": draft.start_time,
            "end_time": draft.end_time,
            "vehicle_id": draft.vehicle_id,
            "volunteer_id": draft.volunteer_id,
            "driver_id": draft.driver_id,
            "passengers_boarded": draft.passengers_boarded,
            "wheelchairs_boarded": draft.wheelchairs_boarded,
            "notes": draft.notes,
        }
