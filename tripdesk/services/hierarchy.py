"""
Hierarchy Integrity Guard
=========================

Safe create / rename / delete over the Region -> Venue -> Location tree.

Deletion policy
---------------
* **Region** -- refused while any trip belongs to the region or is routed
  through one of its venues or locations.  Otherwise venue-owned locations,
  venues, region-level locations and finally the region are deleted in one
  transaction.
* **Venue** -- refused while any trip is routed to the venue or to one of
  its locations.  Otherwise its locations and then the venue are deleted.
* **Location** -- refused while any trip uses it as origin or destination.
* **Event** -- plain delete.

A refusal raises ``Conflict`` before anything is written.  A foreign-key
violation the checks did not anticipate (e.g. events still hanging off a
region) is rolled back and surfaces as ``Conflict`` as well.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from tripdesk.domain.entities import (
    EventNode,
    LocationNode,
    Place,
    RegionNode,
    VenueNode,
)
from tripdesk.domain.enums import HierarchyTable, PlaceKind
from tripdesk.domain.errors import Conflict, NotFound
from tripdesk.infrastructure.database import Database
from tripdesk.infrastructure.models import (
    EventModel,
    LocationModel,
    RegionModel,
    TripModel,
    VenueModel,
)
from tripdesk.infrastructure.repositories import HierarchyRepository, TripRepository

logger = logging.getLogger(__name__)


class HierarchyIntegrityGuard:
    def __init__(self, database: Database):
        self.database = database

    # ── Create ────────────────────────────────────────────────────────

    async def create_region(self, name: str) -> int:
        async with self.database.transaction() as session:
            region = await HierarchyRepository(session).add(RegionModel(name=name))
            return region.id

    async def create_venue(self, name: str, region_id: int) -> int:
        async with self.database.transaction() as session:
            repo = HierarchyRepository(session)
            await self._require(repo, HierarchyTable.REGIONS, region_id)
            venue = await repo.add(VenueModel(name=name, region_id=region_id))
            return venue.id

    async def create_location(
        self, name: str, region_id: int, venue_id: Optional[int] = None
    ) -> int:
        async with self.database.transaction() as session:
            repo = HierarchyRepository(session)
            await self._require(repo, HierarchyTable.REGIONS, region_id)
            if venue_id is not None:
                venue = await self._require(repo, HierarchyTable.VENUES, venue_id)
                if venue.region_id != region_id:
                    raise Conflict(
                        f"Venue {venue_id} belongs to region {venue.region_id}, "
                        f"not {region_id}"
                    )
            location = await repo.add(
                LocationModel(name=name, venue_id=venue_id, region_id=region_id)
            )
            return location.id

    async def create_event(self, name: str, region_id: int) -> int:
        async with self.database.transaction() as session:
            repo = HierarchyRepository(session)
            await self._require(repo, HierarchyTable.REGIONS, region_id)
            event = await repo.add(EventModel(name=name, region_id=region_id))
            return event.id

    # ── Rename / delete ───────────────────────────────────────────────

    async def rename_entity(self, table: HierarchyTable, entity_id: int, name: str) -> None:
        """Single-row rename; names are never used as references here."""
        async with self.database.transaction() as session:
            entity = await self._require(HierarchyRepository(session), table, entity_id)
            entity.name = name

    async def delete_entity(self, table: HierarchyTable, entity_id: int) -> None:
        async with self.database.transaction() as session:
            repo = HierarchyRepository(session)
            await self._require(repo, table, entity_id)
            if table is HierarchyTable.REGIONS:
                await self._delete_region(session, repo, entity_id)
            elif table is HierarchyTable.VENUES:
                await self._delete_venue(session, repo, entity_id)
            elif table is HierarchyTable.LOCATIONS:
                await self._delete_location(session, repo, entity_id)
            else:
                await repo.delete_one(table.value, entity_id)
        logger.info("Deleted %s %d", table.value, entity_id)

    async def _delete_region(
        self, session: AsyncSession, repo: HierarchyRepository, region_id: int
    ) -> None:
        venue_ids = await repo.venue_ids_in_region(region_id)
        location_ids = await repo.location_ids(venue_ids=venue_ids, region_id=region_id)
        conditions = [TripModel.region_id == region_id]
        if venue_ids:
            conditions += [
                TripModel.origin_venue_id.in_(venue_ids),
                TripModel.destination_venue_id.in_(venue_ids),
            ]
        if location_ids:
            conditions += [
                TripModel.origin_id.in_(location_ids),
                TripModel.destination_id.in_(location_ids),
            ]
        trips = await TripRepository(session).count_where(*conditions)
        if trips:
            self._refuse("regions", region_id, trips)
            raise Conflict(f"Cannot delete Region. It has {trips} active Trips attached.")

        await repo.delete_locations_of_venues(venue_ids)
        await repo.delete_venues_of_region(region_id)
        await repo.delete_region_level_locations(region_id)
        await repo.delete_one("regions", region_id)

    async def _delete_venue(
        self, session: AsyncSession, repo: HierarchyRepository, venue_id: int
    ) -> None:
        location_ids = await repo.location_ids(venue_ids=[venue_id])
        conditions = [
            TripModel.origin_venue_id == venue_id,
            TripModel.destination_venue_id == venue_id,
        ]
        if location_ids:
            conditions += [
                TripModel.origin_id.in_(location_ids),
                TripModel.destination_id.in_(location_ids),
            ]
        trips = await TripRepository(session).count_where(*conditions)
        if trips:
            self._refuse("venues", venue_id, trips)
            raise Conflict("Cannot delete this Venue. Trips are currently routed to it.")

        await repo.delete_locations_of_venues([venue_id])
        await repo.delete_one("venues", venue_id)

    async def _delete_location(
        self, session: AsyncSession, repo: HierarchyRepository, location_id: int
    ) -> None:
        trips = await TripRepository(session).count_where(
            TripModel.origin_id == location_id,
            TripModel.destination_id == location_id,
        )
        if trips:
            self._refuse("locations", location_id, trips)
            raise Conflict(
                "Cannot delete this Location. It is the origin or destination "
                "of an existing Trip."
            )
        await repo.delete_one("locations", location_id)

    # ── Reads ─────────────────────────────────────────────────────────

    async def get_hierarchy(self, region_id: Optional[int] = None) -> list[RegionNode]:
        """Regions with their venues, locations and events as one tree."""
        async with self.database.session() as session:
            repo = HierarchyRepository(session)
            regions = await repo.list_all("regions", region_id)
            venues = await repo.list_all("venues", region_id)
            locations = await repo.list_all("locations", region_id)
            events = await repo.list_all("events", region_id)

        tree = {r.id: RegionNode(id=r.id, name=r.name) for r in regions}
        venue_nodes: dict[int, VenueNode] = {}
        for v in venues:
            node = VenueNode(id=v.id, name=v.name, region_id=v.region_id)
            venue_nodes[v.id] = node
            if v.region_id in tree:
                tree[v.region_id].venues.append(node)
        for loc in locations:
            node = LocationNode(
                id=loc.id, name=loc.name, venue_id=loc.venue_id, region_id=loc.region_id
            )
            if loc.venue_id is not None and loc.venue_id in venue_nodes:
                venue_nodes[loc.venue_id].locations.append(node)
            elif loc.region_id in tree:
                tree[loc.region_id].locations.append(node)
        for ev in events:
            if ev.region_id in tree:
                tree[ev.region_id].events.append(
                    EventNode(id=ev.id, name=ev.name, region_id=ev.region_id)
                )
        return list(tree.values())

    async def list_places(self, region_id: Optional[int] = None) -> list[Place]:
        """Locations and events, sorted by display name."""
        async with self.database.session() as session:
            repo = HierarchyRepository(session)
            locations = await repo.list_all("locations", region_id)
            events = await repo.list_all("events", region_id)

        places = [
            Place(PlaceKind.LOCATION, loc.id, loc.name, loc.region_id)
            for loc in locations
        ] + [Place(PlaceKind.EVENT, ev.id, ev.name, ev.region_id) for ev in events]
        return sorted(places, key=lambda p: (p.display_name, p.kind.value, p.id))

    # ── Internals ─────────────────────────────────────────────────────

    @staticmethod
    async def _require(repo: HierarchyRepository, table: HierarchyTable, entity_id: int):
        entity = await repo.get(table.value, entity_id)
        if entity is None:
            raise NotFound(f"{table.value[:-1].capitalize()} {entity_id} not found")
        return entity

    @staticmethod
    def _refuse(table: str, entity_id: int, trips: int) -> None:
        logger.info(
            "Refused delete of %s %d: referenced by %d trips", table, entity_id, trips
        )
