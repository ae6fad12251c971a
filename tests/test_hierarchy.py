"""
Tests for the hierarchy integrity guard.

Covers:
- delete refusal while trips reference the entity (directly or through a
  child venue / location)
- cascade completeness on an allowed region delete
- events as a tagged place kind
- the combined region tree
"""

import pytest
from sqlalchemy import func, select

from tripdesk.domain.enums import HierarchyTable, PlaceKind
from tripdesk.domain.errors import Conflict, NotFound
from tripdesk.infrastructure.models import LocationModel, RegionModel, VenueModel
from tripdesk.services.trips import TripQueryService


class TestCreate:
    @pytest.mark.asyncio
    async def test_location_under_foreign_venue(self, guard, places):
        south = await guard.create_region("South")

        with pytest.raises(Conflict):
            await guard.create_location("Gate 9", south, places["main_hall"])

    @pytest.mark.asyncio
    async def test_venue_in_missing_region(self, guard):
        with pytest.raises(NotFound):
            await guard.create_venue("Nowhere Hall", 404)

    @pytest.mark.asyncio
    async def test_duplicate_region_name(self, guard, places):
        with pytest.raises(Conflict):
            await guard.create_region("North")

    @pytest.mark.asyncio
    async def test_rename(self, guard, places):
        await guard.rename_entity(HierarchyTable.VENUES, places["main_hall"], "Grand Hall")

        tree = await guard.get_hierarchy()
        assert tree[0].venues[0].name == "Grand Hall"


class TestDeleteRefusal:
    @pytest.mark.asyncio
    async def test_region_with_trip_routed_through_its_location(
        self, guard, lifecycle, make_draft, places
    ):
        # The trip carries no region_id; only its destination ties it to North
        await lifecycle.create_trip(
            make_draft(region_id=None, origin_id=None, destination_id=places["lobby_a"])
        )

        with pytest.raises(Conflict, match="1 active Trips"):
            await guard.delete_entity(HierarchyTable.REGIONS, places["north"])

        tree = await guard.get_hierarchy()
        assert [r.name for r in tree] == ["North"]
        assert [v.name for v in tree[0].venues] == ["Main Hall"]
        assert [loc.name for loc in tree[0].venues[0].locations] == ["Lobby A"]

    @pytest.mark.asyncio
    async def test_region_with_trip_in_region(self, guard, lifecycle, make_draft, places):
        await lifecycle.create_trip(make_draft(origin_id=None, destination_id=None))

        with pytest.raises(Conflict):
            await guard.delete_entity(HierarchyTable.REGIONS, places["north"])

        assert [p.name for p in await guard.list_places()] == ["Central Depot", "Lobby A"]

    @pytest.mark.asyncio
    async def test_venue_with_trip_to_its_location(self, guard, lifecycle, make_draft, places):
        await lifecycle.create_trip(make_draft())

        with pytest.raises(Conflict, match="Trips are currently routed to it"):
            await guard.delete_entity(HierarchyTable.VENUES, places["main_hall"])

    @pytest.mark.asyncio
    async def test_venue_used_directly(self, guard, lifecycle, make_draft, places):
        await lifecycle.create_trip(
            make_draft(destination_id=None, destination_venue_id=places["main_hall"])
        )

        with pytest.raises(Conflict):
            await guard.delete_entity(HierarchyTable.VENUES, places["main_hall"])

    @pytest.mark.asyncio
    async def test_location_used_as_origin(self, guard, lifecycle, make_draft, places):
        await lifecycle.create_trip(make_draft())

        with pytest.raises(Conflict):
            await guard.delete_entity(HierarchyTable.LOCATIONS, places["depot"])

    @pytest.mark.asyncio
    async def test_region_with_events_is_refused(self, guard, places):
        await guard.create_event("Opening Ceremony", places["north"])

        with pytest.raises(Conflict):
            await guard.delete_entity(HierarchyTable.REGIONS, places["north"])

        assert len(await guard.get_hierarchy()) == 1

    @pytest.mark.asyncio
    async def test_delete_missing_entity(self, guard):
        with pytest.raises(NotFound):
            await guard.delete_entity(HierarchyTable.LOCATIONS, 404)


class TestDeleteCascade:
    @pytest.mark.asyncio
    async def test_region_delete_removes_whole_subtree(self, guard, places):
        await guard.delete_entity(HierarchyTable.REGIONS, places["north"])

        assert await guard.get_hierarchy() == []
        assert await guard.list_places() == []

    @pytest.mark.asyncio
    async def test_region_with_two_venues(self, guard, database, places):
        stadium = await guard.create_venue("Stadium", places["north"])
        await guard.create_location("North Stand", places["north"], stadium)

        await guard.delete_entity(HierarchyTable.REGIONS, places["north"])

        async with database.session() as session:
            for model in (RegionModel, VenueModel, LocationModel):
                count = await session.execute(select(func.count()).select_from(model))
                assert count.scalar() == 0

    @pytest.mark.asyncio
    async def test_region_delete_leaves_other_regions(self, guard, places):
        south = await guard.create_region("South")
        await guard.create_location("Terminal 2", south)

        await guard.delete_entity(HierarchyTable.REGIONS, places["north"])

        assert [p.name for p in await guard.list_places()] == ["Terminal 2"]

    @pytest.mark.asyncio
    async def test_venue_delete_removes_its_locations(self, guard, places):
        await guard.delete_entity(HierarchyTable.VENUES, places["main_hall"])

        assert [p.name for p in await guard.list_places()] == ["Central Depot"]

    @pytest.mark.asyncio
    async def test_unused_location_delete(self, guard, places):
        await guard.delete_entity(HierarchyTable.LOCATIONS, places["lobby_a"])

        tree = await guard.get_hierarchy()
        assert tree[0].venues[0].locations == []

    @pytest.mark.asyncio
    async def test_event_delete(self, guard, places):
        event_id = await guard.create_event("Closing Gala", places["north"])

        await guard.delete_entity(HierarchyTable.EVENTS, event_id)

        assert all(p.kind is PlaceKind.LOCATION for p in await guard.list_places())


class TestReads:
    @pytest.mark.asyncio
    async def test_tree_shape(self, guard, places):
        await guard.create_event("Opening Ceremony", places["north"])

        tree = await guard.get_hierarchy()

        north = tree[0]
        assert north.name == "North"
        assert [loc.name for loc in north.locations] == ["Central Depot"]
        assert [v.name for v in north.venues] == ["Main Hall"]
        assert [e.name for e in north.events] == ["Opening Ceremony"]

    @pytest.mark.asyncio
    async def test_tree_region_filter(self, guard, places):
        south = await guard.create_region("South")

        tree = await guard.get_hierarchy(south)

        assert [r.name for r in tree] == ["South"]

    @pytest.mark.asyncio
    async def test_places_tag_events(self, guard, places):
        event_id = await guard.create_event("Opening Ceremony", places["north"])

        by_name = {p.display_name: p for p in await guard.list_places()}

        event = by_name["Opening Ceremony (Event)"]
        assert event.kind is PlaceKind.EVENT
        assert event.id == event_id
        assert event.legacy_id == -event_id
        assert by_name["Lobby A"].legacy_id == places["lobby_a"]

    @pytest.mark.asyncio
    async def test_trips_for_place(self, guard, lifecycle, make_draft, places, database):
        trip_id = await lifecycle.create_trip(make_draft())
        await lifecycle.create_trip(make_draft(origin_id=None, destination_id=None))

        trips = await TripQueryService(database).list_trips_for_place(places["lobby_a"])

        assert [t.id for t in trips] == [trip_id]
        assert trips[0].destination_name == "Lobby A"
        assert trips[0].destination_venue_name == "Main Hall"
