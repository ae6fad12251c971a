"""
Seed script -- populates the database with sample data for reviewers.

Run after migrations (``alembic upgrade head`` seeds the status catalog):
    python seed.py

Creates, through the public services so every trip gets its history row:
  - 2 regions with venues, venue-level and region-level locations, 1 event
  - 6 staff profiles and 4 vehicles
  - 5 trips in a mix of statuses, some with status changes applied
"""

import asyncio
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select

from tripdesk.config import settings
from tripdesk.domain.entities import TripDraft
from tripdesk.infrastructure.database import Database
from tripdesk.infrastructure.models import RegionModel
from tripdesk.services.hierarchy import HierarchyIntegrityGuard
from tripdesk.services.lifecycle import TripLifecycleManager
from tripdesk.services.staff import StaffDirectory

HIERARCHY = {
    "North": {
        "venues": {
            "Main Hall": ["Lobby A", "Lobby B", "Gate 3"],
            "Stadium": ["North Stand Drop-off"],
        },
        "locations": ["Central Bus Depot"],
        "events": ["Opening Ceremony"],
    },
    "South": {
        "venues": {"Expo Centre": ["Hall 1 Entrance"]},
        "locations": ["Airport Terminal 2"],
        "events": [],
    },
}

PROFILES = [
    {"name": "Aarav Sharma", "phone": "+91 98200 00001"},
    {"name": "Priya Patel", "phone": "+91 98200 00002"},
    {"name": "Rohan Mehta", "phone": "+91 98200 00003", "is_driver": True},
    {"name": "Sneha Gupta", "phone": "+91 98200 00004"},
    {"name": "Vikram Singh", "phone": "+91 98200 00005", "is_driver": True},
    {"name": "Meera Nair", "phone": "+91 98200 00006"},
]

VEHICLES = [
    {"registration": "MH01AB1234", "type": "Bus", "capacity": 40, "make_model": "Tata Starbus"},
    {"registration": "MH01CD5678", "type": "Bus", "capacity": 32, "make_model": "Ashok Leyland"},
    {"registration": "MH02EF9012", "type": "Private Car", "capacity": 4, "make_model": "Toyota Innova"},
    {"registration": "MH04GH3456", "type": "Ambulance", "capacity": 2, "make_model": "Force Traveller"},
]


async def seed(database: Database):
    async with database.session() as session:
        result = await session.execute(select(func.count()).select_from(RegionModel))
        if (result.scalar() or 0) > 0:
            print("Database already seeded. Skipping.")
            return

    guard = HierarchyIntegrityGuard(database)
    staff = StaffDirectory(database)
    lifecycle = TripLifecycleManager(database)

    # ── Hierarchy ─────────────────────────────────────────────────────
    places: dict[str, int] = {}
    regions: dict[str, int] = {}
    for region_name, layout in HIERARCHY.items():
        region_id = await guard.create_region(region_name)
        regions[region_name] = region_id
        for venue_name, locations in layout["venues"].items():
            venue_id = await guard.create_venue(venue_name, region_id)
            for location_name in locations:
                places[location_name] = await guard.create_location(
                    location_name, region_id, venue_id
                )
        for location_name in layout["locations"]:
            places[location_name] = await guard.create_location(location_name, region_id)
        for event_name in layout["events"]:
            await guard.create_event(event_name, region_id)
    print(f"  Created {len(regions)} regions, {len(places)} locations")

    # ── Staff / fleet ─────────────────────────────────────────────────
    profile_ids = [await staff.create_profile(**p) for p in PROFILES]
    vehicle_ids = [await staff.create_vehicle(**v) for v in VEHICLES]
    print(f"  Created {len(profile_ids)} profiles, {len(vehicle_ids)} vehicles")

    # ── Trips ─────────────────────────────────────────────────────────
    now = datetime.now(timezone.utc).replace(minute=0, second=0, microsecond=0)
    trips = [
        ("N-101", "Central Bus Depot", "Lobby A", "North", 0, 2, 0),
        ("N-102", "Lobby B", "North Stand Drop-off", "North", 1, 4, 1),
        ("N-103", "Gate 3", "Central Bus Depot", "North", 2, None, 2),
        ("S-201", "Airport Terminal 2", "Hall 1 Entrance", "South", 3, 4, 3),
        ("S-202", "Hall 1 Entrance", "Airport Terminal 2", "South", 5, None, None),
    ]
    trip_ids = []
    for i, (code, origin, destination, region, volunteer, driver, vehicle) in enumerate(trips):
        trip_ids.append(
            await lifecycle.create_trip(
                TripDraft(
                    route_code=code,
                    origin_id=places[origin],
                    destination_id=places[destination],
                    region_id=regions[region],
                    start_time=now + timedelta(hours=i),
                    end_time=now + timedelta(hours=i + 1),
                    volunteer_id=profile_ids[volunteer],
                    driver_id=profile_ids[driver] if driver is not None else None,
                    vehicle_id=vehicle_ids[vehicle] if vehicle is not None else None,
                    status="Planned",
                    sub_status="Scheduled",
                )
            )
        )

    await lifecycle.apply_status_change(trip_ids[0], "Active", "Enroute")
    await lifecycle.apply_status_change(trip_ids[1], "Active", "At pit stop")
    await lifecycle.apply_status_change(
        trip_ids[3], "Breakdown", "", "Flat tyre near toll plaza"
    )
    await lifecycle.apply_status_change(
        trip_ids[4], "Completed", "Parked", passengers_boarded=28
    )
    print(f"  Created {len(trip_ids)} trips")
    print("\nSeed complete!")


async def main():
    print("Seeding database...")
    database = Database.from_settings(settings)
    try:
        await seed(database)
    finally:
        await database.dispose()


if __name__ == "__main__":
    asyncio.run(main())
