"""
Shared test fixtures.

Uses a file-backed SQLite database (via aiosqlite) per test so tests run
without Docker / PostgreSQL / Redis.  The schema comes straight from the
production models; the status catalog is seeded with a small subset of the
migration's defaults.
"""

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from tripdesk.api.app import create_app
from tripdesk.domain.entities import TripDraft
from tripdesk.infrastructure.database import Database
from tripdesk.infrastructure.models import TripStatusModel, TripSubStatusModel
from tripdesk.services.hierarchy import HierarchyIntegrityGuard
from tripdesk.services.lifecycle import TripLifecycleManager
from tripdesk.services.staff import StaffDirectory
from tripdesk.services.taxonomy import StatusTaxonomyRegistry

START = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def database(tmp_path) -> AsyncGenerator[Database, None]:
    """Create tables and a seeded status catalog, yield the store, then dispose."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await db.create_all()
    async with db.transaction() as session:
        session.add_all(
            [
                TripStatusModel(name="Planned", sort_order=1),
                TripStatusModel(name="Active", sort_order=2),
                TripStatusModel(name="Breakdown", sort_order=3),
                TripStatusModel(
                    name="Completed", passenger_count_required=True, sort_order=4
                ),
                TripSubStatusModel(name="Scheduled", linked_status="Planned", sort_order=10),
                TripSubStatusModel(name="Enroute", linked_status="Active", sort_order=20),
            ]
        )

    yield db

    await db.dispose()


@pytest.fixture
def lifecycle(database) -> TripLifecycleManager:
    return TripLifecycleManager(database)


@pytest.fixture
def registry(database) -> StatusTaxonomyRegistry:
    return StatusTaxonomyRegistry(database)


@pytest.fixture
def guard(database) -> HierarchyIntegrityGuard:
    return HierarchyIntegrityGuard(database)


@pytest.fixture
def staff(database) -> StaffDirectory:
    return StaffDirectory(database)


@pytest_asyncio.fixture
async def places(guard) -> dict[str, int]:
    """North region: Main Hall venue with Lobby A, plus a region-level depot."""
    north = await guard.create_region("North")
    main_hall = await guard.create_venue("Main Hall", north)
    lobby_a = await guard.create_location("Lobby A", north, main_hall)
    depot = await guard.create_location("Central Depot", north)
    return {"north": north, "main_hall": main_hall, "lobby_a": lobby_a, "depot": depot}


@pytest.fixture
def make_draft(places):
    def _make(**overrides) -> TripDraft:
        fields = {
            "route_code": "R-1",
            "start_time": START,
            "end_time": START + timedelta(hours=1),
            "origin_id": places["depot"],
            "destination_id": places["lobby_a"],
            "region_id": places["north"],
        }
        fields.update(overrides)
        return TripDraft(**fields)

    return _make


@pytest_asyncio.fixture
async def client(database) -> AsyncGenerator[AsyncClient, None]:
    app = create_app(database=database)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
