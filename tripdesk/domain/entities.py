"""
Domain entities and value objects.

Patterns used
-------------
- ``StatusTriple`` is the unit of trip history: every distinct change of
  (status, sub_status, breakdown_issue) is recorded exactly once.
- ``Place`` is a tagged union over locations and events so callers never
  have to decode a sign-encoded identifier.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .enums import PlaceKind


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class StatusTriple:
    status: str
    sub_status: str = ""
    breakdown_issue: Optional[str] = None

    @classmethod
    def normalize(
        cls,
        status: str,
        sub_status: Optional[str] = None,
        breakdown_issue: Optional[str] = None,
    ) -> "StatusTriple":
        """Absent sub-status becomes ``""``; blank breakdown text becomes ``None``."""
        return cls(
            status=status,
            sub_status=sub_status or "",
            breakdown_issue=breakdown_issue or None,
        )


@dataclass(frozen=True)
class Place:
    kind: PlaceKind
    id: int
    name: str
    region_id: Optional[int] = None

    @property
    def display_name(self) -> str:
        if self.kind is PlaceKind.EVENT:
            return f"{self.name} (Event)"
        return self.name

    @property
    def legacy_id(self) -> int:
        """Sign-encoded id understood by older consumers (events negated)."""
        return -self.id if self.kind is PlaceKind.EVENT else self.id


# ── Entities ──────────────────────────────────────────────────────────


@dataclass
class TripDraft:
    """Every writable trip field, as supplied on create or full update."""

    route_code: str
    start_time: datetime
    end_time: datetime
    origin_id: Optional[int] = None
    origin_venue_id: Optional[int] = None
    destination_id: Optional[int] = None
    destination_venue_id: Optional[int] = None
    region_id: Optional[int] = None
    vehicle_id: Optional[int] = None
    volunteer_id: Optional[int] = None
    driver_id: Optional[int] = None
    status: Optional[str] = None
    sub_status: Optional[str] = None
    breakdown_issue: Optional[str] = None
    passengers_boarded: int = 0
    wheelchairs_boarded: int = 0
    notes: Optional[str] = None


@dataclass
class TripView:
    """A trip joined with the display names consumers render."""

    id: int
    route_code: str
    start_time: datetime
    end_time: datetime
    status: str
    sub_status: str
    breakdown_issue: Optional[str] = None
    origin_id: Optional[int] = None
    origin_venue_id: Optional[int] = None
    destination_id: Optional[int] = None
    destination_venue_id: Optional[int] = None
    region_id: Optional[int] = None
    vehicle_id: Optional[int] = None
    volunteer_id: Optional[int] = None
    driver_id: Optional[int] = None
    passengers_boarded: int = 0
    wheelchairs_boarded: int = 0
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    origin_name: Optional[str] = None
    destination_name: Optional[str] = None
    origin_venue_name: Optional[str] = None
    destination_venue_name: Optional[str] = None
    volunteer_name: Optional[str] = None
    volunteer_phone: Optional[str] = None
    driver_name: Optional[str] = None
    driver_phone: Optional[str] = None
    vehicle_registration: Optional[str] = None


@dataclass(frozen=True)
class DashboardWindow:
    """Live trips, plus recent ones in a settled status, for the ops dashboard."""

    live_statuses: tuple[str, ...]
    recent_statuses: tuple[str, ...]
    since: datetime


@dataclass
class HistoryEntry:
    id: int
    trip_id: int
    status: str
    sub_status: str
    breakdown_issue: Optional[str]
    passengers_boarded: int
    changed_at: Optional[datetime]

    @property
    def triple(self) -> StatusTriple:
        return StatusTriple(self.status, self.sub_status, self.breakdown_issue)


@dataclass
class TripStatusInfo:
    id: int
    name: str
    passenger_count_required: bool
    sort_order: int


@dataclass
class TripSubStatusInfo:
    id: int
    name: str
    linked_status: str
    sort_order: int


@dataclass
class StatusCatalog:
    statuses: list[TripStatusInfo] = field(default_factory=list)
    sub_statuses: list[TripSubStatusInfo] = field(default_factory=list)

    def status_names(self) -> set[str]:
        return {s.name for s in self.statuses}

    def sub_statuses_for(self, status: str) -> list[TripSubStatusInfo]:
        return [s for s in self.sub_statuses if s.linked_status == status]


# ── Hierarchy read model ──────────────────────────────────────────────


@dataclass
class LocationNode:
    id: int
    name: str
    venue_id: Optional[int]
    region_id: Optional[int]


@dataclass
class EventNode:
    id: int
    name: str
    region_id: int


@dataclass
class VenueNode:
    id: int
    name: str
    region_id: Optional[int]
    locations: list[LocationNode] = field(default_factory=list)


@dataclass
class RegionNode:
    id: int
    name: str
    venues: list[VenueNode] = field(default_factory=list)
    locations: list[LocationNode] = field(default_factory=list)
    events: list[EventNode] = field(default_factory=list)
