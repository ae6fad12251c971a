"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from tripdesk.domain.enums import PlaceKind


# ── Requests ──────────────────────────────────────────────────────────


class TripWriteRequest(BaseModel):
    route_code: str = Field(..., min_length=1, max_length=40)
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
    passengers_boarded: int = Field(0, ge=0)
    wheelchairs_boarded: int = Field(0, ge=0)
    notes: Optional[str] = None


class StatusChangeRequest(BaseModel):
    status: str = Field(..., min_length=1)
    sub_status: Optional[str] = None
    breakdown_issue: Optional[str] = None
    passengers_boarded: Optional[int] = Field(None, ge=0)


class TripDetailsRequest(BaseModel):
    volunteer_id: Optional[int] = None
    driver_id: Optional[int] = None
    vehicle_registration: str = ""
    passengers_boarded: int = Field(0, ge=0)
    wheelchairs_boarded: int = Field(0, ge=0)
    notes: Optional[str] = None


class StatusWriteRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=80)
    passenger_count_required: bool = False
    sort_order: int = 0


class SubStatusWriteRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=80)
    linked_status: str = ""
    sort_order: int = 0


class NameRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)


class VenueCreateRequest(NameRequest):
    region_id: int


class LocationCreateRequest(NameRequest):
    region_id: int
    venue_id: Optional[int] = None


class EventCreateRequest(NameRequest):
    region_id: int


class RoleCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=80)
    description: Optional[str] = None


class PermissionEntry(BaseModel):
    module_code: str
    can_view: bool = False
    can_edit: bool = False


# ── Responses ─────────────────────────────────────────────────────────


class MutationResult(BaseModel):
    success: bool = True
    id: Optional[int] = None
    error: Optional[str] = None


class StatusChangeResult(MutationResult):
    history_written: bool = False


class TripResponse(BaseModel):
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

    model_config = {"from_attributes": True}


class TripListResponse(BaseModel):
    total: int
    trips: list[TripResponse] = []


class HistoryEntryResponse(BaseModel):
    id: int
    trip_id: int
    status: str
    sub_status: str
    breakdown_issue: Optional[str] = None
    passengers_boarded: int = 0
    changed_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class TripStatusResponse(BaseModel):
    id: int
    name: str
    passenger_count_required: bool
    sort_order: int

    model_config = {"from_attributes": True}


class TripSubStatusResponse(BaseModel):
    id: int
    name: str
    linked_status: str
    sort_order: int

    model_config = {"from_attributes": True}


class CatalogResponse(BaseModel):
    statuses: list[TripStatusResponse] = []
    sub_statuses: list[TripSubStatusResponse] = []

    model_config = {"from_attributes": True}


class LocationResponse(BaseModel):
    id: int
    name: str
    venue_id: Optional[int] = None
    region_id: Optional[int] = None

    model_config = {"from_attributes": True}


class EventResponse(BaseModel):
    id: int
    name: str
    region_id: int

    model_config = {"from_attributes": True}


class VenueResponse(BaseModel):
    id: int
    name: str
    region_id: Optional[int] = None
    locations: list[LocationResponse] = []

    model_config = {"from_attributes": True}


class RegionResponse(BaseModel):
    id: int
    name: str
    venues: list[VenueResponse] = []
    locations: list[LocationResponse] = []
    events: list[EventResponse] = []

    model_config = {"from_attributes": True}


class PlaceResponse(BaseModel):
    kind: PlaceKind
    id: int
    name: str
    display_name: str
    legacy_id: int
    region_id: Optional[int] = None

    model_config = {"from_attributes": True}


class RoleResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    is_system_role: bool

    model_config = {"from_attributes": True}


class HealthResponse(BaseModel):
    status: str = "ok"
