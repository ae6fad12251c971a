"""
Hierarchy endpoints
===================

GET    /api/v1/hierarchy                       -- combined Region tree
GET    /api/v1/hierarchy/places                -- locations + events (tagged)
POST   /api/v1/hierarchy/regions               -- create region
POST   /api/v1/hierarchy/venues                -- create venue
POST   /api/v1/hierarchy/locations             -- create location
POST   /api/v1/hierarchy/events                -- create event
PATCH  /api/v1/hierarchy/{table}/{entity_id}   -- rename
DELETE /api/v1/hierarchy/{table}/{entity_id}   -- guarded delete
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request

from tripdesk.api.dependencies import editor_of, get_caller, get_hierarchy_guard
from tripdesk.api.middleware import RATE_LIMIT, limiter
from tripdesk.api.schemas import (
    EventCreateRequest,
    LocationCreateRequest,
    MutationResult,
    NameRequest,
    PlaceResponse,
    RegionResponse,
    VenueCreateRequest,
)
from tripdesk.domain.access import Caller
from tripdesk.domain.enums import AppModule, HierarchyTable
from tripdesk.services.hierarchy import HierarchyIntegrityGuard

router = APIRouter(prefix="/hierarchy", tags=["hierarchy"])

settings_editor = editor_of(AppModule.SETTINGS)


@router.get("", response_model=list[RegionResponse], summary="Region tree")
@limiter.limit(RATE_LIMIT)
async def get_hierarchy(
    request: Request,
    region_id: Optional[int] = None,
    caller: Caller = Depends(get_caller),
    guard: HierarchyIntegrityGuard = Depends(get_hierarchy_guard),
):
    tree = await guard.get_hierarchy(caller.scoped_region_id or region_id)
    return [RegionResponse.model_validate(r) for r in tree]


@router.get("/places", response_model=list[PlaceResponse], summary="Locations and events")
@limiter.limit(RATE_LIMIT)
async def list_places(
    request: Request,
    region_id: Optional[int] = None,
    guard: HierarchyIntegrityGuard = Depends(get_hierarchy_guard),
):
    return [PlaceResponse.model_validate(p) for p in await guard.list_places(region_id)]


@router.post("/regions", status_code=201, response_model=MutationResult)
@limiter.limit(RATE_LIMIT)
async def create_region(
    request: Request,
    body: NameRequest,
    _: Caller = Depends(settings_editor),
    guard: HierarchyIntegrityGuard = Depends(get_hierarchy_guard),
):
    return MutationResult(id=await guard.create_region(body.name))


@router.post("/venues", status_code=201, response_model=MutationResult)
@limiter.limit(RATE_LIMIT)
async def create_venue(
    request: Request,
    body: VenueCreateRequest,
    _: Caller = Depends(settings_editor),
    guard: HierarchyIntegrityGuard = Depends(get_hierarchy_guard),
):
    return MutationResult(id=await guard.create_venue(body.name, body.region_id))


@router.post("/locations", status_code=201, response_model=MutationResult)
@limiter.limit(RATE_LIMIT)
async def create_location(
    request: Request,
    body: LocationCreateRequest,
    _: Caller = Depends(settings_editor),
    guard: HierarchyIntegrityGuard = Depends(get_hierarchy_guard),
):
    location_id = await guard.create_location(body.name, body.region_id, body.venue_id)
    return MutationResult(id=location_id)


@router.post("/events", status_code=201, response_model=MutationResult)
@limiter.limit(RATE_LIMIT)
async def create_event(
    request: Request,
    body: EventCreateRequest,
    _: Caller = Depends(settings_editor),
    guard: HierarchyIntegrityGuard = Depends(get_hierarchy_guard),
):
    return MutationResult(id=await guard.create_event(body.name, body.region_id))


@router.patch("/{table}/{entity_id}", response_model=MutationResult, summary="Rename")
@limiter.limit(RATE_LIMIT)
async def rename_entity(
    request: Request,
    table: HierarchyTable,
    entity_id: int,
    body: NameRequest,
    _: Caller = Depends(settings_editor),
    guard: HierarchyIntegrityGuard = Depends(get_hierarchy_guard),
):
    await guard.rename_entity(table, entity_id, body.name)
    return MutationResult(id=entity_id)


@router.delete(
    "/{table}/{entity_id}",
    response_model=MutationResult,
    summary="Delete a region, venue, location or event",
    description="Refused with 409 while any trip still references the entity.",
)
@limiter.limit(RATE_LIMIT)
async def delete_entity(
    request: Request,
    table: HierarchyTable,
    entity_id: int,
    _: Caller = Depends(settings_editor),
    guard: HierarchyIntegrityGuard = Depends(get_hierarchy_guard),
):
    await guard.delete_entity(table, entity_id)
    return MutationResult(id=entity_id)
