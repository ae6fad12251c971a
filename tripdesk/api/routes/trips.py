"""
Trip endpoints
==============

POST   /api/v1/trips                     -- create a trip (history row #1)
GET    /api/v1/trips                     -- search / list, region scoped (?dashboard=true)
GET    /api/v1/trips/count               -- count matching trips
GET    /api/v1/trips/by-place/{place_id} -- trips touching a location/venue
GET    /api/v1/trips/{trip_id}           -- one trip with display names
PUT    /api/v1/trips/{trip_id}           -- full update
PATCH  /api/v1/trips/{trip_id}/status    -- apply a status change
PATCH  /api/v1/trips/{trip_id}/details   -- crew / vehicle / headcount
DELETE /api/v1/trips/{trip_id}           -- delete trip and its history
GET    /api/v1/trips/{trip_id}/history   -- status history, oldest first
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from tripdesk.api.dependencies import (
    editor_of,
    get_caller,
    get_lifecycle,
    get_trip_queries,
)
from tripdesk.api.middleware import RATE_LIMIT, limiter
from tripdesk.api.schemas import (
    HistoryEntryResponse,
    MutationResult,
    StatusChangeRequest,
    StatusChangeResult,
    TripDetailsRequest,
    TripListResponse,
    TripResponse,
    TripWriteRequest,
)
from tripdesk.domain.access import Caller
from tripdesk.domain.entities import TripDraft
from tripdesk.domain.enums import AppModule
from tripdesk.domain.errors import NotFound
from tripdesk.services.lifecycle import TripLifecycleManager
from tripdesk.services.trips import TripQueryService

router = APIRouter(prefix="/trips", tags=["trips"])

trip_editor = editor_of(AppModule.TRIPS)


def _region_filter(caller: Caller, requested: Optional[int]) -> Optional[int]:
    # A region-bound caller only ever sees its own region
    return caller.scoped_region_id or requested


@router.post("", status_code=201, response_model=MutationResult, summary="Create a trip")
@limiter.limit(RATE_LIMIT)
async def create_trip(
    request: Request,
    body: TripWriteRequest,
    _: Caller = Depends(trip_editor),
    lifecycle: TripLifecycleManager = Depends(get_lifecycle),
):
    trip_id = await lifecycle.create_trip(TripDraft(**body.model_dump()))
    return MutationResult(id=trip_id)


@router.get("", response_model=TripListResponse, summary="Search trips")
@limiter.limit(RATE_LIMIT)
async def list_trips(
    request: Request,
    search: Optional[str] = None,
    region_id: Optional[int] = None,
    limit: Optional[int] = Query(None, ge=1, le=500),
    offset: int = Query(0, ge=0),
    dashboard: bool = False,
    caller: Caller = Depends(get_caller),
    queries: TripQueryService = Depends(get_trip_queries),
):
    region_id = _region_filter(caller, region_id)
    trips = await queries.list_trips(search, region_id, limit, offset, dashboard)
    total = await queries.count_trips(search, region_id, dashboard)
    return TripListResponse(
        total=total, trips=[TripResponse.model_validate(t) for t in trips]
    )


@router.get("/count", response_model=int, summary="Count matching trips")
@limiter.limit(RATE_LIMIT)
async def count_trips(
    request: Request,
    search: Optional[str] = None,
    region_id: Optional[int] = None,
    dashboard: bool = False,
    caller: Caller = Depends(get_caller),
    queries: TripQueryService = Depends(get_trip_queries),
):
    return await queries.count_trips(
        search, _region_filter(caller, region_id), dashboard
    )


@router.get(
    "/by-place/{place_id}",
    response_model=list[TripResponse],
    summary="Trips whose origin or destination is the given location or venue",
)
@limiter.limit(RATE_LIMIT)
async def trips_for_place(
    request: Request,
    place_id: int,
    queries: TripQueryService = Depends(get_trip_queries),
):
    return [TripResponse.model_validate(t) for t in await queries.list_trips_for_place(place_id)]


@router.get("/{trip_id}", response_model=TripResponse, summary="Get a trip")
@limiter.limit(RATE_LIMIT)
async def get_trip(
    request: Request,
    trip_id: int,
    queries: TripQueryService = Depends(get_trip_queries),
):
    trip = await queries.get_trip(trip_id)
    if not trip:
        raise NotFound("Trip not found")
    return TripResponse.model_validate(trip)


@router.put("/{trip_id}", response_model=StatusChangeResult, summary="Update a trip")
@limiter.limit(RATE_LIMIT)
async def update_trip(
    request: Request,
    trip_id: int,
    body: TripWriteRequest,
    _: Caller = Depends(trip_editor),
    lifecycle: TripLifecycleManager = Depends(get_lifecycle),
):
    written = await lifecycle.update_trip(trip_id, TripDraft(**body.model_dump()))
    return StatusChangeResult(id=trip_id, history_written=written)


@router.patch(
    "/{trip_id}/status",
    response_model=StatusChangeResult,
    summary="Apply a status change",
    description=(
        "Sets the (status, sub_status, breakdown_issue) triple. A history row "
        "is appended only when the triple actually changes."
    ),
)
@limiter.limit(RATE_LIMIT)
async def change_status(
    request: Request,
    trip_id: int,
    body: StatusChangeRequest,
    _: Caller = Depends(trip_editor),
    lifecycle: TripLifecycleManager = Depends(get_lifecycle),
):
    written = await lifecycle.apply_status_change(
        trip_id,
        body.status,
        body.sub_status,
        body.breakdown_issue,
        body.passengers_boarded,
    )
    return StatusChangeResult(id=trip_id, history_written=written)


@router.patch("/{trip_id}/details", response_model=MutationResult, summary="Quick crew update")
@limiter.limit(RATE_LIMIT)
async def update_details(
    request: Request,
    trip_id: int,
    body: TripDetailsRequest,
    _: Caller = Depends(trip_editor),
    lifecycle: TripLifecycleManager = Depends(get_lifecycle),
):
    await lifecycle.update_trip_details(trip_id, **body.model_dump())
    return MutationResult(id=trip_id)


@router.delete("/{trip_id}", response_model=MutationResult, summary="Delete a trip")
@limiter.limit(RATE_LIMIT)
async def delete_trip(
    request: Request,
    trip_id: int,
    _: Caller = Depends(trip_editor),
    lifecycle: TripLifecycleManager = Depends(get_lifecycle),
):
    await lifecycle.delete_trip(trip_id)
    return MutationResult(id=trip_id)


@router.get(
    "/{trip_id}/history",
    response_model=list[HistoryEntryResponse],
    summary="Status history, oldest first",
)
@limiter.limit(RATE_LIMIT)
async def trip_history(
    request: Request,
    trip_id: int,
    lifecycle: TripLifecycleManager = Depends(get_lifecycle),
):
    return [HistoryEntryResponse.model_validate(h) for h in await lifecycle.get_history(trip_id)]
