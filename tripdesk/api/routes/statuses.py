"""
Status taxonomy endpoints
=========================

GET    /api/v1/statuses                        -- full catalog
POST   /api/v1/statuses                        -- create a status
PUT    /api/v1/statuses/{status_id}            -- update; renames cascade
DELETE /api/v1/statuses/{status_id}            -- delete; orphans sub-statuses
POST   /api/v1/statuses/sub-statuses           -- create a sub-status
PUT    /api/v1/statuses/sub-statuses/{id}      -- update (no cascade)
DELETE /api/v1/statuses/sub-statuses/{id}      -- delete
"""

from fastapi import APIRouter, Depends, Request

from tripdesk.api.dependencies import editor_of, get_registry
from tripdesk.api.middleware import RATE_LIMIT, limiter
from tripdesk.api.schemas import (
    CatalogResponse,
    MutationResult,
    StatusWriteRequest,
    SubStatusWriteRequest,
)
from tripdesk.domain.access import Caller
from tripdesk.domain.enums import AppModule
from tripdesk.services.taxonomy import StatusTaxonomyRegistry

router = APIRouter(prefix="/statuses", tags=["statuses"])

settings_editor = editor_of(AppModule.SETTINGS)


@router.get("", response_model=CatalogResponse, summary="Status catalog")
@limiter.limit(RATE_LIMIT)
async def get_catalog(
    request: Request,
    registry: StatusTaxonomyRegistry = Depends(get_registry),
):
    return CatalogResponse.model_validate(await registry.get_catalog())


@router.post("", status_code=201, response_model=MutationResult, summary="Create a status")
@limiter.limit(RATE_LIMIT)
async def create_status(
    request: Request,
    body: StatusWriteRequest,
    _: Caller = Depends(settings_editor),
    registry: StatusTaxonomyRegistry = Depends(get_registry),
):
    status_id = await registry.create_status(
        body.name, body.passenger_count_required, body.sort_order
    )
    return MutationResult(id=status_id)


@router.put("/{status_id}", response_model=MutationResult, summary="Update a status")
@limiter.limit(RATE_LIMIT)
async def update_status(
    request: Request,
    status_id: int,
    body: StatusWriteRequest,
    _: Caller = Depends(settings_editor),
    registry: StatusTaxonomyRegistry = Depends(get_registry),
):
    await registry.update_status(
        status_id, body.name, body.passenger_count_required, body.sort_order
    )
    return MutationResult(id=status_id)


@router.delete("/{status_id}", response_model=MutationResult, summary="Delete a status")
@limiter.limit(RATE_LIMIT)
async def delete_status(
    request: Request,
    status_id: int,
    _: Caller = Depends(settings_editor),
    registry: StatusTaxonomyRegistry = Depends(get_registry),
):
    await registry.delete_status(status_id)
    return MutationResult(id=status_id)


@router.post(
    "/sub-statuses", status_code=201, response_model=MutationResult,
    summary="Create a sub-status",
)
@limiter.limit(RATE_LIMIT)
async def create_sub_status(
    request: Request,
    body: SubStatusWriteRequest,
    _: Caller = Depends(settings_editor),
    registry: StatusTaxonomyRegistry = Depends(get_registry),
):
    sub_status_id = await registry.create_sub_status(
        body.name, body.linked_status, body.sort_order
    )
    return MutationResult(id=sub_status_id)


@router.put(
    "/sub-statuses/{sub_status_id}", response_model=MutationResult,
    summary="Update a sub-status",
)
@limiter.limit(RATE_LIMIT)
async def update_sub_status(
    request: Request,
    sub_status_id: int,
    body: SubStatusWriteRequest,
    _: Caller = Depends(settings_editor),
    registry: StatusTaxonomyRegistry = Depends(get_registry),
):
    await registry.update_sub_status(
        sub_status_id, body.name, body.linked_status, body.sort_order
    )
    return MutationResult(id=sub_status_id)


@router.delete(
    "/sub-statuses/{sub_status_id}", response_model=MutationResult,
    summary="Delete a sub-status",
)
@limiter.limit(RATE_LIMIT)
async def delete_sub_status(
    request: Request,
    sub_status_id: int,
    _: Caller = Depends(settings_editor),
    registry: StatusTaxonomyRegistry = Depends(get_registry),
):
    await registry.delete_sub_status(sub_status_id)
    return MutationResult(id=sub_status_id)
