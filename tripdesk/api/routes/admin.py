"""
Admin endpoints
===============

GET    /api/v1/admin/health                      -- simple health check
GET    /api/v1/admin/roles                       -- list roles
POST   /api/v1/admin/roles                       -- create role
DELETE /api/v1/admin/roles/{role_id}             -- delete (non-system) role
GET    /api/v1/admin/roles/{role_id}/permissions -- capability matrix
PUT    /api/v1/admin/roles/{role_id}/permissions -- upsert capability rows
"""

from fastapi import APIRouter, Depends, Request

from tripdesk.api.dependencies import editor_of, get_role_service
from tripdesk.api.middleware import RATE_LIMIT, limiter
from tripdesk.api.schemas import (
    HealthResponse,
    MutationResult,
    PermissionEntry,
    RoleCreateRequest,
    RoleResponse,
)
from tripdesk.domain.access import Caller
from tripdesk.domain.enums import AppModule
from tripdesk.services.roles import RoleService

router = APIRouter(prefix="/admin", tags=["admin"])

roles_editor = editor_of(AppModule.ROLES)


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()


@router.get("/roles", response_model=list[RoleResponse], summary="List roles")
@limiter.limit(RATE_LIMIT)
async def list_roles(request: Request, roles: RoleService = Depends(get_role_service)):
    return [RoleResponse.model_validate(r) for r in await roles.list_roles()]


@router.post("/roles", status_code=201, response_model=MutationResult)
@limiter.limit(RATE_LIMIT)
async def create_role(
    request: Request,
    body: RoleCreateRequest,
    _: Caller = Depends(roles_editor),
    roles: RoleService = Depends(get_role_service),
):
    return MutationResult(id=await roles.create_role(body.name, body.description))


@router.delete("/roles/{role_id}", response_model=MutationResult)
@limiter.limit(RATE_LIMIT)
async def delete_role(
    request: Request,
    role_id: int,
    _: Caller = Depends(roles_editor),
    roles: RoleService = Depends(get_role_service),
):
    await roles.delete_role(role_id)
    return MutationResult(id=role_id)


@router.get("/roles/{role_id}/permissions", response_model=list[PermissionEntry])
@limiter.limit(RATE_LIMIT)
async def get_permissions(
    request: Request,
    role_id: int,
    roles: RoleService = Depends(get_role_service),
):
    permissions = await roles.permissions_for(role_id)
    return [
        PermissionEntry(module_code=code, can_view=cap.view, can_edit=cap.edit)
        for code, cap in sorted(permissions.items())
    ]


@router.put("/roles/{role_id}/permissions", response_model=MutationResult)
@limiter.limit(RATE_LIMIT)
async def update_permissions(
    request: Request,
    role_id: int,
    body: list[PermissionEntry],
    _: Caller = Depends(roles_editor),
    roles: RoleService = Depends(get_role_service),
):
    await roles.update_permissions(
        role_id, [(p.module_code, p.can_view, p.can_edit) for p in body]
    )
    return MutationResult(id=role_id)
