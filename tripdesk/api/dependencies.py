"""FastAPI dependency injection helpers."""

from typing import Optional

from fastapi import Depends, Header, Request

from tripdesk.domain.access import Caller, require_edit
from tripdesk.domain.enums import AppModule
from tripdesk.infrastructure.database import Database
from tripdesk.services.hierarchy import HierarchyIntegrityGuard
from tripdesk.services.lifecycle import TripLifecycleManager
from tripdesk.services.roles import RoleService
from tripdesk.services.taxonomy import StatusTaxonomyRegistry
from tripdesk.services.trips import TripQueryService


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_lifecycle(db: Database = Depends(get_database)) -> TripLifecycleManager:
    return TripLifecycleManager(db)


def get_trip_queries(db: Database = Depends(get_database)) -> TripQueryService:
    return TripQueryService(db)


def get_hierarchy_guard(db: Database = Depends(get_database)) -> HierarchyIntegrityGuard:
    return HierarchyIntegrityGuard(db)


def get_role_service(db: Database = Depends(get_database)) -> RoleService:
    return RoleService(db)


def get_registry(
    request: Request, db: Database = Depends(get_database)
) -> StatusTaxonomyRegistry:
    return StatusTaxonomyRegistry(db, request.app.state.catalog_cache)


def get_caller(
    x_caller_role: str = Header("VOLUNTEER"),
    x_caller_role_id: Optional[int] = Header(None),
    x_caller_region_id: Optional[int] = Header(None),
) -> Caller:
    """Identity as asserted by the upstream gateway."""
    return Caller(
        role=x_caller_role, role_id=x_caller_role_id, region_id=x_caller_region_id
    )


def editor_of(module: AppModule):
    """Dependency that raises ``Unauthorized`` unless the caller may edit *module*."""

    async def _check(
        caller: Caller = Depends(get_caller),
        roles: RoleService = Depends(get_role_service),
    ) -> Caller:
        await require_edit(caller, roles, module)
        return caller

    return _check
