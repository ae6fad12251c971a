"""
Roles and the module capability matrix.

``RoleService`` is the SQL-backed ``PermissionResolver``: a role gets
``{view: False, edit: False}`` for every module it has no explicit row for.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from tripdesk.domain.access import Capability, PermissionSet, default_permissions
from tripdesk.domain.errors import Conflict, NotFound
from tripdesk.infrastructure.database import Database
from tripdesk.infrastructure.models import RoleModel
from tripdesk.infrastructure.repositories import RoleRepository

logger = logging.getLogger(__name__)


class RoleService:
    def __init__(self, database: Database):
        self.database = database

    async def permissions_for(self, role_id: int) -> PermissionSet:
        async with self.database.session() as session:
            rows = await RoleRepository(session).permission_rows(role_id)
        permissions = default_permissions()
        for row in rows:
            permissions[row.module_code] = Capability(
                view=bool(row.can_view), edit=bool(row.can_edit)
            )
        return permissions

    async def list_roles(self) -> list[RoleModel]:
        async with self.database.session() as session:
            return await RoleRepository(session).list_roles()

    async def create_role(
        self, name: str, description: Optional[str] = None, is_system_role: bool = False
    ) -> int:
        # Duplicate names surface as Conflict via the unique constraint
        async with self.database.transaction() as session:
            role = await RoleRepository(session).create(
                RoleModel(name=name, description=description, is_system_role=is_system_role)
            )
            return role.id

    async def delete_role(self, role_id: int) -> None:
        async with self.database.transaction() as session:
            repo = RoleRepository(session)
            role = await repo.get_by_id(role_id)
            if role is None:
                raise NotFound(f"Role {role_id} not found")
            if role.is_system_role:
                raise Conflict("Cannot delete system roles")
            await repo.delete(role_id)

    async def update_permissions(
        self, role_id: int, permissions: Iterable[tuple[str, bool, bool]]
    ) -> None:
        """Upsert (module_code, can_view, can_edit) rows in one transaction."""
        async with self.database.transaction() as session:
            repo = RoleRepository(session)
            if await repo.get_by_id(role_id) is None:
                raise NotFound(f"Role {role_id} not found")
            for module_code, can_view, can_edit in permissions:
                await repo.upsert_permission(role_id, module_code, can_view, can_edit)
        logger.info("Updated permissions for role %d", role_id)
