"""
Caller identity and capability checks.

The identity provider and permission store are external collaborators; this
module only defines what they hand us and how a capability is enforced.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from .enums import SUPER_ADMIN_ROLE, AppModule
from .errors import Unauthorized


@dataclass(frozen=True)
class Caller:
    role: str
    role_id: Optional[int] = None
    region_id: Optional[int] = None

    @property
    def is_super_admin(self) -> bool:
        return self.role == SUPER_ADMIN_ROLE

    @property
    def scoped_region_id(self) -> Optional[int]:
        """Region filter applied to this caller's reads (None = all)."""
        return None if self.is_super_admin else self.region_id


@dataclass(frozen=True)
class Capability:
    view: bool = False
    edit: bool = False


PermissionSet = dict[str, Capability]


def default_permissions() -> PermissionSet:
    return {module.value: Capability() for module in AppModule}


class PermissionResolver(Protocol):
    async def permissions_for(self, role_id: int) -> PermissionSet: ...


async def require_edit(
    caller: Caller, resolver: PermissionResolver, module: AppModule
) -> None:
    """Raise ``Unauthorized`` unless *caller* may edit *module*."""
    if caller.is_super_admin:
        return
    if caller.role_id is None:
        raise Unauthorized(
            f"Unauthorized. No role assigned to edit {module.value}."
        )
    permissions = await resolver.permissions_for(caller.role_id)
    if not permissions.get(module.value, Capability()).edit:
        raise Unauthorized(
            f"Unauthorized. You do not have permission to edit {module.value}."
        )
