"""
Status Taxonomy Registry
========================

CRUD over trip statuses and sub-statuses.

Rename cascade
--------------
Trips and sub-statuses refer to a status by *name*.  Renaming a status
therefore updates three tables -- ``trip_statuses``, ``trip_sub_statuses``
(``linked_status``) and ``trips`` (``status``) -- inside one transaction, so
no reader ever sees the catalog renamed while trips still carry the old
name.  Deleting a status orphans its sub-statuses (``linked_status = ""``)
instead of deleting them.  Sub-status renames never cascade: no trip column
is keyed on a sub-status row.
"""

from __future__ import annotations

import logging
from typing import Optional

from tripdesk.domain.entities import (
    StatusCatalog,
    TripStatusInfo,
    TripSubStatusInfo,
)
from tripdesk.domain.errors import Conflict, InvalidState, NotFound
from tripdesk.infrastructure.cache import CatalogCache
from tripdesk.infrastructure.database import Database
from tripdesk.infrastructure.models import TripStatusModel, TripSubStatusModel
from tripdesk.infrastructure.repositories import TaxonomyRepository, TripRepository

logger = logging.getLogger(__name__)


class StatusTaxonomyRegistry:
    def __init__(self, database: Database, cache: Optional[CatalogCache] = None):
        self.database = database
        self.cache = cache

    # ── Reads ─────────────────────────────────────────────────────────

    async def get_catalog(self) -> StatusCatalog:
        generation = None
        if self.cache is not None:
            cached = await self.cache.get()
            if cached is not None:
                return cached
            # Captured before the database read; a mutation committed after
            # this point bumps the generation and orphans our fill.
            generation = await self.cache.generation()

        async with self.database.session() as session:
            repo = TaxonomyRepository(session)
            catalog = StatusCatalog(
                statuses=[
                    TripStatusInfo(
                        id=s.id,
                        name=s.name,
                        passenger_count_required=bool(s.passenger_count_required),
                        sort_order=s.sort_order,
                    )
                    for s in await repo.list_statuses()
                ],
                sub_statuses=[
                    TripSubStatusInfo(
                        id=s.id,
                        name=s.name,
                        linked_status=s.linked_status,
                        sort_order=s.sort_order,
                    )
                    for s in await repo.list_sub_statuses()
                ],
            )

        if generation is not None:
            await self.cache.set(catalog, generation)
        return catalog

    async def list_statuses(self) -> list[TripStatusInfo]:
        return (await self.get_catalog()).statuses

    async def list_sub_statuses(self) -> list[TripSubStatusInfo]:
        return (await self.get_catalog()).sub_statuses

    # ── Statuses ──────────────────────────────────────────────────────

    async def create_status(
        self, name: str, passenger_count_required: bool = False, sort_order: int = 0
    ) -> int:
        async with self.database.transaction() as session:
            repo = TaxonomyRepository(session)
            if await repo.get_status_by_name(name):
                raise Conflict(f"Status '{name}' already exists")
            status = await repo.add(
                TripStatusModel(
                    name=name,
                    passenger_count_required=passenger_count_required,
                    sort_order=sort_order,
                )
            )
            status_id = status.id

        await self._invalidate()
        logger.info("Created trip status %r (id=%d)", name, status_id)
        return status_id

    async def update_status(
        self,
        status_id: int,
        name: str,
        passenger_count_required: bool = False,
        sort_order: int = 0,
    ) -> None:
        """Update a status; a name change cascades to sub-statuses and trips."""
        async with self.database.transaction() as session:
            repo = TaxonomyRepository(session)
            status = await repo.get_status(status_id)
            if status is None:
                raise NotFound(f"Status {status_id} not found")

            old_name = status.name
            if name != old_name:
                clash = await repo.get_status_by_name(name)
                if clash is not None and clash.id != status_id:
                    raise Conflict(f"Status '{name}' already exists")

            status.name = name
            status.passenger_count_required = passenger_count_required
            status.sort_order = sort_order
            await session.flush()

            if name != old_name:
                relinked = await repo.relink_sub_statuses(old_name, name)
                retagged = await TripRepository(session).rename_status(old_name, name)
                logger.info(
                    "Renamed status %r -> %r (%d sub-statuses, %d trips)",
                    old_name, name, relinked, retagged,
                )

        await self._invalidate()

    async def rename_status(self, status_id: int, new_name: str) -> None:
        """Rename only, keeping the other attributes."""
        async with self.database.session() as session:
            status = await TaxonomyRepository(session).get_status(status_id)
            if status is None:
                raise NotFound(f"Status {status_id} not found")
            passenger_count_required = bool(status.passenger_count_required)
            sort_order = status.sort_order
        await self.update_status(
            status_id, new_name, passenger_count_required, sort_order
        )

    async def delete_status(self, status_id: int) -> None:
        async with self.database.transaction() as session:
            repo = TaxonomyRepository(session)
            status = await repo.get_status(status_id)
            if status is None:
                raise NotFound(f"Status {status_id} not found")
            name = status.name
            await repo.delete_status(status_id)
            orphaned = await repo.relink_sub_statuses(name, "")

        await self._invalidate()
        logger.info("Deleted status %r, orphaned %d sub-statuses", name, orphaned)

    # ── Sub-statuses ──────────────────────────────────────────────────

    async def create_sub_status(
        self, name: str, linked_status: str = "", sort_order: int = 0
    ) -> int:
        async with self.database.transaction() as session:
            repo = TaxonomyRepository(session)
            if await repo.get_sub_status_by_name(name):
                raise Conflict("Sub-status name already exists")
            await self._check_linked_status(repo, linked_status)
            sub_status = await repo.add(
                TripSubStatusModel(
                    name=name, linked_status=linked_status, sort_order=sort_order
                )
            )
            sub_status_id = sub_status.id

        await self._invalidate()
        return sub_status_id

    async def update_sub_status(
        self,
        sub_status_id: int,
        name: str,
        linked_status: str = "",
        sort_order: int = 0,
    ) -> None:
        async with self.database.transaction() as session:
            repo = TaxonomyRepository(session)
            sub_status = await repo.get_sub_status(sub_status_id)
            if sub_status is None:
                raise NotFound(f"Sub-status {sub_status_id} not found")
            clash = await repo.get_sub_status_by_name(name)
            if clash is not None and clash.id != sub_status_id:
                raise Conflict("Sub-status name already exists")
            await self._check_linked_status(repo, linked_status)
            sub_status.name = name
            sub_status.linked_status = linked_status
            sub_status.sort_order = sort_order

        await self._invalidate()

    async def delete_sub_status(self, sub_status_id: int) -> None:
        async with self.database.transaction() as session:
            repo = TaxonomyRepository(session)
            if await repo.get_sub_status(sub_status_id) is None:
                raise NotFound(f"Sub-status {sub_status_id} not found")
            await repo.delete_sub_status(sub_status_id)

        await self._invalidate()

    # ── Internals ─────────────────────────────────────────────────────

    @staticmethod
    async def _check_linked_status(repo: TaxonomyRepository, linked_status: str) -> None:
        # "" is a legal, unlinked sub-status
        if linked_status and await repo.get_status_by_name(linked_status) is None:
            raise InvalidState(f"Unknown status '{linked_status}'")

    async def _invalidate(self) -> None:
        if self.cache is not None:
            await self.cache.invalidate()
