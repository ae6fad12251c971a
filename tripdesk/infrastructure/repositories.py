"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and exposes
domain-relevant queries only.  Repositories never commit; the caller owns
the transaction boundary.
"""

from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy import String, and_, cast, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from .models import (
    EventModel,
    LocationModel,
    ProfileModel,
    RegionModel,
    RoleModel,
    RolePermissionModel,
    TripModel,
    TripStatusHistoryModel,
    TripStatusModel,
    TripSubStatusModel,
    VehicleModel,
    VenueModel,
)
from tripdesk.domain.entities import DashboardWindow, StatusTriple, TripView

# Aliases shared by every trip read so search and count join identically.
_origin_loc = aliased(LocationModel, name="loc_o")
_dest_loc = aliased(LocationModel, name="loc_d")
_origin_ven = aliased(VenueModel, name="ven_o")
_dest_ven = aliased(VenueModel, name="ven_d")
_volunteer = aliased(ProfileModel, name="vol")
_driver = aliased(ProfileModel, name="drv")


def _with_trip_joins(query):
    return (
        query.outerjoin(_volunteer, TripModel.volunteer_id == _volunteer.id)
        .outerjoin(_driver, TripModel.driver_id == _driver.id)
        .outerjoin(VehicleModel, TripModel.vehicle_id == VehicleModel.id)
        .outerjoin(_origin_loc, TripModel.origin_id == _origin_loc.id)
        .outerjoin(_dest_loc, TripModel.destination_id == _dest_loc.id)
        .outerjoin(
            _origin_ven,
            _origin_ven.id
            == func.coalesce(TripModel.origin_venue_id, _origin_loc.venue_id),
        )
        .outerjoin(
            _dest_ven,
            _dest_ven.id
            == func.coalesce(TripModel.destination_venue_id, _dest_loc.venue_id),
        )
    )


def _search_conditions(search: Optional[str]) -> list:
    """Every whitespace-separated term must match at least one column."""
    if not search or not search.strip():
        return []
    conditions = []
    for term in search.split():
        pattern = f"%{term}%"
        conditions.append(
            or_(
                TripModel.route_code.ilike(pattern),
                _origin_loc.name.ilike(pattern),
                _dest_loc.name.ilike(pattern),
                _origin_ven.name.ilike(pattern),
                _dest_ven.name.ilike(pattern),
                _volunteer.name.ilike(pattern),
                _volunteer.phone.ilike(pattern),
                _driver.name.ilike(pattern),
                _driver.phone.ilike(pattern),
                VehicleModel.registration.ilike(pattern),
                cast(TripModel.start_time, String).ilike(pattern),
            )
        )
    return conditions


def _dashboard_condition(window: DashboardWindow):
    return or_(
        TripModel.status.in_(window.live_statuses),
        and_(
            TripModel.status.in_(window.recent_statuses),
            TripModel.start_time > window.since,
        ),
    )


def _to_view(row) -> TripView:
    trip: TripModel = row[0]
    (origin_loc, dest_loc, origin_ven, dest_ven,
     vol_name, vol_phone, drv_name, drv_phone, registration) = row[1:]
    return TripView(
        id=trip.id,
        route_code=trip.route_code,
        start_time=trip.start_time,
        end_time=trip.end_time,
        status=trip.status,
        sub_status=trip.sub_status,
        breakdown_issue=trip.breakdown_issue,
        origin_id=trip.origin_id,
        origin_venue_id=trip.origin_venue_id,
        destination_id=trip.destination_id,
        destination_venue_id=trip.destination_venue_id,
        region_id=trip.region_id,
        vehicle_id=trip.vehicle_id,
        volunteer_id=trip.volunteer_id,
        driver_id=trip.driver_id,
        passengers_boarded=trip.passengers_boarded,
        wheelchairs_boarded=trip.wheelchairs_boarded,
        notes=trip.notes,
        created_at=trip.created_at,
        origin_name=origin_loc or origin_ven,
        destination_name=dest_loc or dest_ven,
        origin_venue_name=origin_ven,
        destination_venue_name=dest_ven,
        volunteer_name=vol_name,
        volunteer_phone=vol_phone,
        driver_name=drv_name,
        driver_phone=drv_phone,
        vehicle_registration=registration,
    )


class TripRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, trip: TripModel) -> TripModel:
        self.session.add(trip)
        await self.session.flush()
        return trip

    async def get_by_id(self, trip_id: int) -> Optional[TripModel]:
        return await self.session.get(TripModel, trip_id)

    async def get_for_update(self, trip_id: int) -> Optional[TripModel]:
        """SELECT ... FOR UPDATE so concurrent status changes serialise."""
        result = await self.session.execute(
            select(TripModel).where(TripModel.id == trip_id).with_for_update()
        )
        return result.scalar_one_or_none()

    async def delete(self, trip_id: int) -> None:
        # History first: it holds a foreign key to the trip
        await self.session.execute(
            delete(TripStatusHistoryModel).where(
                TripStatusHistoryModel.trip_id == trip_id
            )
        )
        await self.session.execute(delete(TripModel).where(TripModel.id == trip_id))

    async def rename_status(self, old_name: str, new_name: str) -> int:
        result = await self.session.execute(
            update(TripModel)
            .where(TripModel.status == old_name)
            .values(status=new_name)
        )
        return result.rowcount or 0

    async def count_where(self, *conditions) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(TripModel).where(or_(*conditions))
        )
        return result.scalar() or 0

    # ── Read model ────────────────────────────────────────────────────

    def _view_query(self):
        return _with_trip_joins(
            select(
                TripModel,
                _origin_loc.name,
                _dest_loc.name,
                _origin_ven.name,
                _dest_ven.name,
                _volunteer.name,
                _volunteer.phone,
                _driver.name,
                _driver.phone,
                VehicleModel.registration,
            ).select_from(TripModel)
        )

    async def get_view(self, trip_id: int) -> Optional[TripView]:
        result = await self.session.execute(
            self._view_query().where(TripModel.id == trip_id)
        )
        row = result.first()
        return _to_view(row) if row else None

    async def search(
        self,
        *,
        search: Optional[str] = None,
        region_id: Optional[int] = None,
        dashboard: Optional[DashboardWindow] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> list[TripView]:
        query = self._view_query()
        if region_id:
            query = query.where(TripModel.region_id == region_id)
        if dashboard is not None:
            query = query.where(_dashboard_condition(dashboard))
        for condition in _search_conditions(search):
            query = query.where(condition)
        query = query.order_by(TripModel.start_time.desc(), TripModel.id.desc())
        if limit is not None:
            query = query.limit(limit).offset(offset or 0)
        result = await self.session.execute(query)
        return [_to_view(row) for row in result.all()]

    async def count(
        self,
        *,
        search: Optional[str] = None,
        region_id: Optional[int] = None,
        dashboard: Optional[DashboardWindow] = None,
    ) -> int:
        query = _with_trip_joins(select(func.count()).select_from(TripModel))
        if region_id:
            query = query.where(TripModel.region_id == region_id)
        if dashboard is not None:
            query = query.where(_dashboard_condition(dashboard))
        for condition in _search_conditions(search):
            query = query.where(condition)
        result = await self.session.execute(query)
        return result.scalar() or 0

    async def for_place(self, place_id: int) -> list[TripView]:
        result = await self.session.execute(
            self._view_query()
            .where(
                or_(
                    TripModel.origin_id == place_id,
                    TripModel.destination_id == place_id,
                    TripModel.origin_venue_id == place_id,
                    TripModel.destination_venue_id == place_id,
                )
            )
            .order_by(TripModel.start_time.desc(), TripModel.id.desc())
        )
        return [_to_view(row) for row in result.all()]


class TripHistoryRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def append(
        self, trip_id: int, triple: StatusTriple, passengers_boarded: int = 0
    ) -> TripStatusHistoryModel:
        entry = TripStatusHistoryModel(
            trip_id=trip_id,
            status=triple.status,
            sub_status=triple.sub_status,
            breakdown_issue=triple.breakdown_issue,
            passengers_boarded=passengers_boarded,
        )
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def for_trip(self, trip_id: int) -> list[TripStatusHistoryModel]:
        result = await self.session.execute(
            select(TripStatusHistoryModel)
            .where(TripStatusHistoryModel.trip_id == trip_id)
            .order_by(TripStatusHistoryModel.id)
        )
        return list(result.scalars().all())

    async def count_for_trip(self, trip_id: int) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(TripStatusHistoryModel)
            .where(TripStatusHistoryModel.trip_id == trip_id)
        )
        return result.scalar() or 0


class TaxonomyRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_status(self, status_id: int) -> Optional[TripStatusModel]:
        return await self.session.get(TripStatusModel, status_id)

    async def get_status_by_name(self, name: str) -> Optional[TripStatusModel]:
        result = await self.session.execute(
            select(TripStatusModel).where(TripStatusModel.name == name)
        )
        return result.scalar_one_or_none()

    async def list_statuses(self) -> list[TripStatusModel]:
        result = await self.session.execute(
            select(TripStatusModel).order_by(
                TripStatusModel.sort_order, TripStatusModel.id
            )
        )
        return list(result.scalars().all())

    async def add(self, row):
        self.session.add(row)
        await self.session.flush()
        return row

    async def get_sub_status(self, sub_status_id: int) -> Optional[TripSubStatusModel]:
        return await self.session.get(TripSubStatusModel, sub_status_id)

    async def get_sub_status_by_name(self, name: str) -> Optional[TripSubStatusModel]:
        result = await self.session.execute(
            select(TripSubStatusModel).where(TripSubStatusModel.name == name)
        )
        return result.scalar_one_or_none()

    async def list_sub_statuses(self) -> list[TripSubStatusModel]:
        result = await self.session.execute(
            select(TripSubStatusModel).order_by(
                TripSubStatusModel.sort_order, TripSubStatusModel.id
            )
        )
        return list(result.scalars().all())

    async def relink_sub_statuses(self, old_name: str, new_name: str) -> int:
        result = await self.session.execute(
            update(TripSubStatusModel)
            .where(TripSubStatusModel.linked_status == old_name)
            .values(linked_status=new_name)
        )
        return result.rowcount or 0

    async def delete_status(self, status_id: int) -> None:
        await self.session.execute(
            delete(TripStatusModel).where(TripStatusModel.id == status_id)
        )

    async def delete_sub_status(self, sub_status_id: int) -> None:
        await self.session.execute(
            delete(TripSubStatusModel).where(TripSubStatusModel.id == sub_status_id)
        )


class HierarchyRepository:
    MODELS = {
        "regions": RegionModel,
        "venues": VenueModel,
        "locations": LocationModel,
        "events": EventModel,
    }

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, row):
        self.session.add(row)
        await self.session.flush()
        return row

    async def get(self, table: str, entity_id: int):
        return await self.session.get(self.MODELS[table], entity_id)

    async def list_all(self, table: str, region_id: Optional[int] = None) -> list:
        model = self.MODELS[table]
        query = select(model).order_by(model.name, model.id)
        if region_id is not None:
            column = model.id if model is RegionModel else model.region_id
            query = query.where(column == region_id)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def venue_ids_in_region(self, region_id: int) -> list[int]:
        result = await self.session.execute(
            select(VenueModel.id).where(VenueModel.region_id == region_id)
        )
        return list(result.scalars().all())

    async def location_ids(
        self, *, venue_ids: Iterable[int] = (), region_id: Optional[int] = None
    ) -> list[int]:
        conditions = []
        venue_ids = list(venue_ids)
        if venue_ids:
            conditions.append(LocationModel.venue_id.in_(venue_ids))
        if region_id is not None:
            conditions.append(LocationModel.region_id == region_id)
        if not conditions:
            return []
        result = await self.session.execute(
            select(LocationModel.id).where(or_(*conditions))
        )
        return list(result.scalars().all())

    async def delete_locations_of_venues(self, venue_ids: list[int]) -> None:
        if venue_ids:
            await self.session.execute(
                delete(LocationModel).where(LocationModel.venue_id.in_(venue_ids))
            )

    async def delete_venues_of_region(self, region_id: int) -> None:
        await self.session.execute(
            delete(VenueModel).where(VenueModel.region_id == region_id)
        )

    async def delete_region_level_locations(self, region_id: int) -> None:
        await self.session.execute(
            delete(LocationModel).where(
                LocationModel.region_id == region_id,
                LocationModel.venue_id.is_(None),
            )
        )

    async def delete_one(self, table: str, entity_id: int) -> None:
        model = self.MODELS[table]
        await self.session.execute(delete(model).where(model.id == entity_id))


class ProfileRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, profile: ProfileModel) -> ProfileModel:
        self.session.add(profile)
        await self.session.flush()
        return profile

    async def get_by_id(self, profile_id: int) -> Optional[ProfileModel]:
        return await self.session.get(ProfileModel, profile_id)

    async def mark_driver(self, profile_id: int) -> None:
        await self.session.execute(
            update(ProfileModel)
            .where(ProfileModel.id == profile_id)
            .values(is_driver=True)
        )


class VehicleRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, vehicle: VehicleModel) -> VehicleModel:
        self.session.add(vehicle)
        await self.session.flush()
        return vehicle

    async def get_by_id(self, vehicle_id: int) -> Optional[VehicleModel]:
        return await self.session.get(VehicleModel, vehicle_id)

    async def get_by_registration(self, registration: str) -> Optional[VehicleModel]:
        result = await self.session.execute(
            select(VehicleModel).where(VehicleModel.registration == registration)
        )
        return result.scalar_one_or_none()


class RoleRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_roles(self) -> list[RoleModel]:
        result = await self.session.execute(select(RoleModel).order_by(RoleModel.name))
        return list(result.scalars().all())

    async def get_by_id(self, role_id: int) -> Optional[RoleModel]:
        return await self.session.get(RoleModel, role_id)

    async def create(self, role: RoleModel) -> RoleModel:
        self.session.add(role)
        await self.session.flush()
        return role

    async def delete(self, role_id: int) -> None:
        await self.session.execute(
            delete(RolePermissionModel).where(RolePermissionModel.role_id == role_id)
        )
        await self.session.execute(delete(RoleModel).where(RoleModel.id == role_id))

    async def permission_rows(self, role_id: int) -> list[RolePermissionModel]:
        result = await self.session.execute(
            select(RolePermissionModel).where(RolePermissionModel.role_id == role_id)
        )
        return list(result.scalars().all())

    async def upsert_permission(
        self, role_id: int, module_code: str, can_view: bool, can_edit: bool
    ) -> None:
        result = await self.session.execute(
            select(RolePermissionModel).where(
                RolePermissionModel.role_id == role_id,
                RolePermissionModel.module_code == module_code,
            )
        )
        row = result.scalar_one_or_none()
        if row is None:
            self.session.add(
                RolePermissionModel(
                    role_id=role_id,
                    module_code=module_code,
                    can_view=can_view,
                    can_edit=can_edit,
                )
            )
        else:
            row.can_view = can_view
            row.can_edit = can_edit
        await self.session.flush()
