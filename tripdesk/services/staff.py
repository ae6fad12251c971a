"""Staff profiles and vehicles referenced by trips."""

from __future__ import annotations

from typing import Optional

from tripdesk.infrastructure.database import Database
from tripdesk.infrastructure.models import ProfileModel, VehicleModel
from tripdesk.infrastructure.repositories import ProfileRepository, VehicleRepository


class StaffDirectory:
    def __init__(self, database: Database):
        self.database = database

    async def create_profile(
        self,
        name: str,
        phone: Optional[str] = None,
        email: Optional[str] = None,
        alternate_phone: Optional[str] = None,
        is_driver: bool = False,
    ) -> int:
        async with self.database.transaction() as session:
            profile = await ProfileRepository(session).create(
                ProfileModel(
                    name=name,
                    phone=phone,
                    email=email or None,
                    alternate_phone=alternate_phone or None,
                    is_driver=is_driver,
                )
            )
            return profile.id

    async def get_profile(self, profile_id: int) -> Optional[ProfileModel]:
        async with self.database.session() as session:
            return await ProfileRepository(session).get_by_id(profile_id)

    async def create_vehicle(
        self,
        registration: str,
        type: str = "Bus",
        capacity: int = 0,
        make_model: str = "Unknown",
        status: str = "Active",
    ) -> int:
        async with self.database.transaction() as session:
            vehicle = await VehicleRepository(session).create(
                VehicleModel(
                    registration=registration,
                    type=type,
                    capacity=capacity,
                    make_model=make_model,
                    status=status,
                )
            )
            return vehicle.id

    async def get_vehicle_by_registration(self, registration: str) -> Optional[VehicleModel]:
        async with self.database.session() as session:
            return await VehicleRepository(session).get_by_registration(registration)
