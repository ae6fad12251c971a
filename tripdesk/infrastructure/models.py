"""
SQLAlchemy ORM models.

Tables
------
* ``regions`` / ``venues`` / ``locations`` / ``events`` -- the place hierarchy
* ``trip_statuses`` / ``trip_sub_statuses``            -- status taxonomy
* ``trips`` / ``trip_status_history``                  -- dispatch records
* ``profiles`` / ``vehicles``                          -- staff and fleet
* ``roles`` / ``role_permissions``                     -- capability matrix

Status linkage is by name (``trips.status``, ``trip_sub_statuses.linked_status``),
so a status rename must cascade to both tables in the same transaction.

Indexes
-------
* **B-Tree** on every trip foreign key plus ``status`` and ``start_time``,
  the columns used by the reference guard and the search query.
"""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)

from .database import Base


class RegionModel(Base):
    __tablename__ = "regions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class VenueModel(Base):
    __tablename__ = "venues"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    region_id = Column(Integer, ForeignKey("regions.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (Index("idx_venues_region", "region_id"),)


class LocationModel(Base):
    __tablename__ = "locations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    venue_id = Column(Integer, ForeignKey("venues.id"), nullable=True)
    region_id = Column(Integer, ForeignKey("regions.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_locations_venue", "venue_id"),
        Index("idx_locations_region", "region_id"),
    )


class EventModel(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    region_id = Column(Integer, ForeignKey("regions.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class TripStatusModel(Base):
    __tablename__ = "trip_statuses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(80), unique=True, nullable=False)
    passenger_count_required = Column(Boolean, default=False, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)


class TripSubStatusModel(Base):
    __tablename__ = "trip_sub_statuses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(80), unique=True, nullable=False)
    linked_status = Column(String(80), nullable=False, default="")
    sort_order = Column(Integer, default=0, nullable=False)

    __table_args__ = (Index("idx_sub_statuses_linked", "linked_status"),)


class ProfileModel(Base):
    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    email = Column(String(255), unique=True, nullable=True)
    phone = Column(String(40), nullable=True)
    alternate_phone = Column(String(40), nullable=True)
    is_driver = Column(Boolean, default=False, nullable=False)
    location_id = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class VehicleModel(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    type = Column(String(40), nullable=False, default="Unknown")
    registration = Column(String(40), unique=True, nullable=False)
    capacity = Column(Integer, nullable=False, default=0)
    make_model = Column(String(120), nullable=False, default="Unknown")
    status = Column(String(40), nullable=False, default="Active")
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class TripModel(Base):
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, autoincrement=True)
    route_code = Column(String(40), nullable=False)

    # Each side is a Location or a Venue
    origin_id = Column(Integer, ForeignKey("locations.id"), nullable=True)
    destination_id = Column(Integer, ForeignKey("locations.id"), nullable=True)
    origin_venue_id = Column(Integer, ForeignKey("venues.id"), nullable=True)
    destination_venue_id = Column(Integer, ForeignKey("venues.id"), nullable=True)
    region_id = Column(Integer, ForeignKey("regions.id"), nullable=True)

    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)

    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=True)
    volunteer_id = Column(Integer, ForeignKey("profiles.id"), nullable=True)
    driver_id = Column(Integer, ForeignKey("profiles.id"), nullable=True)

    status = Column(String(80), nullable=False)
    sub_status = Column(String(80), nullable=False, default="")
    breakdown_issue = Column(Text, nullable=True)
    passengers_boarded = Column(Integer, default=0, nullable=False)
    wheelchairs_boarded = Column(Integer, default=0, nullable=False)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_trips_start_time", "start_time"),
        Index("idx_trips_vehicle_id", "vehicle_id"),
        Index("idx_trips_driver_id", "driver_id"),
        Index("idx_trips_volunteer_id", "volunteer_id"),
        Index("idx_trips_origin_id", "origin_id"),
        Index("idx_trips_destination_id", "destination_id"),
        Index("idx_trips_origin_venue_id", "origin_venue_id"),
        Index("idx_trips_destination_venue_id", "destination_venue_id"),
        Index("idx_trips_region_id", "region_id"),
        Index("idx_trips_status", "status"),
    )


class TripStatusHistoryModel(Base):
    __tablename__ = "trip_status_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False)
    status = Column(String(80), nullable=False)
    sub_status = Column(String(80), nullable=False, default="")
    breakdown_issue = Column(Text, nullable=True)
    passengers_boarded = Column(Integer, default=0, nullable=False)
    changed_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (Index("idx_trip_history_trip", "trip_id"),)


class RoleModel(Base):
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(80), unique=True, nullable=False)
    description = Column(String(255), nullable=True)
    is_system_role = Column(Boolean, default=False, nullable=False)


class RolePermissionModel(Base):
    __tablename__ = "role_permissions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    role_id = Column(
        Integer, ForeignKey("roles.id", ondelete="CASCADE"), nullable=False
    )
    module_code = Column(String(40), nullable=False)
    can_view = Column(Boolean, default=False, nullable=False)
    can_edit = Column(Boolean, default=False, nullable=False)

    __table_args__ = (
        UniqueConstraint("role_id", "module_code", name="uq_role_module"),
    )
