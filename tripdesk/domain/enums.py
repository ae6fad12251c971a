"""Domain enumerations."""

import enum


class HierarchyTable(str, enum.Enum):
    REGIONS = "regions"
    VENUES = "venues"
    LOCATIONS = "locations"
    EVENTS = "events"


class PlaceKind(str, enum.Enum):
    LOCATION = "location"
    EVENT = "event"


class AppModule(str, enum.Enum):
    DASHBOARD = "dashboard"
    TRIPS = "trips"
    TRIP_TRACKING = "trip_tracking"
    VEHICLES = "vehicles"
    USERS = "users"
    ROLES = "roles"
    SETTINGS = "settings"


SUPER_ADMIN_ROLE = "SUPER_ADMIN"
