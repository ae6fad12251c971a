"""Seed the default status catalog and system roles.

Revision ID: 002
Revises: 001
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa


revision = "002"
down_revision = "001"
branch_labels = None
depends_on = None

STATUSES = [
    # name, passenger_count_required, sort_order
    ("Planned", False, 1),
    ("Active", False, 2),
    ("Arriving", False, 3),
    ("Completed", True, 4),
    ("Breakdown", False, 5),
    ("Cancelled", False, 6),
]

SUB_STATUSES = [
    # name, linked_status, sort_order
    ("Scheduled", "Planned", 10),
    ("Ready for onboarding", "Planned", 20),
    ("Enroute", "Active", 30),
    ("At pit stop", "Active", 40),
    ("Within 1 km of destination", "Active", 50),
    ("Perimeter - 1 km", "Active", 55),
    ("Arrived", "Completed", 60),
    ("Parked", "Completed", 70),
]

ROLES = [
    # name, description, is_system_role
    ("Super Admin", "Full access to everything", True),
    ("Region Admin", "Full access to regional data", True),
    ("Dispatcher", "Can manage trips and vehicles", False),
    ("Bus Incharge", "Can view trips and update active status", False),
    ("Volunteer", "Base access", False),
]


def upgrade() -> None:
    statuses = sa.table(
        "trip_statuses",
        sa.column("name", sa.String),
        sa.column("passenger_count_required", sa.Boolean),
        sa.column("sort_order", sa.Integer),
    )
    sub_statuses = sa.table(
        "trip_sub_statuses",
        sa.column("name", sa.String),
        sa.column("linked_status", sa.String),
        sa.column("sort_order", sa.Integer),
    )
    roles = sa.table(
        "roles",
        sa.column("name", sa.String),
        sa.column("description", sa.String),
        sa.column("is_system_role", sa.Boolean),
    )
    op.bulk_insert(
        statuses,
        [
            {"name": n, "passenger_count_required": p, "sort_order": s}
            for n, p, s in STATUSES
        ],
    )
    op.bulk_insert(
        sub_statuses,
        [
            {"name": n, "linked_status": linked, "sort_order": s}
            for n, linked, s in SUB_STATUSES
        ],
    )
    op.bulk_insert(
        roles,
        [{"name": n, "description": d, "is_system_role": s} for n, d, s in ROLES],
    )


def downgrade() -> None:
    names = ", ".join(f"'{n}'" for n, _, _ in ROLES)
    op.execute(f"DELETE FROM roles WHERE name IN ({names})")
    names = ", ".join(f"'{n}'" for n, _, _ in SUB_STATUSES)
    op.execute(f"DELETE FROM trip_sub_statuses WHERE name IN ({names})")
    names = ", ".join(f"'{n}'" for n, _, _ in STATUSES)
    op.execute(f"DELETE FROM trip_statuses WHERE name IN ({names})")
