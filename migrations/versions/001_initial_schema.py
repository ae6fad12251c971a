"""Initial schema: place hierarchy, status taxonomy, trips and history.

Revision ID: 001
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa


revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at", sa.DateTime(timezone=True), server_default=sa.func.now()
    )


def upgrade() -> None:
    # ── hierarchy ─────────────────────────────────────────────────────
    op.create_table(
        "regions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(120), unique=True, nullable=False),
        _created_at(),
    )
    op.create_table(
        "venues",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column(
            "region_id", sa.Integer, sa.ForeignKey("regions.id"), nullable=False
        ),
        _created_at(),
    )
    op.create_index("idx_venues_region", "venues", ["region_id"])
    op.create_table(
        "locations",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("venue_id", sa.Integer, sa.ForeignKey("venues.id"), nullable=True),
        sa.Column("region_id", sa.Integer, sa.ForeignKey("regions.id"), nullable=True),
        _created_at(),
    )
    op.create_index("idx_locations_venue", "locations", ["venue_id"])
    op.create_index("idx_locations_region", "locations", ["region_id"])
    op.create_table(
        "events",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column(
            "region_id", sa.Integer, sa.ForeignKey("regions.id"), nullable=False
        ),
        _created_at(),
    )

    # ── status taxonomy ───────────────────────────────────────────────
    op.create_table(
        "trip_statuses",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(80), unique=True, nullable=False),
        sa.Column(
            "passenger_count_required",
            sa.Boolean,
            nullable=False,
            server_default=sa.false(),
        ),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
    )
    op.create_table(
        "trip_sub_statuses",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(80), unique=True, nullable=False),
        sa.Column("linked_status", sa.String(80), nullable=False, server_default=""),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
    )
    op.create_index(
        "idx_sub_statuses_linked", "trip_sub_statuses", ["linked_status"]
    )

    # ── staff / fleet ─────────────────────────────────────────────────
    op.create_table(
        "profiles",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("email", sa.String(255), unique=True, nullable=True),
        sa.Column("phone", sa.String(40), nullable=True),
        sa.Column("alternate_phone", sa.String(40), nullable=True),
        sa.Column("is_driver", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("location_id", sa.Integer, nullable=True),
        _created_at(),
    )
    op.create_table(
        "vehicles",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("type", sa.String(40), nullable=False, server_default="Unknown"),
        sa.Column("registration", sa.String(40), unique=True, nullable=False),
        sa.Column("capacity", sa.Integer, nullable=False, server_default="0"),
        sa.Column("make_model", sa.String(120), nullable=False, server_default="Unknown"),
        sa.Column("status", sa.String(40), nullable=False, server_default="Active"),
        _created_at(),
    )

    # ── trips ─────────────────────────────────────────────────────────
    op.create_table(
        "trips",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("route_code", sa.String(40), nullable=False),
        sa.Column("origin_id", sa.Integer, sa.ForeignKey("locations.id"), nullable=True),
        sa.Column(
            "destination_id", sa.Integer, sa.ForeignKey("locations.id"), nullable=True
        ),
        sa.Column(
            "origin_venue_id", sa.Integer, sa.ForeignKey("venues.id"), nullable=True
        ),
        sa.Column(
            "destination_venue_id", sa.Integer, sa.ForeignKey("venues.id"), nullable=True
        ),
        sa.Column("region_id", sa.Integer, sa.ForeignKey("regions.id"), nullable=True),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("vehicle_id", sa.Integer, sa.ForeignKey("vehicles.id"), nullable=True),
        sa.Column(
            "volunteer_id", sa.Integer, sa.ForeignKey("profiles.id"), nullable=True
        ),
        sa.Column("driver_id", sa.Integer, sa.ForeignKey("profiles.id"), nullable=True),
        sa.Column("status", sa.String(80), nullable=False),
        sa.Column("sub_status", sa.String(80), nullable=False, server_default=""),
        sa.Column("breakdown_issue", sa.Text, nullable=True),
        sa.Column("passengers_boarded", sa.Integer, nullable=False, server_default="0"),
        sa.Column("wheelchairs_boarded", sa.Integer, nullable=False, server_default="0"),
        sa.Column("notes", sa.Text, nullable=True),
        _created_at(),
    )
    for column in (
        "start_time",
        "vehicle_id",
        "driver_id",
        "volunteer_id",
        "origin_id",
        "destination_id",
        "origin_venue_id",
        "destination_venue_id",
        "region_id",
        "status",
    ):
        op.create_index(f"idx_trips_{column}", "trips", [column])

    op.create_table(
        "trip_status_history",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("trip_id", sa.Integer, sa.ForeignKey("trips.id"), nullable=False),
        sa.Column("status", sa.String(80), nullable=False),
        sa.Column("sub_status", sa.String(80), nullable=False, server_default=""),
        sa.Column("breakdown_issue", sa.Text, nullable=True),
        sa.Column("passengers_boarded", sa.Integer, nullable=False, server_default="0"),
        sa.Column(
            "changed_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
    )
    op.create_index("idx_trip_history_trip", "trip_status_history", ["trip_id"])

    # ── roles ─────────────────────────────────────────────────────────
    op.create_table(
        "roles",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(80), unique=True, nullable=False),
        sa.Column("description", sa.String(255), nullable=True),
        sa.Column(
            "is_system_role", sa.Boolean, nullable=False, server_default=sa.false()
        ),
    )
    op.create_table(
        "role_permissions",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "role_id",
            sa.Integer,
            sa.ForeignKey("roles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("module_code", sa.String(40), nullable=False),
        sa.Column("can_view", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("can_edit", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.UniqueConstraint("role_id", "module_code", name="uq_role_module"),
    )


def downgrade() -> None:
    op.drop_table("role_permissions")
    op.drop_table("roles")
    op.drop_table("trip_status_history")
    op.drop_table("trips")
    op.drop_table("vehicles")
    op.drop_table("profiles")
    op.drop_table("trip_sub_statuses")
    op.drop_table("trip_statuses")
    op.drop_table("events")
    op.drop_table("locations")
    op.drop_table("venues")
    op.drop_table("regions")
