"""Initial schema: users, drivers, vehicles, service requests, assignments.

Revision ID: 001
Create Date: 2025-10-27
"""

from alembic import op
import sqlalchemy as sa


revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    ]


def upgrade() -> None:
    # ── users ─────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(50), unique=True, nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column(
            "role",
            sa.Enum("coordinator", "viewer", name="user_role"),
            nullable=False,
            server_default="viewer",
        ),
        sa.Column("full_name", sa.String(120), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )

    # ── drivers / vehicles ────────────────────────────────────────────
    op.create_table(
        "drivers",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("phone", sa.String(40), nullable=False),
        *_timestamps(),
    )
    op.create_table(
        "vehicles",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("plate", sa.String(20), unique=True, nullable=False),
        sa.Column("capacity", sa.Integer, nullable=False),
        *_timestamps(),
        sa.CheckConstraint("capacity >= 1", name="ck_vehicles_capacity"),
    )

    # ── service_requests ──────────────────────────────────────────────
    op.create_table(
        "service_requests",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("customer_name", sa.String(100), nullable=False),
        sa.Column("phone", sa.String(40), nullable=False),
        sa.Column("pickup_location", sa.String(255), nullable=True),
        sa.Column("dropoff_location", sa.String(255), nullable=True),
        sa.Column("pickup_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("passengers", sa.Integer, nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column(
            "status",
            sa.Enum(
                "pending",
                "approved",
                "rejected",
                "scheduled",
                name="request_status",
            ),
            nullable=False,
            server_default="pending",
        ),
        *_timestamps(),
    )
    op.create_index("idx_requests_status", "service_requests", ["status"])
    op.create_index("idx_requests_created", "service_requests", ["created_at"])

    # ── assignments ───────────────────────────────────────────────────
    op.create_table(
        "assignments",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "request_id",
            sa.Integer,
            sa.ForeignKey("service_requests.id", ondelete="CASCADE"),
            unique=True,
            nullable=False,
        ),
        sa.Column(
            "driver_id", sa.Integer, sa.ForeignKey("drivers.id"), nullable=False
        ),
        sa.Column(
            "vehicle_id", sa.Integer, sa.ForeignKey("vehicles.id"), nullable=False
        ),
        sa.Column("scheduled_time", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
    )
    op.create_index("idx_assignments_driver", "assignments", ["driver_id"])
    op.create_index("idx_assignments_vehicle", "assignments", ["vehicle_id"])


def downgrade() -> None:
    op.drop_table("assignments")
    op.drop_table("service_requests")
    op.drop_table("vehicles")
    op.drop_table("drivers")
    op.drop_table("users")
    op.execute("DROP TYPE IF EXISTS request_status")
    op.execute("DROP TYPE IF EXISTS user_role")
