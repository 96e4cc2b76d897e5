"""Initial schema: passengers, drivers, rides and payments.

Revision ID: 001
Create Date: 2026-10-16
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "001"
down_revision = None
branch_labels = None
depends_on = None

RIDE_STATUSES = ("REQUESTED", "ACCEPTED", "PICKED_UP", "COMPLETED", "CANCELLED")
RIDE_TYPES = ("STANDARD", "POOL", "LUXURY")
PAYMENT_METHODS = ("WALLET", "CREDIT_CARD")
PAYMENT_STATUSES = ("PENDING", "COMPLETED", "FAILED", "REFUNDED")


def upgrade() -> None:
    # ── passengers ────────────────────────────────────────────────────
    op.create_table(
        "passengers",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("wallet_balance", sa.Float, default=0.0, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("wallet_balance >= 0", name="ck_passengers_wallet_nonneg"),
    )

    # ── drivers ───────────────────────────────────────────────────────
    op.create_table(
        "drivers",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("vehicle_number", sa.String(20), nullable=True),
        sa.Column("vehicle_type", sa.String(40), nullable=True),
        sa.Column("available", sa.Boolean, default=True, nullable=False),
        sa.Column("current_lat", sa.Float, nullable=True),
        sa.Column("current_lng", sa.Float, nullable=True),
        sa.Column("rating", sa.Float, default=0.0, nullable=False),
        sa.Column("earnings", sa.Float, default=0.0, nullable=False),
        sa.Column("total_rides", sa.Integer, default=0, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index("idx_drivers_available", "drivers", ["available"])

    # ── rides ─────────────────────────────────────────────────────────
    op.create_table(
        "rides",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "passenger_id", sa.Integer, sa.ForeignKey("passengers.id"), nullable=False
        ),
        sa.Column("driver_id", sa.Integer, sa.ForeignKey("drivers.id"), nullable=True),
        sa.Column("pickup_lat", sa.Float, nullable=False),
        sa.Column("pickup_lng", sa.Float, nullable=False),
        sa.Column("pickup_address", sa.String(255), nullable=True),
        sa.Column("pickup_postcode", sa.String(20), nullable=True),
        sa.Column("dropoff_lat", sa.Float, nullable=False),
        sa.Column("dropoff_lng", sa.Float, nullable=False),
        sa.Column("dropoff_address", sa.String(255), nullable=True),
        sa.Column("dropoff_postcode", sa.String(20), nullable=True),
        sa.Column("request_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("pickup_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("dropoff_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "status",
            sa.Enum(*RIDE_STATUSES, name="ridestatus"),
            default="REQUESTED",
            nullable=False,
        ),
        sa.Column(
            "ride_type",
            sa.Enum(*RIDE_TYPES, name="ridetype"),
            default="STANDARD",
            nullable=False,
        ),
        sa.Column(
            "payment_method",
            sa.Enum(*PAYMENT_METHODS, name="paymentmethod"),
            nullable=False,
        ),
        sa.Column("fare", sa.Float, nullable=False),
        sa.Column("distance_km", sa.Float, nullable=False),
        sa.Column("surge_multiplier", sa.Float, default=1.0, nullable=False),
        sa.Column("rating", sa.Integer, nullable=True),
        sa.Column("idempotency_key", sa.String(64), unique=True, nullable=True),
    )
    op.create_index("idx_rides_status", "rides", ["status"])
    op.create_index("idx_rides_passenger", "rides", ["passenger_id"])
    op.create_index("idx_rides_driver", "rides", ["driver_id"])
    op.create_index("idx_rides_idempotency", "rides", ["idempotency_key"])

    # ── payments ──────────────────────────────────────────────────────
    op.create_table(
        "payments",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("ride_id", sa.Integer, sa.ForeignKey("rides.id"), nullable=False),
        sa.Column("amount", sa.Float, nullable=False),
        sa.Column(
            "payment_type",
            # Shares the type created with rides.payment_method
            postgresql.ENUM(*PAYMENT_METHODS, name="paymentmethod", create_type=False),
            nullable=False,
        ),
        sa.Column(
            "status",
            sa.Enum(*PAYMENT_STATUSES, name="paymentstatus"),
            default="PENDING",
            nullable=False,
        ),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("transaction_id", sa.String(64), nullable=True),
    )
    op.create_index("idx_payments_ride", "payments", ["ride_id"])


def downgrade() -> None:
    op.drop_table("payments")
    op.drop_table("rides")
    op.drop_table("drivers")
    op.drop_table("passengers")
    op.execute("DROP TYPE IF EXISTS paymentstatus")
    op.execute("DROP TYPE IF EXISTS paymentmethod")
    op.execute("DROP TYPE IF EXISTS ridetype")
    op.execute("DROP TYPE IF EXISTS ridestatus")
