"""Initial vaccination schema.

Revision ID: 0001
Revises:
Create Date: 2026-10-17
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "animals",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("species", sa.String(length=60), nullable=True),
        sa.Column("rescued_on", sa.Date(), nullable=True),
        sa.Column("notes", sa.String(length=500), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "vaccines",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("manufacturer", sa.String(length=120), nullable=True),
        sa.Column("description", sa.String(length=512), nullable=True),
        *_timestamps(),
    )

    status_enum = sa.Enum(
        "PENDING",
        "IN_PROGRESS",
        "COMPLETE",
        "OVERDUE",
        name="protocolstatus",
    )

    op.create_table(
        "vaccination_protocols",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "animal_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("animals.id"),
            nullable=False,
        ),
        sa.Column(
            "vaccine_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("vaccines.id"),
            nullable=False,
        ),
        sa.Column("doses_required", sa.Integer(), nullable=False),
        sa.Column("interval_days", sa.Integer(), nullable=True),
        sa.Column(
            "requires_annual_booster",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.Column("status", status_enum, nullable=False),
        sa.Column(
            "active", sa.Boolean(), nullable=False, server_default=sa.text("true")
        ),
        sa.Column("next_dose_date", sa.Date(), nullable=True),
        sa.Column("next_cycle_reminder_date", sa.Date(), nullable=True),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("doses_required >= 1", name="ck_protocol_doses_required"),
        sa.CheckConstraint(
            "interval_days IS NULL OR interval_days >= 1",
            name="ck_protocol_interval_days",
        ),
    )
    op.create_index(
        "ix_vaccination_protocols_animal_id",
        "vaccination_protocols",
        ["animal_id"],
    )
    op.create_index(
        "ux_vaccination_protocols_active_pair",
        "vaccination_protocols",
        ["animal_id", "vaccine_id"],
        unique=True,
        sqlite_where=sa.text("active = 1"),
        postgresql_where=sa.text("active"),
    )
    op.create_index(
        "ix_vaccination_protocols_status_next_dose",
        "vaccination_protocols",
        ["status", "next_dose_date"],
    )
    op.create_index(
        "ix_vaccination_protocols_reminder",
        "vaccination_protocols",
        ["next_cycle_reminder_date"],
    )

    op.create_table(
        "dose_records",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "protocol_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("vaccination_protocols.id"),
            nullable=False,
        ),
        sa.Column("lab", sa.String(length=120), nullable=False),
        sa.Column("batch", sa.String(length=120), nullable=False),
        sa.Column("attending_vet", sa.String(length=120), nullable=False),
        sa.Column("amount_paid", sa.Numeric(10, 2), nullable=False),
        sa.Column("applied_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("amount_paid >= 0", name="ck_dose_amount_paid"),
    )
    op.create_index("ix_dose_records_protocol_id", "dose_records", ["protocol_id"])
    op.create_index("ix_dose_records_applied_at", "dose_records", ["applied_at"])


def downgrade() -> None:
    op.drop_index("ix_dose_records_applied_at", table_name="dose_records")
    op.drop_index("ix_dose_records_protocol_id", table_name="dose_records")
    op.drop_table("dose_records")
    op.drop_index(
        "ix_vaccination_protocols_reminder", table_name="vaccination_protocols"
    )
    op.drop_index(
        "ix_vaccination_protocols_status_next_dose",
        table_name="vaccination_protocols",
    )
    op.drop_index(
        "ux_vaccination_protocols_active_pair", table_name="vaccination_protocols"
    )
    op.drop_index(
        "ix_vaccination_protocols_animal_id", table_name="vaccination_protocols"
    )
    op.drop_table("vaccination_protocols")
    if op.get_bind().dialect.name == "postgresql":
        op.execute("DROP TYPE IF EXISTS protocolstatus")
    op.drop_table("vaccines")
    op.drop_table("animals")
