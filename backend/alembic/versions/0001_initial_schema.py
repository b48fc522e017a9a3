"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates all tables for EcoTrack: users, events, event_participants,
recycling_logs, notifications, system_settings, system_logs.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="student"),
        sa.Column("eco_points", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- events ---
    op.create_table(
        "events",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("event_type", sa.String(20), nullable=False, server_default="other"),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("event_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("organizer_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("max_participants", sa.Integer, nullable=True),
        sa.Column("eco_points_reward", sa.Integer, nullable=False, server_default="10"),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- event_participants ---
    op.create_table(
        "event_participants",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("event_id", sa.Integer, sa.ForeignKey("events.id"), nullable=False),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("attended", sa.Boolean, nullable=False, server_default="0"),
        sa.Column("registered_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("event_id", "user_id", name="uq_event_participant"),
    )

    # --- recycling_logs --- (event_id is deliberately not a foreign key)
    op.create_table(
        "recycling_logs",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("category", sa.String(20), nullable=False),
        sa.Column("weight", sa.Float, nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("image_url", sa.String(500), nullable=True),
        sa.Column("event_id", sa.Integer, nullable=True),
        sa.Column("verified", sa.Boolean, nullable=False, server_default="0"),
        sa.Column("verified_by", sa.Integer, nullable=True),
        sa.Column("verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("eco_points_earned", sa.Integer, nullable=False, server_default="0"),
        sa.Column("volunteer_hours", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_recycling_logs_user_id", "recycling_logs", ["user_id"])
    op.create_index("ix_recycling_logs_event_id", "recycling_logs", ["event_id"])
    op.create_index("ix_recycling_logs_verified", "recycling_logs", ["verified"])

    # --- notifications ---
    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("type", sa.String(20), nullable=False, server_default="general"),
        sa.Column("read", sa.Boolean, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])

    # --- system_settings ---
    op.create_table(
        "system_settings",
        sa.Column("setting_key", sa.String(100), primary_key=True),
        sa.Column("setting_value", sa.String(500), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("updated_by", sa.Integer, nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # --- system_logs ---
    op.create_table(
        "system_logs",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("performed_by", sa.Integer, nullable=False),
        sa.Column("details", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("system_logs")
    op.drop_table("system_settings")
    op.drop_index("ix_notifications_user_id", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_recycling_logs_verified", table_name="recycling_logs")
    op.drop_index("ix_recycling_logs_event_id", table_name="recycling_logs")
    op.drop_index("ix_recycling_logs_user_id", table_name="recycling_logs")
    op.drop_table("recycling_logs")
    op.drop_table("event_participants")
    op.drop_table("events")
    op.drop_table("users")
