"""notifications, push subscriptions, notification preferences

Revision ID: 0001_init
Revises:
Create Date: 2026-08-04
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
  op.create_table(
    "notifications",
    sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
    sa.Column("user_id", sa.Integer(), nullable=False),
    sa.Column("type", sa.String(), nullable=False),
    sa.Column("title", sa.String(), nullable=True),
    sa.Column("body", sa.Text(), nullable=True),
    sa.Column("payload_json", postgresql.JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
    sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
  )
  op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
  op.create_index("ix_notifications_user_created", "notifications", ["user_id", sa.text("created_at DESC")])

  op.create_table(
    "push_subscriptions",
    sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
    sa.Column("user_id", sa.Integer(), nullable=False),
    sa.Column("endpoint", sa.Text(), nullable=False),
    sa.Column("p256dh", sa.Text(), nullable=False),
    sa.Column("auth", sa.Text(), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    sa.UniqueConstraint("endpoint", name="ux_push_subscriptions_endpoint"),
  )
  op.create_index("ix_push_subscriptions_user_id", "push_subscriptions", ["user_id"])

  op.create_table(
    "notification_preferences",
    sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
    sa.Column("user_id", sa.Integer(), nullable=False),
    sa.Column("in_app_milestones", sa.Boolean(), nullable=True),
    sa.Column("in_app_crew_requests", sa.Boolean(), nullable=True),
    sa.Column("push_milestones", sa.Boolean(), nullable=True),
    sa.Column("push_crew_requests", sa.Boolean(), nullable=True),
    sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
  )
  op.create_index("ix_notification_preferences_user_id", "notification_preferences", ["user_id"], unique=True)


def downgrade() -> None:
  op.drop_index("ix_notification_preferences_user_id", table_name="notification_preferences")
  op.drop_table("notification_preferences")
  op.drop_index("ix_push_subscriptions_user_id", table_name="push_subscriptions")
  op.drop_table("push_subscriptions")
  op.drop_index("ix_notifications_user_created", table_name="notifications")
  op.drop_index("ix_notifications_user_id", table_name="notifications")
  op.drop_table("notifications")
