"""notification preferences as a JSON document

Existing rows keep their discrete columns; prefs_json stays NULL for them
until the user next saves preferences.

Revision ID: 0002_notification_prefs_json
Revises: 0001_init
Create Date: 2026-09-15
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "0002_notification_prefs_json"
down_revision = "0001_init"
branch_labels = None
depends_on = None


def upgrade() -> None:
  op.add_column("notification_preferences", sa.Column("prefs_json", postgresql.JSONB(), nullable=True))


def downgrade() -> None:
  op.drop_column("notification_preferences", "prefs_json")
